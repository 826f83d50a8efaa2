from fastapi import APIRouter, Depends

from bikeshop.api.dependencies import bind_item_context, bind_workshop_context
from bikeshop.api.routes import health, items, workshops

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(
    workshops.router, prefix="/workshops", tags=["workshops"], dependencies=[Depends(bind_workshop_context)]
)
api_router.include_router(items.router, prefix="/items", tags=["items"], dependencies=[Depends(bind_item_context)])
