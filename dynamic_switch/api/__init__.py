"""FastAPI router aggregation."""

from fastapi import APIRouter

from api.switch import router as switch_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(switch_router, prefix="/switch", tags=["switch"])
