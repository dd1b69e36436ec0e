"""API routes"""

from fastapi import APIRouter
from .recommendations import router as recommendations_router
from .ab_tests import router as ab_tests_router
from .events import router as events_router

api_router = APIRouter()

api_router.include_router(recommendations_router, prefix="/recommendations", tags=["recommendations"])
api_router.include_router(ab_tests_router, prefix="/ab", tags=["ab"])
api_router.include_router(events_router, prefix="/events", tags=["events"])
