"""
API routes for the title LSH server
"""
from fastapi import APIRouter

from .health import router as health_router
from .titles import router as titles_router
from .index_management import router as index_management_router

# Main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(health_router)
api_router.include_router(titles_router)
api_router.include_router(index_management_router)
