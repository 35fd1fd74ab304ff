"""
Health check endpoints
"""
from fastapi import APIRouter, Depends, HTTPException

from ...core.database import test_connection
from ...services.minhash_index import MinhashIndex
from ..deps.index import get_title_index

router = APIRouter()


@router.get("/health")
async def health_check(index: MinhashIndex = Depends(get_title_index)):
    """
    Verify database connectivity and report the bound index
    """
    if not test_connection():
        raise HTTPException(status_code=503, detail="Database connection failed")
    return {
        "status": "healthy",
        "database": "connected",
        "index": index.name,
        "num_hashes": index.options.num_hashes,
        "num_bands": index.options.num_bands,
    }
