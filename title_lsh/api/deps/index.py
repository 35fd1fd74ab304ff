"""
MinHash index dependency
"""
from fastapi import HTTPException, Request

from ...services.minhash_index import MinhashIndex


def get_title_index(request: Request) -> MinhashIndex:
    """Return the title index bound at startup"""
    index = getattr(request.app.state, "title_index", None)
    if index is None:
        raise HTTPException(status_code=503, detail="Title index is not ready")
    return index
