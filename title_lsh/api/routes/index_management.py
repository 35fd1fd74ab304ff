"""
Index inspection endpoints for debugging and maintenance
"""
import logging

from fastapi import APIRouter, HTTPException, Depends

from ...core.errors import MinhashError
from ...schemas.minhash import IndexStatsResponse, BandStatsResponse
from ...services.minhash_index import MinhashIndex
from ..deps.auth import verify_api_key
from ..deps.index import get_title_index

router = APIRouter(prefix="/index", tags=["index-management"])
logger = logging.getLogger(__name__)


@router.get("/stats", response_model=IndexStatsResponse)
async def get_index_stats(
    index: MinhashIndex = Depends(get_title_index),
    api_key: str = Depends(verify_api_key)
):
    """
    Get the index configuration and its bucket distribution per band
    """
    try:
        documents = index.count()
        bands = index.bucket_stats()
    except MinhashError as e:
        logger.error(f"Failed to read stats of index {index.name}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Unknown Internal Error")

    return IndexStatsResponse(
        index_name=index.name,
        num_hashes=index.options.num_hashes,
        num_bands=index.options.num_bands,
        target_jaccard_similarity=index.options.target_jaccard_similarity,
        documents=documents,
        bands=[BandStatsResponse.model_validate(b) for b in bands],
    )


@router.get("/documents/{document_id}")
async def get_document(
    document_id: str,
    index: MinhashIndex = Depends(get_title_index),
    api_key: str = Depends(verify_api_key)
):
    """
    Get the stored token set and bucket rows of one document
    """
    try:
        record = index.find_exact(document_id)
        bands = index.band_rows(document_id) if record else []
    except MinhashError as e:
        logger.error(f"Failed to read document {document_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Unknown Internal Error")

    if record is None:
        raise HTTPException(status_code=404, detail="Document not found in index")

    return {
        "document_id": record.document_id,
        "elements": sorted(record.elements),
        "bands": [{"band_id": band_id, "band_hash": band_hash} for band_id, band_hash in bands],
    }
