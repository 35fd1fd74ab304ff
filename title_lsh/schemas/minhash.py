"""
Pydantic schemas for the title lookup endpoints
"""
from typing import List, Optional

from pydantic import BaseModel, Field


# ============= INSERT / DELETE =============

class InsertRequest(BaseModel):
    """Index (or re-index) one video by id"""
    vid: str


class InsertResponse(BaseModel):
    """Outcome of an insert"""
    vid: str
    status: str  # "inserted", "updated" or "skipped"


class DeleteRequest(BaseModel):
    """Remove one video from the index"""
    vid: str


class DeleteResponse(BaseModel):
    vid: str
    status: str


class CreateResponse(BaseModel):
    """Outcome of a full catalog rebuild"""
    indexed: int
    skipped: int


# ============= QUERY =============

class QueryRequest(BaseModel):
    """Find videos whose titles are near-duplicates of an anchor video"""
    vid: str
    top_k: Optional[int] = Field(default=None, ge=0)
    threshold: Optional[float] = None
    sort_title: Optional[bool] = None


class VideoResult(BaseModel):
    """One matching video"""
    video_id: str
    title: str
    similarity: float

    class Config:
        from_attributes = True


class QueryResponse(BaseModel):
    videos: List[VideoResult]


# ============= STATS =============

class BandStatsResponse(BaseModel):
    band_id: int
    unique_hashes: int
    total_entries: int

    class Config:
        from_attributes = True


class IndexStatsResponse(BaseModel):
    """Index configuration and bucket distribution"""
    index_name: str
    num_hashes: int
    num_bands: int
    target_jaccard_similarity: Optional[float] = None
    documents: int
    bands: List[BandStatsResponse]
