"""
Pydantic schemas for API request/response models
"""
from .minhash import (
    InsertRequest, InsertResponse,
    DeleteRequest, DeleteResponse,
    CreateResponse,
    QueryRequest, VideoResult, QueryResponse,
    BandStatsResponse, IndexStatsResponse
)

__all__ = [
    "InsertRequest",
    "InsertResponse",
    "DeleteRequest",
    "DeleteResponse",
    "CreateResponse",
    "QueryRequest",
    "VideoResult",
    "QueryResponse",
    "BandStatsResponse",
    "IndexStatsResponse",
]
