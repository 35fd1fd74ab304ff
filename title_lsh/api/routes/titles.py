"""
Video title lookup endpoints
Index video titles and find near-duplicate titles through the MinHash index
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.database import get_db
from ...core.errors import MinhashError, NotFoundError
from ...models.video import Video
from ...schemas.minhash import (
    InsertRequest, InsertResponse,
    DeleteRequest, DeleteResponse,
    CreateResponse,
    QueryRequest, QueryResponse, VideoResult
)
from ...services.minhash_index import MinhashIndex
from ...services.shingles import title_tokens
from ..deps.auth import verify_api_key
from ..deps.index import get_title_index

router = APIRouter(tags=["titles"])
logger = logging.getLogger(__name__)

# Title the upstream site gives to videos that are no longer available
INVALID_VIDEO_TITLE = "【已失效视频】"

NOT_FOUND_DETAIL = "Requested video was not found"
INTERNAL_ERROR_DETAIL = "Unknown Internal Error"


def _anchor_video(db: Session, vid: str) -> Video:
    video = db.query(Video).filter(Video.video_id == vid).first()
    if not video:
        raise NotFoundError(f"Video with ID={vid} not found")
    return video


def _index_video(index: MinhashIndex, video: Video) -> str:
    if video.title == INVALID_VIDEO_TITLE:
        return "skipped"
    old = index.insert_or_update(video.video_id, title_tokens(video.title, settings.SHINGLE_SIZE))
    logger.info(f"insert: '{video.title}'")
    return "inserted" if old is None else "updated"


def neighbours_by_title(videos: List[VideoResult], anchor_id: str) -> List[VideoResult]:
    """
    Sort matches by title and keep those that follow the anchor video

    When the anchor is missing or sorts last the sorted list is kept whole.
    """
    ordered = sorted(videos, key=lambda v: v.title)
    for i, video in enumerate(ordered):
        if video.video_id == anchor_id:
            if i + 1 < len(ordered):
                return ordered[i + 1:]
            break
    return ordered


@router.post("/insert", response_model=InsertResponse)
async def insert_or_update(
    request: InsertRequest,
    db: Session = Depends(get_db),
    index: MinhashIndex = Depends(get_title_index),
    api_key: str = Depends(verify_api_key)
):
    """Index the title of one video, replacing any previous entry"""
    try:
        video = _anchor_video(db, request.vid)
        status = _index_video(index, video)
    except NotFoundError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    except (MinhashError, SQLAlchemyError) as e:
        logger.error(f"Insert failed for video {request.vid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)

    return InsertResponse(vid=request.vid, status=status)


@router.post("/delete", response_model=DeleteResponse)
async def delete_video(
    request: DeleteRequest,
    index: MinhashIndex = Depends(get_title_index),
    api_key: str = Depends(verify_api_key)
):
    """Remove one video from the index"""
    try:
        old = index.delete(request.vid)
    except MinhashError as e:
        logger.error(f"Delete failed for video {request.vid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)

    if old is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    return DeleteResponse(vid=request.vid, status="deleted")


@router.post("/query", response_model=QueryResponse)
async def query_ann(
    request: QueryRequest,
    db: Session = Depends(get_db),
    index: MinhashIndex = Depends(get_title_index),
    api_key: str = Depends(verify_api_key)
):
    """
    Find videos whose titles are near-duplicates of the anchor video's title
    """
    try:
        video = _anchor_video(db, request.vid)
        matches = index.find_ann(
            title_tokens(video.title, settings.SHINGLE_SIZE),
            threshold=request.threshold
        )

        ids = [m.document_id for m in matches]
        found = {}
        if ids:
            found = {v.video_id: v for v in db.query(Video).filter(Video.video_id.in_(ids)).all()}
    except NotFoundError as e:
        logger.warning(str(e))
        raise HTTPException(status_code=404, detail=NOT_FOUND_DETAIL)
    except (MinhashError, SQLAlchemyError) as e:
        logger.error(f"Query failed for video {request.vid}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)

    videos = [
        VideoResult(video_id=m.document_id, title=found[m.document_id].title, similarity=m.similarity)
        for m in matches if m.document_id in found
    ]
    if request.sort_title:
        videos = neighbours_by_title(videos, request.vid)
    if request.top_k is not None:
        videos = videos[:request.top_k]

    logger.info(f"query: '{video.title}' => {len(videos)} results")
    return QueryResponse(videos=videos)


@router.post("/create", response_model=CreateResponse)
async def create_index(
    db: Session = Depends(get_db),
    index: MinhashIndex = Depends(get_title_index),
    api_key: str = Depends(verify_api_key)
):
    """Index every video in the catalog"""
    indexed = skipped = 0
    try:
        for video in db.query(Video).order_by(Video.video_id).all():
            if _index_video(index, video) == "skipped":
                skipped += 1
            else:
                indexed += 1
    except (MinhashError, SQLAlchemyError) as e:
        logger.error(f"Catalog rebuild failed after {indexed} videos: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR_DETAIL)

    logger.info(f"Rebuilt index {index.name}: {indexed} indexed, {skipped} skipped")
    return CreateResponse(indexed=indexed, skipped=skipped)
