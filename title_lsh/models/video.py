"""
Video catalog model
"""
from sqlalchemy import Column, String, JSON

from ..core.database import Base


class Video(Base):
    """Videos whose titles feed the MinHash index"""
    __tablename__ = "videos"

    video_id = Column(String(64), primary_key=True, index=True)
    title = Column(String(1024), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
