"""
Database models for the title LSH server
"""
from .video import Video
from .minhash import MinhashTables, minhash_tables

# Import all models to ensure they're registered with SQLAlchemy
__all__ = [
    "Video",
    "MinhashTables",
    "minhash_tables",
]
