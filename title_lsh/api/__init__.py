"""
HTTP API of the title LSH server
"""
from .routes import api_router

__all__ = ["api_router"]
