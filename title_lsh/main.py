"""
Main FastAPI application for the Title LSH Server
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.database import create_tables, engine
from .api import api_router
from .services.banding import IndexOptions
from .services.minhash_index import MinhashIndex
from . import models  # Import models to register them

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    debug=settings.DEBUG
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure as needed
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router)


@app.on_event("startup")
async def startup_event():
    """Create catalog tables and bind the title index"""
    create_tables()
    app.state.title_index = MinhashIndex.connect_or_create(
        settings.INDEX_NAME,
        engine,
        IndexOptions(
            num_hashes=settings.NUM_HASHES,
            num_bands=settings.NUM_BANDS,
            target_jaccard_similarity=settings.TARGET_JACCARD_SIMILARITY
        ),
        candidate_overshoot=settings.CANDIDATE_OVERSHOOT
    )


def run():
    import uvicorn
    uvicorn.run(
        "title_lsh.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
