import os

# Settings are read at import time, so point them at SQLite before importing the package
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_KEY"] = "test_key"

from typing import Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from title_lsh.core.database import Base, get_db
from title_lsh.api.deps.index import get_title_index
from title_lsh.models.video import Video
from title_lsh.services.banding import IndexOptions
from title_lsh.services.minhash_index import MinhashIndex


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def make_index(engine):
    def _factory(name: str = "test_minhash", options: IndexOptions = None, **kwargs) -> MinhashIndex:
        if options is None:
            options = IndexOptions(num_hashes=120, num_bands=40, target_jaccard_similarity=None)
        return MinhashIndex.connect_or_create(name, engine, options, **kwargs)
    return _factory


@pytest.fixture
def index(make_index) -> MinhashIndex:
    return make_index()


def near_duplicates(base: List[int], changed: int, offset: int) -> List[int]:
    """Copy of base with its last `changed` elements swapped for fresh ones"""
    return base[:len(base) - changed] + list(range(offset, offset + changed))


@pytest.fixture
def token_sets() -> Dict[str, List[int]]:
    base = list(range(1000, 1100))
    return {
        "base": base,
        "near_5": near_duplicates(base, 5, 90000),     # J = 95 / 105
        "near_15": near_duplicates(base, 15, 91000),   # J = 85 / 115
        "far_1": list(range(5000, 5100)),
        "far_2": list(range(6000, 6100)),
        "far_3": list(range(7000, 7100)),
    }


CATALOG = [
    {"video_id": "v1", "title": "Touhou Bad Apple shadow art full version"},
    {"video_id": "v2", "title": "Touhou Bad Apple shadow art full version HD"},
    {"video_id": "v3", "title": "Touhou Bad Apple shadow art"},
    {"video_id": "v4", "title": "Cooking pasta at home tutorial"},
    {"video_id": "v5", "title": "【已失效视频】"},
]


@pytest.fixture
def catalog_session(engine):
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    for row in CATALOG:
        session.add(Video(video_id=row["video_id"], title=row["title"], tags=[]))
    session.commit()
    session.close()
    return Session


@pytest.fixture
def api_client(catalog_session, index):
    from title_lsh.main import app

    def _get_db():
        db = catalog_session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_title_index] = lambda: index
    client = TestClient(app)
    client.headers.update({"Authorization": "Bearer test_key"})
    yield client
    app.dependency_overrides.clear()
