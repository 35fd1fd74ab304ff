"""
MinHash LSH Index Service
Persistent inverted-bucket index with approximate nearest neighbour queries
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional, Sequence, Set, Tuple

from sqlalchemy import and_, delete, func, insert, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..core.errors import StoreError
from ..models.minhash import MinhashTables, minhash_tables
from .banding import IndexOptions
from .hashing import hash_token
from .signature import compute_signature, to_bands

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATE_OVERSHOOT = 4


@dataclass
class ElementSet:
    """Exact token set stored for one document"""
    document_id: str
    elements: Set[int] = field(default_factory=set)


class AnnResult(NamedTuple):
    """One ranked match of an ANN query"""
    similarity: float
    document_id: str


@dataclass
class BucketStats:
    """Bucket distribution of one band"""
    band_id: int
    unique_hashes: int
    total_entries: int


def jaccard_similarity(a: Set[int], b: Set[int]) -> float:
    """|a & b| / |a | b|, with two empty sets scoring 0.0"""
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


class MinhashIndex:
    """
    Handle on one named MinHash index

    The handle carries the persisted configuration; every operation opens
    its own session, so the handle holds no index data between calls.
    """

    def __init__(self,
                 name: str,
                 engine: Engine,
                 tables: MinhashTables,
                 options: IndexOptions,
                 candidate_overshoot: Optional[int] = DEFAULT_CANDIDATE_OVERSHOOT):
        self.name = name
        self.engine = engine
        self.tables = tables
        self.options = options
        self.candidate_overshoot = candidate_overshoot
        self._session_factory = sessionmaker(bind=engine, autoflush=False)

    @classmethod
    def connect_or_create(cls,
                          name: str,
                          engine: Engine,
                          options: Optional[IndexOptions] = None,
                          candidate_overshoot: Optional[int] = DEFAULT_CANDIDATE_OVERSHOOT) -> "MinhashIndex":
        """
        Bind to an existing index or create a new one

        Args:
            name: Index name; prefixes the three backing tables
            engine: SQLAlchemy engine of the backing database
            options: Options used only when the index does not exist yet
            candidate_overshoot: Multiple of top_k fetched as candidates
                                 before exact scoring (None = no limit)

        Returns:
            Index handle carrying the persisted configuration

        Raises:
            ConfigurationError: A new index cannot resolve its band count
            StoreError: The database rejected table creation or the config write
        """
        options = options or IndexOptions()
        tables = minhash_tables(name)
        try:
            tables.metadata.create_all(bind=engine)
            with engine.begin() as connection:
                # The first persisted row wins if concurrent creators raced
                row = connection.execute(
                    select(tables.config).order_by(tables.config.c.id).limit(1)
                ).mappings().first()
                if row is not None:
                    persisted = IndexOptions(
                        num_hashes=row["num_hashes"],
                        num_bands=row["num_bands"],
                        target_jaccard_similarity=row["target_jaccard_similarity"],
                    )
                    if options != persisted:
                        logger.warning(f"Index {name} already exists with {persisted}; "
                                       f"ignoring requested {options}")
                    options = persisted
                else:
                    options = options.resolve()
                    connection.execute(insert(tables.config).values(
                        num_hashes=options.num_hashes,
                        num_bands=options.num_bands,
                        target_jaccard_similarity=options.target_jaccard_similarity,
                    ))
                    logger.info(f"Created index {name}: {options.num_hashes} hashes, "
                                f"{options.num_bands} bands")
        except SQLAlchemyError as e:
            logger.error(f"Failed to open index {name}: {e}")
            raise StoreError(f"Failed to open index {name}") from e

        return cls(name, engine, tables, options, candidate_overshoot=candidate_overshoot)

    @contextmanager
    def _transaction(self, action: str):
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"{action} failed on index {self.name}: {e}")
            raise StoreError(f"{action} failed on index {self.name}") from e
        finally:
            session.close()

    def band_hashes(self, elements: Iterable[int]) -> List[int]:
        """Signature of a token set folded into this index's bands"""
        signature = compute_signature(elements, self.options.num_hashes)
        return to_bands(signature, self.options.num_bands)

    def _load(self, session, document_id: str) -> Optional[ElementSet]:
        data = self.tables.elements
        row = session.execute(
            select(data.c.elements).where(data.c.document_id == document_id)
        ).first()
        if row is None:
            return None
        return ElementSet(document_id=document_id, elements=set(row.elements))

    def _remove(self, session, document_id: str):
        session.execute(delete(self.tables.elements).where(self.tables.elements.c.document_id == document_id))
        session.execute(delete(self.tables.buckets).where(self.tables.buckets.c.document_id == document_id))

    def insert_or_update(self, document_id: str, elements: Iterable[int]) -> Optional[ElementSet]:
        """
        Index a token set under a document id, replacing any previous entry

        The old rows are removed and the new ones written in one transaction,
        so retrying after a failure always converges on the same state.

        Returns:
            The replaced element set, or None on first insert
        """
        element_set = {int(e) for e in elements}
        bands = self.band_hashes(element_set)

        with self._transaction("insert_or_update") as session:
            old = self._load(session, document_id)
            if old is not None:
                self._remove(session, document_id)
            session.execute(insert(self.tables.elements).values(
                document_id=document_id,
                elements=sorted(element_set),
            ))
            session.execute(insert(self.tables.buckets), [
                {"band_id": band_id, "band_hash": band_hash, "document_id": document_id}
                for band_id, band_hash in enumerate(bands)
            ])

        logger.info(f"{'Inserted' if old is None else 'Updated'} document {document_id} "
                    f"({len(element_set)} elements) in index {self.name}")
        return old

    def insert_or_update_lines(self, document_id: str, lines: Sequence[str]) -> Optional[ElementSet]:
        """Index a sequence of strings, one token per string"""
        return self.insert_or_update(document_id, [hash_token(line) for line in lines])

    def delete(self, document_id: str) -> Optional[ElementSet]:
        """Remove a document and all of its bucket rows"""
        with self._transaction("delete") as session:
            old = self._load(session, document_id)
            if old is not None:
                self._remove(session, document_id)

        if old is not None:
            logger.info(f"Deleted document {document_id} from index {self.name}")
        return old

    def find_exact(self, document_id: str) -> Optional[ElementSet]:
        """Look up the stored element set of a document"""
        with self._transaction("find_exact") as session:
            return self._load(session, document_id)

    def _candidate_limit(self, top_k: Optional[int]) -> Optional[int]:
        if top_k is None or self.candidate_overshoot is None:
            return None
        return top_k * self.candidate_overshoot

    def find_ann(self,
                 elements: Iterable[int],
                 top_k: Optional[int] = None,
                 threshold: Optional[float] = None) -> List[AnnResult]:
        """
        Find indexed documents similar to a token set

        Candidates are the documents sharing at least one bucket with the
        query, ranked by number of shared bands. They are re-scored with the
        exact Jaccard similarity, filtered by the threshold and ranked.

        Args:
            elements: Query token set
            top_k: Maximum number of results (None = unbounded)
            threshold: Minimum Jaccard similarity (None = no floor)

        Returns:
            Results sorted by similarity descending, ties by document id
        """
        if top_k is not None and top_k < 0:
            raise ValueError(f"top_k must not be negative, got {top_k}")

        query = {int(e) for e in elements}
        bands = self.band_hashes(query)
        buckets, data = self.tables.buckets, self.tables.elements

        band_matches = func.count().label("band_matches")
        candidates = (
            select(buckets.c.document_id, band_matches)
            .where(or_(*[
                and_(buckets.c.band_id == band_id, buckets.c.band_hash == band_hash)
                for band_id, band_hash in enumerate(bands)
            ]))
            .group_by(buckets.c.document_id)
            .order_by(band_matches.desc(), buckets.c.document_id)
        )
        limit = self._candidate_limit(top_k)
        if limit is not None:
            candidates = candidates.limit(limit)
        candidates = candidates.subquery()

        stmt = (
            select(candidates.c.document_id, candidates.c.band_matches, data.c.elements)
            .select_from(candidates)
            .join(data, data.c.document_id == candidates.c.document_id)
        )

        with self._transaction("find_ann") as session:
            rows = session.execute(stmt).all()

        results = []
        for row in rows:
            similarity = jaccard_similarity(query, set(row.elements))
            if threshold is None or similarity >= threshold:
                results.append(AnnResult(similarity, row.document_id))

        results.sort(key=lambda r: (-r.similarity, r.document_id))
        if top_k is not None:
            results = results[:top_k]

        logger.info(f"ANN query on index {self.name}: {len(rows)} candidates, "
                    f"{len(results)} results")
        return results

    def find_ann_lines(self,
                       lines: Sequence[str],
                       top_k: Optional[int] = None,
                       threshold: Optional[float] = None) -> List[AnnResult]:
        """find_ann over a sequence of strings, one token per string"""
        return self.find_ann([hash_token(line) for line in lines], top_k=top_k, threshold=threshold)

    def count(self) -> int:
        """Number of indexed documents"""
        with self._transaction("count") as session:
            return session.execute(select(func.count()).select_from(self.tables.elements)).scalar_one()

    def bucket_stats(self) -> List[BucketStats]:
        """Per-band count of distinct buckets and of bucket rows"""
        buckets = self.tables.buckets
        stmt = (
            select(
                buckets.c.band_id,
                func.count(buckets.c.band_hash.distinct()).label("unique_hashes"),
                func.count(buckets.c.document_id).label("total_entries"),
            )
            .group_by(buckets.c.band_id)
            .order_by(buckets.c.band_id)
        )
        with self._transaction("bucket_stats") as session:
            rows = session.execute(stmt).all()
        return [BucketStats(row.band_id, row.unique_hashes, row.total_entries) for row in rows]

    def band_rows(self, document_id: str) -> List[Tuple[int, int]]:
        """(band_id, band_hash) rows stored for a document"""
        buckets = self.tables.buckets
        stmt = (
            select(buckets.c.band_id, buckets.c.band_hash)
            .where(buckets.c.document_id == document_id)
            .order_by(buckets.c.band_id)
        )
        with self._transaction("band_rows") as session:
            return [(row.band_id, row.band_hash) for row in session.execute(stmt).all()]
