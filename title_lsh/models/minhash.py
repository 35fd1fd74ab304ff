"""
MinHash index tables

Every index name owns its own three tables, so they are built per name on a
private MetaData instead of being declared once on the catalog Base.
"""
from dataclasses import dataclass

from sqlalchemy import Column, Float, Index, Integer, JSON, MetaData, String, Table


@dataclass(frozen=True)
class MinhashTables:
    """The three tables backing one named index"""
    metadata: MetaData
    config: Table
    buckets: Table
    elements: Table


def minhash_tables(name: str) -> MinhashTables:
    """Build the configuration, band-bucket and element-set tables for an index"""
    metadata = MetaData()

    config = Table(
        f"{name}_metadata", metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("num_hashes", Integer, nullable=False),
        Column("num_bands", Integer, nullable=False),
        Column("target_jaccard_similarity", Float),
    )

    # One row per band per document (band_id 0 to num_bands-1)
    buckets = Table(
        f"{name}_table", metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("band_id", Integer, nullable=False),
        Column("band_hash", Integer, nullable=False),
        Column("document_id", String(64), nullable=False, index=True),
        Index(f"ix_{name}_table_bucket", "band_id", "band_hash"),
    )

    elements = Table(
        f"{name}_data", metadata,
        Column("document_id", String(64), primary_key=True),
        Column("elements", JSON, nullable=False),
    )

    return MinhashTables(metadata=metadata, config=config, buckets=buckets, elements=elements)
