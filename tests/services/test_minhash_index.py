"""Tests for the persistent MinHash index and its ANN queries."""

import pytest
from sqlalchemy import insert, text

from title_lsh.core.errors import ConfigurationError, StoreError
from title_lsh.services.banding import IndexOptions, optimal_num_bands
from title_lsh.services.minhash_index import AnnResult, MinhashIndex, jaccard_similarity


class TestJaccard:
    def test_symmetric(self):
        a, b = {1, 2, 3, 4}, {3, 4, 5}
        assert jaccard_similarity(a, b) == jaccard_similarity(b, a) == pytest.approx(2 / 5)

    def test_identity(self):
        assert jaccard_similarity({7, 8}, {7, 8}) == 1.0

    def test_empty_side_is_zero(self):
        assert jaccard_similarity({1, 2}, set()) == 0.0
        assert jaccard_similarity(set(), set()) == 0.0


class TestConnectOrCreate:
    def test_persists_resolved_bands(self, engine):
        index = MinhashIndex.connect_or_create(
            "derived", engine, IndexOptions(num_hashes=100, num_bands=None, target_jaccard_similarity=0.7)
        )
        assert index.options.num_bands == optimal_num_bands(100, 0.7)

        reopened = MinhashIndex.connect_or_create(
            "derived", engine, IndexOptions(num_hashes=64, num_bands=8, target_jaccard_similarity=None)
        )
        assert reopened.options == index.options

    def test_indexes_are_independent(self, make_index, token_sets):
        first = make_index("first")
        second = make_index("second", IndexOptions(num_hashes=60, num_bands=20, target_jaccard_similarity=None))
        first.insert_or_update("doc", token_sets["base"])

        assert second.options.num_bands == 20
        assert second.find_exact("doc") is None
        assert first.find_exact("doc") is not None

    def test_first_config_row_wins(self, make_index, engine):
        created = make_index("raced")
        with engine.begin() as connection:
            connection.execute(insert(created.tables.config).values(
                num_hashes=60, num_bands=20, target_jaccard_similarity=None
            ))

        reopened = make_index("raced", IndexOptions(num_hashes=60, num_bands=20, target_jaccard_similarity=None))
        assert reopened.options == created.options

    def test_new_index_without_bands_or_target(self, engine):
        with pytest.raises(ConfigurationError):
            MinhashIndex.connect_or_create(
                "broken", engine, IndexOptions(num_hashes=100, num_bands=None, target_jaccard_similarity=None)
            )

    def test_bands_not_dividing_hashes(self, engine):
        with pytest.raises(ConfigurationError):
            MinhashIndex.connect_or_create("broken", engine, IndexOptions(num_hashes=100, num_bands=30))


class TestMutation:
    def test_insert_then_find_exact(self, index, token_sets):
        assert index.insert_or_update("doc", token_sets["base"]) is None

        record = index.find_exact("doc")
        assert record.document_id == "doc"
        assert record.elements == set(token_sets["base"])

    def test_find_exact_missing(self, index):
        assert index.find_exact("nope") is None

    def test_one_band_row_per_band(self, index, token_sets):
        index.insert_or_update("doc", token_sets["base"])
        rows = index.band_rows("doc")
        assert [band_id for band_id, _ in rows] == list(range(40))
        assert [band_hash for _, band_hash in rows] == index.band_hashes(token_sets["base"])

    def test_update_replaces(self, index, token_sets):
        index.insert_or_update("doc", token_sets["base"])
        old = index.insert_or_update("doc", token_sets["far_1"])

        assert old.elements == set(token_sets["base"])
        assert index.find_exact("doc").elements == set(token_sets["far_1"])
        assert len(index.band_rows("doc")) == 40
        assert index.count() == 1

    def test_update_is_idempotent(self, index, token_sets):
        index.insert_or_update("doc", token_sets["near_5"])
        rows = index.band_rows("doc")
        index.insert_or_update("doc", token_sets["near_5"])
        assert index.band_rows("doc") == rows

    def test_delete_removes_all_trace(self, index, token_sets):
        index.insert_or_update("doc", token_sets["base"])
        index.insert_or_update("other", token_sets["far_1"])

        removed = index.delete("doc")
        assert removed.elements == set(token_sets["base"])
        assert index.find_exact("doc") is None
        assert index.band_rows("doc") == []
        assert index.find_ann(token_sets["base"], threshold=0.5) == []
        assert index.find_exact("other") is not None

    def test_delete_missing(self, index):
        assert index.delete("nope") is None

    def test_lines_overloads(self, index):
        lines = ["first line", "second line", "third line"]
        index.insert_or_update_lines("doc", lines)
        assert index.find_ann_lines(lines) == [AnnResult(1.0, "doc")]

    def test_bucket_stats(self, index, token_sets):
        index.insert_or_update("a", token_sets["base"])
        index.insert_or_update("b", token_sets["base"])
        stats = index.bucket_stats()

        assert len(stats) == 40
        for s in stats:
            assert s.total_entries == 2
            assert s.unique_hashes == 1

    def test_store_failure_is_wrapped(self, index, engine):
        with engine.begin() as connection:
            connection.execute(text(f"DROP TABLE {index.tables.elements.name}"))
        with pytest.raises(StoreError):
            index.find_exact("doc")


class TestFindAnn:
    @pytest.fixture
    def populated(self, index, token_sets):
        for name in ("near_5", "far_1", "near_15", "far_2", "far_3"):
            index.insert_or_update(name, token_sets[name])
        return index

    def test_returns_only_near_duplicates_ranked(self, populated, token_sets):
        results = populated.find_ann(token_sets["base"], threshold=0.5)

        assert [r.document_id for r in results] == ["near_5", "near_15"]
        assert results[0].similarity == pytest.approx(95 / 105)
        assert results[1].similarity == pytest.approx(85 / 115)

    def test_without_threshold_keeps_all_candidates(self, populated, token_sets):
        results = populated.find_ann(token_sets["base"])
        ids = [r.document_id for r in results]
        assert ids[:2] == ["near_5", "near_15"]
        assert all(r.similarity < 0.5 for r in results[2:])

    def test_threshold_above_every_match(self, populated, token_sets):
        assert populated.find_ann(token_sets["base"], threshold=0.95) == []

    def test_top_k_bound(self, index, token_sets):
        base = token_sets["base"]
        for i in range(10):
            index.insert_or_update(f"doc{i}", base[:100 - i] + list(range(50000 + 100 * i, 50000 + 100 * i + i)))

        results = index.find_ann(base, top_k=3)
        assert len(results) <= 3
        assert [r.document_id for r in results] == ["doc0", "doc1", "doc2"]
        similarities = [r.similarity for r in results]
        assert similarities == sorted(similarities, reverse=True)

    def test_candidates_limited_by_band_matches(self, make_index, token_sets):
        base = token_sets["base"]
        index = make_index(candidate_overshoot=1)
        docs = {f"d{i}": base[:100 - i] + list(range(60000 + 100 * i, 60000 + 100 * i + i)) for i in range(6)}
        for document_id, elements in docs.items():
            index.insert_or_update(document_id, elements)

        query_bands = set(enumerate(index.band_hashes(base)))
        band_matches = {
            document_id: len(query_bands & set(index.band_rows(document_id)))
            for document_id in docs
        }
        matched = sorted((-count, document_id) for document_id, count in band_matches.items() if count)
        assert len(matched) > 2

        results = index.find_ann(base, top_k=2)
        assert len(results) == 2
        assert {r.document_id for r in results} == {document_id for _, document_id in matched[:2]}
        assert results[0] == AnnResult(1.0, "d0")
        similarities = [r.similarity for r in results]
        assert similarities == sorted(similarities, reverse=True)

        unlimited = make_index(candidate_overshoot=None)
        assert len(unlimited.find_ann(base)) == len(matched)

    def test_top_k_without_overshoot(self, make_index, token_sets):
        index = make_index(candidate_overshoot=None)
        index.insert_or_update("near_5", token_sets["near_5"])
        index.insert_or_update("near_15", token_sets["near_15"])

        assert index.find_ann(token_sets["base"], top_k=1) == [
            AnnResult(pytest.approx(95 / 105), "near_5")
        ]

    def test_top_k_zero(self, populated, token_sets):
        assert populated.find_ann(token_sets["base"], top_k=0) == []

    def test_negative_top_k(self, populated, token_sets):
        with pytest.raises(ValueError):
            populated.find_ann(token_sets["base"], top_k=-1)

    def test_empty_query(self, populated):
        assert populated.find_ann(set(), threshold=0.01) == []

    def test_query_uses_bound_configuration(self, engine, token_sets):
        created = MinhashIndex.connect_or_create(
            "bound", engine, IndexOptions(num_hashes=120, num_bands=40, target_jaccard_similarity=None)
        )
        created.insert_or_update("near_5", token_sets["near_5"])

        reopened = MinhashIndex.connect_or_create(
            "bound", engine, IndexOptions(num_hashes=50, num_bands=5, target_jaccard_similarity=None)
        )
        assert [r.document_id for r in reopened.find_ann(token_sets["base"], threshold=0.5)] == ["near_5"]
