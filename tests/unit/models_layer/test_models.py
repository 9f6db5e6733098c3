"""
Unit Tests for Record Models
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from muse_cache.models.batch import BatchWriteResult, PartialBatchResult
from muse_cache.models.entities import ENTITY_MODELS, EntityKind, Track, UserSnapshot
from muse_cache.models.search import (
    ArtistSearchResult,
    SearchResultKind,
    TrackSearchResult,
    search_result_adapter,
)


@pytest.mark.unit
class TestEntities:
    def test_every_kind_has_a_model(self):
        assert set(ENTITY_MODELS) == set(EntityKind)

    @pytest.mark.parametrize(
        "kind,scoped",
        [
            (EntityKind.TRACK, False),
            (EntityKind.ALBUM, False),
            (EntityKind.ARTIST, False),
            (EntityKind.USER, True),
            (EntityKind.RECOMMENDATIONS, True),
            (EntityKind.HISTORY, True),
        ],
    )
    def test_user_scoped_kinds(self, kind, scoped):
        assert kind.is_user_scoped is scoped

    def test_records_are_immutable(self, sample_track):
        with pytest.raises(ValidationError):
            sample_track.name = "changed"

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Track(id="", name="x")

    def test_user_snapshot_id_is_user_id(self):
        assert UserSnapshot(user_id="u1").id == "u1"


@pytest.mark.unit
class TestSearchEnvelope:
    def test_discriminator_selects_model(self):
        envelope = search_result_adapter.validate_python(
            {"query": "q", "timestamp": datetime.now(timezone.utc), "result_type": "artists", "results": []}
        )

        assert isinstance(envelope, ArtistSearchResult)

    def test_tag_is_fixed_per_model(self):
        envelope = TrackSearchResult(query="q", timestamp=datetime.now(timezone.utc))

        assert envelope.result_type == SearchResultKind.TRACKS.value


@pytest.mark.unit
class TestBatchResults:
    def test_partial_result_completeness(self):
        assert PartialBatchResult(found=["x"]).is_complete is True
        assert PartialBatchResult(missing=["y"]).is_complete is False

    def test_defaults_are_independent(self):
        first, second = BatchWriteResult(), BatchWriteResult()
        first.skipped.append("t1")

        assert second.skipped == []
