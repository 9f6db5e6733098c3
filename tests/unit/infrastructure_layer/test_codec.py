"""
Unit Tests for Payload Encoding
"""

import orjson
import pytest
from pydantic import TypeAdapter

from muse_cache.infrastructure.cache.codec import decode, decode_with, encode, encode_with
from muse_cache.models.entities import Artist, Track
from muse_cache.models.search import TrackSearchResult, search_result_adapter


@pytest.mark.unit
class TestCodec:
    def test_encode_is_json(self, sample_track):
        payload = encode(sample_track)

        assert orjson.loads(payload)["id"] == sample_track.id

    def test_decode_returns_equal_record(self, sample_track):
        assert decode(encode(sample_track), Track, "k") == sample_track

    def test_decode_corrupt_payload_returns_none(self):
        assert decode("{not json", Track, "spotify:track:1") is None

    def test_decode_missing_required_field_returns_none(self):
        assert decode('{"name": "No id"}', Track, "spotify:track:1") is None

    def test_decode_with_adapter_uses_tag(self, sample_track):
        from datetime import datetime, timezone

        envelope = TrackSearchResult(
            query="q", results=[sample_track], timestamp=datetime.now(timezone.utc)
        )

        decoded = decode_with(encode(envelope), search_result_adapter, "k")

        assert isinstance(decoded, TrackSearchResult)
        assert decoded.results == [sample_track]

    def test_decode_with_unknown_tag_returns_none(self):
        payload = orjson.dumps({"query": "q", "timestamp": "2024-01-01T00:00:00Z", "result_type": "playlists"})

        assert decode_with(payload.decode(), search_result_adapter, "k") is None

    def test_artist_round_trip_keeps_defaults(self):
        artist = Artist(id="a", name="A")
        assert decode(encode(artist), Artist, "k") == artist

    def test_encode_with_list_adapter(self, sample_tracks):
        adapter = TypeAdapter(list[Track])

        payload = encode_with(sample_tracks, adapter)

        assert [item["id"] for item in orjson.loads(payload)] == [track.id for track in sample_tracks]
        assert decode_with(payload, adapter, "k") == sample_tracks
