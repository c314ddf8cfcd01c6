"""
Tests for hop metadata and the communication trail.
"""

from dataclasses import FrozenInstanceError

import pytest

from http_fetch_core.status import StatusClass
from http_fetch_core.streams import ByteStream
from http_fetch_core.trail import CommunicationTrail, HopMetadata


@pytest.fixture
def hop() -> HopMetadata:
    return HopMetadata.create(
        uri="http://example.com/",
        status=302,
        headers={"location": ("http://example.com/a",), "set-cookie": ("a=1", "b=2")},
        version=(1, 0),
        elapsed=0.25,
    )


@pytest.fixture
def trail(hop) -> CommunicationTrail:
    trail = CommunicationTrail()
    trail.append(hop)
    trail.append(HopMetadata.create("http://example.com/a", 200, {"content-type": ("text/plain",)}))
    return trail


class TestHopMetadata:
    """Test HopMetadata class functionality."""

    def test_fields(self, hop):
        assert hop.uri == "http://example.com/"
        assert hop.status == 302
        assert hop.status_class is StatusClass.REDIRECT
        assert hop.stream is None

    def test_headers_are_read_only(self, hop):
        with pytest.raises(TypeError):
            hop.headers["location"] = ("elsewhere",)
        with pytest.raises(FrozenInstanceError):
            hop.status = 200

    def test_header_lookup(self, hop):
        assert hop.header("Set-Cookie") == ("a=1", "b=2")
        assert hop.header("missing") == ()

    def test_get(self, hop):
        assert hop.get("uri") == "http://example.com/"
        assert hop.get("status") == 302
        assert hop.get("version") == {"major": 1, "minor": 0}
        assert hop.get("time") == hop.get("elapsed") == 0.25
        with pytest.raises(KeyError):
            hop.get("body")

    def test_with_stream(self, hop):
        stream = ByteStream(b"")
        updated = hop.with_stream(stream)

        assert updated.stream is stream
        assert hop.stream is None
        assert updated == hop


class TestCommunicationTrail:
    """Test CommunicationTrail class functionality."""

    def test_order_and_accessors(self, trail):
        assert len(trail) == 2
        assert trail.uris == ("http://example.com/", "http://example.com/a")
        assert trail.statuses == (302, 200)
        assert trail.last.status == 200
        assert trail[0].status == 302
        assert [hop.status for hop in trail] == [302, 200]
        assert trail.get("status") == 200
        assert trail.header("Content-Type") == ("text/plain",)

    def test_slice_is_tuple(self, trail):
        assert isinstance(trail[:1], tuple)
        assert trail[:1][0].status == 302

    def test_freeze(self, trail, hop):
        assert not trail.frozen
        assert trail.freeze() is trail
        assert trail.frozen

        with pytest.raises(RuntimeError):
            trail.append(hop)
        with pytest.raises(RuntimeError):
            trail.attach_stream(ByteStream(b""))

    def test_attach_stream_to_last_hop(self, trail):
        stream = ByteStream(b"body")
        trail.attach_stream(stream)

        assert trail.last.stream is stream
        assert trail[0].stream is None

    def test_attach_stream_needs_a_hop(self):
        with pytest.raises(RuntimeError):
            CommunicationTrail().attach_stream(ByteStream(b""))

    def test_empty(self):
        trail = CommunicationTrail()

        assert len(trail) == 0
        assert trail.uris == ()
        with pytest.raises(IndexError):
            trail.last

    def test_repr(self, trail):
        assert repr(trail) == (
            "<CommunicationTrail [302 http://example.com/, 200 http://example.com/a]>"
        )
