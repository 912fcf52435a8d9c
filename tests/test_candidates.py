"""
Candidate Source Tests
======================

Tests for message validation, image decoding and stream termination.
"""

import json

import numpy as np
import pytest

from collage_studio.exceptions import ImageDecodeError
from collage_studio.models.candidate import CandidateImage
from collage_studio.models.input import CandidateMessage
from collage_studio.source import CandidateSource, decode_candidate, decode_image_b64


class FakeReceiver:
    """Replays frames as ASGI messages, then disconnects."""

    def __init__(self, frames):
        self.frames = list(frames)

    async def receive(self):
        if not self.frames:
            return {"type": "websocket.disconnect", "code": 1000}
        frame = self.frames.pop(0)
        if isinstance(frame, bytes):
            return {"type": "websocket.receive", "bytes": frame}
        return {"type": "websocket.receive", "text": frame}


class TestCandidateImage:
    """Tests for CandidateImage geometry."""

    def test_size_from_pixels(self):
        image = CandidateImage(image_id="a", pixels=np.zeros((30, 40, 3), dtype=np.uint8))
        assert image.size == (40, 30)
        assert image.width == 40 and image.height == 30

    def test_pixels_are_read_only(self):
        image = CandidateImage(image_id="a", pixels=np.zeros((3, 4, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            image.pixels[0, 0, 0] = 1

    def test_repr_is_compact(self):
        image = CandidateImage(image_id="a", pixels=np.zeros((3, 4, 3), dtype=np.uint8))
        assert repr(image) == "CandidateImage(image_id='a', size=4x3)"
        assert "unknown" in repr(CandidateImage(image_id="b"))


class TestDecoding:
    """Tests for base64 image decoding."""

    def test_roundtrip_geometry(self, encode_b64):
        pixels = np.zeros((30, 40, 3), dtype=np.uint8)
        decoded = decode_image_b64(encode_b64(pixels), "a")
        assert decoded.shape == (30, 40, 3)

    def test_invalid_base64(self):
        with pytest.raises(ImageDecodeError):
            decode_image_b64("not base64 !!!", "a")

    def test_not_an_image(self):
        with pytest.raises(ImageDecodeError):
            decode_image_b64("aGVsbG8gd29ybGQ=", "a")

    def test_decode_candidate_fails_closed(self):
        candidate = decode_candidate(CandidateMessage(image_id="x", image="aGVsbG8="))
        assert candidate.image_id == "x"
        assert candidate.size is None


class TestCandidateSource:
    """Tests for CandidateSource."""

    @pytest.mark.asyncio
    async def test_yields_valid_candidates_until_disconnect(self, encode_b64):
        payload = encode_b64(np.zeros((30, 40, 3), dtype=np.uint8))
        source = CandidateSource(FakeReceiver([
            json.dumps({"image_id": "a", "image": payload}),
            "{not json",
            json.dumps({"image": payload}),
            json.dumps({"image_id": "b", "image": "aGVsbG8="}),
        ]))

        candidates = [candidate async for candidate in source]

        assert [c.image_id for c in candidates] == ["a", "b"]
        assert candidates[0].size == (40, 30)
        assert candidates[1].size is None
        assert source.closed
        assert source.metrics.to_dict() == {
            "messages_received": 4,
            "candidates_emitted": 2,
            "parse_errors": 2,
            "decode_errors": 1,
        }

    @pytest.mark.asyncio
    async def test_aclose_stops_iteration(self, encode_b64):
        payload = encode_b64(np.zeros((30, 40, 3), dtype=np.uint8))
        receiver = FakeReceiver([json.dumps({"image_id": f"i{n}", "image": payload}) for n in range(3)])
        source = CandidateSource(receiver)

        first = await source.__anext__()
        await source.aclose()

        assert first.image_id == "i0"
        with pytest.raises(StopAsyncIteration):
            await source.__anext__()
        assert len(receiver.frames) == 2

    @pytest.mark.asyncio
    async def test_done_event_ends_stream(self, encode_b64):
        payload = encode_b64(np.zeros((30, 40, 3), dtype=np.uint8))
        receiver = FakeReceiver([
            json.dumps({"image_id": "a", "image": payload}),
            json.dumps({"event": "done"}),
            json.dumps({"image_id": "b", "image": payload}),
        ])
        source = CandidateSource(receiver)

        candidates = [candidate async for candidate in source]

        assert [c.image_id for c in candidates] == ["a"]
        assert source.finished_by_picker
        assert source.metrics.parse_errors == 0
        assert len(receiver.frames) == 1

    @pytest.mark.asyncio
    async def test_disconnect_is_not_done(self):
        source = CandidateSource(FakeReceiver([]))
        assert [c async for c in source] == []
        assert source.closed
        assert not source.finished_by_picker

    @pytest.mark.asyncio
    async def test_binary_frame_is_skipped(self, encode_b64):
        payload = encode_b64(np.zeros((30, 40, 3), dtype=np.uint8))
        source = CandidateSource(FakeReceiver([
            b"\x00\x01",
            json.dumps({"image_id": "a", "image": payload}),
        ]))

        candidates = [candidate async for candidate in source]

        assert [c.image_id for c in candidates] == ["a"]
        assert source.metrics.parse_errors == 1
        assert source.metrics.messages_received == 2
