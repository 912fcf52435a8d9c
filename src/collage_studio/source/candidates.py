"""
Candidate Source
================

Turns picker messages received over a WebSocket into CandidateImage events.

This module:
    - Receives JSON candidate messages
    - Validates them against the CandidateMessage schema
    - Decodes the image payload
    - Ends the stream when the picker sends {"event": "done"} or disconnects

Design Rules:
    - Invalid and binary messages are logged and skipped, never raised
    - Undecodable images become geometry-less candidates so the orientation
      stage rejects them (fail closed)
    - Does NOT apply any admission policy
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, Optional, Protocol

from pydantic import ValidationError

from collage_studio.exceptions import ImageDecodeError
from collage_studio.models.candidate import CandidateImage
from collage_studio.models.input import DONE_EVENT, CandidateMessage
from collage_studio.source.image_decoder import decode_image_b64


logger = logging.getLogger(__name__)


class MessageReceiver(Protocol):
    """Anything that yields raw ASGI WebSocket messages (e.g. fastapi.WebSocket)."""

    async def receive(self) -> Dict[str, Any]:
        ...


class CandidateSourceMetrics:
    """Metrics for CandidateSource observability."""

    __slots__ = (
        "messages_received",
        "candidates_emitted",
        "parse_errors",
        "decode_errors",
    )

    def __init__(self) -> None:
        self.messages_received: int = 0
        self.candidates_emitted: int = 0
        self.parse_errors: int = 0
        self.decode_errors: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "messages_received": self.messages_received,
            "candidates_emitted": self.candidates_emitted,
            "parse_errors": self.parse_errors,
            "decode_errors": self.decode_errors,
        }


def decode_candidate(message: CandidateMessage) -> CandidateImage:
    """
    Build a candidate from a validated message.

    An undecodable payload yields a candidate without pixels.
    """
    try:
        pixels = decode_image_b64(message.image, message.image_id)
    except ImageDecodeError as e:
        logger.warning(f"Candidate {message.image_id} has no usable geometry: {e}")
        return CandidateImage(image_id=message.image_id)

    return CandidateImage(image_id=message.image_id, pixels=pixels)


class CandidateSource:
    """
    Async stream of candidates read from one picker connection.

    Iterating yields CandidateImage objects until the picker says it is
    done or disconnects. The admission pipeline may stop iterating early;
    closing the source then only marks it closed, the connection itself
    belongs to the caller.

    Attributes:
        closed: No further candidates will be yielded
        finished_by_picker: The picker ended the stream with a done event
        metrics: Operational counters

    Example:
        source = CandidateSource(websocket)
        await pipeline.run(source)
    """

    def __init__(self, receiver: MessageReceiver) -> None:
        self._receiver = receiver
        self._closed: bool = False
        self._finished_by_picker: bool = False
        self.metrics = CandidateSourceMetrics()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def finished_by_picker(self) -> bool:
        return self._finished_by_picker

    def __aiter__(self) -> AsyncIterator[CandidateImage]:
        return self

    async def __anext__(self) -> CandidateImage:
        while not self._closed:
            message = await self._receiver.receive()
            if message["type"] == "websocket.disconnect":
                logger.info("Picker disconnected, candidate stream complete")
                self._closed = True
                break

            self.metrics.messages_received += 1
            raw = message.get("text")
            if raw is None:
                self.metrics.parse_errors += 1
                logger.warning("Skipping non-text candidate frame")
                continue

            candidate = self._parse(raw)
            if candidate is not None:
                self.metrics.candidates_emitted += 1
                return candidate

        raise StopAsyncIteration

    async def aclose(self) -> None:
        """Stop yielding candidates."""
        self._closed = True

    def _parse(self, raw: str) -> Optional[CandidateImage]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self.metrics.parse_errors += 1
            logger.warning(f"Failed to parse candidate JSON: {e}")
            return None

        if isinstance(data, dict) and data.get("event") == DONE_EVENT:
            logger.info("Picker finished selecting")
            self._finished_by_picker = True
            self._closed = True
            return None

        try:
            message = CandidateMessage.model_validate(data)
        except ValidationError as e:
            self.metrics.parse_errors += 1
            logger.warning(f"Invalid candidate message: {e.error_count()} error(s)")
            return None

        candidate = decode_candidate(message)
        if candidate.pixels is None:
            self.metrics.decode_errors += 1
        return candidate
