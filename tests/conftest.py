"""
Test Configuration
==================

Pytest fixtures and test configuration for Collage Studio.
"""

import base64
from typing import Callable, List

import cv2
import numpy as np
import pytest

from collage_studio.models.candidate import CandidateImage


class ManualTimer:
    """Timer handle for ManualScheduler."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler; time moves only through advance()."""

    def __init__(self) -> None:
        self.time = 0.0
        self._timers: List[ManualTimer] = []

    def now(self) -> float:
        return self.time

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.time + delay, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> List[ManualTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.time + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self.time = timer.when
            timer.callback()
        self.time = target


@pytest.fixture
def scheduler():
    """Provide a virtual-time scheduler."""
    return ManualScheduler()


@pytest.fixture
def make_candidate():
    """Factory for candidates with random pixels of a given size."""

    def _make(image_id: str, width: int = 40, height: int = 30, seed: int = 0) -> CandidateImage:
        rng = np.random.default_rng(seed)
        pixels = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
        return CandidateImage(image_id=image_id, pixels=pixels)

    return _make


@pytest.fixture
def encode_b64():
    """Encode a BGR array as base64 PNG."""

    def _encode(pixels: np.ndarray) -> str:
        ok, encoded = cv2.imencode(".png", pixels)
        assert ok
        return base64.b64encode(encoded.tobytes()).decode()

    return _encode


@pytest.fixture
def fixed_fingerprints():
    """Fingerprinter that looks fingerprints up by image_id."""

    def _build(table: dict) -> Callable[[CandidateImage], object]:
        return lambda image: table[image.image_id]

    return _build
