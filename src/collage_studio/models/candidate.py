"""
Candidate Image
===============

Internal representation of an image offered for admission.

This is the ONLY image format passed between the candidate source, the
admission pipeline and the consumers.

Design Rules:
    - Immutable once observed (frozen dataclass, read-only pixel view)
    - Geometry is derived from the pixels, never supplied separately
    - Missing or malformed pixels yield no geometry (size is None)
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class CandidateImage:
    """
    Image offered by the picker.

    Equality is identity-based: two candidates with identical pixels are
    still distinct objects. Content identity is decided by fingerprints.

    Attributes:
        image_id: Identifier assigned by the picker
        pixels: Decoded BGR image (H, W, 3), uint8, or None if undecodable
    """

    image_id: str
    pixels: Optional[np.ndarray] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.pixels is not None:
            view = self.pixels.view()
            view.setflags(write=False)
            object.__setattr__(self, "pixels", view)

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        """(width, height) in pixels, or None if geometry is unknown."""
        if self.pixels is None or self.pixels.ndim < 2:
            return None
        height, width = self.pixels.shape[:2]
        if width <= 0 or height <= 0:
            return None
        return int(width), int(height)

    @property
    def width(self) -> Optional[int]:
        size = self.size
        return size[0] if size else None

    @property
    def height(self) -> Optional[int]:
        size = self.size
        return size[1] if size else None

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        size = self.size
        geometry = f"{size[0]}x{size[1]}" if size else "unknown"
        return f"CandidateImage(image_id={self.image_id!r}, size={geometry})"
