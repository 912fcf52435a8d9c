"""
Fingerprints
============

Cheap content summaries used for uniqueness testing, and the cache that
remembers which ones have been admitted.

Strategies:
    - png_length: Byte length of the lossless PNG encoding. Collision-prone
      size proxy, kept as the default for behaviour parity.
    - sha256: Hex digest over shape and raw pixel bytes.

Cache Rules:
    - Empty at session start
    - Grows by one entry per admitted image
    - Cleared together with the working set, never entry by entry
"""

import hashlib
import logging
from typing import Callable, Dict, Hashable, Set

import cv2
import numpy as np

from collage_studio.exceptions import ImageDecodeError
from collage_studio.models.candidate import CandidateImage


logger = logging.getLogger(__name__)


Fingerprint = Hashable
Fingerprinter = Callable[[CandidateImage], Fingerprint]


def png_length_fingerprint(image: CandidateImage) -> int:
    """
    Byte length of the PNG encoding of the candidate.

    Args:
        image: Candidate with decoded pixels

    Returns:
        Encoded length in bytes

    Raises:
        ImageDecodeError: If the candidate has no pixels or encoding fails
    """
    if image.pixels is None:
        raise ImageDecodeError(f"Candidate {image.image_id} has no pixels to fingerprint")

    ok, encoded = cv2.imencode(".png", image.pixels)
    if not ok:
        raise ImageDecodeError(f"PNG encoding failed for candidate {image.image_id}")

    return int(encoded.size)


def sha256_fingerprint(image: CandidateImage) -> str:
    """
    SHA-256 digest of the candidate's shape and pixel bytes.

    Raises:
        ImageDecodeError: If the candidate has no pixels
    """
    if image.pixels is None:
        raise ImageDecodeError(f"Candidate {image.image_id} has no pixels to fingerprint")

    digest = hashlib.sha256()
    digest.update(repr(image.pixels.shape).encode())
    digest.update(np.ascontiguousarray(image.pixels).tobytes())
    return digest.hexdigest()


_FINGERPRINTERS: Dict[str, Fingerprinter] = {
    "png_length": png_length_fingerprint,
    "sha256": sha256_fingerprint,
}


def get_fingerprinter(strategy: str) -> Fingerprinter:
    """
    Look up a fingerprint function by name.

    Args:
        strategy: 'png_length' or 'sha256'

    Raises:
        ValueError: If the strategy is unknown
    """
    try:
        return _FINGERPRINTERS[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown fingerprint strategy: {strategy} "
            f"(expected one of {sorted(_FINGERPRINTERS)})"
        ) from None


class FingerprintCache:
    """
    Set of fingerprints of admitted images.

    Pure and synchronous. No eviction: the working set capacity bounds the
    number of entries between clears.

    Example:
        cache = FingerprintCache()
        if not cache.contains(fp):
            cache.insert(fp)
    """

    def __init__(self) -> None:
        self._entries: Set[Fingerprint] = set()

    def contains(self, fingerprint: Fingerprint) -> bool:
        return fingerprint in self._entries

    def insert(self, fingerprint: Fingerprint) -> None:
        self._entries.add(fingerprint)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def __len__(self) -> int:
        return len(self._entries)
