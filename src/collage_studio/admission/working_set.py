"""
Working Set
===========

Ordered, capacity-bounded collection of admitted images.

This is the single source of truth for which images are part of the
collage. It is mutated only by the admission pipeline (append) and by an
explicit reset (clear).

Design Rules:
    - Insertion order preserved; never reordered or spliced
    - Exactly one change notification per append or clear
    - Notifications carry a read-only snapshot safe to retain
"""

import logging
from typing import Callable, List, Tuple

from collage_studio.exceptions import CapacityExceededError
from collage_studio.models.candidate import CandidateImage


logger = logging.getLogger(__name__)


Snapshot = Tuple[CandidateImage, ...]
ChangeListener = Callable[[Snapshot], None]

DEFAULT_CAPACITY = 6


class WorkingSet:
    """
    Capacity-bounded, insertion-ordered image collection.

    Attributes:
        capacity: Maximum number of images
        is_full: Whether no further image fits

    Example:
        working_set = WorkingSet(capacity=6)
        remove = working_set.add_listener(channel.publish)

        working_set.append(image)   # listener receives (image,)
        working_set.clear()         # listener receives ()
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        """
        Initialize an empty working set.

        Args:
            capacity: Maximum images. Must be >= 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._capacity = capacity
        self._images: List[CandidateImage] = []
        self._listeners: List[ChangeListener] = []

    @property
    def capacity(self) -> int:
        """Maximum number of images."""
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._images) >= self._capacity

    def __len__(self) -> int:
        return len(self._images)

    def snapshot(self) -> Snapshot:
        """Read-only copy of the current sequence."""
        return tuple(self._images)

    def append(self, image: CandidateImage) -> None:
        """
        Append an admitted image.

        Raises:
            CapacityExceededError: If the set is already full. The admission
                pipeline's capacity stage makes this unreachable.
        """
        if self.is_full:
            raise CapacityExceededError(
                f"Working set is full ({self._capacity}), cannot append {image!r}"
            )
        self._images.append(image)
        self._notify()

    def clear(self) -> None:
        """Reset to empty."""
        self._images.clear()
        self._notify()

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener again.
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Working set listener failed")
