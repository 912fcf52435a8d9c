"""
Admission Policies
==================

Pure predicates for the capacity and orientation stages.

Each policy is a single deterministic boolean test with no side effects,
so it can be unit-tested and swapped without touching the pipeline.
"""

from typing import Callable

from collage_studio.models.candidate import CandidateImage


OrientationPolicy = Callable[[CandidateImage], bool]


def has_capacity(current_size: int, capacity: int) -> bool:
    """True while the working set can take another image."""
    return current_size < capacity


def is_landscape(image: CandidateImage) -> bool:
    """
    Strict landscape test.

    Square and portrait images fail. Unknown geometry fails closed.
    """
    size = image.size
    if size is None:
        return False
    width, height = size
    return width > height
