"""
Collage State
=============

Value carried through the broadcast channel.

Each working-set mutation produces a new CollageState with a strictly
increasing revision. Consumers see revisions in order; gaps mean the
throttle dropped superseded states.
"""

from dataclasses import dataclass
from typing import List, Tuple

from collage_studio.models.candidate import CandidateImage


@dataclass(frozen=True)
class CollageState:
    """
    Working-set state at one revision.

    Attributes:
        revision: Mutation counter (0 = initial empty state)
        images: Admitted images in insertion order
    """

    revision: int
    images: Tuple[CandidateImage, ...] = ()

    @property
    def count(self) -> int:
        return len(self.images)

    @property
    def image_ids(self) -> List[str]:
        return [image.image_id for image in self.images]
