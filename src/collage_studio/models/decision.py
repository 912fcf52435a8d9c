"""
Admission Decisions
===================

Fixed set of outcomes for evaluating one candidate image.

Each candidate receives exactly ONE decision. Decisions are transient:
they are never persisted and only determine whether the working set and
fingerprint cache mutate.
"""

from enum import Enum


class AdmissionDecision(str, Enum):
    """
    Outcome of running a candidate through the admission stages.

    Attributes:
        ACCEPTED: Passed every stage and was committed
        REJECTED_CAPACITY: Working set already full
        REJECTED_ORIENTATION: Not strictly landscape, or geometry unknown
        REJECTED_DUPLICATE: Fingerprint already in the cache
    """

    ACCEPTED = "ACCEPTED"
    REJECTED_CAPACITY = "REJECTED_CAPACITY"
    REJECTED_ORIENTATION = "REJECTED_ORIENTATION"
    REJECTED_DUPLICATE = "REJECTED_DUPLICATE"

    @property
    def accepted(self) -> bool:
        return self is AdmissionDecision.ACCEPTED
