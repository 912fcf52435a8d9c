"""
Admission Pipeline
==================

Classifies each candidate image and conditionally commits it to the
working set.

Stage order (short-circuiting):
    1. Capacity:    reject if the working set is full
    2. Orientation: reject unless strictly landscape (unknown geometry fails)
    3. Uniqueness:  reject if the fingerprint is already cached
    4. Commit:      append to the working set, then insert the fingerprint

Session Rules:
    - The first capacity rejection closes the session
    - A closed session evaluates nothing; run() stops pulling candidates and
      closes the source
    - clear() resets working set and cache together and reopens the session

Rejections are normal outcomes. They are logged at DEBUG and never raised.
"""

import logging
from typing import AsyncIterable, Optional, Tuple

from collage_studio.admission.fingerprint import (
    Fingerprint,
    FingerprintCache,
    Fingerprinter,
    png_length_fingerprint,
)
from collage_studio.admission.policies import (
    OrientationPolicy,
    has_capacity,
    is_landscape,
)
from collage_studio.admission.working_set import WorkingSet
from collage_studio.models.candidate import CandidateImage
from collage_studio.models.decision import AdmissionDecision


logger = logging.getLogger(__name__)


class AdmissionMetrics:
    """Metrics for AdmissionPipeline observability."""

    __slots__ = (
        "evaluated",
        "accepted",
        "rejected_capacity",
        "rejected_orientation",
        "rejected_duplicate",
        "ignored",
        "sessions",
    )

    def __init__(self) -> None:
        self.evaluated: int = 0
        self.accepted: int = 0
        self.rejected_capacity: int = 0
        self.rejected_orientation: int = 0
        self.rejected_duplicate: int = 0
        self.ignored: int = 0
        self.sessions: int = 0

    def record(self, decision: AdmissionDecision) -> None:
        self.evaluated += 1
        if decision is AdmissionDecision.ACCEPTED:
            self.accepted += 1
        elif decision is AdmissionDecision.REJECTED_CAPACITY:
            self.rejected_capacity += 1
        elif decision is AdmissionDecision.REJECTED_ORIENTATION:
            self.rejected_orientation += 1
        else:
            self.rejected_duplicate += 1

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "evaluated": self.evaluated,
            "accepted": self.accepted,
            "rejected_capacity": self.rejected_capacity,
            "rejected_orientation": self.rejected_orientation,
            "rejected_duplicate": self.rejected_duplicate,
            "ignored": self.ignored,
            "sessions": self.sessions,
        }


class AdmissionPipeline:
    """
    Four-stage admission gate over a working set and fingerprint cache.

    The pipeline co-owns the working set and the cache. Nothing else may
    mutate them, which is what keeps an accepted decision transactional.

    Attributes:
        working_set: Collection of admitted images
        cache: Fingerprints of admitted images
        session_open: Whether candidates are still being evaluated
        metrics: Operational counters

    Example:
        pipeline = AdmissionPipeline(WorkingSet(capacity=6), FingerprintCache())

        decision = pipeline.submit(candidate)

        # Or drive a whole picker session
        await pipeline.run(candidates)
    """

    def __init__(
        self,
        working_set: WorkingSet,
        cache: FingerprintCache,
        fingerprinter: Fingerprinter = png_length_fingerprint,
        orientation_policy: OrientationPolicy = is_landscape,
    ) -> None:
        """
        Initialize admission pipeline.

        Args:
            working_set: Working set to commit into
            cache: Fingerprint cache paired with the working set
            fingerprinter: Content fingerprint function
            orientation_policy: Deterministic geometry predicate
        """
        self.working_set = working_set
        self.cache = cache
        self.fingerprinter = fingerprinter
        self.orientation_policy = orientation_policy

        self._session_open: bool = True
        self.metrics = AdmissionMetrics()

    @property
    def session_open(self) -> bool:
        return self._session_open

    def evaluate(
        self, candidate: CandidateImage
    ) -> Tuple[AdmissionDecision, Optional[Fingerprint]]:
        """
        Classify a candidate without mutating anything.

        Args:
            candidate: Image to classify

        Returns:
            Tuple of (decision, fingerprint). The fingerprint is None when
            the uniqueness stage was not reached.
        """
        if not has_capacity(len(self.working_set), self.working_set.capacity):
            return AdmissionDecision.REJECTED_CAPACITY, None

        if not self.orientation_policy(candidate):
            return AdmissionDecision.REJECTED_ORIENTATION, None

        fingerprint = self.fingerprinter(candidate)
        if self.cache.contains(fingerprint):
            return AdmissionDecision.REJECTED_DUPLICATE, fingerprint

        return AdmissionDecision.ACCEPTED, fingerprint

    def submit(self, candidate: CandidateImage) -> AdmissionDecision:
        """
        Classify a candidate and commit it if accepted.

        Once the session has closed, the candidate is not evaluated at all
        and REJECTED_CAPACITY is returned.

        Args:
            candidate: Image offered by the picker

        Returns:
            The admission decision
        """
        if not self._session_open:
            self.metrics.ignored += 1
            logger.debug(f"Session closed, ignoring {candidate!r}")
            return AdmissionDecision.REJECTED_CAPACITY

        decision, fingerprint = self.evaluate(candidate)
        self.metrics.record(decision)

        if decision is AdmissionDecision.ACCEPTED:
            self.working_set.append(candidate)
            self.cache.insert(fingerprint)
            logger.debug(
                f"Admitted {candidate!r} "
                f"({len(self.working_set)}/{self.working_set.capacity})"
            )
        elif decision is AdmissionDecision.REJECTED_CAPACITY:
            self._session_open = False
            logger.info(
                f"Working set full ({self.working_set.capacity}), "
                f"closing candidate session"
            )
        else:
            logger.debug(f"Rejected {candidate!r}: {decision.value}")

        return decision

    async def run(
        self, source: AsyncIterable[CandidateImage]
    ) -> Optional[AdmissionDecision]:
        """
        Drive one picker session.

        Submits candidates in arrival order until the source completes or the
        session closes. On closure the source is closed so no later candidate
        is pulled or evaluated.

        Args:
            source: Async stream of candidates

        Returns:
            REJECTED_CAPACITY if the session closed, None if the source
            completed normally.
        """
        self.metrics.sessions += 1

        iterator = source.__aiter__()
        try:
            if not self._session_open:
                logger.info("Candidate session refused: working set still full")
                return AdmissionDecision.REJECTED_CAPACITY

            async for candidate in iterator:
                decision = self.submit(candidate)
                if not self._session_open:
                    return decision
            logger.info("Candidate source completed")
            return None
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    def reset_session(self) -> None:
        """Reopen the session without touching stored state."""
        self._session_open = True

    def clear(self) -> None:
        """
        Reset working set and cache together and reopen the session.

        Produces exactly one working-set notification.
        """
        self.cache.clear()
        self.working_set.clear()
        self._session_open = True
        logger.info("Working set and fingerprint cache cleared")
