"""
Collage Session
===============

Wires the admission core to the broadcast channel and the consumers, and
exposes the user actions (add candidates, clear, save).

Flow:
    candidates -> AdmissionPipeline -> WorkingSet change
               -> CollageState(revision, images) -> BroadcastChannel
               -> PreviewConsumer, UIStateConsumer, extra subscribers

Ownership:
    The session owns the working set, cache, pipeline and channel.
    Consumers hold Subscription handles only.
"""

import logging
from typing import AsyncIterable, Callable, Optional, Tuple

from collage_studio.admission import (
    AdmissionPipeline,
    FingerprintCache,
    WorkingSet,
    get_fingerprinter,
    png_length_fingerprint,
)
from collage_studio.admission.fingerprint import Fingerprinter
from collage_studio.admission.working_set import Snapshot
from collage_studio.broadcast import BroadcastChannel, Scheduler, Subscription
from collage_studio.consumers import (
    DirectoryPhotoWriter,
    GridCollageRenderer,
    PhotoWriter,
    PreviewConsumer,
    PreviewRenderer,
    UIStateConsumer,
)
from collage_studio.exceptions import PhotoWriteError
from collage_studio.models.candidate import CandidateImage
from collage_studio.models.decision import AdmissionDecision
from collage_studio.models.output import SaveResult
from collage_studio.models.state import CollageState


logger = logging.getLogger(__name__)


class CollageSession:
    """
    One collage being assembled.

    Attributes:
        working_set: Admitted images
        cache: Fingerprints of admitted images
        pipeline: Admission gate
        channel: Throttled broadcast of CollageState
        preview: Preview consumer
        ui: UI-state consumer

    Example:
        session = CollageSession(writer=DirectoryPhotoWriter("./saved"))
        session.start()

        await session.run_candidates(source)
        result = await session.save()
    """

    def __init__(
        self,
        capacity: int = 6,
        throttle_window: float = 0.5,
        fingerprinter: Fingerprinter = png_length_fingerprint,
        renderer: Optional[PreviewRenderer] = None,
        writer: Optional[PhotoWriter] = None,
        preview_size: Tuple[int, int] = (600, 400),
        thumbnail_size: int = 22,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        """
        Initialize collage session.

        Args:
            capacity: Working set capacity
            throttle_window: Broadcast throttle window in seconds
            fingerprinter: Content fingerprint function
            renderer: Preview renderer (GridCollageRenderer if None)
            writer: Persistence sink for save()
            preview_size: Preview (width, height)
            thumbnail_size: Navigation thumbnail edge length
            scheduler: Channel scheduler (running asyncio loop if None)
        """
        self.working_set = WorkingSet(capacity=capacity)
        self.cache = FingerprintCache()
        self.pipeline = AdmissionPipeline(
            self.working_set,
            self.cache,
            fingerprinter=fingerprinter,
        )
        self.channel: BroadcastChannel[CollageState] = BroadcastChannel(
            window=throttle_window,
            scheduler=scheduler,
        )
        self.preview = PreviewConsumer(
            renderer or GridCollageRenderer(),
            size=preview_size,
            thumbnail_size=thumbnail_size,
        )
        self.ui = UIStateConsumer(capacity=capacity)
        self.writer = writer

        self._revision: int = 0
        self._started: bool = False
        self._remove_listener: Optional[Callable[[], None]] = None
        self._consumer_subscriptions: Tuple[Subscription, ...] = ()

        logger.info(
            f"CollageSession initialized: capacity={capacity}, "
            f"throttle={throttle_window}s"
        )

    @classmethod
    def from_settings(cls, settings, scheduler: Optional[Scheduler] = None) -> "CollageSession":
        """Build a session from loaded Settings."""
        return cls(
            capacity=settings.collage.capacity,
            throttle_window=settings.collage.throttle_window_seconds,
            fingerprinter=get_fingerprinter(settings.fingerprint.strategy),
            writer=DirectoryPhotoWriter(settings.persistence.output_dir),
            preview_size=(settings.preview.width, settings.preview.height),
            thumbnail_size=settings.preview.thumbnail_size,
            scheduler=scheduler,
        )

    @property
    def revision(self) -> int:
        """Revision of the most recent working-set mutation."""
        return self._revision

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """
        Attach consumers and announce the initial empty state.

        Must run on the event loop when the default scheduler is used.
        """
        if self._started:
            return

        self._consumer_subscriptions = (
            self.channel.subscribe(self.preview.on_state),
            self.channel.subscribe(self.ui.on_state),
        )
        self._remove_listener = self.working_set.add_listener(self._on_change)
        self._started = True

        self.channel.publish(CollageState(revision=self._revision, images=self.working_set.snapshot()))
        logger.info("CollageSession started")

    def subscribe(self, callback: Callable[[CollageState], None]) -> Subscription:
        """Attach an extra consumer; it receives the latest state at once."""
        return self.channel.subscribe(callback)

    def submit(self, candidate: CandidateImage) -> AdmissionDecision:
        return self.pipeline.submit(candidate)

    async def run_candidates(
        self, source: AsyncIterable[CandidateImage]
    ) -> Optional[AdmissionDecision]:
        """
        Run one picker session against the working set.

        Returns:
            REJECTED_CAPACITY if the session was torn down because the set
            is full, None if the picker finished normally.
        """
        return await self.pipeline.run(source)

    def clear(self) -> None:
        """Reset working set and cache; a new picker session may follow."""
        self.pipeline.clear()

    async def save(self) -> SaveResult:
        """
        Store the current preview through the photo writer.

        On success the working set is cleared, unless it changed after the
        saved preview was rendered (a held throttle value or an admission
        during the write); the newer set is then kept. On failure it is
        left untouched so the user can retry without re-selecting images.
        """
        if self.writer is None:
            return SaveResult.failed("No photo writer configured")

        image = self.preview.latest_preview
        if image is None or len(self.working_set) == 0:
            return SaveResult.failed("Nothing to save")
        saved_revision = self.preview.latest_revision

        try:
            asset_id = await self.writer.save(image)
        except PhotoWriteError as e:
            logger.error(f"Save failed: {e}")
            return SaveResult.failed(str(e))

        logger.info(f"Collage saved with id: {asset_id}")
        if self._revision == saved_revision:
            self.clear()
        else:
            logger.warning(
                f"Working set moved from revision {saved_revision} to "
                f"{self._revision} during save, keeping it"
            )
        return SaveResult.saved(asset_id)

    def close(self) -> None:
        """Detach from the working set and shut the channel down."""
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self.channel.close()
        self._started = False
        logger.info("CollageSession closed")

    def metrics(self) -> dict:
        """Combined metrics for observability."""
        return {
            "revision": self._revision,
            "photo_count": len(self.working_set),
            "fingerprints": len(self.cache),
            "session_open": self.pipeline.session_open,
            "admission": self.pipeline.metrics.to_dict(),
            "broadcast": self.channel.metrics(),
            "previews_rendered": self.preview.render_count,
        }

    def _on_change(self, snapshot: Snapshot) -> None:
        self._revision += 1
        self.channel.publish(CollageState(revision=self._revision, images=snapshot))
