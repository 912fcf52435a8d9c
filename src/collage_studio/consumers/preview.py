"""
Preview Consumer
================

Renders the latest admitted sequence into a single collage preview.

The compositing itself belongs to a PreviewRenderer. This module only
subscribes to the broadcast channel, hands each delivered state to the
renderer at the configured size, and keeps the result.

GridCollageRenderer is a reference renderer for the service and tests:
a plain grid of resized tiles.
"""

import logging
import math
from typing import Optional, Protocol, Sequence, Tuple

import cv2
import numpy as np

from collage_studio.models.candidate import CandidateImage
from collage_studio.models.state import CollageState


logger = logging.getLogger(__name__)


class PreviewRenderer(Protocol):
    """
    Protocol for collage renderers.

    Given the ordered images and a target (width, height), produce one
    BGR image of exactly that size.
    """

    def render(
        self, images: Sequence[CandidateImage], size: Tuple[int, int]
    ) -> np.ndarray:
        ...


class GridCollageRenderer:
    """
    Tile images into a near-square grid.

    Empty input renders a blank canvas in the background colour.
    """

    def __init__(self, background: Tuple[int, int, int] = (255, 255, 255)) -> None:
        self.background = background

    def render(
        self, images: Sequence[CandidateImage], size: Tuple[int, int]
    ) -> np.ndarray:
        width, height = size
        canvas = np.empty((height, width, 3), dtype=np.uint8)
        canvas[:] = self.background

        tiles = [image for image in images if image.pixels is not None]
        if not tiles:
            return canvas

        cols = math.ceil(math.sqrt(len(tiles)))
        rows = math.ceil(len(tiles) / cols)

        for index, image in enumerate(tiles):
            row, col = divmod(index, cols)
            # Cell bounds always lie inside the canvas; cells may be empty
            x0, x1 = col * width // cols, (col + 1) * width // cols
            y0, y1 = row * height // rows, (row + 1) * height // rows
            if x1 <= x0 or y1 <= y0:
                logger.debug(f"No room for {image!r} in a {width}x{height} preview")
                continue

            pixels = image.pixels
            if pixels.ndim == 2:
                pixels = cv2.cvtColor(pixels, cv2.COLOR_GRAY2BGR)
            canvas[y0:y1, x0:x1] = cv2.resize(
                pixels, (x1 - x0, y1 - y0), interpolation=cv2.INTER_AREA
            )

        return canvas


class PreviewConsumer:
    """
    Keeps the rendered preview of the latest delivered state.

    Attributes:
        size: Target (width, height) of the preview
        latest_preview: Last rendered image, None before first delivery
        latest_revision: Revision of the state behind latest_preview

    Example:
        preview = PreviewConsumer(GridCollageRenderer(), size=(600, 400))
        channel.subscribe(preview.on_state)
    """

    def __init__(
        self,
        renderer: PreviewRenderer,
        size: Tuple[int, int] = (600, 400),
        thumbnail_size: int = 22,
    ) -> None:
        """
        Initialize preview consumer.

        Args:
            renderer: Collage renderer
            size: Preview (width, height) in pixels
            thumbnail_size: Edge length of the navigation icon thumbnail
        """
        if size[0] < 1 or size[1] < 1:
            raise ValueError("preview size must be positive")

        self.renderer = renderer
        self.size = size
        self.thumbnail_size = thumbnail_size

        self.latest_preview: Optional[np.ndarray] = None
        self.latest_revision: int = -1
        self._render_count: int = 0

    def on_state(self, state: CollageState) -> None:
        """Render a delivered state."""
        self.latest_preview = self.renderer.render(state.images, self.size)
        self.latest_revision = state.revision
        self._render_count += 1
        logger.debug(
            f"Preview rendered: revision={state.revision}, images={state.count}"
        )

    def thumbnail(self) -> Optional[np.ndarray]:
        """Small square version of the preview for the navigation icon."""
        if self.latest_preview is None:
            return None
        edge = self.thumbnail_size
        return cv2.resize(self.latest_preview, (edge, edge), interpolation=cv2.INTER_AREA)

    @property
    def render_count(self) -> int:
        return self._render_count
