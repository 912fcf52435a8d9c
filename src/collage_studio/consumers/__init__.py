"""
Consumers Module
================

Downstream collaborators driven by the broadcast channel, plus the
persistence sink used by the save action.

Components:
    - PreviewConsumer / GridCollageRenderer: Collage preview
    - UIStateConsumer: UI affordance projection
    - PhotoWriter / DirectoryPhotoWriter: Persistence sink

Design Philosophy:
    Consumers are external to the admission core. They only receive
    throttled states; none of them can mutate the working set.
"""

from collage_studio.consumers.preview import (
    GridCollageRenderer,
    PreviewConsumer,
    PreviewRenderer,
)
from collage_studio.consumers.ui_state import UIStateConsumer
from collage_studio.consumers.persistence import DirectoryPhotoWriter, PhotoWriter


__all__ = [
    "GridCollageRenderer",
    "PreviewConsumer",
    "PreviewRenderer",
    "UIStateConsumer",
    "DirectoryPhotoWriter",
    "PhotoWriter",
]
