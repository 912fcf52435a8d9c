"""
UI State Consumer
=================

Projects each delivered collage state onto UI affordances.
"""

import logging
from typing import Optional

from collage_studio.models.state import CollageState
from collage_studio.models.ui_state import UIState, derive_ui_state


logger = logging.getLogger(__name__)


class UIStateConsumer:
    """
    Recomputes the UI state on every delivery.

    Holds only the last projection; nothing here feeds back into admission.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self.state: UIState = derive_ui_state(0, capacity)
        self.latest_revision: Optional[int] = None

    def on_state(self, state: CollageState) -> None:
        self.state = derive_ui_state(state.count, self.capacity)
        self.latest_revision = state.revision
        logger.debug(f"UI state: {self.state.title} (save={self.state.save_enabled})")
