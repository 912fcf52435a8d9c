"""
UI State Projection
===================

Pure projection from the admitted-image count to UI affordances.

The core holds no mutable UI flags. Every broadcast emission is turned
into a fresh UIState by the UI-state consumer.

Rules:
    save_enabled:  count > 0 and count is even
    clear_enabled: count > 0
    add_enabled:   count < capacity
    title:         "<count> photos" when count > 0, else "Collage"
"""

from pydantic import BaseModel, Field


DEFAULT_TITLE = "Collage"


class UIState(BaseModel):
    """
    Interaction affordances derived from the working set size.

    Attributes:
        photo_count: Number of admitted images
        capacity: Working set capacity
        save_enabled: Whether the save action is available
        clear_enabled: Whether the clear action is available
        add_enabled: Whether more photos may be added
        title: Display label
    """

    photo_count: int = Field(..., ge=0, description="Number of admitted images")
    capacity: int = Field(..., ge=1, description="Working set capacity")
    save_enabled: bool = Field(..., description="Save action available")
    clear_enabled: bool = Field(..., description="Clear action available")
    add_enabled: bool = Field(..., description="Add action available")
    title: str = Field(..., description="Display label")


def derive_ui_state(photo_count: int, capacity: int) -> UIState:
    """
    Derive the UI state for a given count.

    Args:
        photo_count: Number of admitted images
        capacity: Working set capacity

    Returns:
        UIState for display
    """
    return UIState(
        photo_count=photo_count,
        capacity=capacity,
        save_enabled=photo_count > 0 and photo_count % 2 == 0,
        clear_enabled=photo_count > 0,
        add_enabled=photo_count < capacity,
        title=f"{photo_count} photos" if photo_count > 0 else DEFAULT_TITLE,
    )
