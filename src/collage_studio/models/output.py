"""
Output Models
=============

This module defines what the collage core hands back across its boundary.

Outputs:
    1. CollageSnapshot: Throttled working-set announcement for /ws/collage
    2. SaveResult: Outcome of the one-shot save action

Snapshot Contract:
    {
        "revision": 7,
        "timestamp": 1770500938.284,
        "image_ids": ["IMG_0001", "IMG_0004"],
        "ui": {
            "photo_count": 2,
            "capacity": 6,
            "save_enabled": true,
            "clear_enabled": true,
            "add_enabled": true,
            "title": "2 photos"
        }
    }

Design Rules:
    - Snapshots carry identifiers only, never pixels
    - SaveResult is the ONLY outcome that crosses the core boundary as an
      explicit success/failure for the caller to display
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from collage_studio.models.ui_state import UIState


class CollageSnapshot(BaseModel):
    """
    Announcement of the current working set.

    Attributes:
        revision: Working-set mutation counter
        timestamp: UNIX timestamp when the snapshot was delivered
        image_ids: Admitted image identifiers in insertion order
        ui: Derived UI state
    """

    revision: int = Field(..., ge=0, description="Working-set mutation counter")
    timestamp: float = Field(..., description="UNIX timestamp of delivery")
    image_ids: List[str] = Field(
        default_factory=list,
        description="Admitted image identifiers in insertion order",
    )
    ui: UIState = Field(..., description="Derived UI state")


class SaveResult(BaseModel):
    """
    Outcome of saving the composed collage.

    Attributes:
        success: Whether the photo writer stored the image
        asset_id: Identifier returned by the writer on success
        message: Short user-visible title
        description: Failure detail, None on success
    """

    success: bool = Field(..., description="Whether the save succeeded")
    asset_id: Optional[str] = Field(default=None, description="Stored asset id")
    message: str = Field(..., description="User-visible title")
    description: Optional[str] = Field(default=None, description="Failure detail")

    @classmethod
    def saved(cls, asset_id: str) -> "SaveResult":
        return cls(success=True, asset_id=asset_id, message=f"Saved with id: {asset_id}")

    @classmethod
    def failed(cls, description: str) -> "SaveResult":
        return cls(success=False, message="Error", description=description)
