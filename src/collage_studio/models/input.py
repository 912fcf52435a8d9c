"""
Input Message Schema
====================

This module defines the Pydantic model for candidate messages sent by a
picker over the /ws/candidates WebSocket.

Input Contract (from the picker):
    Candidate:
        {
            "image_id": "IMG_0042",
            "image": "<base64 PNG or JPEG>"
        }

    End of selection:
        {"event": "done"}

Example:
    from collage_studio.models.input import CandidateMessage

    raw = await websocket.receive_text()
    message = CandidateMessage.model_validate_json(raw)

    print(f"Received candidate {message.image_id}")
"""

from pydantic import BaseModel, ConfigDict, Field


DONE_EVENT = "done"


class CandidateMessage(BaseModel):
    """
    Schema for candidate messages received from a picker.

    Any message that does not conform to this schema is skipped by the
    candidate source.

    Attributes:
        image_id: Picker-assigned identifier
        image: Base64-encoded PNG or JPEG data
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "image_id": "IMG_0042",
                "image": "iVBORw0KGgo...",
            }
        }
    )

    image_id: str = Field(
        ...,
        min_length=1,
        description="Picker-assigned identifier",
    )

    image: str = Field(
        ...,
        description="Base64-encoded PNG or JPEG data",
    )
