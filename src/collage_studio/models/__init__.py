"""
Data Models
===========

Data models for Collage Studio.

This module re-exports all data models for convenient access.

Models:
    Candidate:
        - CandidateImage: Image offered for admission
        - CandidateMessage: Wire schema for picker messages

    Admission:
        - AdmissionDecision: Outcome of evaluating a candidate

    State:
        - CollageState: Working-set revision carried by the broadcast

    Output:
        - UIState: Derived interaction affordances
        - CollageSnapshot: Throttled working-set announcement
        - SaveResult: Outcome of the save action
"""

from collage_studio.models.candidate import CandidateImage
from collage_studio.models.decision import AdmissionDecision
from collage_studio.models.input import CandidateMessage
from collage_studio.models.output import CollageSnapshot, SaveResult
from collage_studio.models.state import CollageState
from collage_studio.models.ui_state import UIState, derive_ui_state

__all__ = [
    # Candidate
    "CandidateImage",
    "CandidateMessage",
    # Admission
    "AdmissionDecision",
    # State
    "CollageState",
    # Output
    "UIState",
    "derive_ui_state",
    "CollageSnapshot",
    "SaveResult",
]
