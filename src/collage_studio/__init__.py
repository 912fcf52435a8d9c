"""
Collage Studio
==============

Admission and distribution core for a six-photo landscape collage.

This package decides which picked images become part of the collage working
set and announces that set to downstream consumers in a throttled,
replayed fashion.

Components:
    - admission: Capacity, orientation and uniqueness gates plus the working set
    - broadcast: Throttled, replay-1, fan-out channel
    - consumers: Preview renderer and UI-state projection
    - source: Candidate decoding from picker messages
    - session: Wiring of the above plus clear/save actions

Example:
    from collage_studio.session import CollageSession

    session = CollageSession()
    session.start()
    await session.run_candidates(candidates)
"""

__version__ = "0.1.0"
__author__ = "Collage Studio Project"

__all__ = [
    "__version__",
]
