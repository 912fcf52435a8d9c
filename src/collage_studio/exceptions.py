"""
Exceptions
==========

Error types raised across the collage core.

Admission rejections are NOT errors and never appear here; they are
reported as AdmissionDecision values.
"""


class CollageError(Exception):
    """Base class for collage core errors."""
    pass


class CapacityExceededError(CollageError):
    """Raised when appending to a working set that is already full."""
    pass


class ImageDecodeError(CollageError):
    """Raised when image decoding fails."""
    pass


class PhotoWriteError(CollageError):
    """Raised by a photo writer when the composed image cannot be stored."""
    pass
