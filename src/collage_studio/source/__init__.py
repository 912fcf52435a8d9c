"""
Source Module
=============

Candidate ingestion from a picker connection.

    - CandidateSource: Async iterator of candidates over a WebSocket
    - decode_candidate: Message to CandidateImage
    - decode_image_b64 / encode_image_png: Image codec helpers
"""

from collage_studio.source.candidates import (
    CandidateSource,
    CandidateSourceMetrics,
    decode_candidate,
)
from collage_studio.source.image_decoder import (
    decode_image_b64,
    decode_image_bytes,
    encode_image_png,
)


__all__ = [
    "CandidateSource",
    "CandidateSourceMetrics",
    "decode_candidate",
    "decode_image_b64",
    "decode_image_bytes",
    "encode_image_png",
]
