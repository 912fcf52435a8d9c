"""
Admission Module
================

Decides which candidate images enter the collage working set.

Components:
    - FingerprintCache: Fingerprints of admitted images
    - WorkingSet: Ordered, capacity-bounded image collection
    - AdmissionPipeline: Capacity, orientation, uniqueness, commit

Example:
    from collage_studio.admission import (
        AdmissionPipeline,
        FingerprintCache,
        WorkingSet,
    )

    working_set = WorkingSet(capacity=6)
    pipeline = AdmissionPipeline(working_set, FingerprintCache())
    pipeline.submit(candidate)
"""

from collage_studio.admission.fingerprint import (
    FingerprintCache,
    get_fingerprinter,
    png_length_fingerprint,
    sha256_fingerprint,
)
from collage_studio.admission.policies import has_capacity, is_landscape
from collage_studio.admission.working_set import WorkingSet
from collage_studio.admission.pipeline import AdmissionMetrics, AdmissionPipeline


__all__ = [
    "FingerprintCache",
    "get_fingerprinter",
    "png_length_fingerprint",
    "sha256_fingerprint",
    "has_capacity",
    "is_landscape",
    "WorkingSet",
    "AdmissionMetrics",
    "AdmissionPipeline",
]
