"""Sampling reasons: why an inspection lot is pulled for sampling."""

from qcadmin.entities.sampling_reasons.router import (
    SamplingReasonController,
    build_sampling_reason_router,
)
from qcadmin.entities.sampling_reasons.service import (
    SamplingReasonService,
    validate_sampling_reason,
)

__all__ = [
    "SamplingReasonController",
    "SamplingReasonService",
    "build_sampling_reason_router",
    "validate_sampling_reason",
]
