"""
Job tracking: records, lifecycle rules and the shared registry.

This package stores job state and enforces transitions.
It does NOT launch engines (see ladder.execution).
"""

from .errors import (
    JobError,
    JobNotFoundError,
    ConflictError,
    InvalidStateTransitionError,
    JobNotCompletedError,
    RenditionNotFoundError,
    UploadRejectedError,
)
from .models import (
    JobStatus,
    Rendition,
    Job,
)
from .state import (
    TERMINAL_JOB_STATES,
    can_transition_job,
    is_job_terminal,
)
from .registry import JobRegistry

__all__ = [
    # Errors
    "JobError",
    "JobNotFoundError",
    "ConflictError",
    "InvalidStateTransitionError",
    "JobNotCompletedError",
    "RenditionNotFoundError",
    "UploadRejectedError",
    # Models
    "JobStatus",
    "Rendition",
    "Job",
    # State validation
    "TERMINAL_JOB_STATES",
    "can_transition_job",
    "is_job_terminal",
    # Registry
    "JobRegistry",
]
