"""
Job-specific error types.

All errors inherit from JobError for easy catching.
These are request-time errors: they are raised to the caller of a
registry or service operation, never absorbed into a job record.
"""

from typing import Optional


class JobError(Exception):
    """Base exception for all job-related failures."""
    pass


class JobNotFoundError(JobError):
    """Raised when a job cannot be found in the registry."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class ConflictError(JobError):
    """Raised when an operation is illegal for the job's current state."""

    def __init__(
        self,
        job_id: str,
        current_state: str,
        target_state: str,
        message: Optional[str] = None,
    ):
        self.job_id = job_id
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            message
            or f"Invalid job state transition for {job_id}: "
            f"{current_state} -> {target_state}"
        )


# Older name, used by state validation helpers
InvalidStateTransitionError = ConflictError


class JobNotCompletedError(ConflictError):
    """Raised when results are requested for a job that has not completed."""

    def __init__(self, job_id: str, current_state: str):
        super().__init__(
            job_id,
            current_state,
            "download",
            message=f"Job not completed yet: {job_id} is {current_state}",
        )


class RenditionNotFoundError(JobError):
    """Raised when a requested quality is not among a job's renditions."""

    def __init__(self, job_id: str, quality: str):
        self.job_id = job_id
        self.quality = quality
        super().__init__(f"Quality {quality} not found for job {job_id}")


class UploadRejectedError(JobError):
    """Raised when a submitted payload cannot become a job."""

    def __init__(self, reason: str, filename: Optional[str] = None):
        self.reason = reason
        self.filename = filename
        super().__init__(reason)
