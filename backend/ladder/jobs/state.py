"""
State transition validation for jobs.

Job lifecycle: UPLOADED → PROCESSING → COMPLETED | FAILED
No pause, retry or cancellation.

INVARIANT: Terminal job states (COMPLETED, FAILED) are immutable.
Polling must never observe a terminal job regress to PROCESSING.
"""

from typing import FrozenSet, Set, Tuple
from .models import JobStatus
from .errors import ConflictError


TERMINAL_JOB_STATES: FrozenSet[JobStatus] = frozenset({
    JobStatus.COMPLETED,
    JobStatus.FAILED,
})


def is_job_terminal(status: JobStatus) -> bool:
    """
    Check if a job status is terminal (immutable).

    Args:
        status: The job status to check

    Returns:
        True if the status is terminal, False otherwise
    """
    return status in TERMINAL_JOB_STATES


_JOB_TRANSITIONS: Set[Tuple[JobStatus, JobStatus]] = {
    # Starting a job
    (JobStatus.UPLOADED, JobStatus.PROCESSING),

    # Terminal states
    (JobStatus.PROCESSING, JobStatus.COMPLETED),
    (JobStatus.PROCESSING, JobStatus.FAILED),
}


def can_transition_job(from_status: JobStatus, to_status: JobStatus) -> bool:
    """
    Check if a job state transition is legal.

    Unlike a plain update, a transition to the same state is NOT allowed:
    starting a job that is already PROCESSING is a conflict.

    Args:
        from_status: Current job status
        to_status: Target job status

    Returns:
        True if the transition is allowed, False otherwise
    """
    if is_job_terminal(from_status):
        return False

    return (from_status, to_status) in _JOB_TRANSITIONS


def validate_job_transition(job_id: str, from_status: JobStatus, to_status: JobStatus) -> None:
    """
    Validate a job state transition, raising an exception if illegal.

    Raises:
        ConflictError: If the transition is not allowed
    """
    if not can_transition_job(from_status, to_status):
        raise ConflictError(job_id, from_status.value, to_status.value)
