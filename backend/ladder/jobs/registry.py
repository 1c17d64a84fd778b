"""
In-memory job registry.

The registry provides:
- Job creation, retrieval by ID, listing and removal
- Atomic, lifecycle-guarded state transitions
- Snapshot reads (callers never hold a live record)

Every mutation runs under a single lock, so the registry behaves the same
whether it is driven from request threads, supervisor threads or an event
loop. Nothing is persisted: jobs are lost on restart.
"""

import logging
import threading
from typing import Dict, List, Optional, Set
from .models import Job, JobStatus, Rendition, utc_now
from .errors import JobNotFoundError, ConflictError
from .state import validate_job_transition

logger = logging.getLogger(__name__)


class JobRegistry:
    """
    Thread-safe in-memory registry for job tracking.

    Reads return deep copies. Writes go through the transition methods
    below, which enforce the job lifecycle.
    """

    def __init__(self):
        # job_id -> Job, insertion ordered
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.RLock()
        # IDs of deleted jobs; never handed out again
        self._retired: Set[str] = set()

    def create(
        self,
        source_path: str,
        source_name: str,
        source_size: int = 0,
        job_id: Optional[str] = None,
    ) -> Job:
        """
        Create and store a new UPLOADED job.

        Args:
            source_path: Where the uploaded source is stored
            source_name: Original filename as submitted
            source_size: Source size in bytes
            job_id: Optional explicit identifier (generated when omitted)

        Returns:
            Snapshot of the new job
        """
        fields = dict(
            source_path=source_path,
            source_name=source_name,
            source_size=source_size,
        )
        if job_id is not None:
            fields["id"] = job_id
        job = Job(**fields)
        self.add_job(job)
        return job.model_copy(deep=True)

    def add_job(self, job: Job) -> None:
        """
        Add a pre-built job to the registry.

        Raises:
            ValueError: If the ID is in use or belonged to a deleted job
        """
        with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"Job with ID '{job.id}' already exists")
            if job.id in self._retired:
                raise ValueError(f"Job ID '{job.id}' belonged to a deleted job")
            self._jobs[job.id] = job.model_copy(deep=True)
        logger.info(f"[Registry] Created job {job.id} ({job.source_name})")

    def _require(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def get(self, job_id: str) -> Job:
        """
        Retrieve a snapshot of a job.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        with self._lock:
            return self._require(job_id).model_copy(deep=True)

    def find(self, job_id: str) -> Optional[Job]:
        """Retrieve a snapshot of a job, or None if it does not exist."""
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job else None

    def list(self) -> List[Job]:
        """
        List all jobs in insertion order.

        The result is a snapshot taken at call time and is safe to iterate
        while other threads keep mutating the registry.
        """
        with self._lock:
            return [job.model_copy(deep=True) for job in self._jobs.values()]

    def transition_to_processing(self, job_id: str, message: str = "starting") -> Job:
        """
        Atomically move a job from UPLOADED to PROCESSING.

        Of two concurrent callers for the same job exactly one succeeds.

        Raises:
            JobNotFoundError: If the job does not exist
            ConflictError: If the job is not UPLOADED
        """
        with self._lock:
            job = self._require(job_id)
            validate_job_transition(job_id, job.status, JobStatus.PROCESSING)
            job.status = JobStatus.PROCESSING
            job.started_at = utc_now()
            job.progress = 10
            job.message = message
            snapshot = job.model_copy(deep=True)
        logger.info(f"[Registry] Job {job_id} -> processing")
        return snapshot

    def update_progress(self, job_id: str, progress: int, message: Optional[str] = None) -> Job:
        """
        Record progress for a PROCESSING job.

        Progress never decreases: a lower value than the current one is
        ignored, but the message is still applied.

        Raises:
            JobNotFoundError: If the job does not exist
            ConflictError: If the job is not PROCESSING
        """
        with self._lock:
            job = self._require(job_id)
            if job.status != JobStatus.PROCESSING:
                raise ConflictError(job_id, job.status.value, "progress")
            job.progress = max(job.progress, min(int(progress), 100))
            if message is not None:
                job.message = message
            return job.model_copy(deep=True)

    def mark_completed(
        self,
        job_id: str,
        output_folder: Optional[str],
        renditions: List[Rendition],
        exit_code: int = 0,
        message: str = "done",
    ) -> Job:
        """
        Move a PROCESSING job to COMPLETED.

        output_folder and renditions are stored together: without a folder
        no renditions are recorded.

        Raises:
            JobNotFoundError: If the job does not exist
            ConflictError: If the job is not PROCESSING
        """
        with self._lock:
            job = self._require(job_id)
            validate_job_transition(job_id, job.status, JobStatus.COMPLETED)
            job.status = JobStatus.COMPLETED
            job.completed_at = utc_now()
            job.progress = 100
            job.message = message
            job.exit_code = exit_code
            job.output_folder = output_folder
            job.renditions = list(renditions) if output_folder else []
            snapshot = job.model_copy(deep=True)
        logger.info(
            f"[Registry] Job {job_id} -> completed "
            f"({len(snapshot.renditions)} renditions)"
        )
        return snapshot

    def mark_failed(
        self,
        job_id: str,
        error: str,
        failure_kind: str,
        exit_code: Optional[int] = None,
        message: str = "failed",
    ) -> Job:
        """
        Move a PROCESSING job to FAILED.

        Progress resets to 0 and any partial outcome is cleared.

        Raises:
            JobNotFoundError: If the job does not exist
            ConflictError: If the job is not PROCESSING
        """
        with self._lock:
            job = self._require(job_id)
            validate_job_transition(job_id, job.status, JobStatus.FAILED)
            job.status = JobStatus.FAILED
            job.progress = 0
            job.message = message
            job.error = error
            job.failure_kind = failure_kind
            job.exit_code = exit_code
            job.output_folder = None
            job.renditions = []
            snapshot = job.model_copy(deep=True)
        logger.info(f"[Registry] Job {job_id} -> failed ({failure_kind})")
        return snapshot

    def delete(self, job_id: str) -> Job:
        """
        Remove a job from the registry.

        Artifact cleanup is the caller's responsibility.

        Returns:
            The removed job

        Raises:
            JobNotFoundError: If the job does not exist
        """
        with self._lock:
            job = self._jobs.pop(job_id, None)
            if job is not None:
                self._retired.add(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.status == JobStatus.PROCESSING:
            logger.warning(
                f"[Registry] Job {job_id} deleted while processing; "
                f"its engine process is not stopped"
            )
        logger.info(f"[Registry] Deleted job {job_id}")
        return job

    def clear(self) -> None:
        """
        Clear all jobs from the registry.

        Useful for testing or resetting state.
        """
        with self._lock:
            self._retired.update(self._jobs)
            self._jobs.clear()

    def count(self) -> int:
        """Get the total number of jobs in the registry."""
        with self._lock:
            return len(self._jobs)
