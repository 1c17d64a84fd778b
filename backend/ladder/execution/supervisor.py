"""
Transcode supervisor.

Runs exactly one engine process per started job and turns what the
process does into registry updates.

Design rules:
- start() returns immediately; the run happens on a daemon thread
- One run per job: the registry's UPLOADED → PROCESSING check-and-set
  is the only gate
- stdout feeds the progress heuristic; stderr is only kept for diagnostics
- Exit 0 = COMPLETED, anything else = FAILED
- Nothing raised inside a run escapes the worker thread; it ends up in
  the job's error field
- No admission control and no cancellation: every started job gets its
  own process, and a deleted job's process runs to completion
"""

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from ..jobs.errors import JobError, JobNotFoundError
from ..jobs.registry import JobRegistry
from ..jobs.models import Job
from .errors import (
    ArtifactMissingError,
    EngineExecutionError,
    ExecutionError,
)
from .launcher import EngineLauncher, EngineProcess
from .outputs import collect_renditions, expected_output_folder
from .progress import ProgressHeuristic

logger = logging.getLogger(__name__)


STARTING_PROGRESS = 10
ANALYZING_PROGRESS = 20


class _JobGone(Exception):
    """The job record disappeared (deleted) while its run was active."""


class TranscodeSupervisor:
    """
    Supervises engine runs for jobs held in a JobRegistry.

    The supervisor is the only writer of progress, message and terminal
    fields while a run is active.
    """

    def __init__(self, registry: JobRegistry, launcher: EngineLauncher):
        self._registry = registry
        self._launcher = launcher
        self._workers: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

    def start(self, job_id: str) -> Job:
        """
        Start processing a job.

        Returns:
            The PROCESSING snapshot, or a FAILED one if the worker thread
            could not be started

        Raises:
            JobNotFoundError: If the job does not exist
            ConflictError: If the job is not UPLOADED (no process is spawned)
        """
        job = self._registry.transition_to_processing(job_id, message="starting")

        worker = threading.Thread(
            target=self._run,
            args=(job_id, job.source_path),
            name=f"transcode-{job_id[:8]}",
            daemon=True,
        )
        with self._lock:
            self._workers[job_id] = worker
        try:
            worker.start()
        except RuntimeError as e:
            with self._lock:
                self._workers.pop(job_id, None)
            logger.error(f"[Supervisor] Could not start worker for job {job_id}: {e}")
            self._fail(job_id, f"Could not start processing: {e}", ExecutionError.kind)
            return self._registry.find(job_id) or job

        logger.info(f"[Supervisor] Started run for job {job_id}")
        return job

    def active_jobs(self) -> List[str]:
        """IDs of jobs whose run has not finished yet."""
        with self._lock:
            return [job_id for job_id, worker in self._workers.items() if worker.is_alive()]

    def wait(self, job_id: str, timeout: Optional[float] = None) -> bool:
        """
        Wait for a job's run to finish.

        Returns:
            True if no run is active for the job when this returns
        """
        with self._lock:
            worker = self._workers.get(job_id)
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self, job_id: str, source_path: str) -> None:
        try:
            self._supervise(job_id, source_path)
        except _JobGone:
            logger.warning(f"[Supervisor] Job {job_id} was deleted during its run")
        except ExecutionError as e:
            logger.error(f"[Supervisor] Job {job_id} failed: {e}")
            self._fail(job_id, str(e), e.kind, getattr(e, "exit_code", None))
        except Exception as e:
            logger.exception(f"[Supervisor] Unexpected error in run for job {job_id}: {e}")
            self._fail(job_id, str(e) or type(e).__name__, ExecutionError.kind)
        finally:
            with self._lock:
                self._workers.pop(job_id, None)

    def _supervise(self, job_id: str, source_path: str) -> None:
        heuristic = ProgressHeuristic(initial=STARTING_PROGRESS)

        # ConfigurationError here means no process is ever spawned
        executable = self._launcher.locate()
        logger.info(f"[Supervisor] Job {job_id} using engine {executable}")
        if not self._progress(job_id, heuristic.advance_to(ANALYZING_PROGRESS), "analyzing"):
            raise _JobGone(job_id)

        process = self._launcher.launch(source_path)
        with process:
            stderr_chunks: List[str] = []
            drain = threading.Thread(
                target=self._drain_stderr,
                args=(job_id, process, stderr_chunks),
                name=f"stderr-{job_id[:8]}",
                daemon=True,
            )
            drain.start()

            # Keep reading after a deletion so the engine never blocks on a full pipe
            tracking = True
            try:
                for line in process.stdout_lines():
                    text = line.rstrip("\r\n")
                    if text:
                        logger.debug(f"[Supervisor] [{job_id}] {text}")
                    update = heuristic.feed(text)
                    if update and tracking:
                        tracking = self._progress(job_id, update.progress, update.message)

                exit_code = process.wait()
            finally:
                # stderr must stay open until the drain thread reaches EOF
                drain.join()

        stderr = "".join(stderr_chunks)
        logger.info(f"[Supervisor] Job {job_id} engine exited with code {exit_code}")

        if not tracking:
            raise _JobGone(job_id)

        if exit_code != 0:
            raise EngineExecutionError(exit_code, stderr)

        self._complete(job_id, source_path, exit_code)

    @staticmethod
    def _drain_stderr(job_id: str, process: EngineProcess, chunks: List[str]) -> None:
        for line in process.stderr_lines():
            chunks.append(line)
            text = line.rstrip("\r\n")
            if text:
                logger.warning(f"[Supervisor] [{job_id}] stderr: {text}")

    def _progress(self, job_id: str, progress: int, message: str) -> bool:
        """Record progress. Returns False once the job record is gone."""
        try:
            self._registry.update_progress(job_id, progress, message)
        except JobNotFoundError:
            logger.warning(f"[Supervisor] Job {job_id} deleted; no further updates recorded")
            return False
        return True

    def _complete(self, job_id: str, source_path: str, exit_code: int) -> None:
        output_folder = expected_output_folder(source_path)
        renditions = collect_renditions(output_folder)

        folder: Optional[str] = str(output_folder)
        if not Path(output_folder).is_dir():
            missing = ArtifactMissingError(f"Output folder not found: {output_folder}")
            logger.warning(f"[Supervisor] Job {job_id} completed without outputs: {missing}")
            folder = None

        try:
            self._registry.mark_completed(job_id, folder, renditions, exit_code=exit_code)
        except JobNotFoundError:
            raise _JobGone(job_id)

    def _fail(
        self,
        job_id: str,
        error: str,
        failure_kind: str,
        exit_code: Optional[int] = None,
    ) -> None:
        try:
            self._registry.mark_failed(job_id, error, failure_kind, exit_code=exit_code)
        except JobNotFoundError:
            logger.warning(f"[Supervisor] Job {job_id} was deleted before its failure was recorded")
        except JobError as e:
            logger.error(f"[Supervisor] Could not record failure for job {job_id}: {e}")
