"""
Transcode service: the operations the transport layer calls.

Composes the job registry, the transcode supervisor and the output
collector into submit / start / query / list / download / delete.

Request-time problems (unknown job, illegal state, bad upload, missing
results) are raised to the caller as JobError / ExecutionError
subclasses. Problems during a run never surface here; they are only
visible on the job record.
"""

import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, List, Optional

from .jobs.errors import (
    JobNotCompletedError,
    RenditionNotFoundError,
    UploadRejectedError,
)
from .jobs.models import Job, JobStatus
from .jobs.registry import JobRegistry
from .execution.errors import ArtifactMissingError
from .execution.outputs import expected_output_folder
from .execution.supervisor import TranscodeSupervisor

logger = logging.getLogger(__name__)


DEFAULT_MAX_UPLOAD_BYTES = 500 * 1024 * 1024
COPY_CHUNK_BYTES = 1024 * 1024
ACCEPTED_MEDIA_PREFIX = "video/"

# Used when the upload name has no extension; a stored source must never
# share its path with its output folder
DEFAULT_SOURCE_SUFFIX = ".bin"


def normalize_quality(quality: str) -> str:
    """Accept "720" or "720p" (any case) and return "720p"."""
    value = quality.strip().lower()
    if value.isdigit():
        return f"{value}p"
    return value


class TranscodeService:
    """
    Facade over registry + supervisor.

    Owns the upload directory: sources are stored as
    <upload_dir>/<job_id><ext> and the engine writes renditions to
    <upload_dir>/<job_id>/.
    """

    def __init__(
        self,
        registry: JobRegistry,
        supervisor: TranscodeSupervisor,
        upload_dir: Path,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    ):
        self.registry = registry
        self.supervisor = supervisor
        self.upload_dir = Path(upload_dir).resolve()
        self.max_upload_bytes = max_upload_bytes
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submit(
        self,
        fileobj: Optional[BinaryIO],
        filename: Optional[str],
        content_type: Optional[str],
    ) -> Job:
        """
        Store an uploaded video and create an UPLOADED job for it.

        Raises:
            UploadRejectedError: Missing payload, non-video media type,
                or payload larger than the upload limit
        """
        if fileobj is None or not filename:
            raise UploadRejectedError("No video file uploaded")

        if not content_type or not content_type.startswith(ACCEPTED_MEDIA_PREFIX):
            raise UploadRejectedError("Only video files are allowed!", filename)

        job_id = str(uuid.uuid4())
        suffix = Path(filename).suffix or DEFAULT_SOURCE_SUFFIX
        source_path = self.upload_dir / f"{job_id}{suffix}"

        size = self._store(fileobj, source_path, filename)

        job = self.registry.create(
            source_path=str(source_path),
            source_name=filename,
            source_size=size,
            job_id=job_id,
        )
        logger.info(f"Stored upload {filename} ({size} bytes) as {source_path.name}")
        return job

    def _store(self, fileobj: BinaryIO, destination: Path, filename: str) -> int:
        size = 0
        try:
            with open(destination, "wb") as out:
                while True:
                    chunk = fileobj.read(COPY_CHUNK_BYTES)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_upload_bytes:
                        raise UploadRejectedError(
                            f"File too large (max {self.max_upload_bytes // (1024 * 1024)}MB)",
                            filename,
                        )
                    out.write(chunk)
        except Exception:
            destination.unlink(missing_ok=True)
            raise

        if size == 0:
            destination.unlink(missing_ok=True)
            raise UploadRejectedError("No video file uploaded", filename)

        return size

    # ------------------------------------------------------------------
    # Start / query
    # ------------------------------------------------------------------

    def start(self, job_id: str) -> Job:
        """
        Start processing. Returns immediately with the PROCESSING snapshot.

        Raises:
            JobNotFoundError: If the job does not exist
            ConflictError: If the job was already started
        """
        return self.supervisor.start(job_id)

    def get(self, job_id: str) -> Job:
        """
        Raises:
            JobNotFoundError: If the job does not exist
        """
        return self.registry.get(job_id)

    def list_jobs(self) -> List[Job]:
        return self.registry.list()

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def resolve_download(self, job_id: str, quality: Optional[str] = None) -> Path:
        """
        Find the file to serve for a completed job.

        Args:
            job_id: Job to download from
            quality: "720" / "720p"; None returns the first rendition

        Raises:
            JobNotFoundError: If the job does not exist
            JobNotCompletedError: If the job is not COMPLETED
            RenditionNotFoundError: If the requested quality was not produced
            ArtifactMissingError: If no renditions exist or the file is gone
        """
        job = self.registry.get(job_id)

        if job.status != JobStatus.COMPLETED:
            raise JobNotCompletedError(job_id, job.status.value)

        if not job.output_folder or not Path(job.output_folder).is_dir():
            raise ArtifactMissingError("Output files not found")

        if not job.renditions:
            raise ArtifactMissingError("No video files found")

        if quality:
            wanted = normalize_quality(quality)
            match = next((r for r in job.renditions if r.quality_label == wanted), None)
            if match is None:
                raise RenditionNotFoundError(job_id, quality)
        else:
            match = job.renditions[0]

        path = Path(job.output_folder) / match.filename
        if not path.is_file():
            raise ArtifactMissingError(f"Rendition file missing: {match.filename}")
        return path

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self, job_id: str) -> Job:
        """
        Remove a job together with its source file and output folder.

        A running engine process is not stopped. Cleanup problems are
        logged, never raised.

        Raises:
            JobNotFoundError: If the job does not exist
        """
        job = self.registry.delete(job_id)

        source = Path(job.source_path)
        folders = {expected_output_folder(source)}
        if job.output_folder:
            folders.add(Path(job.output_folder))

        try:
            source.unlink(missing_ok=True)
            for folder in folders:
                if folder.is_dir():
                    shutil.rmtree(folder)
        except OSError as e:
            logger.warning(f"File cleanup error for job {job_id}: {e}")

        logger.info(f"Deleted job {job_id}")
        return job
