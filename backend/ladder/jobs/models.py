"""
Job data models.

A job is one uploaded source file and the single engine run that turns
it into a ladder of renditions.

All models use Pydantic for validation.
State transitions are validated externally (see state.py).
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """
    Job-level status.

    Lifecycle: UPLOADED → PROCESSING → COMPLETED | FAILED
    """

    UPLOADED = "uploaded"  # Source stored, engine not started
    PROCESSING = "processing"  # Engine process launched or launching
    COMPLETED = "completed"  # Engine exited 0 (terminal)
    FAILED = "failed"  # Configuration, launch or engine failure (terminal)


class Rendition(BaseModel):
    """One produced output file and its quality label."""

    model_config = ConfigDict(extra="forbid")

    filename: str
    quality_label: str  # e.g. "720p", or "unknown"


class Job(BaseModel):
    """
    A transcode job.

    Source fields and timestamps are written once. Progress, message and
    the terminal fields belong to the supervisor while a run is active.
    """

    model_config = ConfigDict(extra="forbid")

    # Identity
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    # Source (immutable after submission)
    source_path: str
    source_size: int = 0
    source_name: str

    # State
    status: JobStatus = JobStatus.UPLOADED
    progress: int = Field(default=0, ge=0, le=100)
    message: str = "uploaded"

    # Timestamps
    uploaded_at: datetime = Field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Outcome (COMPLETED)
    output_folder: Optional[str] = None
    renditions: List[Rendition] = Field(default_factory=list)

    # Outcome (FAILED)
    error: Optional[str] = None
    failure_kind: Optional[str] = None

    # Engine exit code, once the process has exited
    exit_code: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)
