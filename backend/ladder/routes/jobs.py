"""
Job endpoints.

HTTP adapter over TranscodeService. Handlers only translate between HTTP
and service calls; every rule lives in the service, supervisor and
registry.

Error mapping:
- JobNotFoundError, RenditionNotFoundError, ArtifactMissingError → 404
- JobNotCompletedError, UploadRejectedError → 400
- ConflictError (already started / finished) → 409
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..jobs.errors import (
    ConflictError,
    JobNotCompletedError,
    JobNotFoundError,
    RenditionNotFoundError,
    UploadRejectedError,
)
from ..jobs.models import Job, JobStatus
from ..execution.errors import ArtifactMissingError
from ..service import TranscodeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["jobs"])


class CamelModel(BaseModel):
    """Response model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(CamelModel):
    job_id: str
    message: str
    filename: str
    filesize: int


class StartResponse(CamelModel):
    job_id: str
    message: str
    status: JobStatus


class RenditionResponse(CamelModel):
    filename: str
    quality: str


class JobStatusResponse(CamelModel):
    """Full job snapshot."""

    job_id: str
    status: JobStatus
    filename: str
    filesize: int
    uploaded_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    progress: int
    message: str
    output_folder: Optional[str] = None
    renditions: List[RenditionResponse] = []
    error: Optional[str] = None
    failure_kind: Optional[str] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusResponse":
        return cls(
            job_id=job.id,
            status=job.status,
            filename=job.source_name,
            filesize=job.source_size,
            uploaded_at=job.uploaded_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            progress=job.progress,
            message=job.message,
            output_folder=job.output_folder,
            renditions=[
                RenditionResponse(filename=r.filename, quality=r.quality_label)
                for r in job.renditions
            ],
            error=job.error,
            failure_kind=job.failure_kind,
        )


class JobSummary(CamelModel):
    job_id: str
    filename: str
    status: JobStatus
    uploaded_at: datetime
    progress: int
    message: str


class JobListResponse(CamelModel):
    jobs: List[JobSummary]


class MessageResponse(CamelModel):
    message: str


def _service(request: Request) -> TranscodeService:
    return request.app.state.transcode_service


@router.post("/upload", response_model=UploadResponse)
def upload_video(request: Request, video: Optional[UploadFile] = File(None)):
    """Store an uploaded video as a new job (multipart field "video")."""
    service = _service(request)
    try:
        job = service.submit(
            video.file if video else None,
            video.filename if video else None,
            video.content_type if video else None,
        )
    except UploadRejectedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UploadResponse(
        job_id=job.id,
        message="Video uploaded successfully",
        filename=job.source_name,
        filesize=job.source_size,
    )


@router.post("/process/{job_id}", response_model=StartResponse)
def start_processing(job_id: str, request: Request):
    """Start the engine for an uploaded job. Returns without waiting."""
    try:
        job = _service(request).start(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=f"Job already processed or in progress: {e}")

    return StartResponse(job_id=job.id, message="Processing started", status=job.status)


@router.get("/status/{job_id}", response_model=JobStatusResponse)
def get_status(job_id: str, request: Request):
    try:
        job = _service(request).get(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    return JobStatusResponse.from_job(job)


@router.get("/jobs", response_model=JobListResponse)
def list_jobs(request: Request):
    jobs = _service(request).list_jobs()
    return JobListResponse(
        jobs=[
            JobSummary(
                job_id=job.id,
                filename=job.source_name,
                status=job.status,
                uploaded_at=job.uploaded_at,
                progress=job.progress,
                message=job.message,
            )
            for job in jobs
        ]
    )


def _download(request: Request, job_id: str, quality: Optional[str]) -> FileResponse:
    try:
        path = _service(request).resolve_download(job_id, quality)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except JobNotCompletedError:
        raise HTTPException(status_code=400, detail="Job not completed yet")
    except RenditionNotFoundError:
        raise HTTPException(status_code=404, detail=f"Quality {quality} not found")
    except ArtifactMissingError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Serving {path.name} for job {job_id}")
    return FileResponse(path, media_type="video/mp4", filename=path.name)


@router.get("/download/{job_id}")
def download_first(job_id: str, request: Request):
    """Download the first available rendition."""
    return _download(request, job_id, None)


@router.get("/download/{job_id}/{quality}")
def download_quality(job_id: str, quality: str, request: Request):
    """Download a specific rendition, e.g. /download/<id>/720."""
    return _download(request, job_id, quality)


@router.delete("/jobs/{job_id}", response_model=MessageResponse)
def delete_job(job_id: str, request: Request):
    """Delete a job with its source and outputs. Does not stop a running engine."""
    try:
        _service(request).delete(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    return MessageResponse(message="Job deleted successfully")
