"""
Transcode Service Tests

Validates:
1. Upload validation and storage
2. Download resolution for completed jobs
3. Delete removes the job, its source and its outputs
"""

import io
from pathlib import Path

import pytest

from ladder.execution.errors import ArtifactMissingError
from ladder.jobs.errors import (
    ConflictError,
    JobNotCompletedError,
    JobNotFoundError,
    RenditionNotFoundError,
    UploadRejectedError,
)
from ladder.jobs.models import JobStatus, Rendition
from ladder.execution.outputs import expected_output_folder
from ladder.service import DEFAULT_SOURCE_SUFFIX, TranscodeService, normalize_quality

from conftest import FakeLauncher, FakeProcess, LADDER_OUTPUT_1080, write_renditions


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def make_service(registry, make_supervisor, upload_dir):
    def _make(launcher=None, max_upload_bytes=1024):
        supervisor = make_supervisor(launcher or FakeLauncher())
        return TranscodeService(registry, supervisor, upload_dir, max_upload_bytes=max_upload_bytes)

    return _make


def _completed(service, heights=(720, 480)):
    """Submit a job and drive it to COMPLETED with real files on disk."""
    job = service.submit(io.BytesIO(b"video bytes"), "holiday.mp4", "video/mp4")
    source = Path(job.source_path)
    folder = write_renditions(source, list(heights))
    renditions = [
        Rendition(filename=f"{source.stem} {h}.mp4", quality_label=f"{h}p") for h in heights
    ]
    service.registry.transition_to_processing(job.id)
    service.registry.mark_completed(job.id, str(folder), renditions)
    return service.registry.get(job.id)


# =============================================================================
# Submit
# =============================================================================

def test_submit_stores_file_and_creates_uploaded_job(make_service, upload_dir):
    service = make_service()

    job = service.submit(io.BytesIO(b"video bytes"), "holiday.mp4", "video/mp4")

    assert job.status == JobStatus.UPLOADED
    assert job.source_name == "holiday.mp4"
    assert job.source_size == len(b"video bytes")
    stored = Path(job.source_path)
    assert stored.parent == upload_dir.resolve()
    assert stored.name == f"{job.id}.mp4"
    assert stored.read_bytes() == b"video bytes"


def test_submit_without_file_rejected(make_service):
    service = make_service()

    with pytest.raises(UploadRejectedError, match="No video file uploaded"):
        service.submit(None, None, None)


@pytest.mark.parametrize("content_type", ["image/png", "text/plain", "", None])
def test_submit_non_video_rejected(make_service, upload_dir, content_type):
    service = make_service()

    with pytest.raises(UploadRejectedError, match="Only video files are allowed!"):
        service.submit(io.BytesIO(b"data"), "notes.txt", content_type)

    assert service.list_jobs() == []
    assert list(upload_dir.iterdir()) == []


def test_submit_too_large_rejected_and_cleaned_up(make_service, upload_dir):
    service = make_service(max_upload_bytes=8)

    with pytest.raises(UploadRejectedError, match="File too large"):
        service.submit(io.BytesIO(b"0123456789"), "big.mp4", "video/mp4")

    assert service.list_jobs() == []
    assert list(upload_dir.iterdir()) == []


def test_submit_empty_payload_rejected(make_service, upload_dir):
    service = make_service()

    with pytest.raises(UploadRejectedError):
        service.submit(io.BytesIO(b""), "empty.mp4", "video/mp4")

    assert list(upload_dir.iterdir()) == []


def test_submitted_jobs_are_listed_in_order(make_service):
    service = make_service()
    first = service.submit(io.BytesIO(b"a"), "a.mp4", "video/mp4")
    second = service.submit(io.BytesIO(b"b"), "b.mov", "video/quicktime")

    assert [job.id for job in service.list_jobs()] == [first.id, second.id]


def test_relative_upload_dir_stores_absolute_source(registry, make_supervisor, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    service = TranscodeService(registry, make_supervisor(FakeLauncher()), Path("uploads"))

    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")

    source = Path(job.source_path)
    assert source.is_absolute()
    assert source.parent == (tmp_path / "uploads").resolve()
    assert source.is_file()


def test_extensionless_upload_gets_default_suffix(make_service):
    service = make_service()

    job = service.submit(io.BytesIO(b"video"), "clip", "video/mp4")

    source = Path(job.source_path)
    assert source.name == f"{job.id}{DEFAULT_SOURCE_SUFFIX}"
    assert expected_output_folder(source) != source
    assert job.source_name == "clip"


# =============================================================================
# Start
# =============================================================================

def test_start_runs_engine_to_completion(registry, make_service, upload_dir):
    holder = {}
    process = FakeProcess(
        stdout=LADDER_OUTPUT_1080,
        before_exit=lambda: write_renditions(Path(holder["source"]), [720, 480]),
    )
    service = make_service(FakeLauncher(process))
    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")
    holder["source"] = job.source_path

    started = service.start(job.id)
    assert started.status == JobStatus.PROCESSING
    assert service.supervisor.wait(job.id, timeout=5)

    done = service.get(job.id)
    assert done.status == JobStatus.COMPLETED
    assert done.output_folder == str(upload_dir.resolve() / job.id)
    assert service.resolve_download(job.id, "480").name == f"{job.id} 480.mp4"


def test_start_twice_conflicts(make_service):
    service = make_service()
    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")

    service.start(job.id)
    with pytest.raises(ConflictError):
        service.start(job.id)
    service.supervisor.wait(job.id, timeout=5)


def test_get_unknown_job(make_service):
    with pytest.raises(JobNotFoundError):
        make_service().get("nope")


# =============================================================================
# Download
# =============================================================================

def test_download_default_is_first_rendition(make_service):
    service = make_service()
    job = _completed(service, heights=(720, 480))

    path = service.resolve_download(job.id)

    assert path.name == job.renditions[0].filename
    assert path.is_file()


@pytest.mark.parametrize("quality", ["480", "480p", "480P"])
def test_download_by_quality(make_service, quality):
    service = make_service()
    job = _completed(service, heights=(720, 480))

    path = service.resolve_download(job.id, quality)

    assert path.name.endswith(" 480.mp4")


def test_download_missing_quality(make_service):
    service = make_service()
    job = _completed(service, heights=(720,))

    with pytest.raises(RenditionNotFoundError):
        service.resolve_download(job.id, "1080")


def test_download_before_completion(make_service):
    service = make_service()
    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")

    with pytest.raises(JobNotCompletedError):
        service.resolve_download(job.id)


def test_download_unknown_job(make_service):
    with pytest.raises(JobNotFoundError):
        make_service().resolve_download("nope")


def test_download_completed_without_outputs(make_service):
    service = make_service()
    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")
    service.registry.transition_to_processing(job.id)
    service.registry.mark_completed(job.id, None, [])

    with pytest.raises(ArtifactMissingError, match="Output files not found"):
        service.resolve_download(job.id)


def test_download_completed_with_empty_folder(make_service):
    service = make_service()
    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")
    folder = write_renditions(Path(job.source_path), [])
    service.registry.transition_to_processing(job.id)
    service.registry.mark_completed(job.id, str(folder), [])

    with pytest.raises(ArtifactMissingError, match="No video files found"):
        service.resolve_download(job.id)


def test_download_file_removed_after_completion(make_service):
    service = make_service()
    job = _completed(service, heights=(720,))
    (Path(job.output_folder) / job.renditions[0].filename).unlink()

    with pytest.raises(ArtifactMissingError):
        service.resolve_download(job.id, "720p")


def test_normalize_quality():
    assert normalize_quality("720") == "720p"
    assert normalize_quality(" 720P ") == "720p"
    assert normalize_quality("720p") == "720p"


# =============================================================================
# Delete
# =============================================================================

def test_delete_removes_source_and_outputs(make_service):
    service = make_service()
    job = _completed(service)
    source = Path(job.source_path)
    folder = Path(job.output_folder)

    removed = service.delete(job.id)

    assert removed.id == job.id
    assert not source.exists()
    assert not folder.exists()
    assert service.list_jobs() == []
    with pytest.raises(JobNotFoundError):
        service.get(job.id)


def test_delete_uploaded_job_removes_source(make_service):
    service = make_service()
    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")

    service.delete(job.id)

    assert not Path(job.source_path).exists()


def test_delete_tolerates_files_already_gone(make_service):
    service = make_service()
    job = service.submit(io.BytesIO(b"video"), "clip.mp4", "video/mp4")
    Path(job.source_path).unlink()

    service.delete(job.id)

    assert service.list_jobs() == []


def test_delete_unknown_job(make_service):
    with pytest.raises(JobNotFoundError):
        make_service().delete("nope")
