"""
Rendition Ladder backend service.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .execution.launcher import EngineLauncher, SubprocessLauncher
from .execution.supervisor import TranscodeSupervisor
from .jobs.registry import JobRegistry
from .routes import health, jobs
from .service import TranscodeService
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    launcher: Optional[EngineLauncher] = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Service settings (defaults to environment)
        launcher: Engine launcher (defaults to a subprocess launcher)
    """
    settings = settings or load_settings()
    launcher = launcher or SubprocessLauncher(engine_path=settings.engine_path)

    app = FastAPI(title="Rendition Ladder", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # In-memory only: jobs do not survive a restart
    app.state.settings = settings
    app.state.job_registry = JobRegistry()
    app.state.supervisor = TranscodeSupervisor(app.state.job_registry, launcher)
    app.state.transcode_service = TranscodeService(
        registry=app.state.job_registry,
        supervisor=app.state.supervisor,
        upload_dir=settings.upload_dir,
        max_upload_bytes=settings.max_upload_bytes,
    )

    app.include_router(health.router)
    app.include_router(jobs.router)

    @app.get("/")
    async def root():
        return {"service": "rendition-ladder", "status": "running"}

    return app


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(threadName)-12.12s] [%(levelname)-5.5s] %(name)s: %(message)s",
    )
    app = create_app(settings)
    logger.info(f"Rendition Ladder API on http://{settings.host}:{settings.port}/api/")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
