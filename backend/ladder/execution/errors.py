"""
Execution-specific errors.

All errors are non-fatal to the application.
During a run the supervisor absorbs them into the job's FAILED state;
the error kind is recorded on the job as failure_kind.
"""

from typing import Optional


class ExecutionError(Exception):
    """
    Base exception for execution failures.

    kind is the stable name stored on a failed job.
    """

    kind = "ExecutionError"


class ConfigurationError(ExecutionError):
    """
    The engine is not available before launch.

    Raised when:
    - No engine executable is configured or found on PATH
    - The configured path is not an executable file
    """

    kind = "ConfigurationError"


class EngineLaunchError(ExecutionError):
    """The engine process could not be started at all."""

    kind = "EngineLaunchFailure"


class EngineExecutionError(ExecutionError):
    """
    Engine ran and exited non-zero.

    Carries the exit code and the captured stderr text.
    """

    kind = "EngineExecutionFailure"

    def __init__(self, exit_code: int, stderr: Optional[str] = None):
        self.exit_code = exit_code
        self.stderr = stderr or ""
        detail = self.stderr.strip() or f"Processing failed with exit code {exit_code}"
        super().__init__(detail)


class ProbeError(ExecutionError):
    """Resolution detection failed or returned unparseable data."""

    kind = "ProbeFailure"

    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        self.reason = reason
        super().__init__(f"Could not determine height of {filepath}: {reason}")


class ArtifactMissingError(ExecutionError):
    """
    Expected output is absent after a reported success.

    Raised when:
    - Output directory missing
    - Rendition file missing
    """

    kind = "ArtifactMissing"
