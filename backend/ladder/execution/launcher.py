"""
Engine launcher abstraction.

The transcoding engine is an opaque executable invoked with a single
source path. The supervisor only sees this narrow capability:

    launcher.locate()              -> executable path (or ConfigurationError)
    launcher.launch(source_path)   -> EngineProcess

    with launcher.launch(path) as process:
        for line in process.stdout_lines(): ...
        for line in process.stderr_lines(): ...
        exit_code = process.wait()

Tests substitute a scripted launcher; production uses SubprocessLauncher.
"""

import logging
import os
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

from .errors import ConfigurationError, EngineLaunchError

logger = logging.getLogger(__name__)


DEFAULT_ENGINE_COMMAND = "ladder-engine"


class EngineProcess(ABC):
    """
    A running engine invocation.

    Used as a context manager: leaving the block always releases the
    process handle, whatever happened inside it.
    """

    @property
    @abstractmethod
    def pid(self) -> Optional[int]:
        """OS process id, if there is one."""
        pass

    @abstractmethod
    def stdout_lines(self) -> Iterator[str]:
        """
        Lazily yield stdout lines as the engine produces them.

        The stream can be consumed once; it is not replayable.
        """
        pass

    @abstractmethod
    def stderr_lines(self) -> Iterator[str]:
        """Lazily yield stderr lines as the engine produces them."""
        pass

    @abstractmethod
    def wait(self) -> int:
        """Block until the engine exits and return its exit code."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release pipes and reap the process."""
        pass

    def __enter__(self) -> "EngineProcess":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class EngineLauncher(ABC):
    """Locates and starts the external engine."""

    @abstractmethod
    def locate(self) -> str:
        """
        Resolve the engine executable.

        Raises:
            ConfigurationError: If no usable executable exists
        """
        pass

    @abstractmethod
    def launch(self, source_path: str) -> EngineProcess:
        """
        Start the engine on one source file.

        Raises:
            ConfigurationError: If no usable executable exists
            EngineLaunchError: If the process could not be started
        """
        pass


class SubprocessEngineProcess(EngineProcess):
    """EngineProcess backed by subprocess.Popen."""

    def __init__(self, process: subprocess.Popen):
        self._process = process

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    def stdout_lines(self) -> Iterator[str]:
        if self._process.stdout is None:
            return iter(())
        return iter(self._process.stdout.readline, "")

    def stderr_lines(self) -> Iterator[str]:
        if self._process.stderr is None:
            return iter(())
        return iter(self._process.stderr.readline, "")

    def wait(self) -> int:
        return self._process.wait()

    def close(self) -> None:
        # stdout first, so an engine blocked on a full pipe gets EPIPE and exits.
        # No cancellation: an engine still running is waited for, not killed.
        if self._process.stdout:
            self._process.stdout.close()
        self._process.wait()
        if self._process.stderr:
            self._process.stderr.close()


class SubprocessLauncher(EngineLauncher):
    """
    Launch the engine as a child process.

    The executable is either an explicit path (LADDER_ENGINE_PATH) or the
    engine command looked up on PATH. The child runs in the source's
    directory so its output folder lands next to the source.
    """

    def __init__(self, engine_path: Optional[str] = None, command: str = DEFAULT_ENGINE_COMMAND):
        self._engine_path = engine_path
        self._command = command

    def locate(self) -> str:
        if self._engine_path:
            path = Path(self._engine_path)
            if not path.is_file():
                raise ConfigurationError(f"Engine executable not found: {self._engine_path}")
            if not os.access(path, os.X_OK):
                raise ConfigurationError(f"Engine executable is not executable: {self._engine_path}")
            return os.path.abspath(path)

        found = shutil.which(self._command)
        if not found:
            raise ConfigurationError(
                f"{self._command} not found. Install the engine or set LADDER_ENGINE_PATH."
            )
        return os.path.abspath(found)

    def launch(self, source_path: str) -> EngineProcess:
        executable = self.locate()
        # Absolute, since the child runs with a different working directory
        source_path = os.path.abspath(source_path)
        cmd = [executable, source_path]
        logger.info(f"[Engine] Executing: {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                cwd=str(Path(source_path).parent),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except (OSError, ValueError) as e:
            raise EngineLaunchError(f"Failed to start engine {executable}: {e}") from e

        logger.info(f"[Engine] Started PID {process.pid} for {source_path}")
        return SubprocessEngineProcess(process)
