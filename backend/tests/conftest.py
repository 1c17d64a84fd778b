"""
Pytest configuration and shared fixtures.

The engine is never invoked for real here: FakeLauncher / FakeProcess
implement the launcher capability with scripted output.
"""

import sys
import threading
import time
from pathlib import Path
from typing import Callable, Iterator, List, Optional

import pytest

# Add backend to Python path for test imports
backend_path = Path(__file__).parent.parent
sys.path.insert(0, str(backend_path))

from ladder.execution.errors import ConfigurationError, EngineLaunchError  # noqa: E402
from ladder.execution.launcher import EngineLauncher, EngineProcess  # noqa: E402
from ladder.execution.supervisor import TranscodeSupervisor  # noqa: E402
from ladder.jobs.registry import JobRegistry  # noqa: E402


class FakeProcess(EngineProcess):
    """Scripted engine run."""

    def __init__(
        self,
        stdout: Optional[List[str]] = None,
        stderr: Optional[List[str]] = None,
        exit_code: int = 0,
        before_exit: Optional[Callable[[], None]] = None,
        hold: Optional[threading.Event] = None,
        line_delay: float = 0.0,
    ):
        self._stdout = list(stdout or [])
        self._stderr = list(stderr or [])
        self._exit_code = exit_code
        self._before_exit = before_exit
        self._hold = hold
        self._line_delay = line_delay
        self.closed = False
        self.waited = False

    @property
    def pid(self) -> Optional[int]:
        return 4242

    def stdout_lines(self) -> Iterator[str]:
        if self._hold is not None:
            self._hold.wait(timeout=5)
        for line in self._stdout:
            if self._line_delay:
                time.sleep(self._line_delay)
            yield line + "\n"

    def stderr_lines(self) -> Iterator[str]:
        for line in self._stderr:
            yield line + "\n"

    def wait(self) -> int:
        if not self.waited and self._before_exit is not None:
            self._before_exit()
        self.waited = True
        return self._exit_code

    def close(self) -> None:
        self.closed = True


class FakeLauncher(EngineLauncher):
    """Launcher returning a scripted process and recording launches."""

    def __init__(
        self,
        process: Optional[FakeProcess] = None,
        locate_error: Optional[str] = None,
        launch_error: Optional[str] = None,
    ):
        self.process = process or FakeProcess()
        self.locate_error = locate_error
        self.launch_error = launch_error
        self.launched: List[str] = []

    def locate(self) -> str:
        if self.locate_error:
            raise ConfigurationError(self.locate_error)
        return "/opt/ladder/bin/ladder-engine"

    def launch(self, source_path: str) -> EngineProcess:
        self.locate()
        if self.launch_error:
            raise EngineLaunchError(self.launch_error)
        self.launched.append(source_path)
        return self.process


def write_renditions(source: Path, heights: List[int]) -> Path:
    """Create the output folder the engine would write for a source."""
    folder = source.parent / source.stem
    folder.mkdir(exist_ok=True)
    for height in heights:
        (folder / f"{source.stem} {height}.mp4").write_bytes(b"fake mp4")
    return folder


LADDER_OUTPUT_1080 = [
    "Input video resolution: 1080p",
    "Original copied as: clip/clip 1080.mp4",
    "Processing subordinate qualities: 720p 480p 360p 240p 144p",
    "Processing 720p...",
    "✓ 720p completed",
    "Processing 480p...",
    "✓ 480p completed",
    "Processing 360p...",
    "✓ 360p completed",
    "Processing 240p...",
    "✓ 240p completed",
    "Processing 144p...",
    "✓ 144p completed",
    "",
    "Processing complete. Files saved in folder: clip",
    "Total processing time: 3.21 seconds",
]


@pytest.fixture
def registry() -> JobRegistry:
    return JobRegistry()


@pytest.fixture
def source_file(tmp_path) -> Path:
    source = tmp_path / "clip.mp4"
    source.write_bytes(b"fake source video")
    return source


@pytest.fixture
def make_supervisor(registry):
    """Build a supervisor around a launcher."""

    def _make(launcher: EngineLauncher) -> TranscodeSupervisor:
        return TranscodeSupervisor(registry, launcher)

    return _make
