"""
Source resolution probing using ffprobe.

Read-only and non-destructive. Any failure (ffprobe missing, non-zero
exit, unparseable output) is a ProbeError; there is no guessing.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from ..execution.errors import ProbeError


ENV_FFPROBE_PATH = "LADDER_FFPROBE_PATH"

PROBE_TIMEOUT_SECONDS = 60


def find_ffprobe() -> Optional[str]:
    """Locate ffprobe: LADDER_FFPROBE_PATH first, then PATH."""
    override = os.environ.get(ENV_FFPROBE_PATH)
    if override:
        return override if Path(override).is_file() else None
    return shutil.which("ffprobe")


def build_probe_command(ffprobe: str, filepath: str) -> List[str]:
    return [
        ffprobe,
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=height",
        "-of", "default=noprint_wrappers=1:nokey=1",
        filepath,
    ]


def probe_height(filepath: str, ffprobe: Optional[str] = None) -> int:
    """
    Return the vertical resolution of a media file's first video stream.

    Args:
        filepath: Path to the media file
        ffprobe: Explicit ffprobe binary (defaults to find_ffprobe())

    Returns:
        Height in pixels

    Raises:
        ProbeError: If ffprobe is unavailable, fails, or prints no usable height
    """
    ffprobe = ffprobe or find_ffprobe()
    if not ffprobe:
        raise ProbeError(filepath, "ffprobe not found. Please install ffmpeg.")

    try:
        result = subprocess.run(
            build_probe_command(ffprobe, filepath),
            capture_output=True,
            text=True,
            check=True,
            timeout=PROBE_TIMEOUT_SECONDS,
        )
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or "").strip()
        raise ProbeError(
            filepath,
            f"ffprobe failed with exit code {e.returncode}" + (f": {detail}" if detail else ""),
        )
    except subprocess.TimeoutExpired:
        raise ProbeError(filepath, f"ffprobe timed out after {PROBE_TIMEOUT_SECONDS}s")
    except OSError as e:
        raise ProbeError(filepath, f"Could not run ffprobe: {e}")

    # First non-empty line; multi-line output happens with odd containers
    lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
    if not lines:
        raise ProbeError(filepath, "ffprobe returned no video stream height")

    try:
        height = int(lines[0])
    except ValueError:
        raise ProbeError(filepath, f"Unparseable height from ffprobe: {lines[0]!r}")

    if height <= 0:
        raise ProbeError(filepath, f"Invalid height from ffprobe: {height}")

    return height
