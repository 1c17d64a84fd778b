"""
Engine progress inference.

The engine prints free-form status lines on stdout, for example:

    Input video resolution: 1080p
    Processing 720p...
    ✓ 720p completed
    Processing 480p...
    ✗ 480p failed

There is no numeric progress channel, so progress is inferred from
these lines with fixed, capped increments:

- a rendition starting ("Processing 720p") adds STARTED_STEP, up to STARTED_CAP
- a rendition finishing ("720p completed" / "720p failed") adds
  FINISHED_STEP, up to FINISHED_CAP

The result is monotonic and bounded, not accurate. 100 is only ever set
by the supervisor when the process exits 0.
"""

import re
from dataclasses import dataclass
from typing import Optional


STARTED_STEP = 15
STARTED_CAP = 85

FINISHED_STEP = 5
FINISHED_CAP = 90

# Matches: "Processing 720p..." (not "Processing subordinate qualities: ...")
STARTED_PATTERN = re.compile(r"Processing (\d+)p")

# Matches: "✓ 720p completed" and "✗ 720p failed"
FINISHED_PATTERN = re.compile(r"(\d+)p (completed|failed)")


@dataclass(frozen=True)
class ProgressUpdate:
    """Progress implied by one recognized engine line."""

    progress: int
    message: str


class ProgressHeuristic:
    """
    Infer job progress from engine stdout lines.

    Usage:
        heuristic = ProgressHeuristic(initial=10)
        for line in engine_stdout:
            update = heuristic.feed(line)
            if update:
                registry.update_progress(job_id, update.progress, update.message)
    """

    def __init__(self, initial: int = 0):
        self._progress = initial

    @property
    def progress(self) -> int:
        return self._progress

    def advance_to(self, progress: int) -> int:
        """Raise the baseline (never lowers it). Returns the current value."""
        self._progress = max(self._progress, progress)
        return self._progress

    def _step(self, step: int, cap: int) -> int:
        return self.advance_to(min(self._progress + step, cap))

    def feed(self, line: str) -> Optional[ProgressUpdate]:
        """
        Interpret a single line of engine output.

        Args:
            line: One stdout line (trailing newline allowed)

        Returns:
            ProgressUpdate if the line was recognized, None otherwise
        """
        finished = FINISHED_PATTERN.search(line)
        if finished:
            height, outcome = finished.group(1), finished.group(2)
            progress = self._step(FINISHED_STEP, FINISHED_CAP)
            return ProgressUpdate(progress, f"{height}p {outcome}")

        started = STARTED_PATTERN.search(line)
        if started:
            progress = self._step(STARTED_STEP, STARTED_CAP)
            return ProgressUpdate(progress, f"Processing {started.group(1)}p quality...")

        return None
