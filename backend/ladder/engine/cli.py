#!/usr/bin/env python3
"""
ladder-engine - reference transcoding engine.

Usage:
    ladder-engine <video_path>

Writes every rendition into a folder named after the source's base name,
next to the source:

    <dir>/<stem>/<stem> <height>.mp4

The original is copied in first, suffixed with its probed height, then
one ffmpeg scale pass runs per rung of the quality ladder.

stdout is the progress channel read by the service:
    Input video resolution: 1080p
    Processing 720p...
    ✓ 720p completed   /   ✗ 720p failed

Exit Codes:
- 0: Done (individual rendition failures are reported, not fatal)
- 1: Usage error, missing source, probe failure or unusable output folder
"""

import argparse
import logging
import os
import shutil
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional

from ..execution.errors import ProbeError
from ..execution.ladder import resolve_quality_ladder
from ..execution.outputs import expected_output_folder, rendition_filename
from .probe import probe_height

logger = logging.getLogger(__name__)


ENV_FFMPEG_PATH = "LADDER_FFMPEG_PATH"

EXIT_OK = 0
EXIT_ERROR = 1


def find_ffmpeg() -> Optional[str]:
    """Locate ffmpeg: LADDER_FFMPEG_PATH first, then PATH."""
    override = os.environ.get(ENV_FFMPEG_PATH)
    if override:
        return override if Path(override).is_file() else None
    return shutil.which("ffmpeg")


def build_scale_command(ffmpeg: str, source: Path, output: Path, height: int) -> List[str]:
    # -2 keeps the width even while preserving aspect ratio
    return [
        ffmpeg, "-y",
        "-i", str(source),
        "-vf", f"scale=-2:{height}",
        "-c:a", "copy",
        str(output),
    ]


def _say(message: str = "") -> None:
    # Flushed per line: the service reads this pipe while we run
    print(message, flush=True)


def _fail(message: str) -> int:
    print(message, file=sys.stderr, flush=True)
    return EXIT_ERROR


def process_video(source: Path, ffmpeg: Optional[str] = None, ffprobe: Optional[str] = None) -> int:
    """
    Produce the rendition ladder for one source file.

    Returns:
        Process exit code
    """
    start_time = time.monotonic()
    stem = source.stem
    folder = expected_output_folder(source)

    try:
        folder.mkdir(exist_ok=True)
    except OSError as e:
        return _fail(f"Could not create output folder {folder}: {e}")

    try:
        input_height = probe_height(str(source), ffprobe=ffprobe)
    except ProbeError as e:
        return _fail(f"Could not determine input video height. {e}")

    _say(f"Input video resolution: {input_height}p")

    original_out = folder / rendition_filename(stem, input_height)
    shutil.copyfile(source, original_out)
    _say(f"Original copied as: {original_out}")

    ladder = resolve_quality_ladder(input_height)
    if not ladder:
        _say(f"No subordinate qualities to process for {input_height}p video.")
        return EXIT_OK

    _say("Processing subordinate qualities: " + " ".join(f"{h}p" for h in ladder))

    ffmpeg = ffmpeg or find_ffmpeg()
    if not ffmpeg:
        return _fail("ffmpeg not found. Please install ffmpeg or set LADDER_FFMPEG_PATH.")

    for height in ladder:
        out_file = folder / rendition_filename(stem, height)
        _say(f"Processing {height}p...")

        cmd = build_scale_command(ffmpeg, source, out_file, height)
        logger.debug(f"[Engine] Executing: {' '.join(cmd)}")
        result = subprocess.run(cmd, capture_output=True, text=True)

        if result.returncode == 0:
            _say(f"✓ {height}p completed")
        else:
            tail = (result.stderr or "").strip().splitlines()[-5:]
            logger.error(f"[Engine] ffmpeg failed for {height}p (exit {result.returncode}): " + " | ".join(tail))
            _say(f"✗ {height}p failed")

    elapsed = time.monotonic() - start_time
    _say()
    _say(f"Processing complete. Files saved in folder: {folder}")
    _say(f"Total processing time: {elapsed:.2f} seconds")
    return EXIT_OK


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ladder-engine",
        description="Transcode a video into a ladder of lower resolutions.",
    )
    parser.add_argument("video_path", help="Source video file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = _parse_args(argv)
    except SystemExit as e:
        # argparse exits 2 on usage errors; the engine contract uses 1
        return EXIT_ERROR if e.code else EXIT_OK

    # stdout is reserved for progress lines
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.INFO,
        format="%(asctime)s [%(levelname)-5.5s] %(message)s",
    )

    source = Path(args.video_path)
    if not source.is_file():
        return _fail(f"Error: File does not exist: {args.video_path}")

    return process_video(source)


if __name__ == "__main__":
    sys.exit(main())
