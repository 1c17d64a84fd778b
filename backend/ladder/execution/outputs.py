"""
Output collection for completed jobs.

The engine writes every rendition into a folder named after the source's
base name, next to the source:

    uploads/<stem>.mov
    uploads/<stem>/<stem> 1080.mp4   (original copy, suffixed with its height)
    uploads/<stem>/<stem> 720.mp4
    ...

Collection is read-only. A missing or empty folder yields no renditions
rather than an error.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from ..jobs.models import Rendition
from .ladder import quality_label

logger = logging.getLogger(__name__)


RENDITION_EXTENSION = ".mp4"

# Trailing height token: "clip 720.mp4" -> 720
HEIGHT_PATTERN = re.compile(r"(\d+)\.mp4$", re.IGNORECASE)

UNKNOWN_QUALITY = "unknown"


def expected_output_folder(source_path: Union[str, Path]) -> Path:
    """Folder the engine writes renditions into for a given source."""
    source = Path(source_path)
    return source.parent / source.stem


def rendition_filename(stem: str, height: int) -> str:
    """Filename the engine uses for one rendition, e.g. "clip 720.mp4"."""
    return f"{stem} {height}{RENDITION_EXTENSION}"


def extract_quality(filename: str) -> str:
    """
    Derive a quality label from a rendition filename.

    Returns:
        "<height>p", or "unknown" when there is no trailing number
    """
    match = HEIGHT_PATTERN.search(filename)
    if not match:
        return UNKNOWN_QUALITY
    return quality_label(int(match.group(1)))


def collect_renditions(output_dir: Optional[Union[str, Path]]) -> List[Rendition]:
    """
    Enumerate rendition files in an output folder.

    Files are listed in name order. Only regular files with the rendition
    container extension are kept; unparseable names are labelled "unknown"
    rather than dropped.

    Args:
        output_dir: Folder to scan (None or missing → no renditions)

    Returns:
        Renditions found, possibly empty
    """
    if output_dir is None:
        return []

    folder = Path(output_dir)
    if not folder.is_dir():
        logger.debug(f"[Outputs] No output folder at {folder}")
        return []

    renditions = [
        Rendition(filename=entry.name, quality_label=extract_quality(entry.name))
        for entry in sorted(folder.iterdir(), key=lambda p: p.name)
        if entry.is_file() and entry.name.lower().endswith(RENDITION_EXTENSION)
    ]

    if not renditions:
        logger.warning(f"[Outputs] Output folder {folder} contains no renditions")

    return renditions
