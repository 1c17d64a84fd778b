"""
Quality ladder resolution.

Given a source's vertical resolution, pick the standard rendition heights
to produce. The ladder only ever steps down: the source's own height and
anything above it are never requested.
"""

from typing import List, Tuple


# Standard rendition heights, highest first
STANDARD_HEIGHTS: Tuple[int, ...] = (
    2160,  # 4K
    1440,  # 2K
    1080,  # Full HD
    720,   # HD
    480,   # SD
    360,
    240,
    144,
)

LOWEST_HEIGHT = STANDARD_HEIGHTS[-1]


def resolve_quality_ladder(input_height: int) -> List[int]:
    """
    Return the standard heights strictly below the input height.

    Order is descending. An input at or below the lowest rung yields an
    empty ladder, which is a valid outcome (only the original is kept).

    Args:
        input_height: Source vertical resolution in pixels

    Returns:
        Target heights, highest first

    Raises:
        ValueError: If input_height is not a positive integer
    """
    if isinstance(input_height, bool) or not isinstance(input_height, int):
        raise ValueError(f"Input height must be an integer, got {input_height!r}")
    if input_height <= 0:
        raise ValueError(f"Input height must be positive, got {input_height}")

    return [height for height in STANDARD_HEIGHTS if height < input_height]


def quality_label(height: int) -> str:
    """Label for a rendition height, e.g. 720 -> "720p"."""
    return f"{height}p"
