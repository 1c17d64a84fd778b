"""
Engine execution: quality ladder, progress inference, output collection
and supervision of the external engine process.
"""

from .errors import (
    ExecutionError,
    ConfigurationError,
    EngineLaunchError,
    EngineExecutionError,
    ProbeError,
    ArtifactMissingError,
)
from .ladder import STANDARD_HEIGHTS, resolve_quality_ladder, quality_label
from .outputs import collect_renditions, expected_output_folder, extract_quality
from .progress import ProgressHeuristic, ProgressUpdate
from .launcher import EngineLauncher, EngineProcess, SubprocessLauncher
from .supervisor import TranscodeSupervisor

__all__ = [
    # Errors
    "ExecutionError",
    "ConfigurationError",
    "EngineLaunchError",
    "EngineExecutionError",
    "ProbeError",
    "ArtifactMissingError",
    # Ladder
    "STANDARD_HEIGHTS",
    "resolve_quality_ladder",
    "quality_label",
    # Outputs
    "collect_renditions",
    "expected_output_folder",
    "extract_quality",
    # Progress
    "ProgressHeuristic",
    "ProgressUpdate",
    # Engine
    "EngineLauncher",
    "EngineProcess",
    "SubprocessLauncher",
    "TranscodeSupervisor",
]
