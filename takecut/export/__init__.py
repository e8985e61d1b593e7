"""Export module - plan compiler and runner for MP4/GIF output."""

from .plan import (
    EncoderOptions,
    ExportPlan,
    EmptyPlan,
    SingleSegmentPlan,
    MultiSegmentPlan,
    Invocation,
    compile_plan,
)
from .empty import empty_output
from .exporter import Exporter, ExportResult, ExportInProgressError, ProgressTracker

__all__ = [
    "EncoderOptions",
    "ExportPlan",
    "EmptyPlan",
    "SingleSegmentPlan",
    "MultiSegmentPlan",
    "Invocation",
    "compile_plan",
    "empty_output",
    "Exporter",
    "ExportResult",
    "ExportInProgressError",
    "ProgressTracker",
]
