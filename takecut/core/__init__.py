"""Core business logic module."""

from .models import (
    Cut,
    CutKind,
    TrimWindow,
    Segment,
    ExportFormat,
    ExportSettings,
    Resolution,
    FrameRate,
    MediaInfo,
    TranscriptWord,
    SilenceSpan,
    TimedTranscript,
)
from .cutlist import CutListModel, InvalidRange, UnknownCutError, CutNotRemovableError
from .timeline import TimelineController, DragState, TimelineFrame, build_frame
from .project import Project
from .settings import Settings

__all__ = [
    "Cut",
    "CutKind",
    "TrimWindow",
    "Segment",
    "ExportFormat",
    "ExportSettings",
    "Resolution",
    "FrameRate",
    "MediaInfo",
    "TranscriptWord",
    "SilenceSpan",
    "TimedTranscript",
    "CutListModel",
    "InvalidRange",
    "UnknownCutError",
    "CutNotRemovableError",
    "TimelineController",
    "DragState",
    "TimelineFrame",
    "build_frame",
    "Project",
    "Settings",
]
