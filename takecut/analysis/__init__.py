"""Transcript analysis adapter module."""

from .transcript import (
    AnalysisError,
    TranscriptAnalyzer,
    JsonFileAnalyzer,
    parse_timed_transcript,
    load_timed_transcript,
    cuts_from_transcript,
    seed_ai_cuts,
)

__all__ = [
    "AnalysisError",
    "TranscriptAnalyzer",
    "JsonFileAnalyzer",
    "parse_timed_transcript",
    "load_timed_transcript",
    "cuts_from_transcript",
    "seed_ai_cuts",
]
