"""Tests for the transcript analyzer adapter."""

import json
import tempfile
from pathlib import Path

import pytest

from takecut.analysis.transcript import (
    AnalysisError,
    JsonFileAnalyzer,
    cuts_from_transcript,
    load_timed_transcript,
    parse_timed_transcript,
    seed_ai_cuts,
)
from takecut.core.cutlist import CutListModel
from takecut.core.models import CutKind, SilenceSpan, TimedTranscript, TranscriptWord

SAMPLE = {
    "words": [
        {"word": "So", "start": 0.0, "end": 0.4, "isFiller": False},
        {"word": "um", "start": 0.5, "end": 0.9, "isFiller": True},
        {"word": "welcome", "start": 1.0, "end": 1.5},
    ],
    "silences": [
        {"start": 2.0, "end": 3.25, "duration": 1.25},
    ],
}


class StaticAnalyzer:
    def __init__(self, transcript=None, error=None):
        self.transcript = transcript
        self.error = error

    def analyze(self, media_path):
        if self.error:
            raise self.error
        return self.transcript


class TestParseTimedTranscript:
    """Analyzer JSON parse testleri."""

    def test_parse(self):
        transcript = parse_timed_transcript(SAMPLE)
        assert [w.word for w in transcript.words] == ["So", "um", "welcome"]
        assert [w.word for w in transcript.filler_words] == ["um"]
        assert transcript.silences == [SilenceSpan(2.0, 3.25)]
        assert transcript.text == "So um welcome"

    def test_missing_keys(self):
        transcript = parse_timed_transcript({})
        assert transcript.is_empty

    def test_malformed_entries_skipped(self):
        transcript = parse_timed_transcript({
            "words": [
                {"word": "uh", "start": 1.0},
                {"word": "ah", "start": "x", "end": 2},
                {"word": "er", "start": 3.0, "end": 3.0, "isFiller": True},
                "oops",
                {"word": "ok", "start": 4.0, "end": 4.2},
            ],
            "silences": [{"start": 5, "end": 4}],
        })
        assert [w.word for w in transcript.words] == ["ok"]
        assert transcript.silences == []

    def test_non_dict_payload(self):
        with pytest.raises(AnalysisError):
            parse_timed_transcript(["words"])

    def test_load_from_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "take.transcript.json"
            path.write_text(json.dumps(SAMPLE))
            transcript = load_timed_transcript(path)
            assert len(transcript.words) == 3

    def test_load_invalid_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.json"
            path.write_text("{not json")
            with pytest.raises(AnalysisError):
                load_timed_transcript(path)


class TestCutsFromTranscript:
    """AI cut üretimi."""

    def test_filler_and_silence_cuts(self):
        cuts = cuts_from_transcript(parse_timed_transcript(SAMPLE))
        assert [(c.kind, c.start, c.end) for c in cuts] == [
            (CutKind.FILLER, 0.5, 0.9),
            (CutKind.SILENCE, 2.0, 3.25),
        ]
        assert cuts[0].id == "filler-0.500"
        assert cuts[0].label == "um"
        assert cuts[1].id == "silence-2.000"
        assert cuts[1].label == "Silence (1.2s)"
        assert all(c.enabled for c in cuts)

    def test_clipped_to_duration(self):
        transcript = TimedTranscript(
            words=[TranscriptWord("uh", 9.5, 11.0, is_filler=True)],
            silences=[SilenceSpan(12.0, 13.0)],
        )
        cuts = cuts_from_transcript(transcript, duration=10.0)
        assert [(c.start, c.end) for c in cuts] == [(9.5, 10.0)]

    def test_ids_unique_when_starts_round_together(self):
        """Aynı milisaniyeye yuvarlanan girişler ayrı id alır."""
        transcript = TimedTranscript(
            words=[
                TranscriptWord("um", 1.0001, 1.3, is_filler=True),
                TranscriptWord("uh", 1.0004, 1.5, is_filler=True),
            ],
            silences=[SilenceSpan(4.0, 5.0), SilenceSpan(4.0002, 5.5)],
        )
        cuts = cuts_from_transcript(transcript)
        ids = [c.id for c in cuts]
        assert len(set(ids)) == 4
        assert "filler-1.000" in ids and "filler-1.000-1" in ids
        assert "silence-4.000" in ids and "silence-4.000-1" in ids

        model = CutListModel.create(10.0).with_ai_cuts(cuts)
        toggled = model.set_cut_enabled("filler-1.000-1", False)
        assert [c.enabled for c in toggled.cuts].count(False) == 1
        assert toggled.get_cut("filler-1.000").enabled is True


class TestSeedAiCuts:
    """Graceful degradation testleri."""

    def test_seeds_cuts(self):
        model = CutListModel.create(10.0)
        analyzer = StaticAnalyzer(parse_timed_transcript(SAMPLE))
        seeded = seed_ai_cuts(model, analyzer, Path("take.mp4"))
        assert len(seeded.ai_cuts) == 2
        assert seeded.compute_keep_segments()[0].end == 0.5

    def test_analyzer_failure_keeps_manual_editing(self):
        model = CutListModel.create(10.0).add_manual_cut(1, 2)
        analyzer = StaticAnalyzer(error=RuntimeError("service down"))
        seeded = seed_ai_cuts(model, analyzer, Path("take.mp4"))
        assert seeded.ai_cuts == []
        assert len(seeded.manual_cuts) == 1

    def test_empty_result(self):
        model = CutListModel.create(10.0)
        seeded = seed_ai_cuts(model, StaticAnalyzer(TimedTranscript()), Path("take.mp4"))
        assert seeded.ai_cuts == []

    def test_no_analyzer(self):
        model = CutListModel.create(10.0)
        assert seed_ai_cuts(model, None, Path("take.mp4")).ai_cuts == []


class TestJsonFileAnalyzer:
    """Medya yanındaki transcript dosyası."""

    def test_reads_sidecar(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            media = Path(tmpdir) / "take.mp4"
            (Path(tmpdir) / "take.transcript.json").write_text(json.dumps(SAMPLE))
            transcript = JsonFileAnalyzer().analyze(media)
            assert len(transcript.filler_words) == 1

    def test_missing_sidecar(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(AnalysisError):
                JsonFileAnalyzer().analyze(Path(tmpdir) / "take.mp4")
