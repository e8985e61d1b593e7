"""Tests for the cut list model."""

import math

import pytest

from takecut.core.cutlist import (
    MIN_TRIM_GAP,
    CutListModel,
    CutNotRemovableError,
    InvalidRange,
    UnknownCutError,
)
from takecut.core.models import Cut, CutKind, Segment, TrimWindow, snap_to_duration


def make_model(duration=10.0, cuts=()):
    return CutListModel.create(duration, cuts=cuts)


def filler(start, end, cut_id=None, enabled=True):
    return Cut(start, end, CutKind.FILLER, "um", enabled, cut_id or f"filler-{start}")


def silence(start, end, cut_id=None, enabled=True):
    return Cut(start, end, CutKind.SILENCE, "Silence", enabled, cut_id or f"silence-{start}")


class TestCreate:
    """CutListModel.create testleri."""

    def test_trim_covers_duration(self):
        model = make_model(12.5)
        assert model.trim == TrimWindow(0.0, 12.5)
        assert model.cuts == ()

    @pytest.mark.parametrize("duration", [0.0, -1.0, math.inf, math.nan])
    def test_invalid_duration(self, duration):
        with pytest.raises(InvalidRange):
            CutListModel.create(duration)


class TestKeepSegments:
    """compute_keep_segments senaryoları."""

    def test_scenario_a(self):
        """İki aktif AI cut."""
        model = make_model(10.0, [filler(0, 1), silence(2, 3)])
        assert model.compute_keep_segments() == [Segment(1, 2), Segment(3, 10)]

    def test_scenario_b(self):
        """Trim dışına taşan cut kırpılır."""
        model = make_model(10.0, [filler(0, 3)]).set_trim(2, 8)
        assert model.compute_keep_segments() == [Segment(3, 8)]

    def test_scenario_d_all_disabled(self):
        model = make_model(10.0, [filler(0, 1, enabled=False), silence(2, 3, enabled=False)])
        model = model.set_trim(1.5, 9)
        assert model.compute_keep_segments() == [Segment(1.5, 9)]

    def test_scenario_e_full_coverage(self):
        model = make_model(10.0, [filler(0, 6), silence(5, 10)])
        assert model.compute_keep_segments() == []
        assert model.kept_duration() == 0

    def test_overlapping_cuts_merge(self):
        model = make_model(10.0, [filler(1, 4), silence(3, 5)])
        assert model.removed_segments() == [Segment(1, 5)]
        assert model.compute_keep_segments() == [Segment(0, 1), Segment(5, 10)]

    def test_pure_and_idempotent(self):
        model = make_model(10.0, [filler(1, 2)])
        first = model.compute_keep_segments()
        second = model.compute_keep_segments()
        assert first == second
        assert model.cuts == (filler(1, 2),)

    def test_disabling_never_shrinks_kept_duration(self):
        model = make_model(10.0, [filler(1, 4), silence(3, 5), filler(7, 8, "f7")])
        for cut in model.cuts:
            disabled = model.set_cut_enabled(cut.id, False)
            assert disabled.kept_duration() >= model.kept_duration()

    def test_coverage_identity(self):
        model = make_model(30.0, [filler(1, 4), silence(3, 5), filler(20, 30)])
        model = model.set_trim(2, 25)
        total = model.kept_duration() + model.removed_duration()
        assert abs(total - model.trim.duration) < 1e-9


class TestManualCuts:
    """Manual cut ekleme / silme testleri."""

    def test_add_manual_cut(self):
        model = make_model().add_manual_cut(3, 5)
        cut = model.manual_cuts[0]
        assert (cut.start, cut.end) == (3, 5)
        assert cut.kind is CutKind.MANUAL
        assert cut.enabled is True
        assert cut.id.startswith("manual-")

    def test_scenario_c_reversed_range(self):
        """addManualCut(5, 3) -> InvalidRange, model değişmez."""
        model = make_model(10.0, [filler(0, 1)])
        with pytest.raises(InvalidRange):
            model.add_manual_cut(5, 3)
        assert model.cuts == (filler(0, 1),)

    @pytest.mark.parametrize(
        "start, end",
        [(2, 2), (-1, 2), (8, 10.5), (math.nan, 3), (1, math.inf)],
    )
    def test_invalid_ranges(self, start, end):
        with pytest.raises(InvalidRange):
            make_model().add_manual_cut(start, end)

    def test_cut_until_duration_allowed(self):
        model = make_model().add_manual_cut(8, 10)
        assert model.compute_keep_segments() == [Segment(0, 8)]

    def test_cut_until_rounded_duration(self):
        """Spin box'ın yuvarladığı bitiş değeri süreye çekilince kabul edilir."""
        model = CutListModel.create(10.456)
        with pytest.raises(InvalidRange):
            model.add_manual_cut(9.0, 10.46)

        model = model.add_manual_cut(9.0, snap_to_duration(10.46, model.duration))
        assert model.manual_cuts[0].end == 10.456
        assert model.compute_keep_segments() == [Segment(0, 9.0)]

    def test_manual_ids_unique(self):
        model = make_model().add_manual_cut(1, 2).add_manual_cut(1, 2)
        ids = [c.id for c in model.cuts]
        assert len(set(ids)) == 2

    def test_remove_manual_cut(self):
        model = make_model().add_manual_cut(1, 2)
        cut_id = model.manual_cuts[0].id
        assert model.remove_cut(cut_id).cuts == ()

    def test_remove_ai_cut_rejected(self):
        model = make_model(10.0, [filler(0, 1, "filler-0")])
        with pytest.raises(CutNotRemovableError):
            model.remove_cut("filler-0")

    def test_remove_unknown(self):
        with pytest.raises(UnknownCutError):
            make_model().remove_cut("nope")


class TestToggle:
    """Enable/disable testleri."""

    def test_toggle_flips_enabled(self):
        model = make_model(10.0, [filler(0, 1, "f")])
        toggled = model.toggle_cut("f")
        assert toggled.get_cut("f").enabled is False
        assert toggled.toggle_cut("f").get_cut("f").enabled is True
        # orijinal model değişmedi
        assert model.get_cut("f").enabled is True

    def test_set_cut_enabled_noop_returns_same(self):
        model = make_model(10.0, [filler(0, 1, "f")])
        assert model.set_cut_enabled("f", True) is model

    def test_toggle_unknown(self):
        with pytest.raises(UnknownCutError):
            make_model().toggle_cut("missing")

    def test_with_ai_cuts_keeps_manual(self):
        model = make_model(10.0, [filler(0, 1)]).add_manual_cut(4, 5)
        replaced = model.with_ai_cuts([silence(7, 8)])
        assert [c.kind for c in replaced.ai_cuts] == [CutKind.SILENCE]
        assert len(replaced.manual_cuts) == 1


class TestTrim:
    """Trim sıkıştırma testleri."""

    def test_trim_start_clamped_to_zero(self):
        assert make_model().set_trim_start(-3).trim.start == 0.0

    def test_trim_start_keeps_min_gap(self):
        model = make_model().set_trim_end(5).set_trim_start(9)
        assert model.trim.start == pytest.approx(5 - MIN_TRIM_GAP)

    def test_trim_end_clamped_to_duration(self):
        assert make_model().set_trim_end(50).trim.end == 10.0

    def test_trim_end_keeps_min_gap(self):
        model = make_model().set_trim_start(4).set_trim_end(1)
        assert model.trim.end == pytest.approx(4 + MIN_TRIM_GAP)

    def test_unchanged_trim_returns_same_model(self):
        model = make_model()
        assert model.set_trim_start(0) is model

    def test_set_trim_too_small(self):
        with pytest.raises(InvalidRange):
            make_model().set_trim(5, 5.01)
