"""Tests for the timeline controller and frame builder."""

import numpy as np
import pytest

from takecut.core.cutlist import CutListModel, InvalidRange
from takecut.core.models import Cut, CutKind
from takecut.core.timeline import (
    DragState,
    TimelineController,
    build_frame,
    time_to_x,
    x_to_time,
)


class FakePlayer:
    """PlaybackTarget test double."""

    def __init__(self):
        self.current_time = 0.0
        self.seeks = []
        self.playing = False
        self.pause_calls = 0

    def seek(self, time_sec):
        self.seeks.append(time_sec)
        self.current_time = time_sec

    def play(self):
        self.playing = True

    def pause(self):
        self.playing = False
        self.pause_calls += 1


class FakePeaks:
    def get_peaks_for_range(self, start_time, end_time, num_points):
        values = np.linspace(0.0, 1.0, num_points, dtype=np.float32)
        return -values, values


def make_controller(cuts=(), trim=None, width=1000):
    model = CutListModel.create(10.0, cuts=cuts)
    if trim is not None:
        model = model.set_trim(*trim)
    player = FakePlayer()
    controller = TimelineController(model, player=player, width=width)
    return controller, player


class TestPixelMapping:
    """Zaman <-> piksel dönüşümü."""

    def test_round_trip(self):
        assert time_to_x(2.5, 10.0, 1000) == 250.0
        assert x_to_time(250.0, 10.0, 1000) == 2.5

    def test_x_to_time_clamped(self):
        assert x_to_time(-20, 10.0, 1000) == 0.0
        assert x_to_time(1200, 10.0, 1000) == 10.0

    def test_zero_width(self):
        assert x_to_time(10, 10.0, 0) == 0.0


class TestHandles:
    """Trim tutamacı hit-test."""

    def test_handles_at_edges(self):
        controller, _ = make_controller()
        assert controller.handle_at(0) is DragState.DRAGGING_TRIM_START
        assert controller.handle_at(6) is DragState.DRAGGING_TRIM_START
        assert controller.handle_at(995) is DragState.DRAGGING_TRIM_END
        assert controller.handle_at(500) is None

    def test_outside_tolerance(self):
        controller, _ = make_controller()
        assert controller.handle_at(9) is None

    def test_nearer_handle_wins(self):
        controller, _ = make_controller(trim=(5.0, 5.06))
        assert controller.handle_at(499) is DragState.DRAGGING_TRIM_START
        assert controller.handle_at(504) is DragState.DRAGGING_TRIM_END


class TestPointer:
    """Pointer olayları."""

    def test_click_away_from_handles_seeks(self):
        controller, player = make_controller()
        state = controller.pointer_down(420)
        assert state is DragState.IDLE
        assert player.seeks == [pytest.approx(4.2)]
        assert controller.playhead == pytest.approx(4.2)

    def test_drag_trim_start(self):
        controller, player = make_controller()
        models = []
        controller.add_model_listener(models.append)

        assert controller.pointer_down(3) is DragState.DRAGGING_TRIM_START
        controller.pointer_move(200)
        controller.pointer_up()

        assert controller.model.trim.start == pytest.approx(2.0)
        assert models and models[-1] is controller.model
        assert controller.drag_state is DragState.IDLE
        assert player.seeks == []

    def test_drag_trim_end_clamped(self):
        controller, _ = make_controller()
        controller.pointer_down(1000)
        controller.pointer_move(-50)
        assert controller.model.trim.end == pytest.approx(0.05)

    def test_drag_redraws_even_when_clamped(self):
        controller, _ = make_controller()
        redraws = []
        controller.add_redraw_listener(lambda: redraws.append(1))
        controller.pointer_down(0)
        controller.pointer_move(-100)
        controller.pointer_move(-200)
        assert len(redraws) == 2
        assert controller.model.trim.start == 0.0

    def test_move_without_drag_ignored(self):
        controller, _ = make_controller()
        before = controller.model
        controller.pointer_move(300)
        assert controller.model is before


class TestPlaybackSync:
    """on_time_advanced testleri."""

    def test_clear_position_untouched(self):
        controller, player = make_controller()
        assert controller.on_time_advanced(1.5) == 1.5
        assert player.seeks == []
        assert controller.playhead == 1.5

    def test_before_trim_start_seeks_forward(self):
        controller, player = make_controller(trim=(2.0, 8.0))
        assert controller.on_time_advanced(0.5) == 2.0
        assert player.seeks == [2.0]

    def test_at_trim_end_pauses(self):
        controller, player = make_controller(trim=(2.0, 8.0))
        player.playing = True
        assert controller.on_time_advanced(8.2) == 8.0
        assert player.playing is False
        assert player.seeks == [8.0]

    def test_skips_chained_cuts(self):
        """Art arda cut'lar tek tick'te atlanır."""
        cuts = [
            Cut(2.0, 3.0, CutKind.FILLER, "um", True, "a"),
            Cut(3.0, 4.5, CutKind.SILENCE, "", True, "b"),
        ]
        controller, player = make_controller(cuts=cuts)
        assert controller.on_time_advanced(2.1) == 4.5
        assert player.seeks == [4.5]
        assert player.pause_calls == 0

    def test_disabled_cut_not_skipped(self):
        cuts = [Cut(2.0, 3.0, CutKind.FILLER, "um", False, "a")]
        controller, player = make_controller(cuts=cuts)
        assert controller.on_time_advanced(2.5) == 2.5
        assert player.seeks == []

    def test_cut_reaching_trim_end_pauses(self):
        cuts = [Cut(7.0, 10.0, CutKind.MANUAL, "", True, "m")]
        controller, player = make_controller(cuts=cuts, trim=(0.0, 9.0))
        player.playing = True
        assert controller.on_time_advanced(7.5) == 9.0
        assert player.playing is False

    def test_tick_redraws(self):
        controller, _ = make_controller()
        redraws = []
        controller.add_redraw_listener(lambda: redraws.append(1))
        controller.on_time_advanced(1.0)
        assert redraws == [1]


class TestModelMutations:
    """Kontrolcü üzerinden model değişiklikleri."""

    def test_invalid_manual_cut_leaves_model(self):
        controller, _ = make_controller()
        before = controller.model
        with pytest.raises(InvalidRange):
            controller.add_manual_cut(5, 3)
        assert controller.model is before

    def test_toggle_notifies(self):
        cuts = [Cut(1.0, 2.0, CutKind.FILLER, "um", True, "f")]
        controller, _ = make_controller(cuts=cuts)
        seen = []
        controller.add_model_listener(seen.append)
        controller.toggle_cut("f")
        assert len(seen) == 1
        assert seen[0].get_cut("f").enabled is False

    def test_replace_with_equal_model_is_silent(self):
        controller, _ = make_controller()
        seen = []
        controller.add_model_listener(seen.append)
        controller.replace_model(CutListModel.create(10.0))
        assert seen == []


class TestBuildFrame:
    """Kare üretimi."""

    def test_frame_contents(self):
        cuts = [
            Cut(6.0, 7.0, CutKind.SILENCE, "", True, "s"),
            Cut(1.0, 2.0, CutKind.FILLER, "um", False, "f"),
        ]
        model = CutListModel.create(10.0, cuts=cuts).set_trim(0.5, 9.0)
        frame = build_frame(model, 100, 40, playhead=5.0, peaks=FakePeaks())

        assert [b.cut_id for b in frame.bands] == ["f", "s"]
        assert frame.bands[0].enabled is False
        assert frame.bands[1].x0 == pytest.approx(60.0)
        assert frame.bands[1].x1 == pytest.approx(70.0)
        assert len(frame.dimmed) == 2
        assert frame.dimmed[0] == pytest.approx((0.0, 5.0))
        assert frame.dimmed[1] == pytest.approx((90.0, 100.0))
        assert frame.trim_start_x == pytest.approx(5.0)
        assert frame.trim_end_x == pytest.approx(90.0)
        assert frame.playhead_x == pytest.approx(50.0)
        assert len(frame.peaks_max) == 100

    def test_no_dimming_for_full_trim(self):
        frame = build_frame(CutListModel.create(10.0), 100, 40, playhead=0.0)
        assert frame.dimmed == ()
        assert frame.peaks_min == ()

    def test_deterministic(self):
        model = CutListModel.create(10.0).add_manual_cut(2, 3)
        first = build_frame(model, 300, 40, 1.0, FakePeaks())
        second = build_frame(model, 300, 40, 1.0, FakePeaks())
        assert first == second
