"""Tests for the export plan compiler."""

import pytest

from takecut.core.models import (
    ExportFormat,
    ExportSettings,
    FrameRate,
    Resolution,
    Segment,
)
from takecut.export.plan import (
    PALETTE_NAME,
    EmptyPlan,
    EncoderOptions,
    MultiSegmentPlan,
    SingleSegmentPlan,
    compile_plan,
)

MP4_720 = ExportSettings(ExportFormat.MP4, Resolution.HD_720, FrameRate.FPS_30)
GIF_480 = ExportSettings(ExportFormat.GIF, Resolution.SD_480, FrameRate.FPS_15)


def value_after(args, flag):
    return args[list(args).index(flag) + 1]


class TestCompilePlan:
    """Plan şekli testleri."""

    def test_empty(self):
        plan = compile_plan([], MP4_720)
        assert isinstance(plan, EmptyPlan)
        assert plan.invocations("input.webm", "output.mp4") == []
        assert plan.duration == 0.0

    def test_single(self):
        plan = compile_plan([Segment(1.0, 3.5)], MP4_720)
        assert isinstance(plan, SingleSegmentPlan)
        assert plan.duration == pytest.approx(2.5)

    def test_multi(self):
        plan = compile_plan([Segment(1, 2), Segment(3, 10)], MP4_720)
        assert isinstance(plan, MultiSegmentPlan)
        assert [op.index for op in plan.extracts] == [0, 1]
        assert plan.duration == pytest.approx(8.0)

    def test_rejects_overlapping_segments(self):
        with pytest.raises(ValueError):
            compile_plan([Segment(1, 4), Segment(3, 5)], MP4_720)

    def test_rejects_empty_segment(self):
        with pytest.raises(ValueError):
            compile_plan([Segment(2, 2)], MP4_720)


class TestMp4Invocations:
    """MP4 komut satırı testleri."""

    def test_single_segment_args(self):
        plan = compile_plan([Segment(1.0, 3.5)], MP4_720)
        (invocation,) = plan.invocations("input.webm", "output.mp4")
        args = list(invocation.args)

        assert args[:6] == ["-ss", "1.000", "-t", "2.500", "-i", "input.webm"]
        assert value_after(args, "-filter_complex") == (
            "[0:v]scale=1280:720:force_original_aspect_ratio=decrease,"
            "pad=1280:720:(ow-iw)/2:(oh-ih)/2,setsar=1,fps=30[outv]"
        )
        assert "0:a:0" in args
        assert value_after(args, "-c:v") == "libx264"
        assert value_after(args, "-crf") == "23"
        assert value_after(args, "-pix_fmt") == "yuv420p"
        assert value_after(args, "-c:a") == "aac"
        assert value_after(args, "-movflags") == "+faststart"
        assert args[-1] == "output.mp4"
        assert invocation.duration == pytest.approx(2.5)

    def test_multi_segment_concat(self):
        plan = compile_plan([Segment(1, 2), Segment(3, 10)], MP4_720)
        (invocation,) = plan.invocations("input.webm", "output.mp4")
        args = list(invocation.args)

        assert args.count("-i") == 2
        assert args[:12] == [
            "-ss", "1.000", "-t", "1.000", "-i", "input.webm",
            "-ss", "3.000", "-t", "7.000", "-i", "input.webm",
        ]
        graph = value_after(args, "-filter_complex")
        assert graph.startswith("[0:v][0:a][1:v][1:a]concat=n=2:v=1:a=1[cv][ca];[cv]scale=")
        assert graph.endswith("[outv]")
        assert value_after(args, "-map") == "[outv]"
        assert "[ca]" in args

    def test_no_audio_source(self):
        plan = compile_plan([Segment(1, 2), Segment(3, 4)], MP4_720, has_audio=False)
        (invocation,) = plan.invocations("input.webm", "output.mp4")
        args = list(invocation.args)

        graph = value_after(args, "-filter_complex")
        assert "concat=n=2:v=1:a=0[cv]" in graph
        assert "[0:a]" not in graph
        assert "-an" in args
        assert "-c:a" not in args
        assert "[ca]" not in args

    def test_resolution_and_fps(self):
        settings = ExportSettings(ExportFormat.MP4, Resolution.FHD_1080, FrameRate.FPS_24)
        plan = compile_plan([Segment(0, 1)], settings)
        graph = value_after(plan.invocations("in.mp4", "out.mp4")[0].args, "-filter_complex")
        assert "scale=1920:1080:" in graph
        assert "pad=1920:1080:" in graph
        assert graph.endswith("fps=24[outv]")

    def test_encoder_options(self):
        options = EncoderOptions(crf=18, preset="slow", audio_bitrate="192k")
        plan = compile_plan([Segment(0, 1)], MP4_720, options=options)
        args = plan.invocations("in.webm", "out.mp4")[0].args
        assert value_after(args, "-crf") == "18"
        assert value_after(args, "-preset") == "slow"
        assert value_after(args, "-b:a") == "192k"


class TestGifInvocations:
    """İki geçişli GIF testleri."""

    def test_two_passes(self):
        plan = compile_plan([Segment(0, 2), Segment(4, 5)], GIF_480)
        palette, encode = plan.invocations("input.webm", "output.gif")

        assert palette.output == PALETTE_NAME
        assert list(palette.args)[-1] == PALETTE_NAME
        palette_graph = value_after(palette.args, "-filter_complex")
        assert "concat=n=2:v=1:a=0[cv]" in palette_graph
        assert "fps=15,scale=480:-1:flags=lanczos" in palette_graph
        assert palette_graph.endswith("palettegen=stats_mode=diff[pal]")

        encode_args = list(encode.args)
        assert encode_args.count("-i") == 3
        assert value_after(encode_args, "-i") == "input.webm"
        assert PALETTE_NAME in encode_args
        encode_graph = value_after(encode_args, "-filter_complex")
        assert "[x][2:v]paletteuse=dither=bayer:bayer_scale=5" in encode_graph
        assert value_after(encode_args, "-loop") == "0"
        assert encode_args[-1] == "output.gif"

    def test_gif_ignores_audio(self):
        plan = compile_plan([Segment(0, 2)], GIF_480, has_audio=True)
        for invocation in plan.invocations("input.webm", "output.gif"):
            assert "aac" not in invocation.args
            assert "0:a:0" not in invocation.args

    def test_single_segment_palette_input_index(self):
        plan = compile_plan([Segment(0, 2)], GIF_480)
        _, encode = plan.invocations("input.webm", "output.gif")
        assert "[x][1:v]paletteuse" in value_after(encode.args, "-filter_complex")
