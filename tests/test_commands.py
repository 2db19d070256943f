"""Tests for encoder command building."""

import pytest
from pathlib import Path


def _target(target_id="screen:0", name="Entire screen", x=0, y=0, width=1920, height=1080):
    from timelapse_capture.core.types import CaptureTarget, Geometry, TargetKind

    kind = TargetKind.SCREEN if target_id.startswith("screen:") else TargetKind.WINDOW
    return CaptureTarget(id=target_id, display_name=name, kind=kind,
                         geometry=Geometry(x, y, width, height))


def _value_after(args, flag):
    return args[args.index(flag) + 1]


class TestDriverSelection:
    """Tests for platform to capture driver mapping."""

    @pytest.mark.parametrize("platform,driver", [
        ("win32", "gdigrab"),
        ("darwin", "avfoundation"),
        ("linux", "x11grab"),
        ("freebsd13", "x11grab"),
    ])
    def test_detect_driver(self, platform, driver):
        """Test each platform gets its capture driver; unknown ones get x11grab."""
        from timelapse_capture.backends import detect_driver

        assert detect_driver(platform).value == driver

    def test_builder_fixes_driver_once(self):
        """Test the builder keeps the driver picked at construction."""
        from timelapse_capture.backends import CaptureDriver
        from timelapse_capture.capture.commands import CommandBuilder

        builder = CommandBuilder(platform="darwin")
        assert builder.driver is CaptureDriver.NATIVE_WINDOWING
        assert builder.backend.name == "avfoundation"


class TestEvenDimensions:
    """Tests for frame size normalization."""

    @pytest.mark.parametrize("size,expected", [
        ((1921, 1081), (1920, 1080)),
        ((1280, 720), (1280, 720)),
        ((321, 241), (320, 240)),
        ((319, 1000), (1920, 1080)),
        ((0, 0), (1920, 1080)),
        ((-5, 600), (1920, 1080)),
        ((None, 600), (1920, 1080)),
    ])
    def test_even_dimensions(self, size, expected):
        """Test sizes round down to even and bogus sizes fall back to 1080p."""
        from timelapse_capture.backends import even_dimensions

        width, height = even_dimensions(*size)
        assert (width, height) == expected
        assert width % 2 == 0 and height % 2 == 0
        assert width >= 320 and height >= 240


class TestBuildInvocation:
    """Tests for build_invocation."""

    def test_output_path_is_last(self, tmp_path):
        """Test every driver ends the arguments with the output path."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        out = tmp_path / "nested" / "session.mp4"
        for platform in ("win32", "darwin", "linux"):
            invocation = build_invocation(_target(), platform, out, get_quality_profile("low"))
            assert invocation.args[-1] == str(out)
            assert invocation.output_path == out
        assert out.parent.is_dir()

    def test_quality_tier_applied(self, tmp_path):
        """Test frame rate, preset and CRF come from the tier."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        args = list(build_invocation(_target(), "linux", tmp_path / "a.mp4",
                                     get_quality_profile("high")).args)

        assert _value_after(args, "-framerate") == "30"
        assert _value_after(args, "-preset") == "veryfast"
        assert _value_after(args, "-crf") == "23"
        assert _value_after(args, "-thread_queue_size") == "4096"
        assert _value_after(args, "-pix_fmt") == "yuv420p"
        assert _value_after(args, "-movflags") == "+faststart"
        assert "-vf" not in args

    def test_odd_window_size_is_even(self, tmp_path):
        """Test an odd window size becomes an even -video_size."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        target = _target("window:5", "Editor", width=1281, height=721)
        args = list(build_invocation(target, "linux", tmp_path / "a.mp4",
                                     get_quality_profile("low")).args)
        assert _value_after(args, "-video_size") == "1280x720"

    def test_ultralight_scales_down(self, tmp_path):
        """Test the ultralight tier halves the output resolution."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        args = list(build_invocation(_target(), "linux", tmp_path / "a.mp4",
                                     get_quality_profile("ultralight")).args)
        assert _value_after(args, "-vf") == "scale=960:540"
        assert _value_after(args, "-framerate") == "10"

    def test_global_flags(self, tmp_path):
        """Test banner and log level flags lead the arguments."""
        from timelapse_capture.backends import BuildOptions
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        invocation = build_invocation(_target(), "linux", tmp_path / "a.mp4",
                                      get_quality_profile("low"),
                                      BuildOptions(log_level="warning"),
                                      binary="/opt/ffmpeg")
        assert invocation.binary == "/opt/ffmpeg"
        assert list(invocation.args[:3]) == ["-hide_banner", "-loglevel", "warning"]


class TestGdigrab:
    """Tests for the Windows gdigrab driver."""

    def test_window_by_title(self, tmp_path):
        """Test safe titles are captured by title."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        target = _target("window:9", "Untitled - Notepad", x=40, y=60, width=800, height=600)
        args = list(build_invocation(target, "win32", tmp_path / "a.mp4",
                                     get_quality_profile("low")).args)

        assert _value_after(args, "-f") == "gdigrab"
        assert _value_after(args, "-rtbufsize") == "4000M"
        assert _value_after(args, "-i") == "title=Untitled - Notepad"
        assert "-offset_x" not in args

    @pytest.mark.parametrize("title", [
        'Report "final"',
        "C:\\Users\\me",
        "Résumé.docx - Word",
        "a=b",
    ])
    def test_unsafe_title_by_coordinates(self, tmp_path, title):
        """Test titles gdigrab cannot match are captured by offset."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        target = _target("window:9", title, x=40, y=60, width=800, height=600)
        args = list(build_invocation(target, "win32", tmp_path / "a.mp4",
                                     get_quality_profile("low")).args)

        assert _value_after(args, "-offset_x") == "40"
        assert _value_after(args, "-offset_y") == "60"
        assert _value_after(args, "-i") == "desktop"

    def test_screen_never_by_title(self, tmp_path):
        """Test screens are always captured from the desktop."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        target = _target("screen:1", "Screen 2", x=1920, y=0)
        args = list(build_invocation(target, "win32", tmp_path / "a.mp4",
                                     get_quality_profile("low")).args)

        assert _value_after(args, "-i") == "desktop"
        assert _value_after(args, "-offset_x") == "1920"

    def test_cursor_option(self, tmp_path):
        """Test the cursor flag follows the build options."""
        from timelapse_capture.backends import BuildOptions
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        args = list(build_invocation(_target(), "win32", tmp_path / "a.mp4",
                                     get_quality_profile("low"),
                                     BuildOptions(show_cursor=False)).args)
        assert _value_after(args, "-draw_mouse") == "0"


class TestAVFoundation:
    """Tests for the macOS avfoundation driver."""

    def test_screen_device_index(self, tmp_path):
        """Test screen N maps to device N + 1 with no audio."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        args = list(build_invocation(_target("screen:1", "Screen 2"), "darwin",
                                     tmp_path / "a.mp4", get_quality_profile("low")).args)

        assert _value_after(args, "-f") == "avfoundation"
        assert _value_after(args, "-i") == "2:none"
        assert _value_after(args, "-pixel_format") == "uyvy422"

    def test_window_uses_primary_screen(self, tmp_path):
        """Test windows are recorded through the primary screen device."""
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        args = list(build_invocation(_target("window:3", "Safari"), "darwin",
                                     tmp_path / "a.mp4", get_quality_profile("low")).args)
        assert _value_after(args, "-i") == "1:none"


class TestX11Grab:
    """Tests for the x11grab driver."""

    def test_display_and_offset(self, tmp_path):
        """Test the input locator carries display and origin."""
        from timelapse_capture.backends import BuildOptions
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        target = _target("window:2", "Editor", x=100, y=50, width=1280, height=720)
        args = list(build_invocation(target, "linux", tmp_path / "a.mp4",
                                     get_quality_profile("low"),
                                     BuildOptions(display=":99")).args)

        assert _value_after(args, "-f") == "x11grab"
        assert _value_after(args, "-i") == ":99+100,50"

    def test_negative_origin_clamped(self, tmp_path):
        """Test windows partly off-screen start at zero."""
        from timelapse_capture.backends import BuildOptions
        from timelapse_capture.capture.commands import build_invocation
        from timelapse_capture.core.config import get_quality_profile

        target = _target("window:2", "Editor", x=-8, y=-8, width=1280, height=720)
        args = list(build_invocation(target, "linux", tmp_path / "a.mp4",
                                     get_quality_profile("low"),
                                     BuildOptions(display=":0.0")).args)
        assert _value_after(args, "-i") == ":0.0+0,0"
