"""Tests for target enumeration and window filtering."""

import pytest
from PIL import Image


def _window(source_id, name, size=(300, 200), geometry=None):
    from timelapse_capture.capture.sources import CaptureSource

    preview = Image.new("RGB", size) if size else None
    return CaptureSource(id=source_id, name=name, preview=preview, geometry=geometry)


def _provider(sources, resolution=(2560, 1440), fail_sources=False, fail_resolution=False):
    from timelapse_capture.capture.sources import SourceProvider

    class FakeProvider(SourceProvider):
        def display_resolution(self):
            if fail_resolution:
                raise RuntimeError("no display")
            return resolution

        def get_sources(self, preview_size, scale):
            if fail_sources:
                raise RuntimeError("capture service unavailable")
            return list(sources)

    return FakeProvider()


class TestExactAppMatch:
    """Tests for whole-word application name matching."""

    @pytest.mark.parametrize("title", [
        "Zoom",
        "zoom",
        "Zoom Meeting",
        "Weekly sync - Zoom",
        "Chat | WhatsApp",
    ])
    def test_matches(self, title):
        """Test titles that really belong to the app."""
        from timelapse_capture.capture.targets import is_exact_app_match

        app = "whatsapp" if "whatsapp" in title.lower() else "zoom"
        assert is_exact_app_match(title, app)

    @pytest.mark.parametrize("title", [
        "ZoomIt",
        "zoom-in.png - Preview",
        "steams",
        "",
    ])
    def test_non_matches(self, title):
        """Test titles that only contain the name as a substring."""
        from timelapse_capture.capture.targets import is_exact_app_match

        assert not is_exact_app_match(title, "zoom")
        assert not is_exact_app_match(title, "teams")


class TestWindowFilters:
    """Tests for the window filter pipeline."""

    def test_untitled_windows_dropped(self):
        """Test windows with empty or blank titles are skipped."""
        from timelapse_capture.capture.targets import filter_window_sources

        kept = filter_window_sources([
            _window("window:1", ""),
            _window("window:2", "   "),
            _window("window:3", "Editor"),
        ])
        assert [s.id for s in kept] == ["window:3"]

    def test_deny_list_is_case_insensitive(self):
        """Test system and self windows never appear."""
        from timelapse_capture.capture.targets import filter_window_sources

        kept = filter_window_sources([
            _window("window:1", "Program Manager"),
            _window("window:2", "Task Manager"),
            _window("window:3", "Settings"),
            _window("window:4", "timelapse-capture"),
            _window("window:5", "Windows Input Experience - Window Host"),
            _window("window:6", "Terminal"),
        ])
        assert [s.id for s in kept] == ["window:6"]

    def test_tiny_previews_dropped(self):
        """Test minimized windows (previews under 20x20) are skipped."""
        from timelapse_capture.capture.targets import filter_window_sources

        kept = filter_window_sources([
            _window("window:1", "Minimized", size=(19, 200)),
            _window("window:2", "No preview", size=None),
            _window("window:3", "Boundary", size=(20, 20)),
        ])
        assert [s.id for s in kept] == ["window:3"]

    def test_duplicate_ids_keep_first(self):
        """Test only the first source with a given id survives."""
        from timelapse_capture.capture.targets import filter_window_sources

        kept = filter_window_sources([
            _window("window:1", "First"),
            _window("window:1", "Second"),
        ])
        assert [s.name for s in kept] == ["First"]

    def test_ambiguous_app_without_real_window(self):
        """Test a title mentioning zoom is dropped when Zoom is not running."""
        from timelapse_capture.capture.targets import filter_window_sources

        kept = filter_window_sources([
            _window("window:1", "ZoomIt"),
            _window("window:2", "Notes"),
        ])
        assert [s.id for s in kept] == ["window:2"]

    def test_ambiguous_app_with_real_window(self):
        """Test related windows are kept once the app has an exact-match window."""
        from timelapse_capture.capture.targets import filter_window_sources

        kept = filter_window_sources([
            _window("window:1", "Zoom Meeting"),
            _window("window:2", "zoom share toolbar"),
        ])
        assert [s.id for s in kept] == ["window:1", "window:2"]

    def test_pipeline_order(self):
        """Test the filter stages run in their documented order."""
        from timelapse_capture.capture.targets import WINDOW_FILTERS

        assert [name for name, _ in WINDOW_FILTERS] == [
            "has_title",
            "not_denied",
            "is_rendering",
            "first_of_id",
            "ambiguous_app_present",
        ]


class TestWindowGeometry:
    """Tests for window size estimation."""

    def test_scaled_from_preview(self):
        """Test the preview is scaled back up."""
        from timelapse_capture.capture.targets import estimate_window_geometry

        geometry = estimate_window_geometry(400, 300, 4, x=15, y=30)
        assert (geometry.x, geometry.y, geometry.width, geometry.height) == (15, 30, 1600, 1200)

    def test_small_estimate_uses_default(self):
        """Test estimates under 640x480 become 1280x720."""
        from timelapse_capture.capture.targets import estimate_window_geometry

        geometry = estimate_window_geometry(100, 300, 4)
        assert (geometry.width, geometry.height) == (1280, 720)


class TestTargetEnumerator:
    """Tests for TargetEnumerator."""

    def test_screens_first_then_windows(self):
        """Test screen:0 leads, followed by other screens and then windows."""
        from timelapse_capture.capture.targets import TargetEnumerator
        from timelapse_capture.core.types import Geometry, TargetKind

        enumerator = TargetEnumerator(_provider([
            _window("window:7", "Editor", size=(320, 180),
                    geometry=Geometry(100, 50, 1280, 720)),
            _window("screen:1", "Screen 2", geometry=Geometry(2560, 0, 1920, 1080)),
            _window("screen:0", "Screen 1"),
        ]))
        targets = enumerator.list_targets()

        assert [t.id for t in targets] == ["screen:0", "screen:1", "window:7"]
        assert targets[0].display_name == "Entire screen"
        assert (targets[0].geometry.width, targets[0].geometry.height) == (2560, 1440)
        assert targets[1].geometry == Geometry(2560, 0, 1920, 1080)

        window = targets[2]
        assert window.kind is TargetKind.WINDOW
        assert window.geometry == Geometry(100, 50, 1280, 720)

    def test_primary_screen_synthesized(self):
        """Test screen:0 is always offered even if the source list lacks it."""
        from timelapse_capture.capture.targets import TargetEnumerator

        targets = TargetEnumerator(_provider([_window("window:1", "Editor")])).list_targets()

        assert targets[0].id == "screen:0"
        assert targets[0].is_screen
        assert [t.id for t in targets] == ["screen:0", "window:1"]

    def test_source_failure_falls_back(self):
        """Test a failing source list yields the single whole-screen target."""
        from timelapse_capture.capture.targets import TargetEnumerator

        targets = TargetEnumerator(_provider([], resolution=(1366, 768),
                                             fail_sources=True)).list_targets()

        assert len(targets) == 1
        assert targets[0].id == "screen:0"
        assert (targets[0].geometry.width, targets[0].geometry.height) == (1366, 768)

    def test_resolution_failure_uses_1080p(self):
        """Test the fallback target is 1920x1080 when the display cannot be read."""
        from timelapse_capture.capture.targets import TargetEnumerator

        targets = TargetEnumerator(_provider([], fail_sources=True,
                                             fail_resolution=True)).list_targets()

        assert len(targets) == 1
        assert (targets[0].geometry.width, targets[0].geometry.height) == (1920, 1080)

    def test_never_empty(self):
        """Test an empty source list still offers the screen."""
        from timelapse_capture.capture.targets import TargetEnumerator

        targets = TargetEnumerator(_provider([])).list_targets()
        assert [t.id for t in targets] == ["screen:0"]

    def test_find_target(self):
        """Test lookup by id, then by name, then fallback to the screen."""
        from timelapse_capture.capture.targets import TargetEnumerator

        enumerator = TargetEnumerator(_provider([
            _window("screen:0", "Screen 1"),
            _window("window:3", "Editor"),
        ]))

        assert enumerator.find_target("window:3").display_name == "Editor"
        assert enumerator.find_target("window:99", "Editor").id == "window:3"
        assert enumerator.find_target("window:99").id == "screen:0"
