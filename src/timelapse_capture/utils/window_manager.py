#!/usr/bin/env python3
"""
Window Manager - cross-platform listing of visible application windows.

Supports:
- macOS: CoreGraphics window list via osascript (built-in)
- Linux: wmctrl (requires installation)
- Windows: ctypes with Win32 API (built-in)
"""

import logging
import shutil
import subprocess
import sys
from typing import List, Optional

from ..core.types import Geometry, WindowInfo

logger = logging.getLogger(__name__)


class WindowManagerError(Exception):
    """Base exception for window manager errors."""
    pass


class DependencyMissingError(WindowManagerError):
    """Required dependency is not installed."""
    pass


# =============================================================================
# Platform Detection
# =============================================================================

def get_platform(platform: Optional[str] = None) -> str:
    """Map a ``sys.platform`` value to macos/linux/windows/unknown."""
    platform = platform or sys.platform
    if platform == "darwin":
        return "macos"
    elif platform.startswith("linux"):
        return "linux"
    elif platform == "win32":
        return "windows"
    else:
        return "unknown"


def check_dependencies() -> dict:
    """Check if window listing is available on the current platform."""
    platform = get_platform()

    if platform == "linux":
        if not shutil.which("wmctrl"):
            return {
                "platform": platform,
                "available": False,
                "missing": ["wmctrl"],
                "message": "Linux: Missing tools: wmctrl. Install with: sudo apt install wmctrl",
            }
        return {
            "platform": platform,
            "available": True,
            "missing": [],
            "message": "Linux: wmctrl available",
        }

    if platform in ("macos", "windows"):
        backend = "osascript" if platform == "macos" else "Win32 API (ctypes)"
        return {
            "platform": platform,
            "available": True,
            "missing": [],
            "message": f"{platform}: Using built-in {backend}",
        }

    return {
        "platform": platform,
        "available": False,
        "missing": ["unknown platform"],
        "message": f"Unsupported platform: {sys.platform}",
    }


def _parse_bounds(text: str) -> Optional[Geometry]:
    try:
        x, y, w, h = (int(float(part)) for part in text.split(",")[:4])
    except ValueError:
        return None
    return Geometry(x=x, y=y, width=w, height=h)


# =============================================================================
# macOS Backend
# =============================================================================

_MACOS_CG_SCRIPT = '''
use framework "Foundation"
use framework "AppKit"
use scripting additions

set windowList to ""
set theWindows to current application's CGWindowListCopyWindowInfo((current application's kCGWindowListOptionOnScreenOnly), 0)

repeat with i from 1 to count of theWindows
    set theWindow to item i of (theWindows as list)
    set ownerName to ""
    set windowName to ""
    set windowID to 0
    set ownerPID to 0
    set boundsStr to "0,0,0,0"
    try
        set ownerName to theWindow's kCGWindowOwnerName as text
    end try
    try
        set windowName to theWindow's kCGWindowName as text
    end try
    try
        set windowID to theWindow's kCGWindowNumber as integer
    end try
    try
        set ownerPID to theWindow's kCGWindowOwnerPID as integer
    end try
    try
        set theBounds to theWindow's kCGWindowBounds
        set boundsStr to ((theBounds's X as integer) as text) & "," & ((theBounds's Y as integer) as text) & "," & ((theBounds's Width as integer) as text) & "," & ((theBounds's Height as integer) as text)
    end try
    set windowList to windowList & windowID & "||" & ownerPID & "||" & ownerName & "||" & windowName & "||" & boundsStr & linefeed
end repeat

return windowList
'''


def _macos_list_windows() -> List[WindowInfo]:
    """List on-screen windows using CGWindowListCopyWindowInfo."""
    try:
        result = subprocess.run(
            ["osascript", "-e", _MACOS_CG_SCRIPT],
            capture_output=True, text=True, timeout=15
        )
    except subprocess.TimeoutExpired:
        raise WindowManagerError("Timeout listing windows")

    if result.returncode != 0 and result.stderr:
        if "not allowed" in result.stderr.lower():
            raise WindowManagerError(
                "Permission denied. Grant screen recording access:\n"
                "System Settings -> Privacy & Security -> Screen Recording"
            )
        raise WindowManagerError(f"AppleScript error: {result.stderr}")

    windows = []
    for line in result.stdout.strip().split("\n"):
        parts = line.strip().split("||")
        if len(parts) < 5:
            continue
        window_id, pid_str, app_name, title, bounds_str = parts[:5]
        windows.append(WindowInfo(
            title=title or app_name,
            window_id=window_id,
            pid=int(pid_str) if pid_str.isdigit() else None,
            bounds=_parse_bounds(bounds_str),
            app_name=app_name,
        ))
    return windows


# =============================================================================
# Linux Backend
# =============================================================================

def _linux_list_windows() -> List[WindowInfo]:
    """List windows on Linux using wmctrl."""
    deps = check_dependencies()
    if not deps["available"]:
        raise DependencyMissingError(deps["message"])

    try:
        result = subprocess.run(
            ["wmctrl", "-l", "-G", "-p"],
            capture_output=True, text=True, timeout=5
        )
    except subprocess.TimeoutExpired:
        raise WindowManagerError("Timeout listing windows")

    windows = []
    for line in result.stdout.strip().split("\n"):
        parts = line.split(None, 8)
        if len(parts) < 9:
            continue
        try:
            x, y, w, h = (int(v) for v in parts[3:7])
        except ValueError:
            continue
        windows.append(WindowInfo(
            title=parts[8],
            window_id=parts[0],
            pid=int(parts[2]) if parts[2] != "-1" else None,
            bounds=Geometry(x=x, y=y, width=w, height=h),
        ))
    return windows


# =============================================================================
# Windows Backend
# =============================================================================

def _windows_list_windows() -> List[WindowInfo]:
    """List visible top-level windows using the Win32 API."""
    import ctypes
    from ctypes import wintypes

    user32 = ctypes.windll.user32
    WNDENUMPROC = ctypes.WINFUNCTYPE(wintypes.BOOL, wintypes.HWND, wintypes.LPARAM)

    windows = []

    def enum_callback(hwnd, lParam):
        if not user32.IsWindowVisible(hwnd):
            return True
        length = user32.GetWindowTextLengthW(hwnd)
        buffer = ctypes.create_unicode_buffer(length + 1)
        user32.GetWindowTextW(hwnd, buffer, length + 1)

        rect = wintypes.RECT()
        user32.GetWindowRect(hwnd, ctypes.byref(rect))
        pid = wintypes.DWORD()
        user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))

        windows.append(WindowInfo(
            title=buffer.value,
            window_id=str(hwnd),
            pid=pid.value,
            bounds=Geometry(
                x=rect.left,
                y=rect.top,
                width=rect.right - rect.left,
                height=rect.bottom - rect.top,
            ),
        ))
        return True

    user32.EnumWindows(WNDENUMPROC(enum_callback), 0)
    return windows


# =============================================================================
# Public API
# =============================================================================

def list_windows() -> List[WindowInfo]:
    """List all visible windows on the system.

    Blank titles are kept; filtering is the caller's job.
    """
    platform = get_platform()

    if platform == "macos":
        windows = _macos_list_windows()
    elif platform == "linux":
        windows = _linux_list_windows()
    elif platform == "windows":
        windows = _windows_list_windows()
    else:
        raise WindowManagerError(f"Unsupported platform: {platform}")

    logger.debug(f"Found {len(windows)} native windows on {platform}")
    return windows
