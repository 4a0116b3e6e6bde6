"""Locate the ffmpeg, ffprobe, and yt-dlp executables."""

from __future__ import annotations

import logging
import shutil
import sys
from pathlib import Path

from trimmark.config import Settings

logger = logging.getLogger(__name__)


def _executable_name(name: str) -> str:
    return f"{name}.exe" if sys.platform == "win32" else name


def _bundle_dirs() -> list[Path]:
    """Directories that may hold binaries shipped alongside the app."""
    dirs = []
    bundle = getattr(sys, "_MEIPASS", None)
    if bundle:
        dirs.append(Path(bundle))
    if getattr(sys, "frozen", False):
        dirs.append(Path(sys.executable).parent)
    dirs.append(Path.cwd() / "bin")
    return dirs


def locate_binary(name: str, settings: Settings | None = None) -> str:
    """Resolve the path to an external tool.

    Order: explicit path in settings, bundled copy, PATH lookup. Falls back
    to the bare name so that a missing tool surfaces as a launch failure.
    """
    override = settings.binary_override(name) if settings else ""
    if override:
        return override

    exe = _executable_name(name)
    for directory in _bundle_dirs():
        candidate = directory / exe
        if candidate.is_file():
            logger.debug("Using bundled %s at %s", name, candidate)
            return str(candidate)

    found = shutil.which(name)
    if found:
        return found
    logger.debug("%s not found on PATH, trusting the bare name", name)
    return name
