"""Incremental parsers for ffmpeg and yt-dlp progress output.

Both parsers are fed raw text chunks as they arrive from a pipe. Chunks
can end mid-line, so each parser keeps the unterminated tail and only
scans segments once their line terminator has been seen.
"""

from __future__ import annotations

import re
import threading
from collections import deque
from enum import Enum
from typing import Callable, Generic, TypeVar

from trimmark.model.requests import DownloadPhase, DownloadProgress

# ffmpeg status lines end with \r, log lines with \n
_LINE_BREAK = re.compile(r"[\r\n]")
_ELAPSED = re.compile(r"time=(\d+:\d{1,2}:\d{1,2}(?:\.\d+)?)")

_DL_PERCENT = re.compile(r"\[download\]\s+(\d{1,3}(?:\.\d+)?)%")
_DL_SPEED = re.compile(r"at\s+(\S+/s)")
_DL_ETA = re.compile(r"ETA\s+(\S+)")
_DL_MERGE = re.compile(r"\[Merger\]")
_DL_POSTPROCESS = re.compile(r"\[ExtractAudio\]|\[Fixup")

# An unterminated segment longer than this is not a progress line
_MAX_PENDING = 8192

T = TypeVar("T")


def parse_timestamp(text: str) -> float | None:
    """Convert ``H:MM:SS(.frac)`` to seconds, or None if it does not parse."""
    parts = text.split(":")
    if len(parts) != 3:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
        seconds = float(parts[2])
    except ValueError:
        return None
    return hours * 3600 + minutes * 60 + seconds


def _split_lines(pending: str, chunk: str) -> tuple[list[str], str]:
    """Join a chunk onto pending text; return complete segments and the new tail."""
    parts = _LINE_BREAK.split(pending + chunk)
    tail = parts.pop()
    if len(tail) > _MAX_PENDING:
        tail = tail[-_MAX_PENDING:]
    return [p for p in parts if p], tail


class ParserState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    HAVE_RATIO = "have_ratio"


class ExportProgressParser:
    """Turns ffmpeg's ``time=HH:MM:SS.xx`` status text into a 0-1 ratio.

    The reported ratio never decreases within one run, whatever order the
    status lines arrive in. With a zero target duration no ratio is ever
    produced.
    """

    def __init__(self, target_duration: float):
        self.target_duration = max(0.0, target_duration)
        self.state = ParserState.IDLE
        self.ratio = 0.0
        self._pending = ""

    def feed(self, chunk: str) -> float | None:
        """Consume a chunk; return the current ratio if it contained a timestamp."""
        if self.state is ParserState.IDLE:
            self.state = ParserState.SCANNING
        lines, self._pending = _split_lines(self._pending, chunk)
        return self._scan(lines)

    def finish(self) -> float | None:
        """Scan whatever unterminated text is left at end of stream."""
        lines, self._pending = [self._pending] if self._pending else [], ""
        return self._scan(lines)

    def _scan(self, lines: list[str]) -> float | None:
        if self.target_duration <= 0:
            return None
        found = False
        for line in lines:
            for match in _ELAPSED.finditer(line):
                seconds = parse_timestamp(match.group(1))
                if seconds is None:
                    continue
                self.ratio = max(self.ratio, min(1.0, seconds / self.target_duration))
                found = True
        if not found:
            return None
        self.state = ParserState.HAVE_RATIO
        return self.ratio


def parse_download_line(line: str) -> DownloadProgress | None:
    """Interpret one yt-dlp output line, or return None if it carries no progress."""
    m = _DL_PERCENT.search(line)
    if m:
        pct = min(100.0, float(m.group(1)))
        speed = _DL_SPEED.search(line)
        eta = _DL_ETA.search(line)
        return DownloadProgress(
            DownloadPhase.DOWNLOADING,
            ratio=pct / 100,
            speed=speed.group(1) if speed else None,
            eta=eta.group(1) if eta else None,
        )
    if _DL_MERGE.search(line):
        return DownloadProgress(DownloadPhase.MERGING)
    if _DL_POSTPROCESS.search(line):
        return DownloadProgress(DownloadPhase.POSTPROCESSING)
    return None


class DownloadProgressParser:
    """Line-oriented parser for ``yt-dlp --newline`` output."""

    def __init__(self):
        self._pending = ""

    def feed(self, chunk: str) -> list[DownloadProgress]:
        lines, self._pending = _split_lines(self._pending, chunk)
        return self._parse(lines)

    def finish(self) -> list[DownloadProgress]:
        lines, self._pending = [self._pending] if self._pending else [], ""
        return self._parse(lines)

    @staticmethod
    def _parse(lines: list[str]) -> list[DownloadProgress]:
        events = []
        for line in lines:
            event = parse_download_line(line)
            if event is not None:
                events.append(event)
        return events


class DiagnosticTail:
    """Keeps the last few non-empty lines of a diagnostic stream."""

    def __init__(self, max_lines: int = 20):
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._pending = ""

    def feed(self, chunk: str) -> None:
        lines, self._pending = _split_lines(self._pending, chunk)
        self._lines.extend(line.strip() for line in lines if line.strip())

    def lines(self) -> list[str]:
        result = list(self._lines)
        if self._pending.strip():
            result.append(self._pending.strip())
        return result[-self._lines.maxlen:]


class ProgressChannel(Generic[T]):
    """Fan-out of progress values to subscribers.

    ``subscribe`` returns an unsubscribe callable that may be called any
    number of times. Unsubscribing only stops delivery; it has no effect on
    the run producing the values.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[int, Callable[[T], None]] = {}
        self._next_id = 0

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        with self._lock:
            token = self._next_id
            self._next_id += 1
            self._subscribers[token] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    def emit(self, value: T) -> None:
        with self._lock:
            subscribers = list(self._subscribers.items())
        for token, callback in subscribers:
            with self._lock:
                if token not in self._subscribers:
                    continue
            callback(value)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
