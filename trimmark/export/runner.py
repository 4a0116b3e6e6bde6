"""Subprocess execution for the external tools, and the ffmpeg export runner.

Runners block until the tool exits, so the UI calls them from a worker
thread. Pipes are drained on reader threads so neither stream can fill
up and stall the child while the caller waits.
"""

from __future__ import annotations

import codecs
import logging
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from typing import IO, Callable

from trimmark.config import Settings
from trimmark.errors import LaunchError, OperationCancelled, TranscodeError
from trimmark.export.binaries import locate_binary
from trimmark.export.command import build_ffmpeg_args
from trimmark.export.progress import DiagnosticTail, ExportProgressParser
from trimmark.model.requests import ExportRequest

logger = logging.getLogger(__name__)

_POLL_INTERVAL = 0.1
_TERMINATE_GRACE = 5.0
_READ_SIZE = 4096


@dataclass
class ProcessResult:
    returncode: int
    diagnostics: list[str] = field(default_factory=list)


def _creation_flags() -> int:
    # Keep console windows from flashing up on Windows
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def _pump(stream: IO[bytes], sinks: list[Callable[[str], None]]) -> None:
    """Read a binary pipe until EOF, passing decoded chunks to each sink."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    try:
        while True:
            data = stream.read1(_READ_SIZE)
            if not data:
                break
            text = decoder.decode(data)
            if text:
                for sink in sinks:
                    sink(text)
        tail = decoder.decode(b"", final=True)
        if tail:
            for sink in sinks:
                sink(tail)
    finally:
        stream.close()


def _stop(proc: subprocess.Popen) -> None:
    proc.terminate()
    try:
        proc.wait(timeout=_TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        logger.warning("Process %s ignored terminate, killing it", proc.pid)
        proc.kill()
        proc.wait()


def run_process(
    argv: list[str],
    tool: str,
    on_stderr: Callable[[str], None] | None = None,
    on_stdout: Callable[[str], None] | None = None,
    cancel: threading.Event | None = None,
) -> ProcessResult:
    """Run a tool to completion, streaming its output to the given callbacks.

    Both callbacks receive decoded text chunks in arrival order. The last
    diagnostic lines (stderr) are returned with the exit code.

    Raises:
        LaunchError: If the executable could not be started.
        OperationCancelled: If ``cancel`` was set before the process exited.
    """
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(tool)
    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE if on_stdout else subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            creationflags=_creation_flags(),
        )
    except OSError as e:
        raise LaunchError(tool, argv[0], e.strerror or str(e)) from e

    tail = DiagnosticTail()
    readers = [
        threading.Thread(
            target=_pump,
            args=(proc.stderr, [tail.feed] + ([on_stderr] if on_stderr else [])),
            name=f"{tool}-stderr",
            daemon=True,
        )
    ]
    if on_stdout:
        readers.append(
            threading.Thread(
                target=_pump,
                args=(proc.stdout, [on_stdout]),
                name=f"{tool}-stdout",
                daemon=True,
            )
        )
    for reader in readers:
        reader.start()

    cancelled = False
    while True:
        try:
            returncode = proc.wait(timeout=_POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                logger.info("Cancelling %s (pid %s)", tool, proc.pid)
                _stop(proc)
                returncode = proc.returncode
                cancelled = True
                break

    for reader in readers:
        # Grandchildren (yt-dlp runs ffmpeg to merge) may hold the pipes open
        reader.join(timeout=_TERMINATE_GRACE if cancelled else None)

    logger.debug("%s exited with code %s", tool, returncode)
    if cancelled:
        raise OperationCancelled(tool)
    return ProcessResult(returncode, tail.lines())


def export_with_progress(
    request: ExportRequest,
    on_progress: Callable[[float], None],
    settings: Settings | None = None,
    cancel: threading.Event | None = None,
) -> None:
    """Trim and watermark ``request.input_path`` into ``request.output_path``.

    ``on_progress`` receives a non-decreasing ratio in [0, 1], and is not
    called until ffmpeg reports a parseable elapsed time.

    Raises:
        LaunchError: If ffmpeg could not be started.
        TranscodeError: If ffmpeg exited with a nonzero status.
        OperationCancelled: If the export was cancelled.
    """
    ffmpeg = locate_binary("ffmpeg", settings)
    args = build_ffmpeg_args(request)
    logger.info("ffmpeg args: %s", subprocess.list2cmdline([ffmpeg] + args))

    parser = ExportProgressParser(request.duration)

    def on_stderr(text: str) -> None:
        ratio = parser.feed(text)
        if ratio is not None:
            on_progress(ratio)

    result = run_process([ffmpeg] + args, "ffmpeg", on_stderr=on_stderr, cancel=cancel)
    ratio = parser.finish()
    if ratio is not None:
        on_progress(ratio)

    if result.returncode != 0:
        logger.warning("ffmpeg failed with code %s", result.returncode)
        raise TranscodeError(result.returncode, result.diagnostics)
