"""Video downloads through yt-dlp with phase and progress reporting."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from trimmark.config import Settings
from trimmark.errors import DownloadError
from trimmark.export.binaries import locate_binary
from trimmark.export.progress import DownloadProgressParser
from trimmark.export.runner import run_process
from trimmark.model.requests import DownloadPhase, DownloadProgress, DownloadRequest

logger = logging.getLogger(__name__)

# Must match the container the export pipeline writes
MERGE_FORMAT = "mp4"


def build_download_args(request: DownloadRequest) -> list[str]:
    return [
        "--no-playlist",  # single video even for playlist URLs
        "--newline",  # one progress line per update
        "--merge-output-format", MERGE_FORMAT,
        "-o", request.output_path,
        request.url,
    ]


def download_with_progress(
    request: DownloadRequest,
    on_progress: Callable[[DownloadProgress], None],
    settings: Settings | None = None,
    cancel: threading.Event | None = None,
) -> str:
    """Download ``request.url`` to ``request.output_path``.

    stderr is kept only for the failure message; progress comes from stdout.

    Returns:
        The output path on success.

    Raises:
        LaunchError: If yt-dlp could not be started.
        DownloadError: If yt-dlp exited with a nonzero status.
        OperationCancelled: If the download was cancelled.
    """
    ytdlp = locate_binary("yt-dlp", settings)
    args = build_download_args(request)
    logger.info("Downloading %s to %s", request.url, request.output_path)

    parser = DownloadProgressParser()

    def on_stdout(text: str) -> None:
        for event in parser.feed(text):
            on_progress(event)

    result = run_process([ytdlp] + args, "yt-dlp", on_stdout=on_stdout, cancel=cancel)
    for event in parser.finish():
        on_progress(event)

    if result.returncode != 0:
        logger.warning("yt-dlp failed with code %s", result.returncode)
        raise DownloadError(result.returncode, result.diagnostics)

    on_progress(DownloadProgress(DownloadPhase.COMPLETED))
    return request.output_path
