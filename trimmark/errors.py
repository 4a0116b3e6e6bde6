"""Exceptions raised by the probe, export, and download runners."""

from __future__ import annotations


class TrimmarkError(RuntimeError):
    """Base class for all Trimmark failures."""


class LaunchError(TrimmarkError):
    """An external tool could not be started (missing, not executable, ...)."""

    def __init__(self, tool: str, binary: str, reason: str):
        self.tool = tool
        self.binary = binary
        self.reason = reason
        super().__init__(f"{tool} could not be started ({binary}): {reason}")


class ProcessFailedError(TrimmarkError):
    """An external tool started but exited with a nonzero status.

    ``diagnostics`` holds the last lines the tool wrote to its diagnostic
    stream before exiting, oldest first.
    """

    def __init__(self, tool: str, exit_code: int, diagnostics: list[str] | None = None):
        self.tool = tool
        self.exit_code = exit_code
        self.diagnostics = list(diagnostics or [])
        message = f"{tool} failed with code {exit_code}"
        if self.diagnostics:
            message += f": {self.diagnostics[-1]}"
        super().__init__(message)


class TranscodeError(ProcessFailedError):
    def __init__(self, exit_code: int, diagnostics: list[str] | None = None):
        super().__init__("ffmpeg", exit_code, diagnostics)


class DownloadError(ProcessFailedError):
    def __init__(self, exit_code: int, diagnostics: list[str] | None = None):
        super().__init__("yt-dlp", exit_code, diagnostics)


class MetadataParseError(TrimmarkError):
    """ffprobe output was not valid JSON."""


class OperationCancelled(TrimmarkError):
    """The run was cancelled on request; not a tool failure."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"{tool} was cancelled")
