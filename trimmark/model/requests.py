"""Immutable per-run requests and progress records handed to the runners."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from trimmark.model.project import ExportSpec, Project, WatermarkSpec


@dataclass(frozen=True)
class ExportRequest:
    input_path: str
    output_path: str
    start_sec: float
    end_sec: float
    watermark: WatermarkSpec = field(default_factory=WatermarkSpec)
    export: ExportSpec = field(default_factory=ExportSpec)
    watermark_image: str | None = None  # pre-rendered PNG, enables overlay
    font_file: str | None = None

    @property
    def duration(self) -> float:
        return max(0.0, self.end_sec - self.start_sec)

    @classmethod
    def from_project(
        cls,
        project: Project,
        watermark_image: str | None = None,
        font_file: str | None = None,
    ) -> "ExportRequest":
        """Snapshot the project; later edits to it do not affect the request.

        Raises:
            ValueError: If no source is loaded or no output path is set.
        """
        if not project.source_path:
            raise ValueError("No source video loaded")
        if not project.export.output_path:
            raise ValueError("No output path chosen")
        return cls(
            input_path=project.source_path,
            output_path=project.export.output_path,
            start_sec=project.trim.start,
            end_sec=project.trim.end,
            watermark=replace(project.watermark),
            export=replace(project.export),
            watermark_image=watermark_image,
            font_file=font_file,
        )


@dataclass(frozen=True)
class DownloadRequest:
    url: str
    output_path: str


class DownloadPhase(str, Enum):
    DOWNLOADING = "downloading"
    MERGING = "merging"
    POSTPROCESSING = "postprocessing"
    COMPLETED = "completed"


@dataclass(frozen=True)
class DownloadProgress:
    phase: DownloadPhase
    ratio: float | None = None  # only set while downloading
    speed: str | None = None
    eta: str | None = None
