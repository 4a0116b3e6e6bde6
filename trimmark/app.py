"""QApplication setup and headless export runner."""

from __future__ import annotations

import sys

from trimmark.config import Settings
from trimmark.yaml_config import JobConfig


def run_gui(files: list[str] | None = None, settings: Settings | None = None) -> int:
    """Launch the Trimmark GUI."""
    from PySide6.QtWidgets import QApplication

    from trimmark.ui.main_window import MainWindow

    app = QApplication(sys.argv)
    app.setApplicationName("Trimmark")
    app.setOrganizationName("Trimmark")

    window = MainWindow(settings=settings or Settings.load())
    if files:
        window.open_file(files[0])
    window.show()

    status = app.exec()
    window.settings.save()
    return status


def run_auto_mode(job: JobConfig, settings: Settings | None = None, headless: bool = False) -> int:
    """Download (optionally), probe, and export a single video without the GUI.

    Uses ffmpeg's drawtext for the watermark so no Qt display is needed.

    Returns 0 on success, 1 on failure.
    """
    from trimmark.errors import TrimmarkError
    from trimmark.export.downloader import download_with_progress
    from trimmark.export.ffprobe import extract_metadata
    from trimmark.export.progress import ProgressChannel
    from trimmark.export.runner import export_with_progress
    from trimmark.model.project import Project
    from trimmark.model.requests import DownloadPhase, DownloadRequest, ExportRequest
    from trimmark.yaml_config import apply_job_to_project, apply_job_to_settings

    settings = apply_job_to_settings(job, settings or Settings())
    project = Project(watermark=settings.default_watermark(), export=settings.default_export())

    source = job.input_path
    if job.download_url:
        source = source or "download.mp4"
        downloads = ProgressChannel()
        if not headless:
            def show_download(p) -> None:
                if p.phase is DownloadPhase.DOWNLOADING and p.ratio is not None:
                    extra = f" at {p.speed}" if p.speed else ""
                    print(f"  Downloading: {p.ratio:.0%}{extra}", end="\r")
                else:
                    print(f"\n  {p.phase.value.capitalize()}...")

            downloads.subscribe(show_download)
        try:
            download_with_progress(
                DownloadRequest(job.download_url, source), downloads.emit, settings=settings
            )
        except TrimmarkError as e:
            print(f"Error: download failed: {e}", file=sys.stderr)
            return 1

    if not source:
        print("Error: no input file specified", file=sys.stderr)
        return 1

    # Step 1: Probe
    try:
        meta = extract_metadata(source, settings)
    except (FileNotFoundError, TrimmarkError) as e:
        print(f"Error: failed to read {source}: {e}", file=sys.stderr)
        return 1
    project.set_source(source, meta)
    if not headless:
        size = f"{meta.width}x{meta.height}" if meta.width and meta.height else "unknown size"
        print(f"  Loaded: {source} ({meta.duration or 0:.1f}s, {size})")

    # Step 2: Apply job settings and validate
    apply_job_to_project(job, project)
    if project.trim.duration <= 0:
        print("Error: trim window is empty (end must be after start)", file=sys.stderr)
        return 1
    try:
        request = ExportRequest.from_project(project, font_file=settings.font_file or None)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Step 3: Export
    if not headless:
        print(f"Exporting {request.duration:.1f}s to {request.output_path}...")
    progress = ProgressChannel()
    if not headless:
        progress.subscribe(lambda p: print(f"  Progress: {p:.0%}", end="\r"))
    try:
        export_with_progress(request, progress.emit, settings=settings)
    except TrimmarkError as e:
        print(f"\nError: export failed: {e}", file=sys.stderr)
        return 1

    if not headless:
        print(f"\nDone! Output saved to: {request.output_path}")

    return 0
