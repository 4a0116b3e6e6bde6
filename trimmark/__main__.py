"""Entry point for Trimmark - handles CLI arg parsing."""

import argparse
import logging
import sys

from trimmark import __version__
from trimmark.model.project import Anchor


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="trimmark",
        description="Trim videos and burn in a text watermark",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Video file to open (or the download target with --download)",
    )
    parser.add_argument(
        "--auto",
        action="store_true",
        help="Export without opening the GUI",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Suppress all output except errors (implies --auto)",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output MP4 path",
    )
    parser.add_argument("--start", type=float, default=None, help="Trim start (seconds)")
    parser.add_argument("--end", type=float, default=None, help="Trim end (seconds)")
    parser.add_argument("--text", type=str, default=None, help="Watermark text")
    parser.add_argument(
        "--anchor",
        choices=[a.value for a in Anchor],
        default=None,
        help="Watermark corner",
    )
    parser.add_argument(
        "--offset",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Watermark offset from the anchor corner in pixels",
    )
    parser.add_argument(
        "--quality", "-q",
        type=int,
        default=None,
        help="CRF/CQ value, lower is better (default: 18)",
    )
    parser.add_argument(
        "--hwaccel",
        action="store_true",
        default=None,
        help="Encode with NVENC instead of libx264",
    )
    parser.add_argument(
        "--download", "-d",
        type=str,
        default=None,
        metavar="URL",
        help="Download the video with yt-dlp before exporting",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to a YAML job file",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    args = parser.parse_args(argv)
    if args.headless:
        args.auto = True
    return args


def build_job(args: argparse.Namespace):
    """Merge the YAML job file (if any) with CLI flags; CLI flags win."""
    from trimmark.yaml_config import JobConfig, load_job_config

    job = load_job_config(args.config) if args.config else JobConfig()

    overrides = {
        "input_path": args.file,
        "download_url": args.download,
        "output_path": args.output,
        "trim_start": args.start,
        "trim_end": args.end,
        "watermark_text": args.text,
        "watermark_anchor": Anchor(args.anchor) if args.anchor else None,
        "quality": args.quality,
        "hwaccel": args.hwaccel,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(job, name, value)
    if args.offset is not None:
        job.watermark_offset_x, job.watermark_offset_y = args.offset
    return job


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from trimmark.config import Settings

    settings = Settings.load()

    if args.auto:
        from trimmark.app import run_auto_mode

        return run_auto_mode(build_job(args), settings, headless=args.headless)
    else:
        from trimmark.app import run_gui

        return run_gui([args.file] if args.file else None, settings)


if __name__ == "__main__":
    sys.exit(main())
