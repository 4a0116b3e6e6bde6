"""Shared test fixtures: fake external tools, requests, offscreen setup."""

import os
import sys
import textwrap

import pytest

from trimmark.model.project import Anchor, ExportSpec, WatermarkSpec
from trimmark.model.requests import ExportRequest

# Force offscreen rendering for headless CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture()
def fake_tool(tmp_path):
    """Factory writing an executable Python script that stands in for a tool.

    The body runs with ``sys``, ``time``, and ``json`` imported and
    ``emit(stream, text)`` available to write and flush a chunk.
    """

    def make(name: str, body: str) -> str:
        path = tmp_path / name
        header = textwrap.dedent(
            f"""\
            #!{sys.executable}
            import json, sys, time

            def emit(stream, text):
                stream.write(text)
                stream.flush()

            """
        )
        path.write_text(header + textwrap.dedent(body))
        path.chmod(0o755)
        return str(path)

    return make


def make_request(**overrides) -> ExportRequest:
    """ExportRequest matching the default project, trimmed to [2.0, 7.5]."""
    fields = dict(
        input_path="/videos/in.mp4",
        output_path="/videos/out.mp4",
        start_sec=2.0,
        end_sec=7.5,
        watermark=WatermarkSpec(
            text="© Watermark",
            anchor=Anchor.BOTTOM_RIGHT,
            offset_x=24,
            offset_y=24,
        ),
        export=ExportSpec(use_hardware_accel=False, quality=18),
    )
    fields.update(overrides)
    return ExportRequest(**fields)


@pytest.fixture()
def request_factory():
    return make_request
