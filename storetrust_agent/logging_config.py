"""JSON log lines on stdout.

Scan code passes ``scan_id`` and ``url`` through ``extra=``; they end up as
top-level keys next to the standard fields.
"""
from __future__ import annotations

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "storetrust-agent"


def build_formatter() -> JsonFormatter:
    return JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"asctime": "ts", "levelname": "level", "name": "logger"},
        static_fields={"service": SERVICE_NAME},
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def setup_logging(log_level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # uvicorn installs its own handlers; route them through ours instead.
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers.clear()
        uv_logger.addHandler(handler)
        uv_logger.propagate = False
