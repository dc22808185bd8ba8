"""Reporter backends: plain (default), rich, JSON lines, silent."""

from .base import (
    Reporter,
    TaskStatus,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "Reporter",
    "TaskStatus",
    "get_reporter",
    "set_reporter",
    "set_verbosity",
    "get_verbosity",
    "PlainReporter",
    "JsonLinesReporter",
    "SilentReporter",
    "RichReporter",
    "make_reporter",
]


def make_reporter(kind: str) -> Reporter:
    """Build a reporter by CLI name; ``rich`` degrades to plain off a TTY."""
    import sys

    if kind == "json":
        return JsonLinesReporter()
    if kind == "silent":
        return SilentReporter()
    if kind == "rich" and sys.stderr.isatty():
        return RichReporter()
    return PlainReporter()
