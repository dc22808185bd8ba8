"""JSON lines reporter: one event object per line on stdout."""

from __future__ import annotations

import json
import sys
import threading
import time
from typing import Any, Dict

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

# "<Kind> summary: k=v k=v" status lines also produce a summary event.
_SUMMARY_PREFIXES = {
    "optimize summary": "optimize",
    "batch summary": "batch",
    "validation summary": "validation",
}


def _summary_fields(message: str) -> Dict[str, Any] | None:
    head, sep, tail = message.partition(":")
    stype = _SUMMARY_PREFIXES.get(head.strip().lower()) if sep else None
    if stype is None:
        return None
    fields: Dict[str, Any] = {"summary_type": stype, "raw": message}
    for token in tail.split():
        key, eq, value = token.partition("=")
        if eq:
            fields[key] = value
    return fields


class JsonLinesReporter(Reporter):
    """Machine-readable reporter; safe to share between batch workers."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._tasks: Dict[str, TaskRecord] = {}
        self._lock = threading.Lock()

    def _emit(self, event: str, **payload: Any) -> None:
        line = json.dumps(
            {"event": event, "ts": round(time.time(), 3), **payload},
            sort_keys=True,
            default=str,
        )
        with self._lock:
            self.stream.write(line + "\n")

    def _message(self, level: str, message: str, **fields: Any) -> None:
        self._emit("status", message=message, level=level, **fields)

    def start_task(
        self, task_id: str, name: str, total: int | None = None, **meta: Any
    ) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, total, meta=dict(meta))
        self._emit("task_start", id=task_id, name=name, total=total, **meta)

    def advance(self, task_id: str, step: int = 1, **meta: Any) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        rec.meta.update(meta)
        self._emit("task_progress", id=task_id, completed=rec.completed, **meta)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.status = status
        rec.end_time = time.time()
        rec.meta.update(final_meta)
        self._emit(
            "task_end",
            id=task_id,
            name=rec.name,
            status=status.name.lower(),
            completed=rec.completed,
            total=rec.total,
            duration_seconds=round(rec.duration, 3),
            **rec.meta,
        )

    def status(self, message: str, **fields: Any) -> None:
        summary = _summary_fields(message)
        if summary is not None:
            self._emit("summary", **summary, **fields)
        self._message("info", message, **fields)

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() >= level:
            self._message(f"verbose{level}", message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._message("warning", message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._message("error", message, **fields)

    def section(self, title: str) -> None:
        self._emit("section", title=title)

    def flush(self) -> None:
        with self._lock:
            self.stream.flush()
