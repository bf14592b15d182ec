"""Follows the gateway log and delivers new lines to a callback."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable

import structlog

logger = structlog.get_logger("clawsetup.log_tailer")

POLL_INTERVAL_S = 0.5

LineCallback = Callable[[str], None]


@dataclass
class LogCursor:
    """Byte offset into the followed file; only ever moves forward."""

    offset: int
    on_line: LineCallback


class TailHandle:
    """Handle to a running tailer thread."""

    def __init__(self, thread: threading.Thread, stop_event: threading.Event, cursor: LogCursor) -> None:
        self._thread = thread
        self._stop_event = stop_event
        self._cursor = cursor

    @property
    def offset(self) -> int:
        return self._cursor.offset

    def stop(self) -> None:
        """Ask the tailer to exit after its current iteration."""
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()


def start_streaming(
    path: Path | str,
    on_line: LineCallback,
    poll_interval_s: float = POLL_INTERVAL_S,
) -> TailHandle:
    """
    Start delivering lines appended to ``path`` from now on.

    The file is created when absent. Only lines written after this call are
    delivered. The tailer runs until ``stop()`` is called, the file is
    removed or a read fails. Nothing deduplicates tailers on the same file.
    """
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.touch(exist_ok=True)

    handle = open(log_path, "rb")
    handle.seek(0, os.SEEK_END)
    cursor = LogCursor(offset=handle.tell(), on_line=on_line)
    stop_event = threading.Event()

    thread = threading.Thread(
        target=_follow,
        args=(log_path, handle, cursor, stop_event, poll_interval_s),
        name=f"log-tailer:{log_path.name}",
        daemon=True,
    )
    thread.start()
    logger.debug("log_tailer_started", path=str(log_path), offset=cursor.offset)
    return TailHandle(thread, stop_event, cursor)


def _follow(
    path: Path,
    handle: BinaryIO,
    cursor: LogCursor,
    stop_event: threading.Event,
    poll_interval_s: float,
) -> None:
    pending = b""
    with handle:
        while not stop_event.is_set():
            try:
                chunk = handle.readline()
            except OSError as exc:
                logger.debug("log_tailer_read_failed", path=str(path), error=str(exc))
                return

            if chunk:
                cursor.offset += len(chunk)
                pending += chunk
                if pending.endswith(b"\n"):
                    cursor.on_line(pending.decode("utf-8", errors="replace").rstrip("\r\n"))
                    pending = b""
                continue

            if not path.exists():
                logger.debug("log_tailer_file_removed", path=str(path))
                return
            stop_event.wait(poll_interval_s)
