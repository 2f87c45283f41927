"""Polling tail of a growing log file."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import BinaryIO, Protocol


class LogHandler(Protocol):
    """Receiver of the lines read from a watched log."""

    def detect_player_name(self, line: str) -> None: ...

    def process_log_line(self, line: str) -> None: ...

    def append_output(self, line: str) -> None: ...


def _split_lines(data: bytes) -> list[str]:
    if not data:
        return []
    chunks = data.split(b"\n")
    if chunks[-1] == b"":
        chunks.pop()
    return [
        (chunk[:-1] if chunk.endswith(b"\r") else chunk).decode("utf-8", errors="replace")
        for chunk in chunks
    ]


class LogTailer:
    """Reads a log file once, then only what is appended to it."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).resolve()
        self._file: BinaryIO | None = self.path.open("rb")
        self.offset = 0

    def __enter__(self) -> LogTailer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def read_existing(self) -> list[str]:
        """Read every line from the current position to the end of the file."""
        if self._file is None:
            return []
        data = self._file.read()
        self.offset = self._file.tell()
        return _split_lines(data)

    def read_new(self) -> list[str]:
        """Return lines appended since the last read, coping with truncation and replacement."""
        try:
            size = self.path.stat().st_size
        except OSError:
            self.close()
            self._reopen()
            return []

        if self._file is None:
            self._reopen()
            if self._file is None:
                return []

        if size < self.offset:
            self.offset = 0
        if size <= self.offset:
            return []
        self._file.seek(self.offset)
        data = self._file.read()
        self.offset = self._file.tell()
        return _split_lines(data)

    def _reopen(self) -> None:
        try:
            self._file = self.path.open("rb")
        except OSError:
            self._file = None
        self.offset = 0

    def close(self) -> None:
        """Close the underlying file."""
        if self._file is not None:
            self._file.close()
            self._file = None


def watch_log_file(
    path: str | Path,
    handler: LogHandler,
    poll_interval: float = 0.5,
    stop: threading.Event | None = None,
) -> None:
    """Scan a log for the player name, then feed new lines to the handler until stopped."""
    try:
        tailer = LogTailer(path)
    except OSError as exc:
        handler.append_output(f"failed to open log file: {exc}")
        return

    stop = stop if stop is not None else threading.Event()
    with tailer:
        for line in tailer.read_existing():
            handler.detect_player_name(line)
        while not stop.wait(poll_interval):
            for line in tailer.read_new():
                handler.detect_player_name(line)
                handler.process_log_line(line)