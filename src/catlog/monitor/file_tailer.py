"""Follow a growing file, like ``tail -f``."""

import os
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

import structlog

from catlog.errors import SourceIOError

from .lines import decode_line

log = structlog.get_logger()

DEFAULT_POLL_INTERVAL = 0.1


class FileTailer:
    """Line source that drains a file and then polls it for appended lines.

    Only complete lines are emitted: a trailing line without its newline is
    left unconsumed and picked up by a later poll once the newline arrives.
    """

    def __init__(self, path: str | Path, poll_interval: float = DEFAULT_POLL_INTERVAL):
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self.path = Path(path)
        self.poll_interval = poll_interval

        # Byte offset of the first unconsumed byte
        self._cursor = 0
        self._file: BinaryIO | None = None
        self._stop_event = threading.Event()

    def _open(self) -> BinaryIO:
        if self._file is None:
            try:
                self._file = open(self.path, "rb")
            except OSError as e:
                raise SourceIOError(f"Cannot open {self.path}: {e}") from e
            log.debug("Opened file for following", path=str(self.path))
        return self._file

    def _read_new_lines(self) -> Iterator[str]:
        """Yield complete lines appended since the cursor, one read at a time.

        The cursor moves past each line before it is yielded, so memory use is
        bounded by the longest line rather than the size of the backlog.
        """
        f = self._open()
        try:
            size = os.fstat(f.fileno()).st_size
            if size < self._cursor:
                log.warning(
                    "File truncated, reading from the start",
                    path=str(self.path),
                    size=size,
                    cursor=self._cursor,
                )
                self._cursor = 0
            f.seek(self._cursor)
        except OSError as e:
            raise SourceIOError(f"Cannot read {self.path}: {e}") from e

        while True:
            try:
                raw = f.readline()
            except OSError as e:
                raise SourceIOError(f"Cannot read {self.path}: {e}") from e

            if not raw.endswith(b"\n"):
                # EOF, or a partial line left for a later poll
                return
            self._cursor += len(raw)
            yield decode_line(raw)

    def poll(self) -> list[str]:
        """Read whatever was appended since the last poll and return complete lines."""
        return list(self._read_new_lines())

    def __iter__(self) -> Iterator[str]:
        try:
            yield from self._read_new_lines()
            # wait() returns True once close() is called
            while not self._stop_event.wait(self.poll_interval):
                yield from self._read_new_lines()
        finally:
            self._release()

    def close(self) -> None:
        """Stop following and release the file handle."""
        self._stop_event.set()

    def _release(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            log.debug("Stopped following file", path=str(self.path))
