"""Line sources: where the monitored text comes from.

Three unrelated classes satisfy the LineSource protocol:

- StreamSource: a finite stream, normally piped stdin
- FileTailer: a file followed for appended lines
- ProcessTailer: stdout and stderr of a spawned command

Sources are single-use. Iterate once, then call close() (which is also how
another thread cancels an infinite source).
"""

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO, Protocol

from catlog.errors import SourceIOError

from .file_tailer import DEFAULT_POLL_INTERVAL, FileTailer
from .lines import decode_line
from .process_tailer import ProcessTailer


class LineSource(Protocol):
    """A lazy, ordered, non-restartable sequence of lines."""

    def __iter__(self) -> Iterator[str]:
        """Yield lines until the source ends; raise SourceIOError on read failure."""
        ...

    def close(self) -> None:
        """Stop producing lines and release the underlying resource."""
        ...


class StreamSource:
    """Line source over an already-open binary stream."""

    def __init__(self, stream: BinaryIO, name: str = "stdin"):
        self.stream = stream
        self.name = name
        self._closed = False

    def __iter__(self) -> Iterator[str]:
        try:
            for raw in self.stream:
                if self._closed:
                    return
                yield decode_line(raw)
        except OSError as e:
            raise SourceIOError(f"Cannot read {self.name}: {e}") from e

    def close(self) -> None:
        # The stream belongs to the caller (usually sys.stdin); just stop reading
        self._closed = True


def open_source(
    follow: str | Path | None = None,
    command: str | None = None,
    stdin: BinaryIO | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> LineSource:
    """Pick the line source for the selected ingestion mode.

    Args:
        follow: File to follow (tail -f mode)
        command: Shell command whose output to monitor (exec mode)
        stdin: Stream for pipe mode (default: sys.stdin's binary buffer)
        poll_interval: Seconds between polls in follow mode

    Raises:
        ValueError: If both follow and command are given
    """
    if follow is not None and command is not None:
        raise ValueError("Choose either a file to follow or a command to run, not both")

    if follow is not None:
        return FileTailer(follow, poll_interval=poll_interval)
    if command is not None:
        return ProcessTailer(command)
    return StreamSource(stdin if stdin is not None else sys.stdin.buffer)
