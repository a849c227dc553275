"""Run a command and merge its stdout and stderr into one line stream."""

import os
import queue
import shlex
import signal
import subprocess
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO

import structlog

from catlog.errors import ProcessSpawnError, SourceIOError

from .lines import decode_line

log = structlog.get_logger()

STREAM_NAMES = ("stdout", "stderr")
QUEUE_POLL_SECONDS = 0.1


@dataclass
class _Item:
    """One message from a reader thread to the consumer."""

    stream: str
    line: str | None = None  # None marks end of stream
    error: OSError | None = None


class ProcessTailer:
    """Line source over the combined output of a subprocess.

    Each pipe gets its own reader thread so a full stderr buffer can never
    block the child while we wait on stdout (or the reverse). Readers push
    onto one bounded queue. Order within a stream is kept; order across
    streams is whatever order the readers got there.
    """

    def __init__(
        self,
        command: str,
        *,
        shell: bool = True,
        max_queued_lines: int = 1024,
        terminate_timeout: float = 5.0,
    ):
        self.command = command
        self.shell = shell
        self.terminate_timeout = terminate_timeout
        self.returncode: int | None = None

        self._queue: queue.Queue[_Item] = queue.Queue(maxsize=max_queued_lines)
        self._process: subprocess.Popen[bytes] | None = None
        self._readers: list[threading.Thread] = []
        self._closed = threading.Event()

    def start(self) -> None:
        """Spawn the command and start both reader threads."""
        if self._process is not None or self._closed.is_set():
            return

        args: str | list[str] = self.command if self.shell else shlex.split(self.command)
        try:
            self._process = subprocess.Popen(
                args,
                shell=self.shell,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                # Own process group so close() reaches the whole pipeline
                start_new_session=True,
            )
        except (OSError, ValueError) as e:
            raise ProcessSpawnError(f"Cannot run {self.command!r}: {e}") from e

        log.info("Started command", command=self.command, pid=self._process.pid)

        for name, stream in zip(STREAM_NAMES, (self._process.stdout, self._process.stderr)):
            thread = threading.Thread(
                target=self._read_stream,
                args=(name, stream),
                name=f"catlog-{name}",
                daemon=True,
            )
            thread.start()
            self._readers.append(thread)

    def _read_stream(self, name: str, stream: IO[bytes]) -> None:
        """Forward lines from one pipe to the merge queue until EOF."""
        try:
            for raw in iter(stream.readline, b""):
                self._put(_Item(name, decode_line(raw)))
        except OSError as e:
            self._put(_Item(name, error=e))
        finally:
            stream.close()
            self._put(_Item(name))

    def _put(self, item: _Item) -> None:
        # Block while the consumer is behind, but never after close()
        while not self._closed.is_set():
            try:
                self._queue.put(item, timeout=QUEUE_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def __iter__(self) -> Iterator[str]:
        self.start()
        if self._process is None:
            # Closed before it ever started
            return

        open_streams = len(STREAM_NAMES)
        try:
            while open_streams:
                try:
                    item = self._queue.get(timeout=QUEUE_POLL_SECONDS)
                except queue.Empty:
                    if self._closed.is_set():
                        return
                    continue

                if item.error is not None:
                    raise SourceIOError(
                        f"Cannot read {item.stream} of {self.command!r}: {item.error}"
                    ) from item.error
                if item.line is None:
                    open_streams -= 1
                    continue
                yield item.line

            # Both pipes are drained; only now is the exit status meaningful
            self._wait()
        finally:
            self.close()

    def _wait(self) -> None:
        assert self._process is not None
        self.returncode = self._process.wait()
        for thread in self._readers:
            thread.join()
        log.info("Command exited", command=self.command, returncode=self.returncode)

    def close(self) -> None:
        """Terminate the command if it is still running and release its pipes.

        Safe to call from another thread while a consumer is iterating.
        """
        self._closed.set()
        process = self._process
        if process is None or self.returncode is not None:
            return

        if process.poll() is None:
            log.info("Terminating command", command=self.command, pid=process.pid)
            self._signal_group(process, signal.SIGTERM)
            try:
                process.wait(timeout=self.terminate_timeout)
            except subprocess.TimeoutExpired:
                log.warning("Command ignored SIGTERM, killing", pid=process.pid)
                self._signal_group(process, signal.SIGKILL)
                process.wait()

        self.returncode = process.returncode
        for thread in self._readers:
            thread.join(timeout=self.terminate_timeout)

    @staticmethod
    def _signal_group(process: subprocess.Popen[bytes], sig: int) -> None:
        try:
            os.killpg(process.pid, sig)
        except ProcessLookupError:
            pass
