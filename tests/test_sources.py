"""Tests for the line sources."""

import io
import shlex
import sys
import threading
import time
from pathlib import Path

import pytest

from catlog.errors import ProcessSpawnError, SourceIOError
from catlog.monitor import FileTailer, ProcessTailer, StreamSource, open_source


def collect_until(lines: list[str], count: int, timeout: float = 5.0) -> None:
    """Wait until a background consumer has collected `count` lines."""
    deadline = time.monotonic() + timeout
    while len(lines) < count and time.monotonic() < deadline:
        time.sleep(0.01)


def python_command(code: str) -> str:
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)}"


class TestStreamSource:
    """Tests for piped input."""

    def test_yields_lines_in_order(self):
        source = StreamSource(io.BytesIO(b"start\nerror 500 occurred\nok 200\n"))
        assert list(source) == ["start", "error 500 occurred", "ok 200"]

    def test_last_line_without_newline(self):
        assert list(StreamSource(io.BytesIO(b"a\nb"))) == ["a", "b"]

    def test_crlf_stripped(self):
        assert list(StreamSource(io.BytesIO(b"a\r\nb\r\n"))) == ["a", "b"]

    def test_invalid_utf8_replaced(self):
        assert list(StreamSource(io.BytesIO(b"bad \xff 500\n"))) == ["bad � 500"]

    def test_close_stops_iteration(self):
        source = StreamSource(io.BytesIO(b"a\nb\nc\n"))
        seen = []
        for line in source:
            seen.append(line)
            source.close()
        assert seen == ["a"]

    def test_read_error_is_source_error(self):
        class Broken(io.RawIOBase):
            def readable(self):
                return True

            def readinto(self, b):
                raise OSError("device gone")

        with pytest.raises(SourceIOError):
            list(StreamSource(io.BufferedReader(Broken())))


class TestFileTailer:
    """Tests for follow mode."""

    def test_initial_drain(self, tmp_path: Path):
        path = tmp_path / "app.log"
        path.write_bytes(b"one\ntwo\n")

        tailer = FileTailer(path)
        assert tailer.poll() == ["one", "two"]
        assert tailer.poll() == []

    def test_appended_lines_emitted_once(self, tmp_path: Path):
        path = tmp_path / "app.log"
        path.write_bytes(b"one\n")
        tailer = FileTailer(path)
        assert tailer.poll() == ["one"]

        with open(path, "ab") as f:
            f.write(b"two\nthree\nfour\n")

        assert tailer.poll() == ["two", "three", "four"]
        assert tailer.poll() == []

    def test_partial_line_waits_for_newline(self, tmp_path: Path):
        path = tmp_path / "app.log"
        path.write_bytes(b"done\nhalf")
        tailer = FileTailer(path)

        assert tailer.poll() == ["done"]
        assert tailer.poll() == []

        with open(path, "ab") as f:
            f.write(b" a line 404\n")

        assert tailer.poll() == ["half a line 404"]

    def test_truncation_restarts_from_zero(self, tmp_path: Path):
        path = tmp_path / "app.log"
        path.write_bytes(b"a fairly long first line\nand a second one\n")
        tailer = FileTailer(path)
        assert len(tailer.poll()) == 2

        path.write_bytes(b"new 500\n")

        assert tailer.poll() == ["new 500"]
        assert tailer.poll() == []

    def test_backlog_read_line_by_line(self, tmp_path: Path):
        """The cursor advances per line, so a partly consumed backlog resumes cleanly."""
        path = tmp_path / "app.log"
        path.write_bytes(b"".join(b"line %d\n" % i for i in range(5000)) + b"tail")
        tailer = FileTailer(path)

        lines = tailer._read_new_lines()
        assert next(lines) == "line 0"
        assert tailer._cursor == len(b"line 0\n")
        lines.close()

        rest = tailer.poll()
        assert rest[0] == "line 1"
        assert rest[-1] == "line 4999"
        assert len(rest) == 4999
        assert tailer._cursor == path.stat().st_size - len(b"tail")

    @pytest.mark.parametrize("interval", [0, -0.5])
    def test_non_positive_poll_interval_rejected(self, tmp_path: Path, interval: float):
        with pytest.raises(ValueError):
            FileTailer(tmp_path / "app.log", poll_interval=interval)

    def test_missing_file(self, tmp_path: Path):
        tailer = FileTailer(tmp_path / "missing.log")
        with pytest.raises(SourceIOError):
            tailer.poll()

    def test_follow_until_closed(self, tmp_path: Path):
        path = tmp_path / "app.log"
        path.write_bytes(b"existing\n")
        tailer = FileTailer(path, poll_interval=0.01)

        lines: list[str] = []

        def consume() -> None:
            for line in tailer:
                lines.append(line)

        thread = threading.Thread(target=consume, daemon=True)
        thread.start()
        collect_until(lines, 1)

        with open(path, "ab") as f:
            f.write(b"GET / 200\nGET /x 404\n")
        collect_until(lines, 3)

        tailer.close()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert lines == ["existing", "GET / 200", "GET /x 404"]


class TestProcessTailer:
    """Tests for exec mode."""

    def test_stdout_order_kept(self):
        tailer = ProcessTailer("printf 'A\\nB\\nC\\n'")
        assert list(tailer) == ["A", "B", "C"]
        assert tailer.returncode == 0

    def test_stderr_only(self):
        tailer = ProcessTailer("echo 'oops 500' 1>&2")
        assert list(tailer) == ["oops 500"]

    def test_both_streams_merged(self):
        tailer = ProcessTailer("echo out1; echo err1 1>&2; echo out2; echo err2 1>&2")
        lines = list(tailer)

        assert sorted(lines) == ["err1", "err2", "out1", "out2"]
        assert [line for line in lines if line.startswith("out")] == ["out1", "out2"]
        assert [line for line in lines if line.startswith("err")] == ["err1", "err2"]

    def test_exit_status_after_drain(self):
        tailer = ProcessTailer("echo last words; exit 3")
        assert list(tailer) == ["last words"]
        assert tailer.returncode == 3

    def test_heavy_output_on_both_streams(self):
        """Filling both pipe buffers must not deadlock the child."""
        code = (
            "import sys\n"
            "for i in range(20000):\n"
            "    print(f'out {i}')\n"
            "    print(f'err {i}', file=sys.stderr)\n"
        )
        tailer = ProcessTailer(python_command(code), max_queued_lines=16)
        lines = list(tailer)

        out = [line for line in lines if line.startswith("out")]
        err = [line for line in lines if line.startswith("err")]
        assert out == [f"out {i}" for i in range(20000)]
        assert err == [f"err {i}" for i in range(20000)]
        assert tailer.returncode == 0

    def test_spawn_error(self):
        tailer = ProcessTailer("/definitely/not/a/real/binary --flag", shell=False)
        with pytest.raises(ProcessSpawnError):
            list(tailer)

    def test_spawn_error_is_source_error(self):
        assert issubclass(ProcessSpawnError, SourceIOError)

    def test_close_terminates_running_command(self):
        tailer = ProcessTailer("echo ready; sleep 60")

        lines: list[str] = []

        def consume() -> None:
            for line in tailer:
                lines.append(line)

        thread = threading.Thread(target=consume, daemon=True)
        thread.start()
        collect_until(lines, 1)

        tailer.close()
        thread.join(timeout=10)

        assert not thread.is_alive()
        assert lines == ["ready"]
        assert tailer.returncode is not None and tailer.returncode != 0

    def test_stop_iterating_early(self):
        tailer = ProcessTailer("echo one; echo two; sleep 60")
        for line in tailer:
            assert line == "one"
            break
        tailer.close()
        assert tailer.returncode is not None

    def test_close_before_start(self):
        tailer = ProcessTailer("echo should not run")
        tailer.close()

        assert list(tailer) == []
        assert tailer._process is None
        assert tailer.returncode is None


class TestOpenSource:
    """Tests for source selection."""

    def test_stdin_default(self):
        stream = io.BytesIO(b"x\n")
        source = open_source(stdin=stream)
        assert isinstance(source, StreamSource)
        assert list(source) == ["x"]

    def test_follow(self, tmp_path: Path):
        source = open_source(follow=tmp_path / "a.log", poll_interval=0.5)
        assert isinstance(source, FileTailer)
        assert source.poll_interval == 0.5

    def test_exec(self):
        assert isinstance(open_source(command="true"), ProcessTailer)

    def test_follow_and_exec_conflict(self, tmp_path: Path):
        with pytest.raises(ValueError):
            open_source(follow=tmp_path / "a.log", command="true")
