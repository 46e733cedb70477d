"""Unit tests for ffutil — progress parsing and subprocess wrappers."""

import subprocess
import sys
import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from vidtrim import ffutil
from vidtrim.ffutil import (
    FFmpegNotFoundError,
    check_ffmpeg,
    parse_progress,
    run_ffmpeg,
    stage_source,
)


def _fake_proc(lines: list[str], returncode: int = 0) -> MagicMock:
    proc = MagicMock(stderr=iter(lines), wait=MagicMock(return_value=returncode))
    proc.__enter__.return_value = proc
    proc.__exit__.return_value = False
    return proc


class _RecordingPopen(subprocess.Popen):
    """Real Popen that remembers every process it starts."""

    instances: list = []

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        _RecordingPopen.instances.append(self)


# ---------------------------------------------------------------------------
# parse_progress (pure parsing, no subprocess)
# ---------------------------------------------------------------------------

class TestParseProgress:
    def test_status_line(self):
        line = "frame=   50 fps= 12 q=28.0 size=N/A time=00:00:02.00 bitrate=N/A speed=0.48x"
        assert parse_progress(line, 8) == 0.25

    def test_clamped(self):
        assert parse_progress("time=00:01:00.00", 10) == 1.0

    def test_no_status(self):
        assert parse_progress("Opening 'out.mpd.tmp' for writing", 10) is None

    def test_zero_total(self):
        assert parse_progress("time=00:00:01.00", 0) is None


# ---------------------------------------------------------------------------
# run_ffmpeg / probe_lines (mocked subprocess)
# ---------------------------------------------------------------------------

class TestRunFFmpeg:
    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_collects_lines(self, mock_popen, tmp_path):
        mock_popen.return_value = _fake_proc(["first\n", "\n", "second\r\n"])
        lines = run_ffmpeg(["-i", "a.mp4"], tmp_path)
        assert lines == ["first", "second"]

        cmd = mock_popen.call_args[0][0]
        assert cmd == ["ffmpeg", "-i", "a.mp4"]
        assert mock_popen.call_args.kwargs["cwd"] == tmp_path

    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_overwrite_prepends_global_flag(self, mock_popen, tmp_path):
        mock_popen.return_value = _fake_proc([])
        run_ffmpeg(["-i", "a.mp4", "out.gif"], tmp_path, ffmpeg_bin="/opt/ffmpeg", overwrite=True)
        cmd = mock_popen.call_args[0][0]
        assert cmd == ["/opt/ffmpeg", "-y", "-i", "a.mp4", "out.gif"]

    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_reports_progress(self, mock_popen, tmp_path):
        mock_popen.return_value = _fake_proc([
            "frame=1 time=00:00:01.00 speed=1x\n",
            "frame=2 time=00:00:02.00 speed=1x\n",
        ])
        seen: list[float] = []
        run_ffmpeg(["-i", "a.mp4"], tmp_path, on_progress=seen.append, total_seconds=4)
        assert seen == [0.25, 0.5]

    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_failure_with_check_raises(self, mock_popen, tmp_path):
        mock_popen.return_value = _fake_proc(["Unknown encoder 'libx264'\n"], returncode=1)
        with pytest.raises(subprocess.CalledProcessError) as exc:
            run_ffmpeg(["-i", "a.mp4"], tmp_path, check=True)
        assert "Unknown encoder" in exc.value.stderr

    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_failure_without_check_returns_lines(self, mock_popen, tmp_path):
        mock_popen.return_value = _fake_proc(["oops\n"], returncode=1)
        assert run_ffmpeg(["-i", "a.mp4"], tmp_path) == ["oops"]

    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_callback_error_kills_process(self, mock_popen, tmp_path):
        proc = _fake_proc(["frame=1 time=00:00:01.00\n", "frame=2 time=00:00:02.00\n"])
        mock_popen.return_value = proc

        def broken(frac: float) -> None:
            raise BrokenPipeError

        with pytest.raises(BrokenPipeError):
            run_ffmpeg(["-i", "a.mp4"], tmp_path, on_progress=broken, total_seconds=4)
        proc.kill.assert_called_once()
        proc.__exit__.assert_called_once()


# ---------------------------------------------------------------------------
# run_ffmpeg against real child processes (the Python interpreter stands in
# for the ffmpeg binary)
# ---------------------------------------------------------------------------

SLOW_STATUS_SCRIPT = (
    "import sys, time; "
    "sys.stderr.write('frame=1 time=00:00:01.00\\n'); sys.stderr.flush(); "
    "time.sleep(30)"
)

MARKER_SCRIPT = (
    "import time; "
    "open('runs.log', 'a').write('start\\n'); "
    "time.sleep(0.2); "
    "open('runs.log', 'a').write('end\\n')"
)


class TestRunFFmpegProcesses:
    def test_child_reaped_when_callback_raises(self, tmp_path):
        def broken(frac: float) -> None:
            raise BrokenPipeError

        with patch.object(ffutil.subprocess, "Popen", _RecordingPopen):
            with pytest.raises(BrokenPipeError):
                run_ffmpeg(
                    ["-c", SLOW_STATUS_SCRIPT],
                    tmp_path,
                    ffmpeg_bin=sys.executable,
                    on_progress=broken,
                    total_seconds=10,
                )

        proc = _RecordingPopen.instances[-1]
        assert proc.returncode is not None
        assert proc.stderr.closed
        assert tmp_path.resolve() not in ffutil._dir_locks

    def test_runs_on_same_directory_do_not_overlap(self, tmp_path):
        errors: list[BaseException] = []

        def worker():
            try:
                run_ffmpeg(["-c", MARKER_SCRIPT], tmp_path, ffmpeg_bin=sys.executable, check=True)
            except BaseException as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert errors == []
        assert (tmp_path / "runs.log").read_text().split() == ["start", "end", "start", "end"]

    def test_lock_table_emptied_after_run(self, tmp_path):
        run_ffmpeg(["-c", "pass"], tmp_path, ffmpeg_bin=sys.executable)
        assert tmp_path.resolve() not in ffutil._dir_locks


class TestProbeLines:
    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_ignores_exit_status(self, mock_popen, tmp_path, probe_lines):
        mock_popen.return_value = _fake_proc([line + "\n" for line in probe_lines], returncode=1)
        assert ffutil.probe_lines("clip.mp4", tmp_path) == probe_lines
        cmd = mock_popen.call_args[0][0]
        assert cmd == ["ffmpeg", "-hide_banner", "-i", "clip.mp4"]

    @patch("vidtrim.ffutil.subprocess.Popen")
    def test_no_output_raises(self, mock_popen, tmp_path):
        mock_popen.return_value = _fake_proc([], returncode=1)
        with pytest.raises(RuntimeError, match="produced no output"):
            ffutil.probe_lines("clip.mp4", tmp_path)


class TestCheckFFmpeg:
    @patch("vidtrim.ffutil.shutil.which", return_value=None)
    def test_missing(self, mock_which):
        with pytest.raises(FFmpegNotFoundError, match="not found on PATH"):
            check_ffmpeg("ffmpeg")

    @patch("vidtrim.ffutil.shutil.which", return_value="/usr/bin/ffmpeg")
    def test_present(self, mock_which):
        check_ffmpeg("ffmpeg")


class TestStageSource:
    def test_copies_under_basename(self, tmp_path: Path):
        src = tmp_path / "in" / "clip.mp4"
        src.parent.mkdir()
        src.write_bytes(b"VIDEO")
        work = tmp_path / "work"

        staged = stage_source(src, work)

        assert staged == work / "clip.mp4"
        assert staged.read_bytes() == b"VIDEO"

    def test_already_staged(self, tmp_path: Path):
        src = tmp_path / "clip.mp4"
        src.write_bytes(b"VIDEO")
        assert stage_source(src, tmp_path) == src
