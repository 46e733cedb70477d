"""FFmpeg subprocess helpers.

The working directory given to every run plays the part of ffmpeg's
filesystem: inputs are staged into it under their basename and outputs
land in it under the names the argument vector asks for.
"""

import logging
import re
import shutil
import subprocess
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from vidtrim import timecode

logger = logging.getLogger(__name__)

PROBE_ARGS = ("-hide_banner", "-i")

_TIME_RE = re.compile(r"time=\s*(\d+:\d\d:\d\d(?:\.\d+)?)")

# One run at a time per working directory; ffmpeg runs sharing files clobber each other.
# Entries are [lock, holders_and_waiters] and go away with their last user.
_locks_guard = threading.Lock()
_dir_locks: dict[Path, list] = {}


class FFmpegNotFoundError(RuntimeError):
    pass


def check_ffmpeg(ffmpeg_bin: str = "ffmpeg") -> None:
    """Raise FFmpegNotFoundError if ffmpeg is not on PATH."""
    if shutil.which(ffmpeg_bin) is None:
        raise FFmpegNotFoundError(f"{ffmpeg_bin} not found on PATH")


@contextmanager
def _dir_lock(work_dir: Path) -> Iterator[None]:
    key = Path(work_dir).resolve()
    with _locks_guard:
        entry = _dir_locks.setdefault(key, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _dir_locks[key]


def parse_progress(line: str, total_seconds: float) -> float | None:
    """Fraction of *total_seconds* reached by an ffmpeg status line, if any."""
    m = _TIME_RE.search(line)
    if not m or total_seconds <= 0:
        return None
    return min(timecode.to_seconds(m.group(1)) / total_seconds, 1.0)


def stage_source(source: Path, work_dir: Path) -> Path:
    """Copy *source* into *work_dir* under its basename and return the copy."""
    work_dir.mkdir(parents=True, exist_ok=True)
    target = work_dir / source.name
    if target.resolve() != source.resolve():
        shutil.copy2(source, target)
    return target


def run_ffmpeg(
    args: list[str],
    work_dir: Path,
    ffmpeg_bin: str = "ffmpeg",
    on_progress: Callable[[float], None] | None = None,
    total_seconds: float | None = None,
    check: bool = False,
    overwrite: bool = False,
) -> list[str]:
    """Run ffmpeg in *work_dir* and return its diagnostic lines.

    Status lines are carriage-return separated; they come back as separate
    lines. With *check*, a non-zero exit raises CalledProcessError carrying
    the diagnostics as ``stderr``. *overwrite* adds the global ``-y`` flag
    so reruns replace earlier outputs instead of prompting.
    """
    cmd = [ffmpeg_bin]
    if overwrite:
        cmd.append("-y")
    cmd += args
    logger.debug("Running in %s: %s", work_dir, " ".join(cmd))

    lines: list[str] = []
    # Popen's exit closes the pipe and waits, so the lock outlives the child.
    with _dir_lock(work_dir), subprocess.Popen(
        cmd,
        cwd=work_dir,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    ) as proc:
        try:
            for raw in proc.stderr:
                line = raw.rstrip("\r\n")
                if not line:
                    continue
                lines.append(line)
                if on_progress and total_seconds:
                    frac = parse_progress(line, total_seconds)
                    if frac is not None:
                        on_progress(frac)
        except BaseException:
            logger.warning("Aborting ffmpeg run in %s", work_dir)
            proc.kill()
            raise
        returncode = proc.wait()

    if returncode != 0:
        logger.debug("ffmpeg exited with %d after %d lines", returncode, len(lines))
        if check:
            logger.error("ffmpeg failed (rc=%d): %s", returncode, lines[-1] if lines else "")
            raise subprocess.CalledProcessError(
                returncode, cmd, output=None, stderr="\n".join(lines)
            )
    return lines


def probe_lines(source_name: str, work_dir: Path, ffmpeg_bin: str = "ffmpeg") -> list[str]:
    """Run ffmpeg with only an input and return the input description lines.

    Without an output ffmpeg always exits non-zero, so the exit status says
    nothing; an empty diagnostic stream does.
    """
    lines = run_ffmpeg([*PROBE_ARGS, source_name], work_dir, ffmpeg_bin=ffmpeg_bin)
    if not lines:
        raise RuntimeError(f"ffmpeg probe of {source_name} produced no output")
    return lines
