"""Media description analyzer: scrapes ffmpeg's input banner.

ffmpeg prints a human-readable description of every input it opens::

    Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'clip.mp4':
      Duration: 00:01:23.45, start: 0.000000, bitrate: 4128 kb/s
        Stream #0:0(und): Video: h264 (High), yuv420p, 1920x1080 [SAR 1:1 DAR 16:9], 4000 kb/s, 30 fps, ...
        Stream #0:1(und): Audio: aac (LC), 44100 Hz, stereo, fltp, 128 kb/s (default)

This is not a stable format, so every field has its own matcher and a
field that does not match is left at its "not found" value instead of
failing the whole probe.
"""

import logging
import re
from typing import Iterable

from vidtrim.models import (
    NOT_FOUND,
    NOT_FOUND_STR,
    AudioStreamInfo,
    MediaDescription,
    VideoStreamInfo,
)

logger = logging.getLogger(__name__)

INPUT_MARKER = "Input #0"
AUDIO_MARKER = ": Audio:"
VIDEO_MARKER = ": Video:"

_CONTAINER_RE = re.compile(r"^Input #0,\s*(.+?), from")
_DURATION_RE = re.compile(r"Duration:\s+(\d\d:\d\d:\d\d\.\d+)")

_AUDIO_CODEC_RE = re.compile(r"Audio: (\w+)")
_SAMPLE_RATE_RE = re.compile(r"(\d+) Hz")
_CHANNELS_RE = re.compile(r" (\d+) channels")
_TRAILING_WORD_RE = re.compile(r", (\w+)$")
_SAMPLE_RATE_FIELD_RE = re.compile(r"\d+ Hz")
_CHANNELS_FIELD_RE = re.compile(r"\d+ channels?")
_LAYOUT_FIELD_RE = re.compile(r"[\w.()]+")

_VIDEO_CODEC_RE = re.compile(r"Video: (\w+)")
_RESOLUTION_RE = re.compile(r"\b(\d{3,4})x(\d{3,4})\b")
_ASPECT_RATIO_RE = re.compile(r"SAR (\d+:\d+ DAR \d+:\d+)")
_BITRATE_RE = re.compile(r", (\d+) kb/s")
_FRAMERATE_RE = re.compile(r", (\d+) fps,")


def _match_str(pattern: re.Pattern, line: str) -> str:
    m = pattern.search(line)
    return m.group(1) if m else NOT_FOUND_STR


def _match_int(pattern: re.Pattern, line: str) -> int:
    m = pattern.search(line)
    return int(m.group(1)) if m else NOT_FOUND


def match_container(line: str) -> str | None:
    m = _CONTAINER_RE.search(line)
    return m.group(1) if m else None


def match_duration(line: str) -> str | None:
    m = _DURATION_RE.search(line)
    return m.group(1) if m else None


def match_channel_layout(line: str) -> str:
    """Return the channel layout token of an audio stream line.

    ffmpeg prints the layout as the field right after the sample rate
    (``44100 Hz, stereo, fltp``). Some builds print an explicit channel
    count there instead, which is skipped. Lines without a sample rate
    fall back to a bare word in the last comma-separated field.
    """
    fields = [f.strip() for f in line.split(",")]
    for i, f in enumerate(fields):
        if not _SAMPLE_RATE_FIELD_RE.fullmatch(f):
            continue
        for candidate in fields[i + 1:]:
            if _CHANNELS_FIELD_RE.fullmatch(candidate):
                continue
            if _LAYOUT_FIELD_RE.fullmatch(candidate):
                return candidate
            break
        break
    return _match_str(_TRAILING_WORD_RE, line)


def parse_audio_stream(line: str) -> AudioStreamInfo:
    return AudioStreamInfo(
        codec=_match_str(_AUDIO_CODEC_RE, line),
        channels=_match_str(_CHANNELS_RE, line),
        channel_layout=match_channel_layout(line),
        sample_rate=_match_int(_SAMPLE_RATE_RE, line),
    )


def parse_video_stream(line: str) -> VideoStreamInfo:
    resolution = _RESOLUTION_RE.search(line)
    return VideoStreamInfo(
        codec=_match_str(_VIDEO_CODEC_RE, line),
        width=int(resolution.group(1)) if resolution else NOT_FOUND,
        height=int(resolution.group(2)) if resolution else NOT_FOUND,
        aspect_ratio=_match_str(_ASPECT_RATIO_RE, line),
        framerate=_match_int(_FRAMERATE_RE, line),
        bitrate=_match_int(_BITRATE_RE, line),
    )


def parse_media_description(lines: Iterable[str] | str) -> MediaDescription:
    """Build a MediaDescription from ffmpeg diagnostic lines.

    Never raises: unrecognized lines are skipped and unmatched fields keep
    their "not found" values. A raw stderr blob is split into lines first.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    duration = ""
    container = ""
    video: list[VideoStreamInfo] = []
    audio: list[AudioStreamInfo] = []

    for raw in lines:
        line = raw.strip()

        if line.startswith(INPUT_MARKER):
            container = match_container(line) or container

        found = match_duration(line)
        if found:
            duration = found

        if AUDIO_MARKER in line:
            audio.append(parse_audio_stream(line))
        elif VIDEO_MARKER in line:
            video.append(parse_video_stream(line))

    logger.debug(
        "Parsed media description: container=%r duration=%r video=%d audio=%d",
        container, duration, len(video), len(audio),
    )
    return MediaDescription(
        duration=duration,
        container=container,
        video_streams=tuple(video),
        audio_streams=tuple(audio),
    )
