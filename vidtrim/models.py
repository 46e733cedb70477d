"""Shared data types used across VidTrim."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator

# Marker for a field that could not be recovered from ffmpeg diagnostics.
NOT_FOUND = -1
NOT_FOUND_STR = "-1"


@dataclass(frozen=True)
class VideoStreamInfo:
    """One ``Video:`` stream line from ffmpeg's input description."""

    codec: str = NOT_FOUND_STR
    width: int = NOT_FOUND
    height: int = NOT_FOUND
    aspect_ratio: str = NOT_FOUND_STR
    framerate: int = NOT_FOUND
    bitrate: int = NOT_FOUND


@dataclass(frozen=True)
class AudioStreamInfo:
    """One ``Audio:`` stream line from ffmpeg's input description."""

    codec: str = NOT_FOUND_STR
    channels: str = NOT_FOUND_STR
    channel_layout: str = NOT_FOUND_STR
    sample_rate: int = NOT_FOUND


@dataclass(frozen=True)
class MediaDescription:
    """Container, duration and streams of a probed file.

    An instance with an empty ``duration`` and no streams means the
    diagnostics held nothing recognizable. That is a valid value.
    """

    duration: str = ""
    container: str = ""
    video_streams: tuple[VideoStreamInfo, ...] = ()
    audio_streams: tuple[AudioStreamInfo, ...] = ()


@dataclass
class TrimWindow:
    """Start offset and length of the output, in whole seconds."""

    start_seconds: int = 0
    duration_seconds: int = 0


@dataclass(frozen=True)
class GifExtraction:
    """Animated GIF preview of the trimmed window."""

    source: str
    trim: TrimWindow

    output_name = "out.gif"
    mimetype = "image/gif"


@dataclass(frozen=True)
class FragmentedDashPackage:
    """Two-rendition fragmented MPEG-DASH package of the trimmed window."""

    source: str
    trim: TrimWindow

    output_name = "out.mpd"
    mimetype = "application/dash+xml"


TranscodeProfile = GifExtraction | FragmentedDashPackage


@dataclass
class ArtifactSet:
    """Output filenames in first-seen order, without duplicates."""

    paths: list[str] = field(default_factory=list)

    @classmethod
    def from_iterable(cls, names: Iterable[str]) -> "ArtifactSet":
        artifacts = cls()
        for name in names:
            artifacts.add(name)
        return artifacts

    def add(self, name: str) -> None:
        if name not in self.paths:
            self.paths.append(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, name: object) -> bool:
        return name in self.paths

    def to_list(self) -> list[str]:
        return list(self.paths)
