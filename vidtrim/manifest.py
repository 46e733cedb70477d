"""JSON manifest schema — the contract between CLI/API and engine."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from vidtrim.models import (
    FragmentedDashPackage,
    GifExtraction,
    TranscodeProfile,
    TrimWindow,
)

PROFILES = {
    "gif": GifExtraction,
    "dash": FragmentedDashPackage,
}


def _default_ffmpeg_bin() -> str:
    return os.environ.get("VIDTRIM_FFMPEG", "ffmpeg")


@dataclass
class EngineConfig:
    """How to reach the ffmpeg binary and how chatty to be about it."""

    ffmpeg_bin: str = field(default_factory=_default_ffmpeg_bin)
    log_level: str = "INFO"


@dataclass
class TrimConfig:
    """Trim window, in whole seconds."""

    start: int = 0
    duration: int = 10

    def validate(self) -> None:
        for name in ("start", "duration"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"Trim {name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"Trim {name} must be non-negative, got {value}")

    def to_window(self) -> TrimWindow:
        return TrimWindow(start_seconds=self.start, duration_seconds=self.duration)


@dataclass
class Manifest:
    """Top-level transcode manifest."""

    input: Path
    output_dir: Path
    profile: str = "gif"
    version: str = "1"
    trim: TrimConfig = field(default_factory=TrimConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    def to_profile(self) -> TranscodeProfile:
        """The profile to build, reading the input by its basename."""
        if self.profile not in PROFILES:
            raise ValueError(
                f"Unknown profile {self.profile!r}; expected one of {sorted(PROFILES)}"
            )
        return PROFILES[self.profile](source=self.input.name, trim=self.trim.to_window())


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    missing = [k for k in ("input", "output_dir", "profile") if k not in data]
    if missing:
        raise ValueError(
            f"Manifest must contain 'input', 'output_dir' and 'profile' fields (missing: {', '.join(missing)})"
        )
    if data["profile"] not in PROFILES:
        raise ValueError(
            f"Unknown profile {data['profile']!r}; expected one of {sorted(PROFILES)}"
        )

    trim = TrimConfig(**data["trim"]) if "trim" in data else TrimConfig()
    trim.validate()
    engine = EngineConfig(**data["engine"]) if "engine" in data else EngineConfig()

    return Manifest(
        version=data.get("version", "1"),
        input=Path(data["input"]),
        output_dir=Path(data["output_dir"]),
        profile=data["profile"],
        trim=trim,
        engine=engine,
    )
