"""Orchestrator — probes a source and runs the transcode a Manifest asks for."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from vidtrim import ffutil
from vidtrim.analyzers.artifacts import extract_artifacts
from vidtrim.analyzers.media_info import parse_media_description
from vidtrim.editors import build_args
from vidtrim.manifest import Manifest
from vidtrim.models import ArtifactSet, MediaDescription

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    work_dir: Path
    artifacts: ArtifactSet = field(default_factory=ArtifactSet)
    description: MediaDescription = field(default_factory=MediaDescription)
    args: list[str] = field(default_factory=list)
    diagnostics: list[str] = field(default_factory=list)

    def artifact_paths(self) -> list[Path]:
        return [self.work_dir / name for name in self.artifacts]


def probe(input_path: Path, work_dir: Path, ffmpeg_bin: str = "ffmpeg") -> MediaDescription:
    """Stage *input_path* into *work_dir* and describe it."""
    staged = ffutil.stage_source(input_path, work_dir)
    lines = ffutil.probe_lines(staged.name, work_dir, ffmpeg_bin=ffmpeg_bin)
    return parse_media_description(lines)


def process(
    manifest: Manifest,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Execute the transcode described by *manifest*.

    Args:
        manifest: Validated transcode manifest.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    def _sub_progress(stage: str, base: float, span: float):
        """Return a callback that maps ffmpeg's [0,1] to [base, base+span]."""
        def cb(frac: float) -> None:
            _progress(stage, base + frac * span)
        return cb

    ffmpeg_bin = manifest.engine.ffmpeg_bin
    work_dir = manifest.output_dir
    ffutil.check_ffmpeg(ffmpeg_bin)

    _progress("Probing video metadata", 0.0)
    description = probe(manifest.input, work_dir, ffmpeg_bin=ffmpeg_bin)
    _progress("Probing video metadata", 0.05)

    profile = manifest.to_profile()
    args = build_args(profile)
    stage = f"Encoding {manifest.profile}"
    _progress(stage, 0.1)
    lines = ffutil.run_ffmpeg(
        args,
        work_dir,
        ffmpeg_bin=ffmpeg_bin,
        on_progress=_sub_progress(stage, 0.1, 0.8),
        total_seconds=profile.trim.duration_seconds,
        check=True,
        overwrite=True,
    )

    _progress("Collecting outputs", 0.9)
    reported = extract_artifacts(lines)
    reported.add(profile.output_name)
    artifacts = ArtifactSet.from_iterable(
        name for name in reported if (work_dir / name).is_file()
    )
    missing = len(reported) - len(artifacts)
    if missing:
        logger.warning("%d reported output(s) not found in %s", missing, work_dir)

    _progress("Done", 1.0)
    return EngineResult(
        work_dir=work_dir,
        artifacts=artifacts,
        description=description,
        args=args,
        diagnostics=lines,
    )
