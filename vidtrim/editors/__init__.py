"""Command builders, one per transcode profile."""

from vidtrim.editors.dash import build_dash_args
from vidtrim.editors.gif import build_gif_args
from vidtrim.models import FragmentedDashPackage, GifExtraction, TranscodeProfile


def build_args(profile: TranscodeProfile) -> list[str]:
    """Return the ffmpeg argument vector for *profile*."""
    if isinstance(profile, GifExtraction):
        return build_gif_args(profile)
    if isinstance(profile, FragmentedDashPackage):
        return build_dash_args(profile)
    raise TypeError(f"Unsupported transcode profile: {type(profile).__name__}")
