"""GIF editor: animated preview of a trimmed window."""

from vidtrim.models import GifExtraction

GIF_FORMAT = "gif"


def build_gif_args(profile: GifExtraction) -> list[str]:
    """Return the ffmpeg argument vector for a GIF extraction.

    Duration and start are output options here, so they follow the input.
    """
    return [
        "-i", profile.source,
        "-t", str(profile.trim.duration_seconds),
        "-ss", str(profile.trim.start_seconds),
        "-f", GIF_FORMAT,
        profile.output_name,
    ]
