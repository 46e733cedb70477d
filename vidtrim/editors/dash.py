"""DASH editor: fragmented, two-rendition MPEG-DASH package."""

from vidtrim.models import FragmentedDashPackage

# Packaging policy. None of these depend on the source media.
FRAME_RATE = 25
SEGMENT_DURATION = 2
FRAGMENT_DURATION = 2
VIDEO_CODEC = "libx264"
INIT_SEGMENT_TEMPLATE = "init-$RepresentationID$.$ext$"
MEDIA_SEGMENT_TEMPLATE = "media-$RepresentationID$-$Number$.$ext$"

# Rendition 0 keeps the source resolution; rendition 1 is scaled down.
HIGH_BITRATE = "800k"
HIGH_PROFILE = "main"
LOW_BITRATE = "300k"
LOW_RESOLUTION = "320x170"
LOW_PROFILE = "baseline"

STREAM_MAP_COUNT = 4
ADAPTATION_SETS = (
    "id=0,streams=v id=1,streams=a",
    "id=2,streams=v id=3,streams=a",
)


def build_dash_args(profile: FragmentedDashPackage) -> list[str]:
    """Return the ffmpeg argument vector for a fragmented DASH package.

    ffmpeg reads flags positionally: options before ``-i`` apply to the
    input, everything after it to the manifest output, so the order below
    must not change.
    """
    args = ["-hide_banner", "-i", profile.source]
    for _ in range(STREAM_MAP_COUNT):
        args += ["-map", "0"]
    args += [
        "-f", "dash",
        "-r", str(FRAME_RATE),
        "-t", str(profile.trim.duration_seconds),
        "-ss", str(profile.trim.start_seconds),
        "-seg_duration", str(SEGMENT_DURATION),
        "-use_template", "1",
        "-use_timeline", "1",
        "-init_seg_name", INIT_SEGMENT_TEMPLATE,
        "-media_seg_name", MEDIA_SEGMENT_TEMPLATE,
        "-frag_duration", str(FRAGMENT_DURATION),
        "-c:v", VIDEO_CODEC,
        "-b:v:0", HIGH_BITRATE,
        "-profile:v:0", HIGH_PROFILE,
        "-b:v:1", LOW_BITRATE,
        "-s:v:1", LOW_RESOLUTION,
        "-profile:v:1", LOW_PROFILE,
    ]
    for adaptation_set in ADAPTATION_SETS:
        args += ["-adaptation_sets", adaptation_set]
    args.append(profile.output_name)
    return args
