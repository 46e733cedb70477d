"""Output artifact analyzer: which files did an ffmpeg run write?"""

import re
from typing import Iterable

from vidtrim.models import ArtifactSet

# Segmenting muxers write to "<name>.tmp" and rename once the file is complete.
TEMP_SUFFIX = ".tmp"

_OPENING_RE = re.compile(r"Opening '(.+)' for writing")


def strip_temp_suffix(name: str) -> str:
    if name.endswith(TEMP_SUFFIX):
        return name[: -len(TEMP_SUFFIX)]
    return name


def extract_artifacts(lines: Iterable[str] | str) -> ArtifactSet:
    """Collect the output paths ffmpeg reported opening for writing.

    The same file is reported once per write (manifest rewrites, segment
    updates), so duplicates collapse into the first occurrence.
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    artifacts = ArtifactSet()
    for line in lines:
        m = _OPENING_RE.search(line)
        if m:
            artifacts.add(strip_temp_suffix(m.group(1)))
    return artifacts
