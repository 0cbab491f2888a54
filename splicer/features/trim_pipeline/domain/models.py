from dataclasses import dataclass
from typing import Any, List

from splicer.core.jobs.models import SourceReference


@dataclass(frozen=True)
class TrimRequest:
    """
    Transport-independent request: where the video is, and the raw
    {start, end} timecode pairs exactly as the client sent them.
    """
    source: SourceReference
    segments: List[Any]
