import re
from typing import Any, List, Mapping

from splicer.core.errors import MalformedTimecode, ValidationError
from splicer.core.shared_types import Segment

# Strict grammar: exactly HH:MM:SS, ASCII digits only
_TIMECODE_RE = re.compile(r"^([0-9]+):([0-9]{1,2}):([0-9]{1,2})$")


def parse_timecode(text: Any) -> float:
    """
    Converts "HH:MM:SS" into an offset in seconds.

    Hours are unbounded, minutes and seconds must be 0-59. Any other shape
    ("abc", "1:2", "1:2:3:4", "-1:00:00") raises MalformedTimecode.
    """
    if not isinstance(text, str):
        raise MalformedTimecode(text)

    match = _TIMECODE_RE.match(text.strip())
    if not match:
        raise MalformedTimecode(text)

    hours, minutes, seconds = (int(part, 10) for part in match.groups())
    if minutes > 59 or seconds > 59:
        raise MalformedTimecode(text)

    return float(hours * 3600 + minutes * 60 + seconds)


def format_timecode(seconds: float) -> str:
    """Converts 125.5 -> 00:02:05"""
    m, s = divmod(int(seconds), 60)
    h, m = divmod(m, 60)
    return "{:02d}:{:02d}:{:02d}".format(h, m, s)


def parse_segment(raw: Any, index: int) -> Segment:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Invalid segment at index {index}: expected an object with start and end")

    if "start" not in raw or "end" not in raw:
        raise ValidationError(f"Invalid segment at index {index}: start and end are required")

    try:
        start = parse_timecode(raw["start"])
        end = parse_timecode(raw["end"])
    except MalformedTimecode as e:
        raise MalformedTimecode(e.text, index=index) from e

    if end <= start:
        raise ValidationError(
            f"Invalid segment at index {index}: end ({raw['end']}) must be after start ({raw['start']})"
        )

    return Segment(start_seconds=start, end_seconds=end)


def parse_segments(raw_segments: Any) -> List[Segment]:
    """
    Validates the whole segment list up front.
    Nothing touches the disk or the media engine before this succeeds.
    """
    if raw_segments is None:
        raise ValidationError("Missing segments")

    if not isinstance(raw_segments, list) or len(raw_segments) == 0:
        raise ValidationError("Invalid segments format")

    return [parse_segment(raw, i) for i, raw in enumerate(raw_segments)]
