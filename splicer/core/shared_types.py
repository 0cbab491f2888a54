from dataclasses import dataclass
from pathlib import Path

from splicer.core.errors import ValidationError


@dataclass(frozen=True)
class Segment:
    """
    Value Object representing one requested span of the source timeline.
    Enforces that start is strictly before end.
    """
    start_seconds: float
    end_seconds: float

    def __post_init__(self):
        if self.start_seconds < 0 or self.end_seconds < 0:
            raise ValidationError("Timestamps cannot be negative.")
        if self.end_seconds <= self.start_seconds:
            raise ValidationError(
                f"End time ({self.end_seconds}) must be greater than start time ({self.start_seconds})."
            )

    @property
    def duration(self) -> float:
        return self.end_seconds - self.start_seconds


@dataclass(frozen=True)
class MediaFile:
    """
    Entity representing a media file on the filesystem.
    """
    path: Path

    def __post_init__(self):
        if str(self.path).strip() == "." or str(self.path).strip() == "":
            raise ValueError("File path cannot be empty.")

    def exists(self) -> bool:
        return self.path.exists()

    def is_non_empty(self) -> bool:
        return self.path.is_file() and self.path.stat().st_size > 0

    def ensure_parent_dir(self) -> None:
        """Creates the directory structure for this file if it doesn't exist."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
