# File: splicer/core/jobs/models.py

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from splicer.core.common.enums import JobStatus, SourceKind
from splicer.core.shared_types import Segment


def utc_now():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SourceReference:
    """
    Where the source video comes from: an upload already saved on local disk,
    or a remote URL that still has to be fetched.
    """
    kind: SourceKind
    location: str
    original_filename: Optional[str] = None

    @classmethod
    def upload(cls, path: Path, original_filename: Optional[str] = None) -> "SourceReference":
        return cls(SourceKind.UPLOAD, str(path), original_filename)

    @classmethod
    def url(cls, url: str) -> "SourceReference":
        return cls(SourceKind.URL, url)


@dataclass
class Job:
    """
    One trim-and-concatenate request and its transient state.
    Lives in memory only, for the duration of the request.
    """
    source: SourceReference
    segments: List[Segment] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.PENDING

    workspace_path: Optional[Path] = None
    source_path: Optional[Path] = None
    segment_paths: List[Path] = field(default_factory=list)
    final_path: Optional[Path] = None

    error: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED, JobStatus.FAILED)

    def start(self) -> None:
        if self.status != JobStatus.PENDING:
            raise RuntimeError(f"Job {self.id} cannot start from state {self.status.value}")
        self.status = JobStatus.RUNNING
        self.started_at = utc_now()

    def succeed(self) -> bool:
        """Returns False if the Job had already terminated."""
        return self._finish(JobStatus.SUCCEEDED)

    def fail(self, error: str) -> bool:
        """Returns False if the Job had already terminated."""
        if self.is_terminal:
            return False
        self.error = error
        return self._finish(JobStatus.FAILED)

    def _finish(self, status: JobStatus) -> bool:
        if self.is_terminal:
            return False
        self.status = status
        self.finished_at = utc_now()
        return True

    @property
    def total_duration(self) -> float:
        return sum(seg.duration for seg in self.segments)
