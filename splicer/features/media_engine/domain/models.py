import threading
import time
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import List, Optional


@unique
class EngineState(str, Enum):
    IDLE = "idle"
    INVOKED = "invoked"
    COMPLETED = "completed"
    FAILED = "failed"


class EngineError(Exception):
    """Base for every way an engine invocation can end in FAILED."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class EngineFailed(EngineError):
    def __init__(self, returncode: Optional[int], stderr: str = ""):
        self.returncode = returncode
        detail = _tail(stderr) or "Unknown FFmpeg error"
        super().__init__(f"exit status {returncode}: {detail}", stderr)


class EngineTimeout(EngineError):
    def __init__(self, timeout_seconds: float, stderr: str = ""):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"timed out after {timeout_seconds}s", stderr)


class EngineCancelled(EngineError):
    def __init__(self, stderr: str = ""):
        super().__init__("cancelled", stderr)


def _tail(text: str, limit: int = 2000) -> str:
    text = (text or "").strip()
    return text[-limit:]


class CancelToken:
    """
    Set from another thread (e.g. when the requester disconnects) to abort
    the engine invocation that is currently running for a Job.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


@dataclass
class EngineInvocation:
    """
    One run of the external engine.
    IDLE -> INVOKED -> {COMPLETED, FAILED}
    IDLE -> FAILED is allowed when the process could not even be spawned.
    """
    argv: List[str]
    state: EngineState = EngineState.IDLE
    returncode: Optional[int] = None
    failure: Optional[str] = None
    stderr: str = ""
    started_at: Optional[float] = None
    finished_at: Optional[float] = None

    def mark_invoked(self) -> None:
        self._require(EngineState.IDLE)
        self.state = EngineState.INVOKED
        self.started_at = time.monotonic()

    def mark_completed(self, stderr: str = "") -> None:
        self._require(EngineState.INVOKED)
        self.state = EngineState.COMPLETED
        self.returncode = 0
        self.stderr = stderr
        self.finished_at = time.monotonic()

    def mark_failed(self, reason: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        if self.state in (EngineState.COMPLETED, EngineState.FAILED):
            raise RuntimeError(f"Invocation already finished ({self.state.value})")
        self.state = EngineState.FAILED
        self.failure = reason
        self.returncode = returncode
        self.stderr = stderr
        self.finished_at = time.monotonic()

    @property
    def elapsed(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return self.finished_at - self.started_at

    def _require(self, expected: EngineState) -> None:
        if self.state != expected:
            raise RuntimeError(f"Illegal engine transition from {self.state.value}")


@dataclass(frozen=True)
class EncodeOptions:
    """Codec settings used when a step has to re-encode instead of stream-copy."""
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    extra: List[str] = field(default_factory=list)
