import logging
import threading
from typing import Any, Dict, List, Tuple

from ..domain.interfaces import IJobObserver

logger = logging.getLogger("splicer.events")

_FAILURE_EVENTS = {"stage_failed", "job_failed", "cleanup_failed"}


class LoggingObserver(IJobObserver):
    """Writes every job event as one log record, fields attached via `extra`."""

    def emit(self, job_id: str, event: str, **fields) -> None:
        level = logging.ERROR if event in _FAILURE_EVENTS else logging.INFO
        details = " ".join(f"{k}={v}" for k, v in fields.items())
        logger.log(
            level,
            f"[job {job_id}] {event} {details}".rstrip(),
            extra={"job_id": job_id, "event": event, "fields": fields},
        )


class RecordingObserver(IJobObserver):
    """Keeps events in memory. Handy for tests and debugging."""

    def __init__(self):
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def emit(self, job_id: str, event: str, **fields) -> None:
        with self._lock:
            self.events.append((job_id, event, fields))

    def names(self, job_id: str = None) -> List[str]:
        return [name for jid, name, _ in self.events if job_id is None or jid == job_id]
