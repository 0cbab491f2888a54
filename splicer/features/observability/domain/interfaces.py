from abc import ABC, abstractmethod


class IJobObserver(ABC):
    """
    Receives structured lifecycle events for a Job:
    job_started, stage_completed, stage_failed, job_succeeded, job_failed,
    cleanup_completed, cleanup_failed.
    """

    @abstractmethod
    def emit(self, job_id: str, event: str, **fields) -> None:
        pass
