from abc import ABC, abstractmethod
from pathlib import Path

from splicer.core.jobs.models import Job
from .models import DeliveryResult, Finalizer


class IResultSink(ABC):
    """
    Contract for handing the final artifact to the requester.
    """

    @abstractmethod
    def deliver(self, job: Job, artifact: Path, finalize: Finalizer) -> DeliveryResult:
        """
        Delivers the artifact and arranges for `finalize` to run once delivery
        is over, whether it succeeded or not.

        Raises:
            DeliveryUploadFailed: If a remote store rejects the artifact.
        """
        pass
