from abc import ABC, abstractmethod
from pathlib import Path

from splicer.core.jobs.models import SourceReference
from splicer.features.workspace.domain.models import Workspace


class ISourceProvider(ABC):
    """
    Contract for turning a SourceReference into a local file inside the Job workspace.
    """

    @abstractmethod
    def materialize(self, source: SourceReference, workspace: Workspace) -> Path:
        """
        Returns:
            Path of the source video inside the workspace.

        Raises:
            SourceUnavailable: If the upload is missing or the remote fetch fails.
        """
        pass
