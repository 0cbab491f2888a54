from abc import ABC, abstractmethod
from .models import Workspace


class IWorkspaceManager(ABC):
    """
    Contract for per-Job scratch directories.
    """

    @abstractmethod
    def allocate(self, job_id: str) -> Workspace:
        """
        Creates a directory unique to job_id.

        Raises:
            WorkspaceAllocationError: On permission, disk-space or name collision failures.
        """
        pass

    @abstractmethod
    def release(self, workspace: Workspace) -> bool:
        """
        Recursively removes the workspace. Idempotent and never raises.
        Returns True if the directory is gone afterwards.
        """
        pass

    @abstractmethod
    def sweep_stale(self, max_age_seconds: int = None) -> int:
        """
        Removes workspaces left behind by a crashed process.
        Returns count of removed dirs.
        """
        pass
