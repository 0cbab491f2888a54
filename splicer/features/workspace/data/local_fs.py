import logging
import shutil
import threading
import time
from pathlib import Path
from typing import Optional

from splicer.core.config.settings import settings
from splicer.core.errors import WorkspaceAllocationError
from splicer.features.observability.domain.interfaces import IJobObserver
from ..domain.interfaces import IWorkspaceManager
from ..domain.models import Workspace

logger = logging.getLogger(__name__)


class LocalWorkspaceManager(IWorkspaceManager):
    """
    Allocates job directories under a scratch root on the local filesystem:
    <scratch_root>/<job_id>/
    """

    def __init__(self, scratch_root: Optional[Path] = None, observer: Optional[IJobObserver] = None):
        self.scratch_root = Path(scratch_root) if scratch_root else settings.SCRATCH_ROOT
        self.observer = observer
        self._lock = threading.Lock()

    def allocate(self, job_id: str) -> Workspace:
        path = self.scratch_root / job_id
        try:
            self.scratch_root.mkdir(parents=True, exist_ok=True)
            # exist_ok=False: two jobs must never share a directory
            path.mkdir(exist_ok=False)
        except OSError as e:
            logger.error(f"Workspace allocation failed for job {job_id}: {e}")
            raise WorkspaceAllocationError(f"Could not create workspace {path}: {e}") from e

        logger.info(f"Workspace allocated: {path}")
        return Workspace(job_id=job_id, path=path)

    def release(self, workspace: Workspace) -> bool:
        # Guards against two exit paths (stream close + background task) racing
        with self._lock:
            if workspace.released:
                return not workspace.path.exists()
            workspace.released = True

        try:
            if workspace.path.exists():
                shutil.rmtree(workspace.path)
        except OSError as e:
            # Cleanup failures never fail the request; they only get reported
            logger.error(f"Workspace cleanup failed for job {workspace.job_id}: {e}")
            self._emit(workspace.job_id, "cleanup_failed", path=str(workspace.path), error=str(e))
            return False

        logger.info(f"Workspace released: {workspace.path}")
        self._emit(workspace.job_id, "cleanup_completed", path=str(workspace.path))
        return True

    def sweep_stale(self, max_age_seconds: Optional[int] = None) -> int:
        """
        Removes job directories older than the TTL.
        Only orphans from a crashed process should ever be old enough to match.
        Returns count of removed dirs.
        """
        max_age = settings.WORKSPACE_TTL_SECONDS if max_age_seconds is None else max_age_seconds
        if not self.scratch_root.exists():
            return 0

        now = time.time()
        removed = 0
        for entry in self.scratch_root.iterdir():
            if not entry.is_dir():
                continue
            try:
                age = now - entry.stat().st_mtime
            except FileNotFoundError:
                continue
            if age > max_age:
                shutil.rmtree(entry, ignore_errors=True)
                logger.warning(f"Swept stale workspace: {entry}")
                removed += 1
        return removed

    def _emit(self, job_id: str, event: str, **fields) -> None:
        if self.observer is not None:
            self.observer.emit(job_id, event, **fields)
