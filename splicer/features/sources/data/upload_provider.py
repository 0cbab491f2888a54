import logging
import shutil
from pathlib import Path

from splicer.core.errors import SourceUnavailable
from splicer.core.jobs.models import SourceReference
from splicer.features.workspace.domain.models import Workspace
from ..domain.interfaces import ISourceProvider

logger = logging.getLogger(__name__)


class UploadSourceProvider(ISourceProvider):
    """
    The HTTP layer has already written the uploaded bytes to disk.
    This moves that file into the workspace so it is cleaned up with the Job.
    """

    def materialize(self, source: SourceReference, workspace: Workspace) -> Path:
        upload = Path(source.location)
        if not upload.is_file():
            raise SourceUnavailable(f"Uploaded file not found: {upload}")
        if upload.stat().st_size == 0:
            upload.unlink(missing_ok=True)
            raise SourceUnavailable(f"Uploaded file is empty: {upload}")

        suffix = Path(source.original_filename or "").suffix.lower() or upload.suffix.lower()
        destination = workspace.input_path(suffix)

        if upload.resolve() != destination.resolve():
            # Move (copy + unlink across partitions)
            shutil.move(str(upload), str(destination))

        logger.info(f"Upload materialized: {destination}")
        return destination
