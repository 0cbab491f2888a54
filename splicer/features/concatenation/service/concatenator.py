import logging
from pathlib import Path
from typing import Optional, Sequence

from splicer.core.errors import ConcatenationFailed
from splicer.core.shared_types import MediaFile
from splicer.features.media_engine.domain.interfaces import IMediaEngine
from splicer.features.media_engine.domain.models import CancelToken, EngineError
from ..data.manifest import write_manifest

logger = logging.getLogger(__name__)


class Concatenator:
    """
    Joins extracted segment files, in the given order, into one artifact
    through a single stream-copy run of the concat demuxer.
    """

    def __init__(self, engine: IMediaEngine):
        self.engine = engine

    def concatenate(self, ordered_paths: Sequence[Path], final_output_path: Path,
                    manifest_path: Optional[Path] = None,
                    cancel: Optional[CancelToken] = None) -> Path:
        output = MediaFile(Path(final_output_path))
        output.ensure_parent_dir()
        manifest = manifest_path or output.path.with_name("concat.txt")

        write_manifest(ordered_paths, manifest)
        logger.info(f"Concatenating {len(ordered_paths)} segment(s) -> {output.path.name}")

        try:
            self.engine.concatenate(manifest, output.path, cancel=cancel)
        except EngineError as e:
            raise ConcatenationFailed(str(e)) from e

        if not output.is_non_empty():
            raise ConcatenationFailed(f"engine produced no output at {output.path}")

        return output.path
