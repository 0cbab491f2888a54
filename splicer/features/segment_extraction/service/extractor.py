import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from splicer.core.common.enums import ExtractionMode, OutputContainer
from splicer.core.config.settings import settings
from splicer.core.errors import SegmentExtractionFailed
from splicer.core.shared_types import MediaFile, Segment
from splicer.features.media_engine.domain.interfaces import IMediaEngine
from splicer.features.media_engine.domain.models import CancelToken, EncodeOptions, EngineError
from splicer.features.timecode.service.api import format_timecode
from splicer.features.workspace.domain.models import Workspace

logger = logging.getLogger(__name__)

# Re-encode settings per output container for FRAME_ACCURATE mode
_ENCODERS = {
    OutputContainer.MP4: EncodeOptions("libx264", "aac"),
    OutputContainer.MOV: EncodeOptions("libx264", "aac"),
    OutputContainer.MKV: EncodeOptions("libx264", "aac"),
    OutputContainer.WEBM: EncodeOptions("libvpx-vp9", "libopus"),
}


class SegmentExtractor:
    """
    Cuts one standalone clip per requested Segment.

    STREAM_COPY (default): lossless and fast, but the cut snaps to the keyframe
    at or before `start`, so each boundary may drift by up to one GOP.
    FRAME_ACCURATE: decodes and trims through the engine's filter graph, then
    re-encodes. Accurate to one frame, much slower.
    """

    def __init__(self, engine: IMediaEngine, mode: Optional[ExtractionMode] = None,
                 container: Optional[OutputContainer] = None):
        self.engine = engine
        self.mode = mode or ExtractionMode(settings.EXTRACTION_MODE)
        self.container = container or OutputContainer(settings.OUTPUT_CONTAINER)

    def extract(self, source_path: Path, segment: Segment, output_path: Path, index: int,
                cancel: Optional[CancelToken] = None) -> Path:
        output = MediaFile(Path(output_path))
        output.ensure_parent_dir()

        logger.info(
            f"Extracting segment {index} [{format_timecode(segment.start_seconds)} - {format_timecode(segment.end_seconds)}] "
            f"({self.mode.value}) -> {output.path.name}"
        )

        try:
            if self.mode == ExtractionMode.FRAME_ACCURATE:
                self.engine.transform(
                    source_path,
                    output.path,
                    video_filter=f"trim=start={segment.start_seconds}:end={segment.end_seconds},setpts=PTS-STARTPTS",
                    audio_filter=f"atrim=start={segment.start_seconds}:end={segment.end_seconds},asetpts=PTS-STARTPTS",
                    encode=_ENCODERS[self.container],
                    cancel=cancel,
                )
            else:
                self.engine.extract(
                    source_path,
                    output.path,
                    start_seconds=segment.start_seconds,
                    duration_seconds=segment.duration,
                    cancel=cancel,
                )
        except EngineError as e:
            raise SegmentExtractionFailed(index, str(e)) from e

        if not output.is_non_empty():
            raise SegmentExtractionFailed(index, f"engine produced no output at {output.path}")

        return output.path

    def extract_all(self, source_path: Path, segments: Sequence[Segment], workspace: Workspace,
                    cancel: Optional[CancelToken] = None,
                    on_extracted: Optional[Callable[[int, Path], None]] = None) -> List[Path]:
        """
        Runs extract() once per segment, strictly one after another.
        Stops at the first failure. Returned paths follow input order.
        """
        paths: List[Path] = []
        for index, segment in enumerate(segments):
            target = workspace.segment_path(index, self.container.suffix)
            paths.append(self.extract(source_path, segment, target, index, cancel=cancel))
            if on_extracted is not None:
                on_extracted(index, target)
        return paths
