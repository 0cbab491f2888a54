from typing import Optional

from splicer.core.config.settings import Settings, settings as default_settings
from splicer.core.common.enums import ExtractionMode, OutputContainer, SourceKind
from splicer.features.concatenation.service.concatenator import Concatenator
from splicer.features.delivery.domain.interfaces import IResultSink
from splicer.features.delivery.service.api import build_sink
from splicer.features.media_engine.data.ffmpeg_adapter import AdmissionGate, FFmpegEngine
from splicer.features.media_engine.domain.interfaces import IMediaEngine
from splicer.features.observability.data.logging_observer import LoggingObserver
from splicer.features.observability.domain.interfaces import IJobObserver
from splicer.features.segment_extraction.service.extractor import SegmentExtractor
from splicer.features.sources.domain.interfaces import ISourceProvider
from splicer.features.sources.data.http_fetcher import RemoteSourceProvider
from splicer.features.sources.data.upload_provider import UploadSourceProvider
from splicer.features.sources.service.api import CompositeSourceProvider
from splicer.features.workspace.data.local_fs import LocalWorkspaceManager
from .pipeline import TrimPipeline


def build_pipeline(config: Optional[Settings] = None,
                   engine: Optional[IMediaEngine] = None,
                   sources: Optional[ISourceProvider] = None,
                   sink: Optional[IResultSink] = None,
                   observer: Optional[IJobObserver] = None) -> TrimPipeline:
    """
    Wires the configured collaborators into a TrimPipeline.
    Any collaborator can be overridden (tests, alternative deployments).
    """
    # An explicit config gets its own admission limit; the default shares the process-wide gate
    gate = AdmissionGate(config.MAX_CONCURRENT_ENGINE_RUNS) if config is not None else None
    config = config or default_settings
    observer = observer or LoggingObserver()
    engine = engine or FFmpegEngine(
        binary=config.FFMPEG_BINARY, timeout_seconds=config.ENGINE_TIMEOUT_SECONDS, gate=gate
    )
    container = OutputContainer(config.OUTPUT_CONTAINER)

    return TrimPipeline(
        workspaces=LocalWorkspaceManager(config.SCRATCH_ROOT, observer=observer),
        sources=sources or CompositeSourceProvider({
            SourceKind.UPLOAD: UploadSourceProvider(),
            SourceKind.URL: RemoteSourceProvider(
                timeout_seconds=config.FETCH_TIMEOUT_SECONDS, max_bytes=config.MAX_SOURCE_BYTES
            ),
        }),
        extractor=SegmentExtractor(engine, mode=ExtractionMode(config.EXTRACTION_MODE), container=container),
        concatenator=Concatenator(engine),
        sink=sink or build_sink(config),
        observer=observer,
    )
