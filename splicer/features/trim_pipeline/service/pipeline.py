import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from splicer.core.errors import SplicerError
from splicer.core.jobs.models import Job
from splicer.features.concatenation.service.concatenator import Concatenator
from splicer.features.delivery.domain.interfaces import IResultSink
from splicer.features.delivery.domain.models import DeliveryResult, Finalizer
from splicer.features.media_engine.domain.models import CancelToken
from splicer.features.observability.data.logging_observer import LoggingObserver
from splicer.features.observability.domain.interfaces import IJobObserver
from splicer.features.segment_extraction.service.extractor import SegmentExtractor
from splicer.features.sources.domain.interfaces import ISourceProvider
from splicer.features.timecode.service.api import parse_segments
from splicer.features.workspace.domain.interfaces import IWorkspaceManager
from splicer.features.workspace.domain.models import Workspace
from ..domain.models import TrimRequest

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TrimPipeline:
    """
    Runs one Job end to end:
    validate -> allocate workspace -> materialize source -> extract segments
    -> concatenate -> deliver -> release workspace.

    The same pipeline serves uploads and URLs, streaming and cloud delivery;
    only the source provider and result sink differ.
    """

    def __init__(self, workspaces: IWorkspaceManager, sources: ISourceProvider,
                 extractor: SegmentExtractor, concatenator: Concatenator, sink: IResultSink,
                 observer: Optional[IJobObserver] = None):
        self.workspaces = workspaces
        self.sources = sources
        self.extractor = extractor
        self.concatenator = concatenator
        self.sink = sink
        self.observer = observer or LoggingObserver()

    def run(self, request: TrimRequest, cancel: Optional[CancelToken] = None) -> DeliveryResult:
        job = Job(source=request.source)
        self.observer.emit(job.id, "job_started", source=request.source.kind.value)

        # 1. Validate before touching disk or the engine
        try:
            job.segments = self._stage(job, "parse", lambda: parse_segments(request.segments))
        except SplicerError as e:
            job.fail(str(e))
            self.observer.emit(job.id, "job_failed", stage="parse", error=str(e))
            raise

        # 2. Workspace
        try:
            workspace = self.workspaces.allocate(job.id)
        except SplicerError as e:
            job.fail(str(e))
            self.observer.emit(job.id, "job_failed", stage="allocate", error=str(e))
            raise

        job.workspace_path = workspace.path
        job.start()
        finalize = self._finalizer(job, workspace)

        try:
            # 3. Source
            job.source_path = self._stage(
                job, "source", lambda: self.sources.materialize(job.source, workspace)
            )

            # 4. Segments (sequential, fail-fast)
            job.segment_paths = self._stage(
                job, "extract",
                lambda: self.extractor.extract_all(
                    job.source_path, job.segments, workspace, cancel=cancel,
                    on_extracted=lambda i, p: self.observer.emit(
                        job.id, "stage_completed", stage="extract_segment", index=i
                    ),
                ),
            )

            # 5. Join
            job.final_path = self._stage(
                job, "concatenate",
                lambda: self.concatenator.concatenate(
                    job.segment_paths,
                    workspace.final_path(self.extractor.container.suffix),
                    manifest_path=workspace.manifest_path,
                    cancel=cancel,
                ),
            )

            # 6. Delivery. From here on the sink decides when finalize runs.
            return self._stage(job, "deliver", lambda: self.sink.deliver(job, job.final_path, finalize))

        except SplicerError as e:
            logger.error(f"Job {job.id} failed: {e}")
            finalize(str(e))
            raise
        except Exception as e:
            logger.exception(f"Job {job.id} failed unexpectedly: {e}")
            finalize(f"{type(e).__name__}: {e}")
            raise

    def _stage(self, job: Job, name: str, fn: Callable[[], T]) -> T:
        started = time.monotonic()
        try:
            result = fn()
        except Exception as e:
            self.observer.emit(job.id, "stage_failed", stage=name, error=str(e))
            raise
        self.observer.emit(job.id, "stage_completed", stage=name, elapsed=round(time.monotonic() - started, 3))
        return result

    def _finalizer(self, job: Job, workspace: Workspace) -> Finalizer:
        """
        Builds the one-shot terminal transition for a Job.
        Whichever exit path calls it first wins; later calls are no-ops.
        """
        lock = threading.Lock()

        def finalize(error: Optional[str] = None) -> None:
            with lock:
                if error is None:
                    transitioned = job.succeed()
                else:
                    transitioned = job.fail(error)
            if not transitioned:
                return

            self.workspaces.release(workspace)
            if error is None:
                self.observer.emit(job.id, "job_succeeded", duration=job.total_duration)
            else:
                self.observer.emit(job.id, "job_failed", error=error)

        return finalize
