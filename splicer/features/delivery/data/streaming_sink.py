import logging
from pathlib import Path
from typing import Optional

from splicer.core.common.enums import OutputContainer
from splicer.core.config.settings import settings
from splicer.core.jobs.models import Job
from ..domain.interfaces import IResultSink
from ..domain.models import DeliveryResult, Finalizer

logger = logging.getLogger(__name__)


class ReleasingFileStream:
    """
    Iterates over a file in chunks and calls `finalize` exactly once:
    with None after the last chunk, or with a reason if the stream is closed
    early (client disconnect) or reading fails.
    """

    def __init__(self, path: Path, chunk_size: int, finalize: Finalizer):
        self.path = path
        self.chunk_size = chunk_size
        self._finalize = finalize
        self._file = None
        self._done = False

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        if self._done:
            raise StopIteration
        try:
            if self._file is None:
                self._file = open(self.path, "rb")
            data = self._file.read(self.chunk_size)
        except OSError as e:
            self._finish(f"stream read failed: {e}")
            raise
        if not data:
            self._finish(None)
            raise StopIteration
        return data

    def close(self) -> None:
        if not self._done:
            self._finish("stream closed before completion")

    def _finish(self, error: Optional[str]) -> None:
        self._done = True
        if self._file is not None:
            self._file.close()
            self._file = None
        self._finalize(error)

    def __del__(self):
        # Last resort if the server dropped the iterator without closing it
        self.close()


class StreamingSink(IResultSink):
    """
    Sends the artifact bytes back as the response body (inline playback).
    """

    def __init__(self, container: Optional[OutputContainer] = None, chunk_size: Optional[int] = None,
                 filename: str = "trimmed"):
        self.container = container or OutputContainer(settings.OUTPUT_CONTAINER)
        self.chunk_size = chunk_size or settings.STREAM_CHUNK_BYTES
        self.filename = filename

    def deliver(self, job: Job, artifact: Path, finalize: Finalizer) -> DeliveryResult:
        size = artifact.stat().st_size
        logger.info(f"Streaming {size} bytes for job {job.id}")
        return DeliveryResult(
            job_id=job.id,
            media_type=self.container.media_type,
            headers={
                "Content-Disposition": f'inline; filename="{self.filename}{self.container.suffix}"',
                "Content-Length": str(size),
            },
            body=ReleasingFileStream(artifact, self.chunk_size, finalize),
            size_bytes=size,
        )
