from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .models import CancelToken, EncodeOptions, EngineInvocation


class IMediaEngine(ABC):
    """
    Contract for the external media engine.
    Abstracts away the underlying tool (FFmpeg) from the pipeline.

    Every operation either returns a COMPLETED invocation or raises an
    EngineError (EngineFailed, EngineTimeout, EngineCancelled). There is no
    retry at this level; each call writes to a fresh output path, so callers
    may simply call again.
    """

    @abstractmethod
    def extract(self, source: Path, output: Path, start_seconds: float, duration_seconds: float,
                cancel: Optional[CancelToken] = None) -> EngineInvocation:
        """
        Stream-copies [start, start + duration) of source into output.
        """
        pass

    @abstractmethod
    def concatenate(self, manifest: Path, output: Path,
                    cancel: Optional[CancelToken] = None) -> EngineInvocation:
        """
        Reads a concat-demuxer manifest and stream-copies the joined result into output.
        """
        pass

    @abstractmethod
    def transform(self, source: Path, output: Path, video_filter: Optional[str] = None,
                  audio_filter: Optional[str] = None, encode: Optional[EncodeOptions] = None,
                  cancel: Optional[CancelToken] = None) -> EngineInvocation:
        """
        Decodes source, runs it through the given filter graphs and re-encodes into output.
        """
        pass
