import logging
import subprocess
import threading
import time
from pathlib import Path
from typing import List, Optional

from splicer.core.config.settings import settings
from ..domain.interfaces import IMediaEngine
from ..domain.models import (
    CancelToken,
    EncodeOptions,
    EngineCancelled,
    EngineFailed,
    EngineInvocation,
    EngineTimeout,
)

logger = logging.getLogger(__name__)

# How often a running child is checked for cancellation / deadline
_POLL_SECONDS = 0.25
# Time a terminated child gets before it is killed
_TERMINATE_GRACE_SECONDS = 5.0

# Containers where the moov atom should be moved to the front for progressive playback
_FASTSTART_SUFFIXES = {".mp4", ".mov", ".m4v"}


class AdmissionGate:
    """
    Caps how many engine processes run at once across all Jobs in this process.
    A limit of 0 or less means unbounded.
    """

    def __init__(self, limit: int):
        self.limit = limit
        self._semaphore = threading.BoundedSemaphore(limit) if limit > 0 else None

    def acquire(self, cancel: Optional[CancelToken] = None) -> bool:
        """
        Waits for a free slot. Returns False if `cancel` is set while waiting.
        """
        if self._semaphore is None:
            return True
        while not self._semaphore.acquire(timeout=_POLL_SECONDS):
            if cancel is not None and cancel.is_set():
                return False
        return True

    def release(self) -> None:
        if self._semaphore is not None:
            self._semaphore.release()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


# Process-wide gate shared by every FFmpegEngine that isn't given its own
admission_gate = AdmissionGate(settings.MAX_CONCURRENT_ENGINE_RUNS)


class FFmpegEngine(IMediaEngine):
    """
    Concrete implementation of IMediaEngine using the ffmpeg CLI.
    """

    def __init__(self, binary: Optional[str] = None, timeout_seconds: Optional[float] = None,
                 gate: Optional[AdmissionGate] = None):
        self.binary = binary or settings.FFMPEG_BINARY
        timeout = settings.ENGINE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self.timeout_seconds = timeout if timeout and timeout > 0 else None
        self.gate = gate or admission_gate

    def extract(self, source: Path, output: Path, start_seconds: float, duration_seconds: float,
                cancel: Optional[CancelToken] = None) -> EngineInvocation:
        # -ss before -i: fast input seek, snaps to the keyframe at or before start
        # -c copy: no re-encode
        # -avoid_negative_ts make_zero: each part starts at t=0 so concat lines up
        cmd = [
            self.binary,
            "-hide_banner",
            "-y",
            "-ss", _seconds(start_seconds),
            "-i", str(source),
            "-t", _seconds(duration_seconds),
            "-c", "copy",
            "-avoid_negative_ts", "make_zero",
            *_container_flags(output),
            str(output),
        ]
        return self._run(cmd, cancel)

    def concatenate(self, manifest: Path, output: Path,
                    cancel: Optional[CancelToken] = None) -> EngineInvocation:
        # -safe 0: manifest entries are absolute paths
        cmd = [
            self.binary,
            "-hide_banner",
            "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", str(manifest),
            "-c", "copy",
            *_container_flags(output),
            str(output),
        ]
        return self._run(cmd, cancel)

    def transform(self, source: Path, output: Path, video_filter: Optional[str] = None,
                  audio_filter: Optional[str] = None, encode: Optional[EncodeOptions] = None,
                  cancel: Optional[CancelToken] = None) -> EngineInvocation:
        encode = encode or EncodeOptions()
        cmd = [self.binary, "-hide_banner", "-y", "-i", str(source)]
        if video_filter:
            cmd += ["-vf", video_filter]
        if audio_filter:
            cmd += ["-af", audio_filter]
        cmd += ["-c:v", encode.video_codec, "-c:a", encode.audio_codec, *encode.extra]
        cmd += [*_container_flags(output), str(output)]
        return self._run(cmd, cancel)

    def _run(self, cmd: List[str], cancel: Optional[CancelToken]) -> EngineInvocation:
        invocation = EngineInvocation(argv=cmd)

        if not self.gate.acquire(cancel):
            invocation.mark_failed("cancelled while queued")
            logger.warning(f"FFmpeg cancelled before a slot was free: {cmd[-1]}")
            raise EngineCancelled()

        try:
            if cancel is not None and cancel.is_set():
                invocation.mark_failed("cancelled before start")
                raise EngineCancelled()

            logger.info(f"Executing FFmpeg: {' '.join(cmd)}")
            try:
                proc = subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.PIPE,
                )
            except OSError as e:
                # Missing binary, permission denied, ...
                invocation.mark_failed(str(e))
                logger.error(f"FFmpeg could not be started: {e}")
                raise EngineFailed(None, str(e)) from e

            invocation.mark_invoked()
            deadline = time.monotonic() + self.timeout_seconds if self.timeout_seconds else None

            while True:
                try:
                    _, raw_stderr = proc.communicate(timeout=_POLL_SECONDS)
                    break
                except subprocess.TimeoutExpired:
                    if cancel is not None and cancel.is_set():
                        stderr = self._stop(proc)
                        invocation.mark_failed("cancelled", proc.returncode, stderr)
                        logger.warning(f"FFmpeg cancelled: {cmd[-1]}")
                        raise EngineCancelled(stderr)
                    if deadline is not None and time.monotonic() >= deadline:
                        stderr = self._stop(proc)
                        invocation.mark_failed("timeout", proc.returncode, stderr)
                        logger.error(f"FFmpeg timed out after {self.timeout_seconds}s: {cmd[-1]}")
                        raise EngineTimeout(self.timeout_seconds, stderr)
        finally:
            self.gate.release()

        stderr = _decode(raw_stderr)
        if proc.returncode != 0:
            invocation.mark_failed("non-zero exit", proc.returncode, stderr)
            logger.error(f"FFmpeg Failed ({proc.returncode}). STDERR: {stderr.strip()}")
            raise EngineFailed(proc.returncode, stderr)

        invocation.mark_completed(stderr)
        logger.debug(f"FFmpeg completed in {invocation.elapsed:.2f}s: {cmd[-1]}")
        return invocation

    @staticmethod
    def _stop(proc: subprocess.Popen) -> str:
        """Terminates the child, escalating to kill. Returns whatever stderr was left."""
        proc.terminate()
        try:
            _, raw_stderr = proc.communicate(timeout=_TERMINATE_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            proc.kill()
            _, raw_stderr = proc.communicate()
        return _decode(raw_stderr)


def _seconds(value: float) -> str:
    return f"{value:.3f}"


def _decode(raw) -> str:
    if not raw:
        return ""
    return raw.decode("utf-8", errors="replace")


def _container_flags(output: Path) -> List[str]:
    if Path(output).suffix.lower() in _FASTSTART_SUFFIXES:
        return ["-movflags", "+faststart"]
    return []
