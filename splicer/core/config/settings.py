# File: splicer/core/config/settings.py

import os
import shutil
import tempfile
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Settings:
    # --- Paths ---
    # Every job gets its own directory under this root
    SCRATCH_ROOT: Path = Path(os.getenv("SCRATCH_ROOT", str(Path(tempfile.gettempdir()) / "video-jobs")))
    WORKSPACE_TTL_SECONDS: int = _env_int("WORKSPACE_TTL_SECONDS", 6 * 3600)
    # Raw uploads land here before they are moved into a workspace
    UPLOAD_DIR: Path = Path(os.getenv("UPLOAD_DIR", str(Path(tempfile.gettempdir()) / "video-uploads")))

    # --- External Tools ---
    # Auto-detect ffmpeg or use env var
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")

    # "copy" (lossless, keyframe-bounded) or "accurate" (re-encode via filter graph)
    EXTRACTION_MODE: str = os.getenv("EXTRACTION_MODE", "copy")
    OUTPUT_CONTAINER: str = os.getenv("OUTPUT_CONTAINER", "mp4")

    # 0 disables the timeout
    ENGINE_TIMEOUT_SECONDS: int = _env_int("ENGINE_TIMEOUT_SECONDS", 600)
    MAX_CONCURRENT_ENGINE_RUNS: int = _env_int("MAX_CONCURRENT_ENGINE_RUNS", 4)

    # --- Sources ---
    FETCH_TIMEOUT_SECONDS: int = _env_int("FETCH_TIMEOUT_SECONDS", 120)
    MAX_SOURCE_BYTES: int = _env_int("MAX_SOURCE_BYTES", 1024 * 1024 * 1024)  # 1 GB

    # --- Delivery ---
    # "stream" (bytes in the response) or "s3" (upload, return a URL)
    DELIVERY_MODE: str = os.getenv("DELIVERY_MODE", "stream")
    STREAM_CHUNK_BYTES: int = _env_int("STREAM_CHUNK_BYTES", 1024 * 1024)
    S3_BUCKET: str = os.getenv("S3_BUCKET", "")
    S3_PREFIX: str = os.getenv("S3_PREFIX", "trimmed_videos")
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")

    # --- HTTP ---
    APP_ORIGIN: str = os.getenv("APP_ORIGIN", "http://localhost:3000")
    PORT: int = _env_int("PORT", 4000)

    def ensure_dirs(self):
        """Creates the scratch and upload directories if they don't exist."""
        self.SCRATCH_ROOT.mkdir(parents=True, exist_ok=True)
        self.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
