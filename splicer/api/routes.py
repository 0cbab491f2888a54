"""
Trim endpoints.

  POST /api/trim      multipart: `video` file + `segments` JSON string
  POST /api/trim/url  JSON: {"url": ..., "segments": [...]}

Both return the joined video inline (DELIVERY_MODE=stream) or {"url": ...}
(DELIVERY_MODE=s3). Failures come back as {"error": ...}.
"""

import asyncio
import json
import logging
import uuid
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from splicer.core.config.settings import settings
from splicer.core.errors import SourceUnavailable, ValidationError
from splicer.core.jobs.models import SourceReference
from splicer.features.delivery.domain.models import DeliveryResult
from splicer.features.media_engine.domain.models import CancelToken
from splicer.features.trim_pipeline.domain.models import TrimRequest
from splicer.features.trim_pipeline.service.pipeline import TrimPipeline
from .schemas import ErrorResponse, UrlDeliveryResponse, UrlTrimBody

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

_DISCONNECT_POLL_SECONDS = 0.5
_UPLOAD_CHUNK_BYTES = 1024 * 1024

_RESPONSES = {
    200: {"content": {"video/mp4": {}}, "model": UrlDeliveryResponse,
          "description": "The joined video (stream delivery) or its URL (s3 delivery)"},
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.post("/trim", responses=_RESPONSES)
async def trim_upload(request: Request,
                      video: Optional[UploadFile] = File(None),
                      segments: Optional[str] = Form(None)):
    pipeline = _pipeline(request)

    if video is None:
        raise ValidationError("Missing video file")
    if not segments:
        raise ValidationError("Missing segments")
    raw_segments = _decode_segments(segments)

    upload_path = await _save_upload(video)
    try:
        trim_request = TrimRequest(
            source=SourceReference.upload(upload_path, video.filename),
            segments=raw_segments,
        )
        result = await _run_cancellable(request, pipeline, trim_request)
    finally:
        # Normally the pipeline has moved it into the workspace already
        upload_path.unlink(missing_ok=True)

    return _to_response(result)


@router.post("/trim/url", responses=_RESPONSES)
async def trim_url(request: Request, body: UrlTrimBody):
    pipeline = _pipeline(request)
    trim_request = TrimRequest(source=SourceReference.url(body.url), segments=body.segments)
    result = await _run_cancellable(request, pipeline, trim_request)
    return _to_response(result)


def _pipeline(request: Request) -> TrimPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise RuntimeError("Trim pipeline not initialised")
    return pipeline


def _decode_segments(raw: str):
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid segments format")
    if not isinstance(decoded, list) or len(decoded) == 0:
        raise ValidationError("Invalid segments format")
    return decoded


async def _save_upload(video: UploadFile) -> Path:
    """Writes the upload to UPLOAD_DIR in 1 MB chunks, enforcing MAX_SOURCE_BYTES."""
    settings.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    suffix = Path(video.filename or "").suffix.lower() or ".mp4"
    upload_path = settings.UPLOAD_DIR / f"{uuid.uuid4()}{suffix}"

    total = 0
    try:
        with open(upload_path, "wb") as dst:
            while True:
                chunk = await video.read(_UPLOAD_CHUNK_BYTES)
                if not chunk:
                    break
                total += len(chunk)
                if total > settings.MAX_SOURCE_BYTES:
                    raise SourceUnavailable(
                        f"Upload exceeds {settings.MAX_SOURCE_BYTES} bytes", status_code=413
                    )
                dst.write(chunk)
    except BaseException:
        upload_path.unlink(missing_ok=True)
        raise

    logger.info(f"Upload received: {video.filename} ({total} bytes)")
    return upload_path


async def _run_cancellable(request: Request, pipeline: TrimPipeline, trim_request: TrimRequest) -> DeliveryResult:
    """
    Runs the blocking pipeline in the threadpool while watching the client.
    If the client goes away, the running engine process is terminated.
    """
    cancel = CancelToken()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel))
    try:
        return await run_in_threadpool(pipeline.run, trim_request, cancel)
    finally:
        watcher.cancel()


async def _watch_disconnect(request: Request, cancel: CancelToken) -> None:
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.warning("Client disconnected, cancelling job")
            cancel.cancel()
            return
        await asyncio.sleep(_DISCONNECT_POLL_SECONDS)


def _to_response(result: DeliveryResult):
    if result.is_stream:
        # The stream finalizes the Job itself; the background task only
        # covers a response that was dropped before the stream finished.
        return StreamingResponse(
            result.body,
            media_type=result.media_type,
            headers=result.headers,
            background=BackgroundTask(result.close),
        )
    return JSONResponse({"url": result.url})
