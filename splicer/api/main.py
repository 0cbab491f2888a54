"""Segment Splicer - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from splicer.core.config.settings import settings
from splicer.core.errors import SplicerError
from splicer.features.trim_pipeline.service.factory import build_pipeline
from splicer.features.trim_pipeline.service.pipeline import TrimPipeline
from . import routes

logger = logging.getLogger(__name__)


def create_app(pipeline: Optional[TrimPipeline] = None) -> FastAPI:
    """
    Builds the app. Without an explicit pipeline, one is wired from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.ensure_dirs()
        if getattr(app.state, "pipeline", None) is None:
            app.state.pipeline = build_pipeline()

        logger.info(f"Scratch root: {settings.SCRATCH_ROOT}")
        logger.info(f"Delivery mode: {settings.DELIVERY_MODE}, extraction mode: {settings.EXTRACTION_MODE}")

        # Orphans can only come from a previous crash of the whole process
        swept = app.state.pipeline.workspaces.sweep_stale()
        if swept:
            logger.warning(f"Removed {swept} stale workspace(s)")

        yield
        logger.info("Shutting down Segment Splicer")

    app = FastAPI(
        title="Segment Splicer",
        description="Extracts time ranges from a video and joins them into one file",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.APP_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(SplicerError)
    async def splicer_error_handler(request, exc: SplicerError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid trim request"})

    @app.exception_handler(HTTPException)
    async def http_error_handler(request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request, exc: Exception):
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(status_code=500, content={"error": "Processing failed"})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(routes.router)
    return app


app = create_app()


def run() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
