"""
FastAPI server for the Indisense service.

This module implements the three analysis handlers (text, audio, video)
plus CORS preflight and a health check. Handlers accept JSON bodies, run
them through the analysis pipeline and answer with either the success
envelope or a ``{status: "error", message, code}`` failure envelope.
"""

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from . import __version__
from .config import Settings
from .errors import AnalysisError, InvalidInput
from .log import configure_logging
from .models import (
    AnalysisResult,
    ErrorResponse,
    InputKind,
    MediaAnalysisRequest,
    TextAnalysisRequest,
)
from .pipeline import AnalysisPipeline

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

RequestModel = TypeVar("RequestModel", bound=BaseModel)


def create_app(pipeline: AnalysisPipeline) -> FastAPI:
    """
    Create a FastAPI application around the given analysis pipeline.

    Args:
        pipeline: The AnalysisPipeline instance serving every request

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        yield
        await pipeline.aclose()

    app = FastAPI(
        title="Indisense",
        description="Sentiment analysis for text, audio and video",
        version=__version__,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def add_cors_headers(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(AnalysisError)
    async def analysis_error(request: Request, exc: AnalysisError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s failed: %s", request.url.path, exc.message)
        body = ErrorResponse(message=exc.message, code=exc.code)
        return JSONResponse(body.model_dump(), status_code=exc.status_code)

    @app.options("/{path:path}")
    async def preflight(path: str) -> Response:
        """Answer CORS preflight requests for any path."""
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "indisense"}

    @app.post("/analyze-text")
    async def analyze_text(request: Request) -> JSONResponse:
        """
        Analyze the sentiment of typed text.

        Request body: ``{"text": "..."}``
        """
        payload = _parse_body(
            TextAnalysisRequest,
            await _read_json(request),
            "No text provided for analysis",
        )
        result = await _run(pipeline.analyze_text(payload))
        return JSONResponse(result.to_response())

    @app.post("/analyze-audio")
    async def analyze_audio(request: Request) -> JSONResponse:
        """
        Transcribe an audio clip and analyze what was said.

        Request body: ``{"audioData": "<base64>", "mimeType": ..., "fileName": ...}``
        """
        return await _analyze_media(request, InputKind.AUDIO, "No audio data provided")

    @app.post("/analyze-video")
    async def analyze_video(request: Request) -> JSONResponse:
        """
        Transcribe the speech in a video and analyze what was said.

        Request body: same shape as ``/analyze-audio``
        """
        return await _analyze_media(
            request, InputKind.VIDEO, "No video/audio data provided"
        )

    async def _analyze_media(
        request: Request, kind: InputKind, missing_message: str
    ) -> JSONResponse:
        payload = _parse_body(
            MediaAnalysisRequest, await _read_json(request), missing_message
        )
        result = await _run(pipeline.analyze_media(payload, kind))
        return JSONResponse(result.to_response())

    return app


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InvalidInput("Request body must be valid JSON")


def _parse_body(model: type[RequestModel], body: Any, message: str) -> RequestModel:
    """Validate a JSON body, turning any schema failure into InvalidInput."""
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")
    try:
        return model.model_validate(body)
    except ValidationError:
        raise InvalidInput(message)


async def _run(analysis: Awaitable[AnalysisResult]) -> AnalysisResult:
    """Await an analysis, reporting unexpected exceptions as AnalysisError."""
    try:
        return await analysis
    except AnalysisError:
        raise
    except Exception as e:
        logger.exception("Unexpected error during analysis")
        raise AnalysisError(str(e) or f"Unknown error of type {type(e).__name__}")


# Default app instance for uvicorn. Importing this module reads the
# environment and raises ConfigurationError on a malformed INDISENSE_* number.
settings = Settings.from_env()
app = create_app(AnalysisPipeline(settings))


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(
        "indisense.server:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
