"""HTTP surface: a single GET endpoint returning new query log lines."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from querylog_exporter.config import ExporterConfig, get_config
from querylog_exporter.exceptions import ExporterError
from querylog_exporter.handler import Extractor
from querylog_exporter.logging_utils import get_logger

logger = get_logger(__name__)


def create_app(config: ExporterConfig | None = None, extractor: Extractor | None = None) -> FastAPI:
    """Build the FastAPI application around one shared Extractor."""
    config = config or get_config()
    app = FastAPI(title="Query Log Exporter", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.config = config
    app.state.extractor = extractor or Extractor(config)

    @app.exception_handler(ExporterError)
    async def exporter_error_handler(request: Request, exc: ExporterError) -> PlainTextResponse:
        return PlainTextResponse(str(exc), status_code=500)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
        logger.exception("Unexpected error during extraction")
        return PlainTextResponse(f"Unexpected error: {exc}", status_code=500)

    # Sync route: FastAPI runs it in the threadpool, the Extractor lock serializes it
    @app.get("/", response_class=PlainTextResponse)
    def get_query_lines(request: Request) -> PlainTextResponse:
        result = request.app.state.extractor.extract()
        return PlainTextResponse(result.body, status_code=200)

    return app
