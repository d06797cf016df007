"""Placefile HTTP service: FastAPI app serving archived tornado warnings."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from torplace.config.schema import ServiceConfig
from torplace.ingest import range_parser
from torplace.ingest.archive_client import UpstreamError, WarningSource
from torplace.ingest.range_parser import InvalidRangeError
from torplace.pipeline.placefile_pipeline import PlacefilePipeline

logger = logging.getLogger(__name__)


def create_app(
    config: ServiceConfig | None = None, source: WarningSource | None = None
) -> FastAPI:
    """Build the app. ``source`` replaces the IEM archive client when given."""
    config = config or ServiceConfig()
    app = FastAPI(
        title="Tornado Warning Placefiles",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.source = source

    @app.exception_handler(InvalidRangeError)
    async def invalid_range(request: Request, exc: InvalidRangeError):
        logger.info("Rejected %s: %s", request.url.path, exc)
        return PlainTextResponse(str(exc), status_code=400)

    @app.exception_handler(UpstreamError)
    async def upstream_failed(request: Request, exc: UpstreamError):
        return PlainTextResponse(f"UpstreamError: {exc.reason}", status_code=502)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    # ── Placefile ───────────────────────────────────────────────

    @app.get("/warnings.txt")
    async def get_warnings(request: Request):
        """Tornado warnings issued between start and end (inclusive)."""
        interval = range_parser.parse(request.query_params)
        pipeline = PlacefilePipeline(app.state.config, source=app.state.source)
        body = await pipeline.open(interval)
        return StreamingResponse(body, media_type="text/plain")

    return app


app = create_app()
