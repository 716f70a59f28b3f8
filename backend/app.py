import logging
import os
import sys
from datetime import datetime
from typing import AsyncIterator, Optional

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import ConfigurationError, Settings, load_settings
from ministry import TransformError, transform_content
from models import TransformRequest, TransformResult
from newsapi import (
    HEADLINES_ENDPOINT,
    SEARCH_ENDPOINT,
    NewsAPIError,
    fetch_news,
    headlines_query,
    search_query,
)

SERVICE_NAME = "Ministry of Truth Backend"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

logger = logging.getLogger("backend")


def configure_logging(log_dir: Optional[str] = None) -> None:
    """Log to stderr and, when ``log_dir`` is given, to ``<log_dir>/app.log``."""
    handlers = [logging.StreamHandler()]
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.insert(0, logging.FileHandler(os.path.join(log_dir, "app.log")))
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=handlers,
    )


# Dependencies – settings are loaded once per process and shared read-only,
# the upstream HTTP client lives for a single request.
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_http_client(
    request: Request, settings: Settings = Depends(get_settings)
) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=request.app.state.transport, timeout=settings.upstream_timeout
    ) as client:
        yield client


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Without ``settings`` the ``.env`` file and the environment are read via
    :func:`config.load_settings` and logging is configured, so a missing API
    key fails here, before the server accepts connections. ``transport`` replaces
    the network transport of every upstream client (tests pass an
    ``httpx.MockTransport``).
    """
    if settings is None:
        # Started as ``uvicorn app:create_app --factory``; main() is bypassed.
        load_dotenv(".env")
        settings = load_settings()
        configure_logging(settings.log_dir)

    app = FastAPI(title=SERVICE_NAME)
    app.state.settings = settings
    app.state.transport = transport

    # Middleware – log every incoming HTTP request and its response status
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client = request.client.host if request.client else "-"
        logger.info("%s %s from %s", request.method, request.url.path, client)
        response = await call_next(request)
        logger.info(
            "%s %s -> %d", request.method, request.url.path, response.status_code
        )
        return response

    # Registered last so it wraps everything else: preflight requests never
    # reach routing and every response gets the CORS headers.
    @app.middleware("http")
    async def cors_headers(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException):
        # A known path with the wrong method is still just a miss.
        if exc.status_code in (404, 405):
            return JSONResponse({"detail": "Not found"}, status_code=404)
        return await http_exception_handler(request, exc)

    @app.get("/health")
    @app.get("/api/health")
    def health():
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "time": datetime.now().astimezone().isoformat(timespec="seconds"),
        }

    @app.get("/api/news/headlines")
    async def headlines(
        category: str = "",
        settings: Settings = Depends(get_settings),
        client: httpx.AsyncClient = Depends(get_http_client),
    ):
        try:
            data = await fetch_news(
                client, settings, HEADLINES_ENDPOINT, headlines_query(category)
            )
        except NewsAPIError as exc:
            logger.error("Error fetching news: %s", exc)
            raise HTTPException(status_code=500, detail=f"Error fetching news: {exc}")
        return JSONResponse(content=data)

    @app.get("/api/news/search")
    async def search(
        q: str = "",
        settings: Settings = Depends(get_settings),
        client: httpx.AsyncClient = Depends(get_http_client),
    ):
        if not q:
            raise HTTPException(
                status_code=400, detail="Query parameter 'q' is required"
            )
        try:
            data = await fetch_news(client, settings, SEARCH_ENDPOINT, search_query(q))
        except NewsAPIError as exc:
            logger.error("Error searching news: %s", exc)
            raise HTTPException(
                status_code=500, detail=f"Error searching news: {exc}"
            )
        return JSONResponse(content=data)

    @app.post("/api/transform", response_model=TransformResult)
    async def transform(
        request: Request,
        settings: Settings = Depends(get_settings),
        client: httpx.AsyncClient = Depends(get_http_client),
    ):
        try:
            item = TransformRequest.model_validate_json(await request.body())
        except ValidationError:
            raise HTTPException(status_code=400, detail="Invalid JSON")
        try:
            text = await transform_content(
                client, settings, item.title, item.description
            )
        except TransformError as exc:
            logger.error("Transform error: %s", exc)
            raise HTTPException(status_code=500, detail="Error transforming content")
        return TransformResult(transformedContent=text)

    # The static front end (index.html and friends) is served from STATIC_DIR.
    if os.path.isdir(settings.static_dir):
        app.mount(
            "/",
            StaticFiles(directory=settings.static_dir, html=True),
            name="static",
        )
    else:
        logger.warning(
            "Static directory %s not found; serving API only", settings.static_dir
        )

    return app


def main() -> None:
    load_dotenv(".env")
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        configure_logging()
        logger.critical("Failed to load configuration: %s", exc)
        sys.exit(1)

    configure_logging(settings.log_dir)
    logger.info("%s starting on port %d", SERVICE_NAME, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
