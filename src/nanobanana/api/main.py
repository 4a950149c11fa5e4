"""Nano Banana relay - FastAPI Application.

This module is the single entry point for the web service.  It defines the
FastAPI ``app`` instance, the REST routes, the CORS and error-envelope
handling, and the ``main()`` CLI function that launches the uvicorn server.

Architecture
------------
The service is a stateless relay:

- **Configuration** comes from :data:`~nanobanana.core.config.config`
  (``NANOBANANA_*`` environment variables).
- **Generation** is delegated to :class:`~nanobanana.core.generator.ImageGenerator`,
  which is created at startup around one shared ``httpx.AsyncClient``.
- **Errors** are always answered as ``{"error": message}``.  Pipeline errors
  carry their own status; unknown routes get 404; anything unexpected gets a
  generic 500.
- **CORS** headers are attached to every response, and ``OPTIONS`` on any
  path is answered with an empty 200 before routing.

Endpoints
---------
========  ==========================  ====================================
Method    Path                        Purpose
========  ==========================  ====================================
GET       ``/``                       Service descriptor
GET       ``/health``                 Liveness payload with timestamp
POST      ``/v1/image/generations``   Generate, re-host, return URL
OPTIONS   any                         CORS preflight
========  ==========================  ====================================

Usage
-----
CLI (installed entry point)::

    nanobanana

Direct invocation::

    python -m nanobanana.api.main
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from nanobanana import __version__
from nanobanana.api.models import (
    ErrorResponse,
    GenerationRequest,
    GenerationResponse,
    HealthResponse,
    ImageData,
    ServiceInfo,
)
from nanobanana.core.config import config
from nanobanana.core.errors import NotFoundError, RelayError, ValidationError
from nanobanana.core.generator import ImageGenerator

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

# ---------------------------------------------------------------------------
# Application lifecycle: shared HTTP client and generator.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Opens one ``httpx.AsyncClient`` for all outbound calls and stores an
        :class:`ImageGenerator` built around it on ``app.state``.

    On shutdown:
        Closes the HTTP client.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    http = httpx.AsyncClient(timeout=config.http_timeout)
    app.state.generator = ImageGenerator(http, config)
    logger.info("ImageGenerator initialised (upstream: %s).", config.submit_url)

    yield  # Application runs here.

    await http.aclose()
    logger.info("HTTP client closed on shutdown.")


app = FastAPI(
    title=config.service_name,
    description=config.service_description,
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)


# ---------------------------------------------------------------------------
# Error envelopes and CORS.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Answer pipeline and validation errors with their carried status."""
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Map router misses (unknown path or wrong method) to the 404 envelope."""
    if exc.status_code in (404, 405):
        not_found = NotFoundError("Endpoint not found")
        return _error_response(not_found.status_code, not_found.message)
    return _error_response(exc.status_code, str(exc.detail))


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Short-circuit ``OPTIONS``, catch anything unhandled, add CORS headers.

    Runs outside FastAPI's exception handlers, so an exception reaching this
    point has no registered handler and becomes the generic 500 envelope.
    """
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error serving %s %s", request.method, request.url.path)
        response = _error_response(500, "Internal server error")

    response.headers.update(CORS_HEADERS)
    return response


# ---------------------------------------------------------------------------
# Request parsing.
# ---------------------------------------------------------------------------


async def _parse_generation_request(request: Request) -> GenerationRequest:
    """Validate the inbound request and build a :class:`GenerationRequest`.

    A body that is not valid JSON, or not a JSON object, carries no prompt
    and is rejected the same way as a blank prompt.

    Raises:
        ValidationError: Wrong content type, or missing/blank prompt.
    """
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        raise ValidationError("Content-Type must be application/json")

    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    image_url = body.get("image_url")
    try:
        return GenerationRequest(
            prompt=body.get("prompt"),
            image_url=image_url if isinstance(image_url, str) else None,
        )
    except PydanticValidationError as exc:
        raise ValidationError("Prompt cannot be empty") from exc


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", response_model=ServiceInfo)
async def root() -> ServiceInfo:
    """Return the service descriptor."""
    return ServiceInfo(
        message=f"\U0001f34c {config.service_name}",
        version=__version__,
        description=config.service_description,
        endpoints={
            "POST /v1/image/generations": "Generate image from prompt",
            "GET /health": "Health check",
        },
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Return a liveness payload stamped with the current UTC time."""
    return HealthResponse(
        status="healthy",
        service=config.service_name,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@app.post(
    "/v1/image/generations",
    response_model=GenerationResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_image(request: Request) -> GenerationResponse:
    """Generate an image, re-host it, and return its public URL.

    The body is parsed by hand rather than through a typed parameter so that
    the content-type check runs first and validation failures use the
    ``{"error": ...}`` envelope instead of FastAPI's 422 shape.

    Returns:
        ``{"created": <unix seconds>, "data": [{"url", "revised_prompt"}]}``
        where ``revised_prompt`` is the prompt exactly as received.

    Raises:
        ValidationError: 400 for a bad content type or empty prompt.
        RelayError: Any pipeline failure, with its carried status.
    """
    generation = await _parse_generation_request(request)
    logger.info(
        "Received image generation request: prompt='%s...', image_url='%s'",
        generation.prompt[:50],
        generation.image_url,
    )

    generator: ImageGenerator = request.app.state.generator
    try:
        url = await generator.generate(generation.prompt, generation.image_url)
    except RelayError:
        raise
    except Exception as exc:
        logger.exception("Error in image generation")
        raise RelayError(str(exc) or "Internal server error") from exc

    logger.info("Successfully generated and uploaded image")
    return GenerationResponse(
        created=int(time.time()),
        data=[ImageData(url=url, revised_prompt=generation.prompt)],
    )


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~nanobanana.core.config.config`
    (``NANOBANANA_SERVER_HOST``, ``NANOBANANA_SERVER_PORT``,
    ``NANOBANANA_LOG_LEVEL``).  Defaults to ``0.0.0.0:8787``.

    This function is registered as the ``nanobanana`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "nanobanana.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
