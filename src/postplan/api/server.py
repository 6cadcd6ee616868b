"""FastAPI server for the postplan HTTP API."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import FastAPI, HTTPException as FastAPIHTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from postplan import __version__
from postplan.settings import PostplanSettings, get_settings

from .routes import health, schedule

settings: PostplanSettings = get_settings()

app = FastAPI(
    title="postplan API",
    description="Streaming social media schedule generation",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    debug=settings.API_DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def enforce_request_size(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Reject requests that exceed the configured payload limit."""
    max_bytes = settings.API_MAX_REQUEST_BYTES
    header_value = request.headers.get("content-length")
    if header_value is not None:
        try:
            content_length = int(header_value)
        except ValueError:
            return JSONResponse(
                status_code=400,
                content={"code": "invalid_payload", "message": "Invalid Content-Length header"},
            )
        if content_length > max_bytes:
            return JSONResponse(
                status_code=413,
                content={"code": "invalid_payload", "message": "Request body too large"},
            )

    return await call_next(request)


@app.exception_handler(FastAPIHTTPException)
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: FastAPIHTTPException | StarletteHTTPException
) -> JSONResponse:
    """
    Convert HTTPException to the ApiError shape.

    Responses look like {"code": "...", "message": "...", "details": {...}}
    instead of FastAPI's default {"detail": ...}.
    """
    if isinstance(exc.detail, dict) and "code" in exc.detail and "message" in exc.detail:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
            headers=getattr(exc, "headers", None),
        )

    code_map = {
        400: "invalid_payload",
        404: "not_found",
        405: "method_not_allowed",
        413: "invalid_payload",
        429: "rate_limit_exceeded",
        500: "internal_error",
        503: "provider_unavailable",
    }

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": code_map.get(exc.status_code, "internal_error"),
            "message": str(exc.detail),
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Convert request validation errors to a 400 ApiError.

    The first error names the offending field; the full list goes in details.
    """
    errors = exc.errors()
    first_error = errors[0] if errors else {}

    field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
    error_msg = first_error.get("msg", "Validation error")

    message = f"Validation error: {field}: {error_msg}" if field else error_msg

    return JSONResponse(
        status_code=400,
        content={
            "code": "invalid_payload",
            "message": message,
            "details": {
                "validation_errors": jsonable_encoder(errors, custom_encoder={Exception: str})
            },
        },
    )


app.include_router(schedule.router, prefix=settings.API_PREFIX)
app.include_router(health.router, prefix=settings.API_PREFIX)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


# Main entry point for running with `python -m postplan.api.server`
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "postplan.api.server:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_DEBUG,
    )
