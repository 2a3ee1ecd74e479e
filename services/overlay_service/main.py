import base64
import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError, field_validator
from starlette.middleware.base import BaseHTTPMiddleware

from . import settings
from .compositor import build_http_client, create_overlay
from .errors import ClientInputError, OverlayError, PayloadTooLargeError
from .hooks import classify_content, generate_hook
from .platforms import get_platform_style

logger = logging.getLogger(__name__)

app = FastAPI(title="Hook Overlay Service", version="3.0.0")


class LimitRequestSizeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        max_bytes = settings.MAX_REQUEST_SIZE_MB * 1024 * 1024
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > max_bytes:
            logger.warning(f"Rejecting request body of {content_length} bytes (limit={settings.MAX_REQUEST_SIZE_MB}MB)")
            return JSONResponse(status_code=413, content={"error": "Request body too large"})
        return await call_next(request)


app.add_middleware(LimitRequestSizeMiddleware)


class OverlayRequest(BaseModel):
    background_url: Optional[str] = None
    content: Optional[str] = None
    platform: str = ""
    title: str = ""
    excerpt: str = ""

    @field_validator("title", "excerpt", "platform", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


def _error_payload(message: str, exc: BaseException) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": message}
    if not settings.is_production():
        payload["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return payload


@app.exception_handler(OverlayError)
async def overlay_error_handler(_: Request, exc: OverlayError):
    if exc.status_code >= 500:
        logger.error(f"Overlay error: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.message, exc))
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(_: Request, exc: Exception):
    logger.error(f"Unhandled error: {exc!r}")
    return JSONResponse(status_code=500, content=_error_payload(str(exc) or exc.__class__.__name__, exc))


async def read_body(request: Request) -> bytes:
    """Read the body while counting bytes, so chunked uploads are held to the same limit."""
    max_bytes = settings.MAX_REQUEST_SIZE_MB * 1024 * 1024
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            logger.warning(f"Rejecting streamed request body over {settings.MAX_REQUEST_SIZE_MB}MB")
            raise PayloadTooLargeError("Request body too large")
    return bytes(body)


async def parse_overlay_request(request: Request) -> OverlayRequest:
    body = await read_body(request)
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ClientInputError(f"Invalid JSON body: {e}") from e
    if not isinstance(payload, dict):
        raise ClientInputError("Request body must be a JSON object")
    try:
        req = OverlayRequest.model_validate(payload)
    except ValidationError as e:
        raise ClientInputError(f"Invalid request: {e.errors(include_url=False)}") from e
    if not req.background_url or not req.content:
        raise ClientInputError("Missing background_url or content")
    return req


@app.get("/health")
async def health():
    """Liveness probe"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "canvas": "available",
    }


@app.post("/overlay")
async def overlay(request: Request):
    req = await parse_overlay_request(request)

    try:
        logger.info("=== OVERLAY REQUEST ===")
        logger.info(f"Platform: {req.platform}")
        logger.info(f"Content length: {len(req.content)}")
        logger.info(f"Title: {req.title[:50]}...")

        style = get_platform_style(req.platform)
        hooks = classify_content(req.content)
        hook = generate_hook(req.platform, req.title, req.content, req.excerpt, hooks=hooks)

        async with build_http_client() as client:
            png_bytes = await create_overlay(client, req.background_url, hook, style)
    except OverlayError:
        raise
    except Exception as e:
        logger.exception(f"Overlay error: {e}")
        return JSONResponse(status_code=500, content=_error_payload(str(e) or e.__class__.__name__, e))
    logger.info(f"Canvas overlay completed, buffer size: {len(png_bytes)}")

    b64 = base64.b64encode(png_bytes).decode("ascii")
    result: Dict[str, Any] = {
        "success": True,
        "image_base64": b64,
        "image_url": f"data:image/png;base64,{b64}",
    }
    # platform is echoed only when the client sent one
    if "platform" in req.model_fields_set:
        result["platform"] = req.platform
    result["hook_used"] = hook.model_dump()
    return result


def run() -> None:
    import uvicorn

    logger.info(f"Overlay service running on port {settings.PORT}")
    logger.info(f"Health check: http://localhost:{settings.PORT}/health")
    # Shutdown does not wait for in-flight overlays beyond the grace timeout
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        timeout_graceful_shutdown=settings.SHUTDOWN_TIMEOUT_S,
    )


if __name__ == "__main__":
    run()
