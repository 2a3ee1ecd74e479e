import io
from typing import Callable, Dict, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from overlay_service import main, settings

BACKGROUND_URL = "https://images.example.com/background.jpg"

Route = Callable[[httpx.Request], httpx.Response]


def make_image_bytes(fmt: str = "PNG", size: Tuple[int, int] = (64, 64), color=(30, 60, 90)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def image_response(data: bytes, content_type: str = "image/png") -> Route:
    return lambda request: httpx.Response(200, content=data, headers={"Content-Type": content_type})


def status_response(status: int) -> Route:
    return lambda request: httpx.Response(status, content=b"nope")


def timeout_response(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


@pytest.fixture
def routes() -> Dict[str, Route]:
    """URL -> handler map served by the mock transport; tests overwrite entries."""
    return {
        BACKGROUND_URL: image_response(make_image_bytes("JPEG", (200, 120), (240, 240, 240)), "image/jpeg"),
        settings.LOGO_URL: image_response(make_image_bytes("PNG", (512, 512), (255, 0, 0))),
    }


@pytest.fixture
def http_client_factory(routes):
    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404)
        return route(request)

    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def client(http_client_factory, monkeypatch):
    monkeypatch.setattr(main, "build_http_client", http_client_factory)
    return TestClient(main.app)
