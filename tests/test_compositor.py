import asyncio
import io

import httpx
import pytest
from PIL import Image

from conftest import BACKGROUND_URL, status_response, timeout_response
from overlay_service import compositor, settings
from overlay_service.errors import DecodeError, RemoteFetchError
from overlay_service.hooks import generate_hook
from overlay_service.platforms import PLATFORM_STYLES, Platform

WHITE = (255, 255, 255)


def fetch(factory, url):
    async def _run():
        async with factory() as client:
            return await compositor.load_image_from_url(client, url)

    return asyncio.run(_run())


def fetch_logo(factory, url):
    async def _run():
        async with factory() as client:
            return await compositor.load_logo(client, url)

    return asyncio.run(_run())


def white_background() -> Image.Image:
    return Image.new("RGBA", (300, 200), WHITE + (255,))


class TestLoadImage:
    def test_decodes_remote_image(self, http_client_factory):
        image = fetch(http_client_factory, BACKGROUND_URL)
        assert image.mode == "RGBA"
        assert image.size == (200, 120)

    def test_non_success_status_raises_fetch_error(self, routes, http_client_factory):
        routes[BACKGROUND_URL] = status_response(404)
        with pytest.raises(RemoteFetchError, match="404"):
            fetch(http_client_factory, BACKGROUND_URL)

    def test_timeout_raises_fetch_error(self, routes, http_client_factory):
        routes[BACKGROUND_URL] = timeout_response
        with pytest.raises(RemoteFetchError, match="Timed out"):
            fetch(http_client_factory, BACKGROUND_URL)

    def test_undecodable_bytes_raise_decode_error(self, routes, http_client_factory):
        routes[BACKGROUND_URL] = lambda request: httpx.Response(200, content=b"<html>not an image</html>")
        with pytest.raises(DecodeError):
            fetch(http_client_factory, BACKGROUND_URL)

    def test_logo_failures_are_swallowed(self, routes, http_client_factory):
        routes[settings.LOGO_URL] = status_response(500)
        assert fetch_logo(http_client_factory, settings.LOGO_URL) is None
        routes[settings.LOGO_URL] = timeout_response
        assert fetch_logo(http_client_factory, settings.LOGO_URL) is None

    def test_logo_skipped_without_url(self, http_client_factory):
        assert fetch_logo(http_client_factory, "") is None


def test_decode_image_rejects_garbage():
    with pytest.raises(DecodeError, match="example.test"):
        compositor.decode_image("https://example.test/x.png", b"\x00\x01\x02")


class TestCompose:
    style = PLATFORM_STYLES[Platform.LINKEDIN]
    hook = generate_hook("linkedin", "", "Our Leadership Matrix helped 87% of clients.", "Grow faster.")

    def test_canvas_is_fixed_size(self):
        canvas = compositor.compose_overlay(white_background(), None, self.hook, self.style)
        assert canvas.size == (1080, 1080)

    def test_gradient_darkens_only_the_lower_band(self):
        canvas = compositor.compose_overlay(white_background(), None, self.hook, self.style)
        assert canvas.getpixel((5, 100))[:3] == WHITE
        top_of_band = canvas.getpixel((5, 500))[:3]
        bottom = canvas.getpixel((5, 1079))[:3]
        assert 190 <= top_of_band[0] <= 210
        assert bottom[0] < 20

    def test_logo_is_drawn_centered(self):
        logo = Image.new("RGBA", (512, 512), (255, 0, 0, 255))
        with_logo = compositor.compose_overlay(white_background(), logo, self.hook, self.style)
        without_logo = compositor.compose_overlay(white_background(), None, self.hook, self.style)
        assert with_logo.getpixel((540, 560)) == (255, 0, 0, 255)
        assert without_logo.getpixel((540, 560))[:3] != (255, 0, 0)

    @pytest.mark.parametrize("platform", list(Platform))
    def test_render_produces_png(self, platform):
        style = PLATFORM_STYLES[platform]
        hook = generate_hook(platform.value, "Title", "Some content that is long enough to use.", "")
        data = compositor.render_overlay(white_background(), None, hook, style)
        assert data.startswith(b"\x89PNG")
        with Image.open(io.BytesIO(data)) as image:
            assert image.size == (1080, 1080)


def test_create_overlay_renders_with_logo(http_client_factory):
    hook = generate_hook("twitter", "", "Hot take: mentors matter more than courses", "")

    async def _run():
        async with http_client_factory() as client:
            return await compositor.create_overlay(client, BACKGROUND_URL, hook, PLATFORM_STYLES[Platform.TWITTER])

    data = asyncio.run(_run())
    with Image.open(io.BytesIO(data)) as image:
        assert image.size == (1080, 1080)
        assert image.convert("RGB").getpixel((540, 560)) == (255, 0, 0)


def test_background_failure_is_fatal(routes, http_client_factory):
    routes[BACKGROUND_URL] = status_response(503)
    hook = generate_hook("linkedin", "", "content line here", "")

    async def _run():
        async with http_client_factory() as client:
            return await compositor.create_overlay(client, BACKGROUND_URL, hook, PLATFORM_STYLES[Platform.LINKEDIN])

    with pytest.raises(RemoteFetchError):
        asyncio.run(_run())
