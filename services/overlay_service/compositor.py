import io
import asyncio
import logging
from typing import Optional, Tuple

import httpx
import numpy as np
from PIL import Image, ImageDraw

from . import settings
from .errors import DecodeError, OverlayError, RemoteFetchError, RenderError
from .hooks import HookContent
from .layout import (
    BRAND_FONT_SIZE,
    CANVAS_SIZE,
    CENTER_X,
    CTA_FONT_SIZE,
    TextLine,
    font_measure,
    layout_hook,
    load_font,
)
from .platforms import PlatformStyle

logger = logging.getLogger(__name__)

# Dark band behind the text: (position within the band, alpha)
OVERLAY_TOP = 500
OVERLAY_STOPS = [(0.0, 0.2), (0.6, 0.8), (1.0, 0.95)]

LOGO_SIZE = 60
LOGO_TOP = 530
BRAND_LABEL_Y = 610
BRAND_LABEL_COLOR = "#FFFFFF"

SUPPORT_COLOR = "#E8E8E8"

CTA_GRADIENT_X = (300, 780)
CTA_GRADIENT_COLORS: Tuple[Tuple[int, int, int], Tuple[int, int, int]] = ((0xFF, 0x1F, 0x71), (0x9C, 0x19, 0xCD))


def build_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.FETCH_TIMEOUT_S, follow_redirects=True)


def decode_image(url: str, data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(url, f"Could not decode image from {url}: {e}") from e
    return image.convert("RGBA")


async def load_image_from_url(client: httpx.AsyncClient, url: str) -> Image.Image:
    """Single GET bounded by FETCH_TIMEOUT_S end to end; no retries."""
    try:
        resp = await asyncio.wait_for(client.get(url), timeout=settings.FETCH_TIMEOUT_S)
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        raise RemoteFetchError(url, f"Timed out after {settings.FETCH_TIMEOUT_S:g}s loading image: {url}") from e
    except httpx.HTTPError as e:
        raise RemoteFetchError(url, f"Failed to load image: {e}") from e
    if not resp.is_success:
        raise RemoteFetchError(url, f"Failed to load image: {resp.status_code} {resp.reason_phrase}")
    return decode_image(url, resp.content)


async def load_logo(client: httpx.AsyncClient, url: str) -> Optional[Image.Image]:
    if not url:
        return None
    try:
        return await load_image_from_url(client, url)
    except (RemoteFetchError, DecodeError) as e:
        logger.warning(f"Logo failed to load: {e}")
        return None


def _overlay_layer() -> Image.Image:
    height = CANVAS_SIZE - OVERLAY_TOP
    positions = np.linspace(0.0, 1.0, height)
    alphas = np.interp(positions, [p for p, _ in OVERLAY_STOPS], [a for _, a in OVERLAY_STOPS])
    layer = np.zeros((height, CANVAS_SIZE, 4), dtype=np.uint8)
    layer[..., 3] = np.round(alphas * 255).astype(np.uint8)[:, None]
    return Image.fromarray(layer)


def _cta_brush() -> Image.Image:
    x0, x1 = CTA_GRADIENT_X
    start, end = (np.array(c, dtype=np.float64) for c in CTA_GRADIENT_COLORS)
    t = np.clip((np.arange(CANVAS_SIZE) - x0) / float(x1 - x0), 0.0, 1.0)
    row = np.round(start + (end - start) * t[:, None]).astype(np.uint8)
    return Image.fromarray(np.ascontiguousarray(np.broadcast_to(row, (CANVAS_SIZE, CANVAS_SIZE, 3))))


def draw_logo(canvas: Image.Image, draw: ImageDraw.ImageDraw, logo: Image.Image) -> None:
    mark = logo.resize((LOGO_SIZE, LOGO_SIZE), Image.Resampling.LANCZOS)
    canvas.alpha_composite(mark, dest=(CENTER_X - LOGO_SIZE // 2, LOGO_TOP))
    if settings.BRAND_LABEL:
        # Label sits on its baseline just under the mark
        draw.text(
            (CENTER_X, BRAND_LABEL_Y),
            settings.BRAND_LABEL,
            font=load_font(BRAND_FONT_SIZE, bold=True),
            fill=BRAND_LABEL_COLOR,
            anchor="ms",
        )


def draw_cta(canvas: Image.Image, line: TextLine) -> None:
    mask = Image.new("L", canvas.size, 0)
    ImageDraw.Draw(mask).text(
        (CENTER_X, line.y), line.text, font=load_font(CTA_FONT_SIZE, bold=True), fill=255, anchor="mm"
    )
    canvas.paste(_cta_brush(), (0, 0), mask)


def compose_overlay(
    background: Image.Image,
    logo: Optional[Image.Image],
    hook: HookContent,
    style: PlatformStyle,
) -> Image.Image:
    canvas = background.convert("RGBA").resize((CANVAS_SIZE, CANVAS_SIZE), Image.Resampling.LANCZOS)
    canvas.alpha_composite(_overlay_layer(), dest=(0, OVERLAY_TOP))
    draw = ImageDraw.Draw(canvas)

    if logo is not None:
        draw_logo(canvas, draw, logo)

    headline_font = load_font(style.font_size, bold=True)
    support_font = load_font(style.support_font_size)
    layout = layout_hook(hook, style, font_measure(headline_font, draw), font_measure(support_font, draw))

    for line in layout.headline:
        draw.text((CENTER_X, line.y), line.text, font=headline_font, fill=style.text_color, anchor="mm")
    for line in layout.support:
        draw.text((CENTER_X, line.y), line.text, font=support_font, fill=SUPPORT_COLOR, anchor="mm")
    draw_cta(canvas, layout.cta)
    return canvas


def encode_png(canvas: Image.Image) -> bytes:
    buf = io.BytesIO()
    canvas.save(buf, format="PNG")
    return buf.getvalue()


def render_overlay(
    background: Image.Image,
    logo: Optional[Image.Image],
    hook: HookContent,
    style: PlatformStyle,
) -> bytes:
    try:
        return encode_png(compose_overlay(background, logo, hook, style))
    except OverlayError:
        raise
    except Exception as e:
        raise RenderError(f"Failed to render overlay: {e}") from e


async def create_overlay(
    client: httpx.AsyncClient,
    background_url: str,
    hook: HookContent,
    style: PlatformStyle,
) -> bytes:
    """Fetch both images and render off the event loop. Only the background is mandatory."""
    background = await load_image_from_url(client, background_url)
    logo = await load_logo(client, settings.LOGO_URL)
    return await asyncio.to_thread(render_overlay, background, logo, hook, style)
