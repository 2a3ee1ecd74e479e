import os
import re
import logging
from functools import lru_cache
from typing import Callable, List, Sequence

from PIL import ImageDraw, ImageFont
from pydantic import BaseModel

from . import settings
from .hooks import HookContent
from .platforms import PlatformStyle

logger = logging.getLogger(__name__)

CANVAS_SIZE = 1080
CENTER_X = CANVAS_SIZE // 2

HEADLINE_TOP = 720
HEADLINE_MAX_WIDTH = 950
SUPPORT_GAP = 40
SUPPORT_LINE_HEIGHT = 36
SUPPORT_MAX_WIDTH = 900
SUPPORT_BOTTOM_GAP = 30
CTA_GAP = 40
CTA_MAX_Y = 1020  # keeps the CTA above the bottom margin
CTA_FONT_SIZE = 24
BRAND_FONT_SIZE = 18

# Liberation Sans is metric-compatible with Arial
BOLD_FONT_FILES = ["LiberationSans-Bold.ttf", "DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf"]
REGULAR_FONT_FILES = ["LiberationSans-Regular.ttf", "DejaVuSans.ttf", "Arial.ttf", "arial.ttf"]

_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")

Measure = Callable[[str], float]


@lru_cache(maxsize=64)
def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont:
    """Resolve a TrueType face from FONT_DIR, then by system name, then Pillow's bundled default."""
    names = BOLD_FONT_FILES if bold else REGULAR_FONT_FILES
    candidates: List[str] = []
    if settings.FONT_DIR:
        candidates.extend(os.path.join(settings.FONT_DIR, n) for n in names)
    candidates.extend(names)
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    logger.warning(f"No TrueType font found for size={size} bold={bold}; using Pillow default font")
    return ImageFont.load_default(size=size)


def _wrap_words(line: str, max_width: float, measure: Measure) -> List[str]:
    lines: List[str] = []
    cur: List[str] = []
    for word in line.split():
        candidate = " ".join(cur + [word])
        if cur and measure(candidate) > max_width:
            lines.append(" ".join(cur))
            cur = [word]
        else:
            cur.append(word)
    if cur:
        lines.append(" ".join(cur))
    return lines


def wrap_text(text: str, max_width: float, measure: Measure) -> List[str]:
    """Greedy wrap on sentence boundaries, then on words for lines that still overflow.

    A single word wider than max_width is emitted as its own line.
    """
    sentences = [s for s in _SENTENCE_BOUNDARY_RE.split((text or "").strip()) if s]
    lines: List[str] = []
    cur = ""
    for sentence in sentences:
        candidate = f"{cur} {sentence}" if cur else sentence
        if cur and measure(candidate) > max_width:
            lines.append(cur)
            cur = sentence
        else:
            cur = candidate
    if cur:
        lines.append(cur)

    wrapped: List[str] = []
    for line in lines:
        if measure(line) <= max_width:
            wrapped.append(line)
        else:
            wrapped.extend(_wrap_words(line, max_width, measure))
    return wrapped


class TextLine(BaseModel):
    text: str
    y: int


class HookLayout(BaseModel):
    headline: List[TextLine]
    support: List[TextLine]
    cta: TextLine


def position_lines(lines: Sequence[str], top: int, line_height: int) -> List[TextLine]:
    return [TextLine(text=line, y=top + i * line_height) for i, line in enumerate(lines)]


def layout_hook(
    hook: HookContent,
    style: PlatformStyle,
    headline_measure: Measure,
    support_measure: Measure,
) -> HookLayout:
    """Wrap and vertically place the headline, support and CTA blocks."""
    headline_lines = wrap_text(hook.headline, HEADLINE_MAX_WIDTH, headline_measure)
    headline = position_lines(headline_lines, HEADLINE_TOP, style.line_height)
    cursor = HEADLINE_TOP + len(headline_lines) * style.line_height

    support: List[TextLine] = []
    if hook.support:
        support_top = cursor + SUPPORT_GAP
        support_lines = wrap_text(hook.support, SUPPORT_MAX_WIDTH, support_measure)
        support = position_lines(support_lines, support_top, SUPPORT_LINE_HEIGHT)
        cursor = support_top + len(support_lines) * SUPPORT_LINE_HEIGHT + SUPPORT_BOTTOM_GAP

    cta = TextLine(text=hook.cta, y=min(cursor + CTA_GAP, CTA_MAX_Y))
    return HookLayout(headline=headline, support=support, cta=cta)


def font_measure(font: ImageFont.FreeTypeFont, draw: ImageDraw.ImageDraw) -> Measure:
    return lambda s: draw.textlength(s, font=font)
