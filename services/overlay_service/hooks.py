"""Hook extraction: line classification, per-platform selection and display formatting.

Everything here is heuristic string matching. The fallback order of each chain
is what callers rely on, not the quality of the phrases it picks.
"""
import re
import logging
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from .platforms import FIRST_SENTENCE, KEY_BENEFIT, PlatformStyle, get_platform_style

logger = logging.getLogger(__name__)

DEFAULT_HOOK_TEXT = "PROFESSIONAL INSIGHTS"

# Lines at or below this length only count towards the marker categories
SUBSTANTIVE_MIN_LEN = 10
STRONG_MIN_LEN = 20
STRONG_MAX_LEN = 80
FIRST_SENTENCE_MIN_LEN = 15
FIRST_SENTENCE_FALLBACK_CHARS = 80
KEY_BENEFIT_FALLBACK_CHARS = 100
SHORT_TEXT_LEN = 60

BENEFIT_KEYWORDS = ("3x", "faster", "accelerat", "transform", "revolutionar", "master", "breakthrough")

_STAT_RE = re.compile(r"\d+%")
_DISALLOWED_RE = re.compile(r"[^\w\s.,!?:%-]")
_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")
_KEYWORD_RE = re.compile(
    r"\b(?:result|pov|hot take|matrix|system|framework|transformation)\b",
    re.IGNORECASE,
)

HookSet = Dict[str, str]


class HookContent(BaseModel):
    headline: str
    support: str
    cta: str

    model_config = {"frozen": True}


def _contains_any(line: str, needles: Tuple[str, ...]) -> bool:
    lowered = line.lower()
    return any(n in lowered for n in needles)


def _substantive(line: str) -> bool:
    return len(line) > SUBSTANTIVE_MIN_LEN


# Evaluated in order for every line; a category keeps the first line that matches it.
CATEGORY_RULES: List[Tuple[str, Callable[[str], bool]]] = [
    ("statistic", lambda line: bool(_STAT_RE.search(line))),
    ("question", lambda line: "?" in line),
    ("pov", lambda line: "pov:" in line.lower()),
    ("hotTake", lambda line: "hot take" in line.lower()),
    ("result", lambda line: "result:" in line.lower()),
    ("strong", lambda line: STRONG_MIN_LEN <= len(line) <= STRONG_MAX_LEN and "?" not in line),
    ("transformation", lambda line: _substantive(line) and (_contains_any(line, ("transform", "changes")) or "=" in line)),
    ("relatable", lambda line: _substantive(line) and _contains_any(line, ("feel", "been there", "we've all"))),
    ("framework", lambda line: _substantive(line) and any(w in line for w in ("Matrix", "System", "Framework"))),
]


def split_lines(content: Optional[str]) -> List[str]:
    return [line.strip() for line in (content or "").splitlines() if line.strip()]


def classify_content(content: Optional[str]) -> HookSet:
    """Tag content lines with rhetorical categories.

    A single line may claim several categories at once, but each category is
    claimed by the first line that matches it. Categories with no match are
    left out of the result.
    """
    hooks: HookSet = {}
    for line in split_lines(content):
        for category, matches in CATEGORY_RULES:
            if category not in hooks and matches(line):
                hooks[category] = line
    return hooks


def extract_first_sentence(content: Optional[str]) -> str:
    text = content or ""
    for sentence in _SENTENCE_SPLIT_RE.split(text):
        sentence = sentence.strip()
        if len(sentence) > FIRST_SENTENCE_MIN_LEN:
            return sentence
    return text[:FIRST_SENTENCE_FALLBACK_CHARS]


def extract_key_benefit(excerpt: Optional[str]) -> str:
    text = excerpt or ""
    sentences = [s.strip() for s in text.split(".") if s.strip()]
    for sentence in sentences:
        if _contains_any(sentence, BENEFIT_KEYWORDS):
            return sentence
    if sentences:
        return sentences[0]
    return text[:KEY_BENEFIT_FALLBACK_CHARS]


def format_for_display(text: Optional[str]) -> str:
    """Normalize a candidate hook for rendering.

    Disallowed characters are removed before whitespace is collapsed so that
    formatting an already formatted string is a no-op.
    """
    if not text:
        return DEFAULT_HOOK_TEXT
    cleaned = _DISALLOWED_RE.sub("", text)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    if not cleaned:
        return DEFAULT_HOOK_TEXT
    if len(cleaned) < SHORT_TEXT_LEN:
        return cleaned.upper()
    return _KEYWORD_RE.sub(lambda m: m.group(0).upper(), cleaned)


def _pick(chain: Tuple[str, ...], hooks: HookSet, fallbacks: Dict[str, Callable[[], str]]) -> str:
    for slot in chain:
        if slot in fallbacks:
            return fallbacks[slot]()
        if hooks.get(slot):
            return hooks[slot]
    return ""


def select_hook(style: PlatformStyle, title: str, content: str, excerpt: str, hooks: HookSet) -> HookContent:
    fallbacks: Dict[str, Callable[[], str]] = {
        FIRST_SENTENCE: lambda: extract_first_sentence(content),
        # An article without an excerpt still has a title worth mining
        KEY_BENEFIT: lambda: extract_key_benefit(excerpt or title),
    }
    return HookContent(
        headline=format_for_display(_pick(style.headline_chain, hooks, fallbacks)),
        support=format_for_display(_pick(style.support_chain, hooks, fallbacks)),
        cta=style.cta,
    )


def generate_hook(
    platform: Optional[str],
    title: Optional[str],
    content: Optional[str],
    excerpt: Optional[str],
    hooks: Optional[HookSet] = None,
) -> HookContent:
    """Build the headline/support/CTA text for a platform. Unknown platforms use LinkedIn's chains."""
    if hooks is None:
        hooks = classify_content(content)
    style = get_platform_style(platform)
    hook = select_hook(style, title or "", content or "", excerpt or "", hooks)
    logger.debug(f"Hook categories found: {sorted(hooks)}; headline={hook.headline[:40]!r}")
    return hook
