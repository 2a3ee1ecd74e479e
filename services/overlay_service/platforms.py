from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel

# Chain slots that are not classifier categories but extraction fallbacks
FIRST_SENTENCE = "firstSentence"
KEY_BENEFIT = "keyBenefit"


class Platform(str, Enum):
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"

    @classmethod
    def resolve(cls, value: Optional[str]) -> "Platform":
        """Map a raw request value onto a platform by exact value; anything else is LinkedIn."""
        normalized = value or ""
        for platform in cls:
            if platform.value == normalized:
                return platform
        return cls.LINKEDIN


class PlatformStyle(BaseModel):
    font_size: int
    line_height: int
    support_font_size: int
    text_color: str
    cta: str
    headline_chain: Tuple[str, ...]
    support_chain: Tuple[str, ...]

    model_config = {"frozen": True}


PLATFORM_STYLES: Dict[Platform, PlatformStyle] = {
    Platform.LINKEDIN: PlatformStyle(
        font_size=52,
        line_height=58,
        support_font_size=28,
        text_color="#FFFFFF",
        cta="LEARN THE SYSTEM ↗",
        headline_chain=("statistic", "strong", FIRST_SENTENCE),
        support_chain=("result", "framework", KEY_BENEFIT),
    ),
    Platform.TWITTER: PlatformStyle(
        font_size=48,
        line_height=54,
        support_font_size=26,
        text_color="#FFD700",  # gold
        cta="READ THE THREAD ↗",
        # "controversial" has no classifier rule; the slot always falls through
        headline_chain=("hotTake", "controversial", "strong", FIRST_SENTENCE),
        support_chain=("statistic", "question", KEY_BENEFIT),
    ),
    Platform.INSTAGRAM: PlatformStyle(
        font_size=56,
        line_height=62,
        support_font_size=30,
        text_color="#FF69B4",  # hot pink
        cta="SWIPE FOR MORE ↗",
        headline_chain=("pov", "transformation", "strong", FIRST_SENTENCE),
        support_chain=("transformation", "relatable", KEY_BENEFIT),
    ),
    Platform.FACEBOOK: PlatformStyle(
        font_size=50,
        line_height=56,
        support_font_size=27,
        text_color="#87CEEB",  # sky blue
        cta="SHARE YOUR STORY ↗",
        headline_chain=("question", "relatable", "strong", FIRST_SENTENCE),
        support_chain=("relatable", "result", KEY_BENEFIT),
    ),
}


def get_platform_style(platform: Optional[str]) -> PlatformStyle:
    if isinstance(platform, Platform):
        return PLATFORM_STYLES[platform]
    return PLATFORM_STYLES[Platform.resolve(platform)]
