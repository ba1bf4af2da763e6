"""
Format registry: per-platform constraints for generation and recycling.

Pure data. Prompt wording lives in agent/prompts/; this table only says what
each platform allows (length, hashtags, tone, structure).

Character limits are soft: records over the limit are flagged, never cut.
"""
from dataclasses import dataclass

from agent.errors import ValidationError


@dataclass(frozen=True)
class PlatformConfig:
    platform: str
    max_characters: int
    hashtag_limit: int
    tone: str
    format: str
    description: str


# Order matters: it is the default platform order of a recycled bundle.
RECYCLING_PLATFORMS: dict[str, PlatformConfig] = {
    "linkedin": PlatformConfig(
        platform="linkedin",
        max_characters=3000,
        hashtag_limit=5,
        tone="professional",
        format="post",
        description="a professional LinkedIn post",
    ),
    "twitter": PlatformConfig(
        platform="twitter",
        max_characters=280,
        hashtag_limit=3,
        tone="conversational",
        format="thread",
        description="a Twitter/X thread (5 tweets)",
    ),
    "instagram": PlatformConfig(
        platform="instagram",
        max_characters=2200,
        hashtag_limit=30,
        tone="visual",
        format="caption",
        description="an Instagram caption with a visual focus",
    ),
    "facebook": PlatformConfig(
        platform="facebook",
        max_characters=500,
        hashtag_limit=8,
        tone="conversational",
        format="post",
        description="a conversational Facebook post",
    ),
    "email": PlatformConfig(
        platform="email",
        max_characters=10000,
        hashtag_limit=0,
        tone="professional",
        format="newsletter",
        description="an email newsletter with a subject line",
    ),
    "quotes": PlatformConfig(
        platform="quotes",
        max_characters=150,
        hashtag_limit=0,
        tone="inspirational",
        format="quote",
        description="inspirational quotes extracted from the content",
    ),
}

GENERATION_PLATFORMS: dict[str, PlatformConfig] = {
    "linkedin": PlatformConfig(
        platform="linkedin",
        max_characters=3000,
        hashtag_limit=5,
        tone="professional",
        format="post",
        description="LinkedIn",
    ),
    "twitter": PlatformConfig(
        platform="twitter",
        max_characters=280,
        hashtag_limit=3,
        tone="conversational",
        format="tweet",
        description="Twitter/X",
    ),
    "instagram": PlatformConfig(
        platform="instagram",
        max_characters=2200,
        hashtag_limit=30,
        tone="visual",
        format="caption",
        description="Instagram",
    ),
    "facebook": PlatformConfig(
        platform="facebook",
        max_characters=500,
        hashtag_limit=8,
        tone="conversational",
        format="post",
        description="Facebook",
    ),
    "blog": PlatformConfig(
        platform="blog",
        max_characters=1500,
        hashtag_limit=0,
        tone="educational",
        format="article",
        description="Blog post",
    ),
}

# Thread platforms report the longest single post, since the limit is per post.
THREAD_PLATFORMS = frozenset({"twitter"})


def get_recycling_platform(platform: str) -> PlatformConfig:
    try:
        return RECYCLING_PLATFORMS[platform]
    except KeyError:
        raise ValidationError(
            f"Unsupported recycling platform: {platform!r}. "
            f"Supported: {', '.join(RECYCLING_PLATFORMS)}"
        ) from None


def get_generation_platform(platform: str) -> PlatformConfig:
    try:
        return GENERATION_PLATFORMS[platform]
    except KeyError:
        raise ValidationError(
            f"Unsupported platform: {platform!r}. "
            f"Supported: {', '.join(GENERATION_PLATFORMS)}"
        ) from None
