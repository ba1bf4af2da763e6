"""Render system and user prompts for the generation and recycling paths."""
from dataclasses import dataclass

from agent.errors import ValidationError
from agent.formats import (
    THREAD_PLATFORMS,
    get_generation_platform,
    get_recycling_platform,
)
from agent.models import GenerationRequest, Tone
from agent.prompts import generate as generate_prompts
from agent.prompts import recycle as recycle_prompts

MAX_CONTENT_CHARS = 10_000


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str


def validate_content(content: str, max_chars: int = MAX_CONTENT_CHARS) -> str:
    """Reject empty or oversized source content."""
    if content is None or not content.strip():
        raise ValidationError("Content is required")
    if len(content) > max_chars:
        raise ValidationError(f"Content cannot exceed {max_chars:,} characters")
    return content


def recycling_system_prompt(platform: str) -> str:
    if platform == "email":
        return recycle_prompts.SYSTEM_EMAIL
    if platform == "quotes":
        return recycle_prompts.SYSTEM_QUOTES
    if platform in THREAD_PLATFORMS:
        return recycle_prompts.SYSTEM_THREAD
    return recycle_prompts.SYSTEM_DEFAULT


def build_generation_prompt(request: GenerationRequest) -> Prompt:
    """Prompt for a single streamed document."""
    config = get_generation_platform(request.platform)
    validate_content(request.topic)

    system = generate_prompts.SYSTEM_TEMPLATE.format(
        platform_name=config.description.upper(),
        platform_instruction=generate_prompts.PLATFORM_INSTRUCTIONS.get(
            request.platform,
            f"Write content optimized for {config.description}.",
        ),
        max_characters=config.max_characters,
        tone=Tone(request.tone).value,
        target_audience=request.target_audience,
    )

    context_line = (
        generate_prompts.CONTEXT_LINE.format(additional_context=request.additional_context)
        if request.additional_context
        else ""
    )
    user = generate_prompts.USER_TEMPLATE.format(
        topic=request.topic,
        context_line=context_line,
        platform=request.platform,
    )
    return Prompt(system=system, user=user)


def build_recycling_prompt(
    content: str,
    platform: str,
    tone: Tone | str = Tone.PROFESSIONAL,
    industry: str | None = None,
    max_chars: int = MAX_CONTENT_CHARS,
) -> Prompt:
    """Prompt asking for one platform's JSON rendering of ``content``."""
    validate_content(content, max_chars)
    config = get_recycling_platform(platform)

    industry_line = (
        recycle_prompts.INDUSTRY_LINE.format(industry=industry) if industry else ""
    )
    user = recycle_prompts.USER_TEMPLATE.format(
        description=config.description,
        content=content,
        max_characters=config.max_characters,
        tone=Tone(tone).value,
        register=config.tone,
        platform=platform,
        hashtag_limit=config.hashtag_limit,
        industry_line=industry_line,
        guidance=recycle_prompts.PLATFORM_GUIDANCE.get(platform, ""),
    )
    return Prompt(system=recycling_system_prompt(platform), user=user)
