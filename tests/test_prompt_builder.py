"""
Tests for prompt rendering and content validation.
"""
import pytest

from agent.errors import ValidationError
from agent.models import GenerationRequest, Tone
from agent.modules.prompt_builder import (
    build_generation_prompt,
    build_recycling_prompt,
    recycling_system_prompt,
    validate_content,
)
from agent.prompts import recycle as recycle_prompts


class TestValidateContent:
    def test_empty(self):
        with pytest.raises(ValidationError, match="Content is required"):
            validate_content("  \n ")

    def test_too_long(self):
        with pytest.raises(ValidationError, match="10,000"):
            validate_content("x" * 10_001)

    def test_custom_limit(self):
        with pytest.raises(ValidationError, match="50"):
            validate_content("x" * 51, max_chars=50)

    def test_boundary_accepted(self):
        assert validate_content("x" * 10_000) == "x" * 10_000


class TestRecyclingPrompt:
    """Recycling prompts ask for JSON in the platform's shape."""

    @pytest.mark.parametrize("platform,system", [
        ("email", recycle_prompts.SYSTEM_EMAIL),
        ("quotes", recycle_prompts.SYSTEM_QUOTES),
        ("twitter", recycle_prompts.SYSTEM_THREAD),
        ("linkedin", recycle_prompts.SYSTEM_DEFAULT),
        ("facebook", recycle_prompts.SYSTEM_DEFAULT),
    ])
    def test_system_prompt_per_platform(self, platform, system):
        assert recycling_system_prompt(platform) == system

    def test_user_prompt_contents(self):
        prompt = build_recycling_prompt(
            "Original {braces} text", "twitter", tone=Tone.CASUAL, industry="fintech",
        )
        assert "Original {braces} text" in prompt.user
        assert "At most 280 characters" in prompt.user
        assert "Tone: casual" in prompt.user
        assert "Platform: twitter\n" in prompt.user
        assert "Industry: fintech" in prompt.user
        assert "ONLY valid JSON" in prompt.system

    def test_no_industry_line(self):
        prompt = build_recycling_prompt("Some text", "linkedin")
        assert "Industry:" not in prompt.user

    def test_unknown_platform(self):
        with pytest.raises(ValidationError):
            build_recycling_prompt("Some text", "myspace")


class TestGenerationPrompt:
    """Generation prompts are descriptive, except for structured platforms."""

    def _request(self, platform="linkedin", context=None):
        return GenerationRequest(
            topic="Async Python",
            tone=Tone.EDUCATIONAL,
            target_audience="backend engineers",
            platform=platform,
            additional_context=context,
        )

    def test_descriptive_prompt(self):
        prompt = build_generation_prompt(self._request())
        assert "LINKEDIN" in prompt.system
        assert "Tone: educational" in prompt.system
        assert "Target audience: backend engineers" in prompt.system
        assert "At most 3000 characters" in prompt.system
        assert prompt.user.startswith("Topic: Async Python")
        assert "Additional context" not in prompt.user

    def test_additional_context(self):
        prompt = build_generation_prompt(self._request(context="include benchmarks"))
        assert "Additional context: include benchmarks" in prompt.user

    def test_blog_platform(self):
        prompt = build_generation_prompt(self._request(platform="blog"))
        assert "blog post excerpt" in prompt.system
