from agent.llm.base import LLMClient


def get_llm_client() -> LLMClient:
    from config import settings

    provider = settings.llm_provider.lower()
    policy = {
        "timeout": settings.llm_timeout_seconds,
        "max_retries": settings.llm_max_retries,
        "temperature": settings.temperature,
    }

    if provider == "openai":
        from agent.llm.openai_client import OpenAIClient
        return OpenAIClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url or None,
            **policy,
        )

    if provider == "anthropic":
        from agent.llm.anthropic_client import AnthropicClient
        return AnthropicClient(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            **policy,
        )

    if provider == "custom":
        from agent.llm.openai_client import OpenAIClient
        if not settings.openai_base_url:
            raise RuntimeError("OPENAI_BASE_URL must be set when LLM_PROVIDER=custom.")
        return OpenAIClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            **policy,
        )

    raise ValueError(f"Unknown LLM_PROVIDER: {provider!r}")
