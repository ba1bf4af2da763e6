from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    llm_provider: str = "openai"  # openai | anthropic | custom

    # OpenAI / custom
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"

    # Anthropic
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-5-haiku-latest"

    # Provider call policy. Retries stay off: a failed platform is dropped,
    # a failed stream ends with an error event.
    llm_timeout_seconds: float = Field(default=60.0, gt=0)
    llm_max_retries: int = Field(default=0, ge=0)
    generation_max_tokens: int = Field(default=1000, ge=1)
    recycling_max_tokens: int = Field(default=2000, ge=1)
    temperature: float = Field(default=0.7, ge=0, le=2)

    # Input limits
    max_content_chars: int = Field(default=10_000, ge=1)

    # Daily cost alerting (USD)
    cost_warning_threshold: float = Field(default=20.0, ge=0)
    cost_danger_threshold: float = Field(default=50.0, ge=0)

    # Storage
    db_path: str = "~/.contentflow/costs.db"

    # HTTP API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1)

    # Telegram (optional surface)
    telegram_bot_token: str = ""
    users_config: str = "config/users.json"
    rate_limit_window_seconds: int = Field(default=60, ge=1)
    rate_limit_per_window: int = Field(default=5, ge=1)


settings = Settings()
