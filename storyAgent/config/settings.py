"""Environment-bound configuration objects.

This module provides Pydantic BaseSettings-based configuration loading from .env files.
Each settings group reads its own environment variables; the model group accepts
several alias names (e.g., OPENAI_API_KEY and MODEL_NARRATOR_API_KEY both work).

Example:
    from storyAgent.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    threshold = settings.context.compression_threshold
    narrator = settings.models.narrator
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


class ModelSettings(BaseSettings):
    """Model identifiers and credentials for the completion service.

    Two slots share one set of credentials:
    - narrator: model that writes each story turn (MODEL_NARRATOR)
    - summarizer: model used for context compression (MODEL_SUMMARIZER,
      falls back to the narrator model when unset)
    """

    narrator: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("MODEL_NARRATOR", "MODEL_NARRATOR_ID", "OPENAI_MODEL"),
    )
    summarizer: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_SUMMARIZER", "MODEL_SUMMARIZER_ID"),
    )
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_NARRATOR_API_KEY", "OPENAI_API_KEY"),
    )
    base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_NARRATOR_BASE_URL", "OPENAI_BASE_URL"),
    )
    max_output_tokens: int = Field(
        default=1500,
        ge=64,
        le=16000,
        validation_alias=AliasChoices("MODEL_NARRATOR_MAX_TOKENS"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def summarizer_model(self) -> str:
        """Model id used for compression calls."""
        return self.summarizer or self.narrator


class ContextManagementSettings(BaseSettings):
    """Token budget and compression configuration.

    Reads CONTEXT_* environment variables:
    - CONTEXT_MAX_CONTEXT_TOKENS: model context window (default: 128000)
    - CONTEXT_COMPRESSION_THRESHOLD: occupancy that triggers compression (default: 0.70)
    - CONTEXT_KEEP_RECENT_COUNT: turns always kept verbatim (default: 30)
    """

    enabled: bool = True
    max_context_tokens: int = Field(default=128_000, ge=1_000)
    compression_threshold: float = Field(default=0.70, gt=0.0, le=1.0)
    keep_recent_count: int = Field(default=30, ge=1)

    # Summarization call
    summary_max_tokens: int = Field(default=800, ge=50, le=4000)
    summary_temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    # How much of the extracted material goes into the compression prompt
    key_moment_limit: int = Field(default=10, ge=0)
    player_action_limit: int = Field(default=15, ge=0)
    memory_limit: int = Field(default=5, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="CONTEXT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class ModelRate(BaseModel):
    """USD per one million tokens."""

    input: float
    output: float


def _default_rates() -> Dict[str, ModelRate]:
    return {
        "gpt-4o-mini": ModelRate(input=0.15, output=0.60),
        "gpt-4o": ModelRate(input=2.50, output=10.00),
        "gpt-4-turbo": ModelRate(input=10.00, output=30.00),
    }


class PricingSettings(BaseModel):
    """Per-model rate table used for cost reporting.

    Unknown models are billed at the default model's rates.
    """

    default_model: str = "gpt-4o-mini"
    rates: Dict[str, ModelRate] = Field(default_factory=_default_rates)

    @model_validator(mode="after")
    def _default_model_has_rate(self) -> "PricingSettings":
        if self.default_model not in self.rates:
            raise ValueError(f"default_model '{self.default_model}' has no entry in rates")
        return self


class RuntimeSettings(BaseSettings):
    """Retry policy for the narrative call.

    - max_retries: retries after the first attempt (0-5, default: 2)
    - retry_base_delay: first backoff delay in seconds (default: 1.0)
    - retry_max_delay: backoff ceiling in seconds (default: 10.0)
    """

    max_retries: int = Field(default=2, ge=0, le=5, alias="NARRATOR_MAX_RETRIES")
    retry_base_delay: float = Field(default=1.0, ge=0.0, alias="NARRATOR_RETRY_BASE_DELAY")
    retry_max_delay: float = Field(default=10.0, ge=0.0, alias="NARRATOR_RETRY_MAX_DELAY")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ObservabilitySettings(BaseSettings):
    """Logging configuration.

    - LOG_LEVEL: console/file threshold name (default: INFO)
    - LOG_DIR: directory for session log files (default: ./logs)
    - LOG_PROMPT_MAX_LENGTH: preview length for logged prompts
    """

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="LOG_PROMPT_MAX_LENGTH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Root application settings loaded from .env file.

    Hierarchical structure containing five nested settings groups:
    - models: Narrator/summarizer model ids and credentials (ModelSettings)
    - context: Token budget and compression (ContextManagementSettings)
    - pricing: Cost reporting rate table (PricingSettings)
    - runtime: Retry policy (RuntimeSettings)
    - observability: Logging (ObservabilitySettings)

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    models: ModelSettings = Field(default_factory=ModelSettings)
    context: ContextManagementSettings = Field(default_factory=ContextManagementSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Returns:
        Settings: Cached application settings instance
    """
    return Settings()
