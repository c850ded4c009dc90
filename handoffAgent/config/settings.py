"""Environment-bound configuration objects.

Pydantic BaseSettings groups loaded from the environment and a ``.env`` file.
Several fields accept more than one environment name (e.g. MODEL_CHAT and
MODEL_CHAT_ID both set the chat model).

Example:
    from handoffAgent.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    max_transfers = settings.orchestration.max_transfers_per_turn
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


class ModelSettings(BaseSettings):
    """Chat model identifiers and credentials.

    ``router`` selects a separate (usually cheaper) model for routing and
    title summarization; it falls back to ``chat`` when unset.
    """

    chat: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("MODEL_CHAT", "MODEL_CHAT_ID"),
    )
    chat_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_CHAT_API_KEY", "OPENAI_API_KEY"),
    )
    chat_base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_CHAT_URL", "MODEL_CHAT_BASE_URL"),
    )
    temperature: float = Field(
        default=0.2, ge=0.0, le=2.0,
        validation_alias=AliasChoices("MODEL_TEMPERATURE"),
    )

    router: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_ROUTER", "MODEL_ROUTER_ID"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class OrchestrationSettings(BaseSettings):
    """Turn handling limits and policies.

    - max_transfers_per_turn: Cascading transfers followed within one turn (0-10, default: 3)
    - max_tool_rounds: Model/tool iterations of a single generation call (1-50, default: 8)
    - enforce_routable_agents: Reject transfers outside the agent's routable set (default: False)
    - agents_config_path: agents.yaml location (default: bundled config)
    """

    max_transfers_per_turn: int = Field(default=3, ge=0, le=10, alias="MAX_TRANSFERS_PER_TURN")
    max_tool_rounds: int = Field(default=8, ge=1, le=50, alias="MAX_TOOL_ROUNDS")
    enforce_routable_agents: bool = Field(default=False, alias="ENFORCE_ROUTABLE_AGENTS")
    agents_config_path: Optional[str] = Field(default=None, alias="AGENTS_CONFIG_PATH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class PersistenceSettings(BaseSettings):
    """Session directory and conversation log storage.

    SESSION_DB_PATH points both stores at one SQLite file; leave it unset for
    in-memory stores.
    """

    session_db_path: Optional[str] = Field(default=None, alias="SESSION_DB_PATH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Optional[str] = Field(default="logs", alias="LOG_DIR")
    log_content_max_length: int = Field(default=100, ge=20, le=5000, alias="LOG_CONTENT_MAX_LENGTH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Root application settings.

    - models: Chat/router model routing and credentials
    - orchestration: Transfer and tool-loop limits
    - persistence: Store backends
    - observability: Logging
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    models: ModelSettings = Field(default_factory=ModelSettings)
    orchestration: OrchestrationSettings = Field(default_factory=OrchestrationSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance."""
    return Settings()
