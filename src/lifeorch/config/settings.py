"""
config/settings.py — lifeorch Runtime Settings

config/config.yaml carries the tunables (round limit, retries, model,
timezone, logging); the Gemini key comes from GEMINI_API_KEY or
GOOGLE_API_KEY in the environment or .env.

Bad values fail at parse time (pydantic ValidationError). Problems that
only matter at runtime, such as a missing key or an unknown timezone, are
collected by validate_all() into one ConfigError.
"""

from __future__ import annotations

import os
import threading as _threading
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class ConfigError(Exception):
    """Raised by validate_all() when one or more config problems are found."""


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

_VALID_PROVIDERS = {"gemini"}
_VALID_USER_MODES = {"live", "demo"}
_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _is_known_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


# ─────────────────────────────────────────────────────────────────────────────
# Sub-models
# ─────────────────────────────────────────────────────────────────────────────

class AgentConfig(BaseModel):
    name: str = "LifeOrchestrator"
    max_tool_rounds: int = 8
    parallel_tool_calls: bool = False
    auto_start_session: bool = True

    @field_validator("max_tool_rounds")
    @classmethod
    def _positive_rounds(cls, v: int) -> int:
        if v < 1:
            raise ValueError("agent.max_tool_rounds must be >= 1")
        return v


class LLMRetryConfig(BaseModel):
    """Exponential backoff config for transient model errors."""
    max_retries: int = 3

    @field_validator("max_retries")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("llm.retry.max_retries must be >= 0")
        return v


class LLMConfig(BaseModel):
    provider: str = "gemini"
    model: str = "gemini-2.5-pro"
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    include_thoughts: bool = False
    retry: LLMRetryConfig = Field(default_factory=LLMRetryConfig)

    @field_validator("provider")
    @classmethod
    def _known_provider(cls, v: str) -> str:
        if v not in _VALID_PROVIDERS:
            raise ValueError(
                f"llm.provider '{v}' is not supported. "
                f"Supported: {sorted(_VALID_PROVIDERS)}"
            )
        return v

    @field_validator("temperature")
    @classmethod
    def _valid_temperature(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not (0.0 <= v <= 2.0):
            raise ValueError("llm.temperature must be between 0.0 and 2.0")
        return v

    @field_validator("max_output_tokens")
    @classmethod
    def _positive_tokens(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("llm.max_output_tokens must be >= 1")
        return v


class SessionConfig(BaseModel):
    timezone: Optional[str] = None      # None = local zone
    user_mode: str = "live"

    @field_validator("user_mode")
    @classmethod
    def _valid_user_mode(cls, v: str) -> str:
        if v not in _VALID_USER_MODES:
            raise ValueError(
                f"session.user_mode must be one of {sorted(_VALID_USER_MODES)}, got '{v}'"
            )
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_dir: str = "./data/logs"
    max_file_size_mb: int = 20
    backup_count: int = 5
    console_output: bool = False
    json_format: bool = True

    @field_validator("level")
    @classmethod
    def _valid_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level '{v}' is not valid. "
                f"Must be one of: {sorted(_VALID_LOG_LEVELS)}"
            )
        return upper


# ─────────────────────────────────────────────────────────────────────────────
# Root Settings
# ─────────────────────────────────────────────────────────────────────────────

class Settings(BaseSettings):
    """
    lifeorch runtime settings.

    Priority (highest to lowest):
      1. Sections present in config.yaml (passed as init kwargs)
      2. Environment variables (AGENT__MAX_TOOL_ROUNDS=4, GEMINI_API_KEY=...)
      3. .env file
      4. Field defaults
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    # -- Secrets from .env ---------------------------------------------------
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )

    # -- Structured config (from config.yaml) --------------------------------
    agent: AgentConfig = Field(default_factory=AgentConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, v: Any) -> Optional[str]:
        if v in (None, "", "null"):
            return None
        return v

    @field_validator("agent", mode="before")
    @classmethod
    def _coerce_agent(cls, v: Any) -> Any:
        return AgentConfig(**v) if isinstance(v, dict) else v

    @field_validator("llm", mode="before")
    @classmethod
    def _coerce_llm(cls, v: Any) -> Any:
        return LLMConfig(**v) if isinstance(v, dict) else v

    @field_validator("session", mode="before")
    @classmethod
    def _coerce_session(cls, v: Any) -> Any:
        return SessionConfig(**v) if isinstance(v, dict) else v

    @field_validator("logging", mode="before")
    @classmethod
    def _coerce_logging(cls, v: Any) -> Any:
        return LoggingConfig(**v) if isinstance(v, dict) else v

    # -- Convenience properties ----------------------------------------------

    @property
    def agent_name(self) -> str:
        return self.agent.name

    @property
    def log_level(self) -> str:
        return self.logging.level.upper()

    @property
    def log_dir(self) -> Path:
        return Path(self.logging.log_dir)

    @property
    def has_api_key(self) -> bool:
        return bool(self.gemini_api_key)

    def validate_all(self) -> None:
        """
        Full startup validation. Raises ConfigError listing every problem found.

        Pydantic field validators catch type/value errors at parse time; this
        catches cross-field and runtime problems (credential presence, whether
        the configured timezone exists on this machine).
        """
        errors: list[str] = []

        # ── API key for the configured provider ─────────────────────────────
        if self.llm.provider == "gemini" and not self.gemini_api_key:
            errors.append(
                "LLM provider 'gemini' requires GEMINI_API_KEY (or GOOGLE_API_KEY) "
                "to be set in your environment or .env file."
            )

        # ── Timezone resolves ────────────────────────────────────────────────
        tz = self.session.timezone
        if tz is not None and not _is_known_timezone(tz):
            errors.append(
                f"session.timezone '{tz}' is not a known IANA timezone. "
                f"Use a name like 'Europe/Berlin' or leave it unset."
            )

        # ── Model name is non-empty ──────────────────────────────────────────
        if not self.llm.model.strip():
            errors.append("llm.model must not be empty.")

        # ── Report all errors together ───────────────────────────────────────
        if errors:
            numbered = "\n".join(f"  {i+1}. {e}" for i, e in enumerate(errors))
            raise ConfigError(
                f"\n\nlifeorch startup failed — {len(errors)} configuration "
                f"problem(s) found:\n\n{numbered}\n\n"
                f"Fix the issues above in config/config.yaml or your .env file "
                f"and restart.\n"
            )


# ─────────────────────────────────────────────────────────────────────────────
# Loader + singleton
# ─────────────────────────────────────────────────────────────────────────────

_singleton: Optional[Settings] = None
_singleton_lock = _threading.Lock()

_KNOWN_SECTIONS = {"agent", "llm", "session", "logging"}


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _resolve_config_path(config_path: str | Path | None) -> Path:
    """
    Resolve the config file path with this priority:
      1. Explicit config_path argument (from --config CLI flag)
      2. LIFEORCH_CONFIG environment variable
      3. Default: config/config.yaml
    """
    if config_path is not None:
        return Path(config_path)
    env_path = os.environ.get("LIFEORCH_CONFIG")
    if env_path:
        return Path(env_path)
    return Path("config/config.yaml")


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings by merging config.yaml with environment variables."""
    global _singleton
    yaml_data = _load_yaml(_resolve_config_path(config_path))
    init_kwargs = {k: v for k, v in yaml_data.items() if k in _KNOWN_SECTIONS}

    instance = Settings(**init_kwargs)
    with _singleton_lock:
        _singleton = instance
    return instance


def get_settings() -> Settings:
    """
    Return the global Settings singleton, loading from the default config
    path on first use.
    """
    global _singleton
    if _singleton is not None:
        return _singleton
    with _singleton_lock:
        if _singleton is None:
            yaml_data = _load_yaml(_resolve_config_path(None))
            _singleton = Settings(**{k: v for k, v in yaml_data.items() if k in _KNOWN_SECTIONS})
        return _singleton
