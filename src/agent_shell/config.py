"""
Configuration management for Agent Shell using Pydantic Settings.

This module loads the agent credential, LLM planner options and interaction
driver options from environment variables and .env files with validation.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MissingCredentialError(ValueError):
    """Raised when the agent credential is absent or blank."""


class LLMSettings(BaseSettings):
    """Configuration for the LLM used to plan agent actions."""

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore")

    model: str = Field(
        default="gpt-4o-mini",
        description="LiteLLM model identifier used by the planner",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for planning calls",
    )
    max_tokens: int = Field(
        default=1000,
        ge=1,
        le=32000,
        description="Maximum tokens generated per planning call",
    )
    timeout: int = Field(
        default=30,
        ge=1,
        description="Request timeout in seconds",
    )
    retry_attempts: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries for transient LLM errors",
    )


class DriverSettings(BaseSettings):
    """Configuration for the interaction drivers."""

    model_config = SettingsConfigDict(env_prefix="DRIVER_", extra="ignore")

    tick_interval: int = Field(
        default=60,
        ge=1,
        description="Seconds between autonomous agent steps (timed driver)",
    )
    verbose: bool = Field(
        default=True,
        description="Report decisions and state on every step",
    )
    exit_command: str = Field(
        default="exit",
        description="Input that ends the prompt loop (case-insensitive)",
    )
    prompt: str = Field(
        default="You: ",
        description="Prompt shown before reading a line",
    )
    max_task_steps: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Maximum actions executed for a single task",
    )

    @field_validator("exit_command")
    @classmethod
    def validate_exit_command(cls, v: str) -> str:
        """Exit command must be a non-empty word."""
        v = v.strip()
        if not v:
            raise ValueError("Exit command cannot be empty")
        return v


class Settings(BaseSettings):
    """
    Main settings class for Agent Shell.

    Settings are loaded from environment variables and a .env file. The agent
    credential is optional at load time so that the rest of the configuration
    (logging in particular) is usable before the credential is checked;
    require_api_key() performs the fail-fast check.

    Example:
        >>> settings = get_settings()
        >>> print(settings.driver.tick_interval)
        60
        >>> api_key = settings.require_api_key()
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Environment: development, staging, or production",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    game_api_key: Optional[SecretStr] = Field(
        default=None,
        description="Credential for the agent (GAME_API_KEY)",
    )

    llm: LLMSettings = Field(default_factory=LLMSettings)
    driver: DriverSettings = Field(default_factory=DriverSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the expected values."""
        valid_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in valid_envs:
            raise ValueError(f"Environment must be one of: {', '.join(valid_envs)}")
        return v_lower

    def require_api_key(self) -> str:
        """
        Return the agent credential or fail.

        Returns:
            The plain credential string.

        Raises:
            MissingCredentialError: If GAME_API_KEY is unset or blank.
        """
        if self.game_api_key is None:
            raise MissingCredentialError("Please set GAME_API_KEY in your .env file")

        key = self.game_api_key.get_secret_value().strip()
        if not key:
            raise MissingCredentialError("Please set GAME_API_KEY in your .env file")
        return key

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get the cached singleton settings instance.

    Returns:
        Settings: The singleton settings instance.

    Example:
        >>> settings = get_settings()
        >>> assert settings is get_settings()
    """
    return Settings()
