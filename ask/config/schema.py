"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ask.errors import ConfigError

DEFAULT_MODEL = "gpt-4o"
DEFAULT_OS = "macOS"


def _default_context_dir() -> Path:
    return Path.home() / ".config" / "ask" / "contexts"


class AskConfig(BaseSettings):
    """
    Runtime configuration for ask.

    Values come from ``ASK_*`` environment variables and ``.env`` files;
    see ``ask.config.loader.load_config`` for the file order.
    """

    model_config = SettingsConfigDict(
        env_prefix="ASK_",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_key: str = ""
    model: str = DEFAULT_MODEL
    os_name: str = Field(default=DEFAULT_OS, validation_alias=AliasChoices("ASK_OS", "os_name"))
    api_url: str | None = None  # Custom OpenAI-compatible endpoint; None means provider default
    context_dir: Path = Field(default_factory=_default_context_dir)
    timeout: float = Field(default=60.0, gt=0)
    max_retries: int = Field(default=3, ge=1, le=10)
    max_tokens: int = Field(default=4096, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    prompt_caching: bool | None = None  # None: decided by the provider
    log_level: str = "WARNING"

    @property
    def context_path(self) -> Path:
        """Get expanded context directory."""
        return Path(self.context_dir).expanduser()

    def validate_credentials(self) -> None:
        """Raise ConfigError when no API key is set for the default endpoint."""
        if not self.api_key and not self.api_url:
            raise ConfigError("ASK_API_KEY is required for OpenAI API")
