"""Tool configuration loaded from CEDIT_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from tempfile import gettempdir

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "claude-3-7-sonnet-20250219"
DEFAULT_TOKEN_BUDGET = 200_000


def _default_data_dir(name: str) -> str:
    return str(Path(gettempdir()) / "cedit" / name)


class CeditSettings(BaseSettings):
    """cedit settings.

    All fields are read from environment variables with the ``CEDIT_`` prefix.
    For example, ``CEDIT_LOG_LEVEL=DEBUG`` maps to ``log_level``.  The API key
    is also picked up from the conventional ``ANTHROPIC_API_KEY``.

    Command-line flags are layered on top with ``model_copy(update=...)``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CEDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Provider --------------------------------------------------------------
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("CEDIT_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY", "anthropic_api_key"),
    )
    model: str = DEFAULT_MODEL

    retries: int = Field(default=3, ge=1)
    """Maximum number of attempts to open the provider stream."""

    retry_delay_ms: int = Field(default=0, ge=0)
    """Fixed sleep between failed attempts."""

    max_tokens: int | None = Field(default=None, ge=1)
    """Input token budget checked before any request.  ``None`` means the default budget."""

    max_output_tokens: int = Field(default=4096, ge=1)

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_dir: str | None = None

    # -- Editing ---------------------------------------------------------------
    backup_dir: str = Field(default_factory=lambda: _default_data_dir("backups"))
    dry_run: bool = False
    """Write edits to ``<name>.updated<ext>`` instead of the original file."""

    vars_override: dict[str, str] = Field(default_factory=dict)
    """Template variables supplied by the caller; they win over the spec's own."""

    # -- Pipeline policy -------------------------------------------------------
    strict_contracts: bool = False
    """Raise on payload contract violations instead of logging and dropping them."""

    count_errors_as_processed: bool = True
    """Whether ``ErrorRaised`` events count towards the processed-command total."""

    # -- Helpers ---------------------------------------------------------------

    @property
    def token_budget(self) -> int:
        return self.max_tokens if self.max_tokens is not None else DEFAULT_TOKEN_BUDGET

    def api_key_value(self) -> str | None:
        return self.anthropic_api_key.get_secret_value() if self.anthropic_api_key else None


@lru_cache(maxsize=1)
def get_settings() -> CeditSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``get_settings.cache_clear()`` in tests to force a
    re-read after overriding env vars.
    """
    return CeditSettings()
