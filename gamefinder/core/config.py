"""
Application configuration using Pydantic Settings.

Settings are read once from the environment (prefix ``GAMEFINDER_``) and an
optional ``.env`` file. The resulting object is frozen: it is passed into
the orchestrator and threaded down to adapters and resolvers, and nothing
mutates it during a run.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from gamefinder.listings.models import Platform

LOCALE_PATTERN = re.compile(r"^[a-z]{2}_[A-Z]{2}$")


class Settings(BaseSettings):
    """
    Process-wide, read-only settings.

    Attributes:
        enabled_platforms: Platforms whose adapters are invoked.
        include_dlcs: Whether DLC listings are reported.
        allow_mature_content: Whether mature screenshots are included.
        locale: ``language_COUNTRY`` locale used for prices and store URLs.
        use_clan_events: Whether the publisher event tier may be consulted.
        resolution_timeout: Per-listing bound for networked expiration tiers.
        request_timeout: Timeout for individual HTTP requests.
        max_concurrency: Maximum concurrently running pending resolutions.
    """

    model_config = SettingsConfigDict(
        env_prefix="GAMEFINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    enabled_platforms: Annotated[list[Platform], NoDecode] = Field(
        default_factory=lambda: list(Platform),
        description="Platforms to query",
    )
    include_dlcs: bool = Field(default=True, description="Report DLC listings")
    allow_mature_content: bool = Field(
        default=False, description="Include mature content screenshots"
    )
    locale: str = Field(default="en_US", description="Locale in language_COUNTRY form")
    use_clan_events: bool = Field(
        default=True, description="Consult publisher events when the package end time is zero"
    )
    resolution_timeout: float = Field(
        default=10.0, gt=0, description="Seconds allowed for networked expiration lookups"
    )
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout")
    max_concurrency: int = Field(
        default=8, ge=1, description="Concurrently running expiration resolutions"
    )
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    @field_validator("enabled_platforms", mode="before")
    @classmethod
    def parse_enabled_platforms(cls, v: str | list[str | Platform]) -> list[str | Platform]:
        """Parse platforms from a comma-separated string or list, case-insensitively."""
        if isinstance(v, str):
            v = [p.strip() for p in v.split(",") if p.strip()]
        return [p.upper() if isinstance(p, str) else p for p in v]

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        """Normalize ``en-us``/``en_US`` style values and reject anything else."""
        language, _, country = v.replace("-", "_").partition("_")
        normalized = f"{language.lower()}_{country.upper()}"
        if not LOCALE_PATTERN.match(normalized):
            msg = f"Invalid locale: {v}. Expected language_COUNTRY, e.g. en_US"
            raise ValueError(msg)
        return normalized

    @property
    def language(self) -> str:
        """Return the two-letter language code."""
        return self.locale.split("_")[0]

    @property
    def country(self) -> str:
        """Return the two-letter country code."""
        return self.locale.split("_")[1]

    @property
    def locale_tag(self) -> str:
        """Return the locale as a BCP 47 tag, e.g. ``en-US``."""
        return f"{self.language}-{self.country}"

    def is_enabled(self, platform: Platform) -> bool:
        """Check if a platform is enabled."""
        return platform in self.enabled_platforms


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings loaded from the environment on first call.
    """
    return Settings()
