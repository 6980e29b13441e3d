import os
from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# How often the response cache drops expired entries.
CACHE_SWEEP_INTERVAL_SECONDS = 1.0


class LookupMode(str, Enum):
    """Which MaxMind record type to look up; must match the loaded database."""

    city = "city"
    country = "country"


class Settings(BaseSettings):
    """Process-wide service settings.

    Values come from `GEOIP_*` environment variables or a `.env` file, and
    from command-line flags when built by `run_app.py`. They are read once at
    startup and never change afterwards.
    """

    model_config = SettingsConfigDict(
        env_prefix="GEOIP_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    db: str = Field(
        default="GeoLite2-City.mmdb",
        description="File name of MaxMind GeoIP2 and GeoLite2 database.",
    )
    lookup: LookupMode = Field(
        default=LookupMode.city,
        description="Which value to look up: 'city' or 'country', depending on the database loaded.",
    )
    listen: str = Field(
        default=":5000",
        description="Listen address and port, for instance 127.0.0.1:5000.",
    )
    threads: int = Field(
        default_factory=lambda: os.cpu_count() or 1,
        ge=1,
        description="Number of worker threads. Defaults to the number of detected cores.",
    )
    pretty: bool = Field(
        default=False,
        description="Format output with newlines and indentation.",
    )
    cache: int = Field(
        default=60,
        ge=0,
        description="How many seconds responses are cached. 0 disables caching.",
    )

    @field_validator("listen")
    @classmethod
    def _validate_listen(cls, value: str) -> str:
        """Require a `host:port` pair; the host part may be empty."""
        host, sep, port = value.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"listen must be in the form host:port, got '{value}'")
        if not 0 < int(port) < 65536:
            raise ValueError(f"listen port out of range: {port}")
        return value

    @property
    def host(self) -> str:
        host = self.listen.rpartition(":")[0].strip("[]")
        return host or "0.0.0.0"

    @property
    def port(self) -> int:
        return int(self.listen.rpartition(":")[2])

    @property
    def cache_enabled(self) -> bool:
        return self.cache > 0
