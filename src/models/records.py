from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class _GeoRecordBase(BaseModel):
    """Fields shared by country-level and city-level records."""

    model_config = ConfigDict(frozen=True)

    continent_code: str | None = None
    continent_name: str | None = None
    country: str | None = None
    country_name: str | None = None
    is_in_european_union: bool | None = None
    registered_country: str | None = None


class CountryRecord(_GeoRecordBase):
    """Country-level record, as returned by a GeoIP2/GeoLite2 Country database."""


class CityRecord(_GeoRecordBase):
    """City-level record, as returned by a GeoIP2/GeoLite2 City database."""

    city: str | None = None
    region: str | None = None
    region_code: str | None = None
    postal_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    accuracy_radius: int | None = None
    timezone: str | None = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_lat_lon(cls, value: Any) -> float | None:
        """Round coordinates to 6 decimal places; drop values that are not numbers."""
        if value is None:
            return None
        try:
            return round(float(value), 6)
        except (TypeError, ValueError):
            return None


# The variant is picked once at startup from the configured lookup mode.
GeoRecord = CityRecord | CountryRecord
