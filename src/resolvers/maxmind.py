from ipaddress import IPv4Address, IPv6Address
from typing import Any

import geoip2.database
from geoip2.errors import AddressNotFoundError, GeoIP2Error
from maxminddb import InvalidDatabaseError

from src.config import LookupMode
from src.errors import GeoDatabaseError, RecordNotFoundError, ResolverError
from src.logger import get_logger
from src.models.records import CityRecord, CountryRecord
from src.resolvers.base import BaseGeoResolver

logger = get_logger("resolver")


class MaxMindResolver(BaseGeoResolver):
    """Resolver backed by a MaxMind GeoIP2/GeoLite2 `.mmdb` file.

    The reader is opened once and shared by all request threads; lookups on
    `geoip2.database.Reader` are thread-safe. Records are flattened into our
    own models so the rest of the application never sees geoip2 types.
    """

    def __init__(self, reader: geoip2.database.Reader) -> None:
        self._reader = reader

    @classmethod
    def open(cls, path: str, mode: LookupMode, locales: list[str] | None = None) -> "MaxMindResolver":
        """Open the database at `path`.

        Raises `GeoDatabaseError` if the file is missing, unreadable or not a
        valid MaxMind database.
        """
        try:
            reader = geoip2.database.Reader(path, locales=locales or ["en"])
        except (OSError, InvalidDatabaseError, ValueError) as exc:
            raise GeoDatabaseError(f"Unable to open GeoIP database {path}: {exc}") from exc

        database_type = reader.metadata().database_type
        if mode.value not in database_type.lower():
            logger.warning(
                "Database type may not support the configured lookup "
                f"path={path} database_type={database_type} lookup={mode.value}"
            )
        return cls(reader)

    def city(self, ip: IPv4Address | IPv6Address) -> CityRecord:
        response = self._query(self._reader.city, ip)
        subdivision = response.subdivisions.most_specific
        return CityRecord(
            **self._country_fields(response),
            city=response.city.name,
            region=subdivision.name,
            region_code=subdivision.iso_code,
            postal_code=response.postal.code,
            latitude=response.location.latitude,
            longitude=response.location.longitude,
            accuracy_radius=response.location.accuracy_radius,
            timezone=response.location.time_zone,
        )

    def country(self, ip: IPv4Address | IPv6Address) -> CountryRecord:
        response = self._query(self._reader.country, ip)
        return CountryRecord(**self._country_fields(response))

    def close(self) -> None:
        self._reader.close()

    @staticmethod
    def _query(method: Any, ip: IPv4Address | IPv6Address) -> Any:
        """Run a reader lookup, translating geoip2 failures into domain errors."""
        try:
            return method(ip)
        except AddressNotFoundError as exc:
            raise RecordNotFoundError(str(exc)) from exc
        # TypeError: the lookup method does not match the database type.
        except (GeoIP2Error, InvalidDatabaseError, TypeError, ValueError) as exc:
            raise ResolverError(str(exc)) from exc

    @staticmethod
    def _country_fields(response: Any) -> dict[str, Any]:
        return {
            "continent_code": response.continent.code,
            "continent_name": response.continent.name,
            "country": response.country.iso_code,
            "country_name": response.country.name,
            "is_in_european_union": response.country.is_in_european_union,
            "registered_country": response.registered_country.iso_code,
        }
