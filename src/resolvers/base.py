from abc import ABC, abstractmethod
from ipaddress import IPv4Address, IPv6Address

from src.config import LookupMode
from src.models.records import CityRecord, CountryRecord, GeoRecord


class BaseGeoResolver(ABC):
    """Abstract base for GeoIP databases.

    Implementations map database records into `CityRecord`/`CountryRecord`
    and raise `RecordNotFoundError` or `ResolverError` on failure. Lookups are
    synchronous and expected to be fast (in-memory or memory-mapped data).
    """

    @abstractmethod
    def city(self, ip: IPv4Address | IPv6Address) -> CityRecord:
        """Look up the city-level record for an address."""
        raise NotImplementedError

    @abstractmethod
    def country(self, ip: IPv4Address | IPv6Address) -> CountryRecord:
        """Look up the country-level record for an address."""
        raise NotImplementedError

    def lookup(self, ip: IPv4Address | IPv6Address, mode: LookupMode) -> GeoRecord:
        """Dispatch to `city` or `country` according to `mode`."""
        if mode is LookupMode.city:
            return self.city(ip)
        return self.country(ip)

    def close(self) -> None:
        """Release the underlying database handle."""
