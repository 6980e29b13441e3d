from ipaddress import IPv4Address, IPv6Address

from src.errors import RecordNotFoundError
from src.models.records import CityRecord, CountryRecord
from src.resolvers.base import BaseGeoResolver


class FakeClock:
    """Manually advanced clock for deterministic cache expiry tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResolver(BaseGeoResolver):
    """In-memory resolver keyed by the canonical address text.

    Addresses missing from `records` raise `RecordNotFoundError` with the same
    message geoip2 uses. Every call is recorded in `calls`.
    """

    def __init__(self, records: dict[str, CityRecord | CountryRecord] | None = None) -> None:
        self.records = records or {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    def city(self, ip: IPv4Address | IPv6Address) -> CityRecord:
        return self._get("city", ip)

    def country(self, ip: IPv4Address | IPv6Address) -> CountryRecord:
        return self._get("country", ip)

    def close(self) -> None:
        self.closed = True

    def _get(self, method: str, ip: IPv4Address | IPv6Address):
        self.calls.append((method, str(ip)))
        try:
            return self.records[str(ip)]
        except KeyError:
            raise RecordNotFoundError(f"The address {ip} is not in the database.") from None
