from dataclasses import dataclass
from ipaddress import IPv4Address, IPv6Address, ip_address

from fastapi import status

from src.cache import ResponseCache
from src.config import LookupMode
from src.errors import InvalidIpError, ResolverError, SerializationError
from src.logger import get_logger
from src.models.response_models import LookupPayload
from src.resolvers.base import BaseGeoResolver

logger = get_logger("service")

INVALID_IP_MESSAGE = "unable to decode ip"


@dataclass(frozen=True)
class LookupResult:
    """Serialized response body plus the HTTP status to send it with."""

    body: bytes
    status_code: int = status.HTTP_200_OK
    cached: bool = False


def parse_lookup_key(raw_key: str) -> IPv4Address | IPv6Address:
    """Parse the raw key as an IP address, raising `InvalidIpError` if it is not one."""
    try:
        ip = ip_address(raw_key)
    except ValueError as exc:
        raise InvalidIpError(INVALID_IP_MESSAGE) from exc
    # Zoned IPv6 literals (fe80::1%eth0) name a link, not a routable address.
    if getattr(ip, "scope_id", None) is not None:
        raise InvalidIpError(INVALID_IP_MESSAGE)
    return ip


class LookupService:
    """Cache-aside lookup of GeoIP records.

    The cache stores the serialized bytes, keyed by the raw request text. A hit
    therefore returns exactly what the first request produced, formatting
    included, without touching the resolver or re-encoding anything. Resolver
    errors (e.g. address not in the database) are ordinary answers and are
    cached too; only unparsable keys are rejected without caching.
    """

    def __init__(
        self,
        resolver: BaseGeoResolver,
        mode: LookupMode = LookupMode.city,
        pretty: bool = False,
        cache: ResponseCache | None = None,
    ) -> None:
        self._resolver = resolver
        self._mode = mode
        self._pretty = pretty
        self._cache = cache

    @property
    def cache(self) -> ResponseCache | None:
        return self._cache

    def handle(self, raw_key: str) -> LookupResult:
        try:
            ip = parse_lookup_key(raw_key)
        except InvalidIpError as exc:
            logger.debug(f"Rejected lookup key key={raw_key!r} error={exc}")
            payload = LookupPayload(error=str(exc))
            return LookupResult(body=self.serialize(payload), status_code=status.HTTP_400_BAD_REQUEST)

        if self._cache is not None:
            cached_body, found = self._cache.get(raw_key)
            if found:
                logger.debug(f"Cache hit key={raw_key}")
                return LookupResult(body=cached_body, cached=True)

        try:
            payload = LookupPayload(data=self._resolver.lookup(ip, self._mode))
        except ResolverError as exc:
            logger.debug(f"Lookup failed key={raw_key} mode={self._mode.value} error={exc}")
            payload = LookupPayload(error=str(exc))

        body = self.serialize(payload)
        if self._cache is not None:
            self._cache.set(raw_key, body)
        return LookupResult(body=body)

    def serialize(self, payload: LookupPayload) -> bytes:
        """Encode a payload as compact JSON, or 2-space indented JSON if `pretty`."""
        try:
            text = payload.model_dump_json(
                by_alias=True,
                exclude_none=True,
                indent=2 if self._pretty else None,
            )
        except ValueError as exc:
            raise SerializationError(f"Unable to encode lookup payload: {exc}") from exc
        return text.encode()
