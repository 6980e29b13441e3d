from pydantic import BaseModel, Field


class LookupRequest(BaseModel):
    """Query parameters of the lookup endpoint.

    The address may be given as the `ip` query parameter or as the request
    path (`/8.8.8.8`). The query parameter wins when both are present.

    The value is kept exactly as sent: it doubles as the cache key, so
    `::1` and `0:0::1` are cached separately. Validation happens in the
    lookup service, which answers invalid keys with a 400 payload.
    """

    ip: str | None = Field(
        default=None,
        description="IPv4 or IPv6 address to look up. If omitted, the request path is used.",
        examples=["8.8.8.8", "2001:4860:4860::8888"],
    )

    def lookup_key(self, path: str) -> str:
        """Return the raw lookup key: `ip` if non-empty, else the trimmed path."""
        if self.ip:
            return self.ip
        return path.strip("/")
