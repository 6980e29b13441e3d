class AppError(Exception):
    """Base application error for the GeoIP lookup service."""


class InvalidIpError(AppError):
    """Raised when the supplied lookup key is not a valid IPv4 or IPv6 address."""


class GeoDatabaseError(AppError):
    """Raised when the GeoIP database cannot be opened (missing or corrupt file)."""


class ResolverError(AppError):
    """Raised when a lookup against the GeoIP database fails."""


class RecordNotFoundError(ResolverError):
    """Raised when the database holds no record for the address."""


class SerializationError(AppError):
    """Raised when a lookup payload cannot be encoded as JSON."""
