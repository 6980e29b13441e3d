from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

from anyio import to_thread
from fastapi import Depends, FastAPI, Request, Response, status

from src.cache import ResponseCache
from src.config import Settings
from src.errors import SerializationError
from src.exception_handlers import serialization_exception_handler, unhandled_exception_handler
from src.logger import logger
from src.models.request_models import LookupRequest
from src.models.response_models import HealthResponse
from src.resolvers.base import BaseGeoResolver
from src.resolvers.maxmind import MaxMindResolver
from src.service import LookupService


def build_lookup_service(settings: Settings, resolver: BaseGeoResolver) -> LookupService:
    """Wire the lookup service; no cache object exists when caching is disabled."""
    cache = ResponseCache(ttl_seconds=settings.cache) if settings.cache_enabled else None
    return LookupService(resolver=resolver, mode=settings.lookup, pretty=settings.pretty, cache=cache)


def get_lookup_service(request: Request) -> LookupService:
    """Dependency to provide the process-wide LookupService instance."""
    return request.app.state.lookup_service


def create_app(settings: Settings | None = None, resolver: BaseGeoResolver | None = None) -> FastAPI:
    """Build the FastAPI application.

    The database is opened in the lifespan, so a missing or corrupt file
    (`GeoDatabaseError`) aborts startup before any request is served. Passing
    `resolver` skips opening the database file.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Synchronous endpoints run on this pool, one thread per in-flight request.
        to_thread.current_default_thread_limiter().total_tokens = settings.threads

        geo_resolver = resolver
        if geo_resolver is None:
            geo_resolver = MaxMindResolver.open(settings.db, settings.lookup)
            logger.info(f"Loaded database {settings.db}")

        service = build_lookup_service(settings, geo_resolver)
        app.state.lookup_service = service
        if service.cache is not None:
            service.cache.start()
        logger.info(
            "Started GeoIP lookup service "
            f"lookup={settings.lookup.value} pretty={settings.pretty} cache={settings.cache}s threads={settings.threads}"
        )
        try:
            yield
        finally:
            if service.cache is not None:
                service.cache.stop()
            geo_resolver.close()

    app = FastAPI(
        title="GeoIP Lookup Service",
        version="0.1.0",
        description="Resolves IP addresses to city or country data from a local MaxMind database.",
        lifespan=lifespan,
    )
    app.add_exception_handler(SerializationError, serialization_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get(
        "/health",
        tags=["health"],
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
        summary="Health check",
    )
    async def health() -> HealthResponse:
        """Basic health check endpoint."""
        return HealthResponse(status="ok")

    # Registered last: it matches every path.
    @app.get(
        "/{path:path}",
        response_class=Response,
        tags=["ip"],
        summary="Look up geolocation information for an IP address.",
    )
    def ip_lookup(
        path: str,
        query: Annotated[LookupRequest, Depends()],
        service: Annotated[LookupService, Depends(get_lookup_service)],
    ) -> Response:
        """Look up an IP given as `?ip=` or as the request path, e.g. `/8.8.8.8`.

        The body is written exactly as produced (and possibly cached) by the
        lookup service. Invalid addresses get 400; everything else, including
        addresses missing from the database, gets 200.
        """
        result = service.handle(query.lookup_key(path))
        return Response(content=result.body, status_code=result.status_code, media_type="application/json")

    return app


app = create_app()
