from collections.abc import Iterator

import pytest
from anyio import to_thread
from fastapi.testclient import TestClient

from src.config import LookupMode, Settings
from src.errors import GeoDatabaseError, SerializationError
from src.main import create_app, get_lookup_service
from src.models.records import CountryRecord
from tests.common import FakeResolver


def _settings(**overrides) -> Settings:
    values = {"db": "unused.mmdb", "lookup": LookupMode.country, "threads": 4, "cache": 60}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver({"8.8.8.8": CountryRecord(country="US")})


@pytest.fixture
def client(resolver: FakeResolver) -> Iterator[TestClient]:
    app = create_app(_settings(), resolver=resolver)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_lookup_by_query_parameter(client: TestClient) -> None:
    response = client.get("/", params={"ip": "8.8.8.8"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.content == b'{"Data":{"country":"US"}}'


def test_lookup_by_path(client: TestClient) -> None:
    response = client.get("/8.8.8.8/")

    assert response.status_code == 200
    assert response.content == b'{"Data":{"country":"US"}}'


def test_query_parameter_wins_over_path(client: TestClient, resolver: FakeResolver) -> None:
    client.get("/1.1.1.1", params={"ip": "8.8.8.8"})

    assert resolver.calls == [("country", "8.8.8.8")]


def test_invalid_ip_returns_400(client: TestClient, resolver: FakeResolver) -> None:
    response = client.get("/not-an-ip")

    assert response.status_code == 400
    assert response.content == b'{"Error":"unable to decode ip"}'
    assert resolver.calls == []


def test_zoned_ipv6_query_returns_400_and_is_not_cached(client: TestClient, resolver: FakeResolver) -> None:
    response = client.get("/", params={"ip": "fe80::1%eth0"})

    assert response.status_code == 400
    assert response.content == b'{"Error":"unable to decode ip"}'
    assert resolver.calls == []
    assert len(client.app.state.lookup_service.cache) == 0


def test_empty_key_returns_400(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 400
    assert response.json() == {"Error": "unable to decode ip"}


def test_unknown_address_returns_200_with_error(client: TestClient, resolver: FakeResolver) -> None:
    first = client.get("/203.0.113.5")
    second = client.get("/203.0.113.5")

    assert first.status_code == 200
    assert first.json() == {"Error": "The address 203.0.113.5 is not in the database."}
    assert second.content == first.content
    assert len(resolver.calls) == 1


def test_repeated_request_is_served_from_cache(client: TestClient, resolver: FakeResolver) -> None:
    first = client.get("/8.8.8.8")
    second = client.get("/8.8.8.8")

    assert second.content == first.content
    assert len(resolver.calls) == 1


def test_cache_disabled_resolves_every_request(resolver: FakeResolver) -> None:
    app = create_app(_settings(cache=0), resolver=resolver)
    with TestClient(app) as test_client:
        test_client.get("/8.8.8.8")
        test_client.get("/8.8.8.8")
        assert app.state.lookup_service.cache is None

    assert len(resolver.calls) == 2


def test_pretty_output(resolver: FakeResolver) -> None:
    app = create_app(_settings(pretty=True), resolver=resolver)
    with TestClient(app) as test_client:
        response = test_client.get("/8.8.8.8")

    assert response.content == b'{\n  "Data": {\n    "country": "US"\n  }\n}'


async def _default_thread_tokens() -> float:
    return to_thread.current_default_thread_limiter().total_tokens


def test_threads_setting_sizes_worker_pool(resolver: FakeResolver) -> None:
    app = create_app(_settings(threads=3), resolver=resolver)
    with TestClient(app) as test_client:
        assert test_client.portal.call(_default_thread_tokens) == 3


def test_lifespan_closes_resolver(resolver: FakeResolver) -> None:
    app = create_app(_settings(), resolver=resolver)
    with TestClient(app):
        assert not resolver.closed
    assert resolver.closed


def test_missing_database_aborts_startup(tmp_path) -> None:
    app = create_app(_settings(db=str(tmp_path / "missing.mmdb")))

    with pytest.raises(GeoDatabaseError):
        with TestClient(app):
            pass


class _FailingService:
    """Test double for LookupService whose payload can never be encoded."""

    def handle(self, raw_key: str) -> None:
        raise SerializationError("cannot encode")


def test_serialization_failure_returns_500(client: TestClient) -> None:
    client.app.dependency_overrides[get_lookup_service] = lambda: _FailingService()
    try:
        response = client.get("/8.8.8.8")
    finally:
        client.app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"Error": "unable to encode response"}

    # The application keeps serving other requests.
    assert client.get("/health").status_code == 200
