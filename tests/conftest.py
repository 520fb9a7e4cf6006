import os
import sys

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'src' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from tests.support import stubs as test_stubs


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """Ensure a clean env for tests: fake credentials, no tracing export, temp log dir."""
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)
    yield


@pytest.fixture
def proxy_stub():
    """Proxy client stub; tests fill ``responses`` before issuing requests."""
    return test_stubs.StubProxyClient()


@pytest.fixture
def registry_stub():
    return test_stubs.StubRegistryClient(services=[
        {"id": "trackiq", "name": "TrackIQ", "description": "", "url": "http://localhost:8080"},
        {"id": "spotify-auth", "name": "Spotify Auth Proxy", "description": "", "url": "http://localhost:8081"},
    ])


@pytest.fixture
def app(proxy_stub, registry_stub):
    import app as app_module

    application = app_module.create_app(proxy_client=proxy_stub, registry_client=registry_stub)
    application.config["TESTING"] = True
    yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def spotipy_stub():
    return test_stubs.SpotipySearchStub()


@pytest.fixture
def token_session():
    return test_stubs.FakeSession(
        test_stubs.FakeResponse(200, {"access_token": "tok-1", "expires_in": 3600}),
    )


@pytest.fixture
def spotify_api(spotipy_stub, token_session):
    from src.infrastructure.spotify import SpotifyWebApi, TokenBroker

    broker = TokenBroker(client_id="id", client_secret="secret", session=token_session)
    return SpotifyWebApi(token_broker=broker, spotify_client=spotipy_stub)


@pytest.fixture
def proxy_app(spotify_api):
    import app as app_module

    application = app_module.create_proxy_app(spotify_api=spotify_api)
    application.config["TESTING"] = True
    yield application


@pytest.fixture
def proxy_http(proxy_app):
    return proxy_app.test_client()


@pytest.fixture
def registry_app():
    import app as app_module

    application = app_module.create_registry_app(heartbeat_seconds=0)
    application.config["TESTING"] = True
    yield application


@pytest.fixture
def registry_http(registry_app):
    return registry_app.test_client()
