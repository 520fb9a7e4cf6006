import pytest

from src.infrastructure.spotify import TokenBroker, TokenUnavailableError
from tests.support.stubs import FakeResponse, FakeSession, connection_error


class _Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def _broker(session, clock=None, **kwargs):
    return TokenBroker(client_id="id", client_secret="secret", token_url="https://auth.test/token",
                       expiry_margin_seconds=60, session=session, clock=clock or _Clock(), **kwargs)


@pytest.mark.unit
def test_fetches_with_client_credentials():
    session = FakeSession(FakeResponse(200, {"access_token": "tok", "expires_in": 3600}))
    broker = _broker(session)

    assert broker.refresh_if_expired() == "tok"
    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["url"] == "https://auth.test/token"
    assert sent["data"] == {"grant_type": "client_credentials"}
    assert sent["auth"] == ("id", "secret")
    assert broker.expires_at == pytest.approx(1000.0 + 3600 - 60)


@pytest.mark.unit
def test_reuses_token_until_expiry_margin():
    clock = _Clock()
    session = FakeSession(
        FakeResponse(200, {"access_token": "tok-1", "expires_in": 3600}),
        FakeResponse(200, {"access_token": "tok-2", "expires_in": 3600}),
    )
    broker = _broker(session, clock)

    assert broker.refresh_if_expired() == "tok-1"
    clock.now += 3000
    assert broker.refresh_if_expired() == "tok-1"
    assert len(session.requests) == 1

    clock.now += 540  # now exactly at issue time + 3600 - 60
    assert broker.is_expired() is True
    assert broker.refresh_if_expired() == "tok-2"
    assert len(session.requests) == 2


@pytest.mark.unit
def test_missing_credentials_never_call_out():
    session = FakeSession()
    broker = TokenBroker(client_id="", client_secret="", session=session)

    assert broker.has_credentials is False
    with pytest.raises(TokenUnavailableError) as err:
        broker.refresh_if_expired()
    assert "SPOTIFY_CLIENT_ID" in err.value.message
    assert session.requests == []


@pytest.mark.unit
@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(400, {"error": "invalid_client"}, text='{"error": "invalid_client"}'),
        FakeResponse(200, {"token_type": "Bearer"}),
        connection_error(),
    ],
)
def test_token_failures_raise(response):
    broker = _broker(FakeSession(response))
    with pytest.raises(TokenUnavailableError) as err:
        broker.refresh_if_expired()
    assert err.value.status_code == 500
    assert err.value.message == "Failed to get app token"


@pytest.mark.unit
def test_invalidate_forces_refetch():
    session = FakeSession(
        FakeResponse(200, {"access_token": "tok-1", "expires_in": 3600}),
        FakeResponse(200, {"access_token": "tok-2", "expires_in": 3600}),
    )
    broker = _broker(session)
    broker.refresh_if_expired()
    broker.invalidate()
    assert broker.get_access_token() == "tok-2"


@pytest.mark.unit
def test_spotipy_auth_manager_protocol():
    broker = _broker(FakeSession(FakeResponse(200, {"access_token": "tok", "expires_in": 120})))
    info = broker.get_access_token(as_dict=True)
    assert info == {"access_token": "tok", "token_type": "Bearer", "expires_at": 1060}
