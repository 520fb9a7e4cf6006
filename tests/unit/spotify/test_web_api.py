import pytest

from src.domain.errors import UpstreamError
from src.infrastructure.spotify import SpotifyWebApi, TokenBroker
from tests.support.stubs import FakeResponse, FakeSession, SpotipySearchStub, spotify_error


def _api(**results):
    session = FakeSession(
        FakeResponse(200, {"access_token": "tok-1", "expires_in": 3600}),
        FakeResponse(200, {"access_token": "tok-2", "expires_in": 3600}),
    )
    broker = TokenBroker(client_id="id", client_secret="secret", session=session)
    stub = SpotipySearchStub(**results)
    return SpotifyWebApi(token_broker=broker, spotify_client=stub, default_market="US"), stub


@pytest.mark.unit
def test_search_passes_through_payload():
    payload = {"tracks": {"items": [{"id": "t1"}]}}
    api, stub = _api(search=payload)

    assert api.search("hello", "track", limit=3, market="SE") is payload
    assert stub.calls[0] == ("search", (), {"q": "hello", "limit": 3, "type": "track", "market": "SE"})


@pytest.mark.unit
def test_upstream_status_and_body_are_preserved():
    api, _ = _api(track=spotify_error(404, "non existing id"))
    with pytest.raises(UpstreamError) as err:
        api.track("missing")
    assert err.value.status_code == 404
    assert err.value.raw == "non existing id"
    assert err.value.message == "Spotify tracks failed"


@pytest.mark.unit
def test_unauthorized_drops_cached_token():
    api, _ = _api(artist=spotify_error(401, "The access token expired"))
    api.token_broker.refresh_if_expired()
    assert api.token_broker.is_expired() is False

    with pytest.raises(UpstreamError):
        api.artist("ar1")
    assert api.token_broker.is_expired() is True


@pytest.mark.unit
def test_audio_features_unwraps_first_entry():
    api, stub = _api(audio_features=[{"id": "t1", "energy": 0.5}])
    assert api.audio_features("t1") == {"id": "t1", "energy": 0.5}
    assert stub.calls[0][1] == (["t1"],)


@pytest.mark.unit
def test_audio_features_missing_is_not_found():
    api, _ = _api(audio_features=[None])
    with pytest.raises(UpstreamError) as err:
        api.audio_features("t1")
    assert err.value.status_code == 404


@pytest.mark.unit
def test_market_defaults():
    api, stub = _api(album={"id": "al1"}, artist_top_tracks={"tracks": []})
    api.album("al1")
    api.artist_top_tracks("ar1")
    assert stub.calls[0][2] == {"market": "US"}
    assert stub.calls[1][2] == {"country": "US"}


@pytest.mark.unit
def test_artist_albums_forwards_groups_and_limit():
    api, stub = _api(artist_albums={"total": 2, "items": []})
    assert api.artist_albums("ar1", include_groups="album", limit=10) == {"total": 2, "items": []}
    assert stub.calls[0][2] == {"include_groups": "album", "limit": 10}
