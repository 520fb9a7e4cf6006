import pytest

from tests.support.stubs import FakeResponse, spotify_error


@pytest.mark.unit
def test_search_returns_upstream_json_verbatim(proxy_http, spotipy_stub):
    payload = {"tracks": {"items": [{"id": "t1", "name": "Song"}], "total": 1}}
    spotipy_stub.results["search"] = payload

    r = proxy_http.get("/spotify/search?q=song")

    assert r.status_code == 200
    assert r.get_json() == payload
    assert spotipy_stub.calls[0][2] == {"q": "song", "limit": 1, "type": "track", "market": "US"}


@pytest.mark.unit
@pytest.mark.parametrize("raw_limit, expected", [("50", 50), ("0", 1), ("51", 1), ("abc", 1), ("7", 7), ("5abc", 5), ("7.9", 7), ("-3", 1)])
def test_search_limit_is_bounded(proxy_http, spotipy_stub, raw_limit, expected):
    spotipy_stub.results["search"] = {}
    proxy_http.get(f"/spotify/search?q=x&limit={raw_limit}&market=SE")
    assert spotipy_stub.calls[0][2]["limit"] == expected
    assert spotipy_stub.calls[0][2]["market"] == "SE"


@pytest.mark.unit
@pytest.mark.parametrize(
    "path",
    ["/spotify/search", "/spotify/search-albums?q=", "/spotify/search-artists", "/spotify/search-playlists"],
)
def test_search_requires_q(proxy_http, path):
    r = proxy_http.get(path)
    assert r.status_code == 400
    assert r.get_json() == {"error": "Missing q query parameter"}


@pytest.mark.unit
def test_search_playlists_default_limit(proxy_http, spotipy_stub):
    spotipy_stub.results["search"] = {"playlists": {"items": []}}
    r = proxy_http.get("/spotify/search-playlists?q=focus")
    assert r.status_code == 200
    assert spotipy_stub.calls[0][2]["type"] == "playlist"
    assert spotipy_stub.calls[0][2]["limit"] == 10


@pytest.mark.unit
def test_upstream_error_envelope(proxy_http, spotipy_stub):
    spotipy_stub.results["track"] = spotify_error(404, "non existing id")
    r = proxy_http.get("/spotify/tracks/missing")
    assert r.status_code == 404
    assert r.get_json() == {"error": "Spotify tracks failed", "status": 404, "raw": "non existing id"}


@pytest.mark.unit
def test_lookup_routes(proxy_http, spotipy_stub):
    spotipy_stub.results.update({
        "album": {"id": "al1"},
        "artist": {"id": "ar1"},
        "artist_albums": {"total": 0, "items": []},
        "artist_top_tracks": {"tracks": []},
        "artist_related_artists": {"artists": []},
        "audio_features": [{"id": "t1", "energy": 0.4}],
    })

    assert proxy_http.get("/spotify/albums/al1").get_json() == {"id": "al1"}
    assert proxy_http.get("/spotify/artists/ar1").get_json() == {"id": "ar1"}
    assert proxy_http.get("/spotify/artists/ar1/albums").get_json()["total"] == 0
    assert proxy_http.get("/spotify/artists/ar1/top-tracks?market=SE").get_json() == {"tracks": []}
    assert proxy_http.get("/spotify/artists/ar1/related-artists").get_json() == {"artists": []}
    assert proxy_http.get("/spotify/audio-features/t1").get_json()["energy"] == 0.4

    calls = {name: kwargs for name, _, kwargs in spotipy_stub.calls}
    assert calls["album"] == {"market": "US"}
    assert calls["artist_albums"] == {"include_groups": "album,single", "limit": 50}
    assert calls["artist_top_tracks"] == {"country": "SE"}


@pytest.mark.unit
def test_app_token(proxy_http, token_session):
    r = proxy_http.get("/token/app")
    assert r.status_code == 200
    assert r.get_json() == {"access_token": "tok-1"}
    # Cached token is reused
    proxy_http.get("/token/app")
    assert len(token_session.requests) == 1


@pytest.mark.unit
def test_app_token_failure(proxy_http, token_session):
    token_session.responses[:] = [FakeResponse(401, {"error": "invalid_client"}, text="invalid_client")]
    r = proxy_http.get("/token/app")
    assert r.status_code == 500
    assert r.get_json() == {"error": "Failed to get app token"}


@pytest.mark.unit
def test_proxy_health(proxy_http):
    assert proxy_http.get("/health").get_json()["service"] == "spotify-auth"
    assert proxy_http.get("/readyz").status_code == 200
