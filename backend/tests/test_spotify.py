"""Tests for the Spotify catalog client."""

import asyncio

import httpx
import pytest
from lyricle import config, spotify
from lyricle.errors import CatalogError, ValidationError

TRACK_ID = "4iJyoBOLtHqaGxP12qzhQI"
TRACK = {
    "id": TRACK_ID,
    "name": "Party In The U.S.A.",
    "artists": [{"name": "Miley Cyrus"}, {"name": "Someone"}],
    "album": {"name": "The Time Of Our Lives", "images": [{"url": "https://img/640"}, {"url": "https://img/64"}]},
    "preview_url": "https://p.scdn.co/preview",
    "external_urls": {"spotify": f"https://open.spotify.com/track/{TRACK_ID}"},
}


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_ID", "id")
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_SECRET", "secret")
    monkeypatch.setattr(spotify, "_token", None)


def _transport(api_handler):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "accounts.spotify.com":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        assert request.headers["Authorization"] == "Bearer tok"
        return api_handler(request)

    return httpx.MockTransport(handler)


class TestNormalizeTrackId:
    def test_plain(self):
        assert spotify.normalize_track_id(TRACK_ID) == TRACK_ID

    def test_uri_prefix(self):
        assert spotify.normalize_track_id(f" spotify:track:{TRACK_ID} ") == TRACK_ID

    @pytest.mark.parametrize("raw", ["", "short", TRACK_ID + "x", "spotify:album:" + TRACK_ID])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError):
            spotify.normalize_track_id(raw)


class TestParseTrack:
    def test_fields(self):
        track = spotify.parse_track(TRACK)
        assert track.title == "Party In The U.S.A."
        assert track.artist == "Miley Cyrus"
        assert track.album == "The Time Of Our Lives"
        assert track.album_cover_url == "https://img/640"
        assert track.external_url.endswith(TRACK_ID)

    def test_sparse_track(self):
        track = spotify.parse_track({"id": TRACK_ID, "name": "x", "artists": []})
        assert track.artist == ""
        assert track.album_cover_url is None


class TestRequests:
    def test_get_track(self, credentials):
        transport = _transport(lambda request: httpx.Response(200, json=TRACK))
        track = asyncio.run(spotify.get_track(f"spotify:track:{TRACK_ID}", transport=transport))
        assert track.id == TRACK_ID

    def test_not_found(self, credentials):
        transport = _transport(lambda request: httpx.Response(404))
        with pytest.raises(CatalogError):
            asyncio.run(spotify.get_track(TRACK_ID, transport=transport))

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(config, "SPOTIFY_CLIENT_ID", "")
        monkeypatch.setattr(spotify, "_token", None)
        with pytest.raises(CatalogError):
            asyncio.run(spotify.get_track(TRACK_ID, transport=_transport(lambda r: httpx.Response(200))))

    def test_search(self, credentials):
        def api(request):
            assert request.url.params["q"] == "party"
            return httpx.Response(200, json={"tracks": {"items": [TRACK, None]}})

        tracks = asyncio.run(spotify.search_tracks(" party ", transport=_transport(api)))
        assert [t.id for t in tracks] == [TRACK_ID]

    def test_empty_search(self):
        with pytest.raises(ValidationError):
            asyncio.run(spotify.search_tracks("   "))

    def test_playlist_skips_missing_tracks(self, credentials):
        items = {"items": [{"track": TRACK}, {"track": None}, {"track": {"id": None, "name": "local"}}]}
        transport = _transport(lambda request: httpx.Response(200, json=items))
        tracks = asyncio.run(spotify.playlist_tracks("37i9dQZF1DXcBWIGoYBM5M", transport=transport))
        assert [t.title for t in tracks] == ["Party In The U.S.A."]


class TestPlaylists:
    PLAYLIST = {
        "id": "37i9dQZF1DXcBWIGoYBM5M",
        "name": "Today's Top Hits",
        "owner": {"display_name": "Spotify"},
        "tracks": {"total": 50},
        "images": [{"url": "https://img/playlist"}],
        "external_urls": {"spotify": "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M"},
    }

    def test_parse_playlist(self):
        playlist = spotify.parse_playlist(self.PLAYLIST)
        assert playlist.name == "Today's Top Hits"
        assert playlist.owner == "Spotify"
        assert playlist.track_count == 50
        assert playlist.image_url == "https://img/playlist"

    def test_search_playlists(self, credentials):
        def api(request):
            assert request.url.path == "/v1/search"
            assert request.url.params["type"] == "playlist"
            assert request.url.params["q"] == "top hits"
            return httpx.Response(200, json={"playlists": {"items": [self.PLAYLIST, None]}})

        playlists = asyncio.run(spotify.search_playlists("top hits ", transport=_transport(api)))
        assert [p.id for p in playlists] == ["37i9dQZF1DXcBWIGoYBM5M"]

    @pytest.mark.parametrize("query", ["", "  ", "x" * 101])
    def test_search_playlists_rejects_bad_query(self, query):
        with pytest.raises(ValidationError):
            asyncio.run(spotify.search_playlists(query))

    def test_playlist_uri_prefix_is_stripped(self, credentials):
        def api(request):
            assert request.url.path == "/v1/playlists/37i9dQZF1DXcBWIGoYBM5M/tracks"
            return httpx.Response(200, json={"items": [{"track": TRACK}]})

        tracks = asyncio.run(
            spotify.playlist_tracks("spotify:playlist:37i9dQZF1DXcBWIGoYBM5M", transport=_transport(api))
        )
        assert [t.id for t in tracks] == [TRACK_ID]
