"""Spotify Web API client (client-credentials flow) for the admin track browser."""

import logging
import re
import time

import httpx

from . import config
from .errors import CatalogError, ValidationError
from .models import PlaylistModel, TrackModel

logger = logging.getLogger(__name__)

_API_URL = "https://api.spotify.com/v1"
_TOKEN_URL = "https://accounts.spotify.com/api/token"
_TRACK_ID_RE = re.compile(r"^[A-Za-z0-9]{22}$")

# (access token, monotonic expiry)
_token: tuple[str, float] | None = None


def normalize_track_id(raw: str) -> str:
    """Strip an optional ``spotify:track:`` prefix and check the id shape."""
    track_id = (raw or "").strip()
    if track_id.startswith("spotify:track:"):
        track_id = track_id[len("spotify:track:"):]
    if not _TRACK_ID_RE.match(track_id):
        raise ValidationError("Invalid Spotify track ID format")
    return track_id


def parse_track(item: dict) -> TrackModel:
    album = item.get("album") or {}
    images = album.get("images") or []
    artists = item.get("artists") or []
    return TrackModel(
        id=item["id"],
        title=item["name"],
        artist=artists[0]["name"] if artists else "",
        album=album.get("name"),
        preview_url=item.get("preview_url"),
        album_cover_url=images[0]["url"] if images else None,
        external_url=(item.get("external_urls") or {}).get("spotify"),
    )


def parse_playlist(item: dict) -> PlaylistModel:
    images = item.get("images") or []
    return PlaylistModel(
        id=item["id"],
        name=item.get("name") or "",
        owner=(item.get("owner") or {}).get("display_name"),
        track_count=(item.get("tracks") or {}).get("total") or 0,
        image_url=images[0]["url"] if images else None,
        external_url=(item.get("external_urls") or {}).get("spotify"),
    )


def _clean_query(query: str) -> str:
    query = (query or "").strip()
    if not query:
        raise ValidationError("Search query cannot be empty")
    if len(query) > 100:
        raise ValidationError("Search query must be at most 100 characters")
    return query


async def _access_token(client: httpx.AsyncClient) -> str:
    global _token
    if _token is not None and _token[1] > time.monotonic():
        return _token[0]
    if not config.SPOTIFY_CLIENT_ID or not config.SPOTIFY_CLIENT_SECRET:
        raise CatalogError("Spotify credentials are not configured")

    resp = await client.post(
        _TOKEN_URL,
        data={"grant_type": "client_credentials"},
        auth=(config.SPOTIFY_CLIENT_ID, config.SPOTIFY_CLIENT_SECRET),
    )
    resp.raise_for_status()
    data = resp.json()
    # Refresh a minute early
    _token = (data["access_token"], time.monotonic() + int(data.get("expires_in", 3600)) - 60)
    logger.info("[spotify] Obtained access token.")
    return _token[0]


async def _get(path: str, params: dict | None = None, transport: httpx.AsyncBaseTransport | None = None) -> dict:
    try:
        async with httpx.AsyncClient(timeout=config.HTTP_TIMEOUT, transport=transport) as client:
            token = await _access_token(client)
            resp = await client.get(
                f"{_API_URL}{path}",
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
            if resp.status_code == 404:
                raise CatalogError(f"Spotify resource not found: {path}")
            resp.raise_for_status()
            return resp.json()
    except httpx.HTTPError as exc:
        raise CatalogError(f"Spotify request failed for {path}: {exc}") from exc


async def get_track(track_id: str, transport: httpx.AsyncBaseTransport | None = None) -> TrackModel:
    track_id = normalize_track_id(track_id)
    return parse_track(await _get(f"/tracks/{track_id}", transport=transport))


async def search_tracks(
    query: str, limit: int = 10, transport: httpx.AsyncBaseTransport | None = None
) -> list[TrackModel]:
    query = _clean_query(query)
    data = await _get("/search", {"q": query, "type": "track", "limit": limit}, transport=transport)
    return [parse_track(item) for item in data.get("tracks", {}).get("items", []) if item]


async def search_playlists(
    query: str, limit: int = 50, transport: httpx.AsyncBaseTransport | None = None
) -> list[PlaylistModel]:
    query = _clean_query(query)
    data = await _get("/search", {"q": query, "type": "playlist", "limit": limit}, transport=transport)
    # Spotify pads playlist results with nulls for playlists it can't show
    return [
        parse_playlist(item)
        for item in data.get("playlists", {}).get("items", [])
        if item and item.get("id")
    ]


async def playlist_tracks(
    playlist_id: str, limit: int = 50, transport: httpx.AsyncBaseTransport | None = None
) -> list[TrackModel]:
    playlist_id = (playlist_id or "").strip()
    if playlist_id.startswith("spotify:playlist:"):
        playlist_id = playlist_id[len("spotify:playlist:"):]
    if not playlist_id:
        raise ValidationError("Playlist ID is required")
    data = await _get(f"/playlists/{playlist_id}/tracks", {"limit": limit}, transport=transport)
    # Local files and removed tracks come back with a null track or id
    return [
        parse_track(entry["track"])
        for entry in data.get("items", [])
        if entry.get("track") and entry["track"].get("id")
    ]
