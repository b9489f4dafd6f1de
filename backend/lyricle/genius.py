"""Genius lyrics lookup: API search for the song page, then HTML scraping."""

import logging
import re

import httpx
from bs4 import BeautifulSoup

from . import config
from .errors import LyricsExtractionError
from .puzzle import normalize

logger = logging.getLogger(__name__)

_API_URL = "https://api.genius.com"
_HEADERS = {"User-Agent": "Lyricle/1.0 (daily lyrics guessing game)"}


def _client(transport: httpx.AsyncBaseTransport | None = None, **kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.HTTP_TIMEOUT,
        headers=_HEADERS,
        transport=transport,
        follow_redirects=True,
        **kwargs,
    )


def pick_hit(hits: list[dict], artist: str) -> dict | None:
    """Return the first song hit whose primary artist matches *artist*.

    Falls back to the first song hit when no artist matches.
    """
    songs = [h["result"] for h in hits if h.get("type", "song") == "song" and "result" in h]
    if not songs:
        return None
    wanted = normalize(artist)
    for result in songs:
        name = normalize(result.get("primary_artist", {}).get("name", ""))
        if name and (name in wanted or wanted in name):
            return result
    return songs[0]


async def search_song(
    title: str, artist: str, transport: httpx.AsyncBaseTransport | None = None
) -> str:
    """Return the Genius page URL for *title* by *artist*."""
    headers = {"Authorization": f"Bearer {config.GENIUS_ACCESS_TOKEN}"}
    try:
        async with _client(transport) as client:
            resp = await client.get(
                f"{_API_URL}/search", params={"q": f"{title} {artist}"}, headers=headers
            )
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPError as exc:
        raise LyricsExtractionError(f"Genius search failed: {exc}") from exc

    hit = pick_hit(data.get("response", {}).get("hits", []), artist)
    if hit is None or not hit.get("url"):
        raise LyricsExtractionError(f"No Genius result for {title!r} by {artist!r}")
    logger.info("[genius] %r by %r → %s", title, artist, hit["url"])
    return hit["url"]


async def fetch_lyrics(url: str, transport: httpx.AsyncBaseTransport | None = None) -> str:
    """Download a Genius song page and return its cleaned lyrics."""
    try:
        async with _client(transport) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            html = resp.text
    except httpx.HTTPError as exc:
        raise LyricsExtractionError(f"Failed to fetch lyrics page {url}: {exc}") from exc
    return extract_lyrics(html)


async def get_lyrics(
    title: str, artist: str, transport: httpx.AsyncBaseTransport | None = None
) -> dict[str, str]:
    """Returns {"url": <song page>, "lyrics": <cleaned lyrics>}."""
    url = await search_song(title, artist, transport=transport)
    return {"url": url, "lyrics": await fetch_lyrics(url, transport=transport)}


def extract_lyrics(html: str) -> str:
    """Parse a Genius song page and return the cleaned lyrics text."""
    soup = BeautifulSoup(html, "lxml")

    containers = soup.find_all("div", attrs={"data-lyrics-container": True})
    if not containers:
        containers = soup.find_all("div", class_="lyrics")

    parts: list[str] = []
    for div in containers:
        # Headers and contributor blurbs Genius nests inside the container
        for junk in div.find_all(attrs={"data-exclude-from-selection": True}):
            junk.decompose()
        for br in div.find_all("br"):
            br.replace_with("\n")
        parts.append(div.get_text())

    lyrics = clean_lyrics("\n\n".join(parts))
    if not lyrics:
        raise LyricsExtractionError("Failed to extract lyrics from HTML")
    return lyrics


def clean_lyrics(text: str) -> str:
    # Section headers like [Chorus] or [Verse 2: Miley Cyrus]
    text = re.sub(r"\[[^\]]*\]", "", text)
    # Inline annotations
    text = re.sub(r"\{[^}]*\}", "", text)
    # Repeat markers like (2x)
    text = re.sub(r"\(\d+x\)", "", text, flags=re.IGNORECASE)

    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
