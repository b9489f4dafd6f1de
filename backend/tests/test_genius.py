"""Tests for Genius lyrics lookup and cleanup."""

import asyncio

import httpx
import pytest
from lyricle import genius
from lyricle.errors import LyricsExtractionError

PAGE = """
<html><body>
<div data-lyrics-container="true">
  <div data-exclude-from-selection="true">12 Contributors</div>[Verse 1]<br/>I hopped off the plane at LAX<br/>With a dream and my cardigan
</div>
<div data-lyrics-container="true">[Chorus]<br/>So I put my hands up<br/>They&#x27;re playing my song (2x)</div>
</body></html>
"""

EXPECTED = (
    "I hopped off the plane at LAX\n"
    "With a dream and my cardigan\n"
    "\n"
    "So I put my hands up\n"
    "They're playing my song"
)

SEARCH = {
    "response": {
        "hits": [
            {"type": "song", "result": {"url": "https://genius.com/cover", "primary_artist": {"name": "Cover Band"}}},
            {"type": "song", "result": {"url": "https://genius.com/party", "primary_artist": {"name": "Miley Cyrus"}}},
        ]
    }
}


# ── extract_lyrics / clean_lyrics ─────────────────────────────────────────

class TestExtractLyrics:
    def test_modern_containers(self):
        assert genius.extract_lyrics(PAGE) == EXPECTED

    def test_legacy_container(self):
        html = '<div class="lyrics"><p>[Intro]<br>Hey<br>Ho</p></div>'
        assert genius.extract_lyrics(html) == "Hey\nHo"

    def test_no_lyrics(self):
        with pytest.raises(LyricsExtractionError):
            genius.extract_lyrics("<html><body><p>Nothing here</p></body></html>")


class TestCleanLyrics:
    def test_strips_annotations(self):
        assert genius.clean_lyrics("la {note} la [Bridge]") == "la la"

    def test_collapses_blank_lines(self):
        assert genius.clean_lyrics("a\n\n\n\n b  \n c") == "a\n\nb\nc"


# ── pick_hit ──────────────────────────────────────────────────────────────

class TestPickHit:
    def test_prefers_matching_artist(self):
        hit = genius.pick_hit(SEARCH["response"]["hits"], "Miley Cyrus")
        assert hit["url"] == "https://genius.com/party"

    def test_falls_back_to_first(self):
        hit = genius.pick_hit(SEARCH["response"]["hits"], "Someone Else")
        assert hit["url"] == "https://genius.com/cover"

    def test_no_songs(self):
        assert genius.pick_hit([{"type": "artist", "result": {}}], "x") is None


# ── get_lyrics ────────────────────────────────────────────────────────────

class TestGetLyrics:
    def test_search_then_scrape(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "api.genius.com":
                assert request.url.params["q"] == "Party In The U.S.A. Miley Cyrus"
                return httpx.Response(200, json=SEARCH)
            assert str(request.url) == "https://genius.com/party"
            return httpx.Response(200, text=PAGE)

        result = asyncio.run(
            genius.get_lyrics("Party In The U.S.A.", "Miley Cyrus", transport=httpx.MockTransport(handler))
        )
        assert result == {"url": "https://genius.com/party", "lyrics": EXPECTED}

    def test_upstream_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        with pytest.raises(LyricsExtractionError):
            asyncio.run(genius.get_lyrics("a", "b", transport=transport))

    def test_no_results(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"response": {"hits": []}}))
        with pytest.raises(LyricsExtractionError):
            asyncio.run(genius.search_song("a", "b", transport=transport))
