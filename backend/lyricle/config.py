"""Centralised runtime configuration loaded from environment variables."""

import os

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./lyricle.db")
ADMIN_MODE: bool = os.getenv("ADMIN_MODE", "true").lower() in ("1", "true", "yes")

MAX_GUESS_LENGTH: int = int(os.getenv("MAX_GUESS_LENGTH", "50"))
MASK_RATIO: float = float(os.getenv("MASK_RATIO", "1.0"))

# Overall progress needed before the catalog preview / full lyrics panel unlock
PREVIEW_REVEAL_THRESHOLD: float = float(os.getenv("PREVIEW_REVEAL_THRESHOLD", "0.5"))
LYRICS_REVEAL_THRESHOLD: float = float(os.getenv("LYRICS_REVEAL_THRESHOLD", "0.75"))

DEFAULT_DIFFICULTY: float = float(os.getenv("DEFAULT_DIFFICULTY", "5.0"))

GENIUS_ACCESS_TOKEN: str = os.getenv("GENIUS_ACCESS_TOKEN", "")
SPOTIFY_CLIENT_ID: str = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET: str = os.getenv("SPOTIFY_CLIENT_SECRET", "")
HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "10.0"))
