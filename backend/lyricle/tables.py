"""
Database tables: songs, one game per calendar day, append-only guesses.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Song(Base):
    """A song with its game-wide mask, fixed when the song is created"""
    __tablename__ = "songs"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(300), nullable=False)
    artist = Column(String(300), nullable=False)
    lyrics = Column(Text, nullable=True)
    masked = Column(JSON, nullable=False)  # {"title": [...], "artist": [...], "lyrics": [...]} tokens

    # Catalog / provider metadata
    catalog_id = Column(String(50), nullable=True)
    album = Column(String(300), nullable=True)
    preview_url = Column(String(500), nullable=True)
    album_cover_url = Column(String(500), nullable=True)
    external_url = Column(String(500), nullable=True)
    lyrics_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_now)


class Game(Base):
    """The game of one calendar day; pending while it has no song"""
    __tablename__ = "games"

    id = Column(String(36), primary_key=True, default=_uuid)
    date = Column(String(10), nullable=False, unique=True, index=True)  # YYYY-MM-DD
    song_id = Column(String(36), ForeignKey("songs.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    song = relationship(Song, lazy="selectin")


class Guess(Base):
    """One submitted word; never updated"""
    __tablename__ = "guesses"
    __table_args__ = (Index("ix_guesses_game_player", "game_id", "player_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)  # insertion order = history order
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(String(64), nullable=False)
    word = Column(String(100), nullable=False)
    valid = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_now)
