"""
Game service: storage around the pure masking / guess / progress / stats core
"""
import asyncio
import calendar
import logging
import re
from contextlib import asynccontextmanager
from datetime import date as Date

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from . import genius, spotify
from .errors import GameNotFoundError, GamePendingError, ValidationError
from .guess import evaluate_guess, found_words, reveal
from .models import (
    AdminGameResponse,
    GameStateResponse,
    GameStatsModel,
    GameSummary,
    GuessModel,
    GuessResponse,
    MaskedLyricsModel,
    ProgressModel,
    SongModel,
    dump_masked,
    load_masked,
)
from .progress import compute_progress
from .puzzle import MaskedLyrics, build_puzzle, verify_integrity
from .stats import aggregate_stats
from .tables import Game, Guess, Song

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
_PLAYER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class KeyedLocks:
    """One asyncio.Lock per key, dropped once nobody holds or waits on it."""

    def __init__(self):
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._users: dict[tuple[str, str], int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: tuple[str, str]):
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


# Submissions from one player to one game are evaluated one at a time, so two
# identical guesses in flight can't both see a history without the other.
_guess_locks = KeyedLocks()


def validate_date(value: str) -> str:
    value = (value or "").strip()
    if not _DATE_RE.match(value):
        raise ValidationError("Invalid date format. Expected YYYY-MM-DD")
    try:
        Date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid calendar date: {value}") from None
    return value


def validate_month(value: str) -> tuple[str, str]:
    """Return the first and last day of a YYYY-MM month."""
    m = _MONTH_RE.match((value or "").strip())
    if not m or not 1 <= int(m.group(2)) <= 12:
        raise ValidationError("Invalid month format. Expected YYYY-MM")
    year, month = int(m.group(1)), int(m.group(2))
    last = calendar.monthrange(year, month)[1]
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-{last:02d}"


def validate_player_id(value: str) -> str:
    value = (value or "").strip()
    if not _PLAYER_ID_RE.match(value):
        raise ValidationError("Invalid player ID format")
    return value


def _require_text(name: str, value: str | None) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Song {name} is required")
    return value.strip()


def summarize(game: Game) -> GameSummary:
    return GameSummary(id=game.id, date=game.date, pending=game.song_id is None)


class GameService:
    """Loads rows, runs the core, persists guesses"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------

    async def _find(self, date: str) -> Game | None:
        result = await self.db.execute(select(Game).where(Game.date == date))
        return result.scalar_one_or_none()

    async def get_by_date(self, date: str) -> Game:
        date = validate_date(date)
        game = await self._find(date)
        if game is None:
            raise GameNotFoundError(date)
        return game

    async def get_by_month(self, month: str) -> list[Game]:
        start, end = validate_month(month)
        result = await self.db.execute(
            select(Game).where(Game.date >= start, Game.date <= end).order_by(Game.date)
        )
        return list(result.scalars().all())

    async def create_pending(self, date: str) -> Game:
        """Reserve a date without a song; an existing game is returned unchanged."""
        date = validate_date(date)
        game = await self._find(date)
        if game is None:
            game = Game(date=date, song=None)
            self.db.add(game)
            await self.db.commit()
            logger.info("[game] %s reserved (pending).", date)
        return game

    async def create_or_update(
        self,
        date: str,
        title: str,
        artist: str,
        lyrics: str,
        **metadata,
    ) -> Game:
        """Create the game for *date*, or swap the song of the existing one.

        The mask is computed here, once, seeded by the date.
        """
        date = validate_date(date)
        title = _require_text("title", title)
        artist = _require_text("artist", artist)
        lyrics = _require_text("lyrics", lyrics)

        masked = build_puzzle(title, artist, lyrics, seed=date)
        song = Song(title=title, artist=artist, lyrics=lyrics, masked=dump_masked(masked), **metadata)
        self.db.add(song)

        game = await self._find(date)
        if game is None:
            game = Game(date=date, song=song)
            self.db.add(game)
        else:
            replaced = game.song
            game.song = song
            if replaced is not None:
                await self.db.delete(replaced)
        await self.db.commit()

        logger.info(
            "[game] %s → %r by %r (%d words to find)",
            date, title, artist, len(masked.guessable_words()),
        )
        return game

    async def create_from_track(self, date: str, track_id: str) -> Game:
        """Look a track up in the catalog, fetch its lyrics, and schedule it."""
        date = validate_date(date)
        track = await spotify.get_track(track_id)
        found = await genius.get_lyrics(track.title, track.artist)
        return await self.create_or_update(
            date,
            track.title,
            track.artist,
            found["lyrics"],
            catalog_id=track.id,
            album=track.album,
            preview_url=track.preview_url,
            album_cover_url=track.album_cover_url,
            external_url=track.external_url,
            lyrics_url=found["url"],
        )

    async def delete(self, date: str) -> None:
        game = await self.get_by_date(date)
        await self.db.execute(delete(Guess).where(Guess.game_id == game.id))
        song = game.song
        await self.db.delete(game)
        if song is not None:
            await self.db.delete(song)
        await self.db.commit()
        logger.info("[game] %s deleted.", game.date)

    def masked_for(self, game: Game) -> MaskedLyrics:
        """The game's stored mask, validated against its song."""
        song = game.song
        if song is None:
            raise GamePendingError(game.date)
        masked = load_masked(song.masked)
        verify_integrity(masked, song.title, song.artist, song.lyrics)
        return masked

    async def admin_view(self, date: str) -> AdminGameResponse:
        game = await self.get_by_date(date)
        if game.song is None:
            return AdminGameResponse(id=game.id, date=game.date, pending=True)
        return AdminGameResponse(
            id=game.id,
            date=game.date,
            pending=False,
            song=SongModel.model_validate(game.song),
            masked=MaskedLyricsModel.from_masked(self.masked_for(game)),
        )

    # ------------------------------------------------------------------
    # Guesses and player state
    # ------------------------------------------------------------------

    async def _player_guesses(self, game_id: str, player_id: str) -> list[Guess]:
        result = await self.db.execute(
            select(Guess)
            .where(Guess.game_id == game_id, Guess.player_id == player_id)
            .order_by(Guess.id)
        )
        return list(result.scalars().all())

    async def _all_guesses(self, game_id: str) -> list[Guess]:
        result = await self.db.execute(
            select(Guess).where(Guess.game_id == game_id).order_by(Guess.id)
        )
        return list(result.scalars().all())

    async def _state(
        self, game: Game, masked: MaskedLyrics, guesses: list[Guess]
    ) -> GameStateResponse:
        state = reveal(masked, found_words(guesses, masked))
        progress = compute_progress(state)

        song = stats = None
        if progress.is_complete:
            song = SongModel.model_validate(game.song)
            stats = GameStatsModel.from_stats(
                game.date, aggregate_stats(await self._all_guesses(game.id), masked)
            )

        return GameStateResponse(
            id=game.id,
            date=game.date,
            masked=MaskedLyricsModel.from_state(state),
            guesses=[GuessModel.model_validate(g) for g in guesses],
            progress=ProgressModel.from_progress(progress),
            is_complete=progress.is_complete,
            song=song,
            stats=stats,
        )

    async def get_player_state(self, date: str, player_id: str) -> GameStateResponse:
        game = await self.get_by_date(date)
        player_id = validate_player_id(player_id)
        masked = self.masked_for(game)
        return await self._state(game, masked, await self._player_guesses(game.id, player_id))

    async def submit_guess(self, date: str, player_id: str, word: str) -> GuessResponse:
        game = await self.get_by_date(date)
        player_id = validate_player_id(player_id)
        masked = self.masked_for(game)

        async with _guess_locks.hold((game.id, player_id)):
            history = await self._player_guesses(game.id, player_id)
            result = evaluate_guess(word, history, masked)
            guess = Guess(game_id=game.id, player_id=player_id, word=result.word, valid=result.valid)
            self.db.add(guess)
            await self.db.commit()

        logger.info(
            "[guess] %s player=%s word=%r valid=%s", game.date, player_id, result.word, result.valid
        )
        return GuessResponse(
            guess=GuessModel.model_validate(guess),
            positions=result.positions,
            state=await self._state(game, masked, history + [guess]),
        )

    async def get_stats(self, date: str) -> GameStatsModel:
        game = await self.get_by_date(date)
        masked = self.masked_for(game)
        return GameStatsModel.from_stats(
            game.date, aggregate_stats(await self._all_guesses(game.id), masked)
        )
