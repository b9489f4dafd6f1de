from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import MaskIntegrityError
from .guess import RevealState
from .progress import Progress
from .puzzle import MaskedLyrics, Token, restore_token
from .stats import GameStats


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenModel(CamelModel):
    value: str
    is_to_guess: bool


class MaskedLyricsModel(CamelModel):
    title: list[TokenModel]
    artist: list[TokenModel]
    lyrics: list[TokenModel]

    @classmethod
    def from_tokens(cls, title: list[Token], artist: list[Token], lyrics: list[Token]):
        return cls(
            title=[_token(t) for t in title],
            artist=[_token(t) for t in artist],
            lyrics=[_token(t) for t in lyrics],
        )

    @classmethod
    def from_masked(cls, masked: MaskedLyrics) -> "MaskedLyricsModel":
        return cls.from_tokens(masked.title, masked.artist, masked.lyrics)

    @classmethod
    def from_state(cls, state: RevealState) -> "MaskedLyricsModel":
        """Player view: masked words not yet found are blanked out."""
        return cls.from_tokens(state.title.view(), state.artist.view(), state.lyrics.view())

    def to_masked(self) -> MaskedLyrics:
        return MaskedLyrics(
            title=[restore_token(t.value, t.is_to_guess) for t in self.title],
            artist=[restore_token(t.value, t.is_to_guess) for t in self.artist],
            lyrics=[restore_token(t.value, t.is_to_guess) for t in self.lyrics],
        )


def _token(tok: Token) -> TokenModel:
    return TokenModel(value=tok.value, is_to_guess=tok.is_to_guess)


def dump_masked(masked: MaskedLyrics) -> dict[str, Any]:
    """JSON-ready form of a mask, as stored on the song row."""
    return MaskedLyricsModel.from_masked(masked).model_dump(by_alias=True)


def load_masked(blob: Any) -> MaskedLyrics:
    """Validate a stored mask blob; a malformed one is an integrity failure."""
    try:
        return MaskedLyricsModel.model_validate(blob).to_masked()
    except PydanticValidationError as exc:
        raise MaskIntegrityError("masked", f"stored mask is malformed ({exc.error_count()} errors)") from exc


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class GuessRequest(CamelModel):
    player_id: str
    guess: str


class CreateGameRequest(CamelModel):
    date: str
    spotify_id: str | None = None  # looked up in the catalog when given
    title: str | None = None
    artist: str | None = None
    lyrics: str | None = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class GuessModel(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    game_id: str
    player_id: str
    word: str
    valid: bool
    created_at: datetime


class ProgressModel(CamelModel):
    title_artist: float
    lyrics: float
    overall: float
    reveal_preview: bool
    reveal_lyrics: bool
    is_complete: bool

    @classmethod
    def from_progress(cls, progress: Progress) -> "ProgressModel":
        return cls(**progress.__dict__)


class SongModel(CamelModel):
    """Song details revealed to a player once the game is complete."""

    model_config = ConfigDict(from_attributes=True)

    title: str
    artist: str
    catalog_id: str | None = None
    album: str | None = None
    preview_url: str | None = None
    album_cover_url: str | None = None
    external_url: str | None = None
    lyrics_url: str | None = None


class GameStatsModel(CamelModel):
    date: str
    total_players: int
    average_guesses: float
    total_valid_guesses: int
    average_lyrics_completion_for_winners: float
    difficulty_score: float
    wins: int

    @classmethod
    def from_stats(cls, date: str, stats: GameStats) -> "GameStatsModel":
        return cls(date=date, **stats.__dict__)


class GameStateResponse(CamelModel):
    id: str
    date: str
    masked: MaskedLyricsModel
    guesses: list[GuessModel]
    progress: ProgressModel
    is_complete: bool
    song: SongModel | None = None    # only once the player has found every word
    stats: GameStatsModel | None = None


class GuessResponse(CamelModel):
    guess: GuessModel
    positions: dict[str, list[int]]  # field → token indices revealed by this guess
    state: GameStateResponse


class GameSummary(CamelModel):
    id: str
    date: str
    pending: bool


class AdminGameResponse(GameSummary):
    song: SongModel | None = None
    masked: MaskedLyricsModel | None = None  # full, unblanked mask


class PlaylistModel(CamelModel):
    id: str
    name: str
    owner: str | None = None
    track_count: int = 0
    image_url: str | None = None
    external_url: str | None = None


class TrackModel(CamelModel):
    id: str
    title: str
    artist: str
    album: str | None = None
    preview_url: str | None = None
    album_cover_url: str | None = None
    external_url: str | None = None
