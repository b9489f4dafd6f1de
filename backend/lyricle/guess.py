"""Guess evaluation and per-player reveal state.

The mask is a property of the game; what a player has revealed is derived from
that player's own guess history intersected with the mask, never stored.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, Protocol

from . import config
from .errors import ValidationError
from .puzzle import FIELDS, MaskedLyrics, Token, build_index, normalize

HIDDEN_CHAR = "_"


class GuessLike(Protocol):
    word: str


def clean_guess(raw: str | None, max_length: int | None = None) -> str:
    """Trim and lowercase a raw guess, rejecting empty or oversized input."""
    if max_length is None:
        max_length = config.MAX_GUESS_LENGTH
    if not isinstance(raw, str):
        raise ValidationError("Guess is required")
    word = normalize(raw)
    if not word:
        raise ValidationError("Guess is required")
    if len(word) > max_length:
        raise ValidationError(f"Guess must be at most {max_length} characters")
    return word


def found_words(history: Iterable[GuessLike], masked: MaskedLyrics) -> frozenset[str]:
    """Masked words this player has already found, whatever their stored validity."""
    targets = masked.guessable_words()
    return frozenset(w for w in (normalize(g.word) for g in history) if w in targets)


@dataclass
class MaskedContent:
    """One field's tokens plus the positions this player has revealed."""

    words: list[Token]
    revealed: frozenset[int] = frozenset()

    @property
    def revealed_count(self) -> int:
        return len(self.revealed)

    @property
    def total(self) -> int:
        return sum(1 for t in self.words if t.is_to_guess)

    def view(self) -> list[Token]:
        """Tokens as the player sees them: unrevealed masked words blanked out."""
        return [
            replace(t, value=HIDDEN_CHAR * len(t.value), normalized=None)
            if t.is_to_guess and i not in self.revealed
            else t
            for i, t in enumerate(self.words)
        ]


@dataclass
class RevealState:
    title: MaskedContent
    artist: MaskedContent
    lyrics: MaskedContent
    found: frozenset[str] = field(default_factory=frozenset)

    def fields(self) -> Iterator[tuple[str, MaskedContent]]:
        for name in FIELDS:
            yield name, getattr(self, name)


def reveal(masked: MaskedLyrics, found: Iterable[str]) -> RevealState:
    """Reveal every masked occurrence of each found word, in every field."""
    found = frozenset(found)
    contents = {
        name: MaskedContent(
            words=tokens,
            revealed=frozenset(
                i for i, t in enumerate(tokens) if t.is_to_guess and t.normalized in found
            ),
        )
        for name, tokens in masked.fields()
    }
    return RevealState(found=found, **contents)


@dataclass
class GuessResult:
    word: str
    valid: bool
    state: RevealState
    positions: dict[str, list[int]] = field(default_factory=dict)  # newly revealed, per field


def evaluate_guess(
    raw: str,
    history: Iterable[GuessLike],
    masked: MaskedLyrics,
    max_length: int | None = None,
) -> GuessResult:
    """Evaluate one guess against the game's mask and the player's history.

    A guess is valid when it names a masked word the player has not found yet.
    Re-guessing a found word is not an error: it comes back invalid and leaves
    the reveal state untouched. Every guess should still be recorded by the
    caller, valid or not.
    """
    word = clean_guess(raw, max_length)
    found = found_words(history, masked)
    valid = word in masked.guessable_words() and word not in found

    positions: dict[str, list[int]] = {}
    if valid:
        found = found | {word}
        for name, tokens in masked.fields():
            hits = build_index(tokens).get(word)
            if hits:
                positions[name] = hits

    return GuessResult(word=word, valid=valid, state=reveal(masked, found), positions=positions)
