"""Tokenization and game-wide mask selection for title, artist and lyrics."""

import math
import random
import re
import unicodedata
from dataclasses import dataclass, field, replace
from typing import Iterator, Literal

from . import config
from .errors import MaskIntegrityError

FIELDS: tuple[str, ...] = ("title", "artist", "lyrics")


@dataclass
class Token:
    type: Literal["word", "sep"]
    value: str
    normalized: str | None = None  # only set for word tokens
    is_to_guess: bool = False


# Runs of Unicode letters/digits (with trailing combining accents), joined by inner apostrophes
_LETTER = r"[^\W_][\u0300-\u036f]*"
_WORD_RE = re.compile(rf"(?:{_LETTER})+(?:['’](?:{_LETTER})+)*", re.UNICODE)


_APOSTROPHES = str.maketrans({"’": "'", "‘": "'"})


def normalize(word: str) -> str:
    """Comparison key for a word: NFC composed, lowercased, typographic apostrophes folded to ``'``."""
    return unicodedata.normalize("NFC", word.strip()).lower().translate(_APOSTROPHES)


def tokenize(text: str) -> list[Token]:
    """Split *text* into word and separator tokens.

    Concatenating every token's value gives back *text* unchanged.
    """
    tokens: list[Token] = []
    pos = 0
    for m in _WORD_RE.finditer(text):
        start, end = m.start(), m.end()
        if start > pos:
            tokens.append(Token(type="sep", value=text[pos:start]))
        word = m.group()
        tokens.append(Token(type="word", value=word, normalized=normalize(word)))
        pos = end
    if pos < len(text):
        tokens.append(Token(type="sep", value=text[pos:]))
    return tokens


def restore_token(value: str, is_to_guess: bool) -> Token:
    """Rebuild a Token from its stored ``{value, isToGuess}`` form."""
    if _WORD_RE.fullmatch(value):
        return Token(type="word", value=value, normalized=normalize(value), is_to_guess=is_to_guess)
    return Token(type="sep", value=value, is_to_guess=is_to_guess)


def join_tokens(tokens: list[Token]) -> str:
    return "".join(t.value for t in tokens)


def distinct_words(tokens: list[Token]) -> list[str]:
    """Sorted distinct normalized values of all word tokens."""
    return sorted({t.normalized for t in tokens if t.type == "word" and t.normalized})


def build_index(tokens: list[Token]) -> dict[str, list[int]]:
    """Map normalized word → indices of the masked tokens carrying it."""
    index: dict[str, list[int]] = {}
    for i, tok in enumerate(tokens):
        if tok.is_to_guess and tok.normalized:
            index.setdefault(tok.normalized, []).append(i)
    return index


def select_mask(tokens: list[Token], seed: str, ratio: float | None = None) -> list[Token]:
    """Return copies of *tokens* with ``is_to_guess`` set per the game's mask.

    A ``ratio`` share of the distinct words (rounded up, at least one) is drawn
    with a ``random.Random`` seeded by *seed*; every occurrence of a drawn word
    is masked. With ``ratio >= 1`` every word is masked and the seed is
    irrelevant. The draw depends only on *seed* and the token values, so the
    same game always masks the same way.
    """
    if ratio is None:
        ratio = config.MASK_RATIO
    words = distinct_words(tokens)

    if not words or ratio <= 0:
        chosen: set[str] = set()
    elif ratio >= 1:
        chosen = set(words)
    else:
        k = min(len(words), max(1, math.ceil(len(words) * ratio)))
        chosen = set(random.Random(seed).sample(words, k))

    return [
        replace(t, is_to_guess=t.type == "word" and t.normalized in chosen)
        for t in tokens
    ]


@dataclass
class MaskedLyrics:
    """The game-wide mask: one token sequence per field."""

    title: list[Token] = field(default_factory=list)
    artist: list[Token] = field(default_factory=list)
    lyrics: list[Token] = field(default_factory=list)

    def fields(self) -> Iterator[tuple[str, list[Token]]]:
        for name in FIELDS:
            yield name, getattr(self, name)

    def guessable_words(self) -> frozenset[str]:
        """Distinct normalized values of every masked token across all fields."""
        return frozenset(
            t.normalized
            for _, tokens in self.fields()
            for t in tokens
            if t.is_to_guess and t.normalized
        )

    def total_masked(self, name: str) -> int:
        return sum(1 for t in getattr(self, name) if t.is_to_guess)


def build_puzzle(
    title: str,
    artist: str,
    lyrics: str,
    seed: str,
    ratio: float | None = None,
) -> MaskedLyrics:
    """Tokenize and mask a song. *seed* is the game's stable identity (its date)."""
    return MaskedLyrics(
        title=select_mask(tokenize(title), f"{seed}:title", ratio),
        artist=select_mask(tokenize(artist), f"{seed}:artist", ratio),
        lyrics=select_mask(tokenize(lyrics), f"{seed}:lyrics", ratio),
    )


def verify_integrity(
    masked: MaskedLyrics, title: str | None, artist: str | None, lyrics: str | None
) -> None:
    """Raise MaskIntegrityError unless every masked field rebuilds its song text."""
    texts = {"title": title, "artist": artist, "lyrics": lyrics}
    for name, tokens in masked.fields():
        text = texts[name]
        if text is None:
            if tokens:
                raise MaskIntegrityError(name, "song has no text for a masked field")
            continue
        if join_tokens(tokens) != text:
            raise MaskIntegrityError(name, "tokens do not rebuild the song text")
        if any(t.is_to_guess and t.type != "word" for t in tokens):
            raise MaskIntegrityError(name, "a separator token is marked to guess")
