"""Reveal percentages and unlock thresholds derived from a player's reveal state.

Fractions count masked tokens, not distinct words: a word sung ten times
weighs ten times as much as a word sung once. ``overall`` is total revealed
tokens over total masked tokens across title, artist and lyrics, so it only
grows as a player finds new words and is 1.0 exactly when every masked word has
been found. A field with nothing masked counts as fully revealed.
"""

from dataclasses import dataclass

from . import config
from .guess import MaskedContent, RevealState


@dataclass(frozen=True)
class Progress:
    title_artist: float
    lyrics: float
    overall: float
    reveal_preview: bool
    reveal_lyrics: bool
    is_complete: bool


def fraction(revealed: int, total: int) -> float:
    if total <= 0:
        return 1.0
    return revealed / total


def _sum(contents: list[MaskedContent]) -> tuple[int, int]:
    return (
        sum(c.revealed_count for c in contents),
        sum(c.total for c in contents),
    )


def compute_progress(
    state: RevealState,
    preview_threshold: float | None = None,
    lyrics_threshold: float | None = None,
) -> Progress:
    if preview_threshold is None:
        preview_threshold = config.PREVIEW_REVEAL_THRESHOLD
    if lyrics_threshold is None:
        lyrics_threshold = config.LYRICS_REVEAL_THRESHOLD

    ta_revealed, ta_total = _sum([state.title, state.artist])
    all_revealed, all_total = _sum([state.title, state.artist, state.lyrics])
    overall = fraction(all_revealed, all_total)

    return Progress(
        title_artist=fraction(ta_revealed, ta_total),
        lyrics=fraction(state.lyrics.revealed_count, state.lyrics.total),
        overall=overall,
        reveal_preview=overall >= preview_threshold,
        reveal_lyrics=overall >= lyrics_threshold,
        is_complete=all_revealed == all_total,
    )
