"""Game-level statistics, recomputed from raw guess rows on every request."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Protocol

import numpy as np

from . import config
from .guess import found_words, reveal
from .progress import compute_progress
from .puzzle import MaskedLyrics


class GuessRow(Protocol):
    player_id: str
    word: str
    valid: bool


@dataclass(frozen=True)
class GameStats:
    total_players: int
    average_guesses: float
    total_valid_guesses: int
    average_lyrics_completion_for_winners: float
    difficulty_score: float
    wins: int


def difficulty(guesses_to_win: float, win_rate: float, word_count: int) -> float:
    """Difficulty on a 1–10 scale.

    ``effort = g / (g + w)`` where *g* is the average number of guesses a
    winner needed and *w* the number of distinct masked words. Effort is 0 when
    no guess was needed and tends to 1 as guesses outgrow the word count.

        score = 1 + 9 * (effort + (1 - win_rate)) / 2

    The score rises with guesses-to-win, falls with the win rate, and stays
    within [1, 10].
    """
    denom = guesses_to_win + word_count
    effort = guesses_to_win / denom if denom > 0 else 0.0
    score = 1 + 9 * (effort + (1 - win_rate)) / 2
    return round(min(10.0, max(1.0, score)), 2)


def aggregate_stats(
    guesses: Iterable[GuessRow],
    masked: MaskedLyrics,
    default_difficulty: float | None = None,
) -> GameStats:
    if default_difficulty is None:
        default_difficulty = config.DEFAULT_DIFFICULTY

    by_player: dict[str, list[GuessRow]] = defaultdict(list)
    for g in guesses:
        by_player[g.player_id].append(g)

    if not by_player:
        return GameStats(
            total_players=0,
            average_guesses=0.0,
            total_valid_guesses=0,
            average_lyrics_completion_for_winners=0.0,
            difficulty_score=default_difficulty,
            wins=0,
        )

    targets = masked.guessable_words()
    counts = np.array([len(rows) for rows in by_player.values()], dtype=float)
    total_valid = sum(1 for rows in by_player.values() for g in rows if g.valid)

    winner_counts: list[int] = []
    winner_lyrics: list[float] = []
    for rows in by_player.values():
        found = found_words(rows, masked)
        if len(found) == len(targets):
            winner_counts.append(len(rows))
            winner_lyrics.append(compute_progress(reveal(masked, found)).lyrics)

    total_players = len(by_player)
    wins = len(winner_counts)
    # Nobody won: fall back on how long everyone has been at it
    guesses_to_win = float(np.mean(winner_counts)) if wins else float(counts.mean())

    return GameStats(
        total_players=total_players,
        average_guesses=round(float(counts.mean()), 2),
        total_valid_guesses=total_valid,
        average_lyrics_completion_for_winners=(
            round(float(np.mean(winner_lyrics)), 4) if winner_lyrics else 0.0
        ),
        difficulty_score=difficulty(guesses_to_win, wins / total_players, len(targets)),
        wins=wins,
    )
