"""Tests for guess validation, evaluation and per-player reveal state."""

from dataclasses import dataclass

import pytest
from lyricle.errors import ValidationError
from lyricle.guess import clean_guess, evaluate_guess, found_words, reveal
from lyricle.puzzle import build_puzzle


@dataclass
class G:
    word: str
    valid: bool = True
    player_id: str = "p1"


@pytest.fixture
def masked():
    return build_puzzle(
        "Party In The U.S.A.", "Miley Cyrus", "I'm jumping in the car", seed="2024-07-04", ratio=1.0
    )


# ── clean_guess ───────────────────────────────────────────────────────────

class TestCleanGuess:
    def test_trims_and_lowercases(self):
        assert clean_guess("  PARTY ") == "party"

    @pytest.mark.parametrize("raw", ["", "   ", "\t\n", None])
    def test_rejects_empty(self, raw):
        with pytest.raises(ValidationError):
            clean_guess(raw)

    def test_rejects_too_long(self):
        with pytest.raises(ValidationError):
            clean_guess("a" * 51, max_length=50)

    def test_accepts_max_length(self):
        assert clean_guess("a" * 50, max_length=50) == "a" * 50


# ── found_words ───────────────────────────────────────────────────────────

class TestFoundWords:
    def test_only_masked_words_count(self, masked):
        history = [G("PARTY"), G("banana", valid=False)]
        assert found_words(history, masked) == {"party"}

    def test_duplicates_collapse(self, masked):
        assert found_words([G("the"), G("The"), G("THE", valid=False)], masked) == {"the"}

    def test_empty_history(self, masked):
        assert found_words([], masked) == frozenset()


# ── evaluate_guess ────────────────────────────────────────────────────────

class TestEvaluateGuess:
    def test_uppercase_guess_matches(self, masked):
        result = evaluate_guess("PARTY", [], masked)
        assert result.valid is True
        assert result.word == "party"
        assert result.positions == {"title": [0]}
        assert result.state.title.revealed == {0}

    def test_reveals_across_fields(self, masked):
        result = evaluate_guess("the", [G("party")], masked)
        assert result.valid is True
        assert result.positions == {"title": [4], "lyrics": [6]}
        assert result.state.title.revealed == {0, 4}
        assert result.state.lyrics.revealed == {6}

    def test_reguess_is_invalid_no_op(self, masked):
        before = evaluate_guess("the", [G("party")], masked).state
        result = evaluate_guess("the", [G("party"), G("the")], masked)
        assert result.valid is False
        assert result.positions == {}
        assert result.state == before

    def test_repeated_reguesses_never_grow_found_set(self, masked):
        history = [G("the")]
        for _ in range(5):
            result = evaluate_guess("THE", history, masked)
            assert result.valid is False
            assert result.state.found == {"the"}
            history.append(G("the", valid=False))

    def test_case_insensitive_in_both_fields(self, masked):
        result = evaluate_guess("In", [], masked)
        assert result.positions == {"title": [2], "lyrics": [4]}

    def test_unknown_word_is_invalid(self, masked):
        result = evaluate_guess("banana", [], masked)
        assert result.valid is False
        assert result.state.found == frozenset()
        assert all(c.revealed_count == 0 for _, c in result.state.fields())

    def test_apostrophe_word(self, masked):
        result = evaluate_guess("i'm", [], masked)
        assert result.valid is True
        assert result.positions == {"lyrics": [0]}

    def test_curly_apostrophe_guess_matches_straight_lyric(self, masked):
        result = evaluate_guess("i’m", [], masked)
        assert result.valid is True
        assert result.word == "i'm"
        assert result.positions == {"lyrics": [0]}

    def test_straight_apostrophe_guess_matches_curly_lyric(self):
        masked = build_puzzle("Don’t", "Someone", "I don’t know", seed="s", ratio=1.0)
        result = evaluate_guess("don't", [], masked)
        assert result.valid is True
        assert result.positions == {"title": [0], "lyrics": [2]}

    def test_curly_reguess_is_invalid(self, masked):
        assert evaluate_guess("I‘m", [G("i'm")], masked).valid is False

    def test_unmasked_word_is_invalid(self):
        masked = build_puzzle("Hello", "Adele", "hello from the other side", seed="s", ratio=0)
        assert evaluate_guess("hello", [], masked).valid is False

    def test_empty_guess_raises(self, masked):
        with pytest.raises(ValidationError):
            evaluate_guess("   ", [], masked)

    def test_too_long_guess_raises(self, masked):
        with pytest.raises(ValidationError):
            evaluate_guess("x" * 60, [], masked, max_length=50)


# ── reveal ────────────────────────────────────────────────────────────────

class TestReveal:
    def test_players_are_independent(self, masked):
        a = reveal(masked, found_words([G("party", player_id="a")], masked))
        b = reveal(masked, found_words([], masked))
        assert a.title.revealed == {0}
        assert b.title.revealed == frozenset()

    def test_view_blanks_hidden_words(self, masked):
        state = reveal(masked, {"party"})
        view = state.title.view()
        assert view[0].value == "Party"
        assert view[2].value == "__"
        assert view[4].value == "___"
        assert view[7].value == "."  # separators always shown
        assert "".join(t.value for t in view) == "Party __ ___ _._._."

    def test_view_keeps_lengths(self, masked):
        view = reveal(masked, set()).lyrics.view()
        assert len("".join(t.value for t in view)) == len("I'm jumping in the car")

    def test_revealed_count_and_total(self, masked):
        state = reveal(masked, {"the", "in"})
        assert state.title.revealed_count == 2
        assert state.title.total == 6
        assert state.lyrics.revealed_count == 2
        assert state.lyrics.total == 5
