"""Tests for per-word display duration."""

import pytest

from flowreader.domain.entities.pacing import PacingConfig, PacingPreset
from flowreader.domain.exceptions import InvalidInputError
from flowreader.domain.services.timing import (
    base_duration_ms,
    compute_display_duration_ms,
    is_clause_end,
    is_sentence_end,
)


@pytest.fixture
def smooth():
    """Smooth preset pacing (the defaults)."""
    return PacingConfig.from_preset(PacingPreset.SMOOTH)


class TestComputeDisplayDuration:
    """Test cases for compute_display_duration_ms."""

    def test_long_word_at_300_and_600_wpm(self, smooth):
        """Extra-character time is added on top of the base duration."""
        assert compute_display_duration_ms("reading", 300, smooth) == 220
        assert compute_display_duration_ms("reading", 600, smooth) == 120

    def test_sentence_pause(self, smooth):
        assert compute_display_duration_ms("stop.", 300, smooth) == 350

    def test_clause_pause(self, smooth):
        assert compute_display_duration_ms("wait,", 300, smooth) == 275

    def test_empty_word_gets_base_duration(self, smooth):
        assert compute_display_duration_ms("", 300, smooth) == 200
        relaxed = PacingConfig.from_preset(PacingPreset.RELAXED)
        assert compute_display_duration_ms("", 300, relaxed) == 200

    def test_sentence_wins_over_clause(self, smooth):
        """Only the last character counts and sentence punctuation has priority."""
        assert compute_display_duration_ms("end?", 300, smooth) == 350
        assert compute_display_duration_ms("a,b.", 300, smooth) == 350
        assert compute_display_duration_ms("a.b,", 300, smooth) == 275

    def test_punctuation_before_quote_is_ignored(self, smooth):
        """A trailing quote hides the punctuation before it."""
        assert compute_display_duration_ms('said."', 300, smooth) == 200

    def test_uniform_preset_ignores_length_and_punctuation(self):
        uniform = PacingConfig.from_preset(PacingPreset.UNIFORM)
        assert compute_display_duration_ms("extraordinarily.", 300, uniform) == 200

    def test_monotonic_in_wpm(self, smooth):
        """Faster speeds never show a word for longer."""
        for word in ["a", "reading", "stop.", "wait,", "incomprehensibilities!"]:
            durations = [compute_display_duration_ms(word, wpm, smooth) for wpm in range(100, 1201, 50)]
            assert durations == sorted(durations, reverse=True)

    def test_rounds_half_up(self):
        """Fractional milliseconds round to the nearest whole, halves up."""
        pacing = PacingConfig(long_word_threshold=6, ms_per_extra_char=0.5, sentence_pause_ms=0, clause_pause_ms=0)
        # 60000 / 400 = 150, plus 1 extra char * 0.5
        assert compute_display_duration_ms("sevenxx", 400, pacing) == 151
        # 60000 / 700 = 85.71...
        assert compute_display_duration_ms("a", 700, pacing) == 86

    def test_no_upper_bound(self, smooth):
        word = "x" * 1006
        assert compute_display_duration_ms(word, 300, smooth) == 200 + 1000 * 20

    @pytest.mark.parametrize("wpm", [0, -300])
    def test_non_positive_wpm_raises(self, smooth, wpm):
        with pytest.raises(InvalidInputError):
            compute_display_duration_ms("word", wpm, smooth)


class TestPunctuationHelpers:
    """Test cases for the boundary predicates."""

    def test_sentence_end(self):
        assert is_sentence_end("done.")
        assert is_sentence_end("what?")
        assert is_sentence_end("wow!")
        assert not is_sentence_end("so,")
        assert not is_sentence_end("")

    def test_clause_end(self):
        assert is_clause_end("so,")
        assert is_clause_end("first;")
        assert is_clause_end("note:")
        assert not is_clause_end("done.")
        assert not is_clause_end("")

    def test_base_duration(self):
        assert base_duration_ms(300) == 200
        assert base_duration_ms(1200) == 50
