# =============================================================================
# Unit Tests — Score Parser & Status Policy
# =============================================================================

import pytest

from screener.services.scoring import StatusLabel, parse_score, status_for


class TestParseScore:
    """Tests for parse_score() — the "Score: <n>" extraction rule."""

    def test_marker_inside_text(self):
        assert parse_score("Strong candidate...Score: 82...") == 82

    def test_no_marker_is_unscored(self):
        assert parse_score("The candidate looks promising overall.") is None

    def test_case_insensitive_marker(self):
        assert parse_score("SCORE: 91") == 91
        assert parse_score("final score:  67 points") == 67

    def test_markdown_emphasis_is_skipped(self):
        assert parse_score("Reasoning...\n**Score:** 88") == 88

    def test_first_marker_wins(self):
        assert parse_score("Score: 40\nRevised Score: 90") == 40

    def test_unusable_first_marker_does_not_fall_through(self):
        assert parse_score("Score: N/A\nScore: 70") is None

    def test_fraction_is_not_an_integer(self):
        assert parse_score("Score: 82.5") is None

    def test_sentence_punctuation_after_number(self):
        assert parse_score("Score: 82. Good fit.") == 82

    def test_out_of_ten_suffix(self):
        assert parse_score("Score: 80/100") == 80

    def test_clamped_to_range(self):
        assert parse_score("Score: 150") == 100
        assert parse_score("Score: -5") == 0

    def test_marker_without_number(self):
        assert parse_score("Score:") is None


class TestStatusFor:
    """Tests for status_for() — the hire threshold policy."""

    def test_threshold_boundary_is_hired(self):
        assert status_for(75) is StatusLabel.HIRED

    def test_just_below_threshold_is_not_hired(self):
        assert status_for(74) is StatusLabel.NOT_HIRED

    def test_none_is_unscored(self):
        assert status_for(None) is StatusLabel.UNSCORED

    def test_custom_threshold(self):
        assert status_for(80, threshold=90) is StatusLabel.NOT_HIRED
        assert status_for(0, threshold=0) is StatusLabel.HIRED


class TestStatusLabelParsing:
    """Tests for StatusLabel.parse_decision() — human-supplied outcomes."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("hired", StatusLabel.HIRED),
            ("  HIRED ", StatusLabel.HIRED),
            ("not hired", StatusLabel.NOT_HIRED),
            ("Not_Hired", StatusLabel.NOT_HIRED),
            ("not-hired", StatusLabel.NOT_HIRED),
        ],
    )
    def test_accepted_spellings(self, raw, expected):
        assert StatusLabel.parse_decision(raw) is expected

    @pytest.mark.parametrize("raw", ["unscored", "maybe", ""])
    def test_rejected_values(self, raw):
        with pytest.raises(ValueError, match="Unknown status label"):
            StatusLabel.parse_decision(raw)
