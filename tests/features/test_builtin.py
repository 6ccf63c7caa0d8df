"""Tests for the built-in features."""

import pytest

from notewise.features import ComputeContext, FeatureKind, RenderAs
from notewise.features.builtin import (
    CHARACTER_COUNT,
    DUE_DATE,
    LAST_EDITED,
    PRIORITY,
    READING_TIME,
    STATUS,
    TAG_STATS,
    TOTAL_NOTES,
    TOTAL_WORDS,
    WORD_COUNT,
    count_words,
)

MINUTE = 60_000
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def _context(notes=(), timestamp: int = 0) -> ComputeContext:
    return ComputeContext(all_notes=tuple(notes), all_properties=(), timestamp=timestamp)


class TestWordCount:
    """Tests for word-count."""

    def test_counts_whitespace_delimited_tokens(self, make_note):
        note = make_note("1", content="  hello   world\n\tagain ")
        assert WORD_COUNT.compute(note, _context()) == 3

    def test_empty_content_is_zero(self, make_note):
        assert WORD_COUNT.compute(make_note("1", content=""), _context()) == 0
        assert WORD_COUNT.compute(make_note("1", content="   \n "), _context()) == 0

    def test_count_words_helper(self):
        assert count_words("one two  three") == 3


class TestReadingTime:
    """Tests for reading-time."""

    def test_four_hundred_words_is_two_minutes(self, make_note):
        note = make_note("1", content=" ".join(["word"] * 400))
        assert READING_TIME.compute(note, _context()) == "2 min"

    def test_rounds_up(self, make_note):
        note = make_note("1", content=" ".join(["word"] * 201))
        assert READING_TIME.compute(note, _context()) == "2 min"

    def test_single_word_is_one_minute(self, make_note):
        assert READING_TIME.compute(make_note("1", content="hi"), _context()) == "1 min"

    def test_empty_is_zero_minutes(self, make_note):
        assert READING_TIME.compute(make_note("1", content=""), _context()) == "0 min"


class TestCharacterCount:
    """Tests for char-count."""

    def test_includes_whitespace(self, make_note):
        assert CHARACTER_COUNT.compute(make_note("1", content=" a b \n"), _context()) == 6


class TestLastEdited:
    """Tests for last-edited buckets."""

    @pytest.mark.parametrize(
        "elapsed, expected",
        [
            (0, "just now"),
            (59_999, "just now"),
            (MINUTE, "1m ago"),
            (59 * MINUTE + 59_999, "59m ago"),
            (HOUR, "1h ago"),
            (23 * HOUR + 59 * MINUTE, "23h ago"),
            (DAY, "1d ago"),
            (3 * DAY + 5 * HOUR, "3d ago"),
        ],
    )
    def test_buckets(self, make_note, elapsed, expected):
        note = make_note("1", updated_at=1_000_000)
        context = _context(timestamp=1_000_000 + elapsed)
        assert LAST_EDITED.compute(note, context) == expected

    def test_future_timestamp_is_just_now(self, make_note):
        note = make_note("1", updated_at=10 * MINUTE)
        assert LAST_EDITED.compute(note, _context(timestamp=0)) == "just now"


class TestRollups:
    """Tests for rollup features."""

    def test_tag_stats_example(self, make_note):
        notes = [
            make_note("1", tags=("a", "b")),
            make_note("2", tags=("a",)),
            make_note("3", tags=("c",)),
        ]
        result = TAG_STATS.compute(notes[0], _context(notes))
        assert result == [("a", 2), ("b", 1), ("c", 1)]

    def test_tag_stats_ties_keep_encounter_order(self, make_note):
        notes = [
            make_note("1", tags=("z", "y")),
            make_note("2", tags=("x", "y")),
        ]
        result = TAG_STATS.compute(notes[0], _context(notes))
        assert result == [("y", 2), ("z", 1), ("x", 1)]

    def test_tag_stats_truncated_to_five(self, make_note):
        notes = [make_note("1", tags=tuple("abcdefg")), make_note("2", tags=("g",))]
        result = TAG_STATS.compute(notes[0], _context(notes))
        assert len(result) == 5
        assert result[0] == ("g", 2)
        assert [tag for tag, _ in result[1:]] == ["a", "b", "c", "d"]

    def test_tag_stats_no_tags(self, make_note):
        notes = [make_note("1")]
        assert TAG_STATS.compute(notes[0], _context(notes)) == []

    def test_total_notes(self, make_note):
        notes = [make_note(str(i)) for i in range(4)]
        assert TOTAL_NOTES.compute(notes[0], _context(notes)) == 4

    def test_total_words(self, make_note):
        notes = [make_note("1", content="one two"), make_note("2", content="three")]
        assert TOTAL_WORDS.compute(notes[0], _context(notes)) == 3


class TestDefinitions:
    """Tests for built-in metadata."""

    def test_property_features_have_no_compute(self):
        for feature in (PRIORITY, STATUS, DUE_DATE):
            assert feature.kind is FeatureKind.PROPERTY
            assert not feature.has_compute
            assert feature.attribute_role == feature.id

    def test_priority_options(self):
        assert PRIORITY.options == ["High", "Medium", "Low"]
        assert PRIORITY.value_kind is RenderAs.BADGE

    def test_due_date_has_no_options(self):
        assert DUE_DATE.options == []
        assert DUE_DATE.value_kind is RenderAs.DATE

    def test_rollups_are_rollup_kind(self):
        for feature in (TOTAL_NOTES, TOTAL_WORDS, TAG_STATS):
            assert feature.kind is FeatureKind.ROLLUP
            assert feature.has_compute
