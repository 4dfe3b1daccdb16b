"""Tests for the terminal picker."""

import io

import pytest

from autoclock._picker import MAX_SHOWN, narrow, pick
from autoclock.errors import SelectionCancelled

CHOICES = [
    "TODO Write report",
    "TODO Write report/Collect numbers",
    "NEXT Review budget",
]


def answers(*lines):
    """input() replacement returning `lines` in order, then EOF."""
    queue = list(lines)

    def _input(prompt):
        if not queue:
            raise EOFError
        return queue.pop(0)

    return _input


class TestNarrow:
    def test_substring_is_case_insensitive(self):
        assert narrow(CHOICES, "REPORT") == [0, 1]

    def test_fuzzy_when_no_substring(self):
        assert narrow(CHOICES, "reveiw budget")[0] == 2

    def test_nothing_close(self):
        assert narrow(CHOICES, "zzzzzzzz") == []


class TestPick:
    def test_number_selects(self):
        out = io.StringIO()
        assert pick("Task", CHOICES, answers("3"), out) == 2
        assert "1. TODO Write report" in out.getvalue()

    def test_unique_match_selects(self):
        assert pick("Task", CHOICES, answers("budget"), io.StringIO()) == 2

    def test_narrow_then_number(self):
        # "report" leaves two candidates, numbered afresh
        assert pick("Task", CHOICES, answers("report", "2"), io.StringIO()) == 1

    def test_out_of_range_number_reprompts(self):
        out = io.StringIO()
        assert pick("Task", CHOICES, answers("9", "1"), out) == 0
        assert "No entry 9" in out.getvalue()

    def test_empty_line_widens_after_narrowing(self):
        assert pick("Task", CHOICES, answers("report", "", "3"), io.StringIO()) == 2

    def test_empty_line_on_full_list_cancels(self):
        with pytest.raises(SelectionCancelled):
            pick("Task", CHOICES, answers(""), io.StringIO())

    def test_eof_cancels(self):
        with pytest.raises(SelectionCancelled):
            pick("Task", CHOICES, answers(), io.StringIO())

    def test_no_choices_cancels(self):
        with pytest.raises(SelectionCancelled):
            pick("Task", [], answers("1"), io.StringIO())

    def test_long_lists_are_truncated(self):
        many = [f"TODO Task {n}" for n in range(MAX_SHOWN + 5)]
        out = io.StringIO()

        pick("Task", many, answers("1"), out)

        assert "5 more" in out.getvalue()

    def test_superscript_digit_is_text_not_a_number(self):
        out = io.StringIO()
        assert pick("Task", CHOICES, answers("²", "1"), out) == 0
        assert "No match for '²'" in out.getvalue()
