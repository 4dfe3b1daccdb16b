"""Tests for the match engine."""

from autoclock.match import is_eligible


class TestAlwaysFlag:
    def test_always_is_eligible_without_project(self):
        assert is_eligible(None, [], always=True) is True

    def test_always_ignores_allow_list(self):
        assert is_eligible("Z", ["X", "Y"], always=True) is True


class TestAllowList:
    def test_unresolved_project_is_not_eligible(self):
        assert is_eligible(None, ["X", "Y"]) is False

    def test_listed_project_is_eligible(self):
        assert is_eligible("X", ["X", "Y"]) is True

    def test_unlisted_project_is_not_eligible(self):
        assert is_eligible("Z", ["X", "Y"]) is False

    def test_empty_allow_list_matches_nothing(self):
        assert is_eligible("X", []) is False

    def test_duplicates_are_harmless(self):
        assert is_eligible("X", ["X", "X"]) is True

    def test_match_is_exact(self):
        # Act
        result = is_eligible("proj", ["proj-A"])

        # Assert
        assert result is False
