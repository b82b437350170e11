"""Tests for log severity classification."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from dashfeed.core.models import Severity
from dashfeed.core.severity import classify, coerce_severity

pytestmark = [pytest.mark.core, pytest.mark.tier(0)]


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ("Rate limit approaching", Severity.WARN),
            ("Connected clients: 5", Severity.INFO),
            ("Job completed successfully", Severity.INFO),
            ("Unhandled ERROR in worker", Severity.ERROR),
            ("Warning: disk 91% full", Severity.WARN),
            ("DEBUG cache miss for key", Severity.DEBUG),
        ],
    )
    def test_classifies_by_keyword(self, message: str, expected: Severity) -> None:
        """Severity follows the first keyword found in the message."""
        assert classify(message) is expected

    def test_error_wins_over_warn_and_debug(self) -> None:
        """An error keyword outranks any other keyword in the same message."""
        assert classify("debug: warn about error path") is Severity.ERROR

    def test_warn_wins_over_debug(self) -> None:
        assert classify("debug build warns on startup") is Severity.WARN

    def test_matches_inside_words(self) -> None:
        """Plain substring matching: "Error-free" still counts as error."""
        assert classify("Error-free run") is Severity.ERROR

    def test_empty_message_is_info(self) -> None:
        assert classify("") is Severity.INFO

    @given(st.text(alphabet="abcdfhijklmnpqstuvxyz0123456789 :.-"))
    def test_messages_without_keywords_are_info(self, message: str) -> None:
        """Messages that cannot contain any keyword always classify as info."""
        assert classify(message) is Severity.INFO


class TestCoerceSeverity:
    """Tests for coerce_severity()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("info", Severity.INFO),
            ("ERROR", Severity.ERROR),
            ("warning", Severity.WARN),
            (" Warn ", Severity.WARN),
            ("critical", Severity.ERROR),
            ("debug", Severity.DEBUG),
        ],
    )
    def test_known_levels(self, value: str, expected: Severity) -> None:
        assert coerce_severity(value) is expected

    @pytest.mark.parametrize("value", [None, "", "verbose", 3, ["info"]])
    def test_unknown_levels_return_none(self, value: object) -> None:
        assert coerce_severity(value) is None
