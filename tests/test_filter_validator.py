"""
Unit tests for the filter validator
"""

import re

import pytest

from eventbuckets.errors import InputMissing, InvalidPattern, SelfTestFailed
from eventbuckets.validation import (
    compile_filter,
    matches,
    read_filter,
    read_test_text,
    self_test,
    validate_filter,
)


class TestCompileFilter:
    """Tests for compile_filter."""

    def test_valid_pattern_compiles(self):
        compiled = compile_filter(r"ERROR: \w+")

        assert isinstance(compiled, re.Pattern)
        assert compiled.pattern == r"ERROR: \w+"

    def test_invalid_pattern_raises(self):
        """Message names the offending pattern and the compiler diagnostic."""
        with pytest.raises(InvalidPattern) as exc_info:
            compile_filter("[")

        error = exc_info.value
        assert error.pattern == "["
        assert "'['" in str(error)
        assert isinstance(error.cause, re.error)
        assert str(error.cause) in str(error)
        assert error.exit_code == 2

    def test_match_is_unanchored(self):
        compiled = compile_filter("disk full")

        assert matches(compiled, "ERROR: disk full on /var")
        assert not matches(compiled, "INFO: ok")


class TestSelfTest:
    """Tests for the interactive self-test gate."""

    def test_matching_text_passes(self):
        compiled = compile_filter("ERROR")

        self_test(compiled, "ERROR: oom")

    def test_non_matching_text_fails(self):
        compiled = compile_filter("^ERROR")

        with pytest.raises(SelfTestFailed) as exc_info:
            self_test(compiled, "INFO: ok")

        error = exc_info.value
        assert error.exit_code == 4
        assert "^ERROR" in str(error)
        assert "INFO: ok" in str(error)

    def test_validate_without_test_text_only_compiles(self):
        compiled = validate_filter("ERROR")

        assert compiled.pattern == "ERROR"

    def test_validate_with_test_text(self):
        with pytest.raises(SelfTestFailed):
            validate_filter("ERROR", test_text="all good")

    def test_validate_reports_invalid_pattern_before_self_test(self):
        with pytest.raises(InvalidPattern):
            validate_filter("(", test_text="anything")


class TestInputReaders:
    """Tests for line-oriented input helpers."""

    def test_read_filter_takes_first_line(self):
        lines = iter(["ERROR\n", "ERROR: disk full\n"])

        assert read_filter(lines) == "ERROR"
        # Remaining lines are left for the self-test
        assert list(lines) == ["ERROR: disk full\n"]

    def test_read_filter_on_eof(self):
        with pytest.raises(InputMissing):
            read_filter([])

    def test_read_filter_on_blank_line(self):
        with pytest.raises(InputMissing):
            read_filter(["\n"])

    def test_read_test_text_concatenates_without_newlines(self):
        text = read_test_text(["ERROR: disk\n", " full\r\n", "!"])

        assert text == "ERROR: disk full!"

    def test_multiline_test_text_matches_across_lines(self):
        """Lines are joined, so a pattern can span the operator's line breaks."""
        compiled = compile_filter("disk full")

        self_test(compiled, read_test_text(["ERROR: disk\n", " full\n"]))
