"""
Filter Validator

Compiles a candidate bucket filter and optionally self-tests it against
operator-supplied text. Nothing here touches the database: a pattern that
fails validation never reaches the transactional phase.
"""

import re
from collections.abc import Iterable

from eventbuckets.errors import InputMissing, InvalidPattern, SelfTestFailed
from eventbuckets.utils.logging import get_logger

logger = get_logger(__name__)


def compile_filter(pattern: str) -> re.Pattern:
    """
    Compile a bucket filter.

    Args:
        pattern: Regex source string

    Returns:
        Compiled pattern

    Raises:
        InvalidPattern: If the regex does not compile
    """
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPattern(pattern, e) from e


def matches(compiled: re.Pattern, text: str) -> bool:
    """A filter matches when the pattern is found anywhere in the text."""
    return compiled.search(text) is not None


def self_test(compiled: re.Pattern, test_text: str) -> None:
    """Raise SelfTestFailed unless `compiled` matches `test_text`."""
    if not matches(compiled, test_text):
        raise SelfTestFailed(compiled.pattern, test_text)
    logger.debug("Self-test passed", pattern=compiled.pattern)


def validate_filter(pattern: str, test_text: str | None = None) -> re.Pattern:
    """
    Compile `pattern` and, when `test_text` is given, require it to match.

    Args:
        pattern: Regex source string
        test_text: Optional self-test input (already concatenated)

    Returns:
        Compiled pattern ready for the backfill scan
    """
    compiled = compile_filter(pattern)
    if test_text is not None:
        self_test(compiled, test_text)
    return compiled


def read_filter(lines: Iterable[str]) -> str:
    """Take a single filter line from an input source."""
    for line in lines:
        pattern = line.rstrip("\r\n")
        if pattern:
            return pattern
        break
    raise InputMissing("couldn't read a filter from stdin")


def read_test_text(lines: Iterable[str]) -> str:
    """Read test lines until EOF and join them without their line breaks."""
    return "".join(line.rstrip("\r\n") for line in lines)
