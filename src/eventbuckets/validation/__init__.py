from eventbuckets.validation.filter_validator import (
    compile_filter,
    matches,
    read_filter,
    read_test_text,
    self_test,
    validate_filter,
)

__all__ = [
    "compile_filter",
    "matches",
    "read_filter",
    "read_test_text",
    "self_test",
    "validate_filter",
]
