"""
Error Taxonomy

Every failure a filter registration run can hit. None of them are retried:
each one aborts the run, leaves the transaction uncommitted and maps to a
process exit code in the CLI.
"""

from typing import Any


class BucketFilterError(Exception):
    """
    Base class for all filter registration failures.

    Args:
        operation: Human-readable name of the operation that failed
        cause: Underlying driver/compiler error, if any
    """

    exit_code = 3

    def __init__(self, operation: str, cause: Any | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(operation if cause is None else f"{operation}: {cause}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "operation": self.operation,
            "cause": None if self.cause is None else str(self.cause),
            "exit_code": self.exit_code,
        }


# Configuration and inputs


class ConfigMissing(BucketFilterError):
    exit_code = 1


class ConfigInvalid(BucketFilterError):
    exit_code = 2


class ConnectFailed(BucketFilterError):
    exit_code = 2


class InputMissing(BucketFilterError):
    """Bucket name or filter absent and no way to obtain it."""

    exit_code = 1


# Validation phase


class InvalidPattern(BucketFilterError):
    exit_code = 2

    def __init__(self, pattern: str, cause: Any | None = None):
        self.pattern = pattern
        super().__init__(f"regex compile error for {pattern!r}", cause)


class SelfTestFailed(BucketFilterError):
    exit_code = 4

    def __init__(self, pattern: str, test_text: str):
        self.pattern = pattern
        self.test_text = test_text
        super().__init__(
            f"Looks like your regex '{pattern}' doesn't work for your test case of '{test_text}'!"
        )


# Transactional phase


class TxStartFailed(BucketFilterError):
    pass


class LookupFailed(BucketFilterError):
    pass


class BucketInsertFailed(BucketFilterError):
    pass


class FilterInsertFailed(BucketFilterError):
    pass


class HostInsertFailed(BucketFilterError):
    pass


class UnclassifiedQueryFailed(BucketFilterError):
    pass


class CursorFailed(BucketFilterError):
    pass


class UpdateFailed(BucketFilterError):
    pass


class CommitFailed(BucketFilterError):
    pass


class RollbackFailed(BucketFilterError):
    pass
