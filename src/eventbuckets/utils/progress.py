"""
Progress Reporting

Renders the live "(matched M of N scanned)" suffix while the backfill
runs. Purely cosmetic: the numbers are owned by the scanner.
"""

import sys
from typing import TextIO

from tqdm import tqdm


class NullProgress:
    """Progress sink that renders nothing."""

    def start(self, description: str):
        pass

    def update(self, status: str):
        pass

    def stop(self, status: str | None = None):
        pass


class ProgressReporter:
    """
    tqdm-backed status line.

    `update()` is called once per scanned payload; tqdm throttles redraws
    with `mininterval`, so this stays cheap on large scans.
    """

    def __init__(self, stream: TextIO | None = None, mininterval: float = 0.1):
        self.stream = stream or sys.stdout
        self.mininterval = mininterval
        self._bar: tqdm | None = None

    def start(self, description: str):
        self.stop()
        self._bar = tqdm(
            desc=description,
            unit="payload",
            file=self.stream,
            mininterval=self.mininterval,
            leave=True,
        )

    def update(self, status: str):
        if self._bar is None:
            return
        self._bar.update(1)
        self._bar.set_postfix_str(status, refresh=False)

    def stop(self, status: str | None = None):
        if self._bar is None:
            return
        if status is not None:
            self._bar.set_postfix_str(status, refresh=True)
        self._bar.close()
        self._bar = None
