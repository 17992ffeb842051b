"""Errors raised by snapshot matching.

Mismatch errors subclass ``AssertionError`` so test runners report them as
test failures rather than as errors in the test harness.
"""

from __future__ import annotations

from image_snapshot.models.snapshot import ClassifiedDiff


class ImageSnapshotError(Exception):
    """Base error for image snapshot matching."""


class SnapshotMismatchError(ImageSnapshotError, AssertionError):
    """A snapshot still differed from its baseline when the timeout elapsed."""

    def __init__(self, screenshot_name: str, message: str, diff: ClassifiedDiff | None = None):
        super().__init__(message)
        self.screenshot_name = screenshot_name
        self.message = message
        self.diff = diff


class MissingSnapshotError(SnapshotMismatchError):
    """A baseline was created while baselines were required to exist."""


class SnapshotLedgerError(ImageSnapshotError, AssertionError):
    """Snapshot failures deferred to the end of a test."""

    def __init__(self, entries: dict[str, str]):
        self.entries = dict(entries)
        names = ", ".join(f"'{name}'" for name in self.entries)
        lines = [f"{len(self.entries)} snapshot(s) failed: {names}"]
        for name, message in self.entries.items():
            lines.append(f"  {name}: {message}")
        super().__init__("\n".join(lines))
