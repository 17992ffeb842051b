"""Collects deferred snapshot failures for the running test."""

from __future__ import annotations

import logging

from image_snapshot.errors import SnapshotLedgerError

logger = logging.getLogger(__name__)


class SnapshotErrorLedger:
    """Failure messages keyed by screenshot name, scoped to the current test.

    The host integration calls :meth:`begin_test` when a test starts. Every
    snapshot call also reports the test it runs in through
    :meth:`on_test_boundary`, which resets the ledger when that identity
    differs from the last one seen.
    """

    def __init__(self) -> None:
        self.current_test: str | None = None
        self._entries: dict[str, str] = {}

    @property
    def entries(self) -> dict[str, str]:
        return dict(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def begin_test(self, test_id: str) -> None:
        """Start a new test scope, dropping entries of the previous test."""
        if self._entries:
            logger.debug("Discarding %d snapshot failure(s) from %s",
                         len(self._entries), self.current_test)
        self._entries.clear()
        self.current_test = test_id

    def on_test_boundary(self, test_id: str) -> bool:
        """Reset when *test_id* differs from the last observed test.

        Returns True if a reset happened.
        """
        if test_id == self.current_test:
            return False
        self.begin_test(test_id)
        return True

    def record(self, screenshot_name: str, message: str) -> None:
        self._entries[screenshot_name] = message
        logger.debug("Recorded snapshot failure for '%s' in %s", screenshot_name, self.current_test)

    def clear(self) -> None:
        self._entries.clear()

    def failure_report(self) -> str:
        if not self._entries:
            return ""
        return str(SnapshotLedgerError(self._entries))

    def assert_clean(self) -> None:
        """Raise SnapshotLedgerError listing every failed screenshot, if any."""
        if self._entries:
            raise SnapshotLedgerError(self._entries)
