"""Polls capture and diff until a snapshot converges or times out."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from image_snapshot.errors import MissingSnapshotError, SnapshotMismatchError
from image_snapshot.matcher.classifier import classify, failure_message, missing_snapshot_message
from image_snapshot.matcher.collaborators import CaptureFn, Clock, DiffFn, ExistsFn, Sleep
from image_snapshot.matcher.ledger import SnapshotErrorLedger
from image_snapshot.models.config import SnapshotPolicy
from image_snapshot.models.snapshot import (
    ClassifiedDiff,
    DiffOutcome,
    SnapshotOptions,
    SnapshotResult,
)

logger = logging.getLogger(__name__)

COMMAND_NAME = "image-snapshot"


class SchedulerState(str, Enum):
    START = "start"
    POLLING = "polling"
    SUCCESS = "success"
    ADDED = "added"
    FAILED = "failed"


@dataclass
class RetrySession:
    """Bookkeeping for one snapshot call."""

    screenshot_name: str
    start_time: float
    total_attempts_budget: int
    current_attempt: int = 1
    state: SchedulerState = SchedulerState.START


def attempts_budget(timeout_ms: int, delay_between_tries_ms: int) -> int:
    """Advisory number of attempts; only used in log lines."""
    if delay_between_tries_ms <= 0:
        return 0
    return math.floor(timeout_ms / delay_between_tries_ms)


class RetryScheduler:
    """Drives repeated capture and diff cycles for snapshot calls.

    The stop condition is wall-clock time: ``timed_out`` is sampled when an
    iteration starts, so the iteration that begins after the timeout is the
    last one. A mismatch in that iteration is terminal.
    """

    def __init__(
        self,
        capture: CaptureFn,
        diff: DiffFn,
        ledger: SnapshotErrorLedger,
        *,
        policy: SnapshotPolicy | None = None,
        exists: ExistsFn | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.capture = capture
        self.diff = diff
        self.ledger = ledger
        self.policy = policy or SnapshotPolicy()
        self.exists = exists
        self.clock = clock
        self.sleep = sleep

    async def run(self, target: Any, screenshot_name: str, options: SnapshotOptions) -> SnapshotResult:
        """Poll until the snapshot matches, is added, or the timeout elapses.

        Raises SnapshotMismatchError (or MissingSnapshotError) in strict mode;
        in lenient mode a terminal mismatch is recorded in the ledger instead.
        """
        session = RetrySession(
            screenshot_name=screenshot_name,
            start_time=self.clock(),
            total_attempts_budget=attempts_budget(options.timeout_ms, options.delay_between_tries_ms),
        )
        timeout_ms = abs(options.timeout_ms)
        await self._wait_for_missing_baseline(session, options, timeout_ms)

        session.state = SchedulerState.POLLING
        while True:
            timed_out = self._elapsed_ms(session) >= timeout_ms

            received = await self.capture(target, screenshot_name, options)
            raw = await self.diff(received, screenshot_name, options)
            if options.is_snapshot_debug:
                logger.info("[%s] %s attempt %d raw diff: %s", COMMAND_NAME, screenshot_name,
                            session.current_attempt, raw.model_dump(by_alias=True))
            diff = classify(raw)

            if diff.is_success:
                if diff.outcome == DiffOutcome.UPDATED:
                    logger.info("[%s] Snapshot '%s' updated", COMMAND_NAME, screenshot_name)
                return self._finish(session, SchedulerState.SUCCESS, diff)

            if diff.outcome == DiffOutcome.ADDED:
                return self._handle_added(session, diff)

            message = failure_message(diff)
            logger.info("[%s] %s", COMMAND_NAME, message, extra={"snapshot_name": screenshot_name})

            if timed_out:
                return self._fail(session, diff, message)

            logger.info("Attempt %d out of %d", session.current_attempt,
                        session.total_attempts_budget,
                        extra={"snapshot_name": screenshot_name})
            session.current_attempt += 1
            await self.sleep(max(options.delay_between_tries_ms, 0) / 1000)

    async def _wait_for_missing_baseline(
        self, session: RetrySession, options: SnapshotOptions, timeout_ms: int,
    ) -> None:
        if not (options.wait_for_missing_baseline and self.exists):
            return
        if await self.exists(session.screenshot_name, options):
            return
        logger.info("[%s] No baseline for '%s', waiting %dms before the first capture",
                    COMMAND_NAME, session.screenshot_name, timeout_ms)
        await self.sleep(timeout_ms / 1000)

    def _handle_added(self, session: RetrySession, diff: ClassifiedDiff) -> SnapshotResult:
        name = session.screenshot_name
        if not self.policy.require_snapshots:
            logger.info("[%s] New snapshot '%s' added", COMMAND_NAME, name)
            return self._finish(session, SchedulerState.ADDED, diff)

        message = missing_snapshot_message(name)
        if self.policy.fail_on_snapshot_diff:
            session.state = SchedulerState.FAILED
            raise MissingSnapshotError(name, message, diff)
        logger.warning("[%s] %s", COMMAND_NAME, message)
        return self._finish(session, SchedulerState.ADDED, diff, message)

    def _fail(self, session: RetrySession, diff: ClassifiedDiff, message: str) -> SnapshotResult:
        session.state = SchedulerState.FAILED
        name = session.screenshot_name
        if self.policy.fail_on_snapshot_diff:
            raise SnapshotMismatchError(name, message, diff)
        logger.error("[%s] Snapshot '%s' failed after %d attempt(s)",
                     COMMAND_NAME, name, session.current_attempt)
        self.ledger.record(name, message)
        return self._finish(session, SchedulerState.FAILED, diff, message)

    def _finish(
        self, session: RetrySession, state: SchedulerState, diff: ClassifiedDiff, message: str = "",
    ) -> SnapshotResult:
        session.state = state
        return SnapshotResult(
            screenshot_name=session.screenshot_name,
            state=state.value,
            outcome=diff.outcome,
            attempts=session.current_attempt,
            elapsed_ms=round(self._elapsed_ms(session), 2),
            message=message,
        )

    def _elapsed_ms(self, session: RetrySession) -> float:
        return (self.clock() - session.start_time) * 1000
