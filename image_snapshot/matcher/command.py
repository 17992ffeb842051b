"""Public entry point for matching image snapshots."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Mapping

from image_snapshot.matcher.collaborators import CaptureFn, Clock, DiffFn, ExistsFn, Sleep
from image_snapshot.matcher.ledger import SnapshotErrorLedger
from image_snapshot.matcher.naming import resolve_screenshot_name
from image_snapshot.matcher.options import resolve, to_snapshot_arg
from image_snapshot.matcher.scheduler import RetryScheduler
from image_snapshot.models.config import SnapshotPolicy
from image_snapshot.models.snapshot import SnapshotOptions, SnapshotResult, TestIdentity

logger = logging.getLogger(__name__)


class ImageSnapshotCommand:
    """Matches screenshots of a subject against stored baselines.

    ``registration_overrides`` apply to every call made through this
    command, on top of ``defaults`` and below the per-call options.
    """

    def __init__(
        self,
        defaults: SnapshotOptions,
        *,
        capture: CaptureFn,
        diff: DiffFn,
        ledger: SnapshotErrorLedger,
        policy: SnapshotPolicy | None = None,
        registration_overrides: Mapping[str, Any] | None = None,
        exists: ExistsFn | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.defaults = defaults
        self.registration_overrides = dict(registration_overrides or {})
        self.ledger = ledger
        self.scheduler = RetryScheduler(
            capture, diff, ledger,
            policy=policy, exists=exists, clock=clock, sleep=sleep,
        )

    async def match(
        self,
        subject: Any,
        test: TestIdentity,
        name_or_options: str | Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> SnapshotResult:
        """Match a screenshot of *subject* taken inside *test*."""
        self.ledger.on_test_boundary(test.test_id)

        resolved = resolve(self.defaults, self.registration_overrides,
                           to_snapshot_arg(name_or_options, options))
        effective = resolved.options.model_copy(update={
            "current_test_title": test.title,
            "spec_file_name": test.spec_file_name or resolved.options.spec_file_name,
        })
        screenshot_name = resolve_screenshot_name(resolved.filename, test)
        logger.debug("Matching snapshot '%s' (timeout=%dms, delay=%dms)",
                     screenshot_name, effective.timeout_ms, effective.delay_between_tries_ms)
        return await self.scheduler.run(subject, screenshot_name, effective)

    def bind(self, test: TestIdentity) -> "BoundSnapshotMatcher":
        return BoundSnapshotMatcher(self, test)


class BoundSnapshotMatcher:
    """An ImageSnapshotCommand bound to the identity of one test."""

    def __init__(self, command: ImageSnapshotCommand, test: TestIdentity):
        self.command = command
        self.test = test

    async def __call__(
        self,
        subject: Any,
        name_or_options: str | Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> SnapshotResult:
        return await self.command.match(subject, self.test, name_or_options, options)
