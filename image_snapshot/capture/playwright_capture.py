"""Take page or element screenshots with Playwright for snapshot matching."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Locator, Page

from image_snapshot.baseline.store import BaselineStore
from image_snapshot.models.snapshot import SnapshotOptions

logger = logging.getLogger(__name__)


class PlaywrightCapture:
    """Capture collaborator for ``playwright.async_api`` pages and locators."""

    def __init__(self, store: BaselineStore | None = None):
        self.store = store or BaselineStore()

    async def __call__(self, target: Page | Locator, screenshot_name: str, options: SnapshotOptions) -> Path:
        path = self.store.received_path(screenshot_name, options)
        path.parent.mkdir(parents=True, exist_ok=True)

        capture = options.capture
        page = target.page if isinstance(target, Locator) else target
        kwargs = {
            "path": str(path),
            "animations": capture.animations,
            "omit_background": capture.omit_background,
        }
        if capture.blackout:
            kwargs["mask"] = [page.locator(selector) for selector in capture.blackout]
        if not isinstance(target, Locator):
            kwargs["full_page"] = capture.full_page

        await target.screenshot(**kwargs)
        logger.debug("Captured '%s' to %s", screenshot_name, path)
        return path
