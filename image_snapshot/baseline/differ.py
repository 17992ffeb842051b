"""Exact per-pixel comparison of a screenshot against its baseline, using Pillow.

Produces the :class:`DiffResultRaw` consumed by the retry scheduler:

* no baseline yet -> the received image becomes the baseline (``added``);
* dimensions differ -> ``diff_size`` with a side-by-side diff image, or
  ``updated`` when snapshots are being updated;
* otherwise differing pixels are counted and compared against the failure
  threshold; a failing comparison writes a highlighted diff image, or
  overwrites the baseline (``updated``) when snapshots are being updated.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from pathlib import Path

from PIL import Image, ImageChops

from image_snapshot.baseline.store import BaselineStore
from image_snapshot.models.snapshot import DiffResultRaw, ImageDimensions, SnapshotOptions

logger = logging.getLogger(__name__)

HIGHLIGHT = (255, 0, 0, 255)


def count_diff_pixels(baseline: Image.Image, received: Image.Image) -> tuple[int, Image.Image]:
    """Count pixels differing in any channel; also return the difference mask."""
    diff = ImageChops.difference(baseline.convert("RGBA"), received.convert("RGBA"))
    mask = functools.reduce(ImageChops.lighter, diff.split())
    total = baseline.width * baseline.height
    unchanged = mask.histogram()[0]
    return total - unchanged, mask


def is_within_threshold(diff_pixels: int, diff_ratio: float, options: SnapshotOptions) -> bool:
    if options.failure_threshold_type == "percent":
        return diff_ratio <= options.failure_threshold
    return diff_pixels <= options.failure_threshold


def _highlight_image(baseline: Image.Image, mask: Image.Image) -> Image.Image:
    faded = Image.blend(baseline.convert("RGBA"), Image.new("RGBA", baseline.size, (255, 255, 255, 255)), 0.7)
    red = Image.new("RGBA", baseline.size, HIGHLIGHT)
    return Image.composite(red, faded, mask.point(lambda v: 255 if v else 0))


def _side_by_side(baseline: Image.Image, received: Image.Image) -> Image.Image:
    width = baseline.width + received.width
    height = max(baseline.height, received.height)
    canvas = Image.new("RGBA", (width, height), (255, 255, 255, 0))
    canvas.paste(baseline.convert("RGBA"), (0, 0))
    canvas.paste(received.convert("RGBA"), (baseline.width, 0))
    return canvas


def compare_images(
    received_path: Path,
    baseline_path: Path,
    diff_path: Path,
    options: SnapshotOptions,
) -> DiffResultRaw:
    """Compare two image files on disk (blocking)."""
    with Image.open(baseline_path) as baseline_file, Image.open(received_path) as received_file:
        baseline = baseline_file.copy()
        received = received_file.copy()

    dims = ImageDimensions(
        baseline_width=baseline.width,
        baseline_height=baseline.height,
        received_width=received.width,
        received_height=received.height,
    )

    if baseline.size != received.size:
        total = max(baseline.width * baseline.height, received.width * received.height, 1)
        diff_path.parent.mkdir(parents=True, exist_ok=True)
        _side_by_side(baseline, received).save(diff_path)
        return DiffResultRaw(
            pass_=False,
            image_dimensions=dims,
            diff_pixel_count=total,
            diff_ratio=1.0,
            diff_size=True,
            diff_output_path=str(diff_path),
        )

    diff_pixels, mask = count_diff_pixels(baseline, received)
    total = max(baseline.width * baseline.height, 1)
    diff_ratio = diff_pixels / total
    passed = is_within_threshold(diff_pixels, diff_ratio, options)

    if not passed:
        diff_path.parent.mkdir(parents=True, exist_ok=True)
        _highlight_image(baseline, mask).save(diff_path)

    return DiffResultRaw(
        pass_=passed,
        image_dimensions=dims,
        diff_pixel_count=diff_pixels,
        diff_ratio=diff_ratio,
        diff_output_path=str(diff_path) if not passed else "",
    )


class PillowDiffer:
    """Diff collaborator backed by Pillow and a :class:`BaselineStore`.

    Comparison and baseline file work run in the default
    executor so the event loop stays free while a snapshot call polls.
    """

    def __init__(self, store: BaselineStore | None = None):
        self.store = store or BaselineStore()

    async def __call__(self, received_path: Path, screenshot_name: str, options: SnapshotOptions) -> DiffResultRaw:
        baseline_path = self.store.baseline_path(screenshot_name, options)

        if not await self._offload(baseline_path.exists):
            await self._offload(self.store.write_baseline, received_path, screenshot_name, options)
            return DiffResultRaw(pass_=False, added=True)

        diff_path = self.store.diff_path(screenshot_name, options)
        result = await self._offload(compare_images, Path(received_path), baseline_path, diff_path, options)

        if result.pass_:
            await self._offload(self.store.remove_diff, screenshot_name, options)
            return result

        if options.is_update_snapshots:
            await self._offload(self.store.write_baseline, received_path, screenshot_name, options)
            await self._offload(self.store.remove_diff, screenshot_name, options)
            return result.model_copy(update={"updated": True, "diff_output_path": ""})

        logger.debug("Snapshot '%s' differs: %d pixels (%.4f)",
                     screenshot_name, result.diff_pixel_count, result.diff_ratio)
        return result

    async def _offload(self, fn, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)
