"""Test doubles and builders shared by the test modules."""

from pathlib import Path
from typing import Iterable
from unittest.mock import AsyncMock

from PIL import Image

from image_snapshot.models.snapshot import DiffResultRaw, ImageDimensions

DIFF_PATH = "snapshots/test_home.py/__diff_output__/home.diff.png"


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def pixel_diff(ratio: float = 0.1, count: int = 100) -> DiffResultRaw:
    return DiffResultRaw(
        pass_=False,
        image_dimensions=ImageDimensions(
            baseline_width=100, baseline_height=10, received_width=100, received_height=10,
        ),
        diff_pixel_count=count,
        diff_ratio=ratio,
        diff_output_path=DIFF_PATH,
    )


def size_mismatch() -> DiffResultRaw:
    return DiffResultRaw(
        pass_=False,
        image_dimensions=ImageDimensions(
            baseline_width=1280, baseline_height=720, received_width=1280, received_height=800,
        ),
        diff_size=True,
        diff_ratio=1.0,
        diff_output_path=DIFF_PATH,
    )


def passed() -> DiffResultRaw:
    return DiffResultRaw(pass_=True)


def added() -> DiffResultRaw:
    return DiffResultRaw(pass_=False, added=True)


def updated() -> DiffResultRaw:
    return DiffResultRaw(pass_=False, updated=True)


def scripted_diff(results: Iterable[DiffResultRaw]) -> AsyncMock:
    """Diff collaborator returning *results* in order, repeating the last one."""
    queue = list(results)

    async def _diff(received_path, screenshot_name, options):
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    return AsyncMock(side_effect=_diff)


def write_png(path: Path, size: tuple[int, int] = (20, 10), color=(255, 255, 255),
              dots: Iterable[tuple[int, int]] = ()) -> Path:
    """Write a solid PNG, with optional black pixels at *dots*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color)
    for xy in dots:
        img.putpixel(xy, (0, 0, 0))
    img.save(path)
    return path
