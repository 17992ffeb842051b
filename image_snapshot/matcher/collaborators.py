"""Collaborator contracts consumed by the retry scheduler."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol

from image_snapshot.models.snapshot import DiffResultRaw, SnapshotOptions


class CaptureFn(Protocol):
    """Capture *target* under *screenshot_name* and return the written file."""

    def __call__(self, target: Any, screenshot_name: str, options: SnapshotOptions) -> Awaitable[Path]:
        ...


class DiffFn(Protocol):
    """Compare a received screenshot against its baseline."""

    def __call__(
        self, received_path: Path, screenshot_name: str, options: SnapshotOptions
    ) -> Awaitable[DiffResultRaw]:
        ...


class ExistsFn(Protocol):
    """Report whether a baseline exists for *screenshot_name*."""

    def __call__(self, screenshot_name: str, options: SnapshotOptions) -> Awaitable[bool]:
        ...


Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[Any]]
