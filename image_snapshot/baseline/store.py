"""Locate, write and list baseline snapshot images on disk."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from image_snapshot.matcher.naming import replace_slashes
from image_snapshot.models.snapshot import SnapshotOptions

logger = logging.getLogger(__name__)

SNAP_EXT = ".snap.png"
DIFF_EXT = ".diff.png"
PNG_EXT = ".png"
DIFF_DIR_NAME = "__diff_output__"


@dataclass
class BaselineFile:
    spec_file_name: str
    screenshot_name: str
    path: Path
    size_bytes: int


class BaselineStore:
    """Maps screenshot names onto baseline, received and diff image paths.

    Layout::

        <snapshots_folder>/<spec_file_name>/<name>.snap.png
        <snapshots_folder>/<spec_file_name>/__diff_output__/<name>.diff.png
        <screenshots_folder>/<spec_file_name>/<name>.png
    """

    def baseline_path(self, screenshot_name: str, options: SnapshotOptions) -> Path:
        return options.snapshots_folder / options.spec_file_name / f"{replace_slashes(screenshot_name)}{SNAP_EXT}"

    def diff_path(self, screenshot_name: str, options: SnapshotOptions) -> Path:
        return (options.snapshots_folder / options.spec_file_name / DIFF_DIR_NAME
                / f"{replace_slashes(screenshot_name)}{DIFF_EXT}")

    def received_path(self, screenshot_name: str, options: SnapshotOptions) -> Path:
        return options.screenshots_folder / options.spec_file_name / f"{replace_slashes(screenshot_name)}{PNG_EXT}"

    async def exists(self, screenshot_name: str, options: SnapshotOptions) -> bool:
        return self.baseline_path(screenshot_name, options).exists()

    def write_baseline(self, source: Path, screenshot_name: str, options: SnapshotOptions) -> Path:
        """Copy a received screenshot into place as the baseline."""
        dest = self.baseline_path(screenshot_name, options)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest)
        logger.info("Stored baseline for '%s' at %s", screenshot_name, dest)
        return dest

    def remove_diff(self, screenshot_name: str, options: SnapshotOptions) -> None:
        path = self.diff_path(screenshot_name, options)
        if path.exists():
            path.unlink()
            logger.debug("Removed stale diff %s", path)


def list_baselines(snapshots_folder: Path) -> list[BaselineFile]:
    """List stored baselines under *snapshots_folder*, sorted by path."""
    if not snapshots_folder.exists():
        return []
    baselines = []
    for path in sorted(snapshots_folder.rglob(f"*{SNAP_EXT}")):
        if DIFF_DIR_NAME in path.parts:
            continue
        relative = path.relative_to(snapshots_folder)
        baselines.append(BaselineFile(
            spec_file_name=str(relative.parent) if relative.parent != Path(".") else "",
            screenshot_name=path.name[: -len(SNAP_EXT)],
            path=path,
            size_bytes=path.stat().st_size,
        ))
    return baselines


def clean_diff_outputs(snapshots_folder: Path) -> int:
    """Delete every diff output directory; returns the number of images removed."""
    if not snapshots_folder.exists():
        return 0
    removed = 0
    for diff_dir in sorted(snapshots_folder.rglob(DIFF_DIR_NAME)):
        if not diff_dir.is_dir():
            continue
        removed += sum(1 for _ in diff_dir.glob(f"*{DIFF_EXT}"))
        shutil.rmtree(diff_dir)
        logger.debug("Removed %s", diff_dir)
    return removed
