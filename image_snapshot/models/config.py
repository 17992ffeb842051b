"""Configuration models for image snapshot matching."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal, Mapping

from pydantic import BaseModel, Field, field_validator

from image_snapshot.models.snapshot import CaptureOptions, SnapshotOptions

DEFAULT_CONFIG_FILE = "image-snapshot.json"

_TRUTHY = {"1", "true", "yes", "on"}

# environment variable -> config field
ENV_FLAGS = {
    "UPDATE_SNAPSHOTS": "update_snapshots",
    "DEBUG_SNAPSHOTS": "debug_snapshots",
    "FAIL_ON_SNAPSHOT_DIFF": "fail_on_snapshot_diff",
    "REQUIRE_SNAPSHOTS": "require_snapshots",
}


def parse_flag(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


class SnapshotPolicy(BaseModel):
    """Failure policy applied by the retry scheduler."""

    fail_on_snapshot_diff: bool = True  # raise at the failing call instead of at test end
    require_snapshots: bool = False  # a missing baseline counts as a failure


class SnapshotConfig(BaseModel):
    # Locations
    screenshots_folder: str = "screenshots"
    snapshots_folder: str = "snapshots"

    # Flags
    update_snapshots: bool = False
    debug_snapshots: bool = False
    fail_on_snapshot_diff: bool = True
    require_snapshots: bool = False

    # Comparison
    failure_threshold: float = 0
    failure_threshold_type: Literal["pixel", "percent"] = "pixel"

    # Retry timing
    timeout_ms: int = 5000
    delay_between_tries_ms: int = 2000
    wait_for_missing_baseline: bool = False

    # Capture
    capture: CaptureOptions = Field(default_factory=CaptureOptions)

    @field_validator("failure_threshold")
    @classmethod
    def non_negative_threshold(cls, v: float) -> float:
        if v < 0:
            raise ValueError("failure_threshold must be >= 0")
        return v

    def apply_env(self, environ: Mapping[str, str] | None = None) -> "SnapshotConfig":
        """Return a copy with the snapshot environment flags applied.

        Only variables that are present override the file values.
        """
        environ = os.environ if environ is None else environ
        updates = {
            field: parse_flag(environ[var])
            for var, field in ENV_FLAGS.items()
            if var in environ
        }
        return self.model_copy(update=updates)

    def policy(self) -> SnapshotPolicy:
        return SnapshotPolicy(
            fail_on_snapshot_diff=self.fail_on_snapshot_diff,
            require_snapshots=self.require_snapshots,
        )

    def default_options(self, spec_file_name: str = "") -> SnapshotOptions:
        """Build the global default options for snapshots of one test file."""
        return SnapshotOptions(
            screenshots_folder=Path(self.screenshots_folder),
            snapshots_folder=Path(self.snapshots_folder),
            is_update_snapshots=self.update_snapshots,
            is_snapshot_debug=self.debug_snapshots,
            spec_file_name=spec_file_name,
            failure_threshold=self.failure_threshold,
            failure_threshold_type=self.failure_threshold_type,
            timeout_ms=self.timeout_ms,
            delay_between_tries_ms=self.delay_between_tries_ms,
            wait_for_missing_baseline=self.wait_for_missing_baseline,
            capture=self.capture,
        )

    @classmethod
    def load(cls, path: str | Path) -> "SnapshotConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
