"""Snapshot data structures shared by the matcher and its collaborators."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CaptureOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    full_page: bool = False  # ignored for element subjects
    blackout: list[str] = Field(default_factory=list)  # selectors masked before capture
    omit_background: bool = False
    animations: Literal["allow", "disabled"] = "disabled"


class SnapshotOptions(BaseModel):
    """Effective options for a single snapshot call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    screenshots_folder: Path = Path("screenshots")
    snapshots_folder: Path = Path("snapshots")
    is_update_snapshots: bool = False
    is_snapshot_debug: bool = False
    spec_file_name: str = ""
    current_test_title: str = ""
    failure_threshold: float = Field(default=0, ge=0)
    failure_threshold_type: Literal["pixel", "percent"] = "pixel"
    timeout_ms: int = 5000
    delay_between_tries_ms: int = 2000
    wait_for_missing_baseline: bool = False
    capture: CaptureOptions = Field(default_factory=CaptureOptions)


class ImageDimensions(BaseModel):
    baseline_width: int = 0
    baseline_height: int = 0
    received_width: int = 0
    received_height: int = 0

    @property
    def matches(self) -> bool:
        return (
            self.baseline_width == self.received_width
            and self.baseline_height == self.received_height
        )


class DiffResultRaw(BaseModel):
    """Result reported by a diff collaborator for one comparison."""

    model_config = ConfigDict(populate_by_name=True)

    pass_: bool = Field(default=False, alias="pass")
    added: bool = False
    updated: bool = False
    image_dimensions: ImageDimensions = Field(default_factory=ImageDimensions)
    diff_pixel_count: int = 0
    diff_ratio: float = 0.0
    diff_size: bool = False
    diff_output_path: str = ""


class DiffOutcome(str, Enum):
    PASS = "pass"
    ADDED = "added"
    UPDATED = "updated"
    SIZE_MISMATCH = "size_mismatch"
    PIXEL_DIFF = "pixel_diff"


class ClassifiedDiff(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcome: DiffOutcome
    diff_pixel_count: int = 0
    diff_ratio: float = 0.0
    image_dimensions: ImageDimensions = Field(default_factory=ImageDimensions)
    diff_output_path: str = ""

    @property
    def is_success(self) -> bool:
        return self.outcome in (DiffOutcome.PASS, DiffOutcome.UPDATED)

    @property
    def is_mismatch(self) -> bool:
        return self.outcome in (DiffOutcome.SIZE_MISMATCH, DiffOutcome.PIXEL_DIFF)


class TestIdentity(BaseModel):
    """Identity of the test a snapshot call runs in."""

    __test__ = False  # not a pytest test class

    test_id: str
    title: str
    title_path: list[str] = Field(default_factory=list)
    spec_file_name: str = ""


class SnapshotResult(BaseModel):
    screenshot_name: str
    state: Literal["success", "added", "failed"]
    outcome: DiffOutcome
    attempts: int = 1
    elapsed_ms: float = 0.0
    message: str = ""
