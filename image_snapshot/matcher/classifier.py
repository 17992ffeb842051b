"""Diff outcome classification and failure messages."""

from __future__ import annotations

from decimal import Decimal

from image_snapshot.models.snapshot import ClassifiedDiff, DiffOutcome, DiffResultRaw


def classify(raw: DiffResultRaw) -> ClassifiedDiff:
    """Map a raw diff result onto exactly one DiffOutcome.

    ``pass`` wins over everything, ``added`` wins over ``updated``. A result
    that is neither passing, added nor updated is a size mismatch when the
    dimensions differ and a pixel diff otherwise.
    """
    if raw.pass_:
        outcome = DiffOutcome.PASS
    elif raw.added:
        outcome = DiffOutcome.ADDED
    elif raw.updated:
        outcome = DiffOutcome.UPDATED
    elif raw.diff_size or not raw.image_dimensions.matches:
        outcome = DiffOutcome.SIZE_MISMATCH
    else:
        outcome = DiffOutcome.PIXEL_DIFF

    return ClassifiedDiff(
        outcome=outcome,
        diff_pixel_count=raw.diff_pixel_count,
        diff_ratio=raw.diff_ratio,
        image_dimensions=raw.image_dimensions,
        diff_output_path=raw.diff_output_path,
    )


def format_percent(ratio: float) -> str:
    """Render *ratio* as a percentage in plain decimal notation, never exponent form."""
    return format(Decimal(f"{ratio * 100:.15g}"), "f")


def failure_message(diff: ClassifiedDiff) -> str:
    """Describe a size mismatch or pixel diff for logs and failures."""
    if diff.outcome == DiffOutcome.SIZE_MISMATCH:
        dims = diff.image_dimensions
        return (
            f"Image size ({dims.baseline_width}x{dims.baseline_height}) different than "
            f"saved snapshot size ({dims.received_width}x{dims.received_height}).\n"
            f"See diff for details: {diff.diff_output_path}"
        )
    if diff.outcome == DiffOutcome.PIXEL_DIFF:
        return (
            f"Image was {format_percent(diff.diff_ratio)}% different from saved snapshot with "
            f"{diff.diff_pixel_count} different pixels.\n"
            f"See diff for details: {diff.diff_output_path}"
        )
    raise ValueError(f"No failure message for outcome {diff.outcome.value}")


def missing_snapshot_message(screenshot_name: str) -> str:
    return (
        f"New snapshot: '{screenshot_name}' was added, but 'require_snapshots' was set to true.\n"
        "This is likely because this test was run in a CI environment in which "
        "snapshots should already be committed."
    )
