"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from image_snapshot.matcher.ledger import SnapshotErrorLedger
from image_snapshot.models.config import SnapshotConfig, SnapshotPolicy
from image_snapshot.models.snapshot import SnapshotOptions, TestIdentity
from tests.helpers import FakeClock


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def capture() -> AsyncMock:
    """Capture collaborator that returns the received path without writing it."""
    async def _capture(target, screenshot_name, options):
        return options.screenshots_folder / options.spec_file_name / f"{screenshot_name}.png"

    return AsyncMock(side_effect=_capture)


@pytest.fixture
def ledger() -> SnapshotErrorLedger:
    return SnapshotErrorLedger()


# ============================================================================
# Options / Policy Fixtures
# ============================================================================


@pytest.fixture
def snapshot_options(tmp_path: Path) -> SnapshotOptions:
    return SnapshotOptions(
        screenshots_folder=tmp_path / "screenshots",
        snapshots_folder=tmp_path / "snapshots",
        spec_file_name="test_home.py",
        timeout_ms=5000,
        delay_between_tries_ms=1000,
    )


@pytest.fixture
def lenient_policy() -> SnapshotPolicy:
    return SnapshotPolicy(fail_on_snapshot_diff=False)


@pytest.fixture
def strict_policy() -> SnapshotPolicy:
    return SnapshotPolicy(fail_on_snapshot_diff=True)


@pytest.fixture
def snapshot_config(tmp_path: Path) -> SnapshotConfig:
    return SnapshotConfig(
        screenshots_folder=str(tmp_path / "screenshots"),
        snapshots_folder=str(tmp_path / "snapshots"),
        timeout_ms=3000,
        delay_between_tries_ms=500,
    )


# ============================================================================
# Test Identity Fixtures
# ============================================================================


@pytest.fixture
def test_identity() -> TestIdentity:
    return TestIdentity(
        test_id="tests/test_home.py::TestHome::test_header",
        title="test_header",
        title_path=["TestHome", "test_header"],
        spec_file_name="test_home.py",
    )


@pytest.fixture
def other_test_identity() -> TestIdentity:
    return TestIdentity(
        test_id="tests/test_home.py::TestHome::test_footer",
        title="test_footer",
        title_path=["TestHome", "test_footer"],
        spec_file_name="test_home.py",
    )
