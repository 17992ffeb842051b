"""pytest integration for image snapshot matching.

Enable it from a ``conftest.py``::

    pytest_plugins = ["image_snapshot.pytest_plugin"]

and match snapshots from async tests::

    async def test_home(page, match_image_snapshot):
        await page.goto("http://localhost:8000")
        await match_image_snapshot(page, "home")

Failures recorded while ``fail_on_snapshot_diff`` is off are reported when
the test body finishes, listing every failed screenshot.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pytest

from image_snapshot.baseline.differ import PillowDiffer
from image_snapshot.baseline.store import BaselineStore
from image_snapshot.capture.playwright_capture import PlaywrightCapture
from image_snapshot.matcher.command import BoundSnapshotMatcher, ImageSnapshotCommand
from image_snapshot.matcher.ledger import SnapshotErrorLedger
from image_snapshot.models.config import DEFAULT_CONFIG_FILE, SnapshotConfig
from image_snapshot.models.snapshot import TestIdentity

logger = logging.getLogger(__name__)

ledger_key = pytest.StashKey[SnapshotErrorLedger]()
config_key = pytest.StashKey[SnapshotConfig]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("image-snapshot")
    group.addoption("--snapshot-config", default=None,
                    help=f"Snapshot config file (default: {DEFAULT_CONFIG_FILE} if present)")
    group.addoption("--update-snapshots", action="store_true", default=False,
                    help="Overwrite baselines that differ")
    group.addoption("--debug-snapshots", action="store_true", default=False,
                    help="Log raw diff results for every attempt")
    group.addoption("--require-snapshots", action="store_true", default=False,
                    help="Treat a missing baseline as a failure")
    group.addoption("--no-fail-on-snapshot-diff", action="store_true", default=False,
                    help="Defer snapshot failures to the end of each test")


def load_snapshot_config(config: pytest.Config) -> SnapshotConfig:
    """Build the session config: file, then environment, then command line."""
    path = config.getoption("--snapshot-config")
    if path:
        cfg = SnapshotConfig.load(path)
    elif (Path(config.rootpath) / DEFAULT_CONFIG_FILE).exists():
        cfg = SnapshotConfig.load(Path(config.rootpath) / DEFAULT_CONFIG_FILE)
    else:
        cfg = SnapshotConfig()
    cfg = cfg.apply_env()

    updates: dict[str, Any] = {}
    if config.getoption("--update-snapshots"):
        updates["update_snapshots"] = True
    if config.getoption("--debug-snapshots"):
        updates["debug_snapshots"] = True
    if config.getoption("--require-snapshots"):
        updates["require_snapshots"] = True
    if config.getoption("--no-fail-on-snapshot-diff"):
        updates["fail_on_snapshot_diff"] = False
    return cfg.model_copy(update=updates)


def pytest_configure(config: pytest.Config) -> None:
    config.stash[config_key] = load_snapshot_config(config)
    config.stash[ledger_key] = SnapshotErrorLedger()


def pytest_runtest_setup(item: pytest.Item) -> None:
    item.config.stash[ledger_key].begin_test(item.nodeid)


@pytest.hookimpl(wrapper=True)
def pytest_runtest_call(item: pytest.Item):
    result = yield
    # entries left after the call belong to this test; setup reset the ledger
    item.config.stash[ledger_key].assert_clean()
    return result


def identity_for(item: pytest.Item) -> TestIdentity:
    """Describe a collected test the way snapshot names expect."""
    parts = item.nodeid.split("::")
    return TestIdentity(
        test_id=item.nodeid,
        title=item.name,
        title_path=parts[1:] or [item.name],
        spec_file_name=Path(parts[0]).name,
    )


@pytest.fixture(scope="session")
def snapshot_config(pytestconfig: pytest.Config) -> SnapshotConfig:
    return pytestconfig.stash[config_key]


@pytest.fixture(scope="session")
def snapshot_ledger(pytestconfig: pytest.Config) -> SnapshotErrorLedger:
    return pytestconfig.stash[ledger_key]


@pytest.fixture
def snapshot_registration_overrides() -> dict[str, Any]:
    """Options applied to every snapshot call; override in a conftest."""
    return {}


@pytest.fixture
def image_snapshot_command(
    request: pytest.FixtureRequest,
    snapshot_config: SnapshotConfig,
    snapshot_ledger: SnapshotErrorLedger,
    snapshot_registration_overrides: dict[str, Any],
) -> ImageSnapshotCommand:
    store = BaselineStore()
    return ImageSnapshotCommand(
        snapshot_config.default_options(Path(request.node.nodeid.split("::")[0]).name),
        capture=PlaywrightCapture(store),
        diff=PillowDiffer(store),
        exists=store.exists,
        ledger=snapshot_ledger,
        policy=snapshot_config.policy(),
        registration_overrides=snapshot_registration_overrides,
    )


@pytest.fixture
def match_image_snapshot(
    request: pytest.FixtureRequest, image_snapshot_command: ImageSnapshotCommand,
) -> BoundSnapshotMatcher:
    return image_snapshot_command.bind(identity_for(request.node))
