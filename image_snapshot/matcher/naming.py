"""Derive screenshot names from test identity and normalize separators."""

from __future__ import annotations

import os
import re

from image_snapshot.models.snapshot import TestIdentity

TITLE_SEPARATOR = " -- "

_SLASHES = re.compile(r"[\\/]")


def replace_slashes(value: str) -> str:
    """Replace forward slashes and backslashes with the host path separator."""
    return _SLASHES.sub(lambda _: os.sep, value)


def resolve_screenshot_name(explicit: str | None, test: TestIdentity) -> str:
    """Return *explicit* unchanged, or a name built from the test's title path."""
    if explicit:
        return explicit
    parts = test.title_path or [test.title]
    return TITLE_SEPARATOR.join(parts)
