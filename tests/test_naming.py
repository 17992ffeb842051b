"""Tests for screenshot naming and separator normalization."""

import os

from image_snapshot.matcher.naming import TITLE_SEPARATOR, replace_slashes, resolve_screenshot_name
from image_snapshot.models.snapshot import TestIdentity


class TestReplaceSlashes:

    def test_mixed_separators_normalize_to_host(self):
        assert replace_slashes("a/b\\c") == os.path.join("a", "b", "c")

    def test_forward_and_back_slashes_agree(self):
        assert replace_slashes("a/b/c") == replace_slashes("a\\b\\c")

    def test_no_separators_unchanged(self):
        assert replace_slashes("with custom name") == "with custom name"


class TestResolveScreenshotName:

    def test_explicit_name_returned_unchanged(self, test_identity):
        assert resolve_screenshot_name("with custom name", test_identity) == "with custom name"

    def test_explicit_name_keeps_slashes(self, test_identity):
        assert resolve_screenshot_name("nav/menu", test_identity) == "nav/menu"

    def test_derived_from_title_path(self, test_identity):
        assert resolve_screenshot_name(None, test_identity) == "TestHome -- test_header"

    def test_falls_back_to_title(self):
        test = TestIdentity(test_id="t::no_arguments", title="no_arguments")
        assert resolve_screenshot_name(None, test) == "no_arguments"

    def test_separator(self):
        assert TITLE_SEPARATOR == " -- "
