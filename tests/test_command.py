"""Tests for the snapshot command wiring resolver, naming, scheduler and ledger."""

import pytest

from image_snapshot.errors import SnapshotMismatchError
from image_snapshot.matcher.command import BoundSnapshotMatcher, ImageSnapshotCommand
from image_snapshot.models.config import SnapshotPolicy
from tests.helpers import passed, pixel_diff, scripted_diff


def make_command(snapshot_options, capture, diff, ledger, clock, policy, overrides=None):
    return ImageSnapshotCommand(
        snapshot_options,
        capture=capture,
        diff=diff,
        ledger=ledger,
        policy=policy,
        registration_overrides=overrides,
        clock=clock,
        sleep=clock.sleep,
    )


def captured_call(capture):
    target, name, options = capture.await_args.args
    return target, name, options


class TestMatch:

    @pytest.mark.asyncio
    async def test_no_arguments_uses_title_path(self, snapshot_options, capture, ledger, clock,
                                                lenient_policy, test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([passed()]), ledger, clock,
                               lenient_policy)

        result = await command.match("page", test_identity)

        assert result.screenshot_name == "TestHome -- test_header"
        assert result.state == "success"

    @pytest.mark.asyncio
    async def test_name_only(self, snapshot_options, capture, ledger, clock, lenient_policy,
                             test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([passed()]), ledger, clock,
                               lenient_policy, overrides={"timeout_ms": 9000})

        await command.match("body", test_identity, "with custom name")

        target, name, options = captured_call(capture)
        assert target == "body"
        assert name == "with custom name"
        assert options.timeout_ms == 9000

    @pytest.mark.asyncio
    async def test_name_and_options(self, snapshot_options, capture, ledger, clock, lenient_policy,
                                    test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([passed()]), ledger, clock,
                               lenient_policy)

        await command.match("page", test_identity, "name and options",
                            {"capture": {"blackout": [".feature-v20"]}})

        _, name, options = captured_call(capture)
        assert name == "name and options"
        assert options.capture.blackout == [".feature-v20"]

    @pytest.mark.asyncio
    async def test_options_only(self, snapshot_options, capture, ledger, clock, lenient_policy,
                                test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([passed()]), ledger, clock,
                               lenient_policy)

        await command.match("page", test_identity, {"capture": {"blackout": [".card-v14"]}})

        _, name, options = captured_call(capture)
        assert name == "TestHome -- test_header"
        assert options.capture.blackout == [".card-v14"]

    @pytest.mark.asyncio
    async def test_effective_options_carry_test_identity(self, capture, ledger, clock, lenient_policy,
                                                         test_identity, snapshot_options):
        defaults = snapshot_options.model_copy(update={"spec_file_name": ""})
        command = make_command(defaults, capture, scripted_diff([passed()]), ledger, clock, lenient_policy)

        await command.match("page", test_identity, "home")

        _, _, options = captured_call(capture)
        assert options.current_test_title == "test_header"
        assert options.spec_file_name == "test_home.py"
        assert defaults.current_test_title == ""


class TestLedgerAcrossTests:

    @pytest.mark.asyncio
    async def test_ledger_resets_on_first_call_of_new_test(self, snapshot_options, capture, ledger, clock,
                                                           lenient_policy, test_identity,
                                                           other_test_identity):
        failing = make_command(snapshot_options, capture, scripted_diff([pixel_diff()]), ledger, clock,
                               lenient_policy)
        await failing.match("page", test_identity, "error1")
        assert list(ledger.entries) == ["error1"]

        passing = make_command(snapshot_options, capture, scripted_diff([passed()]), ledger, clock,
                               lenient_policy)
        await passing.match("page", other_test_identity, "fine")

        assert ledger.entries == {}
        assert ledger.current_test == other_test_identity.test_id

    @pytest.mark.asyncio
    async def test_new_test_reproducing_failure_records_again(self, snapshot_options, capture, ledger,
                                                              clock, lenient_policy, test_identity,
                                                              other_test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([pixel_diff()]), ledger, clock,
                               lenient_policy)
        await command.match("page", test_identity, "error1")
        await command.match("page", other_test_identity, "error1")

        assert list(ledger.entries) == ["error1"]
        assert ledger.current_test == other_test_identity.test_id

    @pytest.mark.asyncio
    async def test_two_failures_in_one_test(self, snapshot_options, capture, ledger, clock,
                                            lenient_policy, test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([pixel_diff()]), ledger, clock,
                               lenient_policy)

        await command.match("body", test_identity, "error1")
        await command.match("body", test_identity, "error2")

        assert list(ledger.entries) == ["error1", "error2"]


class TestBoundMatcher:

    @pytest.mark.asyncio
    async def test_bind_forwards_identity(self, snapshot_options, capture, ledger, clock, lenient_policy,
                                          test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([passed()]), ledger, clock,
                               lenient_policy)
        matcher = command.bind(test_identity)

        assert isinstance(matcher, BoundSnapshotMatcher)
        result = await matcher("page", "home")

        assert result.screenshot_name == "home"
        assert ledger.current_test == test_identity.test_id

    @pytest.mark.asyncio
    async def test_strict_policy_raises_through_matcher(self, snapshot_options, capture, ledger, clock,
                                                        test_identity):
        command = make_command(snapshot_options, capture, scripted_diff([pixel_diff()]), ledger, clock,
                               SnapshotPolicy(fail_on_snapshot_diff=True))

        with pytest.raises(SnapshotMismatchError):
            await command.bind(test_identity)("page", "home")
