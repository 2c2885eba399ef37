# -*- coding: utf-8 -*-
# ------------------------------------------------------------------------------
#
#   Copyright 2021-2025 Valory AG
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.
#
# ------------------------------------------------------------------------------

"""Tests for the transaction lifecycle manager."""

import logging
import time

import pytest

from funds_transfer.decisions import RewardDecision
from funds_transfer.errors import ReceiptTimeoutError, SubmissionError
from funds_transfer.lifecycle import TransactionLifecycleManager, log_outcome
from funds_transfer.models import (
    Confirmed,
    ReceiptError,
    ReceiptMissing,
    ReceiptTimeout,
    Sent,
    SubmitFailed,
)
from tests.conftest import FakeExecutor, FakeHandle, confirmed_handle


REWARD = RewardDecision(fire=True, current_round=10, last_reward_round=9)


@pytest.fixture
def reward_executor() -> FakeExecutor:
    """Executor with nothing scripted."""
    return FakeExecutor()


def test_confirmed(reward_executor: FakeExecutor) -> None:
    """A mined transaction is confirmed with its block and gas."""
    reward_executor.handles["reward"] = confirmed_handle("0xabc")
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    outcome = manager.execute(REWARD)

    assert outcome == Confirmed(tx_id="0xabc", success=True, block=100, gas_used=21000)
    assert reward_executor.handles["reward"].timeouts == [5]


def test_reverted_is_reported_not_raised(reward_executor: FakeExecutor) -> None:
    """A reverted transaction is still a confirmed outcome."""
    reward_executor.handles["reward"] = confirmed_handle("0xabc", status=0)
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    outcome = manager.execute(REWARD)

    assert isinstance(outcome, Confirmed)
    assert not outcome.success
    assert outcome.is_anomaly


def test_submit_failure_skips_the_wait(reward_executor: FakeExecutor) -> None:
    """Nothing is awaited when the submission is rejected."""
    reward_executor.submit_errors["reward"] = SubmissionError("nonce too low")
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    outcome = manager.execute(REWARD)

    assert outcome == SubmitFailed(cause="nonce too low")
    assert reward_executor.submitted() == ["reward"]


def test_unexpected_submit_error(reward_executor: FakeExecutor) -> None:
    """Any submission exception ends in SubmitFailed."""
    reward_executor.submit_errors["reward"] = RuntimeError("bad")
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    outcome = manager.execute(REWARD)

    assert isinstance(outcome, SubmitFailed)
    assert "RuntimeError" in outcome.cause


def test_missing_receipt(reward_executor: FakeExecutor) -> None:
    """A wait that yields nothing is an anomaly, not a crash."""
    reward_executor.handles["reward"] = FakeHandle("0xabc")
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    assert manager.execute(REWARD) == ReceiptMissing(tx_id="0xabc")


def test_receipt_error(reward_executor: FakeExecutor) -> None:
    """A failing wait is classified as a receipt error."""
    reward_executor.handles["reward"] = FakeHandle(
        "0xabc", error=ConnectionError("rpc down")
    )
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    outcome = manager.execute(REWARD)

    assert isinstance(outcome, ReceiptError)
    assert "rpc down" in outcome.cause


def test_handle_timeout(reward_executor: FakeExecutor) -> None:
    """A handle reporting its own timeout gives ReceiptTimeout."""
    reward_executor.handles["reward"] = FakeHandle(
        "0xabc", error=ReceiptTimeoutError("late")
    )
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    assert manager.execute(REWARD) == ReceiptTimeout(tx_id="0xabc")


def test_hanging_wait_is_bounded(reward_executor: FakeExecutor) -> None:
    """A wait that never resolves does not block beyond the timeout."""
    handle = FakeHandle("0xabc", hang=True)
    reward_executor.handles["reward"] = handle
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=0.2)

    start = time.monotonic()
    outcome = manager.execute(REWARD)
    elapsed = time.monotonic() - start
    handle.release.set()

    assert outcome == ReceiptTimeout(tx_id="0xabc")
    assert elapsed < 2


def test_no_wait_when_timeout_is_zero(reward_executor: FakeExecutor) -> None:
    """A zero receipt timeout only sends."""
    handle = confirmed_handle("0xabc")
    reward_executor.handles["reward"] = handle
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=0)

    assert manager.execute(REWARD) == Sent(tx_id="0xabc")
    assert handle.timeouts == []


def test_no_internal_retry(reward_executor: FakeExecutor) -> None:
    """Every outcome comes from a single submission."""
    reward_executor.handles["reward"] = FakeHandle("0xabc", error=ValueError("x"))
    manager = TransactionLifecycleManager(reward_executor, receipt_timeout=5)

    manager.execute(REWARD)

    assert reward_executor.submitted() == ["reward"]


@pytest.mark.parametrize(
    "outcome,level",
    [
        (Sent(tx_id="0x1"), logging.INFO),
        (Confirmed(tx_id="0x1", success=True, block=1), logging.INFO),
        (Confirmed(tx_id="0x1", success=False, block=1), logging.WARNING),
        (ReceiptMissing(tx_id="0x1"), logging.WARNING),
        (ReceiptError(tx_id="0x1", cause="x"), logging.WARNING),
        (ReceiptTimeout(tx_id="0x1"), logging.WARNING),
        (SubmitFailed(cause="x"), logging.WARNING),
    ],
)
def test_log_outcome_levels(caplog: pytest.LogCaptureFixture, outcome, level) -> None:
    """Anomalies are logged as warnings."""
    with caplog.at_level(logging.DEBUG, logger="funds_transfer"):
        log_outcome("reward", outcome)

    assert caplog.records[-1].levelno == level
    assert "reward" in caplog.records[-1].getMessage()
