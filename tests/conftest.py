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

"""Shared fixtures and fake collaborators."""

import threading
from typing import Any, Dict, List, Optional, Tuple

import pytest

from funds_transfer.config import Settings, TransferBondParams, WithdrawFeesParams
from funds_transfer.models import Receipt, RoundSnapshot


ACCOUNT = "0x3333333333333333333333333333333333333333"
STAKE_RECEIVER = "0x1111111111111111111111111111111111111111"
FEE_RECEIVER = "0x2222222222222222222222222222222222222222"
ONE_ETH = 10**18


class FakeHandle:
    """Submission handle with a scripted receipt."""

    def __init__(
        self,
        tx_id: str,
        receipt: Optional[Receipt] = None,
        error: Optional[Exception] = None,
        hang: bool = False,
    ):
        self.tx_id = tx_id
        self.receipt = receipt
        self.error = error
        self.hang = hang
        self.timeouts: List[float] = []
        self.release = threading.Event()

    def await_receipt(self, timeout: float) -> Optional[Receipt]:
        """Return the scripted receipt."""
        self.timeouts.append(timeout)
        if self.hang:
            # Ignores its own timeout on purpose.
            self.release.wait(10)
        if self.error is not None:
            raise self.error
        return self.receipt


def confirmed_handle(tx_id: str, status: int = 1) -> FakeHandle:
    """A handle whose receipt arrives immediately."""
    return FakeHandle(
        tx_id, receipt=Receipt(tx_id=tx_id, status=status, block=100, gas_used=21000)
    )


class FakeExecutor:
    """Bonding manager stand-in recording every call."""

    def __init__(
        self,
        last_reward_round: int = 0,
        pending_stake: int = 0,
        pending_fees: int = 0,
    ):
        self.values = {
            "last_reward_round": last_reward_round,
            "pending_stake": pending_stake,
            "pending_fees": pending_fees,
        }
        self.read_errors: Dict[str, Exception] = {}
        self.submit_errors: Dict[str, Exception] = {}
        self.reads: List[Tuple[str, Tuple[Any, ...]]] = []
        self.submissions: List[Tuple[str, Tuple[Any, ...]]] = []
        self.handles: Dict[str, FakeHandle] = {}

    def _read(self, name: str, *args: Any) -> int:
        self.reads.append((name, args))
        if name in self.read_errors:
            raise self.read_errors[name]
        return self.values[name]

    def _submit(self, name: str, *args: Any) -> FakeHandle:
        self.submissions.append((name, args))
        if name in self.submit_errors:
            raise self.submit_errors[name]
        return self.handles.get(name) or confirmed_handle(f"0x{name}")

    def last_reward_round(self, account: str) -> int:
        return self._read("last_reward_round", account)

    def pending_stake(self, account: str, as_of_round: int) -> int:
        return self._read("pending_stake", account, as_of_round)

    def pending_fees(self, account: str, as_of_round: int) -> int:
        return self._read("pending_fees", account, as_of_round)

    def submit_reward(self) -> FakeHandle:
        return self._submit("reward")

    def submit_transfer_bond(self, *args: Any) -> FakeHandle:
        return self._submit("transfer_bond", *args)

    def submit_withdraw_fees(self, receiver: str, amount: int) -> FakeHandle:
        return self._submit("withdraw_fees", receiver, amount)

    def submitted(self) -> List[str]:
        """Names of the submitted actions, in order."""
        return [name for name, _ in self.submissions]

    def read_names(self) -> List[str]:
        """Names of the read calls, in order."""
        return [name for name, _ in self.reads]


class FakeOracle:
    """Rounds manager stand-in returning scripted snapshots."""

    def __init__(self, *snapshots: Any):
        self.snapshots = list(snapshots)
        self.calls = 0

    def snapshot(self) -> RoundSnapshot:
        item = self.snapshots[min(self.calls, len(self.snapshots) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item


def make_settings(
    reward: bool = True,
    min_retain: Optional[int] = ONE_ETH,
    threshold: Optional[int] = 3 * ONE_ETH // 100,
    **kwargs: Any,
) -> Settings:
    """Settings with every action enabled unless told otherwise."""
    return Settings(
        rpc_url="http://localhost:8545",
        reward_enabled=reward,
        transfer_bond=(
            None
            if min_retain is None
            else TransferBondParams(receiver=STAKE_RECEIVER, min_retain_wei=min_retain)
        ),
        withdraw_fees=(
            None
            if threshold is None
            else WithdrawFeesParams(receiver=FEE_RECEIVER, threshold_wei=threshold)
        ),
        **kwargs,
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with all actions enabled."""
    return make_settings()


@pytest.fixture
def executor() -> FakeExecutor:
    """Executor for round 10 with everything due."""
    return FakeExecutor(
        last_reward_round=9,
        pending_stake=5 * ONE_ETH,
        pending_fees=5 * ONE_ETH // 100,
    )
