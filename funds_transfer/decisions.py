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

"""
Decision rules for the reward, transfer bond and withdraw fees actions.

Every rule is a function of the live round state and of balances read in
the same cycle. Nothing is remembered between cycles: an action that was
sent but not yet mined is simply evaluated again, and the on-chain state
decides whether it is still due.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from web3 import Web3

from funds_transfer.config import Settings
from funds_transfer.contracts import ZERO_ADDRESS
from funds_transfer.models import RoundSnapshot


REWARD = "reward"
TRANSFER_BOND = "transfer_bond"
WITHDRAW_FEES = "withdraw_fees"


def reward_due(last_reward_round: int, current_round: int) -> bool:
    """Reward is due once per round."""
    return last_reward_round < current_round


def transferable_stake(pending_stake: int, min_retain: int) -> int:
    """Stake above the retained minimum, never negative."""
    return max(pending_stake - min_retain, 0)


def fees_due(pending_fees: int, threshold: int) -> bool:
    """Fees are withdrawn once they reach the threshold. A zero balance never is."""
    return pending_fees >= threshold and pending_fees > 0


def to_eth(amount_wei: int) -> str:
    """Format a wei amount in ether"""
    return f"{Web3.from_wei(amount_wei, 'ether')}"


@dataclass(frozen=True)
class RewardDecision:
    """Outcome of the reward rule."""

    fire: bool
    current_round: int
    last_reward_round: int

    action = REWARD

    def submit(self, executor: Any) -> Any:
        """Send the reward transaction."""
        return executor.submit_reward()

    def describe(self) -> str:
        """Describe the inputs of the decision."""
        return (
            f"Current round [{self.current_round}] "
            f"last reward round [{self.last_reward_round}]"
        )


@dataclass(frozen=True)
class TransferBondDecision:
    """Outcome of the transfer bond rule."""

    fire: bool
    pending_stake: int
    min_retain: int
    transferable: int
    receiver: str

    action = TRANSFER_BOND

    def submit(self, executor: Any) -> Any:
        """Send the transfer bond transaction."""
        # The four list hints are not used by this policy.
        return executor.submit_transfer_bond(
            self.receiver,
            self.transferable,
            ZERO_ADDRESS,
            ZERO_ADDRESS,
            ZERO_ADDRESS,
            ZERO_ADDRESS,
        )

    def describe(self) -> str:
        """Describe the inputs of the decision."""
        return (
            f"Pending stake [{self.pending_stake}] WEI [{to_eth(self.pending_stake)}] ETH, "
            f"retain [{self.min_retain}] WEI, "
            f"transferable [{self.transferable}] WEI to [{self.receiver}]"
        )


@dataclass(frozen=True)
class WithdrawFeesDecision:
    """Outcome of the withdraw fees rule."""

    fire: bool
    pending_fees: int
    threshold: int
    receiver: str

    action = WITHDRAW_FEES

    @property
    def amount(self) -> int:
        """All pending fees are withdrawn."""
        return self.pending_fees

    def submit(self, executor: Any) -> Any:
        """Send the withdraw fees transaction."""
        return executor.submit_withdraw_fees(self.receiver, self.amount)

    def describe(self) -> str:
        """Describe the inputs of the decision."""
        return (
            f"Pending fees [{self.pending_fees}] WEI [{to_eth(self.pending_fees)}] ETH, "
            f"threshold [{self.threshold}] WEI [{to_eth(self.threshold)}] ETH, "
            f"recipient [{self.receiver}]"
        )


Decision = Union[RewardDecision, TransferBondDecision, WithdrawFeesDecision]


class DecisionEngine:
    """Evaluates the action rules against fresh contract reads."""

    def __init__(self, executor: Any, account: str, settings: Settings):
        self.executor = executor
        self.account = account
        self.settings = settings

    def decide_reward(self, snapshot: RoundSnapshot) -> Optional[RewardDecision]:
        """Decide whether reward has to be called this round."""
        if not self.settings.reward_enabled or not snapshot.initialized:
            return None

        last_reward_round = self.executor.last_reward_round(self.account)
        return RewardDecision(
            fire=reward_due(last_reward_round, snapshot.round),
            current_round=snapshot.round,
            last_reward_round=last_reward_round,
        )

    def decide_transfer_bond(
        self, snapshot: RoundSnapshot
    ) -> Optional[TransferBondDecision]:
        """Decide whether there is stake to transfer."""
        params = self.settings.transfer_bond
        if params is None or not snapshot.locked:
            return None

        pending_stake = self.executor.pending_stake(self.account, snapshot.round)
        transferable = transferable_stake(pending_stake, params.min_retain_wei)
        return TransferBondDecision(
            fire=transferable > 0,
            pending_stake=pending_stake,
            min_retain=params.min_retain_wei,
            transferable=transferable,
            receiver=params.receiver,
        )

    def decide_withdraw_fees(
        self, snapshot: RoundSnapshot
    ) -> Optional[WithdrawFeesDecision]:
        """Decide whether the pending fees have to be withdrawn."""
        params = self.settings.withdraw_fees
        if params is None or not snapshot.locked:
            return None

        pending_fees = self.executor.pending_fees(self.account, snapshot.round)
        return WithdrawFeesDecision(
            fire=fees_due(pending_fees, params.threshold_wei),
            pending_fees=pending_fees,
            threshold=params.threshold_wei,
            receiver=params.receiver,
        )
