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

"""This module contains the polling loop of the agent."""

import logging
import time
from typing import Any, Callable, Optional

from funds_transfer.config import Settings
from funds_transfer.decisions import Decision, DecisionEngine, to_eth
from funds_transfer.errors import FundsTransferError
from funds_transfer.lifecycle import TransactionLifecycleManager, log_outcome
from funds_transfer.models import (
    LockedSnapshot,
    PendingAmounts,
    RoundSnapshot,
    SchedulerState,
)
from funds_transfer.tracker import memo_changed, observe, report_level


logger = logging.getLogger(__name__)


class Scheduler:
    """Runs the actions every poll interval, one cycle at a time."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        oracle: Any,
        engine: DecisionEngine,
        lifecycle: TransactionLifecycleManager,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.oracle = oracle
        self.engine = engine
        self.lifecycle = lifecycle
        self.settings = settings
        self.sleep = sleep

    def _run_action(
        self,
        decide: Callable[[RoundSnapshot], Optional[Decision]],
        snapshot: RoundSnapshot,
        quiet_level: int,
    ) -> Optional[Decision]:
        """Evaluate one rule and execute it if due. Errors stay within the action."""
        try:
            decision = decide(snapshot)
        except FundsTransferError as e:
            logger.warning(f"Skipping {decide.__name__} this cycle: {e}")
            return None
        except Exception:  # pylint: disable=broad-except
            logger.exception(f"Unexpected error in {decide.__name__}")
            return None

        if decision is None:
            return None

        if not decision.fire:
            logger.log(
                quiet_level, f"{decision.action} not due. {decision.describe()}"
            )
            return decision

        logger.info(f"{decision.action} due. {decision.describe()}")
        try:
            outcome = self.lifecycle.execute(decision)
        except Exception:  # pylint: disable=broad-except
            logger.exception(f"Unexpected error executing {decision.action}")
            return decision

        log_outcome(decision.action, outcome)
        return decision

    def run_cycle(self, state: SchedulerState) -> SchedulerState:
        """Run a single cycle and return the state for the next one."""
        try:
            snapshot = self.oracle.snapshot()
        except Exception as e:  # pylint: disable=broad-except
            logger.warning(f"Could not read the round state, skipping cycle: {e}")
            return state

        transition = observe(snapshot, state.last_snapshot)
        level = report_level(transition)
        logger.log(
            level,
            f"Current round [{snapshot.round}] initialized [{snapshot.initialized}] "
            f"locked [{snapshot.locked}]",
        )

        if snapshot.initialized:
            self._run_action(self.engine.decide_reward, snapshot, level)

        memo = state.last_locked_memo
        if not snapshot.locked:
            if self.settings.locked_actions_enabled:
                logger.log(
                    level,
                    f"Current round [{snapshot.round}] is not locked. "
                    "No transfers until the round is locked.",
                )
        elif self.settings.locked_actions_enabled:
            transfer = self._run_action(
                self.engine.decide_transfer_bond, snapshot, logging.DEBUG
            )
            withdraw = self._run_action(
                self.engine.decide_withdraw_fees, snapshot, logging.DEBUG
            )
            amounts = PendingAmounts(
                pending_stake=getattr(transfer, "pending_stake", None),
                pending_fees=getattr(withdraw, "pending_fees", None),
            )
            memo = LockedSnapshot.from_amounts(snapshot.round, amounts)
            self._report_locked(memo, state.last_locked_memo)

        return SchedulerState(last_snapshot=snapshot, last_locked_memo=memo)

    @staticmethod
    def _report_locked(
        memo: LockedSnapshot, previous: Optional[LockedSnapshot]
    ) -> None:
        """Summarize the locked round balances"""
        stake = (
            f"{memo.pending_stake} WEI [{to_eth(memo.pending_stake)}] ETH"
            if memo.stake_present
            else "n/a"
        )
        fees = (
            f"{memo.pending_fees} WEI [{to_eth(memo.pending_fees)}] ETH"
            if memo.fees_present
            else "n/a"
        )
        logger.log(
            logging.INFO if memo_changed(memo, previous) else logging.DEBUG,
            f"Round [{memo.round}] is locked. Pending stake [{stake}] "
            f"pending fees [{fees}]",
        )

    def run_forever(
        self,
        state: Optional[SchedulerState] = None,
        max_cycles: Optional[int] = None,
    ) -> SchedulerState:
        """Run cycles until the process is stopped."""
        state = state if state is not None else SchedulerState()
        interval = self.settings.poll_interval_seconds
        logger.info(
            f"Starting loop. Enabled actions: {self.settings.enabled_actions()}. "
            f"Poll interval: {interval} seconds"
        )

        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            logger.debug("Start cycle")
            try:
                state = self.run_cycle(state)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Unexpected error in cycle")
            cycles += 1
            logger.debug(f"Sleeping for {interval} seconds")
            self.sleep(interval)

        return state
