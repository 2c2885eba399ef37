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

"""This module prints the round state and what the agent would do with it."""

from datetime import datetime
from typing import Any, List, Optional

import tzlocal
from rich.console import Console
from rich.table import Table

from funds_transfer.decisions import Decision, DecisionEngine
from funds_transfer.errors import FundsTransferError
from funds_transfer.models import RoundSnapshot


GREEN = "bold green"
RED = "bold red"
YELLOW = "bold yellow"


def shorten_address(address: str) -> str:
    """Shorten address"""
    return address[:5] + "..." + address[-4:]


def decision_row(
    action: str, decision: Optional[Decision], error: Optional[str]
) -> List[str]:
    """Build the table row of one action"""
    if error is not None:
        return [action, "error", error]
    if decision is None:
        return [action, "not applicable", ""]
    return [action, "due" if decision.fire else "not due", decision.describe()]


def build_status_table(
    oracle: Any, engine: DecisionEngine, console: Optional[Console] = None
) -> Table:
    """Read the round state and evaluate every rule without submitting."""
    local_tz = tzlocal.get_localzone()
    now = datetime.now(local_tz)

    snapshot: RoundSnapshot = oracle.snapshot()

    table = Table(
        title=(
            f"Round {snapshot.round} for {shorten_address(engine.account)} "
            f"[{now.strftime('%H:%M:%S %Y-%m-%d')}]"
        )
    )
    for column in ["Action", "State", "Details"]:
        table.add_column(column)

    table.add_row(
        "round",
        "locked" if snapshot.locked else "unlocked",
        f"initialized [{snapshot.initialized}]",
        style=GREEN if snapshot.initialized else YELLOW,
    )

    rules = [
        ("reward", engine.decide_reward),
        ("transfer_bond", engine.decide_transfer_bond),
        ("withdraw_fees", engine.decide_withdraw_fees),
    ]
    for action, decide in rules:
        decision, error = None, None
        try:
            decision = decide(snapshot)
        except FundsTransferError as e:
            error = str(e)

        style = RED if error else GREEN if decision and decision.fire else YELLOW
        table.add_row(*decision_row(action, decision, error), style=style)

    if console is not None:
        console.print(table, justify="center")
    return table


def print_status(oracle: Any, engine: DecisionEngine) -> None:
    """Prints the status table"""
    build_status_table(oracle, engine, Console())
