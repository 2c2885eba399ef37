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

"""This module contains the value types shared by the agent components."""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class RoundSnapshot:
    """Round state as read from the rounds manager in one cycle."""

    round: int
    initialized: bool
    locked: bool


@dataclass(frozen=True)
class Transition:
    """Whether the observed state differs from the previous cycle."""

    changed: bool


@dataclass(frozen=True)
class PendingAmounts:
    """Pending stake and fees read in one locked cycle, in wei."""

    pending_stake: Optional[int] = None
    pending_fees: Optional[int] = None


@dataclass(frozen=True)
class LockedSnapshot:
    """
    Memo of the last locked round report.

    Only used to decide whether the locked round report is worth repeating
    at INFO level. It never drives a decision.
    """

    round: int
    pending_stake: Optional[int]
    pending_fees: Optional[int]
    stake_present: bool
    fees_present: bool

    @classmethod
    def from_amounts(cls, round_: int, amounts: PendingAmounts) -> "LockedSnapshot":
        """Build the memo from the amounts read this cycle."""
        return cls(
            round=round_,
            pending_stake=amounts.pending_stake,
            pending_fees=amounts.pending_fees,
            stake_present=amounts.pending_stake is not None,
            fees_present=amounts.pending_fees is not None,
        )


@dataclass(frozen=True)
class Receipt:
    """Normalized transaction receipt."""

    tx_id: str
    status: int
    block: Optional[int]
    gas_used: Optional[int] = None

    @property
    def success(self) -> bool:
        """Whether the transaction succeeded on chain."""
        return self.status == 1


@dataclass(frozen=True)
class Sent:
    """The transaction was sent and no receipt was awaited."""

    tx_id: str

    is_anomaly = False


@dataclass(frozen=True)
class Confirmed:
    """A receipt arrived. The transaction itself may still have reverted."""

    tx_id: str
    success: bool
    block: Optional[int]
    gas_used: Optional[int] = None

    @property
    def is_anomaly(self) -> bool:
        """A reverted transaction is reported as a warning."""
        return not self.success


@dataclass(frozen=True)
class ReceiptMissing:
    """The wait finished but produced no receipt."""

    tx_id: str

    is_anomaly = True


@dataclass(frozen=True)
class ReceiptError:
    """The receipt wait failed."""

    tx_id: str
    cause: str

    is_anomaly = True


@dataclass(frozen=True)
class ReceiptTimeout:
    """The receipt did not arrive in time."""

    tx_id: str

    is_anomaly = True


@dataclass(frozen=True)
class SubmitFailed:
    """The transaction was rejected before a hash was obtained."""

    cause: str

    is_anomaly = True


ActionOutcome = Union[
    Sent, Confirmed, ReceiptMissing, ReceiptError, ReceiptTimeout, SubmitFailed
]


@dataclass(frozen=True)
class SchedulerState:
    """State carried by the scheduler from one cycle to the next."""

    last_snapshot: Optional[RoundSnapshot] = None
    last_locked_memo: Optional[LockedSnapshot] = None
