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

"""This module submits decided actions and waits for their receipts."""

import logging
import threading
from typing import Any, Dict

from funds_transfer.errors import ReceiptTimeoutError, SubmissionError
from funds_transfer.models import (
    ActionOutcome,
    Confirmed,
    ReceiptError,
    ReceiptMissing,
    ReceiptTimeout,
    Sent,
    SubmitFailed,
)


logger = logging.getLogger(__name__)


class TransactionLifecycleManager:
    """
    Submits one action and classifies what happened to it.

    A failed or unconfirmed action is never retried here. The next cycle
    evaluates the decision rules again against the chain, which is what
    decides whether the action is still due.
    """

    def __init__(self, executor: Any, receipt_timeout: float):
        """
        Initialize the manager.

        :param executor: the bonding manager executor used for submissions
        :param receipt_timeout: seconds to wait for a receipt, 0 to not wait
        """
        self.executor = executor
        self.receipt_timeout = receipt_timeout

    def execute(self, decision: Any) -> ActionOutcome:
        """Submit a decision and wait for its receipt."""
        try:
            handle = decision.submit(self.executor)
        except SubmissionError as e:
            return SubmitFailed(cause=str(e))
        except Exception as e:  # pylint: disable=broad-except
            logger.exception(f"Unexpected error submitting {decision.action}")
            return SubmitFailed(cause=f"{type(e).__name__}: {e}")

        if not self.receipt_timeout:
            return Sent(tx_id=handle.tx_id)

        return self.await_receipt(handle)

    def await_receipt(self, handle: Any) -> ActionOutcome:
        """Wait for a receipt, never longer than the receipt timeout."""
        tx_id = handle.tx_id
        result: Dict[str, Any] = {}

        def wait() -> None:
            try:
                result["receipt"] = handle.await_receipt(self.receipt_timeout)
            except Exception as e:  # pylint: disable=broad-except
                result["error"] = e

        logger.info(f"Waiting for transaction {tx_id} to be mined...")
        waiter = threading.Thread(target=wait, name=f"receipt-{tx_id}", daemon=True)
        waiter.start()
        waiter.join(self.receipt_timeout)

        # The waiter thread is abandoned if it is still blocked.
        if waiter.is_alive():
            return ReceiptTimeout(tx_id=tx_id)

        error = result.get("error")
        if isinstance(error, ReceiptTimeoutError):
            return ReceiptTimeout(tx_id=tx_id)
        if error is not None:
            return ReceiptError(tx_id=tx_id, cause=f"{type(error).__name__}: {error}")

        receipt = result.get("receipt")
        if receipt is None:
            return ReceiptMissing(tx_id=tx_id)

        return Confirmed(
            tx_id=tx_id,
            success=receipt.success,
            block=receipt.block,
            gas_used=receipt.gas_used,
        )


def log_outcome(action: str, outcome: ActionOutcome) -> None:
    """Report the outcome of an action."""
    level = logging.WARNING if outcome.is_anomaly else logging.INFO

    if isinstance(outcome, SubmitFailed):
        message = f"{action} transaction failed to send: {outcome.cause}"
    elif isinstance(outcome, Sent):
        message = f"{action} transaction sent. Hash: {outcome.tx_id}"
    elif isinstance(outcome, Confirmed):
        status = "successful" if outcome.success else "reverted"
        message = (
            f"{action} transaction {outcome.tx_id} {status} "
            f"in block {outcome.block}, gas used {outcome.gas_used}"
        )
    elif isinstance(outcome, ReceiptMissing):
        message = f"{action} transaction {outcome.tx_id} returned no receipt"
    elif isinstance(outcome, ReceiptError):
        message = f"Error waiting for {action} transaction {outcome.tx_id}: {outcome.cause}"
    else:
        message = f"{action} transaction {outcome.tx_id} not mined in time"

    logger.log(level, message)
