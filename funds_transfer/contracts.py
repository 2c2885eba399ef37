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

"""This package contains code to interact with the Livepeer round and bonding contracts."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from web3 import Web3
from web3.contract import Contract
from web3.exceptions import TimeExhausted, TransactionNotFound

from funds_transfer.errors import (
    ContractReadError,
    OracleReadError,
    ReceiptTimeoutError,
    SubmissionError,
)
from funds_transfer.models import Receipt, RoundSnapshot
from funds_transfer.wallet import SigningIdentity


logger = logging.getLogger(__name__)

ABI_DIR = Path(__file__).parent / "abis"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
GAS_MARGIN = 1.1


def load_contract(web3: Web3, contract_address: str, abi_name: str) -> Contract:
    """Load a smart contract from the bundled ABIs"""
    with open(ABI_DIR / f"{abi_name}.json", "r", encoding="utf-8") as abi_file:
        contract_abi = json.load(abi_file)

    contract = web3.eth.contract(
        address=web3.to_checksum_address(contract_address), abi=contract_abi
    )
    return contract


class RoundsManagerOracle:
    """Read-only view of the current round."""

    def __init__(self, web3: Web3, contract_address: str):
        self.web3 = web3
        self.contract = load_contract(web3, contract_address, "RoundsManager")

    def _call(self, function_name: str) -> Any:
        """Call a view function"""
        try:
            return getattr(self.contract.functions, function_name)().call()
        except Exception as e:  # pylint: disable=broad-except
            raise OracleReadError(f"{function_name} call failed: {e}") from e

    def current_round(self) -> int:
        """Get the current round number."""
        return self._call("currentRound")

    def current_round_initialized(self) -> bool:
        """Check whether the current round has been initialized."""
        return self._call("currentRoundInitialized")

    def current_round_locked(self) -> bool:
        """Check whether the current round is locked."""
        return self._call("currentRoundLocked")

    def snapshot(self) -> RoundSnapshot:
        """Read the full round state."""
        return RoundSnapshot(
            round=self.current_round(),
            initialized=self.current_round_initialized(),
            locked=self.current_round_locked(),
        )


class Web3SubmissionHandle:
    """A sent transaction whose receipt can be awaited."""

    def __init__(self, web3: Web3, tx_hash: Any):
        self.web3 = web3
        self.tx_hash = tx_hash

    @property
    def tx_id(self) -> str:
        """Hex transaction hash."""
        return Web3.to_hex(self.tx_hash)

    def await_receipt(self, timeout: float) -> Optional[Receipt]:
        """Wait for the transaction to be mined."""
        try:
            receipt = self.web3.eth.wait_for_transaction_receipt(
                self.tx_hash, timeout=timeout
            )
        except TimeExhausted as e:
            raise ReceiptTimeoutError(
                f"No receipt for {self.tx_id} after {timeout} seconds"
            ) from e
        except TransactionNotFound:
            return None

        if not receipt:
            return None

        return Receipt(
            tx_id=self.tx_id,
            status=receipt["status"],
            block=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )


class BondingManagerExecutor:
    """Reads account balances and sends the bonding manager transactions."""

    def __init__(
        self,
        web3: Web3,
        contract_address: str,
        identity: Optional[SigningIdentity],
        chain_id: int,
    ):
        self.web3 = web3
        self.identity = identity
        self.chain_id = chain_id
        self.contract = load_contract(web3, contract_address, "BondingManager")

    def _call(self, function_name: str, *args: Any) -> Any:
        """Call a view function"""
        try:
            return getattr(self.contract.functions, function_name)(*args).call()
        except Exception as e:  # pylint: disable=broad-except
            raise ContractReadError(f"{function_name} call failed: {e}") from e

    def last_reward_round(self, account: str) -> int:
        """Get the last round in which the transcoder called reward."""
        return self._call("getTranscoder", account)[0]

    def pending_stake(self, account: str, as_of_round: int) -> int:
        """Get the pending stake of an account."""
        return self._call("pendingStake", account, as_of_round)

    def pending_fees(self, account: str, as_of_round: int) -> int:
        """Get the pending fees of an account."""
        return self._call("pendingFees", account, as_of_round)

    def estimate_gas(self, func: Any) -> int:
        """Estimate gas for a contract function call."""
        estimated_gas = func.estimate_gas({"from": self.identity.address})
        return int(estimated_gas * GAS_MARGIN)

    def calculate_transaction_params(self, func: Any) -> dict:
        """Calculate transaction parameters for a contract function call."""
        params = {
            "from": self.identity.address,
            "nonce": self.web3.eth.get_transaction_count(self.identity.address),
            "chainId": self.chain_id,
            "gas": self.estimate_gas(func),
            "gasPrice": self.web3.eth.gas_price,
        }
        return params

    def has_pending_transaction(self) -> bool:
        """Check whether the signer has a sent transaction that is not mined yet."""
        latest_nonce = self.web3.eth.get_transaction_count(
            self.identity.address, block_identifier="latest"
        )
        pending_nonce = self.web3.eth.get_transaction_count(
            self.identity.address, block_identifier="pending"
        )
        return pending_nonce != latest_nonce

    def _submit(self, function_name: str, *args: Any) -> Web3SubmissionHandle:
        """Build, sign and send a transaction"""
        if self.identity is None:
            raise SubmissionError(f"{function_name} needs a signing identity")
        try:
            pending = self.has_pending_transaction()
        except Exception as e:  # pylint: disable=broad-except
            raise SubmissionError(f"{function_name} nonce check failed: {e}") from e
        if pending:
            # The nonce would collide with the unmined transaction
            raise SubmissionError(
                f"{function_name} not sent: previous transaction still pending"
            )
        try:
            func = getattr(self.contract.functions, function_name)(*args)
            transaction = func.build_transaction(
                self.calculate_transaction_params(func)
            )
            signed_txn = self.identity.account.sign_transaction(transaction)
            tx_hash = self.web3.eth.send_raw_transaction(signed_txn.raw_transaction)
        except Exception as e:  # pylint: disable=broad-except
            raise SubmissionError(f"{function_name} submission failed: {e}") from e

        handle = Web3SubmissionHandle(self.web3, tx_hash)
        logger.info(f"{function_name} transaction sent. Hash: {handle.tx_id}")
        return handle

    def submit_reward(self) -> Web3SubmissionHandle:
        """Call reward for the current round."""
        return self._submit("reward")

    def submit_transfer_bond(  # pylint: disable=too-many-arguments
        self,
        receiver: str,
        amount: int,
        old_delegate_new_pos_prev: str,
        old_delegate_new_pos_next: str,
        new_delegate_new_pos_prev: str,
        new_delegate_new_pos_next: str,
    ) -> Web3SubmissionHandle:
        """Transfer part of the bonded stake to another delegator."""
        return self._submit(
            "transferBond",
            receiver,
            amount,
            old_delegate_new_pos_prev,
            old_delegate_new_pos_next,
            new_delegate_new_pos_prev,
            new_delegate_new_pos_next,
        )

    def submit_withdraw_fees(self, receiver: str, amount: int) -> Web3SubmissionHandle:
        """Withdraw fees to a recipient."""
        return self._submit("withdrawFees", receiver, amount)
