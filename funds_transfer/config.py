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

"""This module contains the agent settings and their validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from web3 import Web3

from funds_transfer.errors import ConfigurationError


ARBITRUM_CHAIN_ID = 42161
BONDING_MANAGER_ADDRESS = "0x35Bcf3c30594191d53231E4FF333E8A770453e40"
ROUNDS_MANAGER_ADDRESS = "0xdd6f56DcC28D3F5f27084381fE8Df634985cc39f"
DEFAULT_POLL_INTERVAL_SECONDS = 6
DEFAULT_RECEIPT_TIMEOUT_SECONDS = 90
MAX_UINT256 = 2**256 - 1

ENV_VARS = {
    "rpc_url": "RPC_ENDPOINT_URL",
    "chain_id": "CHAIN_ID",
    "key_file": "JSON_KEY_FILE",
    "passphrase_file": "PASSPHRASE_FILE",
    "orchestrator_address": "ORCH_ETH_ADDR",
    "bonding_manager_address": "BONDING_MANAGER_ADDRESS",
    "rounds_manager_address": "ROUNDS_MANAGER_ADDRESS",
    "poll_interval_seconds": "POLL_INTERVAL_SECONDS",
    "receipt_timeout_seconds": "RECEIPT_TIMEOUT_SECONDS",
    "log_level": "LOG_LEVEL",
}

ENABLE_REWARD = "ENABLE_REWARD"
ENABLE_TRANSFER_BOND = "ENABLE_TRANSFER_BOND"
ENABLE_WITHDRAW_FEES = "ENABLE_WITHDRAW_FEES"
TRANSFER_BOND_RECEIVER = "TRANSFER_BOND_RECIPIENT_ETH_ADDR"
MIN_RETAIN_WEI = "MIN_RETAIN_WEI"
FEE_RECEIVER = "ETH_FEE_RECIPIENT_ETH_ADDR"
WITHDRAW_THRESHOLD_WEI = "WITHDRAW_THRESHOLD_WEI"


def _checksum(value: str) -> str:
    """Validate and checksum an address"""
    if not Web3.is_address(value):
        raise ValueError(f"{value!r} is not a valid address")
    return Web3.to_checksum_address(value)


def _uint256(value: int) -> int:
    """Validate a wei amount"""
    if not 0 <= value <= MAX_UINT256:
        raise ValueError(f"{value} is not a valid uint256 amount")
    return value


class TransferBondParams(BaseModel):
    """Parameters of the transfer bond action."""

    model_config = ConfigDict(frozen=True)

    receiver: str
    min_retain_wei: int

    @field_validator("receiver")
    @classmethod
    def check_receiver(cls, value: str) -> str:
        """Checksum the receiver address."""
        return _checksum(value)

    @field_validator("min_retain_wei")
    @classmethod
    def check_amount(cls, value: int) -> int:
        """Amounts are uint256."""
        return _uint256(value)


class WithdrawFeesParams(BaseModel):
    """Parameters of the withdraw fees action."""

    model_config = ConfigDict(frozen=True)

    receiver: str
    threshold_wei: int

    @field_validator("receiver")
    @classmethod
    def check_receiver(cls, value: str) -> str:
        """Checksum the receiver address."""
        return _checksum(value)

    @field_validator("threshold_wei")
    @classmethod
    def check_amount(cls, value: int) -> int:
        """Amounts are uint256."""
        return _uint256(value)


class Settings(BaseModel):
    """
    Agent settings.

    An action whose parameters are ``None`` is disabled. Enabled actions
    always carry validated parameters, so the rest of the agent never
    re-checks them.
    """

    model_config = ConfigDict(frozen=True)

    rpc_url: str
    chain_id: int = ARBITRUM_CHAIN_ID
    key_file: Optional[Path] = None
    passphrase_file: Optional[Path] = None
    orchestrator_address: Optional[str] = None
    bonding_manager_address: str = BONDING_MANAGER_ADDRESS
    rounds_manager_address: str = ROUNDS_MANAGER_ADDRESS
    reward_enabled: bool = False
    transfer_bond: Optional[TransferBondParams] = None
    withdraw_fees: Optional[WithdrawFeesParams] = None
    poll_interval_seconds: int = DEFAULT_POLL_INTERVAL_SECONDS
    receipt_timeout_seconds: int = DEFAULT_RECEIPT_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @field_validator(
        "orchestrator_address", "bonding_manager_address", "rounds_manager_address"
    )
    @classmethod
    def check_address(cls, value: Optional[str]) -> Optional[str]:
        """Checksum the contract and account addresses."""
        return None if value is None else _checksum(value)

    @field_validator("poll_interval_seconds")
    @classmethod
    def check_poll_interval(cls, value: int) -> int:
        """The loop needs a positive interval."""
        if value <= 0:
            raise ValueError("poll interval must be positive")
        return value

    @field_validator("receipt_timeout_seconds")
    @classmethod
    def check_receipt_timeout(cls, value: int) -> int:
        """Zero disables receipt waiting."""
        if value < 0:
            raise ValueError("receipt timeout cannot be negative")
        return value

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Normalize the log level name."""
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value

    @property
    def locked_actions_enabled(self) -> bool:
        """Whether any action gated on a locked round is enabled."""
        return self.transfer_bond is not None or self.withdraw_fees is not None

    def enabled_actions(self) -> List[str]:
        """Names of the enabled actions."""
        actions = []
        if self.reward_enabled:
            actions.append("reward")
        if self.transfer_bond is not None:
            actions.append("transfer_bond")
        if self.withdraw_fees is not None:
            actions.append("withdraw_fees")
        return actions


def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    """Get a non-empty environment value"""
    value = env.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _flag(env: Mapping[str, str], name: str) -> bool:
    """Parse a boolean flag"""
    value = _get(env, name)
    if value is None:
        return False
    try:
        return TypeAdapter(bool).validate_python(value)
    except ValidationError as e:
        raise ConfigurationError(f"{name} is not a boolean: {value!r}") from e


def _require(env: Mapping[str, str], action: str, names: List[str]) -> Dict[str, str]:
    """Get the parameters required by an enabled action"""
    values = {name: _get(env, name) for name in names}
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise ConfigurationError(
            f"{action} is enabled but {', '.join(missing)} missing"
        )
    return values  # type: ignore


def _format_validation_error(error: ValidationError) -> str:
    """Turn a pydantic error into a single line"""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in error.errors()
    )


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build and validate the settings from the environment."""
    env = os.environ if env is None else env

    raw: Dict[str, Any] = {}
    for field_name, var_name in ENV_VARS.items():
        value = _get(env, var_name)
        if value is not None:
            raw[field_name] = value

    if "rpc_url" not in raw:
        raise ConfigurationError(f"{ENV_VARS['rpc_url']} missing")

    raw["reward_enabled"] = _flag(env, ENABLE_REWARD)

    if _flag(env, ENABLE_TRANSFER_BOND):
        values = _require(
            env, ENABLE_TRANSFER_BOND, [TRANSFER_BOND_RECEIVER, MIN_RETAIN_WEI]
        )
        raw["transfer_bond"] = {
            "receiver": values[TRANSFER_BOND_RECEIVER],
            "min_retain_wei": values[MIN_RETAIN_WEI],
        }

    if _flag(env, ENABLE_WITHDRAW_FEES):
        values = _require(
            env, ENABLE_WITHDRAW_FEES, [FEE_RECEIVER, WITHDRAW_THRESHOLD_WEI]
        )
        raw["withdraw_fees"] = {
            "receiver": values[FEE_RECEIVER],
            "threshold_wei": values[WITHDRAW_THRESHOLD_WEI],
        }

    try:
        return Settings(**raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid settings: {_format_validation_error(e)}"
        ) from e
