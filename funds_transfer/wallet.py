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

"""This module loads the signing identity of the agent."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from eth_account import Account
from eth_account.signers.local import LocalAccount

from funds_transfer.errors import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SigningIdentity:
    """The account that signs every transaction sent by the agent."""

    account: LocalAccount

    @property
    def address(self) -> str:
        """Checksummed address of the signer."""
        return self.account.address


def read_passphrase(passphrase_file: Path) -> str:
    """Read the keystore passphrase, without the trailing newline."""
    logger.info(f"Loading passphrase file [{passphrase_file}]")
    try:
        with open(passphrase_file, "r", encoding="utf-8") as f:
            return f.read().rstrip()
    except OSError as e:
        raise ConfigurationError(
            f"Could not open passphrase file {passphrase_file}: {e}"
        ) from e


def load_signing_identity(key_file: Path, passphrase_file: Path) -> SigningIdentity:
    """Decrypt the JSON keystore with the passphrase stored in a file."""
    passphrase = read_passphrase(passphrase_file)

    logger.info(f"Loading private key json file [{key_file}]")
    try:
        with open(key_file, "r", encoding="utf-8") as f:
            keystore = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read key file {key_file}: {e}") from e

    try:
        # pylint: disable=no-value-for-parameter
        private_key = Account.decrypt(keystore, passphrase)
        account = Account.from_key(private_key)
    except Exception as e:  # pylint: disable=broad-except
        raise ConfigurationError(
            "Could not load wallet with the key and passphrase provided"
        ) from e

    logger.info(f"Loaded signing account [{account.address}]")
    return SigningIdentity(account=account)
