#!/usr/bin/env python3
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

"""Run the Livepeer orchestrator funds transfer agent."""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

import dotenv
from web3 import Web3

from funds_transfer.config import Settings, load_settings
from funds_transfer.contracts import BondingManagerExecutor, RoundsManagerOracle
from funds_transfer.decisions import DecisionEngine
from funds_transfer.errors import ConfigurationError, FundsTransferError
from funds_transfer.lifecycle import TransactionLifecycleManager
from funds_transfer.scheduler import Scheduler
from funds_transfer.status import print_status
from funds_transfer.wallet import SigningIdentity, load_signing_identity


LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger("funds_transfer")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the command line"""
    parser = argparse.ArgumentParser(
        prog="funds-transfer",
        description="Call reward, transfer bonded stake and withdraw fees "
        "for a Livepeer orchestrator.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="dotenv file to load (default: search for .env)",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="print the current round and pending actions, then exit",
    )
    return parser.parse_args(argv)


def load_identity(settings: Settings, required: bool) -> Optional[SigningIdentity]:
    """Load the signing identity if the key files are configured."""
    if settings.key_file is None or settings.passphrase_file is None:
        if required:
            raise ConfigurationError("JSON_KEY_FILE and PASSPHRASE_FILE are required")
        return None
    return load_signing_identity(settings.key_file, settings.passphrase_file)


def build_agent(
    settings: Settings, identity: Optional[SigningIdentity]
) -> Tuple[RoundsManagerOracle, BondingManagerExecutor, DecisionEngine]:
    """Wire the contracts and the decision engine."""
    account = settings.orchestrator_address or (identity and identity.address)
    if not account:
        raise ConfigurationError("ORCH_ETH_ADDR or a signing key is required")
    if identity is not None and account != identity.address:
        # Transactions act on the signer, reads would act on another account
        raise ConfigurationError(
            f"ORCH_ETH_ADDR [{account}] does not match the signing key "
            f"[{identity.address}]"
        )

    logger.info(f"Orchestrator address [{account}]")
    logger.info(f"Chain id [{settings.chain_id}]")
    if settings.transfer_bond is not None:
        logger.info(
            f"Transfer bond recipient [{settings.transfer_bond.receiver}] "
            f"retaining [{settings.transfer_bond.min_retain_wei}] WEI"
        )
    if settings.withdraw_fees is not None:
        logger.info(
            f"Fee recipient [{settings.withdraw_fees.receiver}] "
            f"threshold [{settings.withdraw_fees.threshold_wei}] WEI"
        )

    web3 = Web3(Web3.HTTPProvider(settings.rpc_url))
    oracle = RoundsManagerOracle(web3, settings.rounds_manager_address)
    executor = BondingManagerExecutor(
        web3, settings.bonding_manager_address, identity, settings.chain_id
    )
    engine = DecisionEngine(executor, account, settings)
    return oracle, executor, engine


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point."""
    args = parse_args(argv)
    dotenv.load_dotenv(args.env_file, override=True)
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    try:
        settings = load_settings()
        logging.getLogger().setLevel(settings.log_level)
        identity = load_identity(settings, required=not args.status)
        oracle, executor, engine = build_agent(settings, identity)
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        return 1

    if args.status:
        try:
            print_status(oracle, engine)
        except FundsTransferError as e:
            logger.error(f"Could not read the round state: {e}")
            return 1
        return 0

    lifecycle = TransactionLifecycleManager(
        executor, settings.receipt_timeout_seconds
    )
    scheduler = Scheduler(oracle, engine, lifecycle, settings)
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        logger.info("Agent stopped by user.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
