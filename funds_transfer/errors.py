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

"""Errors raised by the funds transfer agent."""


class FundsTransferError(Exception):
    """Base class for all agent errors."""


class ConfigurationError(FundsTransferError):
    """A required setting is missing or malformed. Fatal at startup."""


class OracleReadError(FundsTransferError):
    """The round state could not be read."""


class ContractReadError(FundsTransferError):
    """A bonding manager read call failed."""


class SubmissionError(FundsTransferError):
    """A transaction could not be submitted."""


class ReceiptTimeoutError(FundsTransferError):
    """The receipt did not arrive within the wait bound."""
