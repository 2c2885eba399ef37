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
Round state tracking.

The transition computed here only selects how loudly a cycle is reported.
Actions are always gated on the live round state, so a fresh process with
no previous snapshot behaves exactly like a long running one.
"""

import logging
from typing import Optional

from funds_transfer.models import LockedSnapshot, RoundSnapshot, Transition


def observe(current: RoundSnapshot, previous: Optional[RoundSnapshot]) -> Transition:
    """Compare the current snapshot with the previous one."""
    return Transition(changed=current != previous)


def memo_changed(current: LockedSnapshot, previous: Optional[LockedSnapshot]) -> bool:
    """Whether the locked round report differs from the last one."""
    return current != previous


def report_level(transition: Transition) -> int:
    """Log level for a cycle report."""
    return logging.INFO if transition.changed else logging.DEBUG
