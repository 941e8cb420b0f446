"""
Karma Store

This module provides:
- Owner-managed registry of actions and their karma rewards
- Pending (incremental) karma accrual open to any caller
- Owner-triggered flush that settles all pending karma at once
- Single-lock serialization of every ledger operation
"""

from .models import (
    ActionReward,
    KarmaBalance,
    LedgerTotals,
    FlushResult,
)
from .service import (
    KarmaStore,
    KarmaStoreError,
    UnauthorizedError,
    DuplicateActionError,
    UnknownActionError,
    InvalidAmountError,
)

__all__ = [
    "ActionReward",
    "KarmaBalance",
    "LedgerTotals",
    "FlushResult",
    "KarmaStore",
    "KarmaStoreError",
    "UnauthorizedError",
    "DuplicateActionError",
    "UnknownActionError",
    "InvalidAmountError",
]
