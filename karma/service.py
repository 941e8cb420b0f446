import logging
import math
import threading
from datetime import datetime, timezone
from decimal import Decimal
from numbers import Real
from typing import Optional, Union

from .models import ActionReward, RewardResponse, KarmaBalance, LedgerTotals, FlushResult

logger = logging.getLogger(__name__)

Amount = Union[int, float, Decimal]


class KarmaStoreError(Exception):
    pass


class UnauthorizedError(KarmaStoreError):
    pass


class DuplicateActionError(KarmaStoreError):
    pass


class UnknownActionError(KarmaStoreError):
    pass


class InvalidAmountError(KarmaStoreError):
    pass


class InMemoryStorage:
    def __init__(self):
        self.rewards: dict[str, int] = {}
        self.settled: dict[str, int] = {}
        self.pending: dict[str, int] = {}
        self.total_pending: int = 0
        self.pending_user_count: int = 0


class KarmaStore:
    """Action registry plus a two-phase karma ledger.

    Rewards land in a per-user pending buffer; only the owner can ``flush``
    them into settled karma. Every call runs under one lock, so ``reward``
    and ``flush`` never interleave.
    """

    def __init__(self, owner: str, storage: Optional[InMemoryStorage] = None):
        self.owner = owner
        self.storage = storage or InMemoryStorage()
        self._lock = threading.RLock()

    # Action registry

    def register(self, caller: str, action_id: str, amount: Amount) -> ActionReward:
        with self._lock:
            self._require_owner(caller, "register")
            if action_id in self.storage.rewards:
                raise DuplicateActionError(f"Action {action_id!r} already exists")
            reward = self._floor_amount(amount)
            self.storage.rewards[action_id] = reward
            logger.info("Registered action %s with reward %d", action_id, reward)
            return ActionReward(action_id=action_id, reward=reward)

    def update(self, caller: str, action_id: str, amount: Amount) -> ActionReward:
        with self._lock:
            self._require_owner(caller, "update")
            if action_id not in self.storage.rewards:
                raise UnknownActionError(f"Action {action_id!r} does not exist")
            reward = self._floor_amount(amount)
            previous = self.storage.rewards[action_id]
            self.storage.rewards[action_id] = reward
            logger.info("Updated action %s reward %d -> %d", action_id, previous, reward)
            return ActionReward(action_id=action_id, reward=reward)

    def reward_of(self, action_id: str) -> int:
        with self._lock:
            return self.storage.rewards.get(action_id, 0)

    def list_actions(self) -> list[ActionReward]:
        with self._lock:
            return [
                ActionReward(action_id=action_id, reward=reward)
                for action_id, reward in self.storage.rewards.items()
            ]

    # Karma ledger

    def reward(self, caller: str, beneficiary: str, action_id: str, context: Optional[str] = None) -> RewardResponse:
        """Credit ``beneficiary`` with the current reward of ``action_id``.

        Anyone may call this. An unregistered action credits 0 without
        raising. ``context`` is only logged for auditing. The returned
        ``pending`` is read under the same lock as the credit.
        """
        with self._lock:
            amount = self.storage.rewards.get(action_id, 0)
            pending = self.storage.pending.get(beneficiary, 0)

            if amount:
                if pending == 0:
                    self.storage.pending_user_count += 1
                self.storage.pending[beneficiary] = pending + amount
                self.storage.total_pending += amount

            logger.debug(
                "Reward %s -> %s for %s: +%d (context=%s)",
                caller, beneficiary, action_id, amount, context,
            )
            return RewardResponse(
                beneficiary=beneficiary,
                action_id=action_id,
                amount=amount,
                pending=self.storage.pending.get(beneficiary, 0),
                message="Reward credited" if amount else "Action has no reward, nothing credited",
            )

    def flush(self, caller: str) -> FlushResult:
        with self._lock:
            self._require_owner(caller, "flush")

            settled_users = 0
            settled_karma = 0
            for user_id, pending in self.storage.pending.items():
                if pending == 0:
                    continue
                self.storage.settled[user_id] = self.storage.settled.get(user_id, 0) + pending
                settled_users += 1
                settled_karma += pending

            self.storage.pending.clear()
            self.storage.total_pending = 0
            self.storage.pending_user_count = 0

            logger.info("Flushed %d karma for %d users", settled_karma, settled_users)
            return FlushResult(
                settled_users=settled_users,
                settled_karma=settled_karma,
                flushed_at=datetime.now(timezone.utc),
            )

    def get_karma(self, user_id: str) -> int:
        with self._lock:
            return self.storage.settled.get(user_id, 0)

    def get_incremental_karma(self, user_id: str) -> int:
        with self._lock:
            return self.storage.pending.get(user_id, 0)

    def get_total_incremental_karma(self) -> int:
        with self._lock:
            return self.storage.total_pending

    def get_incremented_users_count(self) -> int:
        with self._lock:
            return self.storage.pending_user_count

    def get_balance(self, user_id: str) -> KarmaBalance:
        with self._lock:
            return KarmaBalance(
                user_id=user_id,
                settled=self.storage.settled.get(user_id, 0),
                pending=self.storage.pending.get(user_id, 0),
            )

    def get_totals(self) -> LedgerTotals:
        with self._lock:
            return LedgerTotals(
                total_incremental_karma=self.storage.total_pending,
                incremented_users_count=self.storage.pending_user_count,
            )

    def _require_owner(self, caller: str, operation: str) -> None:
        if caller != self.owner:
            logger.warning("Rejected %s from non-owner %s", operation, caller)
            raise UnauthorizedError(f"Only the owner may {operation}")

    @staticmethod
    def _floor_amount(amount: Amount) -> int:
        # bool is an int subclass but never a meaningful reward
        if isinstance(amount, bool) or not isinstance(amount, (Real, Decimal)):
            raise InvalidAmountError(f"Reward must be a number, got {amount!r}")
        if isinstance(amount, Decimal):
            finite = amount.is_finite()
        else:
            finite = not isinstance(amount, float) or math.isfinite(amount)
        if not finite:
            raise InvalidAmountError(f"Reward must be finite, got {amount!r}")
        if amount < 0:
            raise InvalidAmountError(f"Reward must be non-negative, got {amount!r}")
        return math.floor(amount)
