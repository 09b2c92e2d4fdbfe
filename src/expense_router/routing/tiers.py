"""Budget tier table snapshot with amount lookup."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Iterator
from decimal import Decimal

from expense_router.routing.types import BudgetTierRecord


class BudgetTierTable:
    """Immutable snapshot of active budget tiers.

    Inactive tiers are dropped on construction. Tiers are kept in
    (min_amount, max_amount, name, id) order; when active tiers overlap,
    the first one in that order wins.
    """

    def __init__(self, tiers: Iterable[BudgetTierRecord]):
        self._tiers: tuple[BudgetTierRecord, ...] = tuple(
            sorted(
                (t for t in tiers if t.is_active),
                key=lambda t: (t.min_amount, t.max_amount, t.name, str(t.budget_tier_id)),
            )
        )
        self._version: str | None = None

    def __len__(self) -> int:
        return len(self._tiers)

    def __iter__(self) -> Iterator[BudgetTierRecord]:
        return iter(self._tiers)

    def match(self, amount: Decimal) -> BudgetTierRecord | None:
        """First active tier whose range contains the amount."""
        for tier in self._tiers:
            if tier.contains(amount):
                return tier
        return None

    def overlapping_pairs(self) -> list[tuple[BudgetTierRecord, BudgetTierRecord]]:
        """Pairs of active tiers whose ranges intersect."""
        pairs = []
        for i, first in enumerate(self._tiers):
            for second in self._tiers[i + 1 :]:
                if second.min_amount > first.max_amount:
                    break
                pairs.append((first, second))
        return pairs

    @property
    def version(self) -> str:
        """Deterministic digest of the snapshot content."""
        if self._version is None:
            payload = [t.to_canonical_dict() for t in self._tiers]
            json_str = json.dumps(payload, sort_keys=True)
            self._version = hashlib.sha256(json_str.encode()).hexdigest()[:32]
        return self._version
