from collections import defaultdict
from functools import lru_cache

from ledger.domain import Category, Transaction, TransactionType


@lru_cache(maxsize=256)
def average_monthly_spending(
    category: Category, transactions: tuple[Transaction, ...], months: tuple[str, ...]
) -> float:
    """Average expense per month for ``category`` over the given month keys."""
    if not months:
        return 0.0

    monthly: dict[str, float] = defaultdict(float)
    for t in transactions:
        if t.category is category and t.type is TransactionType.EXPENSE:
            monthly[t.date[:7]] += t.amount

    return sum(monthly[m] for m in months) / len(months)
