from typing import Callable, Iterable, Iterator

from ledger.domain import Category, CategoryTotal, Transaction


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def lazy_top_categories(
    breakdown: Iterable[CategoryTotal], k: int
) -> Iterator[tuple[Category, float]]:
    """Yield the ``k`` largest (category, total) pairs, biggest first."""
    ordered = sorted(breakdown, key=lambda item: item.total, reverse=True)

    for item in ordered[: max(0, k)]:
        yield item.category, item.total
