from typing import Callable

from ledger.bills import is_paid
from ledger.dates import is_same_month
from ledger.domain import Bill, Category, Transaction, TransactionType


def by_month(month_key: str) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return is_same_month(t.date, month_key)

    return _filter


def by_type(kind: TransactionType) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return t.type is kind

    return _filter


def by_category(category: Category) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return t.category is category

    return _filter


def by_date_range(start: str, end: str) -> Callable[[Transaction], bool]:
    def _filter(t: Transaction) -> bool:
        return start <= t.date <= end

    return _filter


def bills_due_in(month_key: str) -> Callable[[Bill], bool]:
    def _filter(b: Bill) -> bool:
        return is_same_month(b.due_date, month_key)

    return _filter


def unpaid(b: Bill) -> bool:
    return not is_paid(b)


def month_transactions(trans: tuple[Transaction, ...], month_key: str) -> tuple[Transaction, ...]:
    return tuple(filter(by_month(month_key), trans))


def month_bills(bills: tuple[Bill, ...], month_key: str) -> tuple[Bill, ...]:
    return tuple(filter(bills_due_in(month_key), bills))
