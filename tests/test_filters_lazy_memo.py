from ledger.dates import (
    days_in_month,
    format_date,
    month_day,
    month_label,
    previous_month_keys,
    shift_month,
)
from ledger.domain import Category, CategoryTotal, Transaction, TransactionType
from ledger.filters import by_category, by_date_range, by_month, by_type, month_transactions
from ledger.lazy import iter_transactions, lazy_top_categories
from ledger.memo import average_monthly_spending


def make_tx(id, amount, date, category=Category.FOOD, kind=TransactionType.EXPENSE):
    return Transaction(id=id, title=id, amount=amount, date=date, type=kind, category=category)


TRANS = (
    make_tx("t1", 100, "2025-07-03"),
    make_tx("t2", 50, "2025-08-10", Category.TRANSPORT),
    make_tx("t3", 200, "2025-08-15"),
    make_tx("t4", 3000, "2025-08-05", Category.SALARY, TransactionType.INCOME),
    make_tx("t5", 80, "2025-09-01"),
)


def test_by_month_and_type():
    august = month_transactions(TRANS, "2025-08")
    assert [t.id for t in august] == ["t2", "t3", "t4"]
    assert [t.id for t in filter(by_type(TransactionType.INCOME), TRANS)] == ["t4"]
    assert by_month("2025-09")(TRANS[4])


def test_by_category_and_range():
    food = list(filter(by_category(Category.FOOD), TRANS))
    assert [t.id for t in food] == ["t1", "t3", "t5"]
    in_range = list(filter(by_date_range("2025-08-01", "2025-08-31"), TRANS))
    assert len(in_range) == 3


def test_iter_transactions_is_lazy():
    gen = iter_transactions(TRANS, by_category(Category.FOOD))
    assert next(gen).id == "t1"
    assert [t.id for t in gen] == ["t3", "t5"]


def test_lazy_top_categories():
    breakdown = (
        CategoryTotal(Category.FOOD, 50),
        CategoryTotal(Category.HOUSING, 900),
        CategoryTotal(Category.TRANSPORT, 120),
    )
    top = list(lazy_top_categories(breakdown, 2))
    assert top == [(Category.HOUSING, 900), (Category.TRANSPORT, 120)]
    assert list(lazy_top_categories(breakdown, 0)) == []


def test_average_monthly_spending():
    months = ("2025-07", "2025-08")
    assert average_monthly_spending(Category.FOOD, TRANS, months) == 150
    assert average_monthly_spending(Category.SALARY, TRANS, months) == 0
    assert average_monthly_spending(Category.FOOD, TRANS, ()) == 0


def test_month_helpers():
    assert days_in_month("2024-02") == 29
    assert month_day("2025-02", 31) == "2025-02-28"
    assert month_day("2025-02", 0) == "2025-02-01"
    assert shift_month("2025-01", -1) == "2024-12"
    assert shift_month("2025-12", 1) == "2026-01"
    assert previous_month_keys("2025-02", 3) == ("2024-11", "2024-12", "2025-01")
    assert month_label("2025-09") == "September 2025"
    assert format_date("2025-09-03") == "03/09/2025"
