"""Month-scoped read model built from raw transactions and bills."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ledger.bills import is_paid, paid_total, remaining
from ledger.dates import day_of_month, days_in_month, format_currency, today_iso
from ledger.domain import (
    Bill,
    BillType,
    Category,
    CategoryTotal,
    MonthlySnapshot,
    RecurringIncome,
    Transaction,
    TransactionType,
)
from ledger.filters import month_bills, month_transactions

logger = logging.getLogger(__name__)


def calculate_snapshot(
    transactions: Iterable[Transaction],
    bills: Iterable[Bill],
    month_key: str,
    monthly_budget: float,
    today: Optional[str] = None,
) -> MonthlySnapshot:
    """Aggregate one calendar month.

    Overdue/upcoming partitioning is always relative to the real current
    date (``today``), never to the month being viewed.
    """
    month_tx = month_transactions(tuple(transactions), month_key)
    month_bl = month_bills(tuple(bills), month_key)

    incomes_total = sum(t.amount for t in month_tx if t.type is TransactionType.INCOME)
    expenses_total = sum(t.amount for t in month_tx if t.type is TransactionType.EXPENSE)

    open_bills = tuple(b for b in month_bl if not is_paid(b))
    bills_to_receive = sum(remaining(b) for b in open_bills if b.type is BillType.RECEIVE)
    bills_to_pay = sum(remaining(b) for b in open_bills if b.type is BillType.PAY)
    bills_paid_so_far = sum(paid_total(b) for b in month_bl if b.type is BillType.PAY)

    projected_balance = incomes_total - expenses_total + bills_to_receive - bills_to_pay

    now = today_iso(today)
    overdue_bills = tuple(b for b in open_bills if b.due_date < now)
    upcoming_bills = tuple(
        sorted((b for b in open_bills if b.due_date >= now), key=lambda b: b.due_date)
    )

    total_spent = expenses_total + bills_paid_so_far
    budget_usage_percent = total_spent / monthly_budget * 100 if monthly_budget > 0 else 0.0

    snapshot = MonthlySnapshot(
        month_key=month_key,
        incomes_total=incomes_total,
        expenses_total=expenses_total,
        bills_to_receive=bills_to_receive,
        bills_to_pay=bills_to_pay,
        bills_paid_so_far=bills_paid_so_far,
        projected_balance=projected_balance,
        daily_balance_series=build_daily_balance_series(month_tx, month_bl, month_key),
        overdue_bills=overdue_bills,
        upcoming_bills=upcoming_bills,
        budget_usage_percent=budget_usage_percent,
        category_breakdown=category_breakdown(month_tx, month_bl),
    )
    logger.debug(
        "snapshot %s: income=%.2f expenses=%.2f projected=%.2f",
        month_key, incomes_total, expenses_total, projected_balance,
    )
    return snapshot


def category_breakdown(
    transactions: Iterable[Transaction], bills: Iterable[Bill]
) -> tuple[CategoryTotal, ...]:
    """Expense transactions plus pay-bills at their full amount, largest first."""
    totals: dict[Category, float] = defaultdict(float)
    for t in transactions:
        if t.type is TransactionType.EXPENSE:
            totals[t.category] += t.amount
    for b in bills:
        if b.type is BillType.PAY:
            totals[b.category] += b.amount

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return tuple(CategoryTotal(category=c, total=total) for c, total in ordered)


def build_daily_balance_series(
    transactions: Iterable[Transaction], bills: Iterable[Bill], month_key: str
) -> tuple[float, ...]:
    total_days = days_in_month(month_key)
    by_day: dict[int, float] = defaultdict(float)

    for t in transactions:
        signed = t.amount if t.type is TransactionType.INCOME else -t.amount
        by_day[day_of_month(t.date)] += signed

    for b in bills:
        if is_paid(b):
            continue
        signed = remaining(b) if b.type is BillType.RECEIVE else -remaining(b)
        by_day[day_of_month(b.due_date)] += signed

    running = 0.0
    series = []
    for day in range(1, total_days + 1):
        running += by_day.get(day, 0.0)
        series.append(running)
    return tuple(series)


@dataclass(frozen=True)
class DayFlow:
    day: int
    inflow: float
    outflow: float
    balance: float
    labels: tuple[str, ...] = field(default=())


def daily_cash_flow(
    month_key: str,
    transactions: Iterable[Transaction],
    bills: Iterable[Bill],
    recurring_incomes: Iterable[RecurringIncome],
) -> tuple[DayFlow, ...]:
    """Day-by-day cash flow including salary days, for the timeline view."""
    total_days = days_in_month(month_key)
    inflow: dict[int, float] = defaultdict(float)
    outflow: dict[int, float] = defaultdict(float)
    labels: dict[int, list[str]] = defaultdict(list)

    for r in recurring_incomes:
        if not r.active:
            continue
        day = min(max(r.pay_day, 1), total_days)
        inflow[day] += r.amount
        labels[day].append(f"{r.title}: +{format_currency(r.amount)}")

    for t in month_transactions(tuple(transactions), month_key):
        day = day_of_month(t.date)
        if t.type is TransactionType.INCOME:
            inflow[day] += t.amount
            labels[day].append(f"{t.title}: +{format_currency(t.amount)}")
        else:
            outflow[day] += t.amount
            labels[day].append(f"{t.title}: -{format_currency(t.amount)}")

    for b in month_bills(tuple(bills), month_key):
        if is_paid(b):
            continue
        day = day_of_month(b.due_date)
        owed = remaining(b)
        if b.type is BillType.PAY:
            outflow[day] += owed
            labels[day].append(f"{b.title}: -{format_currency(owed)}")
        else:
            inflow[day] += owed
            labels[day].append(f"{b.title}: +{format_currency(owed)}")

    running = 0.0
    flows = []
    for day in range(1, total_days + 1):
        running += inflow[day] - outflow[day]
        flows.append(DayFlow(day, inflow[day], outflow[day], running, tuple(labels[day])))
    return tuple(flows)


def monthly_history(
    transactions: Iterable[Transaction],
    bills: Iterable[Bill],
    month_keys: Iterable[str],
    monthly_budget: float,
    today: Optional[str] = None,
) -> tuple[MonthlySnapshot, ...]:
    trans = tuple(transactions)
    bill_list = tuple(bills)
    return tuple(
        calculate_snapshot(trans, bill_list, key, monthly_budget, today=today) for key in month_keys
    )
