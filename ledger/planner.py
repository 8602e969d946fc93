"""Greedy allocation of dated income against outstanding obligations.

One routine, :func:`allocate`, serves both the hypothetical sandbox and the
real-bills plan; :func:`plan_sandbox` and :func:`plan_bills` only translate
their inputs into :class:`IncomeEvent` and :class:`Obligation` values.

For every income event, in date order, the routine pays obligations already
due on or before that date (earliest due first), then reserves for
obligations due later (earliest due first), and books whatever is left as
free cash.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from ledger.bills import is_paid, remaining
from ledger.dates import days_in_month, format_currency, format_date, month_day, today_iso
from ledger.domain import AppState, BillType, Frequency, RecurringIncome

logger = logging.getLogger(__name__)

REASON_DUE = "already due / overdue"
REASON_RESERVE = "reserve for upcoming due date"
REASON_FREE = "left over after covering obligations"
FREE_TARGET = "Free cash"
# balances at or below this are float residue, not money
EPSILON = 1e-9


@dataclass(frozen=True)
class IncomeEvent:
    date: str
    title: str
    amount: float


@dataclass(frozen=True)
class Obligation:
    id: str
    title: str
    due_date: str
    remaining: float


@dataclass(frozen=True)
class Allocation:
    target: str
    amount: float
    reason: str
    obligation_id: Optional[str] = None     # None for free cash

    @property
    def is_free(self) -> bool:
        return self.obligation_id is None


@dataclass(frozen=True)
class PlanStep:
    date: str
    source: str
    received: float
    allocations: tuple[Allocation, ...]
    remaining_free_this_step: float
    cumulative_free: float


@dataclass(frozen=True)
class PlanResult:
    steps: tuple[PlanStep, ...]
    total_income: float
    total_obligations: float
    final_free: float
    uncovered: dict = field(default_factory=dict)   # obligation id -> unpaid amount
    warnings: tuple[str, ...] = ()
    advice: tuple[str, ...] = ()


@dataclass(frozen=True)
class SandboxEntry:
    id: str
    type: str                 # "income" or "expense"
    title: str
    amount: float
    date: str


def _pay(
    obligations: Sequence[Obligation],
    balances: dict[str, float],
    budget: float,
    reason: str,
) -> tuple[list[Allocation], float]:
    allocations = []
    for ob in obligations:
        owed = balances[ob.id]
        if owed <= EPSILON or budget <= EPSILON:
            continue
        amount = min(owed, budget)
        allocations.append(Allocation(target=ob.title, amount=amount, reason=reason, obligation_id=ob.id))
        balances[ob.id] = owed - amount
        budget -= amount
    return allocations, budget


def allocate(
    incomes: Iterable[IncomeEvent],
    obligations: Iterable[Obligation],
) -> PlanResult:
    income_list = sorted(incomes, key=lambda e: e.date)
    ob_list = sorted(obligations, key=lambda o: o.due_date)

    total_income = sum(e.amount for e in income_list)
    balances = {o.id: max(o.remaining, 0.0) for o in ob_list}
    total_obligations = sum(balances.values())

    steps = []
    cumulative_free = 0.0
    for event in income_list:
        due = [o for o in ob_list if o.due_date <= event.date]
        later = [o for o in ob_list if o.due_date > event.date]

        paid_due, budget = _pay(due, balances, event.amount, REASON_DUE)
        paid_later, budget = _pay(later, balances, budget, REASON_RESERVE)
        allocations = paid_due + paid_later

        cumulative_free += budget
        if budget > EPSILON:
            allocations.append(Allocation(target=FREE_TARGET, amount=budget, reason=REASON_FREE))

        steps.append(
            PlanStep(
                date=event.date,
                source=event.title,
                received=event.amount,
                allocations=tuple(allocations),
                remaining_free_this_step=budget,
                cumulative_free=cumulative_free,
            )
        )

    warnings = []
    if not income_list:
        warnings.append("Add at least one income to build a plan.")
    if total_obligations > total_income:
        shortfall = total_obligations - total_income
        warnings.append(
            f"Obligations ({format_currency(total_obligations)}) exceed income "
            f"({format_currency(total_income)}) by {format_currency(shortfall)}. "
            "Cut expenses or find extra income."
        )

    uncovered = {}
    for ob in ob_list:
        if balances[ob.id] > EPSILON:
            uncovered[ob.id] = balances[ob.id]
            warnings.append(f"{ob.title} will be left with {format_currency(balances[ob.id])} uncovered.")

    if income_list and ob_list and ob_list[0].due_date < income_list[0].date:
        first_ob, first_income = ob_list[0], income_list[0]
        warnings.append(
            f'"{first_ob.title}" is due on {format_date(first_ob.due_date)}, before the first income '
            f"on {format_date(first_income.date)}. Set this amount aside in advance."
        )

    if uncovered:
        logger.warning("plan leaves %d obligation(s) uncovered", len(uncovered))

    return PlanResult(
        steps=tuple(steps),
        total_income=total_income,
        total_obligations=total_obligations,
        final_free=max(total_income - total_obligations, 0.0),
        uncovered=uncovered,
        warnings=tuple(warnings),
        advice=tuple(_advice(income_list, ob_list, total_income, total_obligations)),
    )


def _advice(
    incomes: list[IncomeEvent],
    obligations: list[Obligation],
    total_income: float,
    total_obligations: float,
) -> list[str]:
    advice = []
    free = total_income - total_obligations
    if total_income > 0 and free > 0:
        pct = free / total_income * 100
        advice.append(f"After paying everything, {format_currency(free)} is left ({pct:.0f}% of income).")
        if pct >= 20:
            advice.append("Excellent! You can save more than 20%. Consider investing part of it.")
        elif pct >= 10:
            advice.append(f"Good! You keep about {pct:.0f}%. Aim for 20% by cutting non-essential spending.")
        else:
            advice.append(f"Tight margin of {pct:.0f}%. Any surprise can hurt, watch extra spending.")

    if len(incomes) > 1 and obligations:
        biggest = max(obligations, key=lambda o: o.remaining)
        earlier = [e for e in incomes if e.date <= biggest.due_date]
        if len(earlier) > 1:
            advice.append(
                f'For "{biggest.title}" ({format_currency(biggest.remaining)}): build a reserve from the '
                "earlier incomes and do not spend it."
            )
    return advice


def plan_sandbox(entries: Iterable[SandboxEntry]) -> PlanResult:
    incomes = []
    obligations = []
    for e in entries:
        if e.type == "income":
            incomes.append(IncomeEvent(date=e.date, title=e.title, amount=e.amount))
        else:
            obligations.append(Obligation(id=e.id, title=e.title, due_date=e.date, remaining=e.amount))
    return allocate(incomes, obligations)


def project_income_events(incomes: Iterable[RecurringIncome], month_key: str) -> tuple[IncomeEvent, ...]:
    """Pay dates of the active incomes inside one month, pay day clamped to its length."""
    last_day = days_in_month(month_key)
    step = {Frequency.MONTHLY: None, Frequency.BIWEEKLY: 14, Frequency.WEEKLY: 7}
    events = []
    for income in incomes:
        if not income.active:
            continue
        day = min(max(income.pay_day, 1), last_day)
        interval = step[income.frequency]
        while day <= last_day:
            events.append(IncomeEvent(date=month_day(month_key, day), title=income.title, amount=income.amount))
            if interval is None:
                break
            day += interval
    return tuple(sorted(events, key=lambda e: e.date))


def plan_bills(state: AppState, month_key: str, today: Optional[str] = None) -> PlanResult:
    """Plan the month's unpaid pay-bills, plus overdue ones carried over, against expected income."""
    month_end = month_day(month_key, days_in_month(month_key))
    month_start = month_day(month_key, 1)
    now = today_iso(today)

    obligations = []
    receivables = []
    for bill in state.bills:
        if is_paid(bill):
            continue
        if bill.type is BillType.PAY:
            carried = bill.due_date < month_start and bill.due_date < now
            if carried or month_start <= bill.due_date <= month_end:
                obligations.append(
                    Obligation(id=bill.id, title=bill.title, due_date=bill.due_date, remaining=remaining(bill))
                )
        elif month_start <= bill.due_date <= month_end:
            receivables.append(IncomeEvent(date=bill.due_date, title=bill.title, amount=remaining(bill)))

    incomes = project_income_events(state.recurring_incomes, month_key) + tuple(receivables)
    return allocate(incomes, obligations)


def plan_table(plan: PlanResult) -> list[dict]:
    rows = []
    for step in plan.steps:
        destinations = [
            f"{format_currency(a.amount)} to {a.target}" for a in step.allocations if not a.is_free
        ]
        if step.remaining_free_this_step > EPSILON:
            destinations.append(f"{format_currency(step.remaining_free_this_step)} free")
        rows.append(
            {
                "date": step.date,
                "source": step.source,
                "received": step.received,
                "destinations": " + ".join(destinations),
                "cumulative_free": step.cumulative_free,
            }
        )
    return rows
