"""Composite financial indices derived from the state and one month's snapshot.

Scores
------
discipline_score
    0-1000, four sub-scores of at most 250 each: budget adherence, bill
    timeliness, savings rate and activity/engagement.
impulsivity_index
    0-100, share of this month's expenses larger than twice the average.
risk_index
    0-100, additive warning flags.
month_projection
    ``safe``, ``caution`` or ``risk`` from a linear month-end extrapolation.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ledger.bills import is_paid
from ledger.dates import current_month_key, day_of_month, days_in_month, today_iso
from ledger.domain import AppState, MonthlySnapshot, TransactionType
from ledger.filters import month_bills, month_transactions

logger = logging.getLogger(__name__)

LEVELS = (
    (0, "Survivor"),
    (201, "Organized"),
    (401, "Investor"),
    (601, "Strategist"),
    (801, "Elite"),
)

SAFE = "safe"
CAUTION = "caution"
RISK = "risk"


@dataclass(frozen=True)
class FinancialIndices:
    discipline_score: int
    discipline_level: str
    discipline_level_num: int
    impulsivity_index: int
    risk_index: int
    month_projection: str
    projected_end_balance: float
    savings_rate: float       # percent of recurring income, 0-100


def active_income_total(state: AppState) -> float:
    return sum(r.amount for r in state.recurring_incomes if r.active)


def active_income_count(state: AppState) -> int:
    return sum(1 for r in state.recurring_incomes if r.active)


def discipline_level(score: int) -> tuple[str, int]:
    label, num = LEVELS[0][1], 1
    for i, (minimum, name) in enumerate(LEVELS):
        if score >= minimum:
            label, num = name, i + 1
    return label, num


def _budget_points(state: AppState, snapshot: MonthlySnapshot) -> int:
    if state.monthly_budget <= 0:
        return 80
    usage = snapshot.budget_usage_percent
    if usage <= 60:
        return 250
    if usage <= 80:
        return 200
    if usage <= 100:
        return 130
    return max(0, 50 - round(usage - 100))


def _timeliness_points(state: AppState, snapshot: MonthlySnapshot) -> int:
    bills = month_bills(state.bills, snapshot.month_key)
    if not bills:
        return 125
    paid_ratio = sum(1 for b in bills if is_paid(b)) / len(bills)
    overdue_ratio = len(snapshot.overdue_bills) / len(bills)
    return round(paid_ratio * 200 + (1 - overdue_ratio) * 50)


def _savings_points(salary: float, snapshot: MonthlySnapshot) -> int:
    if salary <= 0:
        return 50
    savings = max(salary - snapshot.expenses_total - snapshot.bills_to_pay, 0)
    return round(min(savings / salary, 0.4) * 625)


def _activity_points(state: AppState, month_key: str) -> int:
    tx_count = len(month_transactions(state.transactions, month_key))
    if tx_count >= 15:
        points = 80
    elif tx_count >= 8:
        points = 60
    elif tx_count >= 3:
        points = 30
    else:
        points = 10

    goals = state.savings_goals
    progress = sum(min(g.current_amount / max(g.target_amount, 1), 1) for g in goals)
    points += min(round(progress * 60), 80)
    if goals:
        points += 30

    incomes = active_income_count(state)
    if incomes >= 2:
        points += 60
    elif incomes == 1:
        points += 30
    return min(points, 250)


def discipline_score(state: AppState, snapshot: MonthlySnapshot) -> int:
    salary = active_income_total(state)
    score = (
        _budget_points(state, snapshot)
        + _timeliness_points(state, snapshot)
        + _savings_points(salary, snapshot)
        + _activity_points(state, snapshot.month_key)
    )
    return min(max(score, 0), 1000)


def impulsivity_index(state: AppState, month_key: str) -> int:
    expenses = [
        t.amount for t in month_transactions(state.transactions, month_key)
        if t.type is TransactionType.EXPENSE
    ]
    if not expenses:
        return 0
    average = sum(expenses) / len(expenses)
    large = sum(1 for amount in expenses if amount > average * 2)
    return min(round(large / len(expenses) * 100), 100)


def risk_index(state: AppState, snapshot: MonthlySnapshot, impulsivity: int) -> int:
    salary = active_income_total(state)
    risk = 0
    if snapshot.overdue_bills:
        risk += 30
    if salary > 0 and snapshot.expenses_total + snapshot.bills_to_pay > salary * 0.9:
        risk += 25
    if state.monthly_budget > 0 and snapshot.budget_usage_percent > 90:
        risk += 20
    if not state.savings_goals and salary > 0:
        risk += 10
    if active_income_count(state) <= 1 and salary > 0:
        risk += 10
    if impulsivity > 40:
        risk += 5
    return min(risk, 100)


def month_projection(
    state: AppState, snapshot: MonthlySnapshot, today: Optional[str] = None
) -> tuple[str, float]:
    """Extrapolate spending to month end; other months count as fully elapsed."""
    salary = active_income_total(state)
    total_days = days_in_month(snapshot.month_key)
    if snapshot.month_key == current_month_key(today):
        elapsed = day_of_month(today_iso(today))
    else:
        elapsed = total_days
    remaining_days = max(total_days - elapsed, 0)

    daily_spending = snapshot.expenses_total / elapsed if elapsed > 0 else 0.0
    projected_spending = snapshot.expenses_total + daily_spending * remaining_days + snapshot.bills_to_pay
    effective_income = salary if salary > 0 else snapshot.incomes_total
    end_balance = effective_income - projected_spending

    if end_balance < 0:
        return RISK, end_balance
    if effective_income > 0 and end_balance < effective_income * 0.15:
        return CAUTION, end_balance
    return SAFE, end_balance


def calculate_indices(
    state: AppState, snapshot: MonthlySnapshot, today: Optional[str] = None
) -> FinancialIndices:
    salary = active_income_total(state)
    score = discipline_score(state, snapshot)
    level, level_num = discipline_level(score)
    impulsivity = impulsivity_index(state, snapshot.month_key)
    projection, end_balance = month_projection(state, snapshot, today)

    if salary > 0:
        savings_rate = max((salary - snapshot.expenses_total - snapshot.bills_to_pay) / salary * 100, 0.0)
    else:
        savings_rate = 0.0

    indices = FinancialIndices(
        discipline_score=score,
        discipline_level=level,
        discipline_level_num=level_num,
        impulsivity_index=impulsivity,
        risk_index=risk_index(state, snapshot, impulsivity),
        month_projection=projection,
        projected_end_balance=end_balance,
        savings_rate=savings_rate,
    )
    logger.debug("indices %s: %s", snapshot.month_key, indices)
    return indices


def health_score(snapshot: MonthlySnapshot, monthly_budget: float) -> int:
    """0-1000 health gauge: income/expense 300, budget 300, timeliness 200, savings 200."""
    score = 0

    if snapshot.incomes_total > 0:
        ratio = min(snapshot.incomes_total / max(snapshot.expenses_total + snapshot.bills_to_pay, 1), 3)
        score += round(ratio / 3 * 300)

    if monthly_budget > 0:
        used = snapshot.budget_usage_percent
        if used <= 70:
            score += 300
        elif used <= 90:
            score += 220
        elif used <= 100:
            score += 120
        else:
            score += max(0, round(60 - (used - 100)))
    else:
        score += 150

    overdue = len(snapshot.overdue_bills)
    open_bills = overdue + len(snapshot.upcoming_bills)
    if open_bills == 0:
        score += 200
    else:
        score += round((1 - overdue / open_bills) * 200)

    if snapshot.incomes_total > 0:
        savings = snapshot.incomes_total - snapshot.expenses_total - snapshot.bills_paid_so_far
        rate = max(savings / snapshot.incomes_total, 0)
        score += round(min(rate, 0.5) * 400)

    return min(max(score, 0), 1000)


def health_label(score: int) -> str:
    if score >= 850:
        return "Excellent"
    if score >= 650:
        return "Good"
    if score >= 450:
        return "Fair"
    if score >= 250:
        return "Attention"
    return "Critical"
