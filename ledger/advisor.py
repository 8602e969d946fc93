"""Rule-based advisory tips.

Every rule is a plain function ``rule(ctx) -> list[Tip]`` that looks at an
:class:`AdviceContext` and returns zero or more tips. Rules never share
state, so any subset can be run in any order; :class:`Advisor` runs a rule
sequence and orders the tips by priority.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ledger import config
from ledger.bills import derive_status, paid_total, remaining
from ledger.dates import (
    current_month_key,
    day_of_month,
    days_in_month,
    days_until,
    format_currency,
    format_date,
    previous_month_keys,
    today_iso,
)
from ledger.domain import (
    AppState,
    Bill,
    BillStatus,
    BillType,
    MonthlySnapshot,
    Priority,
    RecurringIncome,
    Transaction,
    TransactionType,
)
from ledger.filters import month_bills, month_transactions, unpaid
from ledger.lazy import lazy_top_categories
from ledger.memo import average_monthly_spending

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}
TOP_CATEGORIES = 3


@dataclass(frozen=True)
class Tip:
    icon: str
    title: str
    body: str
    priority: Priority


@dataclass(frozen=True)
class AdviceContext:
    state: AppState
    snapshot: MonthlySnapshot
    month_key: str
    today: str
    days_in_month: int
    days_elapsed: int                       # whole month unless viewing the current one
    incomes: tuple[RecurringIncome, ...]    # active only
    salary: float
    month_expenses: tuple[Transaction, ...]
    pending_bills: tuple[Bill, ...]         # unpaid pay-bills of the month

    @property
    def total_pending(self) -> float:
        return sum(remaining(b) for b in self.pending_bills)

    @property
    def first_pay_day(self) -> Optional[int]:
        return min((min(r.pay_day, self.days_in_month) for r in self.incomes), default=None)


def build_context(
    state: AppState, snapshot: MonthlySnapshot, month_key: str, today: Optional[str] = None
) -> AdviceContext:
    now = today_iso(today)
    total_days = days_in_month(month_key)
    elapsed = day_of_month(now) if month_key == current_month_key(now) else total_days
    incomes = tuple(r for r in state.recurring_incomes if r.active)
    pending = tuple(
        b for b in month_bills(state.bills, month_key) if unpaid(b) and b.type is BillType.PAY
    )
    expenses = tuple(
        t for t in month_transactions(state.transactions, month_key) if t.type is TransactionType.EXPENSE
    )
    return AdviceContext(
        state=state,
        snapshot=snapshot,
        month_key=month_key,
        today=now,
        days_in_month=total_days,
        days_elapsed=elapsed,
        incomes=incomes,
        salary=sum(r.amount for r in incomes),
        month_expenses=expenses,
        pending_bills=pending,
    )


def _bill_list(bills: Sequence[Bill], limit: int = 3) -> str:
    return ", ".join(f"{b.title} ({format_currency(remaining(b))})" for b in bills[:limit])


# --- rules

def rule_bills_before_payday(ctx: AdviceContext) -> list[Tip]:
    pay_day = ctx.first_pay_day
    if pay_day is None:
        return []
    before = [b for b in ctx.pending_bills if day_of_month(b.due_date) < pay_day]
    if not before:
        return []
    total = sum(remaining(b) for b in before)
    return [Tip(
        icon="clock",
        title=f"{len(before)} bill(s) due BEFORE payday",
        body=(
            f"Your income arrives on day {pay_day}, but {', '.join(b.title for b in before)} "
            f"fall due earlier. Keep {format_currency(total)} from the previous month."
        ),
        priority=Priority.HIGH,
    )]


def rule_pay_after_payday(ctx: AdviceContext) -> list[Tip]:
    pay_day = ctx.first_pay_day
    if pay_day is None:
        return []
    after = sorted(
        (b for b in ctx.pending_bills if day_of_month(b.due_date) >= pay_day), key=lambda b: b.due_date
    )
    if not after:
        return []
    return [Tip(
        icon="check",
        title="Pay these bills right after payday",
        body=f"On day {pay_day} you receive {format_currency(ctx.salary)}. Pay first: {_bill_list(after)}.",
        priority=Priority.MEDIUM,
    )]


def _ideal_budget_pct(ctx: AdviceContext) -> float:
    return ctx.days_elapsed / ctx.days_in_month * 100


def rule_spending_pace(ctx: AdviceContext) -> list[Tip]:
    budget = ctx.state.monthly_budget
    if budget <= 0:
        return []
    used = ctx.snapshot.budget_usage_percent
    ideal = _ideal_budget_pct(ctx)
    if used <= ideal + 15:
        return []
    return [Tip(
        icon="alert",
        title="You are spending too fast!",
        body=(
            f"{used:.0f}% of the budget is gone with only {ideal:.0f}% of the month elapsed. "
            f"Cut {format_currency((used - ideal) / 100 * budget)} to get back on pace."
        ),
        priority=Priority.HIGH,
    )]


def rule_under_budget_pace(ctx: AdviceContext) -> list[Tip]:
    budget = ctx.state.monthly_budget
    if budget <= 0:
        return []
    used = ctx.snapshot.budget_usage_percent
    ideal = _ideal_budget_pct(ctx)
    if used >= ideal - 10:
        return []
    return [Tip(
        icon="check",
        title="Great spending control!",
        body=(
            f"You used {used:.0f}% of the budget with {ideal:.0f}% of the month elapsed. "
            f"{format_currency(budget * (1 - used / 100))} is still available."
        ),
        priority=Priority.LOW,
    )]


def rule_savings_potential(ctx: AdviceContext) -> list[Tip]:
    if ctx.salary <= 0:
        return []
    spending = ctx.snapshot.expenses_total + ctx.total_pending
    leftover = ctx.salary - spending
    if leftover <= 0:
        return []
    pct = leftover / ctx.salary * 100
    return [Tip(
        icon="coin",
        title=f"Savings potential: {format_currency(leftover)}",
        body=(
            f"With income of {format_currency(ctx.salary)} and spending of {format_currency(spending)} "
            f"you can keep {pct:.0f}% of your income. The 50/30/20 rule suggests saving at least 20%."
        ),
        priority=Priority.LOW if pct >= 20 else Priority.MEDIUM,
    )]


def rule_expenses_exceed_income(ctx: AdviceContext) -> list[Tip]:
    if ctx.salary <= 0:
        return []
    spending = ctx.snapshot.expenses_total + ctx.total_pending
    if spending < ctx.salary:
        return []
    return [Tip(
        icon="stop",
        title="Spending exceeds income!",
        body=(
            f"Your spending ({format_currency(spending)}) exceeds your income "
            f"({format_currency(ctx.salary)}) by {format_currency(spending - ctx.salary)}. "
            "Review the most expensive categories."
        ),
        priority=Priority.HIGH,
    )]


def rule_top_categories(ctx: AdviceContext) -> list[Tip]:
    if ctx.salary <= 0:
        return []
    tips = []
    for category, total in lazy_top_categories(ctx.snapshot.category_breakdown, TOP_CATEGORIES):
        pct = total / ctx.salary * 100
        heavy = total > ctx.salary * 0.3
        if heavy:
            body = (
                f"{category.label} takes {pct:.0f}% of your income ({format_currency(total)}). "
                f"Bring it under 30% ({format_currency(ctx.salary * 0.3)}) by negotiating or switching providers."
            )
        else:
            body = f"{category.label} costs {format_currency(total)} ({pct:.0f}% of income), a healthy level."
        tips.append(Tip(
            icon="list",
            title=f"{category.label}: {pct:.0f}% of income",
            body=body,
            priority=Priority.MEDIUM if heavy else Priority.LOW,
        ))
    return tips


def rule_overdue(ctx: AdviceContext) -> list[Tip]:
    overdue = ctx.snapshot.overdue_bills
    if not overdue:
        return []
    total = sum(remaining(b) for b in overdue)
    return [Tip(
        icon="alert",
        title=f"URGENT: {format_currency(total)} overdue",
        body=f"Pay {_bill_list(overdue, limit=len(overdue))} as soon as possible to avoid interest and fines.",
        priority=Priority.HIGH,
    )]


def rule_emergency_fund(ctx: AdviceContext) -> list[Tip]:
    if ctx.salary <= 0 or ctx.state.savings_goals:
        return []
    return [Tip(
        icon="shield",
        title="Create an emergency fund goal",
        body=(
            f"Experts recommend keeping {format_currency(ctx.salary * 6)} (6 months of income). "
            f"Start with {format_currency(ctx.salary * 0.1)} a month."
        ),
        priority=Priority.LOW,
    )]


def rule_upcoming_week(ctx: AdviceContext) -> list[Tip]:
    soon = sorted(
        (b for b in ctx.pending_bills if 0 < days_until(b.due_date, ctx.today) <= 7),
        key=lambda b: b.due_date,
    )
    if not soon:
        return []
    return [Tip(
        icon="calendar",
        title=f"{len(soon)} bill(s) in the next 7 days",
        body=" | ".join(
            f"{b.title}: {format_currency(remaining(b))} in {days_until(b.due_date, ctx.today)}d" for b in soon
        ),
        priority=Priority.MEDIUM,
    )]


def rule_no_budget(ctx: AdviceContext) -> list[Tip]:
    if ctx.state.monthly_budget > 0:
        return []
    if ctx.salary > 0:
        suggested = ctx.salary * 0.8
        basis = f"80% of your income of {format_currency(ctx.salary)}"
    elif ctx.snapshot.expenses_total > 0:
        suggested = ctx.snapshot.expenses_total
        basis = "this month's spending so far"
    else:
        return []
    return [Tip(
        icon="target",
        title="Set a monthly budget",
        body=f"Without a target it is hard to track pace. Start with {format_currency(suggested)}, {basis}.",
        priority=Priority.MEDIUM,
    )]


def _months_between(start: str, end: str) -> int:
    return (int(end[:4]) - int(start[:4])) * 12 + int(end[5:7]) - int(start[5:7])


def rule_goal_deadlines(ctx: AdviceContext) -> list[Tip]:
    tips = []
    for goal in ctx.state.savings_goals:
        missing = goal.target_amount - goal.current_amount
        if not goal.deadline or missing <= 0:
            continue
        months_left = max(_months_between(ctx.today, goal.deadline), 1)
        monthly = missing / months_left
        late = goal.deadline < ctx.today
        tips.append(Tip(
            icon="flag",
            title=f"Goal '{goal.title}': {format_currency(missing)} to go",
            body=(
                f"Deadline {format_date(goal.deadline)} has passed; {format_currency(missing)} is still missing."
                if late else
                f"Deposit {format_currency(monthly)} per month for {months_left} month(s) "
                f"to reach {format_currency(goal.target_amount)} by {format_date(goal.deadline)}."
            ),
            priority=Priority.MEDIUM,
        ))
    return tips


def rule_goal_nearly_done(ctx: AdviceContext) -> list[Tip]:
    tips = []
    for goal in ctx.state.savings_goals:
        if goal.target_amount <= 0:
            continue
        progress = goal.current_amount / goal.target_amount
        if 0.8 <= progress < 1:
            tips.append(Tip(
                icon="star",
                title=f"'{goal.title}' is {progress * 100:.0f}% done",
                body=f"Only {format_currency(goal.target_amount - goal.current_amount)} left. Finish it this month.",
                priority=Priority.LOW,
            ))
    return tips


def rule_impulsive_spending(ctx: AdviceContext) -> list[Tip]:
    expenses = ctx.month_expenses
    if len(expenses) < 3:
        return []
    average = sum(t.amount for t in expenses) / len(expenses)
    large = sorted((t for t in expenses if t.amount > average * 2), key=lambda t: t.amount, reverse=True)
    if not large:
        return []
    return [Tip(
        icon="zap",
        title=f"{len(large)} purchase(s) far above your average",
        body=(
            f"Your average expense is {format_currency(average)}, but "
            + ", ".join(f"{t.title} ({format_currency(t.amount)})" for t in large[:3])
            + f" add up to {format_currency(sum(t.amount for t in large))}. Wait 48h before big purchases."
        ),
        priority=Priority.MEDIUM,
    )]


def rule_single_income(ctx: AdviceContext) -> list[Tip]:
    if len(ctx.incomes) != 1 or ctx.salary <= 0:
        return []
    return [Tip(
        icon="layers",
        title="Only one income source",
        body=(
            f"All of your {format_currency(ctx.salary)} depends on {ctx.incomes[0].title}. "
            f"A side income of {format_currency(ctx.salary * 0.1)} would cut that risk."
        ),
        priority=Priority.LOW,
    )]


def rule_partial_bills(ctx: AdviceContext) -> list[Tip]:
    partial = [b for b in ctx.pending_bills if derive_status(b) is BillStatus.PARTIAL]
    if not partial:
        return []
    paid = sum(paid_total(b) for b in partial)
    left = sum(remaining(b) for b in partial)
    return [Tip(
        icon="progress",
        title=f"{len(partial)} bill(s) partially paid",
        body=f"You already paid {format_currency(paid)}; {format_currency(left)} is left: {_bill_list(partial)}.",
        priority=Priority.MEDIUM,
    )]


def rule_receivables(ctx: AdviceContext) -> list[Tip]:
    due = ctx.snapshot.bills_to_receive
    if due <= 0:
        return []
    return [Tip(
        icon="inbox",
        title=f"{format_currency(due)} still to receive",
        body=f"Follow up on pending receivables; they are {format_currency(due)} of this month's projected balance.",
        priority=Priority.LOW,
    )]


def rule_negative_projection(ctx: AdviceContext) -> list[Tip]:
    balance = ctx.snapshot.projected_balance
    if balance >= 0:
        return []
    return [Tip(
        icon="trending-down",
        title="Month heading for a negative balance",
        body=(
            f"Recorded income and bills leave you at {format_currency(balance)}. "
            f"Find {format_currency(-balance)} in cuts or extra income before month end."
        ),
        priority=Priority.HIGH,
    )]


def rule_category_above_average(ctx: AdviceContext) -> list[Tip]:
    history = previous_month_keys(ctx.month_key, config.HISTORY_MONTHS)
    transactions = ctx.state.transactions
    tips = []
    current: dict = {}
    for t in ctx.month_expenses:
        current[t.category] = current.get(t.category, 0.0) + t.amount
    for category, total in sorted(current.items(), key=lambda item: item[1], reverse=True)[:TOP_CATEGORIES]:
        average = average_monthly_spending(category, transactions, history)
        if average <= 0 or total <= average * 1.3:
            continue
        tips.append(Tip(
            icon="bar-chart",
            title=f"{category.label} above its usual level",
            body=(
                f"{format_currency(total)} this month against an average of {format_currency(average)} "
                f"over the last {len(history)} month(s), {(total / average - 1) * 100:.0f}% more."
            ),
            priority=Priority.MEDIUM,
        ))
    return tips


def rule_daily_allowance(ctx: AdviceContext) -> list[Tip]:
    budget = ctx.state.monthly_budget
    days_left = ctx.days_in_month - ctx.days_elapsed
    if budget <= 0 or days_left <= 0:
        return []
    left = budget - ctx.snapshot.expenses_total - ctx.snapshot.bills_paid_so_far
    if left <= 0:
        return []
    return [Tip(
        icon="sun",
        title=f"Daily allowance: {format_currency(left / days_left)}",
        body=f"{format_currency(left)} of the budget is left for the remaining {days_left} day(s) of the month.",
        priority=Priority.LOW,
    )]


Rule = Callable[[AdviceContext], list[Tip]]

DEFAULT_RULES: tuple[Rule, ...] = (
    rule_bills_before_payday,
    rule_pay_after_payday,
    rule_spending_pace,
    rule_under_budget_pace,
    rule_savings_potential,
    rule_expenses_exceed_income,
    rule_top_categories,
    rule_overdue,
    rule_emergency_fund,
    rule_upcoming_week,
    rule_no_budget,
    rule_goal_deadlines,
    rule_goal_nearly_done,
    rule_impulsive_spending,
    rule_single_income,
    rule_partial_bills,
    rule_receivables,
    rule_negative_projection,
    rule_category_above_average,
    rule_daily_allowance,
)

FALLBACK_TIP = Tip(
    icon="plus",
    title="Add more data",
    body="Register your income, bills and expenses to receive personalised tips.",
    priority=Priority.LOW,
)


def sort_tips(tips: Sequence[Tip]) -> list[Tip]:
    # sorted() is stable, rule order breaks ties
    return sorted(tips, key=lambda tip: PRIORITY_ORDER[tip.priority])


class Advisor:
    """Runs a sequence of independent rules and collects their tips.

    A rule that raises is logged and recorded in the report; the other rules
    still run.
    """

    def __init__(self, rules: Sequence[Rule] = DEFAULT_RULES):
        self.rules = rules

    def advise(self, ctx: AdviceContext) -> dict:
        report = {"month": ctx.month_key, "steps": [], "tips": []}
        collected: list[Tip] = []
        for rule in self.rules:
            name = getattr(rule, "__name__", str(rule))
            try:
                tips = list(rule(ctx))
            except Exception as e:
                logger.exception("advisory rule %s failed", name)
                report["steps"].append({"rule": name, "tips": [], "error": str(e)})
                continue
            report["steps"].append({"rule": name, "tips": tips})
            collected.extend(tips)

        report["tips"] = sort_tips(collected) or [FALLBACK_TIP]
        return report


def build_tips(
    state: AppState,
    snapshot: MonthlySnapshot,
    month_key: str,
    today: Optional[str] = None,
    rules: Sequence[Rule] = DEFAULT_RULES,
) -> list[Tip]:
    ctx = build_context(state, snapshot, month_key, today)
    return Advisor(rules).advise(ctx)["tips"]
