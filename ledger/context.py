"""Plain-text financial context for the chat assistant.

The assistant transport lives outside this package; it receives the list
built by :func:`build_chat_messages` and forwards it to a completion
endpoint.
"""

from typing import Iterable, Optional

from ledger.bills import remaining
from ledger.dates import days_until, format_currency, is_same_month
from ledger.domain import AppState, MonthlySnapshot, UserProfile
from ledger.filters import month_bills, unpaid
from ledger.indices import CAUTION, SAFE, FinancialIndices

FREQUENCY_LABELS = {"monthly": "monthly", "biweekly": "every two weeks", "weekly": "weekly", "daily": "daily"}
PROJECTION_LABELS = {SAFE: "SAFE", CAUTION: "CAUTION"}
MEMORY_LINES = 10

SYSTEM_PROMPT = """You are a personal finance strategist for one household.
Use the figures in the FINANCIAL CONTEXT block: name, income, fixed expenses, bills,
categories, goals and the scores already computed by the system.
Priorities: pay bills on time, build an emergency reserve, allow leisure without
breaking the budget.

STYLE: direct, realistic, motivating. Always quote the user's concrete numbers.
At most 400 words. No emojis; use **bold** and "- " lists only.

RULES:
- You analyse, you never execute actions on the user's behalf.
- Always give concrete amounts and practical actions, not theory.
- When data is missing, ask the user to record it in the app.

DISCIPLINE LEVELS (score computed by the system):
1 Survivor (0-200), 2 Organized (201-400), 3 Investor (401-600),
4 Strategist (601-800), 5 Elite (801-1000)."""


def _profile_lines(profile: UserProfile) -> list[str]:
    lines = [
        f"USER: {profile.first_name} {profile.last_name}, {profile.age} years old",
        f"DECLARED INCOME: {FREQUENCY_LABELS.get(profile.income_type, profile.income_type)} "
        f"{format_currency(profile.income_amount)}",
    ]
    if profile.fixed_expenses:
        total = sum(e.amount for e in profile.fixed_expenses)
        items = ", ".join(f"{e.title} {format_currency(e.amount)} day {e.due_day}" for e in profile.fixed_expenses)
        lines.append(f"FIXED EXPENSES: {items} (total {format_currency(total)})")
    if profile.ai_memory:
        lines.append(f"MEMORY: {' | '.join(profile.ai_memory[-MEMORY_LINES:])}")
    return lines


def build_financial_context(
    state: AppState,
    snapshot: MonthlySnapshot,
    indices: FinancialIndices,
    month_key: str,
    profile: Optional[UserProfile] = None,
    today: Optional[str] = None,
) -> str:
    incomes = [r for r in state.recurring_incomes if r.active]
    salary = sum(r.amount for r in incomes)
    pending = [b for b in month_bills(state.bills, month_key) if unpaid(b)]

    lines = _profile_lines(profile) if profile else []

    income_detail = (
        ", ".join(f"{r.title} {format_currency(r.amount)} day {r.pay_day}" for r in incomes) if incomes else "none"
    )
    if state.monthly_budget > 0:
        budget_line = f"BUDGET: {format_currency(state.monthly_budget)} ({snapshot.budget_usage_percent:.0f}% used)"
    else:
        budget_line = "BUDGET: not set"

    lines += [
        f"MONTH: {month_key}",
        f"INCOME: {format_currency(salary)} ({income_detail})",
        f"FLOWS: in {format_currency(snapshot.incomes_total)} | out {format_currency(snapshot.expenses_total)}",
        f"PROJECTED BALANCE: {format_currency(snapshot.projected_balance)}",
        budget_line,
        f"PENDING: {len(pending)} bills ({format_currency(sum(remaining(b) for b in pending))})",
    ]

    if snapshot.overdue_bills:
        lines.append("OVERDUE: " + ", ".join(
            f"{b.title} {format_currency(remaining(b))} ({abs(days_until(b.due_date, today))}d)"
            for b in snapshot.overdue_bills
        ))

    if snapshot.category_breakdown:
        lines.append("CATEGORIES: " + ", ".join(
            f"{c.category.label} {format_currency(c.total)}" for c in snapshot.category_breakdown
        ))

    if state.savings_goals:
        lines.append("GOALS: " + ", ".join(
            f"{g.title} {format_currency(g.current_amount)}/{format_currency(g.target_amount)} "
            f"({(g.current_amount / g.target_amount * 100) if g.target_amount > 0 else 0:.0f}%)"
            for g in state.savings_goals
        ))

    month_tx = sum(1 for t in state.transactions if is_same_month(t.date, month_key))
    lines += [
        f"SCORE: {indices.discipline_score}/1000 {indices.discipline_level}",
        f"IMPULSIVITY: {indices.impulsivity_index}/100 | RISK: {indices.risk_index}/100",
        f"PROJECTION: {PROJECTION_LABELS.get(indices.month_projection, 'RISK')} "
        f"(estimated balance {format_currency(indices.projected_end_balance)})",
        f"SAVINGS: {indices.savings_rate:.0f}%",
        f"TRANSACTIONS: {len(state.transactions)} total, {month_tx} this month",
    ]
    return "\n".join(lines)


def build_chat_messages(
    history: Iterable[dict], context: str, system_prompt: str = SYSTEM_PROMPT
) -> list[dict]:
    """System prompt with the context block, then the conversation so far."""
    messages = [{"role": "system", "content": f"{system_prompt}\n\nFINANCIAL CONTEXT:\n{context}"}]
    messages += [
        {"role": m["role"], "content": m["content"]}
        for m in history
        if m.get("role") in ("user", "assistant") and str(m.get("content", "")).strip()
    ]
    return messages
