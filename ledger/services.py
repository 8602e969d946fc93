import logging
from typing import Any, Callable, Dict, Optional, Sequence

from ledger.advisor import build_tips
from ledger.domain import AppState
from ledger.functional import (
    check_budget,
    validate_bill,
    validate_goal,
    validate_recurring_income,
    validate_transaction,
)
from ledger.indices import calculate_indices, health_label, health_score
from ledger.planner import plan_bills
from ledger.snapshot import calculate_snapshot

logger = logging.getLogger(__name__)

Validator = Callable[[AppState, str], Sequence[str]]
Calculator = Callable[[AppState, str, Dict[str, Any], Optional[str]], Dict[str, Any]]


class MonthlyReportService:
    """Facade computing every derived view of one month with injected steps.

    validators: functions taking (state, month_key) -> Sequence[str]
    calculators: functions taking (state, month_key, acc, today) -> dict (partial results);
        ``acc`` holds the outputs of the calculators that ran before.
    """

    def __init__(self, validators: Sequence[Validator], calculators: Sequence[Calculator]):
        self.validators = validators
        self.calculators = calculators

    def monthly_report(self, state: AppState, month_key: str, today: Optional[str] = None) -> Dict[str, Any]:
        report = {
            "month": month_key,
            "validation": [],
            "steps": [],
            "result": {},
        }

        for v in self.validators:
            try:
                msgs = v(state, month_key)
            except Exception as e:
                logger.exception("validator %s failed", getattr(v, "__name__", v))
                msgs = [f"validator_error: {e}"]
            report["validation"].append({"validator": getattr(v, "__name__", str(v)), "messages": list(msgs)})

        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(state, month_key, acc, today)
            report["steps"].append({"calculator": getattr(calc, "__name__", str(calc)), "output": out})
            acc.update(out)

        report["result"] = acc
        return report


def entity_messages(state: AppState, month_key: str) -> list[str]:
    checks = (
        [validate_transaction(t) for t in state.transactions]
        + [validate_bill(b) for b in state.bills]
        + [validate_recurring_income(r) for r in state.recurring_incomes]
        + [validate_goal(g) for g in state.savings_goals]
    )
    return [c.get_error()["message"] for c in checks if c.is_left()]


def budget_messages(state: AppState, month_key: str) -> list[str]:
    result = check_budget(state, month_key)
    return [result.get_error()["message"]] if result.is_left() else []


def snapshot_step(state, month_key, acc, today=None):
    return {"snapshot": calculate_snapshot(state.transactions, state.bills, month_key, state.monthly_budget, today)}


def indices_step(state, month_key, acc, today=None):
    return {"indices": calculate_indices(state, acc["snapshot"], today)}


def health_step(state, month_key, acc, today=None):
    score = health_score(acc["snapshot"], state.monthly_budget)
    return {"health_score": score, "health_label": health_label(score)}


def tips_step(state, month_key, acc, today=None):
    return {"tips": build_tips(state, acc["snapshot"], month_key, today)}


def plan_step(state, month_key, acc, today=None):
    return {"plan": plan_bills(state, month_key, today)}


def default_report_service() -> MonthlyReportService:
    return MonthlyReportService(
        validators=[entity_messages, budget_messages],
        calculators=[snapshot_step, indices_step, health_step, tips_step, plan_step],
    )
