import json
import logging
from dataclasses import asdict, replace

from ledger.bills import resync_status, with_payment
from ledger.domain import (
    AppState,
    Bill,
    BillStatus,
    BillType,
    Category,
    Frequency,
    Payment,
    RecurringIncome,
    SavingsGoal,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)


def _category(raw) -> Category:
    try:
        return Category(raw)
    except ValueError:
        logger.warning("unknown category %r, using 'other'", raw)
        return Category.OTHER


def _transaction(d: dict) -> Transaction:
    return Transaction(
        id=str(d["id"]),
        title=d["title"],
        amount=float(d["amount"]),
        date=d["date"],
        type=TransactionType(d["type"]),
        category=_category(d.get("category", "other")),
        notes=d.get("notes"),
    )


def _bill(d: dict) -> Bill:
    payments = tuple(
        Payment(id=str(p["id"]), amount=float(p["amount"]), date=p["date"], notes=p.get("notes"))
        for p in d.get("payments") or ()
    )
    stored = Bill(
        id=str(d["id"]),
        title=d["title"],
        amount=float(d["amount"]),
        due_date=d["due_date"],
        type=BillType(d["type"]),
        category=_category(d.get("category", "other")),
        status=BillStatus(d.get("status", "pending")),
        payments=payments,
    )
    # the stored status is a cache, payments are the truth
    return resync_status(stored)


def _recurring_income(d: dict) -> RecurringIncome:
    return RecurringIncome(
        id=str(d["id"]),
        title=d["title"],
        amount=float(d["amount"]),
        pay_day=int(d["pay_day"]),
        frequency=Frequency(d.get("frequency", "monthly")),
        active=bool(d.get("active", True)),
    )


def _goal(d: dict) -> SavingsGoal:
    return SavingsGoal(
        id=str(d["id"]),
        title=d["title"],
        target_amount=float(d["target_amount"]),
        current_amount=float(d.get("current_amount", 0)),
        deadline=d.get("deadline"),
        created_at=d.get("created_at", ""),
    )


def state_from_dict(data: dict) -> AppState:
    return AppState(
        transactions=tuple(_transaction(t) for t in data.get("transactions", ())),
        bills=tuple(_bill(b) for b in data.get("bills", ())),
        monthly_budget=float(data.get("monthly_budget", 0) or 0),
        recurring_incomes=tuple(_recurring_income(r) for r in data.get("recurring_incomes", ())),
        savings_goals=tuple(_goal(g) for g in data.get("savings_goals", ())),
    )


def load_state(path: str) -> AppState:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    state = state_from_dict(data)
    logger.info(
        "loaded %d transactions and %d bills from %s", len(state.transactions), len(state.bills), path
    )
    return state


def state_to_dict(state: AppState) -> dict:
    # enums are str subclasses, json writes their values
    return asdict(state)


def save_state(state: AppState, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(state_to_dict(state), f, ensure_ascii=False, indent=2)


def add_transaction(state: AppState, t: Transaction) -> AppState:
    return replace(state, transactions=state.transactions + (t,))


def delete_transaction(state: AppState, tid: str) -> AppState:
    return replace(state, transactions=tuple(t for t in state.transactions if t.id != tid))


def add_bill(state: AppState, b: Bill) -> AppState:
    return replace(state, bills=state.bills + (resync_status(b),))


def delete_bill(state: AppState, bid: str) -> AppState:
    return replace(state, bills=tuple(b for b in state.bills if b.id != bid))


def add_payment_to_bill(state: AppState, bid: str, p: Payment) -> AppState:
    return replace(
        state,
        bills=tuple(with_payment(b, p) if b.id == bid else b for b in state.bills),
    )


def set_budget(state: AppState, value: float) -> AppState:
    return replace(state, monthly_budget=max(float(value), 0.0))


def add_recurring_income(state: AppState, r: RecurringIncome) -> AppState:
    return replace(state, recurring_incomes=state.recurring_incomes + (r,))


def delete_recurring_income(state: AppState, rid: str) -> AppState:
    return replace(state, recurring_incomes=tuple(r for r in state.recurring_incomes if r.id != rid))


def toggle_recurring_income(state: AppState, rid: str) -> AppState:
    return replace(
        state,
        recurring_incomes=tuple(
            replace(r, active=not r.active) if r.id == rid else r for r in state.recurring_incomes
        ),
    )


def add_goal(state: AppState, g: SavingsGoal) -> AppState:
    return replace(state, savings_goals=state.savings_goals + (g,))


def deposit_to_goal(state: AppState, gid: str, amount: float) -> AppState:
    """Add to a goal's balance; non-positive deposits leave the state unchanged."""
    if amount <= 0:
        return state
    return replace(
        state,
        savings_goals=tuple(
            replace(g, current_amount=g.current_amount + amount) if g.id == gid else g
            for g in state.savings_goals
        ),
    )


def delete_goal(state: AppState, gid: str) -> AppState:
    return replace(state, savings_goals=tuple(g for g in state.savings_goals if g.id != gid))
