from ledger.context import SYSTEM_PROMPT, build_chat_messages, build_financial_context
from ledger.domain import (
    AppState,
    Bill,
    BillType,
    Category,
    FixedExpense,
    RecurringIncome,
    SavingsGoal,
    Transaction,
    TransactionType,
    UserProfile,
)
from ledger.indices import calculate_indices
from ledger.snapshot import calculate_snapshot

TODAY = "2025-09-10"
MONTH = "2025-09"

STATE = AppState(
    transactions=(
        Transaction(id="t1", title="Market", amount=300, date="2025-09-02", type=TransactionType.EXPENSE,
                    category=Category.FOOD),
        Transaction(id="t2", title="Old", amount=50, date="2025-08-02", type=TransactionType.EXPENSE,
                    category=Category.FOOD),
    ),
    bills=(Bill(id="b1", title="Power", amount=120, due_date="2025-09-03", type=BillType.PAY,
                category=Category.SERVICES),),
    monthly_budget=2000,
    recurring_incomes=(RecurringIncome(id="r1", title="Salary", amount=3000, pay_day=5),),
    savings_goals=(SavingsGoal(id="g1", title="Trip", target_amount=1000, current_amount=250),),
)


def context(profile=None):
    snap = calculate_snapshot(STATE.transactions, STATE.bills, MONTH, STATE.monthly_budget, today=TODAY)
    indices = calculate_indices(STATE, snap, today=TODAY)
    return build_financial_context(STATE, snap, indices, MONTH, profile=profile, today=TODAY)


def line(text, label):
    return next(row for row in text.splitlines() if row.startswith(label))


def test_context_lines():
    text = context()
    assert line(text, "MONTH:") == "MONTH: 2025-09"
    assert "Salary" in line(text, "INCOME:")
    assert "1 bills" in line(text, "PENDING:")
    assert "Power" in line(text, "OVERDUE:")
    assert "(7d)" in line(text, "OVERDUE:")
    assert "Food" in line(text, "CATEGORIES:")
    assert "(25%)" in line(text, "GOALS:")
    assert "/1000" in line(text, "SCORE:")
    assert line(text, "TRANSACTIONS:") == "TRANSACTIONS: 2 total, 1 this month"
    assert not any(row.startswith("USER:") for row in text.splitlines())


def test_profile_adds_user_and_last_memories():
    profile = UserProfile(
        first_name="Ana", last_name="Lima", age=31, income_type="monthly", income_amount=3000,
        fixed_expenses=(FixedExpense(id="f1", title="Gym", amount=90, due_day=10),),
        ai_memory=tuple(f"m{i}" for i in range(12)),
    )
    text = context(profile)
    assert line(text, "USER:") == "USER: Ana Lima, 31 years old"
    assert "Gym" in line(text, "FIXED EXPENSES:")
    memory = line(text, "MEMORY:")[len("MEMORY: "):].split(" | ")
    assert memory == [f"m{i}" for i in range(2, 12)]


def test_chat_messages():
    history = [
        {"role": "user", "content": "How am I doing?"},
        {"role": "system", "content": "ignored"},
        {"role": "assistant", "content": "   "},
        {"role": "assistant", "content": "Fine."},
    ]
    messages = build_chat_messages(history, "MONTH: 2025-09")
    assert messages[0]["role"] == "system"
    assert messages[0]["content"].startswith(SYSTEM_PROMPT)
    assert messages[0]["content"].endswith("MONTH: 2025-09")
    assert [m["content"] for m in messages[1:]] == ["How am I doing?", "Fine."]
