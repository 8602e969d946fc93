from pathlib import Path

from ledger.domain import (
    AppState,
    Bill,
    BillStatus,
    BillType,
    Category,
    Payment,
    RecurringIncome,
    SavingsGoal,
)
from ledger.transforms import (
    add_bill,
    add_goal,
    add_payment_to_bill,
    add_recurring_income,
    delete_bill,
    delete_goal,
    delete_recurring_income,
    delete_transaction,
    deposit_to_goal,
    load_state,
    save_state,
    set_budget,
    state_from_dict,
    state_to_dict,
    toggle_recurring_income,
)

SEED = Path(__file__).resolve().parents[1] / "data" / "seed.json"


def make_bill(amount=100.0, status=BillStatus.PENDING):
    return Bill(id="b1", title="Rent", amount=amount, due_date="2025-09-05", type=BillType.PAY,
                category=Category.HOUSING, status=status)


def test_load_seed_rederives_status():
    state = load_state(str(SEED))
    rent = next(b for b in state.bills if b.id == "b1")
    # stored as pending but fully paid
    assert rent.status is BillStatus.PAID
    internet = next(b for b in state.bills if b.id == "b3")
    assert internet.status is BillStatus.PARTIAL
    assert state.monthly_budget == 3500
    assert len(state.recurring_incomes) == 1


def test_save_and_load_round_trip(tmp_path):
    state = load_state(str(SEED))
    path = tmp_path / "state.json"
    save_state(state, str(path))
    assert load_state(str(path)) == state


def test_unknown_category_falls_back_to_other():
    state = state_from_dict({"transactions": [
        {"id": 1, "title": "Thing", "amount": "12.5", "date": "2025-09-01", "type": "expense", "category": "pets"},
    ]})
    assert state.transactions[0].category is Category.OTHER
    assert state.transactions[0].amount == 12.5
    assert state.transactions[0].id == "1"


def test_state_to_dict_uses_plain_values():
    data = state_to_dict(AppState(bills=(make_bill(),)))
    assert data["bills"][0]["due_date"] == "2025-09-05"
    assert data["bills"][0]["status"] == "pending"


def test_add_bill_and_payment():
    state = add_bill(AppState(), make_bill(status=BillStatus.PAID))
    # stale status is fixed on the way in
    assert state.bills[0].status is BillStatus.PENDING
    state = add_payment_to_bill(state, "b1", Payment(id="p1", amount=60, date="2025-09-01"))
    assert state.bills[0].status is BillStatus.PARTIAL
    state = add_payment_to_bill(state, "b1", Payment(id="p2", amount=40, date="2025-09-02"))
    assert state.bills[0].status is BillStatus.PAID
    assert delete_bill(state, "b1").bills == ()


def test_budget_and_incomes():
    state = set_budget(AppState(), -50)
    assert state.monthly_budget == 0
    state = AppState(recurring_incomes=(RecurringIncome(id="r1", title="Salary", amount=100, pay_day=5),))
    assert toggle_recurring_income(state, "r1").recurring_incomes[0].active is False


def test_deposit_to_goal_only_increases():
    state = AppState(savings_goals=(SavingsGoal(id="g1", title="Car", target_amount=1000, current_amount=100),))
    assert deposit_to_goal(state, "g1", 50).savings_goals[0].current_amount == 150
    assert deposit_to_goal(state, "g1", -50) is state
    assert deposit_to_goal(state, "g1", 0) is state


def test_recurring_income_add_and_delete():
    income = RecurringIncome(id="r9", title="Rent from room", amount=600, pay_day=10)
    state = add_recurring_income(AppState(), income)
    assert state.recurring_incomes == (income,)
    assert delete_recurring_income(state, "r9").recurring_incomes == ()
    assert delete_recurring_income(state, "missing") == state


def test_goal_add_and_delete():
    goal = SavingsGoal(id="g9", title="Laptop", target_amount=5000)
    state = add_goal(AppState(), goal)
    assert state.savings_goals == (goal,)
    assert delete_goal(state, "g9").savings_goals == ()


def test_delete_transaction():
    state = load_state(str(SEED))
    remaining_ids = [t.id for t in delete_transaction(state, "t10").transactions]
    assert "t10" not in remaining_ids
    assert len(remaining_ids) == len(state.transactions) - 1
