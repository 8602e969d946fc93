from ledger.domain import (
    AppState,
    Bill,
    BillType,
    Category,
    Payment,
    RecurringIncome,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from ledger.functional import (
    Left,
    Nothing,
    Right,
    Some,
    check_budget,
    find_bill,
    validate_bill,
    validate_goal,
    validate_payment,
    validate_recurring_income,
    validate_transaction,
)


def make_tx(amount=50.0, date="2025-09-01", title="Lunch", kind=TransactionType.EXPENSE):
    return Transaction(id="t1", title=title, amount=amount, date=date, type=kind, category=Category.FOOD)


def make_bill(amount=100.0, payments=()):
    return Bill(id="b1", title="Rent", amount=amount, due_date="2025-09-05", type=BillType.PAY,
                category=Category.HOUSING, payments=payments)


def test_maybe():
    assert Some(5).map(lambda x: x * 2).get_or_else(0) == 10
    assert Nothing().map(lambda x: x * 2).get_or_else(0) == 0
    assert Nothing().is_none()


def test_either_bind():
    def half(x):
        return Right(x // 2) if x % 2 == 0 else Left("odd")

    assert Right(8).bind(half).bind(half).get_or_else(0) == 2
    assert Right(6).bind(half).bind(half).get_error() == "odd"
    assert Left("first").bind(half).get_error() == "first"


def test_find_bill():
    bills = (make_bill(),)
    assert find_bill(bills, "b1") == Some(bills[0])
    assert find_bill(bills, "nope").is_none()


def test_validate_transaction():
    assert validate_transaction(make_tx()).is_right()
    assert validate_transaction(make_tx(amount=0)).get_error()["error"] == "invalid_amount"
    assert validate_transaction(make_tx(title="  ")).get_error()["error"] == "missing_title"
    assert validate_transaction(make_tx(date="01/09/2025")).get_error()["error"] == "invalid_date"


def test_validate_payment():
    bill = make_bill(payments=(Payment(id="p1", amount=10, date="2025-09-01"),))
    assert validate_payment(bill, Payment(id="p2", amount=20, date="2025-09-02")).is_right()
    assert validate_payment(bill, Payment(id="p1", amount=20, date="2025-09-02")).get_error()["error"] == \
        "duplicate_payment"
    assert validate_payment(bill, Payment(id="p3", amount=-1, date="2025-09-02")).is_left()


def test_validate_other_entities():
    assert validate_bill(make_bill(amount=0)).is_left()
    assert validate_recurring_income(RecurringIncome(id="r", title="S", amount=10, pay_day=32)).is_left()
    assert validate_recurring_income(RecurringIncome(id="r", title="S", amount=10, pay_day=31)).is_right()
    assert validate_goal(SavingsGoal(id="g", title="G", target_amount=0)).is_left()
    assert validate_goal(SavingsGoal(id="g", title="G", target_amount=10, deadline="2025-12-01")).is_right()


def test_check_budget():
    state = AppState(
        transactions=(make_tx(amount=700), make_tx(amount=400, date="2025-09-12"),
                      make_tx(amount=5000, kind=TransactionType.INCOME)),
        monthly_budget=1000,
    )
    result = check_budget(state, "2025-09")
    err = result.get_error()
    assert err["error"] == "budget_exceeded"
    assert err["spent"] == 1100
    assert err["over_budget"] == 100
    assert check_budget(state, "2025-10").is_right()
    assert check_budget(AppState(transactions=state.transactions), "2025-09").is_right()
