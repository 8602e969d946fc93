from ledger.domain import CATEGORY_LABELS, Bill, BillStatus, BillType, Category


def test_every_category_has_a_label():
    assert set(CATEGORY_LABELS) == set(Category)
    assert all(c.label for c in Category)
    assert Category.HOUSING.label == "Housing"


def test_category_round_trips_through_value():
    assert Category("food") is Category.FOOD
    assert Category.FOOD == "food"


def test_bill_defaults():
    bill = Bill(id="b", title="Gas", amount=10, due_date="2025-09-01", type=BillType.PAY, category=Category.OTHER)
    assert bill.status is BillStatus.PENDING
    assert bill.payments == ()
