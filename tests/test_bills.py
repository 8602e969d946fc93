import logging

from ledger.bills import (
    derive_status,
    is_overdue,
    is_paid,
    paid_total,
    progress_percent,
    remaining,
    resync_status,
    with_payment,
)
from ledger.domain import Bill, BillStatus, BillType, Category, Payment


def make_bill(amount=100.0, payments=(), due="2025-09-10", status=BillStatus.PENDING):
    return Bill(
        id="b1", title="Rent", amount=amount, due_date=due, type=BillType.PAY,
        category=Category.HOUSING, status=status, payments=tuple(payments),
    )


def pay(amount, pid="p1", date="2025-09-01"):
    return Payment(id=pid, amount=amount, date=date)


def test_partial_bill():
    bill = make_bill(100, [pay(30)])
    assert paid_total(bill) == 30
    assert remaining(bill) == 70
    assert progress_percent(bill) == 30
    assert derive_status(bill) is BillStatus.PARTIAL
    assert not is_paid(bill)


def test_unpaid_bill_is_pending():
    bill = make_bill(100)
    assert derive_status(bill) is BillStatus.PENDING
    assert remaining(bill) == 100
    assert progress_percent(bill) == 0


def test_overpaid_bill_is_capped():
    bill = make_bill(100, [pay(80), pay(70, pid="p2")])
    assert paid_total(bill) == 150
    assert remaining(bill) == 0
    assert progress_percent(bill) == 100
    assert derive_status(bill) is BillStatus.PAID


def test_zero_amount_bill_counts_as_paid():
    bill = make_bill(0)
    assert progress_percent(bill) == 100
    assert is_paid(bill)


def test_with_payment_rederives_status():
    bill = make_bill(100)
    half = with_payment(bill, pay(50))
    assert half.status is BillStatus.PARTIAL
    full = with_payment(half, pay(50, pid="p2"))
    assert full.status is BillStatus.PAID
    assert len(full.payments) == 2
    # original untouched
    assert bill.payments == ()


def test_resync_status_repairs_stale_value(caplog):
    stale = make_bill(100, [pay(100)], status=BillStatus.PENDING)
    with caplog.at_level(logging.WARNING, logger="ledger.bills"):
        fixed = resync_status(stale)
    assert fixed.status is BillStatus.PAID
    assert "stale status" in caplog.text


def test_resync_status_keeps_consistent_bill():
    bill = make_bill(100, [pay(20)], status=BillStatus.PARTIAL)
    assert resync_status(bill) is bill


def test_is_overdue():
    bill = make_bill(100, due="2025-09-10")
    assert is_overdue(bill, today="2025-09-11")
    assert not is_overdue(bill, today="2025-09-10")
    assert not is_overdue(make_bill(100, [pay(100)], due="2025-09-01"), today="2025-09-11")


def test_two_partial_payments():
    bill = make_bill(200, [pay(50), pay(50, pid="p2")])
    assert paid_total(bill) == 100
    assert remaining(bill) == 100
    assert derive_status(bill) is BillStatus.PARTIAL
    assert progress_percent(bill) == 50


def test_status_ignores_payment_order():
    payments = [pay(30, "p1"), pay(120, "p2"), pay(10, "p3")]
    forward = make_bill(150, payments)
    backward = make_bill(150, list(reversed(payments)))
    assert derive_status(forward) is derive_status(backward) is BillStatus.PAID
    assert remaining(forward) == remaining(backward) == 0


def test_progress_never_decreases():
    bill = make_bill(100)
    seen = [progress_percent(bill)]
    for i, amount in enumerate((25, 0.5, 40, 60, 10)):
        bill = with_payment(bill, pay(amount, pid=f"p{i}"))
        seen.append(progress_percent(bill))
    assert seen == sorted(seen)
    assert seen[-1] == 100
