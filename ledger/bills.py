import logging
from dataclasses import replace
from typing import Optional

from ledger.dates import today_iso
from ledger.domain import Bill, BillStatus, Payment

logger = logging.getLogger(__name__)


def paid_total(bill: Bill) -> float:
    return sum(p.amount for p in bill.payments)


def remaining(bill: Bill) -> float:
    return max(bill.amount - paid_total(bill), 0.0)


def progress_percent(bill: Bill) -> float:
    # a zero-amount bill counts as settled
    if bill.amount <= 0:
        return 100.0
    return min(paid_total(bill) / bill.amount * 100, 100.0)


def derive_status(bill: Bill) -> BillStatus:
    paid = paid_total(bill)
    if paid >= bill.amount:
        return BillStatus.PAID
    if paid > 0:
        return BillStatus.PARTIAL
    return BillStatus.PENDING


def is_paid(bill: Bill) -> bool:
    return derive_status(bill) is BillStatus.PAID


def is_overdue(bill: Bill, today: Optional[str] = None) -> bool:
    return not is_paid(bill) and bill.due_date < today_iso(today)


def with_payment(bill: Bill, payment: Payment) -> Bill:
    """Append ``payment`` and re-derive the status in the same step."""
    updated = replace(bill, payments=bill.payments + (payment,))
    return replace(updated, status=derive_status(updated))


def resync_status(bill: Bill) -> Bill:
    status = derive_status(bill)
    if status is bill.status:
        return bill
    logger.warning("bill %s had stale status %s, repaired to %s", bill.id, bill.status.value, status.value)
    return replace(bill, status=status)
