from html import escape
from typing import Iterable

import pandas as pd

from ledger.bills import derive_status, paid_total, remaining
from ledger.dates import format_currency, format_date, month_label
from ledger.domain import AppState, Bill, MonthlySnapshot, Transaction

TRANSACTION_COLUMNS = ["date", "title", "type", "category", "amount", "notes"]
BILL_COLUMNS = ["due_date", "title", "type", "category", "amount", "paid", "remaining", "status"]


def transactions_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [
        {
            "date": t.date,
            "title": t.title,
            "type": t.type.value,
            "category": t.category.label,
            "amount": t.amount,
            "notes": t.notes or "",
        }
        for t in transactions
    ]
    df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
    return df.sort_values("date", kind="stable").reset_index(drop=True)


def bills_frame(bills: Iterable[Bill]) -> pd.DataFrame:
    rows = [
        {
            "due_date": b.due_date,
            "title": b.title,
            "type": b.type.value,
            "category": b.category.label,
            "amount": b.amount,
            "paid": paid_total(b),
            "remaining": remaining(b),
            "status": derive_status(b).value,
        }
        for b in bills
    ]
    df = pd.DataFrame(rows, columns=BILL_COLUMNS)
    return df.sort_values("due_date", kind="stable").reset_index(drop=True)


def export_csv(state: AppState) -> str:
    """Transactions and bills as one CSV with a ``record`` column telling them apart."""
    tx = transactions_frame(state.transactions)
    tx.insert(0, "record", "transaction")
    bl = bills_frame(state.bills).rename(columns={"due_date": "date"})
    bl.insert(0, "record", "bill")
    target = pd.DataFrame(
        [{"record": "budget", "title": "Monthly target", "amount": state.monthly_budget}]
        if state.monthly_budget > 0 else [],
        columns=["record", "title", "amount"],
    )
    frames = [f for f in (tx, bl, target) if not f.empty]
    if not frames:
        return pd.DataFrame(columns=["record", *TRANSACTION_COLUMNS]).to_csv(index=False)
    return pd.concat(frames, ignore_index=True).to_csv(index=False)


def monthly_report_html(state: AppState, snapshot: MonthlySnapshot, indices, tips) -> str:
    """Self-contained HTML summary of one month, ready to print."""
    summary = pd.DataFrame(
        [
            ("Income", format_currency(snapshot.incomes_total)),
            ("Expenses", format_currency(snapshot.expenses_total)),
            ("To receive", format_currency(snapshot.bills_to_receive)),
            ("To pay", format_currency(snapshot.bills_to_pay)),
            ("Projected balance", format_currency(snapshot.projected_balance)),
            ("Discipline score", f"{indices.discipline_score}/1000 ({indices.discipline_level})"),
            ("Risk", f"{indices.risk_index}/100"),
        ],
        columns=["Item", "Value"],
    )
    categories = pd.DataFrame(
        [(c.category.label, format_currency(c.total)) for c in snapshot.category_breakdown],
        columns=["Category", "Total"],
    )
    month_bills = [b for b in state.bills if b.due_date[:7] == snapshot.month_key]
    bills = bills_frame(month_bills)
    bills["due_date"] = bills["due_date"].map(format_date)
    for col in ("amount", "paid", "remaining"):
        bills[col] = bills[col].map(format_currency)

    tip_items = "".join(f"<li><b>{escape(t.title)}</b>: {escape(t.body)}</li>" for t in tips)
    title = f"Monthly report: {month_label(snapshot.month_key)}"
    return (
        f"<html><head><meta charset='utf-8'><title>{escape(title)}</title></head><body>"
        f"<h1>{escape(title)}</h1>"
        f"<h2>Summary</h2>{summary.to_html(index=False)}"
        f"<h2>Categories</h2>{categories.to_html(index=False)}"
        f"<h2>Bills</h2>{bills.to_html(index=False)}"
        f"<h2>Tips</h2><ul>{tip_items}</ul>"
        "</body></html>"
    )
