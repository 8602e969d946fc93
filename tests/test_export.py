from ledger.advisor import Tip
from ledger.domain import (
    AppState,
    Bill,
    BillStatus,
    BillType,
    Category,
    Payment,
    Priority,
    Transaction,
    TransactionType,
)
from ledger.export import BILL_COLUMNS, TRANSACTION_COLUMNS, bills_frame, export_csv, monthly_report_html, transactions_frame
from ledger.indices import calculate_indices
from ledger.snapshot import calculate_snapshot

STATE = AppState(
    transactions=(
        Transaction(id="t2", title="Market", amount=80, date="2025-09-12", type=TransactionType.EXPENSE,
                    category=Category.FOOD),
        Transaction(id="t1", title="Salary", amount=3000, date="2025-09-05", type=TransactionType.INCOME,
                    category=Category.SALARY),
    ),
    bills=(
        Bill(id="b1", title="Rent", amount=1000, due_date="2025-09-03", type=BillType.PAY,
             category=Category.HOUSING, status=BillStatus.PENDING,
             payments=(Payment(id="p1", amount=1000, date="2025-09-02"),)),
    ),
    monthly_budget=2500,
)


def test_transactions_frame_sorted():
    df = transactions_frame(STATE.transactions)
    assert list(df.columns) == TRANSACTION_COLUMNS
    assert list(df["title"]) == ["Salary", "Market"]
    assert df.loc[1, "category"] == "Food"


def test_bills_frame_uses_derived_status():
    df = bills_frame(STATE.bills)
    assert list(df.columns) == BILL_COLUMNS
    assert df.loc[0, "status"] == "paid"
    assert df.loc[0, "remaining"] == 0


def test_empty_frames_keep_columns():
    assert list(transactions_frame(()).columns) == TRANSACTION_COLUMNS
    assert bills_frame(()).empty


def test_export_csv():
    csv = export_csv(STATE)
    lines = csv.strip().splitlines()
    assert lines[0].startswith("record,date,title")
    assert sum(1 for row in lines if row.startswith("transaction,")) == 2
    assert sum(1 for row in lines if row.startswith("bill,")) == 1
    assert any(row.startswith("budget,") and "Monthly target" in row for row in lines)


def test_export_csv_empty_state():
    assert export_csv(AppState()).strip() == "record," + ",".join(TRANSACTION_COLUMNS)


def test_monthly_report_html():
    snap = calculate_snapshot(STATE.transactions, STATE.bills, "2025-09", STATE.monthly_budget, today="2025-09-20")
    indices = calculate_indices(STATE, snap, today="2025-09-20")
    tips = [Tip(icon="coin", title="Save <more>", body="Keep it up", priority=Priority.LOW)]
    html = monthly_report_html(STATE, snap, indices, tips)
    assert "Monthly report: September 2025" in html
    assert "Save &lt;more&gt;" in html
    assert "Rent" in html and "Food" in html
