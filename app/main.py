import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from uuid import uuid4

import streamlit as st
import pandas as pd
import numpy as np
import plotly.graph_objects as go
import plotly.express as px

from ledger import config
from ledger.advisor import build_context, Advisor
from ledger.bills import progress_percent, remaining
from ledger.context import build_chat_messages, build_financial_context
from ledger.dates import (
    current_month_key,
    format_currency,
    format_date,
    month_label,
    previous_month_keys,
    shift_month,
    today_iso,
)
from ledger.domain import (
    Bill,
    BillType,
    Category,
    Frequency,
    Payment,
    RecurringIncome,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from ledger.events import BILL_REMINDER, BUDGET_ALERT, PAYMENT_ADDED, bill_reminders, event_bus
from ledger.export import bills_frame, export_csv, monthly_report_html, transactions_frame
from ledger.functional import (
    find_bill,
    validate_bill,
    validate_goal,
    validate_payment,
    validate_recurring_income,
    validate_transaction,
)
from ledger.indices import health_label, health_score
from ledger.planner import SandboxEntry, plan_sandbox, plan_table
from ledger.services import default_report_service
from ledger.snapshot import daily_cash_flow, monthly_history
from ledger.transforms import (
    add_bill,
    add_goal,
    add_payment_to_bill,
    add_recurring_income,
    add_transaction,
    delete_goal,
    delete_recurring_income,
    delete_transaction,
    deposit_to_goal,
    load_state,
    save_state,
    set_budget,
    toggle_recurring_income,
)

config.configure_logging()
st.set_page_config(page_title="Household Ledger", layout="wide")

if "state" not in st.session_state:
    st.session_state.state = load_state(config.DATA_PATH)
if "alerts" not in st.session_state:
    st.session_state.alerts = []
if "sandbox" not in st.session_state:
    st.session_state.sandbox = []
if "chat" not in st.session_state:
    st.session_state.chat = []

state = st.session_state.state

st.sidebar.markdown("### 📅 Month")
this_month = current_month_key()
month_options = [shift_month(this_month, d) for d in range(-6, 4)]
month_key = st.sidebar.selectbox(
    "Month", month_options, index=month_options.index(this_month), format_func=month_label
)

report = default_report_service().monthly_report(state, month_key)
result = report["result"]
snapshot = result["snapshot"]
indices = result["indices"]

reminders = bill_reminders(snapshot)
if reminders["lines"]:
    st.sidebar.warning("🔔 " + "\n\n".join(reminders["lines"]))

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "💸 Transactions", "🧾 Bills", "💰 Incomes & goals", "📈 Cash flow & plan", "🧪 Sandbox", "💡 Advisor", "📤 Export"]
)

if st.sidebar.button("💾 Save"):
    save_state(state, config.DATA_PATH)
    st.sidebar.success("Saved")


def update_state(new_state):
    st.session_state.state = new_state
    st.rerun()


if menu == "🏠 Overview":
    st.title(f"🏠 {month_label(month_key)}")
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Income", format_currency(snapshot.incomes_total))
    with k2:
        st.metric("Expenses", format_currency(snapshot.expenses_total))
    with k3:
        st.metric("Projected balance", format_currency(snapshot.projected_balance))
    with k4:
        st.metric("Budget used", f"{snapshot.budget_usage_percent:.0f}%" if state.monthly_budget > 0 else "-")

    h1, h2, h3 = st.columns(3)
    with h1:
        st.metric("Discipline", f"{indices.discipline_score}/1000", delta=indices.discipline_level, delta_color="off")
    with h2:
        st.metric("Health", f"{result['health_score']}/1000", delta=result["health_label"], delta_color="off")
    with h3:
        st.metric("Risk", f"{indices.risk_index}/100", delta=indices.month_projection.upper(), delta_color="off")

    for entry in report["validation"]:
        for msg in entry["messages"]:
            st.warning(f"⚠️ {msg}")

    days = np.arange(1, len(snapshot.daily_balance_series) + 1)
    fig_bal = go.Figure()
    fig_bal.add_trace(go.Scatter(x=days, y=list(snapshot.daily_balance_series), mode="lines+markers", name="Balance"))
    fig_bal.add_hline(y=0, line_dash="dot")
    fig_bal.update_layout(title="Running balance", template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_bal, use_container_width=True)

    col_cat, col_hist = st.columns(2)
    with col_cat:
        if snapshot.category_breakdown:
            df_cat = pd.DataFrame(
                [{"Category": c.category.label, "Total": c.total} for c in snapshot.category_breakdown]
            )
            fig_cat = px.pie(df_cat, values="Total", names="Category", title="Spending by category")
            st.plotly_chart(fig_cat, use_container_width=True)
        else:
            st.info("No spending recorded this month.")
    with col_hist:
        keys = previous_month_keys(month_key, config.HISTORY_MONTHS) + (month_key,)
        history = monthly_history(state.transactions, state.bills, keys, state.monthly_budget)
        df_hist = pd.DataFrame(
            {
                "Month": [month_label(s.month_key) for s in history],
                "Income": [s.incomes_total for s in history],
                "Expenses": [s.expenses_total for s in history],
            }
        )
        fig_hist = px.bar(df_hist, x="Month", y=["Income", "Expenses"], barmode="group", title="Recent months")
        st.plotly_chart(fig_hist, use_container_width=True)

    st.subheader("➕ Add transaction")
    with st.form("tx_form", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1:
            title = st.text_input("Title")
            amount = st.number_input("Amount", min_value=0.0, step=10.0)
            kind = st.selectbox("Type", [t.value for t in TransactionType])
        with c2:
            date = st.date_input("Date")
            category = st.selectbox("Category", list(Category), format_func=lambda c: c.label)
            notes = st.text_input("Notes")
        submitted = st.form_submit_button("Add")

    if submitted:
        tx = Transaction(
            id=uuid4().hex, title=title, amount=float(amount), date=date.isoformat(),
            type=TransactionType(kind), category=category, notes=notes or None,
        )
        checked = validate_transaction(tx)
        if checked.is_left():
            st.error(checked.get_error()["message"])
        else:
            new_state = add_transaction(state, tx)
            new_report = default_report_service().monthly_report(new_state, month_key)
            alerts = event_bus.publish(BUDGET_ALERT, {
                "usage_percent": new_report["result"]["snapshot"].budget_usage_percent,
                "budget": new_state.monthly_budget,
            })
            st.session_state.alerts += [a for a in alerts if a]
            update_state(new_state)

    for alert in reversed(st.session_state.alerts[-5:]):
        if alert["level"] == "high":
            st.error(f"🔴 {alert['alert']}")
        else:
            st.warning(f"🟠 {alert['alert']}")

    budget = st.number_input("Monthly budget", min_value=0.0, value=float(state.monthly_budget), step=100.0)
    if budget != state.monthly_budget:
        update_state(set_budget(state, budget))

elif menu == "💸 Transactions":
    st.title("💸 Transactions")
    month_tx = sorted(
        (t for t in state.transactions if t.date[:7] == month_key), key=lambda t: t.date, reverse=True
    )
    if not month_tx:
        st.info("No transactions this month.")
    for t in month_tx:
        c1, c2, c3 = st.columns([4, 2, 1])
        sign = "+" if t.type is TransactionType.INCOME else "-"
        c1.markdown(f"**{t.title}** · {t.category.label} · {format_date(t.date)}")
        c2.markdown(f"{sign}{format_currency(t.amount)}")
        if c3.button("🗑", key=f"del-{t.id}"):
            update_state(delete_transaction(state, t.id))

elif menu == "💰 Incomes & goals":
    st.title("💰 Incomes & goals")
    st.header("Recurring incomes")
    for r in state.recurring_incomes:
        c1, c2, c3 = st.columns([4, 1, 1])
        c1.markdown(
            f"**{r.title}** · {format_currency(r.amount)} · day {r.pay_day} · {r.frequency.value}"
            + ("" if r.active else " · paused")
        )
        if c2.button("⏯", key=f"toggle-{r.id}"):
            update_state(toggle_recurring_income(state, r.id))
        if c3.button("🗑", key=f"del-income-{r.id}"):
            update_state(delete_recurring_income(state, r.id))

    with st.form("income_form", clear_on_submit=True):
        c1, c2, c3, c4 = st.columns(4)
        with c1:
            i_title = st.text_input("Title")
        with c2:
            i_amount = st.number_input("Amount", min_value=0.0, step=100.0)
        with c3:
            i_day = st.number_input("Pay day", min_value=1, max_value=31, value=5)
        with c4:
            i_freq = st.selectbox("Frequency", [f.value for f in Frequency])
        income_submitted = st.form_submit_button("Add income")

    if income_submitted:
        income = RecurringIncome(
            id=uuid4().hex, title=i_title or "Income", amount=float(i_amount), pay_day=int(i_day),
            frequency=Frequency(i_freq),
        )
        checked = validate_recurring_income(income)
        if checked.is_left():
            st.error(checked.get_error()["message"])
        else:
            update_state(add_recurring_income(state, income))

    st.header("Savings goals")
    for g in state.savings_goals:
        st.markdown(
            f"**{g.title}** · {format_currency(g.current_amount)} / {format_currency(g.target_amount)}"
            + (f" · by {format_date(g.deadline)}" if g.deadline else "")
        )
        st.progress(min(g.current_amount / g.target_amount, 1.0) if g.target_amount > 0 else 0.0)
        c1, c2, c3 = st.columns([2, 1, 1])
        deposit = c1.number_input("Deposit", min_value=0.0, step=50.0, key=f"dep-{g.id}")
        if c2.button("Deposit", key=f"dep-btn-{g.id}"):
            update_state(deposit_to_goal(state, g.id, deposit))
        if c3.button("🗑", key=f"del-goal-{g.id}"):
            update_state(delete_goal(state, g.id))

    with st.form("goal_form", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        with c1:
            g_title = st.text_input("Goal")
        with c2:
            g_target = st.number_input("Target", min_value=0.0, step=100.0)
        with c3:
            g_deadline = st.date_input("Deadline", value=None)
        goal_submitted = st.form_submit_button("Add goal")

    if goal_submitted:
        goal = SavingsGoal(
            id=uuid4().hex, title=g_title or "Goal", target_amount=float(g_target),
            deadline=g_deadline.isoformat() if g_deadline else None, created_at=today_iso(),
        )
        checked = validate_goal(goal)
        if checked.is_left():
            st.error(checked.get_error()["message"])
        else:
            update_state(add_goal(state, goal))

elif menu == "🧾 Bills":
    st.title("🧾 Bills")
    for bill in reminders["overdue"]:
        st.error(event_bus.publish(BILL_REMINDER, {"bill": bill})[0]["message"])
    for bill in reminders["urgent"]:
        st.warning(event_bus.publish(BILL_REMINDER, {"bill": bill})[0]["message"])

    month_bl = [b for b in state.bills if b.due_date[:7] == month_key]
    if month_bl:
        df_bills = bills_frame(month_bl)
        st.dataframe(df_bills, use_container_width=True)
        for bill in month_bl:
            st.markdown(f"**{bill.title}** ({format_date(bill.due_date)}): {format_currency(remaining(bill))} left")
            st.progress(progress_percent(bill) / 100)
    else:
        st.info("No bills due this month.")

    with st.form("bill_form", clear_on_submit=True):
        st.markdown("**New bill**")
        c1, c2 = st.columns(2)
        with c1:
            b_title = st.text_input("Title")
            b_amount = st.number_input("Amount", min_value=0.0, step=10.0)
        with c2:
            b_due = st.date_input("Due date")
            b_type = st.selectbox("Type", [t.value for t in BillType])
            b_cat = st.selectbox("Category", list(Category), format_func=lambda c: c.label)
        add_submitted = st.form_submit_button("Add bill")

    if add_submitted:
        bill = Bill(
            id=uuid4().hex, title=b_title, amount=float(b_amount), due_date=b_due.isoformat(),
            type=BillType(b_type), category=b_cat,
        )
        checked = validate_bill(bill)
        if checked.is_left():
            st.error(checked.get_error()["message"])
        else:
            update_state(add_bill(state, bill))

    open_bills = [b for b in state.bills if remaining(b) > 0]
    if open_bills:
        with st.form("payment_form", clear_on_submit=True):
            st.markdown("**Record payment**")
            bill_id = st.selectbox(
                "Bill", [b.id for b in open_bills],
                format_func=lambda bid: next(b.title for b in open_bills if b.id == bid),
            )
            p_amount = st.number_input("Amount", min_value=0.0, step=10.0)
            p_date = st.date_input("Paid on")
            pay_submitted = st.form_submit_button("Pay")

        if pay_submitted:
            target = find_bill(state.bills, bill_id)
            payment = Payment(id=uuid4().hex, amount=float(p_amount), date=p_date.isoformat())
            checked = target.map(lambda b: validate_payment(b, payment)).get_or_else(None)
            if checked is None:
                st.error("Bill not found")
            elif checked.is_left():
                st.error(checked.get_error()["message"])
            else:
                new_state = add_payment_to_bill(state, bill_id, payment)
                paid = find_bill(new_state.bills, bill_id).get_or_else(None)
                outcome = event_bus.publish(PAYMENT_ADDED, {"bill": paid})[0]
                st.session_state.alerts.append({
                    "level": "medium",
                    "alert": f"{paid.title}: {outcome['status']} ({outcome['progress']:.0f}%)",
                })
                update_state(new_state)

elif menu == "📈 Cash flow & plan":
    st.title("📈 Cash flow & plan")
    flows = daily_cash_flow(month_key, state.transactions, state.bills, state.recurring_incomes)
    df_flow = pd.DataFrame(
        {
            "Day": [f.day for f in flows],
            "In": [f.inflow for f in flows],
            "Out": [-f.outflow for f in flows],
            "Balance": [f.balance for f in flows],
        }
    )
    fig_flow = go.Figure()
    fig_flow.add_trace(go.Bar(x=df_flow["Day"], y=df_flow["In"], name="In"))
    fig_flow.add_trace(go.Bar(x=df_flow["Day"], y=df_flow["Out"], name="Out"))
    fig_flow.add_trace(go.Scatter(x=df_flow["Day"], y=df_flow["Balance"], mode="lines", name="Balance"))
    fig_flow.update_layout(barmode="relative", template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_flow, use_container_width=True)

    negative = [f.day for f in flows if f.balance < 0]
    if negative:
        st.warning(f"⚠️ Balance goes negative on day {negative[0]}.")

    plan = result["plan"]
    st.subheader("Bill payment plan")
    for w in plan.warnings:
        st.warning(w)
    if plan.steps:
        st.table(pd.DataFrame(plan_table(plan)))
    for a in plan.advice:
        st.info(a)

elif menu == "🧪 Sandbox":
    st.title("🧪 Sandbox")
    st.caption("Try income and expense scenarios without touching your data.")
    with st.form("sandbox_form", clear_on_submit=True):
        c1, c2, c3, c4 = st.columns(4)
        with c1:
            s_type = st.selectbox("Type", ["income", "expense"])
        with c2:
            s_title = st.text_input("Title")
        with c3:
            s_amount = st.number_input("Amount", min_value=0.0, step=10.0)
        with c4:
            s_date = st.date_input("Date")
        if st.form_submit_button("Add") and s_amount > 0:
            st.session_state.sandbox.append(
                SandboxEntry(id=uuid4().hex, type=s_type, title=s_title or s_type, amount=float(s_amount),
                             date=s_date.isoformat())
            )

    entries = st.session_state.sandbox
    if entries:
        st.dataframe(pd.DataFrame([e.__dict__ for e in entries]), use_container_width=True)
        sandbox_plan = plan_sandbox(entries)
        k1, k2, k3 = st.columns(3)
        k1.metric("Income", format_currency(sandbox_plan.total_income))
        k2.metric("Obligations", format_currency(sandbox_plan.total_obligations))
        k3.metric("Free", format_currency(sandbox_plan.final_free))
        for w in sandbox_plan.warnings:
            st.warning(w)
        if sandbox_plan.steps:
            st.table(pd.DataFrame(plan_table(sandbox_plan)))
        for a in sandbox_plan.advice:
            st.info(a)
        if st.button("Clear sandbox"):
            st.session_state.sandbox = []
            st.rerun()
    else:
        st.info("Add incomes and expenses to simulate a plan.")

elif menu == "💡 Advisor":
    st.title("💡 Advisor")
    score = health_score(snapshot, state.monthly_budget)
    st.metric("Health score", f"{score}/1000", delta=health_label(score), delta_color="off")

    advice = Advisor().advise(build_context(state, snapshot, month_key))
    icons = {"high": "🔴", "medium": "🟠", "low": "🟢"}
    for tip in advice["tips"]:
        with st.expander(f"{icons[tip.priority.value]} {tip.title}"):
            st.write(tip.body)

    st.subheader("Assistant context")
    context = build_financial_context(state, snapshot, indices, month_key)
    question = st.chat_input("Ask about your finances")
    if question:
        st.session_state.chat.append({"role": "user", "content": question})
    st.code(context)
    with st.expander("Messages sent to the assistant"):
        st.json(build_chat_messages(st.session_state.chat, context))

elif menu == "📤 Export":
    st.title("📤 Export")
    st.subheader("Transactions")
    st.dataframe(transactions_frame(state.transactions), use_container_width=True)
    st.download_button("⬇ Download CSV", export_csv(state), file_name="ledger.csv")
    html = monthly_report_html(state, snapshot, indices, result["tips"])
    st.download_button("⬇ Monthly report (HTML)", html, file_name=f"report-{month_key}.html")
