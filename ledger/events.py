from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional

from ledger import config
from ledger.bills import derive_status, progress_percent, remaining
from ledger.dates import day_of_month, days_until, format_currency
from ledger.domain import Bill, MonthlySnapshot

__all__ = [
    'event_bus', 'PAYMENT_ADDED', 'BUDGET_ALERT', 'BILL_REMINDER', 'Event', 'EventBus',
    'bill_reminders',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in self._subscribers[name]]

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


PAYMENT_ADDED = "PAYMENT_ADDED"
BUDGET_ALERT = "BUDGET_ALERT"
BILL_REMINDER = "BILL_REMINDER"

event_bus = EventBus()


def payment_added_handler(event: Event, payload: dict) -> dict:
    bill: Bill = payload["bill"]
    return {
        "bill_id": bill.id,
        "status": derive_status(bill).value,
        "progress": progress_percent(bill),
        "remaining": remaining(bill),
    }


def budget_alert_handler(event: Event, payload: dict) -> dict:
    usage = payload.get("usage_percent", 0)
    budget = payload.get("budget", 0)
    if budget <= 0:
        return {}
    if usage > 100:
        return {"alert": f"Budget exceeded: {usage:.0f}% of {format_currency(budget)} used", "level": "high"}
    if usage > 90:
        return {"alert": f"Budget almost used up: {usage:.0f}% of {format_currency(budget)}", "level": "medium"}
    return {}


def bill_reminder_handler(event: Event, payload: dict) -> dict:
    bill: Bill = payload["bill"]
    days = days_until(bill.due_date, payload.get("today"))
    owed = format_currency(remaining(bill))
    if days < 0:
        return {"bill_id": bill.id, "message": f"{bill.title}: {owed} is {abs(days)} day(s) overdue!"}
    return {"bill_id": bill.id, "message": f"{bill.title}: {owed} due in {days} day(s)."}


def bill_reminders(
    snapshot: MonthlySnapshot, today: Optional[str] = None, within_days: Optional[int] = None
) -> dict:
    """Overdue bills plus upcoming bills due within ``within_days`` days."""
    window = config.REMINDER_DAYS if within_days is None else within_days
    urgent = tuple(b for b in snapshot.upcoming_bills if days_until(b.due_date, today) <= window)
    return {
        "overdue": snapshot.overdue_bills,
        "urgent": urgent,
        "lines": [
            f"{b.title}: {format_currency(remaining(b))} ({abs(days_until(b.due_date, today))}d late)"
            for b in snapshot.overdue_bills
        ] + [
            f"{b.title}: {format_currency(remaining(b))} (day {day_of_month(b.due_date)})" for b in urgent
        ],
    }


def register_default_handlers(bus: EventBus = event_bus) -> None:
    bus.subscribe(PAYMENT_ADDED, payment_added_handler)
    bus.subscribe(BUDGET_ALERT, budget_alert_handler)
    bus.subscribe(BILL_REMINDER, bill_reminder_handler)


register_default_handlers()
