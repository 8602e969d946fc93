from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, TypeVar

from ledger.domain import (
    AppState,
    Bill,
    Payment,
    RecurringIncome,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from ledger.filters import month_transactions

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def get_error(self) -> E:
        pass


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def _error(code: str, message: str, **details) -> Left:
    return Left({"error": code, "message": message, **details})


def _is_iso_day(value: str) -> bool:
    return (
        isinstance(value, str) and len(value) == 10 and value[4] == "-" and value[7] == "-"
        and value.replace("-", "").isdigit()
    )


def find_bill(bills: Iterable[Bill], bill_id: str) -> Maybe[Bill]:
    for bill in bills:
        if bill.id == bill_id:
            return Some(bill)
    return Nothing()


def validate_transaction(t: Transaction) -> Either[dict, Transaction]:
    if not t.title.strip():
        return _error("missing_title", "Transaction needs a title", id=t.id)
    if t.amount <= 0:
        return _error("invalid_amount", f"Transaction amount must be positive, got {t.amount}", amount=t.amount)
    if not _is_iso_day(t.date):
        return _error("invalid_date", f"Transaction date {t.date!r} is not YYYY-MM-DD", date=t.date)
    return Right(t)


def validate_payment(bill: Bill, p: Payment) -> Either[dict, Payment]:
    if p.amount <= 0:
        return _error("invalid_amount", f"Payment amount must be positive, got {p.amount}", amount=p.amount)
    if not _is_iso_day(p.date):
        return _error("invalid_date", f"Payment date {p.date!r} is not YYYY-MM-DD", date=p.date)
    if any(existing.id == p.id for existing in bill.payments):
        return _error("duplicate_payment", f"Payment {p.id} already recorded on bill {bill.id}", payment_id=p.id)
    return Right(p)


def validate_bill(b: Bill) -> Either[dict, Bill]:
    if not b.title.strip():
        return _error("missing_title", "Bill needs a title", id=b.id)
    if b.amount <= 0:
        return _error("invalid_amount", f"Bill amount must be positive, got {b.amount}", amount=b.amount)
    if not _is_iso_day(b.due_date):
        return _error("invalid_date", f"Due date {b.due_date!r} is not YYYY-MM-DD", due_date=b.due_date)
    return Right(b)


def validate_recurring_income(r: RecurringIncome) -> Either[dict, RecurringIncome]:
    if r.amount <= 0:
        return _error("invalid_amount", f"Income amount must be positive, got {r.amount}", amount=r.amount)
    if not 1 <= r.pay_day <= 31:
        return _error("invalid_pay_day", f"Pay day must be between 1 and 31, got {r.pay_day}", pay_day=r.pay_day)
    return Right(r)


def validate_goal(g: SavingsGoal) -> Either[dict, SavingsGoal]:
    if g.target_amount <= 0:
        return _error("invalid_target", f"Goal target must be positive, got {g.target_amount}",
                      target_amount=g.target_amount)
    if g.current_amount < 0:
        return _error("invalid_amount", "Goal balance cannot be negative", current_amount=g.current_amount)
    if g.deadline is not None and not _is_iso_day(g.deadline):
        return _error("invalid_date", f"Deadline {g.deadline!r} is not YYYY-MM-DD", deadline=g.deadline)
    return Right(g)


def check_budget(state: AppState, month_key: str) -> Either[dict, AppState]:
    """Left when the month's expenses exceed a set monthly budget."""
    if state.monthly_budget <= 0:
        return Right(state)
    spent = sum(
        t.amount for t in month_transactions(state.transactions, month_key)
        if t.type is TransactionType.EXPENSE
    )
    if spent > state.monthly_budget:
        return _error(
            "budget_exceeded",
            f"Monthly budget exceeded for {month_key}",
            month=month_key,
            limit=state.monthly_budget,
            spent=spent,
            over_budget=spent - state.monthly_budget,
        )
    return Right(state)
