from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Category(str, Enum):
    HOUSING = "housing"
    FOOD = "food"
    TRANSPORT = "transport"
    HEALTH = "health"
    EDUCATION = "education"
    ENTERTAINMENT = "entertainment"
    SERVICES = "services"
    SALARY = "salary"
    FREELANCE = "freelance"
    INVESTMENT = "investment"
    OTHER = "other"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[Category, str] = {
    Category.HOUSING: "Housing",
    Category.FOOD: "Food",
    Category.TRANSPORT: "Transport",
    Category.HEALTH: "Health",
    Category.EDUCATION: "Education",
    Category.ENTERTAINMENT: "Entertainment",
    Category.SERVICES: "Services",
    Category.SALARY: "Salary",
    Category.FREELANCE: "Freelance",
    Category.INVESTMENT: "Investment",
    Category.OTHER: "Other",
}

_missing = set(Category) - set(CATEGORY_LABELS)
if _missing:
    raise RuntimeError(f"categories without a label: {sorted(c.value for c in _missing)}")


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class BillType(str, Enum):
    PAY = "pay"
    RECEIVE = "receive"


class BillStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class Frequency(str, Enum):
    MONTHLY = "monthly"
    BIWEEKLY = "biweekly"
    WEEKLY = "weekly"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Transaction:
    id: str
    title: str
    amount: float             # always positive, sign comes from type
    date: str                 # calendar day, e.g. "2025-09-01"
    type: TransactionType
    category: Category
    notes: Optional[str] = None


@dataclass(frozen=True)
class Payment:
    id: str
    amount: float
    date: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class Bill:
    id: str
    title: str
    amount: float             # total obligation
    due_date: str
    type: BillType
    category: Category
    status: BillStatus = BillStatus.PENDING   # cache of bills.derive_status
    payments: tuple[Payment, ...] = ()


@dataclass(frozen=True)
class RecurringIncome:
    id: str
    title: str
    amount: float
    pay_day: int              # 1-31, clamped to the month length when applied
    frequency: Frequency = Frequency.MONTHLY
    active: bool = True


@dataclass(frozen=True)
class SavingsGoal:
    id: str
    title: str
    target_amount: float
    current_amount: float = 0.0
    deadline: Optional[str] = None
    created_at: str = ""


@dataclass(frozen=True)
class FixedExpense:
    id: str
    title: str
    amount: float
    due_day: int
    category: str = "other"


@dataclass(frozen=True)
class UserProfile:
    first_name: str
    last_name: str
    age: int
    income_type: str          # monthly, biweekly, weekly or daily
    income_amount: float
    fixed_expenses: tuple[FixedExpense, ...] = ()
    ai_memory: tuple[str, ...] = ()


@dataclass(frozen=True)
class AppState:
    transactions: tuple[Transaction, ...] = ()
    bills: tuple[Bill, ...] = ()
    monthly_budget: float = 0.0
    recurring_incomes: tuple[RecurringIncome, ...] = ()
    savings_goals: tuple[SavingsGoal, ...] = ()


@dataclass(frozen=True)
class CategoryTotal:
    category: Category
    total: float


@dataclass(frozen=True)
class MonthlySnapshot:
    month_key: str            # "YYYY-MM"
    incomes_total: float
    expenses_total: float
    bills_to_receive: float
    bills_to_pay: float
    bills_paid_so_far: float
    projected_balance: float
    daily_balance_series: tuple[float, ...]
    overdue_bills: tuple[Bill, ...]
    upcoming_bills: tuple[Bill, ...]          # ascending by due date
    budget_usage_percent: float
    category_breakdown: tuple[CategoryTotal, ...] = field(default=())   # descending by total
