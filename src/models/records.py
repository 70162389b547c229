"""
Record Models for Couple Ledger

These models define the shapes the persistence layer hands to the engine.
They are designed to:
1. Normalize every record once, before any calculator sees it
2. Repair bad numbers instead of rejecting them (NaN → 0, % → [0, 100])
3. Accept the stored field names (camelCase for expenses, incomes, trips
   and couple info; snake_case for goals and investments)
4. Be immutable, so results can be memoized by the caller

DESIGN DECISION: The "custom split" of an expense is a tagged variant
(SplitPolicy). The legacy trio splitMethod / splitPercentage1 /
specificValueP1-P2 is folded into it by the model validator, so calculators
only ever see one of ProportionalSplit, PercentageSplit or AbsoluteSplit.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Iterable, Literal, Optional, TypeVar, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.audit.logger import get_audit_logger
from src.config.settings import get_engine_settings
from src.utils.decimal_utils import HUNDRED, ZERO, clamp_percentage, coerce_decimal


class RecordTypeError(TypeError):
    """An input collection holds something that is not a readable record."""
    pass


# =============================================================================
# FIELD TYPES - coercion applied at the model boundary
# =============================================================================

def _money(value: Any, info: ValidationInfo) -> Decimal:
    return coerce_decimal(value, info.field_name)


def _percentage(value: Any, info: ValidationInfo) -> Decimal:
    return clamp_percentage(value, info.field_name)


def _installments(value: Any) -> int:
    if value is None or value == "":
        return 1
    count = coerce_decimal(value, "installments")
    if count < 1 or count != count.to_integral_value():
        get_audit_logger().log_installments_coerced(value)
        return 1
    return int(count)


def _date_parts(value: str) -> Optional[tuple[int, int, int]]:
    text = value.strip().split("T", 1)[0].split(" ", 1)[0]
    parts = text.split("-")
    if len(parts) not in (2, 3) or not all(part.isdecimal() for part in parts):
        return None
    day = int(parts[2]) if len(parts) == 3 else 1
    return int(parts[0]), int(parts[1]), day or 1


def _record_date(value: Any, info: ValidationInfo) -> Optional[date]:
    """
    Read a stored date from its year, month and day parts.

    Parts need not be zero-padded, a missing or zero day is the 1st and
    any time after ``T`` or a space is ignored. A day or month past the end
    rolls forward (2025-02-30 is March 2nd). A value with no readable parts
    becomes None, which falls in no month. Both repairs are logged.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parts = _date_parts(value) if isinstance(value, str) else None
    if parts is None:
        get_audit_logger().log_date_coerced(info.field_name, value)
        return None
    year, month, day = parts
    try:
        parsed = date(year + (month - 1) // 12, (month - 1) % 12 + 1, 1) + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        get_audit_logger().log_date_coerced(info.field_name, value)
        return None
    if (parsed.year, parsed.month, parsed.day) != parts:
        get_audit_logger().log_date_coerced(info.field_name, value, parsed)
    return parsed


def _optional_date(value: Any, info: ValidationInfo) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _record_date(value, info)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


Money = Annotated[Decimal, BeforeValidator(_money)]
Percentage = Annotated[Decimal, BeforeValidator(_percentage)]
Installments = Annotated[int, BeforeValidator(_installments)]
RecordDate = Annotated[Optional[date], BeforeValidator(_record_date)]
OptionalDate = Annotated[Optional[date], BeforeValidator(_optional_date)]
Timestamp = Annotated[Optional[datetime], BeforeValidator(_blank_to_none)]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Person(str, Enum):
    """One of the two people sharing finances."""
    PERSON1 = "person1"
    PERSON2 = "person2"


class ExpenseType(str, Enum):
    """
    How an expense is shared.

    FIXED and REIMBURSEMENT_FIXED recur every month from their start date.
    PERSONAL_P1 / PERSONAL_P2 belong to one person and are never shared.
    """
    FIXED = "FIXED"
    COMMON = "COMMON"
    EQUAL = "EQUAL"
    REIMBURSEMENT = "REIMBURSEMENT"
    REIMBURSEMENT_FIXED = "REIMBURSEMENT_FIXED"
    PERSONAL_P1 = "PERSONAL_P1"
    PERSONAL_P2 = "PERSONAL_P2"


class ReimbursementStatus(str, Enum):
    """Settlement status of a reimbursement expense."""
    OPEN = "open"
    SETTLED = "settled"


class GoalType(str, Enum):
    """Who owns a savings goal."""
    INDIVIDUAL_P1 = "individual_p1"
    INDIVIDUAL_P2 = "individual_p2"
    COUPLE = "couple"


class GoalTransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class InvestmentOwner(str, Enum):
    PERSON1 = "person1"
    PERSON2 = "person2"
    COUPLE = "couple"


class InvestmentMovementType(str, Enum):
    """
    Kinds of investment movement.

    BUY and SELL move principal, YIELD is profit, ADJUSTMENT is a manual
    correction of the balance only.
    """
    BUY = "buy"
    SELL = "sell"
    YIELD = "yield"
    ADJUSTMENT = "adjustment"


class TripPayer(str, Enum):
    """Who paid a trip expense; FUND is the shared pre-funded pool."""
    PERSON1 = "person1"
    PERSON2 = "person2"
    FUND = "fund"


class TripProportion(str, Enum):
    PROPORTIONAL = "proportional"
    CUSTOM = "custom"
    EQUAL = "equal"


# =============================================================================
# BASE MODELS
# =============================================================================

class RecordModel(BaseModel):
    """Immutable record with snake_case field names."""
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def is_deleted(self) -> bool:
        return getattr(self, "deleted_at", None) is not None


class CamelRecordModel(RecordModel):
    """Record stored with camelCase keys (snake_case names also accepted)."""
    model_config = ConfigDict(alias_generator=to_camel)


def _optional_person(value: Any) -> Any:
    return _blank_to_none(value)


OptionalPerson = Annotated[Optional[Person], BeforeValidator(_optional_person)]
OptionalTripPayer = Annotated[Optional[TripPayer], BeforeValidator(_blank_to_none)]


# =============================================================================
# CATEGORY & SPLIT POLICY
# =============================================================================

class Category(RecordModel):
    """Expense category; stored either as a bare name or as {name, icon}."""

    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def from_bare_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data


def _category(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return {"name": get_engine_settings().default_category}
    if isinstance(value, dict) and not str(value.get("name") or "").strip():
        return {**value, "name": get_engine_settings().default_category}
    return value


class ProportionalSplit(RecordModel):
    """Split by each person's share of combined monthly income."""
    kind: Literal["proportional"] = "proportional"


class PercentageSplit(RecordModel):
    """Person 1 carries a fixed percentage, person 2 the rest."""
    kind: Literal["percentage"] = "percentage"
    person1_percentage: Percentage = Field(default=Decimal("50"))


class AbsoluteSplit(RecordModel):
    """
    Each person carries a fixed amount of the expense total.

    Whatever the two amounts leave uncovered is split by
    remainder_person1_percentage, or proportionally to income when unset.
    """
    kind: Literal["absolute"] = "absolute"
    person1_value: Money = ZERO
    person2_value: Money = ZERO
    remainder_person1_percentage: Optional[Percentage] = None


SplitPolicy = Annotated[
    Union[ProportionalSplit, PercentageSplit, AbsoluteSplit],
    Field(discriminator="kind"),
]


def _pick(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _legacy_split(data: dict) -> dict:
    method = _pick(data, "splitMethod", "split_method")
    if method != "custom":
        return {"kind": "proportional"}

    percentage = _pick(data, "splitPercentage1", "split_percentage1")
    if percentage is None:
        percentage = get_engine_settings().default_split_percentage
    value1 = _pick(data, "specificValueP1", "specific_value_p1")
    value2 = _pick(data, "specificValueP2", "specific_value_p2")

    if coerce_decimal(value1) > 0 or coerce_decimal(value2) > 0:
        return {
            "kind": "absolute",
            "person1_value": value1,
            "person2_value": value2,
            "remainder_person1_percentage": percentage,
        }
    return {"kind": "percentage", "person1_percentage": percentage}


# =============================================================================
# EXPENSES & INCOMES
# =============================================================================

class Expense(CamelRecordModel):
    """
    A household expense.

    Multi-installment expenses are amortized over consecutive months;
    FIXED / REIMBURSEMENT_FIXED expenses recur every month from their date,
    optionally with a per-month override value.
    """

    id: Optional[str] = None
    date: RecordDate
    type: ExpenseType = ExpenseType.COMMON
    category: Annotated[Category, BeforeValidator(_category)] = Field(
        default_factory=lambda: Category(name=get_engine_settings().default_category)
    )
    description: str = Field(default="", max_length=500)
    total_value: Money = ZERO
    installments: Installments = 1
    paid_by: OptionalPerson = None
    split: SplitPolicy = Field(default_factory=ProportionalSplit)
    reimbursement_status: ReimbursementStatus = ReimbursementStatus.OPEN
    monthly_overrides: dict[str, Money] = Field(
        default_factory=dict,
        description="Per-month value of a recurring expense, keyed YYYY-MM"
    )
    created_at: Timestamp = None
    deleted_at: Timestamp = None

    @model_validator(mode="before")
    @classmethod
    def normalize_stored_shape(cls, data: Any) -> Any:
        """Fold legacy split fields and metadata overrides into the model."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "split" not in data:
            data["split"] = _legacy_split(data)
        metadata = data.get("metadata")
        if (
            "monthly_overrides" not in data
            and "monthlyOverrides" not in data
            and isinstance(metadata, dict)
            and isinstance(metadata.get("overrides"), dict)
        ):
            data["monthly_overrides"] = metadata["overrides"]
        if data.get("reimbursementStatus") is None and data.get("reimbursement_status") is None:
            data.pop("reimbursementStatus", None)
            data.pop("reimbursement_status", None)
        return data

    @property
    def split_method(self) -> str:
        """'proportional' or 'custom', as stored by the persistence layer."""
        return "proportional" if isinstance(self.split, ProportionalSplit) else "custom"

    @property
    def is_recurring(self) -> bool:
        return self.type in (ExpenseType.FIXED, ExpenseType.REIMBURSEMENT_FIXED)

    @property
    def is_personal(self) -> bool:
        return self.type in (ExpenseType.PERSONAL_P1, ExpenseType.PERSONAL_P2)

    @property
    def is_reimbursement(self) -> bool:
        return self.type in (ExpenseType.REIMBURSEMENT, ExpenseType.REIMBURSEMENT_FIXED)


class Income(CamelRecordModel):
    """A one-off or actual income received by one person."""

    id: Optional[str] = None
    date: RecordDate
    value: Money = ZERO
    paid_by: OptionalPerson = None
    category: str = Field(default="", max_length=100)
    description: str = Field(default="", max_length=500)
    created_at: Timestamp = None
    deleted_at: Timestamp = None


class RecurringIncome(CamelRecordModel):
    """A named monthly income template (e.g. a salary)."""

    id: Optional[str] = None
    description: str = Field(default="", max_length=200)
    value: Money = ZERO


class CoupleInfo(CamelRecordModel):
    """
    Split configuration of the couple.

    Only read by the engine: it yields the proportional income ratio and the
    recurring income breakdown.
    """

    person1_name: str = ""
    person2_name: str = ""
    salary1: Money = ZERO
    salary2: Money = ZERO
    salary1_description: Optional[str] = None
    salary2_description: Optional[str] = None
    person1_recurring_incomes: list[RecurringIncome] = Field(default_factory=list)
    person2_recurring_incomes: list[RecurringIncome] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)

    @field_validator("person1_recurring_incomes", "person2_recurring_incomes", "categories", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


# =============================================================================
# SAVINGS GOALS
# =============================================================================

class SavingsGoal(RecordModel):
    """
    A savings goal.

    The balance is not stored here; it is the signed sum of the goal's
    transactions.
    """

    id: Optional[str] = None
    title: str = Field(default="", max_length=200)
    target_value: Money = ZERO
    goal_type: GoalType = GoalType.COUPLE
    monthly_contribution_p1: Money = ZERO
    monthly_contribution_p2: Money = ZERO
    split_p1_percentage: Percentage = Field(default=Decimal("50"))
    interest_rate: Percentage = Field(
        default=ZERO,
        description="Expected annual return in percent"
    )
    is_completed: bool = False
    is_emergency: bool = False
    start_date: OptionalDate = None
    deadline: OptionalDate = None
    current_value: Money = Field(
        default=ZERO,
        description="Legacy stored balance; transactions are authoritative"
    )
    created_at: Timestamp = None
    deleted_at: Timestamp = None

    @field_validator("split_p1_percentage", mode="before")
    @classmethod
    def default_split(cls, v: Any) -> Any:
        return Decimal("50") if v is None or v == "" else v

    @field_validator("is_completed", "is_emergency", mode="before")
    @classmethod
    def none_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def split_p2_percentage(self) -> Decimal:
        return HUNDRED - self.split_p1_percentage


class GoalTransaction(RecordModel):
    """A deposit into or withdrawal from a savings goal."""

    id: Optional[str] = None
    goal_id: Optional[str] = None
    type: GoalTransactionType
    value: Money = ZERO
    person: OptionalPerson = None
    date: RecordDate
    description: str = Field(default="", max_length=500)
    created_at: Timestamp = None
    deleted_at: Timestamp = None

    @property
    def signed_value(self) -> Decimal:
        return self.value if self.type == GoalTransactionType.DEPOSIT else -self.value


# =============================================================================
# INVESTMENTS
# =============================================================================

class Investment(RecordModel):
    """
    An investment position.

    current_value / invested_value / quantity are legacy fields kept for
    backward compatibility; the movement log is authoritative.
    """

    id: Optional[str] = None
    name: str = Field(default="", max_length=200)
    type: str = Field(default="custom", max_length=50)
    owner: InvestmentOwner = InvestmentOwner.COUPLE
    institution: Optional[str] = None
    current_value: Money = ZERO
    invested_value: Money = ZERO
    quantity: Optional[Money] = None
    created_at: Timestamp = None
    deleted_at: Timestamp = None


class InvestmentMovement(RecordModel):
    """A buy, sell, yield or adjustment on an investment."""

    id: Optional[str] = None
    investment_id: Optional[str] = None
    type: InvestmentMovementType
    value: Money = ZERO
    quantity: Money = ZERO
    price_per_unit: Optional[Money] = None
    person: OptionalPerson = None
    date: RecordDate
    description: str = Field(default="", max_length=500)
    created_at: Timestamp = None
    deleted_at: Timestamp = None


# =============================================================================
# TRIPS
# =============================================================================

class TripExpense(CamelRecordModel):
    """An expense paid during a trip, by a person or by the shared fund."""

    id: Optional[str] = None
    trip_id: Optional[str] = None
    description: str = Field(default="", max_length=500)
    value: Money = ZERO
    paid_by: OptionalTripPayer = Field(
        default=TripPayer.FUND,
        description="None when stored without a payer; counted in no bucket"
    )
    date: OptionalDate = None
    category: str = ""
    created_at: Timestamp = None
    deleted_at: Timestamp = None


class TripDeposit(CamelRecordModel):
    """Money one person put into the trip's shared fund."""

    id: Optional[str] = None
    trip_id: Optional[str] = None
    person: Person
    value: Money = ZERO
    date: OptionalDate = None
    description: str = Field(default="", max_length=500)
    created_at: Timestamp = None
    deleted_at: Timestamp = None


class Trip(CamelRecordModel):
    """A trip with its own expenses and shared fund."""

    id: Optional[str] = None
    name: str = Field(default="", max_length=200)
    budget: Optional[Money] = None
    proportion_type: TripProportion = TripProportion.PROPORTIONAL
    custom_percentage1: Optional[Percentage] = None
    expenses: list[TripExpense] = Field(default_factory=list)
    deposits: list[TripDeposit] = Field(default_factory=list)
    created_at: Timestamp = None
    deleted_at: Timestamp = None

    @field_validator("expenses", "deposits", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


# =============================================================================
# INPUT COLLECTIONS
# =============================================================================

RecordT = TypeVar("RecordT", bound=BaseModel)


def ensure_records(
    items: Optional[Iterable[Any]],
    model: type[RecordT],
    collection: str,
) -> list[RecordT]:
    """
    Return ``items`` as a list of ``model`` instances.

    Dicts are validated into the model. None means an empty collection.

    Raises:
        RecordTypeError: If an item is neither a ``model`` nor a dict that
            validates into one.
    """
    if items is None:
        return []
    if isinstance(items, (str, bytes, dict)) or not hasattr(items, "__iter__"):
        raise RecordTypeError(
            f"{collection} must be a collection of {model.__name__}, "
            f"got {type(items).__name__}"
        )

    records = []
    for position, item in enumerate(items):
        if isinstance(item, model):
            records.append(item)
            continue
        if isinstance(item, dict):
            try:
                records.append(model.model_validate(item))
                continue
            except ValidationError as e:
                get_audit_logger().log_record_rejected(collection, position, "dict")
                raise RecordTypeError(
                    f"Item {position} of {collection} is not a valid "
                    f"{model.__name__}: {e.error_count()} validation error(s)"
                ) from e

        get_audit_logger().log_record_rejected(collection, position, type(item).__name__)
        raise RecordTypeError(
            f"Item {position} of {collection} must be {model.__name__}, "
            f"got {type(item).__name__}"
        )
    return records


def active(records: Iterable[RecordT]) -> list[RecordT]:
    """Drop soft-deleted records."""
    return [r for r in records if getattr(r, "deleted_at", None) is None]
