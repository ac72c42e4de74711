"""
Data models using Pydantic for the expense tracker.
Provides validation and type checking for expenses, accounts and dashboard data.
"""

from datetime import datetime, date
from enum import Enum
from typing import Optional, List, Dict
from decimal import Decimal, InvalidOperation
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CATEGORY = "food"
DEFAULT_CATEGORIES = ("food", "utility", "shopping", "travel", "gifts", "home")

TRAVEL_CATEGORY = "travel"
DEFAULT_TRAVEL_ICON = "car"
TRAVEL_ICONS = ("car", "bike", "train", "plane")


def normalize_category(value: Optional[str]) -> str:
    """Trim and lower-case a category, falling back to the default one."""
    if value is None or not value.strip():
        return DEFAULT_CATEGORY
    return value.strip().lower()


def parse_amount(text) -> Decimal:
    """Parse a user supplied amount.

    Args:
        text: Raw amount as typed in a form (str, int, float or Decimal)

    Returns:
        Parsed amount

    Raises:
        ValueError: If the amount is not a finite, non-negative number
    """
    try:
        amount = Decimal(str(text).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {text!r}")

    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number: {text!r}")
    if amount < 0:
        raise ValueError("Amount cannot be negative")
    return amount


def to_local_date(value: datetime) -> date:
    """Calendar date of a datetime in the local time zone.

    Aware datetimes are converted to local time first; naive ones are
    already taken as local.
    """
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.date()


class ExpenseCreate(BaseModel):
    """Model for creating new expenses."""

    name: str = Field(..., min_length=1, max_length=200, description="Short expense label")
    category: Optional[str] = Field(DEFAULT_CATEGORY, max_length=100, description="Expense category")
    icon: Optional[str] = Field(None, description="Travel icon variant")
    amount: Decimal = Field(..., ge=0, description="Expense amount (non-negative)")
    occurred_on: datetime = Field(default_factory=datetime.now, description="When the expense happened")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Strip the expense name and reject blank ones."""
        if not v or not v.strip():
            raise ValueError('Expense name cannot be empty')
        return v.strip()

    @field_validator('category', mode='before')
    @classmethod
    def validate_category(cls, v):
        return normalize_category(v)

    @model_validator(mode='after')
    def validate_icon(self):
        """Icons only mean something for travel expenses."""
        if self.category != TRAVEL_CATEGORY:
            self.icon = None
        elif self.icon is None:
            self.icon = DEFAULT_TRAVEL_ICON
        elif self.icon not in TRAVEL_ICONS:
            raise ValueError(f"Travel icon must be one of {', '.join(TRAVEL_ICONS)}")
        return self

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Train to Lahore",
                "category": "travel",
                "icon": "train",
                "amount": 1450.00,
                "occurred_on": "2024-01-15T09:30:00"
            }
        }
    }


class Expense(ExpenseCreate):
    """Stored expense record owned by a single user."""

    id: str = Field(..., description="Unique expense identifier")
    owner_id: str = Field(..., description="Identifier of the owning user")
    created_at: Optional[datetime] = Field(None, description="Record creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    def to_create(self) -> ExpenseCreate:
        """Editable fields of this expense as a creation payload."""
        return ExpenseCreate(
            name=self.name,
            category=self.category,
            icon=self.icon,
            amount=self.amount,
            occurred_on=self.occurred_on
        )


class ExpenseUpdate(BaseModel):
    """Model for updating existing expenses. Unset fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None)
    amount: Optional[Decimal] = Field(None, ge=0)
    occurred_on: Optional[datetime] = Field(None)

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        if v is None:
            return v
        return normalize_category(v)


class ReceiptGuess(BaseModel):
    """Best-effort values read from a receipt, used to pre-fill the expense form."""

    raw_text: str = Field("", description="Full OCR output")
    amount: Optional[Decimal] = Field(None, ge=0, description="Guessed total amount")
    merchant_name: Optional[str] = Field(None, description="Guessed merchant or item name")

    @property
    def is_empty(self) -> bool:
        return self.amount is None and self.merchant_name is None


class FilterType(str, Enum):
    """Date windows offered by the dashboard."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"


class DateFilterSelection(BaseModel):
    """Dashboard date filter. Bounds are only read for custom ranges."""

    filter_type: FilterType = Field(FilterType.MONTH, description="Selected window")
    start_date: Optional[date] = Field(None, description="Inclusive start of a custom range")
    end_date: Optional[date] = Field(None, description="Inclusive end of a custom range")

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def drop_time_of_day(cls, v):
        if isinstance(v, datetime):
            return to_local_date(v)
        return v


class ExpenseSummary(BaseModel):
    """Aggregates shown on the dashboard."""

    total: Decimal = Field(Decimal("0"), description="Sum of all amounts")
    count_by_category: Dict[str, int] = Field(default_factory=dict)
    sum_by_category: Dict[str, Decimal] = Field(default_factory=dict)
    sum_by_month_of_current_year: List[Decimal] = Field(
        default_factory=lambda: [Decimal("0")] * 12,
        description="Monthly totals for the current year, January first"
    )


class UserCreate(BaseModel):
    """Sign-up payload."""

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=6)
    mobile: Optional[str] = Field(None, max_length=30)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Normalize the email and check its basic shape."""
        cleaned = v.strip().lower()
        local, _, domain = cleaned.partition('@')
        if not local or '.' not in domain:
            raise ValueError('Invalid email address')
        return cleaned

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class User(BaseModel):
    """Account profile of a signed-in user."""

    id: str = Field(..., description="Unique user identifier")
    email: str = Field(..., description="Login email")
    name: Optional[str] = Field(None, description="Display name given at sign-up")
    mobile: Optional[str] = Field(None, description="Mobile number given at sign-up")
    created_at: Optional[datetime] = Field(None)

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        local = self.email.split('@')[0]
        return local or "User"
