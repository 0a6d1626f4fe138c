"""Validated input payloads for ledger mutations.

Every public mutation accepts either one of these models or a plain mapping
(for example, parsed JSON or CLI options) and runs it through
:func:`parse_input`, which turns pydantic's ``ValidationError`` into the
ledger's own :class:`~household_ledger.errors.InvalidInput`.

Models are strict: an amount of ``"30000"`` or ``30000.5`` is rejected rather
than coerced. Dates are the one exception and also accept ISO ``YYYY-MM-DD``
strings. Read queries go through the same models, so a report asked for
``"2025-01-01"`` sees a ``date`` and one asked for a ``datetime`` or a number
gets :class:`InvalidInput`.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    Strict,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import InvalidInput
from .models import BudgetPeriod, Frequency, TxType, WalletType


def _calendar_day(value: Any) -> Any:
    # Lax date parsing would take a midnight datetime or a unix timestamp.
    if isinstance(value, datetime) or not isinstance(value, (date, str)):
        raise ValueError(f"expected a date or YYYY-MM-DD string, got {type(value).__name__}")
    return value


Amount = Annotated[int, Field(gt=0)]
IsoDate = Annotated[date, Strict(False), BeforeValidator(_calendar_day)]
Name = Annotated[str, Field(min_length=1, max_length=50)]

_DAY = TypeAdapter(IsoDate)

_CONFIG = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True, frozen=True)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500


def normalize_name(value: str) -> str:
    """Collapse inner whitespace and capitalize each word (``"  kopi  susu"`` -> ``"Kopi Susu"``)."""

    return " ".join(part[:1].upper() + part[1:].lower() for part in value.split())


class TransactionInput(BaseModel):
    model_config = _CONFIG

    wallet_id: str = Field(min_length=1)
    category_id: str = Field(min_length=1)
    amount: Amount
    type: TxType
    date: IsoDate
    description: str | None = Field(default=None, max_length=500)


class TransactionPatch(BaseModel):
    """Partial update; only fields explicitly provided are applied."""

    model_config = _CONFIG

    wallet_id: str | None = Field(default=None, min_length=1)
    category_id: str | None = Field(default=None, min_length=1)
    amount: Amount | None = None
    type: TxType | None = None
    date: IsoDate | None = None
    description: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _required_fields_not_cleared(self) -> TransactionPatch:
        for field in ("wallet_id", "category_id", "amount", "type", "date"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be cleared")
        return self


class WalletInput(BaseModel):
    model_config = _CONFIG

    name: Name
    type: WalletType
    opening_balance: int = 0
    icon: str | None = None
    color: str | None = None


class WalletPatch(BaseModel):
    # No balance field: balances only move through transactions.
    model_config = _CONFIG

    name: Name | None = None
    type: WalletType | None = None
    icon: str | None = None
    color: str | None = None


class CategoryInput(BaseModel):
    model_config = _CONFIG

    name: Name
    type: TxType
    icon: str | None = None
    color: str | None = None


class CategoryPatch(BaseModel):
    model_config = _CONFIG

    name: Name | None = None
    type: TxType | None = None
    icon: str | None = None
    color: str | None = None


class BudgetInput(BaseModel):
    model_config = _CONFIG

    category_id: str = Field(min_length=1)
    amount: Amount
    period: BudgetPeriod
    start_date: IsoDate
    end_date: IsoDate

    @model_validator(mode="after")
    def _ordered_range(self) -> BudgetInput:
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class BudgetPatch(BaseModel):
    model_config = _CONFIG

    category_id: str | None = Field(default=None, min_length=1)
    amount: Amount | None = None
    period: BudgetPeriod | None = None
    start_date: IsoDate | None = None
    end_date: IsoDate | None = None


class ReminderInput(BaseModel):
    model_config = _CONFIG

    title: str = Field(min_length=1, max_length=100)
    amount: Amount
    due_date: IsoDate
    category_id: str | None = None
    wallet_id: str | None = None
    is_recurring: bool = False
    frequency: Frequency | None = None

    @model_validator(mode="after")
    def _recurring_needs_frequency(self) -> ReminderInput:
        if self.is_recurring and self.frequency is None:
            raise ValueError("a recurring reminder requires a frequency")
        return self


class ReminderPatch(BaseModel):
    model_config = _CONFIG

    title: str | None = Field(default=None, min_length=1, max_length=100)
    amount: Amount | None = None
    due_date: IsoDate | None = None
    category_id: str | None = None
    wallet_id: str | None = None
    is_recurring: bool | None = None
    frequency: Frequency | None = None

    @field_validator("title", "amount", "due_date", "is_recurring")
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("field cannot be cleared")
        return v


class DateSpan(BaseModel):
    """Inclusive report range."""

    model_config = _CONFIG

    start: IsoDate
    end: IsoDate

    @model_validator(mode="after")
    def _ordered(self) -> DateSpan:
        if self.start > self.end:
            raise ValueError(f"range start {self.start} is after end {self.end}")
        return self


class TransactionFilter(BaseModel):
    model_config = _CONFIG

    start: IsoDate | None = None
    end: IsoDate | None = None
    type: TxType | None = None
    category_id: str | None = None
    wallet_id: str | None = None
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> TransactionFilter:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError(f"range start {self.start} is after end {self.end}")
        return self


def parse_date(value: Any, field: str = "date") -> date:
    """Validate a single calendar day the way the input models do."""

    try:
        return _DAY.validate_python(value)
    except ValidationError as exc:
        raise InvalidInput(f"invalid {field}: {exc.errors()[0]['msg']}") from exc


def parse_input[M: BaseModel](model: type[M], data: M | Mapping[str, Any]) -> M:
    """Validate ``data`` as ``model``; raise :class:`InvalidInput` on failure."""

    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise InvalidInput(f"expected a mapping or {model.__name__}, got {type(data).__name__}")
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidInput(f"invalid {model.__name__}: {details}") from exc


def changes(patch: BaseModel) -> dict[str, Any]:
    """Return only the fields the caller explicitly set on ``patch``."""

    return {name: getattr(patch, name) for name in patch.model_fields_set}


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "BudgetInput",
    "BudgetPatch",
    "CategoryInput",
    "CategoryPatch",
    "DateSpan",
    "ReminderInput",
    "ReminderPatch",
    "TransactionFilter",
    "TransactionInput",
    "TransactionPatch",
    "WalletInput",
    "WalletPatch",
    "changes",
    "normalize_name",
    "parse_date",
    "parse_input",
]
