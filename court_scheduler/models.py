from datetime import date
from enum import Enum
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from court_scheduler.timeutils import format_time_label, minutes_to_time, parse_date, to_minutes

ALL_COURTS = "all"


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


def _coerce_minutes(value: Any) -> int:
    minutes = to_minutes(value)
    if minutes is None:
        raise ValueError(f"unparseable time: {value!r}")
    return minutes


def _coerce_date(value: Any) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"unparseable date: {value!r}")
    return parsed


class Booking(BaseModel):
    """A reservation of one court for one contiguous interval on one date."""

    model_config = ConfigDict(frozen=True)

    id: str
    court: int
    date: date
    start: int  # minutes since midnight
    end: int
    status: BookingStatus = BookingStatus.ACTIVE
    booking_type: str | None = None
    customer_name: str | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> int:
        return _coerce_minutes(value)

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> date:
        return _coerce_date(value)

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_").replace(" ", "_") or BookingStatus.ACTIVE
        return value

    @property
    def is_degenerate(self) -> bool:
        return self.start >= self.end

    @property
    def duration_minutes(self) -> int:
        return max(0, self.end - self.start)

    @property
    def time_start(self) -> str:
        return minutes_to_time(self.start)

    @property
    def time_end(self) -> str:
        return minutes_to_time(self.end)


class Closure(BaseModel):
    """A facility-declared window during which a court (or every court) is unavailable."""

    model_config = ConfigDict(frozen=True)

    court: int | Literal["all"]
    date: date
    start: int
    end: int
    reason: str = "Closed"
    is_active: bool = True

    @field_validator("court", mode="before")
    @classmethod
    def _normalize_court(cls, value: Any) -> Any:
        if isinstance(value, str):
            trimmed = value.strip().lower()
            if trimmed == ALL_COURTS:
                return ALL_COURTS
            return int(trimmed)
        return value

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> int:
        return _coerce_minutes(value)

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> date:
        return _coerce_date(value)

    @field_validator("reason", mode="before")
    @classmethod
    def _default_reason(cls, value: Any) -> Any:
        return value or "Closed"

    def applies_to(self, court: int) -> bool:
        return self.court == ALL_COURTS or self.court == court


class TimeSlot(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @property
    def time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def label(self) -> str:
        return format_time_label(self.start)

    @property
    def minutes(self) -> int:
        return self.end - self.start


class Period(BaseModel):
    """A named [start, end) window of the day used for utilization reporting."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    start: int
    end: int

    @field_validator("start", "end", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> int:
        return _coerce_minutes(value)

    @property
    def hours(self) -> float:
        return (self.end - self.start) / 60


class ColumnAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    column_index: int = 0
    column_count: int = 1


class ClosureStatus(BaseModel):
    is_closed: bool
    reason: str | None = None


SlotState = Literal["booked", "available", "closed"]


class CourtSlotState(BaseModel):
    court: int
    state: SlotState


class GridRow(BaseModel):
    time: str
    label: str
    period: str
    minutes: int
    courts: List[CourtSlotState]


class AvailabilityGrid(BaseModel):
    date: date
    rows: List[GridRow]
    closed_count: int


class PeriodUtilization(BaseModel):
    """Court-slot counts for one period.

    `utilization` is weighted by slot length, so a partial slot at the start or
    end of the day counts for its minutes rather than as a full slot.
    """

    label: str
    booked: int = 0
    available: int = 0
    closed: int = 0
    total: int = 0
    booked_minutes: int = 0
    available_minutes: int = 0
    utilization: int = Field(default=0, ge=0, le=100)

    @model_validator(mode="after")
    def _check_totals(self) -> "PeriodUtilization":
        if self.booked + self.available != self.total:
            raise ValueError(
                f"booked ({self.booked}) + available ({self.available}) != total ({self.total})"
            )
        return self


DailyUtilization = Dict[str, PeriodUtilization]


class DataQualityIssue(BaseModel):
    kind: Literal["degenerate_interval", "double_booking"]
    booking_ids: List[str]
    message: str


class BookingEfficiency(BaseModel):
    total: int = 0
    completed: int = 0
    cancelled: int = 0
    no_shows: int = 0
    completed_rate: int = 0
    cancelled_rate: int = 0
    no_show_rate: int = 0


class BookingTypeHours(BaseModel):
    label: str
    hours: float = 0.0
    percentage: int = 0


class BookingTypeBreakdown(BaseModel):
    breakdown: Dict[str, BookingTypeHours]
    total_hours: float = 0.0


class CustomerHours(BaseModel):
    name: str
    booking_type: str
    hours: float = 0.0
