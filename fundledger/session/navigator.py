"""Mini README: Reporting period selection for the fund ledger.

Structure:
    * ViewMode - month or year reporting window.
    * Period - immutable (view mode, year, month) selection with date helpers.
    * PeriodNavigator - holds the current period and notifies listeners on change.

Month navigation rolls over year boundaries (January back to December of
the previous year and vice versa); year navigation leaves the month alone.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Tuple

from ..errors import ValidationError
from ..finance.store import RecordFilter
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

MONTH_NAMES = tuple(calendar.month_name[1:])


class ViewMode(str, Enum):
    """Enumerate the supported reporting windows."""

    MONTH = "month"
    YEAR = "year"

    @classmethod
    def from_str(cls, value: str) -> "ViewMode":
        """Coerce arbitrary casing into a valid view mode."""

        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError) as error:
            raise ValidationError(f"Unsupported view mode: {value}") from error


@dataclass(frozen=True, slots=True)
class Period:
    """A calendar month or a full year."""

    view_mode: ViewMode
    year: int
    month: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Month must be between 1 and 12 (got {self.month}).")
        if not 1 <= self.year <= 9999:
            raise ValidationError(f"Year out of range: {self.year}")

    @property
    def label(self) -> str:
        if self.view_mode is ViewMode.MONTH:
            return f"{MONTH_NAMES[self.month - 1]} {self.year}"
        return f"Year {self.year}"

    def date_range(self) -> Tuple[date, date]:
        record_filter = self.record_filter()
        return record_filter.start, record_filter.end  # type: ignore[return-value]

    def record_filter(self) -> RecordFilter:
        if self.view_mode is ViewMode.MONTH:
            return RecordFilter.for_month(self.year, self.month)
        return RecordFilter.for_year(self.year)

    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def date_for_day(self, day: int) -> date:
        """Combine the selected month with a day-of-month control value."""

        try:
            day = int(day)
        except (TypeError, ValueError) as error:
            raise ValidationError(f"Invalid day of month: {day!r}") from error
        if not 1 <= day <= self.days_in_month():
            raise ValidationError(f"{MONTH_NAMES[self.month - 1]} {self.year} has no day {day}.")
        return date(self.year, self.month, day)

    def shifted(self, step: int) -> "Period":
        """Return the neighbouring period ``step`` units away."""

        if self.view_mode is ViewMode.YEAR:
            return replace(self, year=self.year + step)
        index = self.year * 12 + (self.month - 1) + step
        return replace(self, year=index // 12, month=index % 12 + 1)


PeriodListener = Callable[[Period], None]


class PeriodNavigator:
    """Track the selected reporting period and announce transitions."""

    def __init__(
        self,
        view_mode: ViewMode | str = ViewMode.MONTH,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> None:
        today = date.today()
        mode = view_mode if isinstance(view_mode, ViewMode) else ViewMode.from_str(view_mode)
        self._period = Period(
            view_mode=mode,
            year=year if year is not None else today.year,
            month=month if month is not None else today.month,
        )
        self._listeners: List[PeriodListener] = []

    @property
    def period(self) -> Period:
        return self._period

    def add_listener(self, listener: PeriodListener) -> Callable[[], None]:
        """Register a callback fired after every transition; returns a remover."""

        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _transition(self, period: Period) -> Period:
        LOGGER.debug("Period %s -> %s", self._period.label, period.label)
        self._period = period
        for listener in list(self._listeners):
            listener(period)
        return period

    def next(self) -> Period:
        return self._transition(self._period.shifted(1))

    def previous(self) -> Period:
        return self._transition(self._period.shifted(-1))

    def set_view_mode(self, view_mode: ViewMode | str) -> Period:
        mode = view_mode if isinstance(view_mode, ViewMode) else ViewMode.from_str(view_mode)
        return self._transition(replace(self._period, view_mode=mode))

    def select(self, year: int, month: Optional[int] = None) -> Period:
        """Jump straight to a year (and month) keeping the view mode."""

        month = month if month is not None else self._period.month
        return self._transition(replace(self._period, year=year, month=month))
