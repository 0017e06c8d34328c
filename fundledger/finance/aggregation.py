"""Mini README: Aggregation of transaction records into period totals.

Structure:
    * MonthlyBucket - offerings and expenses for one calendar month.
    * AggregateResult - category totals, balance and optional month matrix.
    * aggregate - pure reduction over records for a month or year view.
    * monthly_breakdown - the 12 month buckets on their own.

Sums use ``math.fsum`` so the totals do not depend on the order in which
records arrive. Records may be ``TransactionRecord`` instances or plain
mappings (for example rows decoded from JSON); absent or non-numeric
amounts count as zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .records import CAMEL_CASE_ALIASES, TransactionRecord

RecordLike = Union[TransactionRecord, Mapping[str, object]]

_SNAKE_TO_CAMEL = {snake: camel for camel, snake in CAMEL_CASE_ALIASES.items()}


@dataclass(frozen=True, slots=True)
class MonthlyBucket:
    """Offerings and expenses that fall within one month."""

    offerings: float = 0.0
    expenses: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {"offerings": self.offerings, "expenses": self.expenses}


@dataclass(frozen=True, slots=True)
class AggregateResult:
    """Derived totals for the records of one reporting period."""

    general_total: float
    special_total: float
    tithe_total: float
    expense_total: float
    monthly: Optional[Tuple[MonthlyBucket, ...]] = None

    @property
    def total_offerings(self) -> float:
        return self.general_total + self.special_total + self.tithe_total

    @property
    def balance(self) -> float:
        return self.total_offerings - self.expense_total

    def as_dict(self) -> Dict[str, object]:
        """Export totals for JSON responses."""

        payload: Dict[str, object] = {
            "general_total": self.general_total,
            "special_total": self.special_total,
            "tithe_total": self.tithe_total,
            "expense_total": self.expense_total,
            "total_offerings": self.total_offerings,
            "balance": self.balance,
        }
        if self.monthly is not None:
            payload["monthly"] = [bucket.as_dict() for bucket in self.monthly]
        return payload


def _amount(record: RecordLike, name: str) -> float:
    if isinstance(record, Mapping):
        value = record.get(name, record.get(_SNAKE_TO_CAMEL.get(name, name)))
    else:
        value = getattr(record, name, None)
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(amount) or math.isinf(amount) else amount


def _month_index(record: RecordLike) -> int:
    value = record.get("date") if isinstance(record, Mapping) else record.date
    if isinstance(value, datetime):
        return value.month - 1
    if isinstance(value, date):
        return value.month - 1
    return date.fromisoformat(str(value)[:10]).month - 1


def monthly_breakdown(records: Iterable[RecordLike]) -> Tuple[MonthlyBucket, ...]:
    """Bucket offerings and expenses by the month of each record's date."""

    offerings: List[List[float]] = [[] for _ in range(12)]
    expenses: List[List[float]] = [[] for _ in range(12)]
    for record in records:
        index = _month_index(record)
        offerings[index].extend(
            (
                _amount(record, "general_offering"),
                _amount(record, "special_offering"),
                _amount(record, "tithe"),
            )
        )
        expenses[index].append(_amount(record, "expenses"))
    return tuple(
        MonthlyBucket(offerings=math.fsum(offerings[month]), expenses=math.fsum(expenses[month]))
        for month in range(12)
    )


def aggregate(records: Iterable[RecordLike], *, monthly: bool = False) -> AggregateResult:
    """Reduce records into category totals and, for year views, month buckets."""

    materialised: Sequence[RecordLike] = list(records)
    return AggregateResult(
        general_total=math.fsum(_amount(r, "general_offering") for r in materialised),
        special_total=math.fsum(_amount(r, "special_offering") for r in materialised),
        tithe_total=math.fsum(_amount(r, "tithe") for r in materialised),
        expense_total=math.fsum(_amount(r, "expenses") for r in materialised),
        monthly=monthly_breakdown(materialised) if monthly else None,
    )
