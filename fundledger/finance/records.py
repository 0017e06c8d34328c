"""Mini README: Transaction records and boundary coercion for the fund ledger.

Structure:
    * MONEY_FIELDS / TEXT_FIELDS - the editable columns of a record.
    * TransactionRecord - dataclass storing one dated entry and its proof.
    * coerce_amount / parse_record_date - parse-or-default helpers.
    * coerce_payload - validate an incoming form or JSON payload.

Incoming values are untrusted form fields. Amounts are parsed once here so
the rest of the system only ever sees non-negative floats: blanks and
non-numeric input become ``0.0`` while negative figures are rejected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional

from ..errors import ValidationError
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

MONEY_FIELDS = ("general_offering", "special_offering", "tithe", "expenses")
TEXT_FIELDS = ("special_offering_names", "tithe_names", "expense_details", "remarks")

# Keys sent by the legacy browser client.
CAMEL_CASE_ALIASES = {
    "generalOffering": "general_offering",
    "specialOffering": "special_offering",
    "specialOfferingNames": "special_offering_names",
    "titheNames": "tithe_names",
    "expenseDetails": "expense_details",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class TransactionRecord:
    """Represent one day's offerings and expenses with optional proof."""

    transaction_id: str
    date: date
    created_by: str
    general_offering: float = 0.0
    special_offering: float = 0.0
    tithe: float = 0.0
    expenses: float = 0.0
    special_offering_names: str = ""
    tithe_names: str = ""
    expense_details: str = ""
    remarks: str = ""
    proof_url: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def offerings(self) -> float:
        """Sum of the three incoming categories."""

        return self.general_offering + self.special_offering + self.tithe

    def as_dict(self) -> Dict[str, object]:
        """Export the record with serialisable values."""

        return {
            "transaction_id": self.transaction_id,
            "date": self.date.isoformat(),
            "general_offering": self.general_offering,
            "special_offering": self.special_offering,
            "special_offering_names": self.special_offering_names,
            "tithe": self.tithe,
            "tithe_names": self.tithe_names,
            "expenses": self.expenses,
            "expense_details": self.expense_details,
            "remarks": self.remarks,
            "proof_url": self.proof_url,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TransactionRecord":
        """Rebuild a record previously exported with ``as_dict``."""

        try:
            return cls(
                transaction_id=str(payload["transaction_id"]),
                date=parse_record_date(payload["date"]),
                created_by=str(payload.get("created_by", "")),
                general_offering=coerce_amount(payload.get("general_offering")),
                special_offering=coerce_amount(payload.get("special_offering")),
                tithe=coerce_amount(payload.get("tithe")),
                expenses=coerce_amount(payload.get("expenses")),
                special_offering_names=str(payload.get("special_offering_names") or ""),
                tithe_names=str(payload.get("tithe_names") or ""),
                expense_details=str(payload.get("expense_details") or ""),
                remarks=str(payload.get("remarks") or ""),
                proof_url=payload.get("proof_url") or None,
                created_at=_parse_timestamp(payload.get("created_at")),
                updated_at=_parse_timestamp(payload.get("updated_at")),
            )
        except KeyError as error:
            raise ValidationError(f"Stored record is missing field {error}") from error


def coerce_amount(value: object) -> float:
    """Parse a monetary value, treating blanks and junk as zero."""

    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return 0.0
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or math.isinf(amount):
        return 0.0
    if amount < 0:
        raise ValidationError(f"Amounts must not be negative (got {amount}).")
    return amount


def parse_record_date(value: object) -> date:
    """Parse ISO formatted strings or date objects, requiring a value."""

    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("A transaction date is required.")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError as error:
            raise ValidationError(f"Invalid transaction date: {value!r}") from error
    raise ValidationError("Dates must be provided as ISO strings or date/datetime instances.")


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            LOGGER.warning("Ignoring malformed timestamp %r", value)
    return _utcnow()


def coerce_payload(payload: Mapping[str, Any], *, partial: bool = False) -> Dict[str, object]:
    """Validate a create/update payload into typed record fields.

    With ``partial`` set, only the keys present are returned so callers can
    overwrite provided fields and leave the rest untouched. Otherwise the
    date is mandatory and every other field falls back to its default.
    """

    normalised: Dict[str, Any] = {}
    ignored = []
    for key, value in payload.items():
        name = CAMEL_CASE_ALIASES.get(key, key)
        if name == "date" or name in MONEY_FIELDS or name in TEXT_FIELDS:
            normalised[name] = value
        else:
            ignored.append(key)
    if ignored:
        LOGGER.warning("Ignoring fields outside the transaction schema: %s", sorted(ignored))

    coerced: Dict[str, object] = {}
    if "date" in normalised and (not partial or normalised["date"] not in (None, "")):
        coerced["date"] = parse_record_date(normalised["date"])
    elif not partial:
        raise ValidationError("A transaction date is required.")

    for name in MONEY_FIELDS:
        if name in normalised:
            coerced[name] = coerce_amount(normalised[name])
        elif not partial:
            coerced[name] = 0.0
    for name in TEXT_FIELDS:
        if name in normalised:
            coerced[name] = "" if normalised[name] is None else str(normalised[name])
        elif not partial:
            coerced[name] = ""
    return coerced
