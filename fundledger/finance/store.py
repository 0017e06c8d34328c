"""Mini README: Transaction store backing the fund ledger.

Structure:
    * RecordFilter - inclusive date window derived from query parameters.
    * TransactionStore - abstract interface consumed by the web layer and sessions.
    * JsonTransactionStore - in-memory index persisted to a JSON document.

Records are listed in ascending date order. Writes are serialised by a lock
and persisted with an atomic temp-file replace, so a failed write leaves both
the file and the in-memory index untouched. Proof files are owned by
``ProofStorage``; the store deletes a proof once no record references it.
"""

from __future__ import annotations

import calendar
import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..errors import NotFoundError, StorageError, ValidationError
from ..logging_utils import get_logger
from ..storage import ProofStorage, ProofUpload
from .records import TransactionRecord, coerce_payload, parse_record_date

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RecordFilter:
    """Inclusive date window; open ends match everything."""

    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def for_month(cls, year: int, month: int) -> "RecordFilter":
        if not 1 <= month <= 12:
            raise ValidationError(f"Month must be between 1 and 12 (got {month}).")
        last_day = calendar.monthrange(year, month)[1]
        return cls(start=date(year, month, 1), end=date(year, month, last_day))

    @classmethod
    def for_year(cls, year: int) -> "RecordFilter":
        return cls(start=date(year, 1, 1), end=date(year, 12, 31))

    @classmethod
    def from_query(
        cls,
        year: Optional[int] = None,
        month: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> "RecordFilter":
        """Mirror the list endpoint: month beats year beats explicit range."""

        if month is not None and year is None:
            raise ValidationError("A month filter requires a year.")
        if year is not None and month is not None:
            return cls.for_month(year, month)
        if year is not None:
            return cls.for_year(year)
        return cls(
            start=parse_record_date(start_date) if start_date else None,
            end=parse_record_date(end_date) if end_date else None,
        )

    def matches(self, value: date) -> bool:
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


class TransactionStore(ABC):
    """Persistent collection of transaction records."""

    @abstractmethod
    def list(self, record_filter: Optional[RecordFilter] = None) -> List[TransactionRecord]:
        """Return matching records sorted ascending by date."""

    @abstractmethod
    def get(self, transaction_id: str) -> TransactionRecord:
        """Return one record or raise ``NotFoundError``."""

    @abstractmethod
    def create(
        self,
        payload: Mapping[str, Any],
        *,
        created_by: str,
        proof: Optional[ProofUpload] = None,
    ) -> TransactionRecord:
        """Validate and persist a new record, assigning its id."""

    @abstractmethod
    def update(
        self,
        transaction_id: str,
        payload: Mapping[str, Any],
        *,
        proof: Optional[ProofUpload] = None,
    ) -> TransactionRecord:
        """Overwrite the provided fields of an existing record."""

    @abstractmethod
    def delete(self, transaction_id: str) -> None:
        """Remove a record together with its proof file."""


class JsonTransactionStore(TransactionStore):
    """Keep records in memory and mirror them to a JSON file when a path is given."""

    def __init__(self, path: Optional[Path], proofs: ProofStorage) -> None:
        self.path = Path(path) if path is not None else None
        self.proofs = proofs
        self._lock = threading.RLock()
        self._records: Dict[str, TransactionRecord] = {}
        self._sequence = 0
        if self.path is not None:
            for record in self._read():
                self._register(record)
        LOGGER.debug("Transaction store initialised with %s records", len(self._records))

    # ---------- persistence ----------

    def _read(self) -> List[TransactionRecord]:
        assert self.path is not None
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            raise StorageError(f"Could not read transaction store {self.path}: {error}") from error
        return [TransactionRecord.from_dict(entry) for entry in data.get("transactions", [])]

    def _write(self, records: Dict[str, TransactionRecord]) -> None:
        if self.path is None:
            return
        payload = {"transactions": [record.as_dict() for record in self._sorted(records.values())]}
        tmp = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as error:
            raise StorageError(f"Could not write transaction store {self.path}: {error}") from error

    # ---------- helpers ----------

    @staticmethod
    def _sorted(records) -> List[TransactionRecord]:
        return sorted(records, key=lambda record: (record.date, record.transaction_id))

    def _next_id(self) -> str:
        """Generate a sequential transaction identifier."""

        self._sequence += 1
        return f"txn_{self._sequence:04d}"

    def _register(self, record: TransactionRecord) -> None:
        """Index a record ensuring identifiers remain unique."""

        if record.transaction_id in self._records:
            raise ValidationError(f"Transaction {record.transaction_id} already exists.")
        self._records[record.transaction_id] = record
        suffix = record.transaction_id.rsplit("_", 1)[-1]
        if suffix.isdigit():
            self._sequence = max(self._sequence, int(suffix))

    def _commit(self, records: Dict[str, TransactionRecord]) -> None:
        """Persist a candidate state, then make it current."""

        self._write(records)
        self._records = records

    def _discard_proof(self, reference: Optional[str]) -> None:
        """Remove a proof that no record points at any more.

        Runs after the record state is settled, so a failure only leaves an
        orphaned file behind and is logged rather than raised.
        """

        if not reference:
            return
        try:
            self.proofs.delete(reference)
        except StorageError as error:
            LOGGER.warning("Orphaned proof %s left on disk: %s", reference, error)

    # ---------- public API ----------

    def list(self, record_filter: Optional[RecordFilter] = None) -> List[TransactionRecord]:
        record_filter = record_filter or RecordFilter()
        with self._lock:
            matches = [record for record in self._records.values() if record_filter.matches(record.date)]
        LOGGER.debug(
            "Listing %s records between %s and %s", len(matches), record_filter.start, record_filter.end
        )
        return self._sorted(matches)

    def get(self, transaction_id: str) -> TransactionRecord:
        with self._lock:
            if transaction_id not in self._records:
                raise NotFoundError(f"Transaction {transaction_id} not found")
            return self._records[transaction_id]

    def create(
        self,
        payload: Mapping[str, Any],
        *,
        created_by: str,
        proof: Optional[ProofUpload] = None,
    ) -> TransactionRecord:
        if not created_by:
            raise ValidationError("A creating user is required.")
        fields = coerce_payload(payload)
        with self._lock:
            proof_url = self.proofs.save(proof) if proof is not None else None
            record = TransactionRecord(
                transaction_id=self._next_id(),
                created_by=created_by,
                proof_url=proof_url,
                **fields,
            )
            candidate = dict(self._records)
            candidate[record.transaction_id] = record
            try:
                self._commit(candidate)
            except StorageError:
                self._sequence -= 1
                self._discard_proof(proof_url)
                raise
        LOGGER.info("Created transaction %s dated %s", record.transaction_id, record.date)
        return record

    def update(
        self,
        transaction_id: str,
        payload: Mapping[str, Any],
        *,
        proof: Optional[ProofUpload] = None,
    ) -> TransactionRecord:
        fields = coerce_payload(payload, partial=True)
        with self._lock:
            current = self.get(transaction_id)
            new_proof_url = self.proofs.save(proof) if proof is not None else None
            changes: Dict[str, object] = dict(fields)
            if new_proof_url is not None:
                changes["proof_url"] = new_proof_url
            updated = replace(current, updated_at=datetime.now(timezone.utc), **changes)
            candidate = dict(self._records)
            candidate[transaction_id] = updated
            try:
                self._commit(candidate)
            except StorageError:
                self._discard_proof(new_proof_url)
                raise
            if new_proof_url is not None:
                self._discard_proof(current.proof_url)
        LOGGER.info("Updated transaction %s (%s)", transaction_id, ", ".join(sorted(changes)) or "no changes")
        return updated

    def delete(self, transaction_id: str) -> None:
        with self._lock:
            current = self.get(transaction_id)
            candidate = dict(self._records)
            del candidate[transaction_id]
            self._commit(candidate)
            self._discard_proof(current.proof_url)
        LOGGER.info("Deleted transaction %s", transaction_id)
