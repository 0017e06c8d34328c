"""Mini README: Client-side cache of the records shown for the current period.

Structure:
    * FetchTicket - tags a fetch with the period it was issued for.
    * ApplicationState - records, loading/error flags and change subscriptions.

One state object is created when a user session starts and closed at
logout. Fetches are tagged with a generation number; when navigation moves
on before a response arrives, the late response is dropped instead of
overwriting the newer selection.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from ..finance.records import TransactionRecord
from ..logging_utils import get_logger
from .navigator import Period

LOGGER = get_logger(__name__)

StateListener = Callable[["ApplicationState"], None]


@dataclass(frozen=True, slots=True)
class FetchTicket:
    """Identifies one outstanding fetch."""

    generation: int
    period: Optional[Period]


def _ordered(records: Iterable[TransactionRecord]) -> List[TransactionRecord]:
    return sorted(records, key=lambda record: (record.date, record.transaction_id))


class ApplicationState:
    """Injectable store for the records of the selected period."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: List[TransactionRecord] = []
        self._listeners: List[StateListener] = []
        self._generation = 0
        self._closed = False
        self.loading = False
        self.error: Optional[str] = None
        self.period: Optional[Period] = None

    @property
    def records(self) -> List[TransactionRecord]:
        return list(self._records)

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Application state has been closed.")

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it."""

        self._ensure_open()
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---------- fetch lifecycle ----------

    def begin_fetch(self, period: Optional[Period] = None) -> FetchTicket:
        """Mark a fetch as in flight, superseding any earlier one."""

        self._ensure_open()
        with self._lock:
            self._generation += 1
            ticket = FetchTicket(generation=self._generation, period=period)
        self.loading = True
        self._notify()
        return ticket

    def is_current(self, ticket: FetchTicket) -> bool:
        return ticket.generation == self._generation

    def complete_fetch(self, ticket: FetchTicket, records: Iterable[TransactionRecord]) -> bool:
        """Install fetched records unless a newer fetch was issued meanwhile."""

        self._ensure_open()
        with self._lock:
            if not self.is_current(ticket):
                LOGGER.debug(
                    "Discarding stale fetch %s for %s",
                    ticket.generation,
                    ticket.period.label if ticket.period else "all records",
                )
                return False
            self._records = _ordered(records)
            self.period = ticket.period
        self.loading = False
        self.error = None
        self._notify()
        return True

    def fail_fetch(self, ticket: FetchTicket, message: str) -> bool:
        """Record a failed fetch; stale failures are ignored like stale results."""

        self._ensure_open()
        if not self.is_current(ticket):
            return False
        self.loading = False
        self.error = message
        self._notify()
        return True

    # ---------- local apply after successful writes ----------

    def _in_view(self, record: TransactionRecord) -> bool:
        return self.period is None or self.period.record_filter().matches(record.date)

    def apply_created(self, record: TransactionRecord) -> None:
        self._ensure_open()
        if self._in_view(record):
            self._records = _ordered([*self._records, record])
        self._notify()

    def apply_updated(self, record: TransactionRecord) -> None:
        self._ensure_open()
        others = [existing for existing in self._records if existing.transaction_id != record.transaction_id]
        self._records = _ordered([*others, record] if self._in_view(record) else others)
        self._notify()

    def apply_deleted(self, transaction_id: str) -> None:
        self._ensure_open()
        self._records = [record for record in self._records if record.transaction_id != transaction_id]
        self._notify()

    def close(self) -> None:
        """Tear down at logout: drop cached records and subscribers."""

        self._records = []
        self._listeners.clear()
        self.period = None
        self.loading = False
        self.error = None
        self._closed = True
