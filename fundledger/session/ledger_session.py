"""Mini README: A signed-in user's working session over the ledger.

Structure:
    * OperationResult - success flag and message returned by write helpers.
    * LedgerSession - wires navigator, application state and transaction store.

Moving the navigator re-fetches the records of the new period into the
application state; ``summary`` re-runs the aggregation over whatever the
state currently holds. Writes go to the store first and are applied to the
local state only once the store accepted them.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from ..errors import FundLedgerError, StorageError
from ..export import ReportDocument, ReportRenderer
from ..finance.aggregation import AggregateResult, aggregate
from ..finance.records import TransactionRecord
from ..finance.store import TransactionStore
from ..identity import Principal
from ..logging_utils import get_logger
from ..storage import ProofUpload
from .navigator import Period, PeriodNavigator, ViewMode
from .state import ApplicationState

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of a write issued through the session."""

    success: bool
    message: Optional[str] = None
    record: Optional[TransactionRecord] = None


class LedgerSession:
    """Client-side coordinator created at login and closed at logout."""

    def __init__(
        self,
        store: TransactionStore,
        principal: Principal,
        navigator: Optional[PeriodNavigator] = None,
        state: Optional[ApplicationState] = None,
        *,
        auto_refresh: bool = True,
    ) -> None:
        self.store = store
        self.principal = principal
        self.navigator = navigator or PeriodNavigator()
        self.state = state or ApplicationState()
        self._remove_listener = self.navigator.add_listener(self._on_period_change)
        LOGGER.debug("Session opened for %s (%s)", principal.user_id, principal.role)
        if auto_refresh:
            self.refresh()

    @property
    def period(self) -> Period:
        return self.navigator.period

    def _on_period_change(self, period: Period) -> None:
        self.refresh()

    # ---------- reads ----------

    def refresh(self) -> bool:
        """Fetch the selected period; returns ``False`` on failure or staleness."""

        period = self.navigator.period
        ticket = self.state.begin_fetch(period)
        try:
            records = self.store.list(period.record_filter())
        except StorageError as error:
            LOGGER.error("Fetching %s failed: %s", period.label, error)
            self.state.fail_fetch(ticket, str(error))
            return False
        return self.state.complete_fetch(ticket, records)

    async def refresh_async(self) -> bool:
        """Like ``refresh`` but runs the store call in a worker thread."""

        period = self.navigator.period
        ticket = self.state.begin_fetch(period)
        try:
            records = await asyncio.to_thread(self.store.list, period.record_filter())
        except StorageError as error:
            LOGGER.error("Fetching %s failed: %s", period.label, error)
            self.state.fail_fetch(ticket, str(error))
            return False
        return self.state.complete_fetch(ticket, records)

    def next_period(self) -> Period:
        return self.navigator.next()

    def previous_period(self) -> Period:
        return self.navigator.previous()

    def summary(self) -> AggregateResult:
        """Aggregate the records on screen; year views include month buckets."""

        return aggregate(self.state.records, monthly=self.navigator.period.view_mode is ViewMode.YEAR)

    # ---------- writes ----------

    def _with_day(self, payload: Mapping[str, Any], day: Optional[int]) -> dict:
        prepared = dict(payload)
        if day is not None:
            prepared["date"] = self.navigator.period.date_for_day(day)
        return prepared

    def add_transaction(
        self,
        payload: Mapping[str, Any],
        proof: Optional[ProofUpload] = None,
        *,
        day: Optional[int] = None,
    ) -> OperationResult:
        try:
            record = self.store.create(
                self._with_day(payload, day), created_by=self.principal.user_id, proof=proof
            )
        except FundLedgerError as error:
            LOGGER.warning("Adding transaction failed: %s", error)
            return OperationResult(success=False, message=str(error))
        self.state.apply_created(record)
        return OperationResult(success=True, record=record)

    def update_transaction(
        self,
        transaction_id: str,
        payload: Mapping[str, Any],
        proof: Optional[ProofUpload] = None,
        *,
        day: Optional[int] = None,
    ) -> OperationResult:
        """Save an edit made while viewing the selected period.

        The date is always rebuilt from the selected period and ``day``; when
        no day is given the record keeps its day of month, capped at the
        length of the selected month.
        """

        try:
            if day is None:
                current = self.store.get(transaction_id)
                day = min(current.date.day, self.navigator.period.days_in_month())
            record = self.store.update(transaction_id, self._with_day(payload, day), proof=proof)
        except FundLedgerError as error:
            LOGGER.warning("Updating transaction %s failed: %s", transaction_id, error)
            return OperationResult(success=False, message=str(error))
        self.state.apply_updated(record)
        return OperationResult(success=True, record=record)

    def delete_transaction(self, transaction_id: str) -> OperationResult:
        try:
            self.store.delete(transaction_id)
        except FundLedgerError as error:
            LOGGER.warning("Deleting transaction %s failed: %s", transaction_id, error)
            return OperationResult(success=False, message=str(error))
        self.state.apply_deleted(transaction_id)
        return OperationResult(success=True)

    # ---------- export ----------

    def export_report(
        self, renderer: ReportRenderer, *, generated_at: Optional[datetime] = None
    ) -> ReportDocument:
        """Render the current period exactly as it is shown."""

        return renderer.render(
            self.summary(),
            self.state.records,
            self.navigator.period.label,
            generated_at=generated_at,
        )

    def close(self) -> None:
        """Log out: stop listening to the navigator and drop cached records."""

        self._remove_listener()
        self.state.close()
        LOGGER.debug("Session closed for %s", self.principal.user_id)
