"""Mini README: Tests for period navigation and the client session.

Structure:
    * test_month_navigation_rolls_over_years - December/January boundaries.
    * test_year_navigation_ignores_month - year steps keep the month.
    * test_period_labels_and_days - labels, ranges and day-of-month control.
    * test_transitions_refetch_and_reaggregate - navigation reloads records.
    * test_stale_fetch_is_discarded - late responses do not overwrite newer ones.
    * test_failed_write_leaves_state_unchanged - errors come back as results.
    * test_session_writes_apply_locally - add/update/delete keep date order.
    * test_edit_reanchors_date_to_selected_month - edits land in the viewed month.
    * test_close_tears_down_state - logout clears records and listeners.
    * test_refresh_async_uses_worker_thread - asyncio variant of refresh.
    * test_export_report_uses_current_period - session export naming.
"""

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path

import pytest

from fundledger.errors import ValidationError
from fundledger.export import ReportRenderer
from fundledger.finance import JsonTransactionStore
from fundledger.identity import Principal
from fundledger.session import ApplicationState, LedgerSession, PeriodNavigator, ViewMode
from fundledger.storage import ProofStorage


@pytest.fixture()
def store(tmp_path: Path) -> JsonTransactionStore:
    store = JsonTransactionStore(None, ProofStorage(tmp_path / "uploads"))
    store.create({"date": "2023-12-24", "general_offering": "80"}, created_by="user-1")
    store.create({"date": "2024-01-07", "general_offering": "100", "expenses": "20"}, created_by="user-1")
    store.create({"date": "2024-01-21", "tithe": "50"}, created_by="user-1")
    store.create({"date": "2024-02-04", "special_offering": "30"}, created_by="user-1")
    return store


def test_month_navigation_rolls_over_years() -> None:
    """Stepping past January or December crosses into the adjacent year."""

    navigator = PeriodNavigator(ViewMode.MONTH, year=2024, month=1)

    assert navigator.previous().label == "December 2023"
    assert navigator.next().label == "January 2024"

    navigator.select(2024, 12)
    assert navigator.next().label == "January 2025"


def test_year_navigation_ignores_month() -> None:
    """Year view changes only the year."""

    navigator = PeriodNavigator("year", year=2024, month=7)

    assert navigator.next().label == "Year 2025"
    assert navigator.previous().year == 2024
    assert navigator.previous().year == 2023
    assert navigator.period.month == 7


def test_period_labels_and_days() -> None:
    """Periods expose labels, date windows and the day-of-month control."""

    navigator = PeriodNavigator(ViewMode.MONTH, year=2024, month=2)
    period = navigator.period

    assert period.label == "February 2024"
    assert period.date_range() == (date(2024, 2, 1), date(2024, 2, 29))
    assert period.date_for_day(29) == date(2024, 2, 29)
    with pytest.raises(ValidationError):
        period.date_for_day(30)

    year = navigator.set_view_mode("year")
    assert year.date_range() == (date(2024, 1, 1), date(2024, 12, 31))


def test_transitions_refetch_and_reaggregate(store: JsonTransactionStore) -> None:
    """Each navigation step reloads the window and the summary follows."""

    session = LedgerSession(
        store, Principal("user-1"), navigator=PeriodNavigator(ViewMode.MONTH, year=2024, month=1)
    )
    notifications = []
    session.state.subscribe(lambda state: notifications.append(len(state.records)))

    assert session.summary().total_offerings == 150
    assert session.summary().monthly is None

    session.previous_period()
    assert [record.date for record in session.state.records] == [date(2023, 12, 24)]
    assert session.summary().balance == 80
    assert notifications[-1] == 1

    session.navigator.select(2024, 1)
    session.navigator.set_view_mode(ViewMode.YEAR)
    summary = session.summary()
    assert summary.total_offerings == 180
    assert summary.monthly[0].offerings == 150
    assert summary.monthly[1].offerings == 30


def test_stale_fetch_is_discarded(store: JsonTransactionStore) -> None:
    """A response issued for an older selection cannot overwrite a newer one."""

    navigator = PeriodNavigator(ViewMode.MONTH, year=2024, month=1)
    state = ApplicationState()
    slow = state.begin_fetch(navigator.period)
    navigator.next()
    fast = state.begin_fetch(navigator.period)

    assert state.complete_fetch(fast, store.list(fast.period.record_filter())) is True
    assert state.complete_fetch(slow, store.list(slow.period.record_filter())) is False

    assert state.period.label == "February 2024"
    assert [record.special_offering for record in state.records] == [30.0]
    assert state.loading is False


def test_failed_write_leaves_state_unchanged(store: JsonTransactionStore) -> None:
    """Store errors are reported as results and nothing is applied locally."""

    session = LedgerSession(
        store, Principal("user-1"), navigator=PeriodNavigator(ViewMode.MONTH, year=2024, month=1)
    )
    before = session.state.records

    missing = session.update_transaction("txn_9999", {"tithe": "5"})
    negative = session.add_transaction({"expenses": "-3"}, day=3)
    bad_day = session.add_transaction({"tithe": "5"}, day=32)

    assert not missing.success and "not found" in missing.message
    assert not negative.success
    assert not bad_day.success
    assert session.state.records == before


def test_session_writes_apply_locally(store: JsonTransactionStore) -> None:
    """Successful writes update the cached records in ascending date order."""

    session = LedgerSession(
        store, Principal("user-7"), navigator=PeriodNavigator(ViewMode.MONTH, year=2024, month=1)
    )

    added = session.add_transaction({"tithe": "10"}, day=3)
    assert added.success and added.record.created_by == "user-7"
    assert [record.date.day for record in session.state.records] == [3, 7, 21]

    moved = session.update_transaction(added.record.transaction_id, {"remarks": "Moved"}, day=28)
    assert moved.success
    assert [record.date.day for record in session.state.records] == [7, 21, 28]

    deleted = session.delete_transaction("txn_0002")
    assert deleted.success
    assert [record.date.day for record in session.state.records] == [21, 28]


def test_edit_reanchors_date_to_selected_month(store: JsonTransactionStore) -> None:
    """Editing from another month's view moves the record into that month."""

    late = store.create({"date": "2024-01-31", "tithe": "4"}, created_by="user-1")
    session = LedgerSession(
        store, Principal("user-1"), navigator=PeriodNavigator(ViewMode.MONTH, year=2024, month=2)
    )

    kept_day = session.update_transaction("txn_0003", {"remarks": "Edited in February"})
    capped = session.update_transaction(late.transaction_id, {"date": "2024-01-31"})

    assert kept_day.record.date == date(2024, 2, 21)
    assert capped.record.date == date(2024, 2, 29)
    assert [record.transaction_id for record in session.state.records] == [
        "txn_0004",
        "txn_0003",
        late.transaction_id,
    ]


def test_close_tears_down_state(store: JsonTransactionStore) -> None:
    """Logging out clears cached data and stops reacting to navigation."""

    navigator = PeriodNavigator(ViewMode.MONTH, year=2024, month=1)
    session = LedgerSession(store, Principal("user-1"), navigator=navigator)

    session.close()
    navigator.next()

    assert session.state.closed
    assert session.state.records == []
    with pytest.raises(RuntimeError):
        session.state.begin_fetch()


def test_refresh_async_uses_worker_thread(store: JsonTransactionStore) -> None:
    """The asynchronous refresh installs the same records as the blocking one."""

    session = LedgerSession(
        store,
        Principal("user-1"),
        navigator=PeriodNavigator(ViewMode.MONTH, year=2024, month=2),
        auto_refresh=False,
    )

    assert asyncio.run(session.refresh_async()) is True
    assert [record.transaction_id for record in session.state.records] == ["txn_0004"]


def test_export_report_uses_current_period(store: JsonTransactionStore) -> None:
    """Session exports render exactly the records and label on screen."""

    session = LedgerSession(
        store, Principal("user-1"), navigator=PeriodNavigator(ViewMode.YEAR, year=2024, month=1)
    )

    document = session.export_report(ReportRenderer())

    assert document.filename == "FMS_Report_Year_2024.pdf"
    assert document.content.startswith(b"%PDF")
