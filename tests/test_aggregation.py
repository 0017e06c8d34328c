"""Mini README: Tests covering period aggregation.

Structure:
    * test_worked_example_totals - two March records produce the expected totals.
    * test_identities_hold_for_varied_inputs - offerings/balance identities.
    * test_order_does_not_change_result - permutations give identical results.
    * test_monthly_buckets_match_totals - bucket sums equal the flat totals.
    * test_empty_input_is_all_zero - no records, zero totals, twelve zero buckets.
    * test_year_buckets_only_fill_used_months - March and December only.
    * test_junk_amounts_count_as_zero - mappings with missing/non-numeric values.
"""

from __future__ import annotations

import itertools
import math
from datetime import date

import pytest

from fundledger.finance import TransactionRecord, aggregate


def _record(
    transaction_id: str,
    on: date,
    general: float = 0.0,
    special: float = 0.0,
    tithe: float = 0.0,
    expenses: float = 0.0,
) -> TransactionRecord:
    return TransactionRecord(
        transaction_id=transaction_id,
        date=on,
        created_by="user-1",
        general_offering=general,
        special_offering=special,
        tithe=tithe,
        expenses=expenses,
    )


def test_worked_example_totals() -> None:
    """Two March records yield 170 in offerings and a 140 balance."""

    records = [
        _record("txn_0001", date(2024, 3, 5), general=100, tithe=50, expenses=30),
        _record("txn_0002", date(2024, 3, 20), special=20),
    ]

    result = aggregate(records)

    assert result.general_total == 100
    assert result.special_total == 20
    assert result.tithe_total == 50
    assert result.expense_total == 30
    assert result.total_offerings == 170
    assert result.balance == 140
    assert result.monthly is None


@pytest.mark.parametrize(
    "records",
    [
        [],
        [_record("txn_0001", date(2024, 1, 1), general=0.1, special=0.2, tithe=0.3, expenses=0.7)],
        [
            _record("txn_0001", date(2024, 1, 1), general=1200.5, expenses=99.99),
            _record("txn_0002", date(2024, 6, 9), tithe=45.25, expenses=5000),
            _record("txn_0003", date(2024, 9, 30), special=12.75),
        ],
    ],
)
def test_identities_hold_for_varied_inputs(records) -> None:
    """Total offerings and balance are derived from the category totals."""

    result = aggregate(records, monthly=True)

    assert result.total_offerings == result.general_total + result.special_total + result.tithe_total
    assert result.balance == result.total_offerings - result.expense_total


def test_order_does_not_change_result() -> None:
    """Every permutation of the input aggregates to the same values."""

    records = [
        _record("txn_0001", date(2024, 2, 1), general=0.1, expenses=0.3),
        _record("txn_0002", date(2024, 5, 1), general=0.2, tithe=1e-3),
        _record("txn_0003", date(2024, 8, 1), general=0.3, special=7.77, expenses=0.1),
        _record("txn_0004", date(2024, 8, 2), general=1e6, expenses=0.2),
    ]
    expected = aggregate(records, monthly=True)

    for permutation in itertools.permutations(records):
        assert aggregate(permutation, monthly=True) == expected


def test_monthly_buckets_match_totals() -> None:
    """Month buckets account for every offering and expense exactly once."""

    records = [
        _record("txn_0001", date(2024, 1, 7), general=10, special=5, tithe=2.5, expenses=4),
        _record("txn_0002", date(2024, 1, 14), general=11.1, expenses=0.9),
        _record("txn_0003", date(2024, 7, 21), tithe=300, expenses=120.45),
        _record("txn_0004", date(2024, 12, 31), special=0.05),
    ]

    result = aggregate(records, monthly=True)

    assert len(result.monthly) == 12
    assert math.fsum(bucket.offerings for bucket in result.monthly) == pytest.approx(result.total_offerings)
    assert math.fsum(bucket.expenses for bucket in result.monthly) == pytest.approx(result.expense_total)


def test_empty_input_is_all_zero() -> None:
    """No records produce zero totals and twelve empty buckets."""

    result = aggregate([], monthly=True)

    assert result.as_dict() == {
        "general_total": 0.0,
        "special_total": 0.0,
        "tithe_total": 0.0,
        "expense_total": 0.0,
        "total_offerings": 0.0,
        "balance": 0.0,
        "monthly": [{"offerings": 0.0, "expenses": 0.0}] * 12,
    }


def test_year_buckets_only_fill_used_months() -> None:
    """Two March records and one December record fill indices 2 and 11."""

    records = [
        _record("txn_0001", date(2024, 3, 3), general=40),
        _record("txn_0002", date(2024, 3, 17), expenses=15),
        _record("txn_0003", date(2024, 12, 24), special=60, expenses=5),
    ]

    monthly = aggregate(records, monthly=True).monthly

    assert monthly[2].offerings == 40
    assert monthly[2].expenses == 15
    assert monthly[11].offerings == 60
    assert monthly[11].expenses == 5
    for index, bucket in enumerate(monthly):
        if index not in (2, 11):
            assert bucket.offerings == 0 and bucket.expenses == 0


def test_junk_amounts_count_as_zero() -> None:
    """Raw mappings with blanks or text still aggregate without errors."""

    rows = [
        {"date": "2024-04-02", "generalOffering": "25", "tithe": None, "expenses": "n/a"},
        {"date": "2024-04-09T10:00:00", "special_offering": 5, "expenses": 3},
        {"date": "2024-05-01"},
    ]

    result = aggregate(rows, monthly=True)

    assert result.general_total == 25
    assert result.special_total == 5
    assert result.tithe_total == 0
    assert result.expense_total == 3
    assert result.monthly[3].offerings == 30
    assert result.monthly[4].offerings == 0
