"""Mini README: Finance domain of the fund ledger.

This package groups the transaction record model, the store that persists
records, and the aggregation engine that turns a period's records into
totals, a balance and (for year views) a month-by-month matrix.
"""

from .aggregation import AggregateResult, MonthlyBucket, aggregate, monthly_breakdown
from .records import TransactionRecord, coerce_amount, coerce_payload, parse_record_date
from .store import JsonTransactionStore, RecordFilter, TransactionStore

__all__ = [
    "AggregateResult",
    "JsonTransactionStore",
    "MonthlyBucket",
    "RecordFilter",
    "TransactionRecord",
    "TransactionStore",
    "aggregate",
    "coerce_amount",
    "coerce_payload",
    "monthly_breakdown",
    "parse_record_date",
]
