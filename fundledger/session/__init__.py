"""Mini README: Client-side session helpers.

Groups the period navigator, the injectable application state that caches
the records of the selected period, and the ``LedgerSession`` that ties both
to a transaction store for one signed-in user.
"""

from .ledger_session import LedgerSession, OperationResult
from .navigator import MONTH_NAMES, Period, PeriodNavigator, ViewMode
from .state import ApplicationState, FetchTicket

__all__ = [
    "ApplicationState",
    "FetchTicket",
    "LedgerSession",
    "MONTH_NAMES",
    "OperationResult",
    "Period",
    "PeriodNavigator",
    "ViewMode",
]
