"""Mini README: Interactive interfaces for the fund ledger.

Exports the FastAPI application factory that serves the REST API used by
the browser client. Future interface modules should live alongside it.
"""

from .web_app import create_application

__all__ = ["create_application"]
