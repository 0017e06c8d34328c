"""Mini README: Exporters for fund ledger reports.

Exposes the PDF report renderer used by the REST download endpoint, the CLI
and client sessions.
"""

from .report import ReportDocument, ReportRenderer, report_filename

__all__ = ["ReportDocument", "ReportRenderer", "report_filename"]
