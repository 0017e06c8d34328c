"""Mini README: Render period reports as PDF documents.

Structure:
    * ReportDocument - the rendered bytes plus filename and proof bookkeeping.
    * ReportRenderer - lays out header, summary, charts, table and proof appendix.

Pages are matplotlib figures collected by ``PdfPages``. Proof attachments
are decoded with Pillow; an attachment that cannot be loaded or decoded
(a PDF receipt, a missing file, a corrupt image) gets a textual reference
on its appendix page and the export carries on with the next proof.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from io import BytesIO
from typing import Callable, List, Optional, Sequence

import numpy as np
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.figure import Figure
from PIL import Image, UnidentifiedImageError

from ..errors import FundLedgerError, RenderError
from ..finance.aggregation import AggregateResult
from ..finance.records import TransactionRecord
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

ProofLoader = Callable[[str], bytes]

_WHITESPACE = re.compile(r"\s")
PAGE_SIZE = (11.69, 8.27)  # A4 landscape, inches
SUPPORTED_IMAGE_FORMATS = frozenset({"PNG", "JPEG", "GIF", "BMP", "WEBP", "TIFF"})
TABLE_COLUMNS = (
    "Date",
    "Gen. Off.",
    "Spec. Off.",
    "Spec. Names",
    "Tithe",
    "Tithe Names",
    "Expenses",
    "Details",
    "Remarks",
    "Proof",
)
HEADER_COLOUR = "#6366f1"
FUND_COLOURS = ("#10B981", "#3B82F6", "#A855F7", "#EF4444")
MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(slots=True)
class ReportDocument:
    """A rendered report ready for download."""

    filename: str
    content: bytes
    embedded_proofs: List[str] = field(default_factory=list)
    fallback_proofs: List[str] = field(default_factory=list)

    media_type = "application/pdf"


def report_filename(prefix: str, period_label: str) -> str:
    """Derive the download name, replacing each whitespace character with ``_``."""

    return f"{prefix}_{_WHITESPACE.sub('_', period_label)}.pdf"


def _money(value: float) -> str:
    return f"{value:,.2f}"


def _clip(text: str, limit: int = 28) -> str:
    text = " ".join(text.split())
    if not text:
        return "-"
    return text if len(text) <= limit else text[: limit - 3] + "..."


class ReportRenderer:
    """Compose the PDF export for one reporting period."""

    def __init__(
        self,
        proof_loader: Optional[ProofLoader] = None,
        *,
        title: str = "FMS Financial Report",
        filename_prefix: str = "FMS_Report",
        rows_per_page: int = 24,
    ) -> None:
        if rows_per_page < 2:
            raise ValueError("rows_per_page must allow at least two rows")
        self.proof_loader = proof_loader
        self.title = title
        self.filename_prefix = filename_prefix
        self.rows_per_page = rows_per_page

    # ---------- public API ----------

    def render(
        self,
        aggregate: AggregateResult,
        records: Sequence[TransactionRecord],
        period_label: str,
        *,
        generated_at: Optional[datetime] = None,
        include_chart: bool = True,
    ) -> ReportDocument:
        """Render the report; proof failures degrade to text and never raise."""

        generated_at = generated_at or datetime.now(timezone.utc)
        document = ReportDocument(
            filename=report_filename(self.filename_prefix, period_label),
            content=b"",
        )
        buffer = BytesIO()
        metadata = {
            "Title": f"{self.title} - {period_label}",
            "Creator": "fundledger",
            "CreationDate": generated_at,
        }
        with PdfPages(buffer, metadata=metadata) as pdf:
            for page in self._summary_pages(aggregate, records, period_label, generated_at, include_chart):
                pdf.savefig(page)
            proofs = [record for record in records if record.proof_url]
            for index, record in enumerate(proofs, start=1):
                pdf.savefig(self._proof_page(record, index, len(proofs), document))
        document.content = buffer.getvalue()
        LOGGER.info(
            "Rendered %s (%s records, %s proofs embedded, %s as text)",
            document.filename,
            len(records),
            len(document.embedded_proofs),
            len(document.fallback_proofs),
        )
        return document

    # ---------- summary and table ----------

    def _table_rows(self, aggregate: AggregateResult, records: Sequence[TransactionRecord]) -> List[List[str]]:
        rows = [
            [
                record.date.isoformat(),
                _money(record.general_offering),
                _money(record.special_offering),
                _clip(record.special_offering_names),
                _money(record.tithe),
                _clip(record.tithe_names),
                _money(record.expenses),
                _clip(record.expense_details),
                _clip(record.remarks),
                "Yes (see appendix)" if record.proof_url else "None",
            ]
            for record in records
        ]
        rows.append(
            [
                "TOTAL",
                _money(aggregate.general_total),
                _money(aggregate.special_total),
                "",
                _money(aggregate.tithe_total),
                "",
                _money(aggregate.expense_total),
                "",
                f"Bal: {_money(aggregate.balance)}",
                "",
            ]
        )
        return rows

    def _summary_pages(
        self,
        aggregate: AggregateResult,
        records: Sequence[TransactionRecord],
        period_label: str,
        generated_at: datetime,
        include_chart: bool,
    ) -> List[Figure]:
        first = Figure(figsize=PAGE_SIZE)
        first.text(
            0.05, 0.94, f"{self.title} - {period_label}", fontsize=18, weight="bold", parse_math=False
        )
        first.text(0.05, 0.905, f"Generated: {generated_at:%Y-%m-%d}", fontsize=10, color="0.45")
        first.text(
            0.05,
            0.87,
            f"Total Offerings: {_money(aggregate.total_offerings)}   |   "
            f"Total Expenses: {_money(aggregate.expense_total)}   |   "
            f"Balance Fund: {_money(aggregate.balance)}",
            fontsize=11,
        )

        chart_drawn = include_chart and len(records) > 0
        if chart_drawn:
            self._draw_charts(first, aggregate)

        rows = self._table_rows(aggregate, records)
        first_capacity = self.rows_per_page // 2 if chart_drawn else self.rows_per_page
        chunks = [rows[:first_capacity]]
        chunks.extend(
            rows[start : start + self.rows_per_page]
            for start in range(first_capacity, len(rows), self.rows_per_page)
        )

        pages = [first]
        for number, chunk in enumerate(chunks):
            if number == 0:
                figure = first
                top = 0.42 if chart_drawn else 0.83
            else:
                figure = Figure(figsize=PAGE_SIZE)
                figure.text(
                    0.05, 0.94, f"{period_label} (continued)", fontsize=12, weight="bold", parse_math=False
                )
                pages.append(figure)
                top = 0.9
            self._draw_table(figure, chunk, top)
        return pages

    def _draw_charts(self, figure: Figure, aggregate: AggregateResult) -> None:
        values = [aggregate.general_total, aggregate.special_total, aggregate.tithe_total, aggregate.expense_total]
        width = 0.4 if aggregate.monthly is not None else 0.9
        doughnut = figure.add_axes([0.05, 0.47, width * 0.75, 0.36])
        if sum(values) > 0:
            doughnut.pie(
                values,
                labels=["General Offering", "Special Offerings", "Tithe", "Expenses"],
                colors=FUND_COLOURS,
                wedgeprops=dict(width=0.4),
                startangle=90,
                textprops={"fontsize": 8},
            )
            doughnut.axis("equal")
        else:
            doughnut.text(0.5, 0.5, "No amounts recorded", ha="center", va="center")
            doughnut.axis("off")
        doughnut.set_title("Fund Breakdown", fontsize=10)

        if aggregate.monthly is not None:
            bars = figure.add_axes([0.5, 0.49, 0.45, 0.33])
            positions = np.arange(12)
            bars.bar(
                positions - 0.2,
                [bucket.offerings for bucket in aggregate.monthly],
                width=0.4,
                label="Offerings",
                color=FUND_COLOURS[0],
            )
            bars.bar(
                positions + 0.2,
                [bucket.expenses for bucket in aggregate.monthly],
                width=0.4,
                label="Expenses",
                color=FUND_COLOURS[3],
            )
            bars.set_xticks(positions)
            bars.set_xticklabels(MONTH_ABBREVIATIONS, fontsize=8)
            bars.tick_params(axis="y", labelsize=8)
            bars.legend(fontsize=8)
            bars.set_title("Monthly Comparison", fontsize=10)

    def _draw_table(self, figure: Figure, rows: List[List[str]], top: float) -> None:
        axes = figure.add_axes([0.03, 0.03, 0.94, top - 0.03])
        axes.axis("off")
        table = axes.table(cellText=rows, colLabels=TABLE_COLUMNS, loc="upper center", cellLoc="left")
        table.auto_set_font_size(False)
        table.set_fontsize(7)
        for (row, _column), cell in table.get_celld().items():
            # Record text is literal; "$" must not start mathtext.
            cell.get_text().set_parse_math(False)
            if row == 0:
                cell.set_facecolor(HEADER_COLOUR)
                cell.set_text_props(color="white", weight="bold")

    # ---------- proof appendix ----------

    def _load_image(self, reference: str) -> np.ndarray:
        """Fetch and decode one proof, raising ``RenderError`` on any failure."""

        if self.proof_loader is None:
            raise RenderError("No proof loader configured")
        try:
            payload = self.proof_loader(reference)
        except FundLedgerError as error:
            raise RenderError(f"Could not fetch {reference}: {error}") from error
        try:
            with Image.open(BytesIO(payload)) as image:
                if image.format not in SUPPORTED_IMAGE_FORMATS:
                    raise RenderError(f"Unsupported image format {image.format} for {reference}")
                image.load()
                return np.asarray(image.convert("RGBA"))
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as error:
            raise RenderError(f"Could not decode {reference}: {error}") from error

    def _proof_page(
        self,
        record: TransactionRecord,
        index: int,
        total: int,
        document: ReportDocument,
    ) -> Figure:
        figure = Figure(figsize=PAGE_SIZE)
        figure.text(0.05, 0.94, f"Proof {index} of {total}", fontsize=14)
        figure.text(
            0.05,
            0.905,
            f"Date: {record.date.isoformat()}  |  Expenses: {_money(record.expenses)}  |  "
            f"{record.expense_details or record.remarks}",
            fontsize=10,
            color="0.4",
            parse_math=False,
        )
        try:
            pixels = self._load_image(record.proof_url or "")
        except RenderError as error:
            LOGGER.warning("Proof for %s not embedded: %s", record.transaction_id, error)
            figure.text(
                0.05,
                0.85,
                "Could not embed this proof image (unsupported format or PDF file).",
                fontsize=10,
                color=(0.78, 0.0, 0.0),
            )
            figure.text(0.05, 0.81, f"Proof file: {record.proof_url}", fontsize=10, parse_math=False)
            document.fallback_proofs.append(record.transaction_id)
            return figure

        axes = figure.add_axes([0.05, 0.05, 0.9, 0.82])
        axes.imshow(pixels)
        axes.axis("off")
        document.embedded_proofs.append(record.transaction_id)
        return figure
