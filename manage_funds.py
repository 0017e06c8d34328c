"""Mini README: Entry point CLI for the fund ledger service.

This script exposes a Typer CLI with two commands: ``run`` starts the
FastAPI application under uvicorn with configurable host, port and
production flags, and ``export-report`` renders a month or year report from
the configured store straight to disk. Settings come from ``FUNDLEDGER_*``
environment variables when available.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
import uvicorn

from fundledger.configuration import get_settings
from fundledger.errors import FundLedgerError
from fundledger.export import ReportRenderer
from fundledger.finance import JsonTransactionStore, aggregate
from fundledger.logging_utils import configure_root_logger
from fundledger.session.navigator import Period, ViewMode
from fundledger.storage import ProofStorage

cli = typer.Typer(help="Run the fund ledger API and export period reports.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.log_level)

    # Browsers cannot open the 0.0.0.0 / :: wildcard, so point at loopback.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        "Starting fund ledger API on "
        f"{effective_host}:{effective_port}.\n"
        "Open your browser at "
        f"http://{browser_host}:{effective_port}"
        + (
            " (use your machine's IP address for remote access)."
            if effective_host in {"0.0.0.0", "::"}
            else ""
        )
    )
    uvicorn.run(
        "fundledger.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command("export-report")
def export_report(
    year: int = typer.Option(..., help="Calendar year to report on."),
    month: Optional[int] = typer.Option(None, help="Month (1-12); omit for a full-year report."),
    output: Path = typer.Option(Path("."), help="Directory the PDF is written to."),
    no_chart: bool = typer.Option(False, "--no-chart", help="Leave the fund chart out."),
) -> None:
    """Render a period report from the configured store."""

    settings = get_settings()
    configure_root_logger(settings.log_level)
    try:
        period = Period(
            view_mode=ViewMode.YEAR if month is None else ViewMode.MONTH,
            year=year,
            month=month or 1,
        )
        proofs = ProofStorage(settings.uploads_directory)
        store = JsonTransactionStore(settings.store_path, proofs)
        records = store.list(period.record_filter())
    except FundLedgerError as error:
        typer.secho(f"Export failed: {error}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from error

    renderer = ReportRenderer(
        proofs.read_bytes,
        title=settings.report_title,
        filename_prefix=settings.report_filename_prefix,
    )
    document = renderer.render(
        aggregate(records, monthly=period.view_mode is ViewMode.YEAR),
        records,
        period.label,
        include_chart=not no_chart,
    )
    output.mkdir(parents=True, exist_ok=True)
    destination = output / document.filename
    destination.write_bytes(document.content)
    typer.echo(
        f"Wrote {destination} ({len(records)} records, "
        f"{len(document.fallback_proofs)} proofs referenced as text)."
    )


if __name__ == "__main__":
    cli()
