"""Mini README: Tests for the command line entry point.

Ensures ``export-report`` reads the configured store and writes the PDF
under the period-derived filename.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from fundledger.configuration import get_settings
from fundledger.finance import JsonTransactionStore
from fundledger.storage import ProofStorage
from manage_funds import cli


@pytest.fixture()
def configured(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FUNDLEDGER_DATA_DIRECTORY", str(tmp_path / "data"))
    monkeypatch.delenv("FUNDLEDGER_UPLOADS_DIRECTORY", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


def test_export_report_writes_pdf(configured, tmp_path: Path) -> None:
    """The CLI renders the requested month into the output directory."""

    store = JsonTransactionStore(configured.store_path, ProofStorage(configured.uploads_directory))
    store.create({"date": "2024-03-05", "general_offering": "100"}, created_by="user-1")
    output = tmp_path / "reports"

    result = CliRunner().invoke(
        cli, ["export-report", "--year", "2024", "--month", "3", "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    written = output / "FMS_Report_March_2024.pdf"
    assert written.read_bytes().startswith(b"%PDF")
    assert "1 records" in result.output


def test_export_report_rejects_bad_month(configured, tmp_path: Path) -> None:
    """Invalid periods exit with an error instead of a traceback."""

    result = CliRunner().invoke(cli, ["export-report", "--year", "2024", "--month", "13"])

    assert result.exit_code == 1
