"""Mini README: Centralised configuration models and helpers for the fund ledger.

Structure:
    * FundLedgerSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read environment variables (prefixed with
    ``FUNDLEDGER_``), locate the transaction store and upload directory, and
    pick the service host and port. The configuration is cached so the cost
    of validation is incurred only once per process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class FundLedgerSettings(BaseSettings):
    """Runtime configuration for the fund ledger service."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    log_level: str = Field(
        "INFO",
        description="Root logging level applied by the entry points.",
    )
    data_directory: Path = Field(
        Path("data"),
        description="Directory holding the transaction store file.",
    )
    uploads_directory: Optional[Path] = Field(
        None,
        description="Directory for proof attachments. Defaults to <data_directory>/uploads.",
    )
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the REST service to bind to.",
    )
    interface_port: int = Field(
        5000,
        description="Port the REST service exposes.",
        ge=1,
        le=65535,
    )
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Browser origins allowed to call the API.",
    )
    report_title: str = Field(
        "FMS Financial Report",
        description="Heading printed at the top of exported reports.",
    )
    report_filename_prefix: str = Field(
        "FMS_Report",
        description="Prefix of exported report filenames.",
    )

    class Config:
        env_prefix = "FUNDLEDGER_"
        env_file = ".env"
        case_sensitive = False

    @validator("data_directory", pre=True, always=True)
    def _expand_path(cls, value: Optional[str | Path]) -> Path:
        """Ensure configured paths expand user directories and exist."""

        path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @validator("uploads_directory", pre=True, always=True)
    def _default_uploads(cls, value: Optional[str | Path], values: dict) -> Path:
        """Place uploads beside the store unless configured explicitly."""

        if value in (None, ""):
            base = values.get("data_directory") or Path("data").resolve()
            path = Path(base) / "uploads"
        else:
            path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def store_path(self) -> Path:
        """Location of the JSON transaction store."""

        return self.data_directory / "transactions.json"


@lru_cache()
def get_settings() -> FundLedgerSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return FundLedgerSettings()
