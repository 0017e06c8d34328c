"""Mini README: FastAPI-powered REST service for the fund ledger.

Structure:
    * create_application - application factory wiring routes and collaborators.
    * get_principal - request dependency reading the authenticated identity.

The service lists, creates, updates and deletes transaction records (with
optional proof uploads), returns period summaries, and streams PDF reports.
Identity arrives in ``X-User-Id`` / ``X-User-Role`` headers set by the
authentication proxy and is trusted as-is.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles

from ..configuration import FundLedgerSettings, get_settings
from ..errors import FundLedgerError, NotFoundError, StorageError, ValidationError
from ..export import ReportRenderer
from ..finance import JsonTransactionStore, RecordFilter, TransactionStore, aggregate
from ..identity import Principal
from ..logging_utils import get_logger
from ..session.navigator import Period, ViewMode
from ..storage import ProofStorage, ProofUpload

LOGGER = get_logger(__name__)


def get_principal(
    x_user_id: Optional[str] = Header(None, alias="x-user-id"),
    x_user_role: Optional[str] = Header(None, alias="x-user-role"),
) -> Principal:
    """Resolve the caller, rejecting requests without an identity."""

    try:
        return Principal.from_headers(x_user_id, x_user_role)
    except ValidationError as error:
        raise HTTPException(status_code=401, detail=str(error)) from error


def _http_error(error: FundLedgerError) -> HTTPException:
    """Translate domain failures into HTTP responses."""

    if isinstance(error, ValidationError):
        status_code = 400
    elif isinstance(error, NotFoundError):
        status_code = 404
    elif isinstance(error, StorageError):
        status_code = 503
    else:
        status_code = 500
    LOGGER.warning("Request failed with %s: %s", status_code, error)
    return HTTPException(status_code=status_code, detail=str(error))


async def _read_proof(proof: Optional[UploadFile]) -> Optional[ProofUpload]:
    if proof is None or not proof.filename:
        return None
    content = await proof.read()
    LOGGER.info("Received proof upload %s (%s bytes)", proof.filename, len(content))
    return ProofUpload(filename=proof.filename, content=content)


def _form_payload(**fields: Optional[str]) -> Dict[str, str]:
    """Keep only the form fields the client actually sent."""

    return {name: value for name, value in fields.items() if value is not None}


def create_application(
    settings: Optional[FundLedgerSettings] = None,
    store: Optional[TransactionStore] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    settings = settings or get_settings()
    app = FastAPI(title="Fund Ledger", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    proofs = ProofStorage(settings.uploads_directory)
    store = store or JsonTransactionStore(settings.store_path, proofs)
    renderer = ReportRenderer(
        proofs.read_bytes,
        title=settings.report_title,
        filename_prefix=settings.report_filename_prefix,
    )
    app.mount("/uploads", StaticFiles(directory=str(proofs.directory)), name="uploads")

    @app.get("/")
    async def root() -> JSONResponse:
        """Liveness probe."""

        return JSONResponse({"status": "running"})

    @app.get("/api/transactions")
    async def list_transactions(
        year: Optional[int] = Query(None),
        month: Optional[int] = Query(None),
        start_date: Optional[str] = Query(None),
        end_date: Optional[str] = Query(None),
        principal: Principal = Depends(get_principal),
    ) -> JSONResponse:
        """Return records in ascending date order for the requested window."""

        try:
            record_filter = RecordFilter.from_query(year, month, start_date, end_date)
            records = store.list(record_filter)
        except FundLedgerError as error:
            raise _http_error(error) from error
        LOGGER.debug("Returning %s records to %s", len(records), principal.user_id)
        return JSONResponse([record.as_dict() for record in records])

    @app.post("/api/transactions")
    async def create_transaction(
        date: Optional[str] = Form(None),
        general_offering: Optional[str] = Form(None),
        special_offering: Optional[str] = Form(None),
        special_offering_names: Optional[str] = Form(None),
        tithe: Optional[str] = Form(None),
        tithe_names: Optional[str] = Form(None),
        expenses: Optional[str] = Form(None),
        expense_details: Optional[str] = Form(None),
        remarks: Optional[str] = Form(None),
        proof: Optional[UploadFile] = File(None),
        principal: Principal = Depends(get_principal),
    ) -> JSONResponse:
        """Record a new transaction, storing the proof file when attached."""

        payload = _form_payload(
            date=date,
            general_offering=general_offering,
            special_offering=special_offering,
            special_offering_names=special_offering_names,
            tithe=tithe,
            tithe_names=tithe_names,
            expenses=expenses,
            expense_details=expense_details,
            remarks=remarks,
        )
        upload = await _read_proof(proof)
        try:
            record = await asyncio.to_thread(
                store.create, payload, created_by=principal.user_id, proof=upload
            )
        except FundLedgerError as error:
            raise _http_error(error) from error
        return JSONResponse(record.as_dict(), status_code=201)

    @app.put("/api/transactions/{transaction_id}")
    async def update_transaction(
        transaction_id: str,
        date: Optional[str] = Form(None),
        general_offering: Optional[str] = Form(None),
        special_offering: Optional[str] = Form(None),
        special_offering_names: Optional[str] = Form(None),
        tithe: Optional[str] = Form(None),
        tithe_names: Optional[str] = Form(None),
        expenses: Optional[str] = Form(None),
        expense_details: Optional[str] = Form(None),
        remarks: Optional[str] = Form(None),
        proof: Optional[UploadFile] = File(None),
        principal: Principal = Depends(get_principal),
    ) -> JSONResponse:
        """Overwrite the provided fields; a new proof replaces the old file."""

        payload = _form_payload(
            date=date,
            general_offering=general_offering,
            special_offering=special_offering,
            special_offering_names=special_offering_names,
            tithe=tithe,
            tithe_names=tithe_names,
            expenses=expenses,
            expense_details=expense_details,
            remarks=remarks,
        )
        upload = await _read_proof(proof)
        try:
            record = await asyncio.to_thread(store.update, transaction_id, payload, proof=upload)
        except FundLedgerError as error:
            raise _http_error(error) from error
        LOGGER.debug("Transaction %s updated by %s", transaction_id, principal.user_id)
        return JSONResponse(record.as_dict())

    @app.delete("/api/transactions/{transaction_id}")
    async def delete_transaction(
        transaction_id: str,
        principal: Principal = Depends(get_principal),
    ) -> JSONResponse:
        """Remove a record and its proof file."""

        try:
            await asyncio.to_thread(store.delete, transaction_id)
        except FundLedgerError as error:
            raise _http_error(error) from error
        LOGGER.debug("Transaction %s deleted by %s", transaction_id, principal.user_id)
        return JSONResponse({"msg": "Transaction removed"})

    @app.get("/api/summary")
    async def summary(
        year: Optional[int] = Query(None),
        month: Optional[int] = Query(None),
        principal: Principal = Depends(get_principal),
    ) -> JSONResponse:
        """Aggregate a month, or a year with its month-by-month breakdown."""

        try:
            records = store.list(RecordFilter.from_query(year, month))
        except FundLedgerError as error:
            raise _http_error(error) from error
        result = aggregate(records, monthly=year is not None and month is None)
        payload = result.as_dict()
        payload["record_count"] = len(records)
        return JSONResponse(payload)

    @app.get("/api/reports")
    async def export_report(
        year: int = Query(...),
        month: Optional[int] = Query(None),
        principal: Principal = Depends(get_principal),
    ) -> Response:
        """Render the period report as a PDF download."""

        try:
            period = Period(
                view_mode=ViewMode.YEAR if month is None else ViewMode.MONTH,
                year=year,
                month=month or 1,
            )
            records = store.list(period.record_filter())
        except FundLedgerError as error:
            raise _http_error(error) from error
        result = aggregate(records, monthly=period.view_mode is ViewMode.YEAR)
        document = await asyncio.to_thread(renderer.render, result, records, period.label)
        LOGGER.info("Report %s exported for %s", document.filename, principal.user_id)
        return Response(
            content=document.content,
            media_type=document.media_type,
            headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
        )

    return app
