"""HTTP surface over the report builders.

The app holds one PaymentStore, one RateCache and the Settings. Report
handlers read payments from the store, convert them with the current
rate snapshot (live when the fetch succeeds, fallback otherwise) and
return the report builders' payloads under ``{"success": true, "data": ...}``.
"""

from __future__ import annotations

import logging
import os
from datetime import date, timedelta
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..currency import RateCache, RateSnapshot, current_rates, fallback_snapshot, fetch_exchange_rates
from ..data import (
    PaymentStore,
    Settings,
    import_payments,
    load_settings,
    parse_debt_csv,
    validate_payments,
    with_backfill,
)
from ..data.cleaners import normalize_currency_code
from ..data.config import DEFAULT_CONFIG_PATH
from ..reports import (
    GroupBy,
    UnsupportedExportFormatError,
    assemble_contracts,
    cash_flow_report,
    debt_position_report,
    generate_export,
    payments_in_brl,
)

logger = logging.getLogger(__name__)

# Overrides the packaged conf/agrifin.yaml
CONFIG_ENV = "AGRIFIN_CONFIG"

DEFAULT_REPORT_DAYS = 90
ALL = "all"


class ApiError(Exception):
    """Client error returned as ``{"error": message}``."""

    def __init__(self, message: str, status_code: int = 400, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class ExportRequest(BaseModel):
    reportType: str | None = None
    format: str | None = None
    data: dict[str, Any] | None = None
    fileName: str | None = None


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.details})


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def _snapshot(request: Request) -> RateSnapshot:
    state = request.app.state
    result = fetch_exchange_rates(
        state.rate_cache,
        client=state.rate_client,
        url=state.settings.rate_url,
        timeout=state.settings.rate_timeout,
    )
    if not result.ok:
        logger.warning("Using fallback exchange rates (%s: %s)", result.error, result.message)
    return result.unwrap_or(fallback_snapshot(rates=state.settings.fallback_rates))


def _optional(value: str | None) -> str | None:
    return None if value in (None, "", ALL) else value


def load_app_settings() -> Settings:
    """Settings from $AGRIFIN_CONFIG, else the packaged conf/agrifin.yaml."""
    path = Path(os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH))
    if not path.exists():
        logger.warning("Config file %s not found; using default settings", path)
        return Settings()
    logger.info(f"Loading settings from {path}")
    return load_settings(path)


def create_app(
    settings: Settings | None = None,
    store: PaymentStore | None = None,
    rate_client: httpx.Client | None = None,
) -> FastAPI:
    """
    Build the API application.

    Parameters
    ----------
    settings : Settings | None
        Runtime settings, defaults to Settings().
    store : PaymentStore | None
        Payment store, a new empty store when None.
    rate_client : httpx.Client | None
        HTTP client for the rate fetch. A short-lived client is created
        per fetch when None.
    """
    settings = settings or Settings()

    app = FastAPI(
        title="Agrifin Analytics API",
        description="API for debt portfolio, cash-flow and debt-position reports.",
        version="0.1.0",
    )
    app.state.settings = settings
    app.state.store = store if store is not None else PaymentStore()
    app.state.rate_cache = RateCache(ttl_seconds=settings.rate_cache_ttl)
    app.state.rate_client = rate_client

    app.add_exception_handler(ApiError, _api_error_handler)
    app.add_exception_handler(Exception, _unhandled_handler)

    @app.get("/")
    async def root():
        return {"message": "Agrifin Analytics API"}

    @app.get("/api/rates")
    def rates(request: Request):
        return current_rates(_snapshot(request))

    @app.get("/api/reports/cash-flow")
    def cash_flow(
        request: Request,
        startDate: str | None = None,
        endDate: str | None = None,
        groupBy: str = GroupBy.WEEK.value,
        currency: str = ALL,
        institution: str = ALL,
    ):
        try:
            group_by = GroupBy(groupBy)
        except ValueError:
            raise ApiError(f"Unsupported groupBy: {groupBy}")

        today = date.today()
        start = startDate or today.isoformat()
        end = endDate or (today + timedelta(days=DEFAULT_REPORT_DAYS)).isoformat()
        currency_code = _optional(currency)
        if currency_code is not None:
            currency_code = normalize_currency_code(currency_code)
        institution_name = _optional(institution)

        payments = request.app.state.store.query(
            start_date=start,
            end_date=end,
            currency=currency_code,
            institution=institution_name,
        )
        report = cash_flow_report(
            payments_in_brl(payments, _snapshot(request)),
            start,
            end,
            group_by=group_by,
            currency=currency_code,
            institution=institution_name,
            settings=request.app.state.settings,
            today=today,
        )
        return {"success": True, "data": report}

    @app.get("/api/reports/debt-position")
    def debt_position(request: Request, includeHistorical: bool = False):
        today = date.today()
        payments = payments_in_brl(request.app.state.store.to_frame(), _snapshot(request))
        contracts = assemble_contracts(payments, today)
        report = debt_position_report(contracts, include_historical=includeHistorical, today=today)
        return {"success": True, "data": report}

    @app.post("/api/reports/export")
    def create_export(body: ExportRequest):
        if not body.reportType or not body.format or body.data is None:
            raise ApiError("Missing required fields: reportType, format, data")
        try:
            result = generate_export(body.reportType, body.format, body.data, body.fileName)
        except UnsupportedExportFormatError as exc:
            raise ApiError(str(exc))

        summary = result.summary()
        return {
            "success": True,
            "data": {
                "downloadUrl": summary["download_url"],
                "fileName": summary["file_name"],
                "format": summary["format"],
                "size": summary["size"],
                "generatedAt": summary["generated_at"],
            },
        }

    @app.get("/api/reports/export")
    def download_export(file: str | None = Query(default=None)):
        if not file:
            raise ApiError("File name required")
        return {
            "message": "File download would be served here",
            "fileName": file,
            "note": "Exports are not stored; only the generated metadata is available.",
        }

    @app.post("/api/debt/import")
    async def import_debt(request: Request, backfill: bool = False):
        body = await request.body()
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError:
            text = body.decode("latin-1")
        if not text.strip():
            raise ApiError("Empty import file")

        payments = parse_debt_csv(text)
        validation = validate_payments(payments)
        if not validation.is_valid:
            raise ApiError(
                "Import file failed validation",
                errors=validation.errors,
                warnings=validation.warnings,
            )
        if backfill:
            payments = with_backfill(payments)

        state = request.app.state
        result = import_payments(state.store, payments, batch_size=state.settings.import_batch_size)
        content = {
            "success": result.success,
            "data": {
                "imported": result.imported,
                "batches": result.batches_committed,
                "warnings": validation.warnings,
                "totalStored": len(state.store),
            },
        }
        if not result.success:
            content["error"] = result.error
            return JSONResponse(status_code=500, content=content)
        return content

    return app


app = create_app(load_app_settings())
