"""
FastAPI application for datavision.

Routes delegate to the DatasetService held on ``app.state``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from . import __version__
from .analytics import (
    CalculationResult,
    DatasetComparison,
    DatasetInfo,
    DatasetNotFoundError,
    DatasetPayload,
    DecodeError,
    PeriodBucket,
)
from .config import get_settings, update_settings
from .documents import build_table_from_records, get_document_type_from_filename, sanitize_filename
from .domain import ErrorCode, SUPPORTED_EXTENSIONS
from .repositories import DatasetRegistry
from .services import DatasetService, HealthService

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models
# ============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UploadResponse(_CamelModel):
    success: bool = True
    dataset_id: str = Field(alias="datasetId")
    data: DatasetPayload


class IngestRequest(_CamelModel):
    file_name: str = Field(alias="fileName", min_length=1)
    headers: list[Any]
    rows: list[dict[str, Any]] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    success: bool


class CalculateRequest(_CamelModel):
    dataset_id: str = Field(alias="datasetId")
    formula: str
    column_x: str = Field("", alias="columnX")
    column_y: str = Field("", alias="columnY")


class CalculateResponse(BaseModel):
    success: bool = True
    result: CalculationResult


class AggregateRequest(_CamelModel):
    dataset_id: str = Field(alias="datasetId")
    date_column: str = Field(alias="dateColumn")
    value_column: str = Field(alias="valueColumn")
    period: str


class AggregateResult(BaseModel):
    data: list[PeriodBucket]


class AggregateResponse(BaseModel):
    success: bool = True
    result: AggregateResult


class CompareRequest(_CamelModel):
    dataset_ids: list[str] = Field(alias="datasetIds")
    value_column: str = Field(alias="valueColumn")
    label_column: str = Field(alias="labelColumn")


class CompareResponse(BaseModel):
    success: bool = True
    result: list[DatasetComparison]


class HealthResponse(_CamelModel):
    status: str
    timestamp: str
    dataset_count: int = Field(alias="datasetCount")


class SettingsResponse(_CamelModel):
    max_upload_mb: int = Field(alias="maxUploadMb")
    week_start: str = Field(alias="weekStart")
    week_marker: str = Field(alias="weekMarker")
    cors_origins: list[str] = Field(alias="corsOrigins")


class ConfigUpdate(_CamelModel):
    max_upload_mb: int | None = Field(None, ge=1, alias="maxUploadMb")
    week_start: str | None = Field(None, alias="weekStart")
    week_marker: str | None = Field(None, alias="weekMarker")


# ============================================================================
# Service Factories
# ============================================================================

def _dataset_service(request: Request) -> DatasetService:
    return request.app.state.dataset_service


def _health_service(request: Request) -> HealthService:
    return HealthService(request.app.state.dataset_service.registry)


def _not_found(dataset_id: str) -> HTTPException:
    return HTTPException(404, {"code": ErrorCode.NOT_FOUND, "message": f"Dataset not found: {dataset_id}"})


def _settings_response() -> SettingsResponse:
    s = get_settings()
    return SettingsResponse(
        max_upload_mb=s.max_upload_mb,
        week_start=s.week_start,
        week_marker=s.week_marker,
        cors_origins=list(s.cors_origins),
    )


# ============================================================================
# App Factory
# ============================================================================

def create_app(registry: DatasetRegistry | None = None) -> FastAPI:
    """Build the app around one registry for the life of the process."""
    s = get_settings()
    app = FastAPI(title="Data Vision API", version=__version__, docs_url="/docs", redoc_url="/redoc", openapi_url="/openapi.json")
    app.add_middleware(CORSMiddleware, allow_origins=list(s.cors_origins), allow_credentials=True, allow_methods=["*"], allow_headers=["*"])
    app.state.dataset_service = DatasetService(registry if registry is not None else DatasetRegistry())
    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:

    @app.get("/")
    async def root() -> dict:
        return {"message": "Data Vision API Server", "version": __version__}

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check(health: HealthService = Depends(_health_service)) -> HealthResponse:
        r = health.check()
        return HealthResponse(status=r.status, timestamp=r.timestamp, dataset_count=r.dataset_count)

    # ------------------------------------------------------------------
    # Dataset Routes
    # ------------------------------------------------------------------

    @app.post("/api/upload", response_model=UploadResponse)
    async def upload_dataset(file: UploadFile | None = File(None), service: DatasetService = Depends(_dataset_service)) -> UploadResponse:
        s = get_settings()
        if file is None or not file.filename:
            raise HTTPException(400, {"code": ErrorCode.INVALID_FILENAME, "message": "Filename is required"})
        safe_name = sanitize_filename(file.filename)
        if get_document_type_from_filename(safe_name) is None:
            raise HTTPException(400, {"code": ErrorCode.UNSUPPORTED_TYPE, "message": f"Unsupported file type. Allowed: {', '.join(SUPPORTED_EXTENSIONS)}"})
        content = await file.read()
        if len(content) > s.max_upload_mb * 1024 * 1024:
            raise HTTPException(413, {"code": ErrorCode.FILE_TOO_LARGE, "message": f"File exceeds {s.max_upload_mb}MB"})
        try:
            dataset_id, dataset = await asyncio.to_thread(service.ingest_file, content, safe_name)
        except DecodeError as exc:
            logger.warning("Decoding %s failed: %s", safe_name, exc)
            raise HTTPException(500, {"code": ErrorCode.DECODE_FAILED, "message": f"File decoding failed: {exc}"}) from exc
        return UploadResponse(dataset_id=dataset_id, data=DatasetPayload.from_dataset(dataset))

    @app.post("/api/ingest", response_model=UploadResponse)
    async def ingest_table(payload: IngestRequest, service: DatasetService = Depends(_dataset_service)) -> UploadResponse:
        table = build_table_from_records(payload.headers, payload.rows)
        dataset_id, dataset = service.ingest(table, payload.file_name)
        return UploadResponse(dataset_id=dataset_id, data=DatasetPayload.from_dataset(dataset))

    @app.get("/api/datasets", response_model=list[DatasetInfo])
    async def list_datasets(service: DatasetService = Depends(_dataset_service)) -> list[DatasetInfo]:
        return service.list_datasets()

    @app.get("/api/datasets/{dataset_id}", response_model=DatasetPayload)
    async def get_dataset(dataset_id: str, service: DatasetService = Depends(_dataset_service)) -> DatasetPayload:
        try:
            return DatasetPayload.from_dataset(service.get_dataset(dataset_id))
        except DatasetNotFoundError as exc:
            raise _not_found(dataset_id) from exc

    @app.delete("/api/datasets/{dataset_id}", response_model=DeleteResponse)
    async def delete_dataset(dataset_id: str, service: DatasetService = Depends(_dataset_service)) -> DeleteResponse:
        return DeleteResponse(success=service.delete_dataset(dataset_id))

    # ------------------------------------------------------------------
    # Query Routes
    # ------------------------------------------------------------------

    @app.post("/api/calculate", response_model=CalculateResponse)
    async def calculate(request: CalculateRequest, service: DatasetService = Depends(_dataset_service)) -> CalculateResponse:
        try:
            result = service.evaluate_formula(request.dataset_id, request.formula, request.column_x, request.column_y)
        except DatasetNotFoundError as exc:
            raise _not_found(request.dataset_id) from exc
        return CalculateResponse(result=result)

    @app.post("/api/aggregate", response_model=AggregateResponse)
    async def aggregate(request: AggregateRequest, service: DatasetService = Depends(_dataset_service)) -> AggregateResponse:
        try:
            buckets = service.aggregate_period(request.dataset_id, request.date_column, request.value_column, request.period)
        except DatasetNotFoundError as exc:
            raise _not_found(request.dataset_id) from exc
        return AggregateResponse(result=AggregateResult(data=buckets))

    @app.post("/api/compare-datasets", response_model=CompareResponse)
    async def compare(request: CompareRequest, service: DatasetService = Depends(_dataset_service)) -> CompareResponse:
        return CompareResponse(result=service.compare_datasets(request.dataset_ids, request.value_column, request.label_column))

    # ------------------------------------------------------------------
    # Settings Routes
    # ------------------------------------------------------------------

    @app.get("/api/settings", response_model=SettingsResponse)
    async def get_api_settings() -> SettingsResponse:
        return _settings_response()

    @app.post("/api/config", response_model=SettingsResponse)
    async def update_config(payload: ConfigUpdate) -> SettingsResponse:
        update_settings({k: v for k, v in payload.model_dump().items() if v is not None})
        return _settings_response()


app = create_app()
