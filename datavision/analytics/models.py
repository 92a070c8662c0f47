from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from ..domain.types import CellValue, ResultType

Row = dict[str, CellValue]


@dataclass(frozen=True)
class DecodedTable:
    """Rectangular table produced by the file decoder."""
    headers: tuple[str, ...]
    rows: tuple[Row, ...]


@dataclass(frozen=True)
class Dataset:
    """An ingested table. Never mutated after it reaches the registry."""
    headers: tuple[str, ...]
    rows: tuple[Row, ...]
    file_name: str
    upload_time: datetime = field(compare=False)

    @property
    def row_count(self) -> int:
        return len(self.rows)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DatasetInfo(_CamelModel):
    """Lightweight listing projection of a stored dataset."""
    id: str
    file_name: str = Field(alias="fileName")
    upload_time: datetime = Field(alias="uploadTime")
    row_count: int = Field(alias="rowCount")
    headers: list[str]


class DatasetPayload(_CamelModel):
    """Wire form of a full dataset."""
    headers: list[str]
    rows: list[dict[str, Any]]
    file_name: str = Field(alias="fileName")
    upload_time: datetime = Field(alias="uploadTime")

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> "DatasetPayload":
        return cls(
            headers=list(dataset.headers),
            rows=[dict(r) for r in dataset.rows],
            file_name=dataset.file_name,
            upload_time=dataset.upload_time,
        )


class Summary(BaseModel):
    sum: float = 0.0
    average: float = 0.0
    max: float = 0.0
    min: float = 0.0
    median: float = 0.0
    count: int = 0


class GroupedPoint(BaseModel):
    name: str
    value: float


class TrendPoint(BaseModel):
    x: Any = None
    y: float


class ComparePoint(BaseModel):
    category: Any = None
    value: float


class DistributionPoint(BaseModel):
    type: str
    value: float
    percent: float


class CalculationResult(BaseModel):
    """Tagged formula result. ``summary`` is only set for ``statistics``."""
    type: ResultType
    data: Any
    summary: Summary | None = None

    @model_serializer(mode="wrap")
    def _omit_missing_summary(self, handler):
        dumped = handler(self)
        if self.summary is None:
            dumped.pop("summary", None)
        return dumped


class PeriodBucket(BaseModel):
    period: str
    value: float


class LabeledValue(BaseModel):
    label: Any = None
    value: float


class DatasetComparison(_CamelModel):
    dataset_id: str = Field(alias="datasetId")
    file_name: str = Field(alias="fileName")
    total: float
    row_count: int = Field(alias="rowCount")
    data: list[LabeledValue] = Field(default_factory=list)
