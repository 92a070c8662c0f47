"""
Dataset service: the single entry point the HTTP layer talks to.

Resolves dataset ids through the registry and hands row snapshots to the
formula, period and comparison routines. Decoding always finishes before
the registry is touched.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from ..analytics.comparator import compare_datasets
from ..analytics.errors import DatasetNotFoundError
from ..analytics.formulas import evaluate_formula
from ..analytics.models import (
    CalculationResult,
    Dataset,
    DatasetComparison,
    DatasetInfo,
    DecodedTable,
    PeriodBucket,
)
from ..analytics.periods import WeekPolicy, aggregate_by_period
from ..config import Settings, get_settings
from ..documents import decode_table
from ..repositories import DatasetRegistry

logger = logging.getLogger(__name__)


class DatasetService:
    """Ingests tables and answers analytical queries against stored datasets."""

    def __init__(self, registry: DatasetRegistry, settings: Settings | None = None) -> None:
        self._registry = registry
        self._settings = settings

    @property
    def registry(self) -> DatasetRegistry:
        return self._registry

    def _week_policy(self) -> WeekPolicy:
        s = self._settings or get_settings()
        return WeekPolicy(start=s.week_start, marker=s.week_marker)

    def _require(self, dataset_id: str) -> Dataset:
        dataset = self._registry.get(dataset_id)
        if dataset is None:
            raise DatasetNotFoundError(dataset_id)
        return dataset

    # ------------------------------------------------------------------
    # Ingestion + lifecycle
    # ------------------------------------------------------------------

    def ingest(self, table: DecodedTable, file_name: str) -> tuple[str, Dataset]:
        dataset = Dataset(
            headers=tuple(table.headers),
            rows=tuple(table.rows),
            file_name=file_name,
            upload_time=datetime.now(timezone.utc),
        )
        dataset_id = self._registry.add(dataset)
        logger.info("Ingested dataset %s (%s, %d rows)", dataset_id, file_name, dataset.row_count)
        return dataset_id, dataset

    def ingest_file(self, content: bytes, filename: str) -> tuple[str, Dataset]:
        """Decode ``content`` fully, then register it."""
        table = decode_table(content, filename)
        return self.ingest(table, filename)

    def list_datasets(self) -> list[DatasetInfo]:
        return self._registry.list_datasets()

    def get_dataset(self, dataset_id: str) -> Dataset:
        return self._require(dataset_id)

    def delete_dataset(self, dataset_id: str) -> bool:
        deleted = self._registry.delete(dataset_id)
        if deleted:
            logger.info("Deleted dataset %s", dataset_id)
        return deleted

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def evaluate_formula(self, dataset_id: str, formula: str, column_x: str, column_y: str) -> CalculationResult:
        dataset = self._require(dataset_id)
        logger.debug("Formula %s on %s (x=%r, y=%r)", formula, dataset_id, column_x, column_y)
        return evaluate_formula(dataset.rows, formula, column_x, column_y)

    def aggregate_period(self, dataset_id: str, date_column: str, value_column: str, period: str) -> list[PeriodBucket]:
        dataset = self._require(dataset_id)
        logger.debug("Aggregate %s by %s on %s", value_column, period, dataset_id)
        return aggregate_by_period(dataset.rows, date_column, value_column, period, self._week_policy())

    def compare_datasets(self, dataset_ids: Sequence[str], value_column: str, label_column: str) -> list[DatasetComparison]:
        resolved = self._registry.get_many(dataset_ids)
        if len(resolved) < len(dataset_ids):
            logger.debug("Comparison skipped %d unknown dataset id(s)", len(dataset_ids) - len(resolved))
        return compare_datasets(resolved, value_column, label_column)
