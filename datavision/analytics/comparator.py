"""Cross-dataset comparison of one value column."""
from __future__ import annotations

from typing import Iterable

from .coercion import as_number
from .models import Dataset, DatasetComparison, LabeledValue


def compare_datasets(
    datasets: Iterable[tuple[str, Dataset]],
    value_column: str,
    label_column: str,
) -> list[DatasetComparison]:
    """Project every row to (label, value) and total the values per dataset.

    ``datasets`` is the already-resolved ``(id, dataset)`` sequence; output
    order follows it exactly.
    """
    results: list[DatasetComparison] = []
    for dataset_id, dataset in datasets:
        total = 0.0
        data: list[LabeledValue] = []
        for row in dataset.rows:
            value = as_number(row.get(value_column))
            total += value
            data.append(LabeledValue(label=row.get(label_column), value=value))
        results.append(
            DatasetComparison(
                dataset_id=dataset_id,
                file_name=dataset.file_name,
                total=total,
                row_count=dataset.row_count,
                data=data,
            )
        )
    return results
