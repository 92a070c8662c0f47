from __future__ import annotations


class AnalyticsError(Exception):
    """Base error class for dataset analytics."""


class DatasetNotFoundError(AnalyticsError):
    """Raised when a dataset id is not present in the registry."""

    def __init__(self, dataset_id: str) -> None:
        super().__init__(f"Dataset not found: {dataset_id}")
        self.dataset_id = dataset_id


class DecodeError(AnalyticsError):
    """Raised when an uploaded file cannot be turned into a table."""


class UnsupportedFileTypeError(DecodeError):
    """Raised when the file extension is not one the decoder reads."""
