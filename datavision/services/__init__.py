"""Services layer for datavision."""
from .dataset_service import DatasetService
from .health_service import HealthService, HealthReport

__all__ = ["DatasetService", "HealthService", "HealthReport"]
