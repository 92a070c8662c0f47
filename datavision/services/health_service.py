"""
Health check service.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Literal

from ..repositories import DatasetRegistry

HealthStatusType = Literal["ok", "error"]


@dataclass(frozen=True)
class HealthReport:
    status: HealthStatusType
    timestamp: str
    dataset_count: int


class HealthService:
    """Reports liveness plus how many datasets the registry holds."""

    def __init__(self, registry: DatasetRegistry) -> None:
        self._registry = registry

    def check(self) -> HealthReport:
        now = dt.datetime.now(dt.timezone.utc).replace(microsecond=0)
        return HealthReport("ok", now.isoformat(), len(self._registry))
