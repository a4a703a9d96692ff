from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class ProgramHoursCalculator(ABC):
    """Calculator interface (Strategy Pattern for program hours)."""

    @abstractmethod
    def total_hours(self, check_in: datetime, check_out: datetime) -> float:
        raise NotImplementedError

    @abstractmethod
    def vpk_hours(self, total_hours: float) -> float:
        raise NotImplementedError
