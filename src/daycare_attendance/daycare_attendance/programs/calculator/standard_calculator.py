from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import hours_between
from ...core.constants import DEFAULT_VPK_MAX_DAILY_HOURS
from .base import ProgramHoursCalculator


class StandardProgramHoursCalculator(ProgramHoursCalculator):
    """Standard rule: (out - in) in hours, 2 decimals, not below 0; VPK capped per day."""

    def __init__(self, *, vpk_max_daily_hours: float = DEFAULT_VPK_MAX_DAILY_HOURS):
        self._vpk_max = float(vpk_max_daily_hours)

    def total_hours(self, check_in: datetime, check_out: datetime) -> float:
        return max(hours_between(check_in, check_out), 0.0)

    def vpk_hours(self, total_hours: float) -> float:
        return min(total_hours, self._vpk_max)
