from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass(frozen=True)
class VpkEnrollment:
    enrollment_id: str
    required_hours: Optional[float]
    hours_completed: float
    hours_remaining: float
    is_hours_complete: bool
    schedule_type: str = "school_year"


@dataclass(frozen=True)
class SrEnrollment:
    enrollment_id: str
    authorized_hours_weekly: float
    total_absences: int = 0
    consecutive_absences: int = 0


@dataclass
class ProgramHoursResult:
    """Hours attributed to funding programs for one checkout.

    ``errors`` are non-fatal; the checkout they belong to already happened.
    """

    total_hours: float
    errors: list[str] = field(default_factory=list)
    vpk_hours: Optional[float] = None
    vpk_enrollment_id: Optional[str] = None
    sr_hours: Optional[float] = None
    sr_enrollment_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "total_hours": self.total_hours,
            "vpk_hours": self.vpk_hours,
            "vpk_enrollment_id": self.vpk_enrollment_id,
            "sr_hours": self.sr_hours,
            "sr_enrollment_id": self.sr_enrollment_id,
            "errors": list(self.errors),
        }


@dataclass(frozen=True)
class VpkHoursSummary:
    total_required: float
    hours_completed: float
    hours_remaining: float
    is_complete: bool
    percent_complete: int
    schedule_type: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SrHoursSummary:
    authorized_weekly: float
    hours_used: float
    hours_remaining: float
    percent_used: int
    total_absences: int
    consecutive_absences: int

    def to_dict(self) -> dict:
        return asdict(self)
