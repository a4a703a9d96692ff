from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol

from .model import SrEnrollment, VpkEnrollment


class ProgramRepository(Protocol):
    """Enrollment lookups and program attendance writes (VPK / School Readiness)."""

    def get_active_vpk_enrollment(self, *, org_id: str, child_id: str, school_year: str) -> Optional[VpkEnrollment]:
        raise NotImplementedError

    def get_active_sr_enrollment(self, *, org_id: str, child_id: str, school_year: str) -> Optional[SrEnrollment]:
        raise NotImplementedError

    def upsert_vpk_hours(
        self,
        *,
        org_id: str,
        enrollment_id: str,
        child_id: str,
        work_date: date,
        hours: float,
        attendance_id: str,
    ) -> None:
        """Insert or replace the VPK row keyed by (enrollment, date)."""

        raise NotImplementedError

    def upsert_sr_hours(
        self,
        *,
        org_id: str,
        enrollment_id: str,
        child_id: str,
        work_date: date,
        check_in: time,
        check_out: time,
        hours: float,
        attendance_id: str,
    ) -> None:
        """Insert or replace the SR row keyed by (enrollment, date)."""

        raise NotImplementedError

    def sum_sr_hours(self, *, enrollment_id: str, start: date, end: date) -> float:
        raise NotImplementedError
