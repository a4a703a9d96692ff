from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_local, school_year_for
from ..core.constants import VPK_SCHOOL_YEAR_REQUIRED_HOURS, VPK_SUMMER_REQUIRED_HOURS
from ..core.enums import ProgramType
from ..core.exceptions import StoreError
from ..families.repository import ChildRepository
from .calculator.base import ProgramHoursCalculator
from .calculator.standard_calculator import StandardProgramHoursCalculator
from .model import ProgramHoursResult, SrHoursSummary, VpkHoursSummary
from .repository import ProgramRepository

logger = logging.getLogger(__name__)

VPK_PROGRAMS = frozenset({ProgramType.VPK, ProgramType.VPK_WRAPAROUND})
SR_PROGRAMS = frozenset({ProgramType.SCHOOL_READINESS, ProgramType.SR_COPAY})


class ProgramHoursService:
    """Records VPK / School Readiness hours derived from a closed session."""

    def __init__(
        self,
        children: ChildRepository,
        programs: ProgramRepository,
        *,
        calculator: Optional[ProgramHoursCalculator] = None,
    ):
        self._children = children
        self._programs = programs
        self._calculator = calculator or StandardProgramHoursCalculator()

    def record_program_hours(
        self,
        *,
        org_id: str,
        child_id: str,
        attendance_id: str,
        check_in_time: datetime,
        check_out_time: datetime,
        work_date: date,
    ) -> ProgramHoursResult:
        result = ProgramHoursResult(total_hours=self._calculator.total_hours(check_in_time, check_out_time))

        child = self._children.get_by_id(org_id=org_id, child_id=child_id)
        program_type = child.program_type if child else None
        if program_type is None or program_type == ProgramType.PRIVATE:
            return result

        school_year = school_year_for(work_date)

        if program_type in VPK_PROGRAMS:
            enrollment = self._programs.get_active_vpk_enrollment(org_id=org_id, child_id=child_id, school_year=school_year)
            if not enrollment:
                result.errors.append(f"VPK: sin inscripción activa para {school_year}")
            else:
                vpk_hours = self._calculator.vpk_hours(result.total_hours)
                try:
                    self._programs.upsert_vpk_hours(
                        org_id=org_id,
                        enrollment_id=enrollment.enrollment_id,
                        child_id=child_id,
                        work_date=work_date,
                        hours=vpk_hours,
                        attendance_id=attendance_id,
                    )
                except StoreError as e:
                    logger.error("Error recording VPK hours for attendance %s: %s", attendance_id, e)
                    result.errors.append(f"VPK: {e}")
                else:
                    result.vpk_hours = vpk_hours
                    result.vpk_enrollment_id = enrollment.enrollment_id

        if program_type in SR_PROGRAMS:
            enrollment = self._programs.get_active_sr_enrollment(org_id=org_id, child_id=child_id, school_year=school_year)
            if not enrollment:
                result.errors.append(f"SR: sin inscripción activa para {school_year}")
            else:
                try:
                    self._programs.upsert_sr_hours(
                        org_id=org_id,
                        enrollment_id=enrollment.enrollment_id,
                        child_id=child_id,
                        work_date=work_date,
                        check_in=check_in_time.time().replace(microsecond=0),
                        check_out=check_out_time.time().replace(microsecond=0),
                        hours=result.total_hours,
                        attendance_id=attendance_id,
                    )
                except StoreError as e:
                    logger.error("Error recording SR hours for attendance %s: %s", attendance_id, e)
                    result.errors.append(f"SR: {e}")
                else:
                    result.sr_hours = result.total_hours
                    result.sr_enrollment_id = enrollment.enrollment_id

        return result

    def get_vpk_hours_summary(self, *, org_id: str, child_id: str, today: date | None = None) -> Optional[VpkHoursSummary]:
        today = today or now_local().date()
        enrollment = self._programs.get_active_vpk_enrollment(
            org_id=org_id, child_id=child_id, school_year=school_year_for(today)
        )
        if not enrollment:
            return None

        default_required = VPK_SUMMER_REQUIRED_HOURS if enrollment.schedule_type == "summer" else VPK_SCHOOL_YEAR_REQUIRED_HOURS
        percent = round(enrollment.hours_completed / enrollment.required_hours * 100) if enrollment.required_hours else 0
        return VpkHoursSummary(
            total_required=enrollment.required_hours or default_required,
            hours_completed=enrollment.hours_completed,
            hours_remaining=enrollment.hours_remaining,
            is_complete=enrollment.is_hours_complete,
            percent_complete=int(percent),
            schedule_type=enrollment.schedule_type,
        )

    def get_sr_hours_summary(
        self,
        *,
        org_id: str,
        child_id: str,
        week_start: date | None = None,
        today: date | None = None,
    ) -> Optional[SrHoursSummary]:
        today = today or now_local().date()
        enrollment = self._programs.get_active_sr_enrollment(
            org_id=org_id, child_id=child_id, school_year=school_year_for(today)
        )
        if not enrollment:
            return None

        start = week_start or (today - timedelta(days=today.weekday()))
        end = start + timedelta(days=6)
        used = self._programs.sum_sr_hours(enrollment_id=enrollment.enrollment_id, start=start, end=end)
        authorized = enrollment.authorized_hours_weekly

        return SrHoursSummary(
            authorized_weekly=authorized,
            hours_used=used,
            hours_remaining=max(0.0, authorized - used),
            percent_used=int(round(used / authorized * 100)) if authorized > 0 else 0,
            total_absences=enrollment.total_absences,
            consecutive_absences=enrollment.consecutive_absences,
        )
