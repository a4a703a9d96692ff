from __future__ import annotations

import uuid
from datetime import date, time
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import SrEnrollment, VpkEnrollment
from .repository import ProgramRepository


class MySQLProgramRepository(ProgramRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active_vpk_enrollment(self, *, org_id: str, child_id: str, school_year: str) -> Optional[VpkEnrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, required_hours, hours_completed, hours_remaining, is_hours_complete, program_type
                FROM vpk_enrollments
                WHERE organization_id=%s AND child_id=%s AND school_year=%s AND status='active'
                LIMIT 1
                """,
                (org_id, child_id, school_year),
            )
            r = fetchone(cur)
            if not r:
                return None
            return VpkEnrollment(
                enrollment_id=r["id"],
                required_hours=float(r["required_hours"]) if r.get("required_hours") is not None else None,
                hours_completed=float(r.get("hours_completed") or 0),
                hours_remaining=float(r.get("hours_remaining") or 0),
                is_hours_complete=bool(r.get("is_hours_complete")),
                schedule_type=r.get("program_type") or "school_year",
            )

    def get_active_sr_enrollment(self, *, org_id: str, child_id: str, school_year: str) -> Optional[SrEnrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, authorized_hours_weekly, total_absences, consecutive_absences
                FROM sr_enrollments
                WHERE organization_id=%s AND child_id=%s AND school_year=%s AND status='active'
                LIMIT 1
                """,
                (org_id, child_id, school_year),
            )
            r = fetchone(cur)
            if not r:
                return None
            return SrEnrollment(
                enrollment_id=r["id"],
                authorized_hours_weekly=float(r.get("authorized_hours_weekly") or 0),
                total_absences=int(r.get("total_absences") or 0),
                consecutive_absences=int(r.get("consecutive_absences") or 0),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO vpk_attendance(id, organization_id, vpk_enrollment_id, child_id, date, hours, attendance_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE hours=VALUES(hours), attendance_id=VALUES(attendance_id)
                """,
                (str(uuid.uuid4()), org_id, enrollment_id, child_id, work_date, hours, attendance_id),
            )
            # Same transaction: the enrollment total is the sum of its daily rows.
            cur.execute(
                """
                UPDATE vpk_enrollments
                SET hours_completed = (
                    SELECT COALESCE(SUM(hours), 0) FROM vpk_attendance WHERE vpk_enrollment_id=%s
                )
                WHERE id=%s
                """,
                (enrollment_id, enrollment_id),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO sr_attendance(
                    id, organization_id, sr_enrollment_id, child_id, date,
                    check_in_time, check_out_time, hours, is_absent, attendance_id
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,0,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_time=VALUES(check_in_time),
                    check_out_time=VALUES(check_out_time),
                    hours=VALUES(hours),
                    is_absent=0,
                    attendance_id=VALUES(attendance_id)
                """,
                (
                    str(uuid.uuid4()),
                    org_id,
                    enrollment_id,
                    child_id,
                    work_date,
                    check_in,
                    check_out,
                    hours,
                    attendance_id,
                ),
            )

    def sum_sr_hours(self, *, enrollment_id: str, start: date, end: date) -> float:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(hours), 0) AS total
                FROM sr_attendance
                WHERE sr_enrollment_id=%s AND date BETWEEN %s AND %s
                """,
                (enrollment_id, start, end),
            )
            r = fetchone(cur)
            return float(r["total"]) if r else 0.0
