from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, CheckMethod, PersonType, VerificationMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceSession, DropOffInfo, PickupInfo
from .repository import AttendanceRepository

_COLUMNS = """
    id, organization_id, child_id, classroom_id, date, status,
    check_in_time, check_out_time, checked_in_by, checked_out_by,
    drop_off_person_name, drop_off_person_relationship, drop_off_guardian_id, drop_off_authorized_pickup_id,
    pickup_person_name, pickup_person_relationship, pickup_guardian_id, pickup_authorized_pickup_id,
    pickup_emergency_contact_id, check_out_verified, check_out_verification_method,
    check_in_method, check_out_method, notes, drop_off_notes, pickup_notes, total_hours
"""


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        attendance_id=r["id"],
        organization_id=r["organization_id"],
        child_id=r["child_id"],
        classroom_id=r.get("classroom_id"),
        work_date=r["date"],
        status=AttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        checked_in_by=r.get("checked_in_by"),
        checked_out_by=r.get("checked_out_by"),
        drop_off_name=r.get("drop_off_person_name"),
        drop_off_relationship=r.get("drop_off_person_relationship"),
        drop_off_guardian_id=r.get("drop_off_guardian_id"),
        drop_off_authorized_pickup_id=r.get("drop_off_authorized_pickup_id"),
        pickup_name=r.get("pickup_person_name"),
        pickup_relationship=r.get("pickup_person_relationship"),
        pickup_guardian_id=r.get("pickup_guardian_id"),
        pickup_authorized_pickup_id=r.get("pickup_authorized_pickup_id"),
        pickup_emergency_contact_id=r.get("pickup_emergency_contact_id"),
        check_out_verified=bool(r.get("check_out_verified")),
        check_out_verification_method=(
            VerificationMethod(r["check_out_verification_method"]) if r.get("check_out_verification_method") else None
        ),
        check_in_method=CheckMethod(r["check_in_method"]) if r.get("check_in_method") else None,
        check_out_method=CheckMethod(r["check_out_method"]) if r.get("check_out_method") else None,
        notes=r.get("notes"),
        drop_off_notes=r.get("drop_off_notes"),
        pickup_notes=r.get("pickup_notes"),
        total_hours=float(r["total_hours"]) if r.get("total_hours") is not None else None,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_child_and_date(self, *, org_id: str, child_id: str, work_date: date) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE organization_id=%s AND child_id=%s AND date=%s
                """,
                (org_id, child_id, work_date),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def list_by_date(self, *, org_id: str, work_date: date) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE organization_id=%s AND date=%s
                ORDER BY check_in_time IS NULL, check_in_time DESC
                """,
                (org_id, work_date),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_for_child(
        self,
        *,
        org_id: str,
        child_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceSession]:
        clauses = ["organization_id=%s", "child_id=%s"]
        params: list[object] = [org_id, child_id]
        if start:
            clauses.append("date >= %s")
            params.append(start)
        if end:
            clauses.append("date <= %s")
            params.append(end)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE {where} ORDER BY date DESC",
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def upsert_check_in(
        self,
        *,
        org_id: str,
        child_id: str,
        classroom_id: str,
        work_date: date,
        check_in_time: datetime,
        status: AttendanceStatus,
        checked_in_by: Optional[str],
        drop_off: DropOffInfo,
        method: CheckMethod,
    ) -> bool:
        # An absence row for the day is converted in place; (child_id, date) stays unique.
        # Assignments run left to right, so check_in_time goes last: every guard sees the old value.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(
                    id, organization_id, child_id, classroom_id, date, status,
                    check_in_time, checked_in_by, check_in_method,
                    drop_off_person_name, drop_off_person_relationship,
                    drop_off_guardian_id, drop_off_authorized_pickup_id, drop_off_notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    classroom_id=IF(check_in_time IS NULL, VALUES(classroom_id), classroom_id),
                    status=IF(check_in_time IS NULL, VALUES(status), status),
                    checked_in_by=IF(check_in_time IS NULL, VALUES(checked_in_by), checked_in_by),
                    check_in_method=IF(check_in_time IS NULL, VALUES(check_in_method), check_in_method),
                    drop_off_person_name=IF(check_in_time IS NULL, VALUES(drop_off_person_name), drop_off_person_name),
                    drop_off_person_relationship=IF(
                        check_in_time IS NULL, VALUES(drop_off_person_relationship), drop_off_person_relationship
                    ),
                    drop_off_guardian_id=IF(check_in_time IS NULL, VALUES(drop_off_guardian_id), drop_off_guardian_id),
                    drop_off_authorized_pickup_id=IF(
                        check_in_time IS NULL, VALUES(drop_off_authorized_pickup_id), drop_off_authorized_pickup_id
                    ),
                    drop_off_notes=IF(check_in_time IS NULL, VALUES(drop_off_notes), drop_off_notes),
                    check_in_time=IF(check_in_time IS NULL, VALUES(check_in_time), check_in_time)
                """,
                (
                    str(uuid.uuid4()),
                    org_id,
                    child_id,
                    classroom_id,
                    work_date,
                    status.value,
                    check_in_time,
                    checked_in_by,
                    method.value,
                    drop_off.person_name,
                    drop_off.relationship,
                    drop_off.guardian_id,
                    drop_off.authorized_pickup_id,
                    drop_off.notes,
                ),
            )
            return cur.rowcount > 0

    def close_session(
        self,
        *,
        org_id: str,
        child_id: str,
        work_date: date,
        check_out_time: datetime,
        checked_out_by: Optional[str],
        pickup: PickupInfo,
        method: CheckMethod,
        total_hours: float,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_out_time=%s, checked_out_by=%s, check_out_method=%s,
                    pickup_person_name=%s, pickup_person_relationship=%s,
                    pickup_guardian_id=%s, pickup_authorized_pickup_id=%s, pickup_emergency_contact_id=%s,
                    check_out_verified=%s, check_out_verification_method=%s,
                    pickup_notes=%s, total_hours=%s
                WHERE organization_id=%s AND child_id=%s AND date=%s
                  AND check_in_time IS NOT NULL
                  AND check_out_time IS NULL
                  AND check_in_time <= %s
                """,
                (
                    check_out_time,
                    checked_out_by,
                    method.value,
                    pickup.person_name,
                    pickup.relationship,
                    pickup.id_for(PersonType.GUARDIAN),
                    pickup.id_for(PersonType.AUTHORIZED),
                    pickup.id_for(PersonType.EMERGENCY_CONTACT),
                    bool(pickup.verified),
                    pickup.verification_method.value if pickup.verification_method else None,
                    pickup.notes,
                    total_hours,
                    org_id,
                    child_id,
                    work_date,
                    check_out_time,
                ),
            )
            return cur.rowcount > 0

    def upsert_absence(
        self,
        *,
        org_id: str,
        child_id: str,
        classroom_id: Optional[str],
        work_date: date,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> None:
        # IF() guards keep a session that was checked in concurrently untouched.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(id, organization_id, child_id, classroom_id, date, status, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    notes=IF(check_in_time IS NULL, VALUES(notes), notes),
                    status=IF(check_in_time IS NULL, VALUES(status), status)
                """,
                (str(uuid.uuid4()), org_id, child_id, classroom_id, work_date, status.value, notes),
            )
