from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import AuthorizationState
from ..database.connection import DatabaseConnection
from ..database.mysql_base import call_procedure, db_cursor, fetchall, fetchone, join_csv, split_csv
from .model import AuthorizedPickup, EmergencyContact, NewAuthorizedPickup
from .repository import (
    UPDATABLE_PICKUP_FIELDS,
    AuthorizedPickupRepository,
    EmergencyContactRepository,
    PickupProcedures,
)

_PICKUP_COLUMNS = """
    id, organization_id, child_id, name, relationship, phone, photo_url,
    id_document_type, id_document_number, id_document_url,
    valid_from, valid_until, allowed_days, time_restrictions, restrictions, state,
    notes, added_by, verified_by, verified_at, verification_notes, times_used, last_pickup_at
"""

_CONTACT_COLUMNS = """
    id, organization_id, child_id, name, relationship, phone, can_pickup,
    valid_until, allowed_days, restrictions, state
"""

PROCEDURE_NAMES = ("get_authorized_pickups_for_child", "validate_pickup_person")


def _to_pickup(r: dict) -> AuthorizedPickup:
    return AuthorizedPickup(
        pickup_id=r["id"],
        organization_id=r["organization_id"],
        child_id=r["child_id"],
        name=r["name"],
        relationship=r.get("relationship"),
        phone=r.get("phone"),
        photo_url=r.get("photo_url"),
        id_document_type=r.get("id_document_type"),
        id_document_number=r.get("id_document_number"),
        id_document_url=r.get("id_document_url"),
        valid_from=r.get("valid_from"),
        valid_until=r.get("valid_until"),
        allowed_days=split_csv(r.get("allowed_days")),
        time_restrictions=r.get("time_restrictions"),
        restrictions=r.get("restrictions"),
        state=AuthorizationState(r["state"]),
        notes=r.get("notes"),
        added_by=r.get("added_by"),
        verified_by=r.get("verified_by"),
        verified_at=r.get("verified_at"),
        verification_notes=r.get("verification_notes"),
        times_used=int(r.get("times_used") or 0),
        last_pickup_at=r.get("last_pickup_at"),
    )


def _to_contact(r: dict) -> EmergencyContact:
    return EmergencyContact(
        contact_id=r["id"],
        organization_id=r["organization_id"],
        child_id=r["child_id"],
        name=r["name"],
        relationship=r.get("relationship"),
        phone=r.get("phone"),
        can_pickup=bool(r.get("can_pickup")),
        valid_until=r.get("valid_until"),
        allowed_days=split_csv(r.get("allowed_days")),
        restrictions=r.get("restrictions"),
        state=AuthorizationState(r["state"]),
    )


class MySQLAuthorizedPickupRepository(AuthorizedPickupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, org_id: str, pickup_id: str) -> Optional[AuthorizedPickup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PICKUP_COLUMNS} FROM authorized_pickups WHERE organization_id=%s AND id=%s",
                (org_id, pickup_id),
            )
            r = fetchone(cur)
            return _to_pickup(r) if r else None

    def list_for_child(self, *, org_id: str, child_id: str, include_inactive: bool = False) -> Sequence[AuthorizedPickup]:
        clauses = ["organization_id=%s", "child_id=%s"]
        params: list[object] = [org_id, child_id]
        if not include_inactive:
            clauses.append("state=%s")
            params.append(AuthorizationState.ACTIVE.value)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PICKUP_COLUMNS}
                FROM authorized_pickups
                WHERE {where}
                ORDER BY created_at DESC
                """,
                tuple(params),
            )
            return [_to_pickup(r) for r in fetchall(cur)]

    def create(self, *, org_id: str, data: NewAuthorizedPickup, added_by: Optional[str] = None) -> str:
        pickup_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO authorized_pickups(
                    id, organization_id, child_id, name, relationship, phone, photo_url,
                    id_document_type, id_document_number, id_document_url,
                    valid_from, valid_until, allowed_days, time_restrictions, restrictions,
                    verification_method, notes, state, added_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    pickup_id,
                    org_id,
                    data.child_id,
                    data.name,
                    data.relationship,
                    data.phone,
                    data.photo_url,
                    data.id_document_type,
                    data.id_document_number,
                    data.id_document_url,
                    data.valid_from,
                    data.valid_until,
                    join_csv(data.allowed_days),
                    data.time_restrictions,
                    data.restrictions,
                    data.verification_method.value if data.verification_method else None,
                    data.notes,
                    AuthorizationState.ACTIVE.value,
                    added_by,
                ),
            )
        return pickup_id

    def update(self, *, org_id: str, pickup_id: str, changes: Mapping[str, Any]) -> bool:
        unknown = set(changes) - UPDATABLE_PICKUP_FIELDS
        if unknown:
            raise ValueError(f"Unsupported fields: {sorted(unknown)}")
        if not changes:
            return False

        assignments: list[str] = []
        params: list[object] = []
        for column, value in changes.items():
            assignments.append(f"{column}=%s")
            params.append(join_csv(value) if column == "allowed_days" else value)
        params.extend([org_id, pickup_id])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE authorized_pickups SET {', '.join(assignments)} WHERE organization_id=%s AND id=%s",
                tuple(params),
            )
            return cur.rowcount > 0

    def set_state(self, *, org_id: str, pickup_id: str, state: AuthorizationState) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE authorized_pickups SET state=%s WHERE organization_id=%s AND id=%s",
                (state.value, org_id, pickup_id),
            )
            return cur.rowcount > 0

    def mark_verified(
        self,
        *,
        org_id: str,
        pickup_id: str,
        verified_by: Optional[str],
        verified_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE authorized_pickups
                SET verified_by=%s, verified_at=%s, verification_notes=%s
                WHERE organization_id=%s AND id=%s
                """,
                (verified_by, verified_at, notes, org_id, pickup_id),
            )
            return cur.rowcount > 0

    def record_usage(self, *, org_id: str, pickup_id: str, used_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE authorized_pickups
                SET times_used = times_used + 1, last_pickup_at=%s
                WHERE organization_id=%s AND id=%s
                """,
                (used_at, org_id, pickup_id),
            )
            return cur.rowcount > 0

    def list_expired(self, *, org_id: str, today: date) -> Sequence[AuthorizedPickup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PICKUP_COLUMNS}
                FROM authorized_pickups
                WHERE organization_id=%s AND state=%s
                  AND valid_until IS NOT NULL AND valid_until < %s
                ORDER BY valid_until ASC
                """,
                (org_id, AuthorizationState.ACTIVE.value, today),
            )
            return [_to_pickup(r) for r in fetchall(cur)]

    def list_expiring(self, *, org_id: str, start: date, end: date) -> Sequence[AuthorizedPickup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_PICKUP_COLUMNS}
                FROM authorized_pickups
                WHERE organization_id=%s AND state=%s
                  AND valid_until BETWEEN %s AND %s
                ORDER BY valid_until ASC
                """,
                (org_id, AuthorizationState.ACTIVE.value, start, end),
            )
            return [_to_pickup(r) for r in fetchall(cur)]


class MySQLEmergencyContactRepository(EmergencyContactRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, org_id: str, contact_id: str) -> Optional[EmergencyContact]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CONTACT_COLUMNS} FROM emergency_contacts WHERE organization_id=%s AND id=%s",
                (org_id, contact_id),
            )
            r = fetchone(cur)
            return _to_contact(r) if r else None

    def list_for_child(self, *, org_id: str, child_id: str) -> Sequence[EmergencyContact]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CONTACT_COLUMNS}
                FROM emergency_contacts
                WHERE organization_id=%s AND child_id=%s
                ORDER BY priority ASC, name ASC
                """,
                (org_id, child_id),
            )
            return [_to_contact(r) for r in fetchall(cur)]


class MySQLPickupProcedures(PickupProcedures):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_available(self) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM information_schema.ROUTINES
                WHERE ROUTINE_SCHEMA = DATABASE()
                  AND ROUTINE_TYPE = 'PROCEDURE'
                  AND ROUTINE_NAME IN (%s, %s)
                """,
                PROCEDURE_NAMES,
            )
            r = fetchone(cur)
            return bool(r) and int(r["n"]) == len(PROCEDURE_NAMES)

    def authorized_pickups_for_child(self, *, org_id: str, child_id: str, today: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            return call_procedure(cur, "get_authorized_pickups_for_child", (org_id, child_id, today))

    def validate_pickup_person(
        self,
        *,
        org_id: str,
        child_id: str,
        person_type: str,
        person_id: str,
        today: date,
    ) -> Optional[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            rows = call_procedure(
                cur,
                "validate_pickup_person",
                (org_id, child_id, person_type, person_id, today),
            )
            return rows[0] if rows else None
