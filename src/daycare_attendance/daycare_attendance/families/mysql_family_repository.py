from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import GuardianStatus, ProgramType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Child, Guardian
from .repository import ChildRepository, GuardianRepository

_CHILD_COLUMNS = "id, organization_id, first_name, last_name, classroom_id, family_id, program_type, status"

_GUARDIAN_COLUMNS = (
    "g.id, g.organization_id, g.family_id, g.first_name, g.last_name, g.relationship, "
    "g.phone, g.photo_url, g.can_pickup, g.status"
)


def _to_child(r: dict) -> Child:
    return Child(
        child_id=r["id"],
        organization_id=r["organization_id"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        classroom_id=r.get("classroom_id"),
        family_id=r.get("family_id"),
        program_type=ProgramType(r["program_type"]) if r.get("program_type") else None,
        status=r.get("status") or "active",
    )


def _to_guardian(r: dict) -> Guardian:
    return Guardian(
        guardian_id=r["id"],
        organization_id=r["organization_id"],
        family_id=r.get("family_id"),
        first_name=r["first_name"],
        last_name=r["last_name"],
        relationship=r.get("relationship"),
        phone=r.get("phone"),
        photo_url=r.get("photo_url"),
        can_pickup=r.get("can_pickup") is None or bool(r["can_pickup"]),
        status=GuardianStatus(r.get("status") or GuardianStatus.ACTIVE.value),
    )


class MySQLChildRepository(ChildRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, *, org_id: str, child_id: str) -> Optional[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CHILD_COLUMNS} FROM children WHERE organization_id=%s AND id=%s",
                (org_id, child_id),
            )
            r = fetchone(cur)
            return _to_child(r) if r else None

    def list_active(self, *, org_id: str) -> Sequence[Child]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CHILD_COLUMNS}
                FROM children
                WHERE organization_id=%s AND status='active'
                ORDER BY first_name, last_name
                """,
                (org_id,),
            )
            return [_to_child(r) for r in fetchall(cur)]


class MySQLGuardianRepository(GuardianRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_child(self, *, org_id: str, child_id: str) -> Sequence[Guardian]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_GUARDIAN_COLUMNS}
                FROM guardians g
                JOIN guardian_children gc ON gc.guardian_id = g.id
                WHERE g.organization_id=%s AND gc.child_id=%s
                ORDER BY g.is_primary DESC, g.first_name
                """,
                (org_id, child_id),
            )
            return [_to_guardian(r) for r in fetchall(cur)]

    def get_for_child(self, *, org_id: str, child_id: str, guardian_id: str) -> Optional[Guardian]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_GUARDIAN_COLUMNS}
                FROM guardians g
                JOIN guardian_children gc ON gc.guardian_id = g.id
                WHERE g.organization_id=%s AND gc.child_id=%s AND g.id=%s
                """,
                (org_id, child_id, guardian_id),
            )
            r = fetchone(cur)
            return _to_guardian(r) if r else None
