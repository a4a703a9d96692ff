from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from types import SimpleNamespace
from typing import Any, Mapping, Optional

from src.daycare_attendance.daycare_attendance.attendance.model import AttendanceSession, DropOffInfo, PickupInfo
from src.daycare_attendance.daycare_attendance.container import Container, wire_services
from src.daycare_attendance.daycare_attendance.core.enums import (
    AttendanceStatus,
    AuthorizationState,
    CheckMethod,
    PersonType,
    ProgramType,
)
from src.daycare_attendance.daycare_attendance.core.exceptions import StoreError
from src.daycare_attendance.daycare_attendance.families.model import Child, Guardian
from src.daycare_attendance.daycare_attendance.pickups.model import (
    AuthorizedPickup,
    EmergencyContact,
    NewAuthorizedPickup,
)
from src.daycare_attendance.daycare_attendance.programs.model import SrEnrollment, VpkEnrollment

ORG = "org-1"
OTHER_ORG = "org-2"
ROOM_A = "room-a"
ROOM_B = "room-b"


def make_child(child_id: str, *, classroom_id: str = ROOM_A, program: ProgramType = ProgramType.PRIVATE, org: str = ORG) -> Child:
    return Child(
        child_id=child_id,
        organization_id=org,
        first_name=child_id.capitalize(),
        last_name="Test",
        classroom_id=classroom_id,
        family_id="fam-1",
        program_type=program,
    )


def make_guardian(guardian_id: str, **kw) -> Guardian:
    defaults = dict(
        guardian_id=guardian_id,
        organization_id=ORG,
        family_id="fam-1",
        first_name="Ana",
        last_name="García",
        relationship="Madre",
        phone="305-555-0101",
        photo_url=None,
    )
    defaults.update(kw)
    return Guardian(**defaults)


def make_pickup(pickup_id: str, child_id: str, **kw) -> AuthorizedPickup:
    defaults = dict(
        pickup_id=pickup_id,
        organization_id=ORG,
        child_id=child_id,
        name="Carmen Ruiz",
        relationship="Abuela",
        phone="305-555-0199",
    )
    defaults.update(kw)
    return AuthorizedPickup(**defaults)


def make_contact(contact_id: str, child_id: str, **kw) -> EmergencyContact:
    defaults = dict(
        contact_id=contact_id,
        organization_id=ORG,
        child_id=child_id,
        name="Rosa Díaz",
        relationship="Vecina",
        phone="305-555-0177",
        can_pickup=True,
    )
    defaults.update(kw)
    return EmergencyContact(**defaults)


@dataclass
class InMemoryChildren:
    children: dict[str, Child] = field(default_factory=dict)

    def add(self, child: Child) -> Child:
        self.children[child.child_id] = child
        return child

    def get_by_id(self, *, org_id: str, child_id: str) -> Optional[Child]:
        child = self.children.get(child_id)
        return child if child and child.organization_id == org_id else None

    def list_active(self, *, org_id: str):
        return [c for c in self.children.values() if c.organization_id == org_id and c.status == "active"]


@dataclass
class InMemoryGuardians:
    guardians: dict[str, Guardian] = field(default_factory=dict)
    links: set[tuple[str, str]] = field(default_factory=set)

    def add(self, guardian: Guardian, *child_ids: str) -> Guardian:
        self.guardians[guardian.guardian_id] = guardian
        for child_id in child_ids:
            self.links.add((guardian.guardian_id, child_id))
        return guardian

    def list_for_child(self, *, org_id: str, child_id: str):
        return [
            g
            for g in self.guardians.values()
            if g.organization_id == org_id and (g.guardian_id, child_id) in self.links
        ]

    def get_for_child(self, *, org_id: str, child_id: str, guardian_id: str) -> Optional[Guardian]:
        g = self.guardians.get(guardian_id)
        if not g or g.organization_id != org_id or (guardian_id, child_id) not in self.links:
            return None
        return g


class InMemoryPickups:
    def __init__(self):
        self.pickups: dict[str, AuthorizedPickup] = {}
        self._lock = threading.Lock()

    def add(self, pickup: AuthorizedPickup) -> AuthorizedPickup:
        self.pickups[pickup.pickup_id] = pickup
        return pickup

    def get_by_id(self, *, org_id: str, pickup_id: str) -> Optional[AuthorizedPickup]:
        p = self.pickups.get(pickup_id)
        return p if p and p.organization_id == org_id else None

    def list_for_child(self, *, org_id: str, child_id: str, include_inactive: bool = False):
        return [
            p
            for p in self.pickups.values()
            if p.organization_id == org_id and p.child_id == child_id and (include_inactive or p.is_active)
        ]

    def create(self, *, org_id: str, data: NewAuthorizedPickup, added_by: Optional[str] = None) -> str:
        pickup_id = str(uuid.uuid4())
        self.pickups[pickup_id] = AuthorizedPickup(
            pickup_id=pickup_id,
            organization_id=org_id,
            child_id=data.child_id,
            name=data.name,
            relationship=data.relationship,
            phone=data.phone,
            photo_url=data.photo_url,
            id_document_type=data.id_document_type,
            id_document_number=data.id_document_number,
            id_document_url=data.id_document_url,
            valid_from=data.valid_from,
            valid_until=data.valid_until,
            allowed_days=tuple(data.allowed_days),
            time_restrictions=data.time_restrictions,
            restrictions=data.restrictions,
            notes=data.notes,
            added_by=added_by,
        )
        return pickup_id

    def update(self, *, org_id: str, pickup_id: str, changes: Mapping[str, Any]) -> bool:
        p = self.get_by_id(org_id=org_id, pickup_id=pickup_id)
        if not p:
            return False
        self.pickups[pickup_id] = replace(p, **dict(changes))
        return True

    def set_state(self, *, org_id: str, pickup_id: str, state: AuthorizationState) -> bool:
        return self.update(org_id=org_id, pickup_id=pickup_id, changes={"state": state})

    def mark_verified(self, *, org_id: str, pickup_id: str, verified_by, verified_at: datetime, notes=None) -> bool:
        return self.update(
            org_id=org_id,
            pickup_id=pickup_id,
            changes={"verified_by": verified_by, "verified_at": verified_at, "verification_notes": notes},
        )

    def record_usage(self, *, org_id: str, pickup_id: str, used_at: datetime) -> bool:
        with self._lock:
            p = self.get_by_id(org_id=org_id, pickup_id=pickup_id)
            if not p:
                return False
            self.pickups[pickup_id] = replace(p, times_used=p.times_used + 1, last_pickup_at=used_at)
            return True

    def list_expired(self, *, org_id: str, today: date):
        return sorted(
            (
                p
                for p in self.pickups.values()
                if p.organization_id == org_id and p.is_active and p.valid_until and p.valid_until < today
            ),
            key=lambda p: p.valid_until,
        )

    def list_expiring(self, *, org_id: str, start: date, end: date):
        return sorted(
            (
                p
                for p in self.pickups.values()
                if p.organization_id == org_id and p.is_active and p.valid_until and start <= p.valid_until <= end
            ),
            key=lambda p: p.valid_until,
        )


@dataclass
class InMemoryContacts:
    contacts: dict[str, EmergencyContact] = field(default_factory=dict)

    def add(self, contact: EmergencyContact) -> EmergencyContact:
        self.contacts[contact.contact_id] = contact
        return contact

    def get_by_id(self, *, org_id: str, contact_id: str) -> Optional[EmergencyContact]:
        c = self.contacts.get(contact_id)
        return c if c and c.organization_id == org_id else None

    def list_for_child(self, *, org_id: str, child_id: str):
        return [c for c in self.contacts.values() if c.organization_id == org_id and c.child_id == child_id]


class InMemoryAttendance:
    """Rows keyed by (child_id, date), writes serialized like the unique key does in MySQL."""

    def __init__(self):
        self.rows: dict[tuple[str, date], AttendanceSession] = {}
        self.lock = threading.Lock()
        self.close_calls = 0

    def get_for_child_and_date(self, *, org_id: str, child_id: str, work_date: date) -> Optional[AttendanceSession]:
        s = self.rows.get((child_id, work_date))
        return s if s and s.organization_id == org_id else None

    def list_by_date(self, *, org_id: str, work_date: date):
        return [s for (_, d), s in self.rows.items() if d == work_date and s.organization_id == org_id]

    def list_for_child(self, *, org_id: str, child_id: str, start=None, end=None):
        out = [
            s
            for (cid, d), s in self.rows.items()
            if cid == child_id
            and s.organization_id == org_id
            and (start is None or d >= start)
            and (end is None or d <= end)
        ]
        return sorted(out, key=lambda s: s.work_date, reverse=True)

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
        with self.lock:
            existing = self.rows.get((child_id, work_date))
            if existing is not None and existing.check_in_time is not None:
                return False
            base = existing or AttendanceSession(
                attendance_id=str(uuid.uuid4()),
                organization_id=org_id,
                child_id=child_id,
                classroom_id=classroom_id,
                work_date=work_date,
                status=status,
            )
            self.rows[(child_id, work_date)] = replace(
                base,
                classroom_id=classroom_id,
                status=status,
                check_in_time=check_in_time,
                checked_in_by=checked_in_by,
                check_in_method=method,
                drop_off_name=drop_off.person_name,
                drop_off_relationship=drop_off.relationship,
                drop_off_guardian_id=drop_off.guardian_id,
                drop_off_authorized_pickup_id=drop_off.authorized_pickup_id,
                drop_off_notes=drop_off.notes,
            )
            return True

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
        with self.lock:
            self.close_calls += 1
            s = self.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=work_date)
            if not s or s.check_in_time is None or s.check_out_time is not None or s.check_in_time > check_out_time:
                return False
            self.rows[(child_id, work_date)] = replace(
                s,
                check_out_time=check_out_time,
                checked_out_by=checked_out_by,
                check_out_method=method,
                pickup_name=pickup.person_name,
                pickup_relationship=pickup.relationship,
                pickup_guardian_id=pickup.id_for(PersonType.GUARDIAN),
                pickup_authorized_pickup_id=pickup.id_for(PersonType.AUTHORIZED),
                pickup_emergency_contact_id=pickup.id_for(PersonType.EMERGENCY_CONTACT),
                check_out_verified=pickup.verified,
                check_out_verification_method=pickup.verification_method,
                pickup_notes=pickup.notes,
                total_hours=total_hours,
            )
            return True

    def upsert_absence(self, *, org_id: str, child_id: str, classroom_id, work_date: date, status, notes=None) -> None:
        with self.lock:
            existing = self.rows.get((child_id, work_date))
            if existing and existing.check_in_time is not None:
                return
            base = existing or AttendanceSession(
                attendance_id=str(uuid.uuid4()),
                organization_id=org_id,
                child_id=child_id,
                classroom_id=classroom_id,
                work_date=work_date,
                status=status,
            )
            self.rows[(child_id, work_date)] = replace(base, status=status, notes=notes)


class InMemoryPrograms:
    def __init__(self):
        self.vpk: dict[str, VpkEnrollment] = {}
        self.sr: dict[str, SrEnrollment] = {}
        self.vpk_rows: dict[tuple[str, date], float] = {}
        self.sr_rows: dict[tuple[str, date], tuple[time, time, float]] = {}

    def get_active_vpk_enrollment(self, *, org_id: str, child_id: str, school_year: str) -> Optional[VpkEnrollment]:
        return self.vpk.get(f"{child_id}:{school_year}")

    def get_active_sr_enrollment(self, *, org_id: str, child_id: str, school_year: str) -> Optional[SrEnrollment]:
        return self.sr.get(f"{child_id}:{school_year}")

    def upsert_vpk_hours(self, *, org_id, enrollment_id, child_id, work_date, hours, attendance_id) -> None:
        self.vpk_rows[(enrollment_id, work_date)] = hours

    def upsert_sr_hours(self, *, org_id, enrollment_id, child_id, work_date, check_in, check_out, hours, attendance_id) -> None:
        self.sr_rows[(enrollment_id, work_date)] = (check_in, check_out, hours)

    def sum_sr_hours(self, *, enrollment_id: str, start: date, end: date) -> float:
        return sum(h for (eid, d), (_, _, h) in self.sr_rows.items() if eid == enrollment_id and start <= d <= end)


class FailingPrograms(InMemoryPrograms):
    def upsert_vpk_hours(self, **kwargs) -> None:
        raise StoreError("vpk_attendance write failed")

    def upsert_sr_hours(self, **kwargs) -> None:
        raise StoreError("sr_attendance write failed")


class ExplodingProgramHours:
    """Recorder that blows up after the checkout write."""

    def __init__(self):
        self.calls = 0

    def record_program_hours(self, **kwargs):
        self.calls += 1
        raise RuntimeError("program hours service crashed")


@dataclass
class FakeProcedures:
    available: bool = False
    fail: bool = False
    list_rows: list[dict] = field(default_factory=list)
    validate_row: Optional[dict] = None
    calls: list[str] = field(default_factory=list)

    def is_available(self) -> bool:
        if self.fail:
            raise StoreError("information_schema unreachable")
        return self.available

    def authorized_pickups_for_child(self, *, org_id: str, child_id: str, today: date):
        self.calls.append("list")
        if self.fail:
            raise StoreError("procedure call failed")
        return list(self.list_rows)

    def validate_pickup_person(self, *, org_id, child_id, person_type, person_id, today):
        self.calls.append("validate")
        if self.fail:
            raise StoreError("procedure call failed")
        return self.validate_row


def make_world(*, procedures: FakeProcedures | None = None, programs: InMemoryPrograms | None = None, settings: Any = None):
    """In-memory repositories plus the services wired over them."""

    repos = SimpleNamespace(
        children=InMemoryChildren(),
        guardians=InMemoryGuardians(),
        pickups=InMemoryPickups(),
        contacts=InMemoryContacts(),
        attendance=InMemoryAttendance(),
        programs=programs or InMemoryPrograms(),
        procedures=procedures or FakeProcedures(),
    )
    container: Container = wire_services(
        children_repo=repos.children,
        guardians_repo=repos.guardians,
        pickups_repo=repos.pickups,
        contacts_repo=repos.contacts,
        attendance_repo=repos.attendance,
        programs_repo=repos.programs,
        procedures=repos.procedures,
        settings=settings,
    )
    return repos, container
