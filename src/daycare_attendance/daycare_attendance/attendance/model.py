from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckMethod, PersonType, VerificationMethod
from ..pickups.model import ValidationResult
from ..programs.model import ProgramHoursResult


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: the single attendance record of a child for one date."""

    attendance_id: str
    organization_id: str
    child_id: str
    classroom_id: Optional[str]
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    checked_in_by: Optional[str] = None
    checked_out_by: Optional[str] = None
    drop_off_name: Optional[str] = None
    drop_off_relationship: Optional[str] = None
    drop_off_guardian_id: Optional[str] = None
    drop_off_authorized_pickup_id: Optional[str] = None
    pickup_name: Optional[str] = None
    pickup_relationship: Optional[str] = None
    pickup_guardian_id: Optional[str] = None
    pickup_authorized_pickup_id: Optional[str] = None
    pickup_emergency_contact_id: Optional[str] = None
    check_out_verified: bool = False
    check_out_verification_method: Optional[VerificationMethod] = None
    check_in_method: Optional[CheckMethod] = None
    check_out_method: Optional[CheckMethod] = None
    notes: Optional[str] = None
    drop_off_notes: Optional[str] = None
    pickup_notes: Optional[str] = None
    total_hours: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None

    @property
    def is_checked_out(self) -> bool:
        return self.check_out_time is not None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "organization_id": self.organization_id,
            "child_id": self.child_id,
            "classroom_id": self.classroom_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "check_in_time": _iso(self.check_in_time),
            "check_out_time": _iso(self.check_out_time),
            "checked_in_by": self.checked_in_by,
            "checked_out_by": self.checked_out_by,
            "drop_off": {
                "name": self.drop_off_name,
                "relationship": self.drop_off_relationship,
                "guardian_id": self.drop_off_guardian_id,
                "authorized_pickup_id": self.drop_off_authorized_pickup_id,
                "notes": self.drop_off_notes,
            },
            "pickup": {
                "name": self.pickup_name,
                "relationship": self.pickup_relationship,
                "guardian_id": self.pickup_guardian_id,
                "authorized_pickup_id": self.pickup_authorized_pickup_id,
                "emergency_contact_id": self.pickup_emergency_contact_id,
                "verified": self.check_out_verified,
                "verification_method": (
                    self.check_out_verification_method.value if self.check_out_verification_method else None
                ),
                "notes": self.pickup_notes,
            },
            "total_hours": self.total_hours,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class DropOffInfo:
    """Who delivered the child; recorded, never authorization-checked."""

    person_name: Optional[str] = None
    relationship: Optional[str] = None
    guardian_id: Optional[str] = None
    authorized_pickup_id: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class PickupInfo:
    """Who removed the child and how the operator verified them."""

    person_name: Optional[str] = None
    relationship: Optional[str] = None
    person_id: Optional[str] = None
    person_type: Optional[PersonType] = None
    verified: bool = False
    verification_method: Optional[VerificationMethod] = None
    notes: Optional[str] = None

    def id_for(self, person_type: PersonType) -> Optional[str]:
        return self.person_id if self.person_type == person_type else None

    def with_validation(self, result: ValidationResult) -> "PickupInfo":
        """Fill name/relationship the operator left blank from the validated record."""
        return replace(
            self,
            person_name=self.person_name or result.person_name,
            relationship=self.relationship or result.relationship,
        )


@dataclass(frozen=True)
class CheckOutRequest:
    """Payload of the validated checkout flow."""

    child_id: str
    checked_out_by: Optional[str] = None
    pickup_person_id: Optional[str] = None
    pickup_person_type: Optional[str] = None
    pickup_person_name: Optional[str] = None
    pickup_person_relationship: Optional[str] = None
    verified: bool = False
    verification_method: Optional[str] = None
    notes: Optional[str] = None
    method: CheckMethod = CheckMethod.MANUAL

    @property
    def claims_person(self) -> bool:
        return bool(self.pickup_person_id or self.pickup_person_type)


@dataclass
class CheckOutResult:
    success: bool
    session: Optional[AttendanceSession] = None
    program_hours: Optional[ProgramHoursResult] = None
    error: Optional[str] = None
    blocked: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "session": self.session.to_dict() if self.session else None,
            "program_hours": self.program_hours.to_dict() if self.program_hours else None,
            "error": self.error,
            "blocked": self.blocked,
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class DailyStats:
    """Read-model for the front-desk dashboard."""

    work_date: date
    total: int
    present: int
    absent: int
    late: int
    sick: int
    checked_out: int
    pending_checkout: int
    verified_pickups: int
    by_classroom: dict[str, dict[str, int]]

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "total": self.total,
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "sick": self.sick,
            "checked_out": self.checked_out,
            "pending_checkout": self.pending_checkout,
            "verified_pickups": self.verified_pickups,
            "by_classroom": self.by_classroom,
        }
