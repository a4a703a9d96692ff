from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import AuthorizationState, PersonType, VerificationMethod


@dataclass(frozen=True)
class AuthorizedPickup:
    """Domain entity: a non-guardian explicitly granted pickup rights."""

    pickup_id: str
    organization_id: str
    child_id: str
    name: str
    relationship: Optional[str]
    phone: Optional[str]
    photo_url: Optional[str] = None
    id_document_type: Optional[str] = None
    id_document_number: Optional[str] = None
    id_document_url: Optional[str] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    allowed_days: tuple[str, ...] = ()
    time_restrictions: Optional[str] = None
    restrictions: Optional[str] = None
    state: AuthorizationState = AuthorizationState.ACTIVE
    notes: Optional[str] = None
    added_by: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    verification_notes: Optional[str] = None
    times_used: int = 0
    last_pickup_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.state == AuthorizationState.ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.pickup_id,
            "child_id": self.child_id,
            "name": self.name,
            "relationship": self.relationship,
            "phone": self.phone,
            "photo_url": self.photo_url,
            "id_document_type": self.id_document_type,
            "id_document_number": self.id_document_number,
            "valid_from": self.valid_from.isoformat() if self.valid_from else None,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
            "allowed_days": list(self.allowed_days),
            "time_restrictions": self.time_restrictions,
            "restrictions": self.restrictions,
            "state": self.state.value,
            "notes": self.notes,
            "verified_by": self.verified_by,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "times_used": self.times_used,
            "last_pickup_at": self.last_pickup_at.isoformat() if self.last_pickup_at else None,
        }


@dataclass(frozen=True)
class EmergencyContact:
    """Emergency contact; may pick up only when ``can_pickup`` is set."""

    contact_id: str
    organization_id: str
    child_id: str
    name: str
    relationship: Optional[str]
    phone: Optional[str]
    can_pickup: bool = False
    valid_until: Optional[date] = None
    allowed_days: tuple[str, ...] = ()
    restrictions: Optional[str] = None
    state: AuthorizationState = AuthorizationState.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.state == AuthorizationState.ACTIVE


@dataclass(frozen=True)
class AuthorizedPerson:
    """Normalized entry of the per-child pickup list (any variant)."""

    person_id: str
    person_type: PersonType
    name: str
    relationship: Optional[str]
    phone: Optional[str]
    photo_url: Optional[str]
    has_photo: bool
    has_id: bool
    restrictions: Optional[str] = None
    requires_verification: bool = False

    def to_dict(self) -> dict:
        return {
            "person_id": self.person_id,
            "person_type": self.person_type.value,
            "name": self.name,
            "relationship": self.relationship,
            "phone": self.phone,
            "photo_url": self.photo_url,
            "has_photo": self.has_photo,
            "has_id": self.has_id,
            "restrictions": self.restrictions,
            "requires_verification": self.requires_verification,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome shown to the checkout operator; ``message`` is always set."""

    is_valid: bool
    message: str
    person_name: Optional[str] = None
    relationship: Optional[str] = None
    photo_url: Optional[str] = None
    restrictions: Optional[str] = None
    requires_id_check: bool = False

    @classmethod
    def denied(cls, message: str) -> "ValidationResult":
        return cls(is_valid=False, message=message)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "person_name": self.person_name,
            "relationship": self.relationship,
            "photo_url": self.photo_url,
            "restrictions": self.restrictions,
            "requires_id_check": self.requires_id_check,
            "message": self.message,
        }


@dataclass(frozen=True)
class NewAuthorizedPickup:
    """Form data for creating/updating an authorized pickup."""

    child_id: str
    name: str
    relationship: str
    phone: str
    photo_url: Optional[str] = None
    id_document_type: Optional[str] = None
    id_document_number: Optional[str] = None
    id_document_url: Optional[str] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    allowed_days: tuple[str, ...] = field(default_factory=tuple)
    time_restrictions: Optional[str] = None
    restrictions: Optional[str] = None
    verification_method: Optional[VerificationMethod] = None
    notes: Optional[str] = None
