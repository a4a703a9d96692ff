from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ...core.constants import EMERGENCY_CONTACT_ADVISORY
from ...core.enums import PersonType
from ...families.model import Guardian
from ...families.repository import GuardianRepository
from ..model import AuthorizedPerson, AuthorizedPickup, EmergencyContact, ValidationResult
from ..policy import contact_is_current, pickup_is_current
from ..repository import AuthorizedPickupRepository, EmergencyContactRepository
from .base import (
    MSG_AUTHORIZED,
    MSG_CONTACT_NOT_FOUND,
    MSG_EXPIRED_OR_INACTIVE,
    MSG_GUARDIAN_BLOCKED,
    MSG_GUARDIAN_NOT_FOUND,
    MSG_PICKUP_NOT_FOUND,
    PickupLookupStrategy,
)


def _join_restrictions(*parts: Optional[str]) -> Optional[str]:
    text = ". ".join(p.strip() for p in parts if p and p.strip())
    return text or None


def pickup_restrictions(pickup: AuthorizedPickup) -> Optional[str]:
    schedule = f"Horario: {pickup.time_restrictions}" if pickup.time_restrictions else None
    return _join_restrictions(pickup.restrictions, schedule)


def contact_restrictions(contact: EmergencyContact) -> Optional[str]:
    return _join_restrictions(EMERGENCY_CONTACT_ADVISORY, contact.restrictions)


def guardian_entry(guardian: Guardian) -> AuthorizedPerson:
    return AuthorizedPerson(
        person_id=guardian.guardian_id,
        person_type=PersonType.GUARDIAN,
        name=guardian.full_name,
        relationship=guardian.relationship or "Tutor",
        phone=guardian.phone,
        photo_url=guardian.photo_url,
        has_photo=bool(guardian.photo_url),
        has_id=False,
    )


class LocalPickupStrategy(PickupLookupStrategy):
    """Client-side rules over plain table reads."""

    def __init__(
        self,
        guardians: GuardianRepository,
        pickups: AuthorizedPickupRepository,
        contacts: EmergencyContactRepository,
    ):
        self._guardians = guardians
        self._pickups = pickups
        self._contacts = contacts

    def list_authorized(self, *, org_id: str, child_id: str, today: date) -> Sequence[AuthorizedPerson]:
        out: list[AuthorizedPerson] = [
            guardian_entry(g)
            for g in self._guardians.list_for_child(org_id=org_id, child_id=child_id)
            if g.may_pick_up
        ]

        for p in self._pickups.list_for_child(org_id=org_id, child_id=child_id):
            if not pickup_is_current(p, today):
                continue
            out.append(
                AuthorizedPerson(
                    person_id=p.pickup_id,
                    person_type=PersonType.AUTHORIZED,
                    name=p.name,
                    relationship=p.relationship,
                    phone=p.phone,
                    photo_url=p.photo_url,
                    has_photo=bool(p.photo_url),
                    has_id=bool(p.id_document_url),
                    restrictions=pickup_restrictions(p),
                    requires_verification=p.verified_at is None,
                )
            )

        for c in self._contacts.list_for_child(org_id=org_id, child_id=child_id):
            if not contact_is_current(c, today):
                continue
            out.append(
                AuthorizedPerson(
                    person_id=c.contact_id,
                    person_type=PersonType.EMERGENCY_CONTACT,
                    name=c.name,
                    relationship=c.relationship,
                    phone=c.phone,
                    photo_url=None,
                    has_photo=False,
                    has_id=False,
                    restrictions=contact_restrictions(c),
                    requires_verification=True,
                )
            )

        return out

    def validate(
        self,
        *,
        org_id: str,
        child_id: str,
        person_type: PersonType,
        person_id: str,
        today: date,
    ) -> ValidationResult:
        if person_type == PersonType.GUARDIAN:
            return self._validate_guardian(org_id=org_id, child_id=child_id, guardian_id=person_id)
        if person_type == PersonType.AUTHORIZED:
            return self._validate_pickup(org_id=org_id, child_id=child_id, pickup_id=person_id, today=today)
        return self._validate_contact(org_id=org_id, child_id=child_id, contact_id=person_id, today=today)

    def _validate_guardian(self, *, org_id: str, child_id: str, guardian_id: str) -> ValidationResult:
        guardian = self._guardians.get_for_child(org_id=org_id, child_id=child_id, guardian_id=guardian_id)
        if not guardian:
            return ValidationResult.denied(MSG_GUARDIAN_NOT_FOUND)

        ok = guardian.may_pick_up
        return ValidationResult(
            is_valid=ok,
            message=MSG_AUTHORIZED if ok else MSG_GUARDIAN_BLOCKED,
            person_name=guardian.full_name,
            relationship=guardian.relationship or "Tutor",
            photo_url=guardian.photo_url,
        )

    def _validate_pickup(self, *, org_id: str, child_id: str, pickup_id: str, today: date) -> ValidationResult:
        pickup = self._pickups.get_by_id(org_id=org_id, pickup_id=pickup_id)
        if not pickup or pickup.child_id != child_id:
            return ValidationResult.denied(MSG_PICKUP_NOT_FOUND)

        ok = pickup_is_current(pickup, today)
        return ValidationResult(
            is_valid=ok,
            message=MSG_AUTHORIZED if ok else MSG_EXPIRED_OR_INACTIVE,
            person_name=pickup.name,
            relationship=pickup.relationship,
            photo_url=pickup.photo_url,
            restrictions=pickup_restrictions(pickup),
            requires_id_check=pickup.verified_at is None,
        )

    def _validate_contact(self, *, org_id: str, child_id: str, contact_id: str, today: date) -> ValidationResult:
        contact = self._contacts.get_by_id(org_id=org_id, contact_id=contact_id)
        if not contact or contact.child_id != child_id:
            return ValidationResult.denied(MSG_CONTACT_NOT_FOUND)

        ok = contact_is_current(contact, today)
        return ValidationResult(
            is_valid=ok,
            message=MSG_AUTHORIZED if ok else MSG_EXPIRED_OR_INACTIVE,
            person_name=contact.name,
            relationship=contact.relationship,
            restrictions=contact_restrictions(contact),
            requires_id_check=True,
        )
