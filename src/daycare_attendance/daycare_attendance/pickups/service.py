from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import normalize_allowed_days, optional_text, require_non_empty
from ..core.constants import DEFAULT_EXPIRING_SOON_DAYS
from ..core.enums import AuthorizationState, PersonType
from ..core.exceptions import NotFoundError, StoreError, ValidationError
from ..families.repository import ChildRepository, GuardianRepository
from .model import AuthorizedPerson, AuthorizedPickup, NewAuthorizedPickup, ValidationResult
from .repository import UPDATABLE_PICKUP_FIELDS, AuthorizedPickupRepository
from .strategies.base import MSG_UNKNOWN_TYPE, NOT_FOUND_MESSAGES, PickupLookupStrategy
from .strategies.local_strategy import guardian_entry

logger = logging.getLogger(__name__)


class PickupValidator:
    """Binary pickup decision for a (child, claimed person) pair.

    Pure over stored state and ``now``: no writes, same answer when re-run with
    the same inputs.
    """

    def __init__(self, strategy: PickupLookupStrategy):
        self._strategy = strategy

    def validate(
        self,
        *,
        org_id: str,
        child_id: str,
        person_type: str | PersonType,
        person_id: str,
        now: datetime | None = None,
    ) -> ValidationResult:
        try:
            ptype = PersonType(person_type)
        except ValueError:
            return ValidationResult.denied(MSG_UNKNOWN_TYPE)

        if not person_id:
            return ValidationResult.denied(NOT_FOUND_MESSAGES[ptype])

        today = (now or now_local()).date()
        return self._strategy.validate(
            org_id=org_id,
            child_id=child_id,
            person_type=ptype,
            person_id=str(person_id),
            today=today,
        )


class AuthorizedPickupService:
    """Registry of who may remove a child, plus the third-party record lifecycle."""

    def __init__(
        self,
        strategy: PickupLookupStrategy,
        children: ChildRepository,
        guardians: GuardianRepository,
        pickups: AuthorizedPickupRepository,
        *,
        expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS,
    ):
        self._strategy = strategy
        self._children = children
        self._guardians = guardians
        self._pickups = pickups
        self._expiring_soon_days = int(expiring_soon_days)

    def list_authorized_for(self, *, org_id: str, child_id: str, today: date | None = None) -> Sequence[AuthorizedPerson]:
        today = today or now_local().date()
        try:
            return list(self._strategy.list_authorized(org_id=org_id, child_id=child_id, today=today))
        except StoreError:
            # Degrade to guardians only; a failure here propagates.
            logger.warning("Pickup list unavailable for child %s; returning guardians only", child_id, exc_info=True)
            return [
                guardian_entry(g)
                for g in self._guardians.list_for_child(org_id=org_id, child_id=child_id)
                if g.may_pick_up
            ]

    def get_by_child(self, *, org_id: str, child_id: str) -> Sequence[AuthorizedPickup]:
        return self._pickups.list_for_child(org_id=org_id, child_id=child_id)

    def get(self, *, org_id: str, pickup_id: str) -> AuthorizedPickup:
        pickup = self._pickups.get_by_id(org_id=org_id, pickup_id=pickup_id)
        if not pickup:
            raise NotFoundError("Persona autorizada no encontrada")
        return pickup

    def create(
        self,
        *,
        org_id: str,
        data: NewAuthorizedPickup,
        added_by: Optional[str] = None,
        today: date | None = None,
    ) -> AuthorizedPickup:
        if not self._children.get_by_id(org_id=org_id, child_id=data.child_id):
            raise NotFoundError("Niño no encontrado")

        data = replace(
            data,
            name=require_non_empty(data.name, "Nombre"),
            relationship=require_non_empty(data.relationship, "Parentesco"),
            phone=require_non_empty(data.phone, "Teléfono"),
            allowed_days=normalize_allowed_days(data.allowed_days),
            valid_from=data.valid_from or today or now_local().date(),
            restrictions=optional_text(data.restrictions),
            time_restrictions=optional_text(data.time_restrictions),
            notes=optional_text(data.notes),
        )
        if data.valid_until and data.valid_until < data.valid_from:
            raise ValidationError("La fecha de vencimiento debe ser posterior a la fecha de inicio")

        pickup_id = self._pickups.create(org_id=org_id, data=data, added_by=added_by)
        logger.info("Authorized pickup %s created for child %s", pickup_id, data.child_id)
        return self.get(org_id=org_id, pickup_id=pickup_id)

    def update(self, *, org_id: str, pickup_id: str, changes: Mapping[str, Any]) -> AuthorizedPickup:
        unknown = set(changes) - UPDATABLE_PICKUP_FIELDS
        if unknown:
            raise ValidationError(f"Campos no editables: {', '.join(sorted(unknown))}")

        current = self.get(org_id=org_id, pickup_id=pickup_id)
        clean = dict(changes)
        for key in ("name", "relationship", "phone"):
            if key in clean:
                clean[key] = require_non_empty(clean[key], key)
        if "allowed_days" in clean:
            clean["allowed_days"] = normalize_allowed_days(clean["allowed_days"])

        valid_from = clean.get("valid_from", current.valid_from)
        valid_until = clean.get("valid_until", current.valid_until)
        if valid_from and valid_until and valid_until < valid_from:
            raise ValidationError("La fecha de vencimiento debe ser posterior a la fecha de inicio")

        if clean:
            self._pickups.update(org_id=org_id, pickup_id=pickup_id, changes=clean)
        return self.get(org_id=org_id, pickup_id=pickup_id)

    def deactivate(self, *, org_id: str, pickup_id: str) -> None:
        self._set_state(org_id=org_id, pickup_id=pickup_id, state=AuthorizationState.DEACTIVATED)

    def reactivate(self, *, org_id: str, pickup_id: str) -> None:
        self._set_state(org_id=org_id, pickup_id=pickup_id, state=AuthorizationState.ACTIVE)

    def _set_state(self, *, org_id: str, pickup_id: str, state: AuthorizationState) -> None:
        if not self._pickups.set_state(org_id=org_id, pickup_id=pickup_id, state=state):
            raise NotFoundError("Persona autorizada no encontrada")
        logger.info("Authorized pickup %s is now %s", pickup_id, state.value)

    def verify(
        self,
        *,
        org_id: str,
        pickup_id: str,
        verified_by: Optional[str],
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AuthorizedPickup:
        ok = self._pickups.mark_verified(
            org_id=org_id,
            pickup_id=pickup_id,
            verified_by=verified_by,
            verified_at=now or now_local(),
            notes=optional_text(notes),
        )
        if not ok:
            raise NotFoundError("Persona autorizada no encontrada")
        return self.get(org_id=org_id, pickup_id=pickup_id)

    def record_pickup(self, *, org_id: str, pickup_id: str, now: datetime | None = None) -> None:
        if not self._pickups.record_usage(org_id=org_id, pickup_id=pickup_id, used_at=now or now_local()):
            raise NotFoundError("Persona autorizada no encontrada")

    def list_expired(self, *, org_id: str, today: date | None = None) -> Sequence[AuthorizedPickup]:
        return self._pickups.list_expired(org_id=org_id, today=today or now_local().date())

    def list_expiring_soon(
        self,
        *,
        org_id: str,
        today: date | None = None,
        days: int | None = None,
    ) -> Sequence[AuthorizedPickup]:
        today = today or now_local().date()
        horizon = self._expiring_soon_days if days is None else int(days)
        if horizon < 0:
            raise ValidationError("El número de días debe ser positivo")
        return self._pickups.list_expiring(org_id=org_id, start=today, end=today + timedelta(days=horizon))
