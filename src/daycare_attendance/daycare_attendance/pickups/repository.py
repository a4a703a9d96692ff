from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import AuthorizationState
from .model import AuthorizedPickup, EmergencyContact, NewAuthorizedPickup

UPDATABLE_PICKUP_FIELDS = frozenset(
    {
        "name",
        "relationship",
        "phone",
        "photo_url",
        "id_document_type",
        "id_document_number",
        "id_document_url",
        "valid_from",
        "valid_until",
        "allowed_days",
        "time_restrictions",
        "restrictions",
        "notes",
    }
)


class AuthorizedPickupRepository(Protocol):
    def get_by_id(self, *, org_id: str, pickup_id: str) -> Optional[AuthorizedPickup]:
        raise NotImplementedError

    def list_for_child(self, *, org_id: str, child_id: str, include_inactive: bool = False) -> Sequence[AuthorizedPickup]:
        raise NotImplementedError

    def create(self, *, org_id: str, data: NewAuthorizedPickup, added_by: Optional[str] = None) -> str:
        """Insert an ACTIVE record; returns its id."""

        raise NotImplementedError

    def update(self, *, org_id: str, pickup_id: str, changes: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def set_state(self, *, org_id: str, pickup_id: str, state: AuthorizationState) -> bool:
        raise NotImplementedError

    def mark_verified(
        self,
        *,
        org_id: str,
        pickup_id: str,
        verified_by: Optional[str],
        verified_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def record_usage(self, *, org_id: str, pickup_id: str, used_at: datetime) -> bool:
        """Atomically bump ``times_used`` and set ``last_pickup_at``."""

        raise NotImplementedError

    def list_expired(self, *, org_id: str, today: date) -> Sequence[AuthorizedPickup]:
        """ACTIVE records whose ``valid_until`` is before ``today``."""

        raise NotImplementedError

    def list_expiring(self, *, org_id: str, start: date, end: date) -> Sequence[AuthorizedPickup]:
        """ACTIVE records with ``valid_until`` between start and end (inclusive)."""

        raise NotImplementedError


class EmergencyContactRepository(Protocol):
    def get_by_id(self, *, org_id: str, contact_id: str) -> Optional[EmergencyContact]:
        raise NotImplementedError

    def list_for_child(self, *, org_id: str, child_id: str) -> Sequence[EmergencyContact]:
        raise NotImplementedError


class PickupProcedures(Protocol):
    """Stored procedures installed from ``database/procedures.sql``."""

    def is_available(self) -> bool:
        raise NotImplementedError

    def authorized_pickups_for_child(self, *, org_id: str, child_id: str, today: date) -> Sequence[dict]:
        raise NotImplementedError

    def validate_pickup_person(
        self,
        *,
        org_id: str,
        child_id: str,
        person_type: str,
        person_id: str,
        today: date,
    ) -> Optional[dict]:
        raise NotImplementedError
