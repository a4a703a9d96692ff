from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from ...core.enums import PersonType
from ...core.exceptions import StoreError
from ..model import AuthorizedPerson, ValidationResult
from ..repository import PickupProcedures
from .base import NOT_FOUND_MESSAGES, PickupLookupStrategy

logger = logging.getLogger(__name__)


def _row_to_person(r: dict) -> AuthorizedPerson:
    return AuthorizedPerson(
        person_id=str(r["person_id"]),
        person_type=PersonType(r["person_type"]),
        name=r["name"],
        relationship=r.get("relationship"),
        phone=r.get("phone"),
        photo_url=r.get("photo_url"),
        has_photo=bool(r.get("has_photo")),
        has_id=bool(r.get("has_id")),
        restrictions=r.get("restrictions"),
        requires_verification=bool(r.get("requires_verification")),
    )


def _row_to_result(r: dict) -> ValidationResult:
    return ValidationResult(
        is_valid=bool(r["is_valid"]),
        message=r.get("message") or "",
        person_name=r.get("person_name"),
        relationship=r.get("relationship"),
        photo_url=r.get("photo_url"),
        restrictions=r.get("restrictions"),
        requires_id_check=bool(r.get("requires_id_check")),
    )


class StoredProcedurePickupStrategy(PickupLookupStrategy):
    """Delegates to the database procedures.

    A procedure call that fails with a store error is retried once through the
    ``fallback`` strategy; an empty procedure answer means "not found" and is
    returned as a denial without consulting the fallback.
    """

    def __init__(self, procedures: PickupProcedures, fallback: PickupLookupStrategy):
        self._procedures = procedures
        self._fallback = fallback

    def list_authorized(self, *, org_id: str, child_id: str, today: date) -> Sequence[AuthorizedPerson]:
        try:
            rows = self._procedures.authorized_pickups_for_child(org_id=org_id, child_id=child_id, today=today)
        except StoreError:
            logger.warning("get_authorized_pickups_for_child failed for child %s; using local lookup", child_id, exc_info=True)
            return self._fallback.list_authorized(org_id=org_id, child_id=child_id, today=today)
        return [_row_to_person(r) for r in rows]

    def validate(
        self,
        *,
        org_id: str,
        child_id: str,
        person_type: PersonType,
        person_id: str,
        today: date,
    ) -> ValidationResult:
        try:
            row = self._procedures.validate_pickup_person(
                org_id=org_id,
                child_id=child_id,
                person_type=person_type.value,
                person_id=person_id,
                today=today,
            )
        except StoreError:
            logger.warning("validate_pickup_person failed for child %s; using local rules", child_id, exc_info=True)
            return self._fallback.validate(
                org_id=org_id,
                child_id=child_id,
                person_type=person_type,
                person_id=person_id,
                today=today,
            )

        if not row:
            return ValidationResult.denied(NOT_FOUND_MESSAGES[person_type])
        return _row_to_result(row)
