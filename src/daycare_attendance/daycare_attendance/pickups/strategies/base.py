from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Sequence

from ...core.enums import PersonType
from ..model import AuthorizedPerson, ValidationResult

MSG_AUTHORIZED = "Autorizado para recoger"
MSG_EXPIRED_OR_INACTIVE = "Autorización expirada o inactiva"
MSG_PICKUP_NOT_FOUND = "Persona autorizada no encontrada"
MSG_GUARDIAN_NOT_FOUND = "Tutor no encontrado para este niño"
MSG_GUARDIAN_BLOCKED = "Tutor inactivo o sin permiso de recogida"
MSG_CONTACT_NOT_FOUND = "Contacto de emergencia no encontrado"
MSG_UNKNOWN_TYPE = "Tipo de persona no válido"

NOT_FOUND_MESSAGES = {
    PersonType.GUARDIAN: MSG_GUARDIAN_NOT_FOUND,
    PersonType.AUTHORIZED: MSG_PICKUP_NOT_FOUND,
    PersonType.EMERGENCY_CONTACT: MSG_CONTACT_NOT_FOUND,
}


class PickupLookupStrategy(ABC):
    """Strategy Pattern: where pickup lists and decisions are computed.

    Implementations must never answer "allowed" for a person they could not
    find; a store failure is raised, not turned into a decision.
    """

    @abstractmethod
    def list_authorized(self, *, org_id: str, child_id: str, today: date) -> Sequence[AuthorizedPerson]:
        raise NotImplementedError

    @abstractmethod
    def validate(
        self,
        *,
        org_id: str,
        child_id: str,
        person_type: PersonType,
        person_id: str,
        today: date,
    ) -> ValidationResult:
        raise NotImplementedError
