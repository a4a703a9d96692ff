from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import GuardianStatus, ProgramType


@dataclass(frozen=True)
class Child:
    """Domain entity: an enrolled child (pure data, no DB access)."""

    child_id: str
    organization_id: str
    first_name: str
    last_name: str
    classroom_id: Optional[str]
    family_id: Optional[str]
    program_type: Optional[ProgramType] = None
    status: str = "active"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Guardian:
    """Legal parent/custodian linked to a child through the family."""

    guardian_id: str
    organization_id: str
    family_id: Optional[str]
    first_name: str
    last_name: str
    relationship: Optional[str]
    phone: Optional[str]
    photo_url: Optional[str]
    can_pickup: bool = True
    status: GuardianStatus = GuardianStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def may_pick_up(self) -> bool:
        return self.status == GuardianStatus.ACTIVE and self.can_pickup
