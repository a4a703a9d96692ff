from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Child, Guardian


class ChildRepository(Protocol):
    """Repository interface for the children roster.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, *, org_id: str, child_id: str) -> Optional[Child]:
        raise NotImplementedError

    def list_active(self, *, org_id: str) -> Sequence[Child]:
        raise NotImplementedError


class GuardianRepository(Protocol):
    def list_for_child(self, *, org_id: str, child_id: str) -> Sequence[Guardian]:
        """Guardians linked to the child (any status)."""

        raise NotImplementedError

    def get_for_child(self, *, org_id: str, child_id: str, guardian_id: str) -> Optional[Guardian]:
        """Guardian only if linked to this child."""

        raise NotImplementedError
