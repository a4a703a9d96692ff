from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus, CheckMethod
from .model import AttendanceSession, DropOffInfo, PickupInfo


class AttendanceRepository(Protocol):
    """Sessions keyed by (child_id, date); every write relies on that unique key."""

    def get_for_child_and_date(self, *, org_id: str, child_id: str, work_date: date) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_by_date(self, *, org_id: str, work_date: date) -> Sequence[AttendanceSession]:
        raise NotImplementedError

    def list_for_child(
        self,
        *,
        org_id: str,
        child_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[AttendanceSession]:
        raise NotImplementedError

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
        """Insert the session or fill the check-in fields of an unchecked-in one.

        Returns False when the day already has a check-in; that row is left as is.
        """

        raise NotImplementedError

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
        """Single conditional write: only an open session (checked in, not out) is closed.

        Returns False when no open session matched.
        """

        raise NotImplementedError

    def upsert_absence(
        self,
        *,
        org_id: str,
        child_id: str,
        classroom_id: Optional[str],
        work_date: date,
        status: AttendanceStatus,
        notes: Optional[str] = None,
    ) -> None:
        """Insert-or-update keyed on (child_id, date); never touches a checked-in session."""

        raise NotImplementedError
