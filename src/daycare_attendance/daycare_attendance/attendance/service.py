from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.datetime_utils import hours_between, now_local
from ..common.validators import optional_text, require_non_empty
from ..core.enums import AttendanceStatus, CheckMethod, PersonType, VerificationMethod
from ..core.exceptions import DomainError, NotFoundError, ValidationError
from ..families.repository import ChildRepository
from ..pickups.service import AuthorizedPickupService, PickupValidator
from ..programs.model import ProgramHoursResult
from .model import AttendanceSession, CheckOutRequest, CheckOutResult, DailyStats, DropOffInfo, PickupInfo
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

MSG_NO_CHECK_IN = "No se encontró registro de entrada para hoy"
MSG_NO_OPEN_SESSION = "No hay una sesión abierta para hoy"
MSG_ALREADY_CHECKED_IN = "El niño ya registró entrada hoy"
MSG_CHECKOUT_BEFORE_CHECKIN = "La hora de salida no puede ser anterior a la hora de entrada"
MSG_CHECKOUT_FAILED = "Error al registrar la salida"
MSG_PROGRAM_HOURS_FAILED = "No se pudieron registrar las horas del programa"
MSG_CHILD_NOT_FOUND = "Niño no encontrado"

CHECK_IN_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})
ABSENCE_STATUSES = frozenset({AttendanceStatus.ABSENT, AttendanceStatus.SICK})


def _status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError as e:
        raise ValidationError(f"Estado no válido: {value}") from e


def _method(value) -> CheckMethod:
    try:
        return CheckMethod(value)
    except ValueError as e:
        raise ValidationError(f"Método no válido: {value}") from e


class ProgramHoursRecorder(Protocol):
    def record_program_hours(
        self,
        *,
        org_id: str,
        child_id: str,
        attendance_id: str,
        check_in_time: datetime,
        check_out_time: datetime,
        work_date: date,
    ) -> ProgramHoursResult:
        raise NotImplementedError


class AttendanceService:
    """Per (child, date) session lifecycle.

    NoRecord/Absent -> check_in -> CheckedIn -> check_out -> CheckedOut.
    CheckedOut is terminal for the day.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        children: ChildRepository,
        validator: PickupValidator,
        pickups: AuthorizedPickupService | None = None,
        program_hours: ProgramHoursRecorder | None = None,
    ):
        self._attendance = attendance
        self._children = children
        self._validator = validator
        self._pickups = pickups
        self._program_hours = program_hours

    def _require_child(self, *, org_id: str, child_id: str):
        child = self._children.get_by_id(org_id=org_id, child_id=child_id)
        if not child:
            raise NotFoundError(MSG_CHILD_NOT_FOUND)
        return child

    def check_in(
        self,
        *,
        org_id: str,
        child_id: str,
        classroom_id: str,
        checked_in_by: Optional[str] = None,
        drop_off: DropOffInfo | None = None,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
        method: CheckMethod = CheckMethod.MANUAL,
        now: datetime | None = None,
    ) -> AttendanceSession:
        child_id = require_non_empty(child_id, "El niño")
        classroom_id = require_non_empty(classroom_id, "El salón")
        status = _status(status)
        if status not in CHECK_IN_STATUSES:
            raise ValidationError("Estado de entrada no válido")

        # DATETIME columns keep whole seconds.
        now = (now or now_local()).replace(microsecond=0)
        today = now.date()

        self._require_child(org_id=org_id, child_id=child_id)

        existing = self._attendance.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=today)
        if existing and existing.check_in_time is not None:
            raise ValidationError(MSG_ALREADY_CHECKED_IN)

        applied = self._attendance.upsert_check_in(
            org_id=org_id,
            child_id=child_id,
            classroom_id=classroom_id,
            work_date=today,
            check_in_time=now,
            status=status,
            checked_in_by=checked_in_by,
            drop_off=drop_off or DropOffInfo(),
            method=_method(method),
        )
        if not applied:
            # Another check-in for the same day landed between the read and the write.
            raise ValidationError(MSG_ALREADY_CHECKED_IN)
        logger.info("Child %s checked in (org=%s, classroom=%s)", child_id, org_id, classroom_id)
        return self._attendance.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=today)

    def check_out(
        self,
        *,
        org_id: str,
        child_id: str,
        checked_out_by: Optional[str] = None,
        pickup: PickupInfo | None = None,
        method: CheckMethod = CheckMethod.MANUAL,
        now: datetime | None = None,
    ) -> CheckOutResult:
        now = (now or now_local()).replace(microsecond=0)
        today = now.date()
        pickup = pickup or PickupInfo()

        record = self._attendance.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=today)
        self._ensure_open(record, now)

        closed = self._attendance.close_session(
            org_id=org_id,
            child_id=child_id,
            work_date=today,
            check_out_time=now,
            checked_out_by=checked_out_by,
            pickup=pickup,
            method=_method(method),
            total_hours=hours_between(record.check_in_time, now),
        )
        if not closed:
            # Lost the race to another checkout; report the state that won.
            current = self._attendance.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=today)
            self._ensure_open(current, now)
            raise ValidationError(MSG_NO_OPEN_SESSION)

        session = self._attendance.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=today)
        logger.info("Child %s checked out (org=%s, pickup=%s)", child_id, org_id, pickup.person_name)

        warnings: list[str] = []
        program_hours = self._record_program_hours(org_id=org_id, session=session, warnings=warnings)
        if pickup.person_type == PersonType.AUTHORIZED and pickup.person_id:
            self._record_pickup_usage(org_id=org_id, pickup_id=pickup.person_id, now=now, warnings=warnings)

        return CheckOutResult(success=True, session=session, program_hours=program_hours, warnings=warnings)

    @staticmethod
    def _ensure_open(record: Optional[AttendanceSession], now: datetime) -> None:
        if record is None or record.check_in_time is None:
            raise ValidationError(MSG_NO_CHECK_IN)
        if record.check_out_time is not None:
            raise ValidationError(MSG_NO_OPEN_SESSION)
        if now < record.check_in_time:
            raise ValidationError(MSG_CHECKOUT_BEFORE_CHECKIN)

    def _record_program_hours(
        self,
        *,
        org_id: str,
        session: AttendanceSession,
        warnings: list[str],
    ) -> Optional[ProgramHoursResult]:
        if self._program_hours is None:
            return None
        try:
            result = self._program_hours.record_program_hours(
                org_id=org_id,
                child_id=session.child_id,
                attendance_id=session.attendance_id,
                check_in_time=session.check_in_time,
                check_out_time=session.check_out_time,
                work_date=session.work_date,
            )
        except Exception:
            # The checkout is already committed; hours are secondary.
            logger.exception("Program hours failed for attendance %s", session.attendance_id)
            warnings.append(MSG_PROGRAM_HOURS_FAILED)
            return None

        if result.errors:
            logger.warning("Program hours for attendance %s: %s", session.attendance_id, "; ".join(result.errors))
            warnings.extend(result.errors)
        return result

    def _record_pickup_usage(self, *, org_id: str, pickup_id: str, now: datetime, warnings: list[str]) -> None:
        if self._pickups is None:
            return
        try:
            self._pickups.record_pickup(org_id=org_id, pickup_id=pickup_id, now=now)
        except Exception:
            logger.exception("Could not record usage of authorized pickup %s", pickup_id)
            warnings.append("No se pudo actualizar el historial de la persona autorizada")

    def check_out_with_data(self, *, org_id: str, request: CheckOutRequest, now: datetime | None = None) -> CheckOutResult:
        """Validate the claimed pickup person, then check out. Never raises."""

        try:
            now = now or now_local()
            pickup = self._pickup_from_request(request)

            if request.claims_person:
                validation = self._validator.validate(
                    org_id=org_id,
                    child_id=request.child_id,
                    person_type=request.pickup_person_type or "",
                    person_id=request.pickup_person_id or "",
                    now=now,
                )
                if not validation.is_valid:
                    logger.warning(
                        "Pickup blocked for child %s (%s %s): %s",
                        request.child_id,
                        request.pickup_person_type,
                        request.pickup_person_id,
                        validation.message,
                    )
                    return CheckOutResult(success=False, error=validation.message, blocked=True)
                pickup = pickup.with_validation(validation)

            return self.check_out(
                org_id=org_id,
                child_id=request.child_id,
                checked_out_by=request.checked_out_by,
                pickup=pickup,
                method=request.method,
                now=now,
            )
        except DomainError as e:
            return CheckOutResult(success=False, error=str(e))
        except Exception:
            logger.exception("Checkout failed for child %s", request.child_id)
            return CheckOutResult(success=False, error=MSG_CHECKOUT_FAILED)

    @staticmethod
    def _pickup_from_request(request: CheckOutRequest) -> PickupInfo:
        try:
            person_type = PersonType(request.pickup_person_type) if request.pickup_person_type else None
            method = VerificationMethod(request.verification_method) if request.verification_method else None
        except ValueError as e:
            raise ValidationError(f"Valor no válido: {e}") from e

        return PickupInfo(
            person_name=optional_text(request.pickup_person_name),
            relationship=optional_text(request.pickup_person_relationship),
            person_id=request.pickup_person_id,
            person_type=person_type,
            verified=bool(request.verified),
            verification_method=method,
            notes=optional_text(request.notes),
        )

    def mark_absent(
        self,
        *,
        org_id: str,
        child_id: str,
        work_date: date,
        notes: Optional[str] = None,
        status: AttendanceStatus = AttendanceStatus.ABSENT,
    ) -> AttendanceSession:
        status = _status(status)
        if status not in ABSENCE_STATUSES:
            raise ValidationError("Estado de ausencia no válido")

        child = self._require_child(org_id=org_id, child_id=child_id)

        existing = self._attendance.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=work_date)
        if existing and existing.check_in_time is not None:
            raise ValidationError("El niño ya registró entrada ese día")

        self._attendance.upsert_absence(
            org_id=org_id,
            child_id=child_id,
            classroom_id=child.classroom_id,
            work_date=work_date,
            status=status,
            notes=optional_text(notes),
        )
        return self._attendance.get_for_child_and_date(org_id=org_id, child_id=child_id, work_date=work_date)

    def get_by_date(self, *, org_id: str, work_date: date) -> Sequence[AttendanceSession]:
        return self._attendance.list_by_date(org_id=org_id, work_date=work_date)

    def get_by_child(
        self,
        *,
        org_id: str,
        child_id: str,
        start: date | None = None,
        end: date | None = None,
    ) -> Sequence[AttendanceSession]:
        if start and end and end < start:
            raise ValidationError("El rango de fechas no es válido")
        return self._attendance.list_for_child(org_id=org_id, child_id=child_id, start=start, end=end)

    def get_today_session(self, *, org_id: str, child_id: str, today: date | None = None) -> Optional[AttendanceSession]:
        return self._attendance.get_for_child_and_date(
            org_id=org_id, child_id=child_id, work_date=today or now_local().date()
        )

    def get_daily_stats(self, *, org_id: str, work_date: date) -> DailyStats:
        roster = self._children.list_active(org_id=org_id)
        records = {r.child_id: r for r in self._attendance.list_by_date(org_id=org_id, work_date=work_date)}

        statuses: Counter = Counter()
        checked_out = pending = verified = 0
        by_classroom: dict[str, dict[str, int]] = {}

        for child in roster:
            record = records.get(child.child_id)
            status = record.status if record else AttendanceStatus.ABSENT
            statuses[status] += 1

            room = by_classroom.setdefault(child.classroom_id or "", {"present": 0, "total": 0})
            room["total"] += 1

            if record is None or record.check_in_time is None:
                continue
            room["present"] += 1
            if record.check_out_time is not None:
                checked_out += 1
                if record.check_out_verified:
                    verified += 1
            else:
                pending += 1

        return DailyStats(
            work_date=work_date,
            total=len(roster),
            present=statuses[AttendanceStatus.PRESENT],
            absent=statuses[AttendanceStatus.ABSENT],
            late=statuses[AttendanceStatus.LATE],
            sick=statuses[AttendanceStatus.SICK],
            checked_out=checked_out,
            pending_checkout=pending,
            verified_pickups=verified,
            by_classroom=by_classroom,
        )
