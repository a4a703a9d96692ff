from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_EXPIRING_SOON_DAYS, DEFAULT_KIOSK_BADGE_PREFIX, DEFAULT_VPK_MAX_DAILY_HOURS
from .core.enums import ProcedureMode
from .core.exceptions import ValidationError
from .database.connection import DBConfig, DatabaseConnection
from .families.mysql_family_repository import MySQLChildRepository, MySQLGuardianRepository
from .families.repository import ChildRepository, GuardianRepository
from .kiosk.service import KioskService
from .pickups.factory import PickupStrategyFactory
from .pickups.mysql_pickup_repository import (
    MySQLAuthorizedPickupRepository,
    MySQLEmergencyContactRepository,
    MySQLPickupProcedures,
)
from .pickups.repository import AuthorizedPickupRepository, EmergencyContactRepository, PickupProcedures
from .pickups.service import AuthorizedPickupService, PickupValidator
from .pickups.strategies.local_strategy import LocalPickupStrategy
from .programs.calculator.standard_calculator import StandardProgramHoursCalculator
from .programs.mysql_program_repository import MySQLProgramRepository
from .programs.repository import ProgramRepository
from .programs.service import ProgramHoursService


@dataclass(frozen=True)
class Container:
    children_repo: ChildRepository
    guardians_repo: GuardianRepository
    pickups_repo: AuthorizedPickupRepository
    contacts_repo: EmergencyContactRepository
    attendance_repo: AttendanceRepository
    programs_repo: ProgramRepository

    pickup_validator: PickupValidator
    pickup_service: AuthorizedPickupService
    program_hours_service: ProgramHoursService
    attendance_service: AttendanceService
    kiosk_service: KioskService


def _procedure_mode(value: Any) -> ProcedureMode:
    try:
        return ProcedureMode(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"PICKUP_PROCEDURES must be auto, on or off (got {value!r})") from e


def wire_services(
    *,
    children_repo: ChildRepository,
    guardians_repo: GuardianRepository,
    pickups_repo: AuthorizedPickupRepository,
    contacts_repo: EmergencyContactRepository,
    attendance_repo: AttendanceRepository,
    programs_repo: ProgramRepository,
    procedures: PickupProcedures,
    settings: Any = None,
) -> Container:
    """Compose services over any repository implementations (MySQL or in-memory)."""

    mode = _procedure_mode(getattr(settings, "PICKUP_PROCEDURES", ProcedureMode.AUTO.value))
    local = LocalPickupStrategy(guardians_repo, pickups_repo, contacts_repo)
    strategy = PickupStrategyFactory(procedures=procedures, local=local).select(mode)

    pickup_validator = PickupValidator(strategy)
    pickup_service = AuthorizedPickupService(
        strategy,
        children_repo,
        guardians_repo,
        pickups_repo,
        expiring_soon_days=int(getattr(settings, "EXPIRING_SOON_DAYS", DEFAULT_EXPIRING_SOON_DAYS)),
    )
    program_hours_service = ProgramHoursService(
        children_repo,
        programs_repo,
        calculator=StandardProgramHoursCalculator(
            vpk_max_daily_hours=float(getattr(settings, "VPK_MAX_DAILY_HOURS", DEFAULT_VPK_MAX_DAILY_HOURS))
        ),
    )
    attendance_service = AttendanceService(
        attendance_repo,
        children_repo,
        pickup_validator,
        pickup_service,
        program_hours_service,
    )
    kiosk_service = KioskService(
        attendance_service,
        children_repo,
        badge_prefix=str(getattr(settings, "KIOSK_BADGE_PREFIX", DEFAULT_KIOSK_BADGE_PREFIX)),
    )

    return Container(
        children_repo=children_repo,
        guardians_repo=guardians_repo,
        pickups_repo=pickups_repo,
        contacts_repo=contacts_repo,
        attendance_repo=attendance_repo,
        programs_repo=programs_repo,
        pickup_validator=pickup_validator,
        pickup_service=pickup_service,
        program_hours_service=program_hours_service,
        attendance_service=attendance_service,
        kiosk_service=kiosk_service,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire_services(
        children_repo=MySQLChildRepository(conn),
        guardians_repo=MySQLGuardianRepository(conn),
        pickups_repo=MySQLAuthorizedPickupRepository(conn),
        contacts_repo=MySQLEmergencyContactRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        programs_repo=MySQLProgramRepository(conn),
        procedures=MySQLPickupProcedures(conn),
        settings=settings,
    )
