from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Daily status stored on the attendance session."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    SICK = "sick"


class PersonType(str, Enum):
    """Kinds of people who may drop off or pick up a child."""

    GUARDIAN = "guardian"
    AUTHORIZED = "authorized"
    EMERGENCY_CONTACT = "emergency_contact"


class AuthorizationState(str, Enum):
    """Lifecycle of an authorized pickup / emergency contact record."""

    ACTIVE = "active"
    DEACTIVATED = "deactivated"


class GuardianStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class VerificationMethod(str, Enum):
    """How the operator confirmed the identity of the pickup person."""

    ID_CHECK = "id_check"
    PHOTO_MATCH = "photo_match"
    KNOWN_PERSON = "known_person"
    STAFF_OVERRIDE = "staff_override"


class CheckMethod(str, Enum):
    MANUAL = "manual"
    KIOSK = "kiosk"
    APP = "app"


class ProgramType(str, Enum):
    """Funding program a child is enrolled in."""

    PRIVATE = "private"
    VPK = "vpk"
    VPK_WRAPAROUND = "vpk_wraparound"
    SCHOOL_READINESS = "school_readiness"
    SR_COPAY = "sr_copay"


class ProcedureMode(str, Enum):
    """Whether pickup lookups go through the stored procedures."""

    AUTO = "auto"
    ON = "on"
    OFF = "off"
