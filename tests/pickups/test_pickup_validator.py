from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace

import pytest

from src.daycare_attendance.daycare_attendance.core.constants import EMERGENCY_CONTACT_ADVISORY
from src.daycare_attendance.daycare_attendance.core.enums import AuthorizationState, GuardianStatus
from src.daycare_attendance.daycare_attendance.pickups.strategies.base import (
    MSG_AUTHORIZED,
    MSG_CONTACT_NOT_FOUND,
    MSG_EXPIRED_OR_INACTIVE,
    MSG_GUARDIAN_BLOCKED,
    MSG_GUARDIAN_NOT_FOUND,
    MSG_PICKUP_NOT_FOUND,
    MSG_UNKNOWN_TYPE,
)
from tests.fakes import (
    ORG,
    OTHER_ORG,
    FakeProcedures,
    make_child,
    make_contact,
    make_guardian,
    make_pickup,
    make_world,
)

# 2024-03-04 is a Monday.
MONDAY = datetime(2024, 3, 4, 16, 0)
WEDNESDAY = datetime(2024, 3, 6, 16, 0)


@pytest.fixture
def world():
    repos, container = make_world()
    repos.children.add(make_child("sofia"))
    repos.children.add(make_child("mateo"))
    return repos, container


def _validate(container, person_type, person_id, *, child_id="sofia", now=MONDAY):
    return container.pickup_validator.validate(
        org_id=ORG, child_id=child_id, person_type=person_type, person_id=person_id, now=now
    )


def test_linked_active_guardian_is_authorized(world):
    repos, container = world
    repos.guardians.add(make_guardian("g1"), "sofia")

    result = _validate(container, "guardian", "g1")

    assert result.is_valid is True
    assert result.message == MSG_AUTHORIZED
    assert result.person_name == "Ana García"
    assert result.requires_id_check is False


def test_guardian_of_another_child_is_not_found(world):
    repos, container = world
    repos.guardians.add(make_guardian("g1"), "mateo")

    result = _validate(container, "guardian", "g1")

    assert result.is_valid is False
    assert result.message == MSG_GUARDIAN_NOT_FOUND


@pytest.mark.parametrize(
    "overrides",
    [{"status": GuardianStatus.INACTIVE}, {"can_pickup": False}],
)
def test_guardian_without_pickup_rights_is_blocked(world, overrides):
    repos, container = world
    repos.guardians.add(make_guardian("g1", **overrides), "sofia")

    result = _validate(container, "guardian", "g1")

    assert result.is_valid is False
    assert result.message == MSG_GUARDIAN_BLOCKED


def test_current_authorized_pickup_needs_id_check_until_verified(world):
    repos, container = world
    repos.pickups.add(make_pickup("p1", "sofia", valid_until=date(2024, 4, 1)))

    first = _validate(container, "authorized", "p1")
    assert first.is_valid is True
    assert first.requires_id_check is True

    container.pickup_service.verify(org_id=ORG, pickup_id="p1", verified_by="staff-1", now=MONDAY)
    second = _validate(container, "authorized", "p1")
    assert second.is_valid is True
    assert second.requires_id_check is False


def test_deactivated_pickup_is_rejected(world):
    repos, container = world
    repos.pickups.add(make_pickup("p1", "sofia", state=AuthorizationState.DEACTIVATED))

    result = _validate(container, "authorized", "p1")

    assert result.is_valid is False
    assert result.message == MSG_EXPIRED_OR_INACTIVE
    assert result.person_name == "Carmen Ruiz"


def test_valid_until_is_inclusive(world):
    repos, container = world
    repos.pickups.add(make_pickup("p1", "sofia", valid_until=date(2024, 3, 4)))

    assert _validate(container, "authorized", "p1", now=MONDAY).is_valid is True
    assert _validate(container, "authorized", "p1", now=datetime(2024, 3, 5, 9, 0)).is_valid is False


def test_allowed_days_restrict_pickup_to_listed_weekdays(world):
    repos, container = world
    repos.pickups.add(make_pickup("p1", "sofia", allowed_days=("monday", "tuesday")))

    assert _validate(container, "authorized", "p1", now=MONDAY).is_valid is True

    result = _validate(container, "authorized", "p1", now=WEDNESDAY)
    assert result.is_valid is False
    assert result.message == MSG_EXPIRED_OR_INACTIVE


def test_pickup_for_another_child_or_tenant_is_not_found(world):
    repos, container = world
    repos.pickups.add(make_pickup("p1", "mateo"))
    repos.pickups.add(make_pickup("p2", "sofia", organization_id=OTHER_ORG))

    assert _validate(container, "authorized", "p1").message == MSG_PICKUP_NOT_FOUND
    assert _validate(container, "authorized", "p2").message == MSG_PICKUP_NOT_FOUND


def test_emergency_contact_carries_in_person_advisory(world):
    repos, container = world
    repos.contacts.add(make_contact("c1", "sofia", restrictions="Solo con aviso previo"))

    result = _validate(container, "emergency_contact", "c1")

    assert result.is_valid is True
    assert result.requires_id_check is True
    assert result.restrictions.startswith(EMERGENCY_CONTACT_ADVISORY)
    assert "Solo con aviso previo" in result.restrictions


def test_emergency_contact_without_pickup_flag_is_rejected(world):
    repos, container = world
    repos.contacts.add(make_contact("c1", "sofia", can_pickup=False))

    result = _validate(container, "emergency_contact", "c1")

    assert result.is_valid is False
    assert result.message == MSG_EXPIRED_OR_INACTIVE


def test_unknown_contact_is_not_found(world):
    _, container = world
    assert _validate(container, "emergency_contact", "nope").message == MSG_CONTACT_NOT_FOUND


def test_unknown_person_type_is_rejected(world):
    _, container = world

    result = _validate(container, "uncle", "g1")

    assert result.is_valid is False
    assert result.message == MSG_UNKNOWN_TYPE


def test_missing_person_id_is_not_found(world):
    _, container = world
    assert _validate(container, "guardian", "").message == MSG_GUARDIAN_NOT_FOUND


def test_validation_has_no_side_effects(world):
    repos, container = world
    repos.pickups.add(make_pickup("p1", "sofia"))

    first = _validate(container, "authorized", "p1")
    second = _validate(container, "authorized", "p1")

    assert first == second
    assert repos.pickups.pickups["p1"].times_used == 0
    assert repos.attendance.rows == {}


def test_installed_procedures_answer_validation():
    procedures = FakeProcedures(
        available=True,
        validate_row={
            "is_valid": 1,
            "person_name": "Carmen Ruiz",
            "relationship": "Abuela",
            "photo_url": None,
            "restrictions": None,
            "requires_id_check": 0,
            "message": MSG_AUTHORIZED,
        },
    )
    repos, container = make_world(procedures=procedures)
    repos.children.add(make_child("sofia"))

    result = _validate(container, "authorized", "p1")

    assert result.is_valid is True
    assert result.person_name == "Carmen Ruiz"
    assert procedures.calls == ["validate"]


def test_empty_procedure_answer_is_a_denial_not_a_fallback():
    procedures = FakeProcedures(available=True, validate_row=None)
    repos, container = make_world(procedures=procedures)
    repos.children.add(make_child("sofia"))
    # Locally this guardian would pass; the procedure's "not found" still wins.
    repos.guardians.add(make_guardian("g1"), "sofia")

    result = _validate(container, "guardian", "g1")

    assert result.is_valid is False
    assert result.message == MSG_GUARDIAN_NOT_FOUND


def test_failing_procedure_falls_back_to_local_rules():
    procedures = FakeProcedures(fail=True)
    repos, container = make_world(procedures=procedures, settings=SimpleNamespace(PICKUP_PROCEDURES="on"))
    repos.children.add(make_child("sofia"))
    repos.pickups.add(make_pickup("p1", "sofia", allowed_days=("monday",)))

    assert _validate(container, "authorized", "p1", now=MONDAY).is_valid is True
    assert _validate(container, "authorized", "p1", now=WEDNESDAY).is_valid is False
    assert procedures.calls == ["validate", "validate"]
