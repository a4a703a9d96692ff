from __future__ import annotations

import pytest

from src.daycare_attendance.daycare_attendance.common.datetime_utils import now_local
from src.daycare_attendance.daycare_attendance.core.enums import AuthorizationState
from src.daycare_attendance.daycare_attendance.main import create_app
from tests.fakes import ORG, ROOM_A, make_child, make_guardian, make_pickup, make_world

HEADERS = {"X-Organization-Id": ORG}


@pytest.fixture
def api(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    repos, container = make_world()
    repos.children.add(make_child("sofia"))
    repos.guardians.add(make_guardian("g1"), "sofia")
    app = create_app(container)
    return repos, app.test_client()


def test_health(api):
    _, client = api
    assert client.get("/health").get_json() == {"success": True, "status": "ok"}


def test_missing_organization_header_is_bad_request(api):
    _, client = api

    resp = client.get("/api/attendance")

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Falta el encabezado X-Organization-Id"}


def test_check_in_then_check_out_with_guardian(api):
    _, client = api

    resp = client.post(
        "/api/attendance/check-in",
        json={"child_id": "sofia", "classroom_id": ROOM_A, "drop_off": {"name": "Ana García", "guardian_id": "g1"}},
        headers=HEADERS,
    )
    assert resp.status_code == 201
    assert resp.get_json()["session"]["drop_off"]["guardian_id"] == "g1"

    again = client.post("/api/attendance/check-in", json={"child_id": "sofia", "classroom_id": ROOM_A}, headers=HEADERS)
    assert again.status_code == 400

    out = client.post(
        "/api/attendance/check-out",
        json={"child_id": "sofia", "pickup_person_id": "g1", "pickup_person_type": "guardian", "verified": True},
        headers=HEADERS,
    )
    body = out.get_json()
    assert out.status_code == 200
    assert body["success"] is True
    assert body["session"]["pickup"]["name"] == "Ana García"
    assert body["session"]["pickup"]["verified"] is True

    today = client.get("/api/attendance", headers=HEADERS).get_json()
    assert len(today["sessions"]) == 1


def test_blocked_pickup_is_forbidden(api):
    repos, client = api
    repos.pickups.add(make_pickup("p1", "sofia", state=AuthorizationState.DEACTIVATED))
    client.post("/api/attendance/check-in", json={"child_id": "sofia", "classroom_id": ROOM_A}, headers=HEADERS)

    resp = client.post(
        "/api/attendance/check-out",
        json={"child_id": "sofia", "pickup_person_id": "p1", "pickup_person_type": "authorized"},
        headers=HEADERS,
    )

    assert resp.status_code == 403
    assert resp.get_json()["blocked"] is True
    assert resp.get_json()["message"] == "Autorización expirada o inactiva"
    session = repos.attendance.get_for_child_and_date(org_id=ORG, child_id="sofia", work_date=now_local().date())
    assert session.check_out_time is None


def test_check_out_without_session_is_bad_request(api):
    _, client = api

    resp = client.post("/api/attendance/check-out", json={"child_id": "sofia"}, headers=HEADERS)

    assert resp.status_code == 400
    assert resp.get_json()["blocked"] is False


@pytest.mark.parametrize("flag", ["false", "true", 1, 0])
def test_check_out_verified_must_be_a_json_boolean(api, flag):
    repos, client = api
    client.post("/api/attendance/check-in", json={"child_id": "sofia", "classroom_id": ROOM_A}, headers=HEADERS)

    resp = client.post(
        "/api/attendance/check-out",
        json={"child_id": "sofia", "pickup_person_id": "g1", "pickup_person_type": "guardian", "verified": flag},
        headers=HEADERS,
    )

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "El campo verified debe ser verdadero o falso"}
    session = repos.attendance.get_for_child_and_date(org_id=ORG, child_id="sofia", work_date=now_local().date())
    assert session.check_out_time is None


def test_check_out_verified_false_is_recorded_as_unverified(api):
    _, client = api
    client.post("/api/attendance/check-in", json={"child_id": "sofia", "classroom_id": ROOM_A}, headers=HEADERS)

    resp = client.post(
        "/api/attendance/check-out",
        json={"child_id": "sofia", "pickup_person_id": "g1", "pickup_person_type": "guardian", "verified": False},
        headers=HEADERS,
    )

    assert resp.status_code == 200
    assert resp.get_json()["session"]["pickup"]["verified"] is False


def test_absence_and_stats(api):
    _, client = api

    resp = client.post(
        "/api/attendance/absent",
        json={"child_id": "sofia", "date": "2024-03-04", "status": "sick"},
        headers=HEADERS,
    )
    assert resp.status_code == 200
    assert resp.get_json()["session"]["status"] == "sick"

    stats = client.get("/api/attendance/stats?date=2024-03-04", headers=HEADERS).get_json()["stats"]
    assert stats["total"] == 1
    assert stats["sick"] == 1

    bad = client.get("/api/attendance/stats?date=04/03/2024", headers=HEADERS)
    assert bad.status_code == 400


def test_unknown_child_is_not_found(api):
    _, client = api

    resp = client.post("/api/attendance/absent", json={"child_id": "ghost"}, headers=HEADERS)

    assert resp.status_code == 404


def test_pickup_registry_endpoints(api):
    repos, client = api

    created = client.post(
        "/api/pickups",
        json={
            "child_id": "sofia",
            "name": "Carmen Ruiz",
            "relationship": "Abuela",
            "phone": "305-555-0199",
            "valid_until": "2099-12-31",
            "allowed_days": ["monday", "friday"],
        },
        headers=HEADERS,
    )
    assert created.status_code == 201
    pickup_id = created.get_json()["pickup"]["id"]

    patched = client.patch(f"/api/pickups/{pickup_id}", json={"valid_until": "2100-01-31"}, headers=HEADERS)
    assert patched.get_json()["pickup"]["valid_until"] == "2100-01-31"

    check = client.post(
        "/api/pickups/validate",
        json={"child_id": "sofia", "person_type": "guardian", "person_id": "g1"},
        headers=HEADERS,
    ).get_json()
    assert check["result"]["is_valid"] is True

    assert client.post(f"/api/pickups/{pickup_id}/deactivate", headers=HEADERS).status_code == 200
    assert repos.pickups.pickups[pickup_id].state == AuthorizationState.DEACTIVATED

    people = client.get("/api/children/sofia/authorized-pickups", headers=HEADERS).get_json()["people"]
    assert [p["person_id"] for p in people] == ["g1"]

    assert client.get("/api/pickups/missing", headers=HEADERS).status_code == 404


def test_kiosk_badge_and_scan_cycle(api):
    _, client = api

    badge = client.get("/api/kiosk/children/sofia/badge.png", headers=HEADERS)
    assert badge.status_code == 200
    assert badge.mimetype == "image/png"
    assert badge.data.startswith(b"\x89PNG")

    first = client.post("/api/kiosk/scan", json={"code": "CHILD:sofia", "operator_id": "kiosk-1"}, headers=HEADERS)
    assert first.status_code == 200
    assert first.get_json()["action"] == "check_in"
    assert first.get_json()["session"]["classroom_id"] == ROOM_A

    second = client.post(
        "/api/kiosk/scan",
        json={"code": "CHILD:sofia", "pickup_person_id": "g1", "pickup_person_type": "guardian"},
        headers=HEADERS,
    )
    assert second.status_code == 200
    assert second.get_json()["action"] == "check_out"
    assert second.get_json()["session"]["pickup"]["name"] == "Ana García"
    assert second.get_json()["session"]["pickup"]["guardian_id"] == "g1"

    # Checked out is terminal for the day.
    third = client.post("/api/kiosk/scan", json={"code": "CHILD:sofia"}, headers=HEADERS)
    assert third.status_code == 400
    assert third.get_json()["message"] == "El niño ya registró entrada hoy"


def test_kiosk_rejects_foreign_codes(api):
    _, client = api

    assert client.post("/api/kiosk/scan", json={"code": "EMP:7"}, headers=HEADERS).status_code == 400
    assert client.post("/api/kiosk/scan", json={}, headers=HEADERS).status_code == 400
    assert client.get("/api/kiosk/children/ghost/badge.png", headers=HEADERS).status_code == 404


def test_program_hours_endpoint_without_enrollments(api):
    _, client = api

    body = client.get("/api/children/sofia/program-hours", headers=HEADERS).get_json()

    assert body == {"success": True, "vpk": None, "sr": None}


def test_child_history_rejects_inverted_range(api):
    _, client = api

    resp = client.get(
        "/api/children/sofia/attendance?start=2024-03-10&end=2024-03-01",
        headers=HEADERS,
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "El rango de fechas no es válido"


def test_kiosk_checkout_without_pickup_person_is_refused(api):
    repos, client = api
    client.post("/api/kiosk/scan", json={"code": "CHILD:sofia"}, headers=HEADERS)

    for body in (
        {"code": "CHILD:sofia"},
        {"code": "CHILD:sofia", "pickup_person_type": "guardian"},
        {"code": "CHILD:sofia", "pickup_person_id": "g1"},
    ):
        resp = client.post("/api/kiosk/scan", json=body, headers=HEADERS)
        assert resp.status_code == 403
        assert resp.get_json()["action"] == "check_out"
        assert resp.get_json()["blocked"] is True
        assert resp.get_json()["message"] == "Seleccione la persona que recoge al niño"

    session = repos.attendance.get_for_child_and_date(org_id=ORG, child_id="sofia", work_date=now_local().date())
    assert session.is_open
    assert repos.attendance.close_calls == 0


def test_kiosk_checkout_with_unauthorized_person_is_blocked(api):
    repos, client = api
    repos.pickups.add(make_pickup("p1", "sofia", state=AuthorizationState.DEACTIVATED))
    client.post("/api/kiosk/scan", json={"code": "CHILD:sofia"}, headers=HEADERS)

    resp = client.post(
        "/api/kiosk/scan",
        json={"code": "CHILD:sofia", "pickup_person_id": "p1", "pickup_person_type": "authorized"},
        headers=HEADERS,
    )

    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Autorización expirada o inactiva"
