from __future__ import annotations

from datetime import date, datetime

from src.daycare_attendance.daycare_attendance.attendance.model import PickupInfo
from tests.fakes import OTHER_ORG, ORG, ROOM_A, ROOM_B, make_child, make_world

DAY = date(2024, 3, 4)


def _seed():
    repos, container = make_world()
    for child_id, room in [("sofia", ROOM_A), ("mateo", ROOM_A), ("lucia", ROOM_B), ("diego", ROOM_B), ("nina", ROOM_B)]:
        repos.children.add(make_child(child_id, classroom_id=room))
    repos.children.add(make_child("otro", org=OTHER_ORG))
    return repos, container


def test_daily_stats_counts_roster_against_sessions():
    _, container = _seed()
    service = container.attendance_service

    service.check_in(org_id=ORG, child_id="sofia", classroom_id=ROOM_A, now=datetime(2024, 3, 4, 8, 0))
    service.check_out(
        org_id=ORG,
        child_id="sofia",
        pickup=PickupInfo(person_name="Ana García", verified=True),
        now=datetime(2024, 3, 4, 16, 0),
    )
    service.check_in(org_id=ORG, child_id="mateo", classroom_id=ROOM_A, status="late", now=datetime(2024, 3, 4, 9, 45))
    service.mark_absent(org_id=ORG, child_id="lucia", work_date=DAY, status="sick")
    service.mark_absent(org_id=ORG, child_id="diego", work_date=DAY)

    stats = service.get_daily_stats(org_id=ORG, work_date=DAY)

    assert stats.total == 5
    assert stats.present == 1
    assert stats.late == 1
    assert stats.sick == 1
    # diego was marked absent, nina has no record at all
    assert stats.absent == 2
    assert stats.checked_out == 1
    assert stats.pending_checkout == 1
    assert stats.verified_pickups == 1
    assert stats.by_classroom == {
        ROOM_A: {"present": 2, "total": 2},
        ROOM_B: {"present": 0, "total": 3},
    }


def test_daily_stats_for_empty_day():
    _, container = _seed()

    stats = container.attendance_service.get_daily_stats(org_id=ORG, work_date=DAY)

    assert stats.total == 5
    assert stats.absent == 5
    assert stats.present == stats.checked_out == stats.pending_checkout == 0
    assert stats.to_dict()["date"] == "2024-03-04"
