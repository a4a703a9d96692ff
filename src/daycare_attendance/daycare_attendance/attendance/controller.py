from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local
from ..common.http import body_date, body_flag, date_arg, json_api, json_body, org_id_from_request
from ..container import Container
from ..core.enums import AttendanceStatus
from .model import CheckOutRequest, DropOffInfo


def _drop_off_from(data: dict) -> DropOffInfo:
    drop_off = data.get("drop_off") or {}
    return DropOffInfo(
        person_name=drop_off.get("name"),
        relationship=drop_off.get("relationship"),
        guardian_id=drop_off.get("guardian_id"),
        authorized_pickup_id=drop_off.get("authorized_pickup_id"),
        notes=drop_off.get("notes"),
    )


def _checkout_request_from(data: dict) -> CheckOutRequest:
    return CheckOutRequest(
        child_id=str(data.get("child_id") or ""),
        checked_out_by=data.get("checked_out_by"),
        pickup_person_id=data.get("pickup_person_id"),
        pickup_person_type=data.get("pickup_person_type"),
        pickup_person_name=data.get("pickup_person_name"),
        pickup_person_relationship=data.get("pickup_person_relationship"),
        verified=body_flag(data, "verified"),
        verification_method=data.get("verification_method"),
        notes=data.get("notes"),
    )


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @json_api
    def check_in():
        org_id = org_id_from_request()
        data = json_body()
        session = service.check_in(
            org_id=org_id,
            child_id=str(data.get("child_id") or ""),
            classroom_id=str(data.get("classroom_id") or ""),
            checked_in_by=data.get("checked_in_by"),
            drop_off=_drop_off_from(data),
            status=data.get("status") or AttendanceStatus.PRESENT.value,
        )
        return jsonify({"success": True, "message": "Entrada registrada", "session": session.to_dict()}), 201

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @json_api
    def check_out():
        org_id = org_id_from_request()
        result = service.check_out_with_data(org_id=org_id, request=_checkout_request_from(json_body()))

        body = result.to_dict()
        if result.success:
            body["message"] = "Salida registrada"
            return jsonify(body), 200

        body["message"] = result.error
        # A blocked pickup is a refusal, not a malformed request.
        return jsonify(body), 403 if result.blocked else 400

    @app.route("/api/attendance/absent", methods=["POST"], endpoint="attendance_absent")
    @json_api
    def mark_absent():
        org_id = org_id_from_request()
        data = json_body()
        session = service.mark_absent(
            org_id=org_id,
            child_id=str(data.get("child_id") or ""),
            work_date=body_date(data, "date", default=now_local().date()),
            notes=data.get("notes"),
            status=data.get("status") or AttendanceStatus.ABSENT.value,
        )
        return jsonify({"success": True, "message": "Ausencia registrada", "session": session.to_dict()})

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_by_date")
    @json_api
    def by_date():
        org_id = org_id_from_request()
        work_date = date_arg("date", default=now_local().date())
        sessions = service.get_by_date(org_id=org_id, work_date=work_date)
        return jsonify({"success": True, "date": work_date.isoformat(), "sessions": [s.to_dict() for s in sessions]})

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @json_api
    def daily_stats():
        org_id = org_id_from_request()
        stats = service.get_daily_stats(org_id=org_id, work_date=date_arg("date", default=now_local().date()))
        return jsonify({"success": True, "stats": stats.to_dict()})

    @app.route("/api/children/<child_id>/attendance", methods=["GET"], endpoint="child_attendance")
    @json_api
    def child_attendance(child_id: str):
        org_id = org_id_from_request()
        sessions = service.get_by_child(
            org_id=org_id,
            child_id=child_id,
            start=date_arg("start"),
            end=date_arg("end"),
        )
        return jsonify({"success": True, "sessions": [s.to_dict() for s in sessions]})

    @app.route("/api/children/<child_id>/program-hours", methods=["GET"], endpoint="child_program_hours")
    @json_api
    def child_program_hours(child_id: str):
        org_id = org_id_from_request()
        programs = container.program_hours_service
        vpk = programs.get_vpk_hours_summary(org_id=org_id, child_id=child_id)
        sr = programs.get_sr_hours_summary(org_id=org_id, child_id=child_id, week_start=date_arg("week_start"))
        return jsonify(
            {
                "success": True,
                "vpk": vpk.to_dict() if vpk else None,
                "sr": sr.to_dict() if sr else None,
            }
        )

