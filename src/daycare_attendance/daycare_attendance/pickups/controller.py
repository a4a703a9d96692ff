from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import body_date, json_api, json_body, org_id_from_request
from ..container import Container
from ..core.enums import VerificationMethod
from ..core.exceptions import ValidationError
from .model import NewAuthorizedPickup

_DATE_FIELDS = ("valid_from", "valid_until")


def _new_pickup_from(data: dict) -> NewAuthorizedPickup:
    method = data.get("verification_method")
    try:
        verification_method = VerificationMethod(method) if method else None
    except ValueError as e:
        raise ValidationError(f"Método de verificación no válido: {method}") from e

    return NewAuthorizedPickup(
        child_id=str(data.get("child_id") or ""),
        name=data.get("name") or "",
        relationship=data.get("relationship") or "",
        phone=data.get("phone") or "",
        photo_url=data.get("photo_url"),
        id_document_type=data.get("id_document_type"),
        id_document_number=data.get("id_document_number"),
        id_document_url=data.get("id_document_url"),
        valid_from=body_date(data, "valid_from"),
        valid_until=body_date(data, "valid_until"),
        allowed_days=tuple(data.get("allowed_days") or ()),
        time_restrictions=data.get("time_restrictions"),
        restrictions=data.get("restrictions"),
        verification_method=verification_method,
        notes=data.get("notes"),
    )


def register(app: Flask, container: Container) -> None:
    validator = container.pickup_validator
    service = container.pickup_service

    @app.route("/api/children/<child_id>/authorized-pickups", methods=["GET"], endpoint="child_authorized_pickups")
    @json_api
    def authorized_pickups(child_id: str):
        org_id = org_id_from_request()
        people = service.list_authorized_for(org_id=org_id, child_id=child_id)
        return jsonify({"success": True, "people": [p.to_dict() for p in people]})

    @app.route("/api/children/<child_id>/pickup-records", methods=["GET"], endpoint="child_pickup_records")
    @json_api
    def pickup_records(child_id: str):
        org_id = org_id_from_request()
        records = service.get_by_child(org_id=org_id, child_id=child_id)
        return jsonify({"success": True, "records": [r.to_dict() for r in records]})

    @app.route("/api/pickups/validate", methods=["POST"], endpoint="pickup_validate")
    @json_api
    def validate():
        org_id = org_id_from_request()
        data = json_body()
        result = validator.validate(
            org_id=org_id,
            child_id=str(data.get("child_id") or ""),
            person_type=str(data.get("person_type") or ""),
            person_id=str(data.get("person_id") or ""),
        )
        return jsonify({"success": True, "result": result.to_dict()})

    @app.route("/api/pickups", methods=["POST"], endpoint="pickup_create")
    @json_api
    def create():
        org_id = org_id_from_request()
        data = json_body()
        pickup = service.create(org_id=org_id, data=_new_pickup_from(data), added_by=data.get("added_by"))
        return jsonify({"success": True, "message": "Persona autorizada registrada", "pickup": pickup.to_dict()}), 201

    @app.route("/api/pickups/<pickup_id>", methods=["GET"], endpoint="pickup_get")
    @json_api
    def get(pickup_id: str):
        org_id = org_id_from_request()
        return jsonify({"success": True, "pickup": service.get(org_id=org_id, pickup_id=pickup_id).to_dict()})

    @app.route("/api/pickups/<pickup_id>", methods=["PATCH"], endpoint="pickup_update")
    @json_api
    def update(pickup_id: str):
        org_id = org_id_from_request()
        changes = json_body()
        for key in _DATE_FIELDS:
            if key in changes:
                changes[key] = body_date(changes, key)
        pickup = service.update(org_id=org_id, pickup_id=pickup_id, changes=changes)
        return jsonify({"success": True, "pickup": pickup.to_dict()})

    @app.route("/api/pickups/<pickup_id>/deactivate", methods=["POST"], endpoint="pickup_deactivate")
    @json_api
    def deactivate(pickup_id: str):
        service.deactivate(org_id=org_id_from_request(), pickup_id=pickup_id)
        return jsonify({"success": True, "message": "Autorización desactivada"})

    @app.route("/api/pickups/<pickup_id>/reactivate", methods=["POST"], endpoint="pickup_reactivate")
    @json_api
    def reactivate(pickup_id: str):
        service.reactivate(org_id=org_id_from_request(), pickup_id=pickup_id)
        return jsonify({"success": True, "message": "Autorización reactivada"})

    @app.route("/api/pickups/<pickup_id>/verify", methods=["POST"], endpoint="pickup_verify")
    @json_api
    def verify(pickup_id: str):
        org_id = org_id_from_request()
        data = json_body()
        pickup = service.verify(
            org_id=org_id,
            pickup_id=pickup_id,
            verified_by=data.get("verified_by"),
            notes=data.get("notes"),
        )
        return jsonify({"success": True, "pickup": pickup.to_dict()})

    @app.route("/api/pickups/expired", methods=["GET"], endpoint="pickups_expired")
    @json_api
    def expired():
        records = service.list_expired(org_id=org_id_from_request())
        return jsonify({"success": True, "records": [r.to_dict() for r in records]})

    @app.route("/api/pickups/expiring", methods=["GET"], endpoint="pickups_expiring")
    @json_api
    def expiring():
        org_id = org_id_from_request()
        days = request.args.get("days", type=int)
        records = service.list_expiring_soon(org_id=org_id, days=days)
        return jsonify({"success": True, "records": [r.to_dict() for r in records]})
