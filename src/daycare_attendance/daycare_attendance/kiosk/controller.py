from __future__ import annotations

import io

from flask import Flask, jsonify, send_file

from ..common.http import json_api, json_body, org_id_from_request
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    kiosk = container.kiosk_service

    @app.route("/api/kiosk/children/<child_id>/badge.png", methods=["GET"], endpoint="kiosk_badge")
    @json_api
    def badge(child_id: str):
        png = kiosk.badge_png(org_id=org_id_from_request(), child_id=child_id)
        return send_file(io.BytesIO(png), mimetype="image/png")

    @app.route("/api/kiosk/scan", methods=["POST"], endpoint="kiosk_scan")
    @json_api
    def scan():
        """Check a child in, or out when today's session is open, from a scanned badge."""
        org_id = org_id_from_request()
        data = json_body()
        code = str(data.get("code") or "").strip()
        if not code:
            raise ValidationError("El código QR es obligatorio")

        result = kiosk.scan(
            org_id=org_id,
            code=code,
            operator_id=data.get("operator_id"),
            pickup_person_id=data.get("pickup_person_id"),
            pickup_person_type=data.get("pickup_person_type"),
        )
        if result.success:
            return jsonify(result.to_dict()), 200
        return jsonify(result.to_dict()), 403 if result.blocked else 400
