from __future__ import annotations

import logging
from datetime import date
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import NotFoundError, StoreError, ValidationError
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

ORG_HEADER = "X-Organization-Id"


def org_id_from_request() -> str:
    org_id = (request.headers.get(ORG_HEADER) or "").strip()
    if not org_id:
        raise ValidationError(f"Falta el encabezado {ORG_HEADER}")
    return org_id


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("El cuerpo de la solicitud debe ser un objeto JSON")
    return data


def _parse_date(raw: Any, default: Optional[date]) -> Optional[date]:
    raw = str(raw or "").strip()
    if not raw:
        return default
    try:
        return parse_iso_date(raw)
    except ValueError as e:
        raise ValidationError(f"Fecha no válida: {raw}") from e


def date_arg(name: str, *, default: Optional[date] = None) -> Optional[date]:
    return _parse_date(request.args.get(name), default)


def body_date(data: dict[str, Any], name: str, *, default: Optional[date] = None) -> Optional[date]:
    return _parse_date(data.get(name), default)


def body_flag(data: dict[str, Any], name: str, *, default: bool = False) -> bool:
    value = data.get(name)
    if value is None:
        return default
    # Only JSON true/false; a string such as "false" would otherwise read as set.
    if not isinstance(value, bool):
        raise ValidationError(f"El campo {name} debe ser verdadero o falso")
    return value


def json_api(view):
    """Map domain errors to ``{"success": false, "message": ...}`` responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except NotFoundError as e:
            return jsonify({"success": False, "message": str(e)}), 404
        except StoreError:
            logger.exception("Store error on %s %s", request.method, request.path)
            return jsonify({"success": False, "message": "Servicio de datos no disponible"}), 503
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            return jsonify({"success": False, "message": "Error interno del sistema"}), 500

    return wrapper
