from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import qrcode

from ..attendance.model import AttendanceSession, CheckOutRequest
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_KIOSK_BADGE_PREFIX
from ..core.enums import CheckMethod
from ..core.exceptions import NotFoundError, ValidationError
from ..families.repository import ChildRepository

logger = logging.getLogger(__name__)

MSG_PICKUP_PERSON_REQUIRED = "Seleccione la persona que recoge al niño"


@dataclass
class KioskScanResult:
    action: str
    success: bool
    message: str
    session: Optional[AttendanceSession] = None
    blocked: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "success": self.success,
            "message": self.message,
            "session": self.session.to_dict() if self.session else None,
            "blocked": self.blocked,
            "warnings": list(self.warnings),
        }


class KioskService:
    """Self-service badge flow: each child carries a QR badge ``<prefix><child_id>``.

    A scan checks the child in, or checks them out when today's session is open.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        children: ChildRepository,
        *,
        badge_prefix: str = DEFAULT_KIOSK_BADGE_PREFIX,
    ):
        self._attendance = attendance
        self._children = children
        self._prefix = badge_prefix

    def badge_payload(self, child_id: str) -> str:
        return f"{self._prefix}{child_id}"

    def parse_badge(self, text: str) -> str:
        text = (text or "").strip()
        if not text.startswith(self._prefix) or len(text) == len(self._prefix):
            raise ValidationError("Código QR no válido")
        return text[len(self._prefix):]

    def badge_png(self, *, org_id: str, child_id: str) -> bytes:
        if not self._children.get_by_id(org_id=org_id, child_id=child_id):
            raise NotFoundError("Niño no encontrado")

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(self.badge_payload(child_id))
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    def scan(
        self,
        *,
        org_id: str,
        code: str,
        operator_id: Optional[str] = None,
        pickup_person_id: Optional[str] = None,
        pickup_person_type: Optional[str] = None,
        now: datetime | None = None,
    ) -> KioskScanResult:
        now = now or now_local()
        child_id = self.parse_badge(code)
        child = self._children.get_by_id(org_id=org_id, child_id=child_id)
        if not child:
            raise NotFoundError("Niño no encontrado")

        current = self._attendance.get_today_session(org_id=org_id, child_id=child_id, today=now.date())
        if current is not None and current.is_open:
            # Unattended checkout always names the pickup person so it gets validated.
            if not (pickup_person_id and pickup_person_type):
                logger.warning("Kiosk checkout refused for child %s: no pickup person given", child_id)
                return KioskScanResult(
                    action="check_out",
                    success=False,
                    message=MSG_PICKUP_PERSON_REQUIRED,
                    blocked=True,
                )
            result = self._attendance.check_out_with_data(
                org_id=org_id,
                request=CheckOutRequest(
                    child_id=child_id,
                    checked_out_by=operator_id,
                    pickup_person_id=pickup_person_id,
                    pickup_person_type=pickup_person_type,
                    method=CheckMethod.KIOSK,
                ),
                now=now,
            )
            if not result.success:
                return KioskScanResult(
                    action="check_out",
                    success=False,
                    message=result.error or "",
                    blocked=result.blocked,
                )
            return KioskScanResult(
                action="check_out",
                success=True,
                message=f"Salida registrada: {child.full_name}",
                session=result.session,
                warnings=result.warnings,
            )

        session = self._attendance.check_in(
            org_id=org_id,
            child_id=child_id,
            classroom_id=child.classroom_id or "",
            checked_in_by=operator_id,
            method=CheckMethod.KIOSK,
            now=now,
        )
        logger.info("Kiosk check-in for child %s", child_id)
        return KioskScanResult(
            action="check_in",
            success=True,
            message=f"Entrada registrada: {child.full_name}",
            session=session,
        )
