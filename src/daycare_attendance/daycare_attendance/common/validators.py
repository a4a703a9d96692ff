from __future__ import annotations

from typing import Optional

from ..core.constants import WEEKDAY_NAMES
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} es obligatorio")
    return value.strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def normalize_allowed_days(days) -> tuple[str, ...]:
    """Lowercase and validate a weekday allowlist; empty means no restriction."""

    out: list[str] = []
    for d in days or ():
        name = str(d).strip().lower()
        if not name:
            continue
        if name not in WEEKDAY_NAMES:
            raise ValidationError(f"Día no válido: {d}")
        if name not in out:
            out.append(name)
    return tuple(out)
