"""Currency rule for explicit pickup authorizations.

A record is current iff it is ACTIVE, not past ``valid_until`` and, when it
carries a weekday allowlist, ``today`` falls on one of those days.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import weekday_name
from ..core.enums import AuthorizationState
from .model import AuthorizedPickup, EmergencyContact


def is_current(
    *,
    state: AuthorizationState,
    valid_until: Optional[date],
    allowed_days: Sequence[str],
    today: date,
) -> bool:
    if state != AuthorizationState.ACTIVE:
        return False
    if valid_until is not None and valid_until < today:
        return False
    if allowed_days and weekday_name(today) not in allowed_days:
        return False
    return True


def pickup_is_current(pickup: AuthorizedPickup, today: date) -> bool:
    return is_current(
        state=pickup.state,
        valid_until=pickup.valid_until,
        allowed_days=pickup.allowed_days,
        today=today,
    )


def contact_is_current(contact: EmergencyContact, today: date) -> bool:
    return contact.can_pickup and is_current(
        state=contact.state,
        valid_until=contact.valid_until,
        allowed_days=contact.allowed_days,
        today=today,
    )
