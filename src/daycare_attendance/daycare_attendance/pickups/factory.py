from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.enums import ProcedureMode
from ..core.exceptions import StoreError
from .repository import PickupProcedures
from .strategies.base import PickupLookupStrategy
from .strategies.procedure_strategy import StoredProcedurePickupStrategy

logger = logging.getLogger(__name__)


@dataclass
class PickupStrategyFactory:
    """Factory Pattern: choose the lookup strategy once, at startup."""

    procedures: PickupProcedures
    local: PickupLookupStrategy

    def select(self, mode: ProcedureMode = ProcedureMode.AUTO) -> PickupLookupStrategy:
        if mode == ProcedureMode.OFF:
            return self.local
        if mode == ProcedureMode.ON:
            return StoredProcedurePickupStrategy(self.procedures, fallback=self.local)

        try:
            available = self.procedures.is_available()
        except StoreError:
            logger.warning("Could not probe pickup procedures; using local lookups", exc_info=True)
            available = False

        if available:
            logger.info("Pickup procedures installed; using stored-procedure lookups")
            return StoredProcedurePickupStrategy(self.procedures, fallback=self.local)

        logger.info("Pickup procedures not installed; using local lookups")
        return self.local
