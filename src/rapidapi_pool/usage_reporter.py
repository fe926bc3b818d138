"""
USAGE REPORTER
==============

Vue lecture seule sur le registre + point d'entrée du reset mensuel.

Le reset n'est jamais planifié ici: un job externe (cron) appelle
reset_monthly() une fois par période.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from utils.logger import get_logger

from config import USAGE_WARNING_PCT
from .key_registry import KeyRegistry
from .rotation_scheduler import is_peak_window, local_now

logger = get_logger("USAGE_REPORTER")


class UsageReporter:
    """
    Operational view of key usage

    Usage:
        reporter = UsageReporter(registry)
        print(reporter.stats())
        reporter.reset_monthly()    # from the monthly job
    """

    def __init__(self, registry: KeyRegistry, warning_pct: int = USAGE_WARNING_PCT):
        self.registry = registry
        self.warning_pct = warning_pct

    def stats(self) -> Dict[str, Dict]:
        return self.registry.stats()

    def reset_monthly(self) -> bool:
        logger.info("Monthly reset requested")
        return self.registry.reset_period()

    def get_status(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Pool-level summary for monitoring"""
        now = now or local_now()
        keys = self.registry.list_keys()

        near_limit = [k.id for k in keys if k.usage_percentage >= self.warning_pct]
        if near_limit:
            logger.warning(f"Keys near monthly limit: {', '.join(near_limit)}")

        return {
            "total_keys": len(keys),
            "active_keys": len(self.registry.list_active()),
            "total_calls": sum(k.calls_this_month for k in keys),
            "total_remaining": sum(k.remaining_calls for k in keys if k.is_active),
            "mode": "parallel" if is_peak_window(now) else "sequential",
            "near_limit": near_limit,
        }


__all__ = [
    "UsageReporter",
]
