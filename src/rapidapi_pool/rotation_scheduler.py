"""
ROTATION SCHEDULER
==================

Sélection des clés par fenêtre horaire.

- Peak (12h → 2h): pool de 3 clés, appels parallèles
- Conserve (2h → 12h): pool de 2 clés, appels séquentiels

Le curseur de rotation avance à chaque sélection pour répartir
l'usage cumulé sur toutes les clés, quelle que soit la politique.
"""

import threading
from datetime import datetime
from typing import List

import pytz

from utils.logger import get_logger

from config import (
    PEAK_POOL_SIZE,
    CONSERVE_POOL_SIZE,
    PEAK_START_HOUR,
    PEAK_END_HOUR,
    SCHEDULER_TIMEZONE,
)
from .key_registry import KeyRegistry, CredentialRecord

logger = get_logger("ROTATION_SCHEDULER")


# ============================================================================
# Time windows
# ============================================================================

def scheduler_timezone(name: str = SCHEDULER_TIMEZONE):
    """pytz zone for the peak window, None = server local time"""
    if not name:
        return None
    return pytz.timezone(name)


def local_now(tz=None) -> datetime:
    tz = scheduler_timezone() if tz is None else tz
    return datetime.now(tz) if tz else datetime.now()


def is_peak_window(current_time: datetime, tz=None) -> bool:
    """
    Peak = hour in [12, 24) or [0, 2).

    Start hour inclusive, end hour exclusive: 12:00 is peak, 02:00 is not.
    Aware datetimes are converted to the scheduler timezone first.
    """
    tz = scheduler_timezone() if tz is None else tz
    if tz is not None and current_time.tzinfo is not None:
        current_time = current_time.astimezone(tz)

    hour = current_time.hour
    return hour >= PEAK_START_HOUR or hour < PEAK_END_HOUR


# ============================================================================
# Rotation Scheduler
# ============================================================================

class RotationScheduler:
    """
    Round-robin key selection over the active pool

    Usage:
        scheduler = RotationScheduler(registry)
        keys = scheduler.select_for_peak()       # up to 3 keys
        keys = scheduler.select_for_conserve()   # up to 2 keys
    """

    def __init__(self, registry: KeyRegistry):
        self.registry = registry
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def cursor(self) -> int:
        return self._cursor

    def select_for_peak(self, pool_size: int = PEAK_POOL_SIZE) -> List[CredentialRecord]:
        """Keys for peak hours (parallel calls)"""
        keys = self._select(pool_size, "peak")
        logger.info(f"Peak hour keys: {', '.join(k.id for k in keys)}")
        return keys

    def select_for_conserve(self, pool_size: int = CONSERVE_POOL_SIZE) -> List[CredentialRecord]:
        """Keys for conserve hours (sequential calls)"""
        keys = self._select(pool_size, "conserve")
        logger.info(f"Conserve hour keys: {', '.join(k.id for k in keys)}")
        return keys

    def _select(self, pool_size: int, policy: str) -> List[CredentialRecord]:
        with self._lock:
            active = self.registry.list_active()
            total = len(active)

            if total == 0:
                logger.warning(f"No active keys available for {policy} hour")
                return []

            n = min(pool_size, total)
            if n < pool_size:
                logger.warning(
                    f"Only {total} keys available for {policy} hour "
                    f"(wanted {pool_size}), running degraded"
                )

            # Cursor may be stale if the active pool shrank since last selection
            start = self._cursor % total
            selected = [active[(start + i) % total] for i in range(n)]
            self._cursor = (start + n) % total

            return selected


__all__ = [
    "RotationScheduler",
    "is_peak_window",
    "local_now",
    "scheduler_timezone",
]
