"""
KEY REGISTRY
============

Pool of RapidAPI keys and their monthly usage counters.

Responsabilités:
- Construction des clés depuis les slots nommés (RAPIDAPI_KEY_ONE ... FIVE)
- Ordre stable d'enregistrement (ordre des slots)
- Comptage des appels du mois (advisory, jamais bloquant)
- Statistiques et reset mensuel

Architecture:
- Seul écrivain des compteurs / timestamps des clés
- État en mémoire uniquement (perdu au redémarrage)
"""

import os
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from dataclasses import dataclass

from utils.logger import get_logger

from config import (
    RAPIDAPI_KEY_SLOTS,
    RAPIDAPI_KEY_ENV_PREFIX,
    RAPIDAPI_MONTHLY_LIMIT,
)

logger = get_logger("KEY_REGISTRY")


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class CredentialRecord:
    """One RapidAPI key = one independent monthly quota bucket"""
    id: str                            # Stable name: "KEY_ONE", "KEY_TWO", ...
    key: str                           # Actual API key (from env var)

    is_active: bool = True
    monthly_limit: int = RAPIDAPI_MONTHLY_LIMIT

    # Usage (mutated by the registry only)
    calls_this_month: int = 0
    last_used: Optional[datetime] = None

    @property
    def remaining_calls(self) -> int:
        # Advisory: may go negative once the limit is exceeded
        return self.monthly_limit - self.calls_this_month

    @property
    def usage_percentage(self) -> int:
        if self.monthly_limit <= 0:
            return 0
        return round(self.calls_this_month / self.monthly_limit * 100)

    def to_dict(self) -> Dict:
        """Convert to dictionary (excluding sensitive key)"""
        return {
            "is_active": self.is_active,
            "calls_this_month": self.calls_this_month,
            "monthly_limit": self.monthly_limit,
            "remaining_calls": self.remaining_calls,
            "last_used": self.last_used.isoformat() if self.last_used else "Never",
            "usage_percentage": self.usage_percentage,
        }


# ============================================================================
# Key Registry
# ============================================================================

class KeyRegistry:
    """
    Registry of RapidAPI keys

    Usage:
        registry = KeyRegistry()
        registry.initialize([
            ("ONE", os.environ.get("RAPIDAPI_KEY_ONE")),
            ("TWO", os.environ.get("RAPIDAPI_KEY_TWO")),
        ])

        keys = registry.list_active()
        registry.record_usage("KEY_ONE")
        print(registry.stats())
    """

    def __init__(self, monthly_limit: int = RAPIDAPI_MONTHLY_LIMIT):
        self.monthly_limit = monthly_limit
        self._keys: Dict[str, CredentialRecord] = {}   # insertion order = slot order

    def initialize(self, named_secrets: Sequence[Tuple[str, Optional[str]]]) -> int:
        """
        Build one record per configured slot.

        Args:
            named_secrets: ordered (slot_name, secret) pairs; a missing
                secret is skipped with a warning

        Returns:
            Number of keys registered
        """
        for slot, secret in named_secrets:
            if not secret:
                logger.warning(f"{RAPIDAPI_KEY_ENV_PREFIX}{slot} not found in environment variables")
                continue

            self.register_key(CredentialRecord(
                id=f"KEY_{slot}",
                key=secret,
                monthly_limit=self.monthly_limit,
            ))

        logger.info(f"Initialized {len(self._keys)} RapidAPI keys: {', '.join(self._keys)}")
        return len(self._keys)

    def register_key(self, record: CredentialRecord) -> bool:
        """Register a single key (first registration of an id wins)"""
        if not record.key:
            logger.warning(f"Key {record.id} has no API key value, skipping")
            return False

        if record.id in self._keys:
            logger.warning(f"Key {record.id} already registered, skipping duplicate")
            return False

        self._keys[record.id] = record
        logger.debug(f"Registered key {record.id} (limit {record.monthly_limit}/month)")
        return True

    def get_key(self, key_id: str) -> Optional[CredentialRecord]:
        return self._keys.get(key_id)

    def list_keys(self) -> List[CredentialRecord]:
        return list(self._keys.values())

    def list_active(self) -> List[CredentialRecord]:
        """Active keys in registration order"""
        return [k for k in self._keys.values() if k.is_active]

    def record_usage(self, key_id: str):
        """Count one call against a key (success or failure)"""
        key = self._keys.get(key_id)
        if key is None:
            logger.warning(f"record_usage: unknown key {key_id}")
            return

        key.calls_this_month += 1
        key.last_used = datetime.now()

        if key.calls_this_month == key.monthly_limit:
            logger.warning(f"Key {key_id} reached its monthly limit ({key.monthly_limit})")

    def enable_key(self, key_id: str) -> bool:
        key = self._keys.get(key_id)
        if key is None:
            return False
        key.is_active = True
        logger.info(f"Key {key_id} enabled")
        return True

    def disable_key(self, key_id: str) -> bool:
        key = self._keys.get(key_id)
        if key is None:
            return False
        key.is_active = False
        logger.info(f"Key {key_id} disabled")
        return True

    def stats(self) -> Dict[str, Dict]:
        """Usage snapshot keyed by key id"""
        return {key_id: key.to_dict() for key_id, key in self._keys.items()}

    def reset_period(self) -> bool:
        """Zero every monthly counter (idempotent)"""
        for key in self._keys.values():
            key.calls_this_month = 0
        logger.info(f"Monthly usage counters reset for all keys ({len(self._keys)})")
        return True

    def __len__(self) -> int:
        return len(self._keys)


# ============================================================================
# Convenience Functions
# ============================================================================

def slot_secrets(env: Optional[Mapping[str, str]] = None) -> List[Tuple[str, Optional[str]]]:
    """(slot, secret) pairs for the configured RAPIDAPI_KEY_* slots"""
    env = os.environ if env is None else env
    return [
        (slot, env.get(f"{RAPIDAPI_KEY_ENV_PREFIX}{slot}"))
        for slot in RAPIDAPI_KEY_SLOTS
    ]


def setup_default_keys(env: Optional[Mapping[str, str]] = None) -> KeyRegistry:
    """
    Build a registry from environment variables

    Expected env vars:
    - RAPIDAPI_KEY_ONE ... RAPIDAPI_KEY_FIVE
    """
    registry = KeyRegistry()
    registry.initialize(slot_secrets(env))
    return registry


__all__ = [
    "KeyRegistry",
    "CredentialRecord",
    "slot_secrets",
    "setup_default_keys",
]
