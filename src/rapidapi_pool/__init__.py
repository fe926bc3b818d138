"""
RapidAPI Key Pool
=================

Rotation of RapidAPI keys with time-of-day concurrency.

Architecture:
- KeyRegistry: keys and monthly usage counters
- RotationScheduler: round-robin selection (peak / conserve)
- CallExecutor: one paginated search call, failures returned as data
- BatchOrchestrator: parallel or sequential batches
- UsageReporter: stats and monthly reset

Usage:
    from src.rapidapi_pool import build_pool, BatchMode

    async with build_pool() as pool:
        outcomes = await pool.scrape("banjir jakarta")
        ok = [o for o in outcomes if o.success]

Windows:
- Peak (12h-2h): up to 3 keys, parallel
- Conserve (2h-12h): up to 2 keys, sequential with 500ms between calls
"""

from .key_registry import (
    KeyRegistry,
    CredentialRecord,
    slot_secrets,
    setup_default_keys,
)

from .rotation_scheduler import (
    RotationScheduler,
    is_peak_window,
)

from .call_executor import (
    CallExecutor,
    ScrapeRequest,
    ScrapeOutcome,
)

from .batch_orchestrator import (
    BatchOrchestrator,
    BatchMode,
)

from .usage_reporter import UsageReporter

from .pool_manager import (
    ScrapePool,
    build_pool,
)

__all__ = [
    "KeyRegistry",
    "CredentialRecord",
    "slot_secrets",
    "setup_default_keys",
    "RotationScheduler",
    "is_peak_window",
    "CallExecutor",
    "ScrapeRequest",
    "ScrapeOutcome",
    "BatchOrchestrator",
    "BatchMode",
    "UsageReporter",
    "ScrapePool",
    "build_pool",
]
