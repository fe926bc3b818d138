"""
POOL MANAGER
============

Câblage explicite du pool RapidAPI: un seul registre construit au
démarrage et passé par référence au scheduler, à l'executor, à
l'orchestrateur et au reporter. Pas de singleton global.

Usage:
    async with build_pool() as pool:
        outcomes = await pool.scrape("demo")
        print(pool.stats())
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from utils.logger import get_logger

from .key_registry import KeyRegistry, slot_secrets
from .rotation_scheduler import RotationScheduler
from .call_executor import CallExecutor, ScrapeOutcome
from .batch_orchestrator import BatchOrchestrator, BatchMode
from .usage_reporter import UsageReporter

logger = get_logger("POOL_MANAGER")


class ScrapePool:
    """
    Facade over the rotation components

    Usage:
        pool = ScrapePool(registry)
        outcomes = await pool.scrape("demo", 90, BatchMode.PARALLEL)
        await pool.close()
    """

    def __init__(self, registry: KeyRegistry, session: Optional[aiohttp.ClientSession] = None):
        self.registry = registry
        self.scheduler = RotationScheduler(registry)
        self.executor = CallExecutor(registry, session=session)
        self.orchestrator = BatchOrchestrator(self.scheduler, self.executor)
        self.reporter = UsageReporter(registry)

    async def scrape(
        self,
        keyword: str,
        count: Optional[int] = None,
        mode: Optional[BatchMode] = None,
    ) -> List[ScrapeOutcome]:
        """
        Fetch `count` videos for `keyword`.

        Args:
            mode: force PARALLEL / SEQUENTIAL, None = time window decides
        """
        if mode is None:
            return await self.orchestrator.run_for_now(keyword, count)

        if mode == BatchMode.PARALLEL:
            if count is None:
                return await self.orchestrator.run_parallel(keyword)
            return await self.orchestrator.run_parallel(keyword, count)

        if count is None:
            return await self.orchestrator.run_sequential(keyword)
        return await self.orchestrator.run_sequential(keyword, count)

    def stats(self) -> Dict[str, Dict]:
        return self.reporter.stats()

    def reset_monthly(self) -> bool:
        return self.reporter.reset_monthly()

    def get_status(self) -> Dict[str, Any]:
        return self.reporter.get_status()

    async def close(self):
        await self.executor.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


def build_pool(
    named_secrets: Optional[Sequence[Tuple[str, Optional[str]]]] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> ScrapePool:
    """
    Build a fully wired pool.

    Args:
        named_secrets: ordered (slot, secret) pairs, default = RAPIDAPI_KEY_* env vars
        session: shared aiohttp session (not closed by the pool)
    """
    registry = KeyRegistry()
    registry.initialize(slot_secrets() if named_secrets is None else named_secrets)

    if not registry.list_active():
        logger.warning("No RapidAPI keys configured, every batch will be empty")

    return ScrapePool(registry, session=session)


__all__ = [
    "ScrapePool",
    "build_pool",
]
