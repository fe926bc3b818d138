"""
BATCH ORCHESTRATOR
==================

Compose scheduler + executor pour un batch de recherche.

Modes:
- PARALLEL (peak): toutes les pages en vol en même temps, join sur toutes
- SEQUENTIAL (conserve): une page à la fois, délai fixe entre deux appels

Un batch partiellement réussi est un résultat normal: les outcomes
sont toujours renvoyés en entier, dans l'ordre d'émission.
"""

import math
import asyncio
from datetime import datetime
from enum import Enum
from typing import List, Optional

from utils.logger import get_logger

from config import (
    PAGE_SIZE,
    PEAK_VIDEO_COUNT,
    CONSERVE_VIDEO_COUNT,
    SEQUENTIAL_CALL_DELAY,
)
from .call_executor import CallExecutor, ScrapeRequest, ScrapeOutcome
from .key_registry import CredentialRecord
from .rotation_scheduler import RotationScheduler, is_peak_window, local_now

logger = get_logger("BATCH_ORCHESTRATOR")


class BatchMode(Enum):
    PARALLEL = "parallel"
    SEQUENTIAL = "sequential"


# ============================================================================
# Batch Orchestrator
# ============================================================================

class BatchOrchestrator:
    """
    Runs a keyword search as a batch of paginated calls

    Usage:
        orchestrator = BatchOrchestrator(scheduler, executor)

        outcomes = await orchestrator.run_parallel("demo", 90)     # 3 calls at once
        outcomes = await orchestrator.run_sequential("demo", 60)   # 2 calls, 500ms apart

        ok = [o for o in outcomes if o.success]
    """

    def __init__(
        self,
        scheduler: RotationScheduler,
        executor: CallExecutor,
        page_size: int = PAGE_SIZE,
        delay: float = SEQUENTIAL_CALL_DELAY,
    ):
        self.scheduler = scheduler
        self.executor = executor
        self.page_size = page_size
        self.delay = delay

    def pages_for(self, video_count: int) -> int:
        if video_count <= 0:
            return 0
        return math.ceil(video_count / self.page_size)

    def _request(self, keyword: str, index: int) -> ScrapeRequest:
        return ScrapeRequest(
            keyword=keyword,
            cursor=index * self.page_size,
            count=self.page_size,
        )

    async def run_parallel(self, keyword: str, video_count: int = PEAK_VIDEO_COUNT) -> List[ScrapeOutcome]:
        """
        Issue every page concurrently, one key per page.

        Returns:
            Outcomes in issuance order (page 0 first)
        """
        pages = self.pages_for(video_count)
        if pages == 0:
            logger.warning(f"Nothing to fetch for '{keyword}' (video_count={video_count})")
            return []

        keys = self.scheduler.select_for_peak(pages)
        logger.info(f"Making {len(keys)} parallel calls for {video_count} videos")

        if len(keys) < pages:
            logger.warning(
                f"Degraded batch: {len(keys)}/{pages} pages covered for '{keyword}'"
            )

        requests = [self._request(keyword, i) for i in range(len(keys))]

        results = await asyncio.gather(
            *[self.executor.execute(key, req) for key, req in zip(keys, requests)],
            return_exceptions=True,
        )

        outcomes = [
            self._unexpected_failure(key, req, result) if isinstance(result, BaseException) else result
            for key, req, result in zip(keys, requests, results)
        ]

        self._log_completion("Parallel", outcomes)
        return outcomes

    async def run_sequential(self, keyword: str, video_count: int = CONSERVE_VIDEO_COUNT) -> List[ScrapeOutcome]:
        """
        Issue pages one at a time with a fixed delay in between.

        A failed page does not stop the batch. Fewer keys than pages
        means fewer outcomes.
        """
        pages = self.pages_for(video_count)
        if pages == 0:
            logger.warning(f"Nothing to fetch for '{keyword}' (video_count={video_count})")
            return []

        keys = self.scheduler.select_for_conserve(pages)
        logger.info(f"Making {len(keys)} sequential calls for {video_count} videos")

        if len(keys) < pages:
            logger.warning(
                f"Key pool exhausted: {len(keys)}/{pages} pages covered for '{keyword}'"
            )

        outcomes = []
        for i, key in enumerate(keys):
            req = self._request(keyword, i)
            try:
                outcome = await self.executor.execute(key, req)
            except Exception as e:
                outcome = self._unexpected_failure(key, req, e)
            outcomes.append(outcome)

            if i < len(keys) - 1:
                await asyncio.sleep(self.delay)

        self._log_completion("Sequential", outcomes)
        return outcomes

    def mode_for_now(self, now: Optional[datetime] = None) -> BatchMode:
        """Advisory mode for the current time window"""
        now = now or local_now()
        return BatchMode.PARALLEL if is_peak_window(now) else BatchMode.SEQUENTIAL

    async def run_for_now(
        self,
        keyword: str,
        video_count: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[ScrapeOutcome]:
        """Run the batch in whatever mode the time window recommends"""
        mode = self.mode_for_now(now)
        logger.info(f"Time window recommends {mode.value} mode")

        if mode == BatchMode.PARALLEL:
            return await self.run_parallel(keyword, PEAK_VIDEO_COUNT if video_count is None else video_count)
        return await self.run_sequential(keyword, CONSERVE_VIDEO_COUNT if video_count is None else video_count)

    @staticmethod
    def _unexpected_failure(key: CredentialRecord, req: ScrapeRequest, error: BaseException) -> ScrapeOutcome:
        # Executor never raises on transport errors; anything here is a bug
        logger.error(f"Unexpected error on {key.id}: {error!r}")
        return ScrapeOutcome(
            success=False,
            key_used=key.id,
            error=str(error) or type(error).__name__,
            cursor=req.cursor + req.count,
        )

    @staticmethod
    def _log_completion(label: str, outcomes: List[ScrapeOutcome]):
        success_count = sum(1 for o in outcomes if o.success)
        logger.info(f"{label} calls completed: {success_count}/{len(outcomes)} successful")


__all__ = [
    "BatchOrchestrator",
    "BatchMode",
]
