"""
CALL EXECUTOR
=============

Un appel paginé au endpoint de recherche RapidAPI avec une clé donnée.

- Chaque tentative (succès ou échec) est comptée sur la clé
- Aucune exception ne sort de execute(): les échecs deviennent des ScrapeOutcome
- Le payload est renvoyé brut (la validation appartient à l'ingestion)
"""

import time
import asyncio
from typing import Any, Dict, Optional
from dataclasses import dataclass

import aiohttp

from utils.logger import get_logger
from utils.api_monitor import log_api_call

from config import (
    RAPIDAPI_HOST,
    RAPIDAPI_SEARCH_URL,
    SEARCH_REGION,
    SEARCH_PUBLISH_TIME,
    SEARCH_SORT_TYPE,
    PAGE_SIZE,
)
from .key_registry import KeyRegistry, CredentialRecord

logger = get_logger("CALL_EXECUTOR")


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class ScrapeRequest:
    """One page of a keyword search"""
    keyword: str
    cursor: int = 0
    count: int = PAGE_SIZE


@dataclass
class ScrapeOutcome:
    """Result of one call attempt, returned as data, never raised"""
    success: bool
    key_used: str
    data: Optional[Any] = None
    error: Optional[str] = None
    cursor: Optional[int] = None       # next cursor = request cursor + count

    def to_dict(self, include_data: bool = False) -> Dict:
        result = {
            "success": self.success,
            "key_used": self.key_used,
            "error": self.error,
            "cursor": self.cursor,
        }
        if include_data:
            result["data"] = self.data
        return result


# ============================================================================
# Call Executor
# ============================================================================

class CallExecutor:
    """
    Issues single search calls against RapidAPI

    Usage:
        executor = CallExecutor(registry)
        outcome = await executor.execute(key, ScrapeRequest("demo", cursor=0))
        if outcome.success:
            videos = outcome.data["data"]["videos"]
        await executor.close()
    """

    def __init__(
        self,
        registry: KeyRegistry,
        session: Optional[aiohttp.ClientSession] = None,
        url: str = RAPIDAPI_SEARCH_URL,
        host: str = RAPIDAPI_HOST,
        region: str = SEARCH_REGION,
    ):
        self.registry = registry
        self.url = url
        self.host = host
        self.region = region

        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self):
        """Close HTTP session (only if created here)"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def build_params(self, request: ScrapeRequest) -> Dict[str, str]:
        # aiohttp URL-escapes query values
        return {
            "keywords": request.keyword,
            "region": self.region,
            "count": str(request.count),
            "cursor": str(request.cursor),
            "publish_time": str(SEARCH_PUBLISH_TIME),
            "sort_type": str(SEARCH_SORT_TYPE),
        }

    def build_headers(self, credential: CredentialRecord) -> Dict[str, str]:
        return {
            "x-rapidapi-key": credential.key,
            "x-rapidapi-host": self.host,
        }

    async def execute(self, credential: CredentialRecord, request: ScrapeRequest) -> ScrapeOutcome:
        """
        Make a single API call with the given key and cursor

        Args:
            credential: Key to authenticate with
            request: Keyword, cursor and page size

        Returns:
            ScrapeOutcome (success or failure)
        """
        next_cursor = request.cursor + request.count
        status = 0
        t0 = time.time()

        logger.info(f"API call with {credential.id}, cursor: {request.cursor}, count: {request.count}")

        try:
            session = await self._get_session()

            async with session.get(
                self.url,
                params=self.build_params(request),
                headers=self.build_headers(credential),
            ) as resp:
                status = resp.status

                if not 200 <= status < 300:
                    raise aiohttp.ClientResponseError(
                        resp.request_info,
                        resp.history,
                        status=status,
                        message=f"HTTP {status}: {resp.reason}",
                    )

                data = await resp.json(content_type=None)

        except aiohttp.ClientResponseError as e:
            return self._failure(credential, request, e.message, status, t0)

        except asyncio.TimeoutError:
            return self._failure(credential, request, "Request timed out", status, t0)

        except (aiohttp.ClientError, ValueError) as e:
            return self._failure(credential, request, str(e) or type(e).__name__, status, t0)

        except Exception as e:
            logger.error(f"Unexpected error on {credential.id}: {e!r}", exc_info=True)
            return self._failure(credential, request, str(e) or type(e).__name__, status, t0)

        finally:
            # Every attempt consumed remote quota, success or not
            self.registry.record_usage(credential.id)

        log_api_call("GET", self.url, status, (time.time() - t0) * 1000, key_id=credential.id)

        return ScrapeOutcome(
            success=True,
            key_used=credential.id,
            data=data,
            cursor=next_cursor,
        )

    def _failure(
        self,
        credential: CredentialRecord,
        request: ScrapeRequest,
        error: str,
        status: int,
        t0: float,
    ) -> ScrapeOutcome:
        latency_ms = (time.time() - t0) * 1000
        log_api_call("GET", self.url, status, latency_ms, key_id=credential.id,
                     error=error if status == 0 else "")
        logger.error(f"API call failed with {credential.id}: {error}")

        return ScrapeOutcome(
            success=False,
            key_used=credential.id,
            error=error,
            cursor=request.cursor + request.count,
        )


__all__ = [
    "CallExecutor",
    "ScrapeRequest",
    "ScrapeOutcome",
]
