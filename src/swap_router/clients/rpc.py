"""Throttled, retrying wrapper around blocking web3 contract calls."""

from __future__ import annotations

import asyncio
import random
from typing import Any, Callable

import backoff
import requests
from web3.exceptions import ProviderConnectionError

from ..logger import get_logger
from ..settings import RouterSettings

logger = get_logger(__name__)

RETRYABLE_RPC_ERRORS: tuple[type[Exception], ...] = (
    ProviderConnectionError,
    TimeoutError,
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


class ThrottledRpc:
    """Runs web3 calls off the event loop with bounded concurrency.

    Every call is:
    - gated by a semaphore of ``rpc_max_concurrent_calls``
    - bounded by ``rpc_timeout_seconds``
    - retried with exponential backoff on connection errors and timeouts
    - followed by ``rpc_delay`` plus up to ``rpc_jitter`` seconds of sleep
    """

    def __init__(self, config: RouterSettings):
        self.config = config
        self._sem = asyncio.Semaphore(config.rpc_max_concurrent_calls)
        self._timeout = config.rpc_timeout_seconds
        self._delay = config.rpc_delay
        self._jitter = config.rpc_jitter
        self._call_with_retry = backoff.on_exception(
            backoff.expo,
            RETRYABLE_RPC_ERRORS,
            max_tries=config.rpc_max_tries,
            jitter=backoff.full_jitter,
            on_backoff=self._log_backoff,
        )(self._call_once)

    @staticmethod
    def _log_backoff(details: dict[str, Any]) -> None:
        logger.debug(
            "Retrying RPC call after %s (attempt %d, waiting %.2fs)",
            details.get("exception"),
            details["tries"],
            details["wait"],
        )

    async def _call_once(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        async with self._sem:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(fn, *args, **kwargs), timeout=self._timeout
                )
            finally:
                delay = self._delay + random.random() * self._jitter
                if delay > 0:
                    await asyncio.sleep(delay)

    async def call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """Throttle + timeout + backoff a single RPC."""
        return await self._call_with_retry(fn, *args, **kwargs)
