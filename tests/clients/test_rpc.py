from __future__ import annotations

import time

import pytest
from web3.exceptions import ProviderConnectionError

from swap_router.clients.rpc import ThrottledRpc
from swap_router.settings import RouterSettings


@pytest.mark.asyncio
async def test_call_runs_blocking_function():
    rpc = ThrottledRpc(RouterSettings())

    assert await rpc.call(lambda a, b=0: a + b, 2, b=3) == 5


@pytest.mark.asyncio
async def test_call_retries_connection_errors():
    rpc = ThrottledRpc(RouterSettings(rpc_max_tries=2))
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise ProviderConnectionError("node went away")
        return "ok"

    assert await rpc.call(flaky) == "ok"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_call_gives_up_after_max_tries():
    rpc = ThrottledRpc(RouterSettings(rpc_max_tries=1))

    def down():
        raise ProviderConnectionError("node went away")

    with pytest.raises(ProviderConnectionError):
        await rpc.call(down)


@pytest.mark.asyncio
async def test_call_does_not_retry_contract_errors():
    rpc = ThrottledRpc(RouterSettings(rpc_max_tries=3))
    attempts = []

    def reverts():
        attempts.append(1)
        raise ValueError("execution reverted")

    with pytest.raises(ValueError):
        await rpc.call(reverts)
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_call_times_out():
    rpc = ThrottledRpc(RouterSettings(rpc_timeout_seconds=0.05, rpc_max_tries=1))

    with pytest.raises(TimeoutError):
        await rpc.call(time.sleep, 0.3)
