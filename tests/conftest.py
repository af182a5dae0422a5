"""Shared fixtures: run coroutines against a fake HTTP transport."""

import asyncio

import httpx
import pytest


@pytest.fixture()
def run_with():
    """Return ``run(handler, coro_fn)``: await ``coro_fn(client)`` with a mocked client."""

    def _run(handler, coro_fn):
        async def go():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await coro_fn(client)

        return asyncio.run(go())

    return _run
