from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import anyio

T = TypeVar("T")


def call_async(make_call: Callable[[], Awaitable[T]], *, deadline: float | None = None) -> T:
    """
    Await an async collaborator (text generation) from sync service code.

    `make_call` builds the awaitable only once a loop is available, so nothing
    is left un-awaited if scheduling fails. Request threads hand the call to
    the server loop; the CLI and tests get a private loop. Exceeding
    `deadline` seconds raises TimeoutError.
    """

    async def _bounded() -> T:
        if deadline is None:
            return await make_call()
        with anyio.fail_after(deadline):
            return await make_call()

    try:
        return anyio.from_thread.run(_bounded)
    except RuntimeError:
        # Not an AnyIO worker thread
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return anyio.run(_bounded)
        raise RuntimeError("call_async used inside a running loop; await the call instead")
