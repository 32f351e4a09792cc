import asyncio
import threading
from typing import Awaitable, TypeVar

T = TypeVar("T")


class LoopRunner:
    """
    One event loop on a daemon thread. Sync callers (Flask request threads)
    submit coroutines here, so every store operation shares a single loop and
    the per-collection gate actually serializes them.
    """

    def __init__(self, name: str = "segmon-loop"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, name=name, daemon=True)
        self._thread.start()

    @property
    def running(self) -> bool:
        return self._thread.is_alive() and not self._loop.is_closed()

    def run(self, coro: Awaitable[T]) -> T:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    def close(self):
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
