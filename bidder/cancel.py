"""
Thread-safe stop signal shared by the control thread and the asyncio worker.
"""
import asyncio
import threading
from typing import Optional


class CancelToken:
    """
    Set from any thread with ``cancel()``; awaited inside the worker loop.

    Coarse waits go through ``wait()`` so they return as soon as the token is
    set instead of sleeping out their full interval.
    """

    def __init__(self) -> None:
        self._flag = threading.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._event: Optional[asyncio.Event] = None

    def bind(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Attach to the running worker loop. Must be called from inside it."""
        self._loop = loop or asyncio.get_running_loop()
        self._event = asyncio.Event()
        if self._flag.is_set():
            self._event.set()

    def cancel(self) -> None:
        self._flag.set()
        loop, event = self._loop, self._event
        if loop is not None and event is not None and not loop.is_closed():
            loop.call_soon_threadsafe(event.set)

    def is_set(self) -> bool:
        return self._flag.is_set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile."""
        if self._flag.is_set():
            return True
        if self._event is None or self._loop is not asyncio.get_running_loop():
            self.bind()
        if timeout <= 0:
            await asyncio.sleep(0)
            return self._flag.is_set()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass
        return self._flag.is_set()
