"""Caller-side debouncing for keystroke-driven searches."""

import asyncio
import inspect
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class Debouncer:
    """Runs only the last call submitted within a quiet period.

    A newer ``submit`` cancels the pending one, which then resolves to ``None``
    without ever calling its function.
    """

    delay_seconds: float = 0.3
    _pending: asyncio.Task | None = field(default=None, init=False, repr=False)

    async def submit(self, func: Callable[[], object]) -> object | None:
        """Schedule ``func`` after the quiet period and return its result."""
        self.cancel()
        task = asyncio.ensure_future(self._run_later(func))
        self._pending = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None
        finally:
            if self._pending is task:
                self._pending = None

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _run_later(self, func: Callable[[], object]) -> object:
        await asyncio.sleep(self.delay_seconds)
        result = func()
        if inspect.isawaitable(result):
            return await result
        return result
