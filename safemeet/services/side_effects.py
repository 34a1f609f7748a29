"""
Post-commit side effects.

Best-effort work (confirmation pushes after signup/login/OTP) is handed
to an in-process queue and executed by a single background worker, so it
can never change the result of the request that scheduled it. Jobs are
not persisted: anything still queued when the process dies is lost.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass
class SideEffect:
    name: str
    func: Callable[..., Awaitable[Any]]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)


class SideEffectQueue:
    def __init__(self, maxsize: int = 1000):
        self._queue: asyncio.Queue[SideEffect] = asyncio.Queue(maxsize=maxsize)
        self._worker: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def schedule(self, name: str, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> None:
        """Queue ``func(*args, **kwargs)``; never raises into the caller"""
        try:
            self._queue.put_nowait(SideEffect(name, func, args, kwargs))
        except asyncio.QueueFull:
            logger.warning(f"[HOOK] Queue full, dropping {name}")

    async def _run(self, effect: SideEffect) -> None:
        try:
            await effect.func(*effect.args, **effect.kwargs)
            logger.debug(f"[HOOK] {effect.name} done")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"[HOOK] {effect.name} failed (ignored): {type(e).__name__}: {e}")

    async def _work(self) -> None:
        while True:
            effect = await self._queue.get()
            try:
                await self._run(effect)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._work(), name="side-effects")
            logger.info("[HOOK] Side-effect worker started")

    async def drain(self) -> None:
        """Run every queued job inline"""
        while not self._queue.empty():
            effect = self._queue.get_nowait()
            try:
                await self._run(effect)
            finally:
                self._queue.task_done()

    async def stop(self, timeout: float = 5.0) -> None:
        """Give queued jobs ``timeout`` seconds to finish, then cancel the worker"""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"[HOOK] {self.pending} side effects dropped on shutdown")
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            logger.info("[HOOK] Side-effect worker stopped")
        self._worker = None


_side_effects: Optional[SideEffectQueue] = None


def get_side_effects() -> SideEffectQueue:
    """Get singleton instance of SideEffectQueue"""
    global _side_effects

    if _side_effects is None:
        _side_effects = SideEffectQueue()

    return _side_effects
