"""Scheduler bridge that resumes listeners on a Qt event loop."""
import asyncio
import inspect
import logging
from typing import Optional, Set

from PySide6.QtCore import QObject, Qt, Signal, Slot

from ftpferry.core.events import Listener
from ftpferry.shared.models import EventPayload


class QtSchedulerBridge(QObject):
    """
    Posts listener resumptions onto the Qt event loop.

    ``resume`` only emits a queued signal, so listeners run on the thread
    owning this object the next time its event loop processes events.

    A coroutine listener is started as a task on the asyncio loop running
    in that thread (for example under qasync). Without such a loop it
    cannot run: the coroutine is closed and an error is logged.
    """

    resume_requested = Signal(object, object)  # listener, EventPayload

    def __init__(self, logger: Optional[logging.Logger] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.logger = logger or logging.getLogger(__name__)
        self._tasks: Set[asyncio.Task] = set()
        self.resume_requested.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def resume(self, listener: Listener, payload: EventPayload) -> None:
        self.resume_requested.emit(listener, payload)

    @Slot(object, object)
    def _run(self, listener: Listener, payload: EventPayload) -> None:
        try:
            result = listener(payload)
        except Exception:
            self.logger.exception(f"Listener for '{payload.kind}' failed")
            return
        if inspect.isawaitable(result):
            self._start(result, payload)

    def _start(self, awaitable, payload: EventPayload) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            self.logger.error(
                f"Listener for '{payload.kind}' returned an awaitable "
                f"but no asyncio loop is running in this thread; skipped"
            )
            return

        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)

        def _finished(done: asyncio.Task) -> None:
            self._tasks.discard(done)
            if not done.cancelled() and done.exception() is not None:
                self.logger.error(
                    f"Listener for '{payload.kind}' failed", exc_info=done.exception()
                )

        task.add_done_callback(_finished)

    async def drain(self) -> None:
        """Wait until coroutine listeners started so far have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
