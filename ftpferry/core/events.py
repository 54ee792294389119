"""Event hub and scheduler bridges for operation completion events."""
import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set

from ftpferry.shared.models import EVENT_KINDS, EventPayload

Listener = Callable[[EventPayload], Any]


@dataclass(frozen=True)
class EventRegistration:
    """Binding from an event kind to one listener."""

    listener_id: str
    kind: str
    listener: Listener


class SchedulerBridge(Protocol):
    """Host scheduler that fired listeners resume into."""

    def resume(self, listener: Listener, payload: EventPayload) -> None:
        ...


class AsyncioSchedulerBridge:
    """
    Resumes listeners as tasks on the running asyncio loop.

    Tasks are created in the order ``resume`` is called, so listeners start
    in registration order. Plain callables run inside the task, coroutine
    functions are awaited. A failing listener is logged and never reaches
    the operation that fired the event.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._pending: Set[asyncio.Task] = set()

    def resume(self, listener: Listener, payload: EventPayload) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run(listener, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(self, listener: Listener, payload: EventPayload) -> None:
        try:
            result = listener(payload)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self.logger.exception(f"Listener for '{payload.kind}' failed")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every resumed listener, including ones they trigger, has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


class EventHub:
    """
    Maps event kinds to ordered listener registrations.

    ``publish`` does not call listeners itself; it hands one resumption
    message per registration to the scheduler bridge.
    """

    def __init__(
        self,
        bridge: SchedulerBridge,
        kinds: Iterable[str] = EVENT_KINDS,
        logger: Optional[logging.Logger] = None,
    ):
        self.bridge = bridge
        self.logger = logger or logging.getLogger(__name__)
        self._registrations: Dict[str, List[EventRegistration]] = {kind: [] for kind in kinds}

    def _check_kind(self, kind: str) -> None:
        if kind not in self._registrations:
            raise ValueError(
                f"Unknown event kind: {kind!r}. Known: {sorted(self._registrations)}"
            )

    def register(self, kind: str, listener: Listener) -> str:
        """
        Register ``listener`` for ``kind``.

        Duplicate registrations of the same callable are kept and each fires.

        Returns:
            Listener ID for unregister()
        """
        self._check_kind(kind)
        if not callable(listener):
            raise TypeError(f"Listener must be callable, got {type(listener).__name__}")

        registration = EventRegistration(uuid.uuid4().hex, kind, listener)
        self._registrations[kind].append(registration)
        self.logger.debug(f"Registered listener {registration.listener_id[:8]} for {kind}")
        return registration.listener_id

    def unregister(self, kind: str, listener_id: str) -> bool:
        """Remove one registration. Returns False if it was not registered."""
        self._check_kind(kind)
        registrations = self._registrations[kind]
        for index, registration in enumerate(registrations):
            if registration.listener_id == listener_id:
                del registrations[index]
                self.logger.debug(f"Unregistered listener {listener_id[:8]} from {kind}")
                return True
        return False

    def listeners(self, kind: str) -> List[EventRegistration]:
        """Snapshot of the registrations for ``kind``, in registration order."""
        self._check_kind(kind)
        return list(self._registrations[kind])

    def publish(self, kind: str, payload: EventPayload) -> int:
        """
        Resume every listener of ``kind`` with ``payload``.

        Returns:
            Number of listeners resumed (0 is not an error)
        """
        # Listeners may register or unregister while we iterate
        snapshot = self.listeners(kind)
        for registration in snapshot:
            self.bridge.resume(registration.listener, payload)
        if snapshot:
            self.logger.debug(f"Published {kind} to {len(snapshot)} listener(s)")
        return len(snapshot)
