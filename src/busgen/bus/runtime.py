from __future__ import annotations

import asyncio
import enum
import inspect
import threading
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, TypeVar, Union

from busgen.core.logging import get_logger

E = TypeVar("E", bound=enum.Enum)

Handler = Callable[[Any], Union[Awaitable[None], None]]
PublishHook = Callable[[Any, Any], None]  # (event, payload)
SubscribeHook = Callable[[Any], None]  # (event)
ErrorHook = Callable[[Any, Any, Exception], None]  # (event, payload, exc)


@dataclass(frozen=True)
class Message(Generic[E]):
    event: E
    payload: Any


class Bus(Generic[E]):
    """
    Bounded in-process pub/sub with a single dispatcher task.

    Generated buses subclass this and add one typed publish_*/subscribe_*
    pair per event. Everything here runs inside one asyncio event loop:
    publish() never blocks (a full queue drops the message) and never raises,
    and run() drains the queue FIFO, calling handlers one at a time.
    """

    def __init__(self, capacity: int) -> None:
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError("capacity must be >= 1, got %d" % capacity)

        self._capacity = capacity
        self._queue: "asyncio.Queue[Message[E]]" = asyncio.Queue(maxsize=capacity)
        # Guards handlers and hooks; readers copy under the lock.
        self._lock = threading.Lock()
        self._handlers: Dict[E, List[Handler]] = {}

        self._on_publish: Optional[PublishHook] = None
        self._on_drop: Optional[PublishHook] = None
        self._on_subscribe: Optional[SubscribeHook] = None
        self._on_error: Optional[ErrorHook] = None

        self._published_total = 0
        self._dropped_total = 0
        self._dispatched_total = 0
        self._failed_total = 0

        self._log = get_logger(component="bus", bus=type(self).__name__)

    @property
    def capacity(self) -> int:
        return self._capacity

    # Hooks. Passing None clears a hook.

    def on_publish(self, hook: Optional[PublishHook]) -> None:
        with self._lock:
            self._on_publish = hook

    def on_drop(self, hook: Optional[PublishHook]) -> None:
        with self._lock:
            self._on_drop = hook

    def on_subscribe(self, hook: Optional[SubscribeHook]) -> None:
        with self._lock:
            self._on_subscribe = hook

    def on_error(self, hook: Optional[ErrorHook]) -> None:
        """
        Called from the dispatcher with (event, payload, exc) when a handler raises.
        """
        with self._lock:
            self._on_error = hook

    def subscribe(self, event: E, handler: Handler) -> None:
        with self._lock:
            self._handlers.setdefault(event, []).append(handler)
            hook = self._on_subscribe
        if hook is not None:
            hook(event)

    def publish(self, event: E, payload: Any) -> bool:
        """
        Queue a message without waiting. Returns False when the queue was full
        and the message was dropped.
        """
        try:
            self._queue.put_nowait(Message(event=event, payload=payload))
        except asyncio.QueueFull:
            with self._lock:
                self._dropped_total += 1
                hook = self._on_drop
            self._call_hook("on_drop", hook, event, payload)
            return False

        with self._lock:
            self._published_total += 1
            hook = self._on_publish
        self._call_hook("on_publish", hook, event, payload)
        return True

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """
        Dispatch until `stop` is set (or the task is cancelled).

        `stop` is only checked between messages, so a handler in progress
        always finishes. Messages still queued at that point are not drained.
        """
        self._log.debug("dispatcher_started", capacity=self._capacity)
        try:
            while stop is None or not stop.is_set():
                msg = await self._next(stop)
                if msg is None:
                    break
                await self._dispatch(msg)
        finally:
            self._log.debug("dispatcher_stopped", queue_size=self._queue.qsize())

    def stats(self) -> Dict[str, int]:
        with self._lock:
            subscribers = sum(len(v) for v in self._handlers.values())
            return {
                "published_total": int(self._published_total),
                "dropped_total": int(self._dropped_total),
                "dispatched_total": int(self._dispatched_total),
                "failed_total": int(self._failed_total),
                "queue_size": int(self._queue.qsize()),
                "queue_maxsize": int(self._queue.maxsize),
                "subscribers": int(subscribers),
            }

    async def _next(self, stop: Optional[asyncio.Event]) -> Optional[Message[E]]:
        if stop is None:
            return await self._queue.get()
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            pass

        getter = asyncio.ensure_future(self._queue.get())
        waiter = asyncio.ensure_future(stop.wait())
        try:
            await asyncio.wait({getter, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not getter.done():
                getter.cancel()

        # A message dequeued in the same step that `stop` fired is still delivered.
        if getter.done() and not getter.cancelled():
            return getter.result()
        return None

    async def _dispatch(self, msg: Message[E]) -> None:
        with self._lock:
            handlers = list(self._handlers.get(msg.event, ()))

        for handler in handlers:
            try:
                result = handler(msg.payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self._failed_total += 1
                self._handle_fault(msg, exc)

        self._dispatched_total += 1

    def _handle_fault(self, msg: Message[E], exc: Exception) -> None:
        with self._lock:
            hook = self._on_error
        if hook is None:
            self._log.warning("handler_failed", topic=_topic(msg.event), error=repr(exc))
            return
        try:
            hook(msg.event, msg.payload, exc)
        except Exception:
            # The dispatcher outlives a broken on_error hook.
            self._log.debug("error_hook_failed", topic=_topic(msg.event), exc_info=True)

    def _call_hook(self, name: str, hook: Optional[PublishHook], event: E, payload: Any) -> None:
        if hook is None:
            return
        try:
            hook(event, payload)
        except Exception:
            self._log.warning("hook_failed", hook=name, topic=_topic(event), exc_info=True)


def _topic(event: enum.Enum) -> str:
    return str(event.value)
