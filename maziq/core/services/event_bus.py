"""
EventBus — thread-safe, in-process pub/sub for TaskEvents.

One bus per run. The orchestrator publishes every task transition and
output line; the CLI renderer and the history sink are independent
consumers. Broadcast is best-effort: a slow or failing consumer never
affects task state.

Thread safety model
───────────────────
- ``_lock`` protects ``_seq``, ``_buffer``, ``_subscribers``,
  ``_listeners`` and ``_closed``.
- Each subscriber gets its own unbounded ``queue.Queue``; the publisher pushes
  into all queues under the lock and each consumer drains its own.
- Listener callbacks run on the publishing thread, outside the lock.
- ``close()`` ends every subscription: iteration stops once the
  events published before the close are drained.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from collections.abc import Callable, Iterator

from maziq.core.models.task import TaskEvent

logger = logging.getLogger(__name__)

Listener = Callable[[TaskEvent], None]

_CLOSED = object()


class Subscription:
    """Iterator over one consumer's events.

    Blocks between events; finishes when the bus closes.
    """

    def __init__(self, bus: EventBus, q: queue.Queue):
        self._bus = bus
        self._queue = q

    def __iter__(self) -> Iterator[TaskEvent]:
        try:
            while True:
                item = self._queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            self.close()

    def get(self, timeout: float | None = None) -> TaskEvent | None:
        """Next event, or None when closed or on timeout."""
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        return None if item is _CLOSED else item

    def close(self) -> None:
        self._bus._unsubscribe(self._queue)


class EventBus:
    """Thread-safe pub/sub with a replay buffer.

    Parameters
    ----------
    buffer_size : int
        Events kept for late subscribers.
    """

    def __init__(
        self,
        *,
        buffer_size: int = 5000,
    ) -> None:
        self._lock = threading.Lock()
        self._seq: int = 0
        self._buffer: deque[TaskEvent] = deque(maxlen=buffer_size)
        self._subscribers: list[queue.Queue] = []
        self._listeners: list[Listener] = []
        self._closed = False

    # ── Properties ──────────────────────────────────────────────

    @property
    def seq(self) -> int:
        """Current sequence number (monotonically increasing)."""
        with self._lock:
            return self._seq

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def history(self) -> list[TaskEvent]:
        """Buffered events, oldest first."""
        with self._lock:
            return list(self._buffer)

    # ── Publishing ──────────────────────────────────────────────

    def publish(self, event: TaskEvent) -> TaskEvent | None:
        """Broadcast an event; returns it with ``seq`` assigned.

        Events published after ``close()`` are dropped (returns None).
        """
        with self._lock:
            if self._closed:
                logger.debug("Dropping event after close: %s", event.task_id)
                return None
            self._seq += 1
            event = event.model_copy(update={"seq": self._seq})
            self._buffer.append(event)

            for q in self._subscribers:
                q.put(event)
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning("Event listener %r failed: %s", listener, e)

        logger.debug(
            "event seq=%d %s %s%s",
            event.seq,
            event.task_id,
            event.state.value,
            " (output)" if event.output_line is not None else "",
        )
        return event

    def close(self) -> None:
        """End the stream: every subscription finishes after draining."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for q in self._subscribers:
                q.put(_CLOSED)

    # ── Subscribing ─────────────────────────────────────────────

    def subscribe(self, *, since: int = 0) -> Subscription:
        """Subscribe, replaying buffered events with ``seq > since``.

        Subscribing to a closed bus replays the buffer and then ends.
        """
        q: queue.Queue = queue.Queue()
        with self._lock:
            for event in self._buffer:
                if event.seq > since:
                    q.put(event)
            if self._closed:
                q.put(_CLOSED)
            else:
                self._subscribers.append(q)
        return Subscription(self, q)

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener`` synchronously for every later event."""
        with self._lock:
            self._listeners.append(listener)

    def _unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)
