from __future__ import annotations

import asyncio

import structlog

from .events import Broadcast

logger = structlog.get_logger(__name__)


def running_loop(owner: str) -> asyncio.AbstractEventLoop:
    """Return the running event loop, or fail naming the component that needs it.

    Example:
        ```python
        loop = loop or running_loop("Reconciler")
        ```
    """
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        raise RuntimeError(f"{owner} needs a running event loop or an explicit loop=") from None


class Reconciler:
    """Collapse bursts of change notifications into one reconcile event.

    Each change cancels the pending timer and schedules a fresh one
    `delay_ms` later on the event loop bound at construction: the injected
    `loop`, or the one running when the reconciler is created. At most one
    timer is pending.

    Example:
        ```python
        reconciler = Reconciler(doc.on_change, delay_ms=1250)
        reconciler.on_reconcile.subscribe(lambda _: analyze(doc.text))
        ```
    """

    def __init__(
        self,
        changes: Broadcast,
        delay_ms: int,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Bind the loop, then start listening to `changes`.

        Raises ValueError for a non-positive delay, and RuntimeError when no
        `loop` is given and none is running. Nothing is subscribed on failure.

        Example:
            ```python
            reconciler = Reconciler(doc.on_change, delay_ms=1250, loop=loop)
            ```
        """
        if delay_ms <= 0:
            raise ValueError("delay_ms must be positive")
        self._loop = loop or running_loop("Reconciler")
        self._delay = delay_ms / 1000
        self._handle: asyncio.TimerHandle | None = None
        self.on_reconcile: Broadcast[None] = Broadcast()
        self._subscription = changes.subscribe(self._on_change)

    @property
    def delay_ms(self) -> int:
        """Quiet period in milliseconds.

        Example:
            ```python
            assert reconciler.delay_ms == 1250
            ```
        """
        return round(self._delay * 1000)

    @property
    def pending(self) -> bool:
        """True while a reconcile timer is armed.

        Example:
            ```python
            if reconciler.pending:
                reconciler.flush()
            ```
        """
        return self._handle is not None

    def flush(self) -> bool:
        """Fire a pending reconcile immediately.

        Returns False when nothing was pending.

        Example:
            ```python
            reconciler.flush()
            ```
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def close(self) -> None:
        """Cancel any pending timer and stop listening for changes.

        Example:
            ```python
            reconciler.close()
            ```
        """
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._subscription.cancel()

    def _on_change(self, _value: object) -> None:
        """Cancel the armed timer, if any, and arm a fresh one.

        Example:
            ```python
            doc.on_change.subscribe(reconciler._on_change)
            ```
        """
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        """Clear the timer and emit one reconcile notification.

        Example:
            ```python
            reconciler._fire()
            ```
        """
        self._handle = None
        logger.debug("reconcile", delay_ms=self.delay_ms)
        self.on_reconcile.emit(None)


class DirtyTracker:
    """Relay every raw change as an immediate dirty notification.

    Example:
        ```python
        tracker = DirtyTracker(doc.on_change)
        tracker.on_dirty.subscribe(lambda _: show_unsaved_marker())
        ```
    """

    def __init__(self, changes: Broadcast) -> None:
        """Start relaying `changes` as dirty notifications.

        Example:
            ```python
            tracker = DirtyTracker(doc.on_change)
            ```
        """
        self.on_dirty: Broadcast[None] = Broadcast()
        self._subscription = changes.subscribe(lambda _value: self.on_dirty.emit(None))

    def close(self) -> None:
        """Stop relaying changes.

        Example:
            ```python
            tracker.close()
            ```
        """
        self._subscription.cancel()
