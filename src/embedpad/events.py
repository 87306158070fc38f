from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")

CONSOLE_KINDS = frozenset({"message", "error"})


class Subscription:
    """Handle returned by `Broadcast.subscribe`.

    Example:
        ```python
        sub = channel.subscribe(print)
        sub.cancel()
        ```
    """

    def __init__(self, channel: "Broadcast", listener: Callable) -> None:
        """Attach `listener` to `channel`. Use `Broadcast.subscribe` instead.

        Example:
            ```python
            sub = Subscription(channel, print)
            ```
        """
        self._channel = channel
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        """False once cancelled.

        Example:
            ```python
            assert sub.active
            ```
        """
        return self._active

    def cancel(self) -> None:
        """Stop delivering values to this subscription's listener.

        Example:
            ```python
            sub.cancel()
            sub.cancel()  # no-op
            ```
        """
        if not self._active:
            return
        self._active = False
        self._channel._remove(self)


class Broadcast(Generic[T]):
    """Synchronous multi-subscriber channel.

    Values are delivered to listeners in subscription order, on the caller's
    stack. Listener exceptions propagate to the emitter.

    Example:
        ```python
        changes: Broadcast[str] = Broadcast()
        changes.subscribe(lambda text: print(len(text)))
        changes.emit("hello")
        ```
    """

    def __init__(self) -> None:
        """Create a channel with no listeners.

        Example:
            ```python
            channel: Broadcast[int] = Broadcast()
            ```
        """
        self._subscriptions: list[Subscription] = []

    def subscribe(self, listener: Callable[[T], object]) -> Subscription:
        """Register a listener and return its subscription handle.

        Example:
            ```python
            sub = channel.subscribe(lambda value: seen.append(value))
            ```
        """
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def emit(self, value: T) -> None:
        """Deliver one value to every listener subscribed at call time.

        Example:
            ```python
            channel.emit(Stdout("hello"))
            ```
        """
        for subscription in tuple(self._subscriptions):
            if subscription.active:
                subscription._listener(value)

    @property
    def listener_count(self) -> int:
        """Number of live subscriptions.

        Example:
            ```python
            assert channel.listener_count == 0
            ```
        """
        return len(self._subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        """Drop a cancelled subscription.

        Example:
            ```python
            channel._remove(sub)
            ```
        """
        self._subscriptions.remove(subscription)


@dataclass(frozen=True, slots=True)
class Stdout:
    """One line the running program wrote to standard output.

    Example:
        ```python
        event = Stdout("hello")
        ```
    """

    text: str


@dataclass(frozen=True, slots=True)
class Stderr:
    """One line of error output, including sandbox-level failures.

    Example:
        ```python
        event = Stderr("Traceback (most recent call last):")
        ```
    """

    text: str


@dataclass(frozen=True, slots=True)
class TestResult:
    """Verdict reported by the test harness. Final for its run.

    Example:
        ```python
        event = TestResult(success=True, message="Test passed. Great job!")
        ```
    """

    __test__ = False

    success: bool
    message: str = ""


ExecutionEvent = Union[Stdout, Stderr, TestResult]


@dataclass(frozen=True, slots=True)
class ConsoleLine:
    """A single rendered console line.

    Example:
        ```python
        line = ConsoleLine("boom", kind="error")
        ```
    """

    text: str
    kind: str = "message"

    def __post_init__(self) -> None:
        """Reject unknown console kinds.

        Example:
            ```python
            ConsoleLine("x", kind="warning")  # ValueError
            ```
        """
        if self.kind not in CONSOLE_KINDS:
            raise ValueError("kind must be 'message' or 'error'")

    @property
    def css_class(self) -> str:
        """CSS class used to render the line.

        Example:
            ```python
            assert ConsoleLine("boom", kind="error").css_class == "console-error"
            ```
        """
        return f"console-{self.kind}"
