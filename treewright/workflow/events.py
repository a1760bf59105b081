"""Workflow events and the channel that carries them.

A channel records every event it emits, so a consumer can either subscribe
for push delivery or iterate over what was emitted after the fact.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Generic, Literal, Optional, TypeVar

T = TypeVar("T")

DryRunEventKind = Literal["create", "update", "delete", "rename", "error"]
LifeCycleEventKind = Literal["start", "workflow-end", "post-tasks-start", "post-tasks-end", "end"]


@dataclass(frozen=True)
class DryRunEvent:
    """One effective change (or one validation error) found by the dry run.

    ``description`` is set on error events only: ``already_exists`` or
    ``does_not_exist``.
    """

    kind: DryRunEventKind
    path: str
    content: Optional[bytes] = None
    to: Optional[str] = None
    description: Optional[str] = None

    @property
    def content_length(self) -> Optional[int]:
        return len(self.content) if self.content is not None else None


@dataclass(frozen=True)
class LifeCycleEvent:
    kind: LifeCycleEventKind


class Subscription:
    def __init__(self, channel: "EventChannel", callback: Callable) -> None:
        self._channel = channel
        self._callback = callback
        self.closed = False

    def unsubscribe(self) -> None:
        if not self.closed:
            self.closed = True
            self._channel._remove(self._callback)


class EventChannel(Generic[T]):
    """Finite, replayable sequence of events with optional subscribers.

    ``on_drained`` is called when the last subscriber unsubscribes.
    """

    def __init__(self, on_drained: Optional[Callable[[], None]] = None) -> None:
        self._events: list[T] = []
        self._subscribers: list[Callable[[T], None]] = []
        self._on_drained = on_drained

    def emit(self, event: T) -> None:
        self._events.append(event)
        for callback in list(self._subscribers):
            callback(event)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        self._subscribers.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: Callable[[T], None]) -> None:
        self._subscribers.remove(callback)
        if not self._subscribers and self._on_drained is not None:
            self._on_drained()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
