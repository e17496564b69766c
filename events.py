"""Listener registration with scoped subscriptions."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

Listener = TypeVar("Listener", bound=Callable[..., None])


class Subscription:
    def __init__(self, source: "EventSource", listener: Callable[..., None]) -> None:
        self._source = source
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._source._remove(self._listener)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class EventSource(Generic[Listener]):
    def __init__(self) -> None:
        self._listeners: list[Callable[..., None]] = []

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def emit(self, *args: object) -> None:
        for listener in list(self._listeners):
            listener(*args)

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def _remove(self, listener: Callable[..., None]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass
