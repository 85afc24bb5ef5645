"""A doubly-buffered value with cheap concurrent reads and serialized writes."""

from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class _Slot(Generic[T]):
    def __init__(self) -> None:
        self.value: Optional[T] = None
        self.index = -1
        self.readers = 0
        self.condition = threading.Condition()


class DoubleBuffer(Generic[T]):
    """Holds a value in two slots so readers never see a half-written value.

    Setters are serialized; a setter waits until readers that started before
    it have released the slot it replaces.
    """

    def __init__(self, value: T) -> None:
        self._slots: tuple[_Slot[T], _Slot[T]] = (_Slot(), _Slot())
        self._current = 0
        self._write_lock = threading.Lock()
        self.set(value)

    @contextmanager
    def read(self) -> Iterator[T]:
        """Hold the current value for reading for the duration of the block."""
        while True:
            index = self._current
            slot = self._slots[index % 2]
            with slot.condition:
                if slot.index != index:
                    continue
                slot.readers += 1
                value = slot.value
            break
        try:
            yield value  # type: ignore[misc]
        finally:
            with slot.condition:
                slot.readers -= 1
                slot.condition.notify_all()

    def get(self) -> T:
        """Return a copy of the current value."""
        with self.read() as value:
            return copy.copy(value)

    def set(self, value: T) -> None:
        """Store a copy of ``value``; later reads observe it."""
        stored = copy.copy(value)
        with self._write_lock:
            old_index = self._current
            new_index = old_index + 1
            old_slot = self._slots[old_index % 2]
            new_slot = self._slots[new_index % 2]

            with new_slot.condition:
                new_slot.index = new_index
                new_slot.condition.wait_for(lambda: new_slot.readers == 0)
                new_slot.value = stored

            self._current = new_index

            if old_slot is not new_slot:
                with old_slot.condition:
                    old_slot.index = -1
                    old_slot.condition.wait_for(lambda: old_slot.readers == 0)
                    old_slot.value = None