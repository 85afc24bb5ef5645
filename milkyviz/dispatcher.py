"""Allocation of audio object identifiers and lookup of objects by identifier."""

from __future__ import annotations

import threading
import weakref
from typing import Any, Optional

from .doublebuffer import DoubleBuffer

UNKNOWN_OBJECT_ID = 0
PLUGIN_OBJECT_ID = 1
MAX_OBJECT_ID = 0xFFFFFFFF
RESERVED_IDS = frozenset({UNKNOWN_OBJECT_ID, PLUGIN_OBJECT_ID})


class Dispatcher:
    """Maps object identifiers to objects and hands out new identifiers.

    Objects are held by weak reference, so registration does not keep them
    alive. Freed identifiers are reused, but only after the allocator has
    moved past them, which makes lookups of recently freed objects fail
    rather than silently find a newer object.
    """

    def __init__(self, hint_maximum_id: int = 1000) -> None:
        if hint_maximum_id < 2:
            raise ValueError("hint_maximum_id must be at least 2")
        self._registry: DoubleBuffer[dict[int, weakref.ref]] = DoubleBuffer({})
        self._lock = threading.Lock()
        self._allocated: set[int] = set()
        self._last_allocated = UNKNOWN_OBJECT_ID
        self._desired_max = hint_maximum_id

    def find_object(self, object_id: int) -> Optional[Any]:
        """Return the object registered under ``object_id``, or ``None``."""
        with self._registry.read() as registry:
            ref = registry.get(object_id)
        return None if ref is None else ref()

    def register_object(self, obj: Any, object_id: int = UNKNOWN_OBJECT_ID) -> int:
        """Register ``obj`` and return its identifier.

        With ``object_id`` left at zero a new identifier is allocated;
        otherwise the given one is used and must not be taken.
        """
        with self._lock:
            if object_id == UNKNOWN_OBJECT_ID:
                object_id = self._allocate_id()
            elif not 0 < object_id <= MAX_OBJECT_ID:
                raise ValueError(f"object id {object_id} is out of range")
            elif object_id in self._allocated:
                raise ValueError(f"object id {object_id} is already registered")
            else:
                self._allocated.add(object_id)
            registry = dict(self._registry.get())
            registry[object_id] = weakref.ref(obj)
            self._registry.set(registry)
            return object_id

    def unregister_object(self, object_id: int) -> None:
        """Forget the object registered under ``object_id`` and free the identifier."""
        with self._lock:
            registry = dict(self._registry.get())
            if object_id not in registry:
                raise KeyError(f"object id {object_id} is not registered")
            del registry[object_id]
            self._registry.set(registry)
            self._allocated.discard(object_id)

    def _allocate_id(self) -> int:
        candidate = self._find_free_id(self._last_allocated + 1)
        if candidate > self._desired_max:
            used = sum(1 for object_id in self._allocated if object_id <= self._desired_max)
            reserved = sum(1 for object_id in RESERVED_IDS if 1 <= object_id <= self._desired_max)
            free_below = self._desired_max - reserved - used
            if free_below >= self._desired_max // 2:
                candidate = self._find_free_id(1)
            else:
                self._desired_max = max(self._desired_max * 2, candidate)
        self._allocated.add(candidate)
        self._last_allocated = candidate
        return candidate

    def _is_free(self, object_id: int) -> bool:
        return object_id not in RESERVED_IDS and object_id not in self._allocated

    def _find_free_id(self, start: int) -> int:
        object_id = start if 0 < start <= MAX_OBJECT_ID else 1
        first = object_id
        while not self._is_free(object_id):
            object_id = object_id + 1 if object_id < MAX_OBJECT_ID else 1
            if object_id == first:
                raise RuntimeError("no free object identifiers left")
        return object_id