"""
Counter State Store.

Holds the last accepted reading per CounterKey. A store is owned by
exactly one RolloverReconciler and is only mutated from its synchronous
``observe()``, so no two writers ever touch the same state.
"""
from __future__ import annotations

from typing import Iterable, Iterator

from bwcollector.core.models import CounterKey, CounterState


class CounterStateStore:
    """
    In-memory map CounterKey -> CounterState.

    States are immutable; updating a key replaces its state.
    """

    def __init__(self) -> None:
        self._states: dict[CounterKey, CounterState] = {}

    def get(self, key: CounterKey) -> CounterState | None:
        return self._states.get(key)

    def put(self, key: CounterKey, state: CounterState) -> None:
        self._states[key] = state

    def discard(self, key: CounterKey) -> None:
        self._states.pop(key, None)

    def discard_device(self, device_id: str) -> int:
        """Drop every counter of one device. Returns how many were dropped."""
        doomed = [k for k in self._states if k.device_id == device_id]
        for key in doomed:
            del self._states[key]
        return len(doomed)

    def retain(self, keys: Iterable[CounterKey]) -> int:
        """Keep only the given keys. Returns how many states were dropped."""
        keep = set(keys)
        doomed = [k for k in self._states if k not in keep]
        for key in doomed:
            del self._states[key]
        return len(doomed)

    def keys(self) -> Iterator[CounterKey]:
        return iter(list(self._states))

    def __contains__(self, key: object) -> bool:
        return key in self._states

    def __len__(self) -> int:
        return len(self._states)
