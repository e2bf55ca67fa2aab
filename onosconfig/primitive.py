"""In-memory versioned map primitives that several stores can share."""

from __future__ import annotations

import copy
import itertools
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

from onosconfig.errors import (
    AlreadyExistsError,
    ConfigError,
    ConflictError,
    NotFoundError,
)

_END = object()
_ANY_KEY = object()


class EventType(Enum):
    """The kind of change a map event reports."""

    INSERTED = "inserted"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass
class Entry:
    """A stored value with its version and, for indexed maps, its index."""

    key: Any
    value: Any
    version: int
    index: int = 0

    def _copy(self) -> Entry:
        return Entry(self.key, copy.deepcopy(self.value), self.version, self.index)


@dataclass
class MapEvent:
    """A change made to a map entry."""

    type: EventType
    entry: Entry


class EventStream:
    """A stream of map events; iterating it ends once it is closed."""

    def __init__(self, on_close=None) -> None:
        self._queue: queue.Queue = queue.Queue()
        self._on_close = on_close
        self._closed = False
        self._lock = threading.Lock()

    def _publish(self, event: MapEvent) -> None:
        self._queue.put(event)

    def next(self, timeout: float | None = None) -> MapEvent:
        """Return the next event.

        Raises TimeoutError if none arrives in time, EOFError once closed.
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError("no event received before the timeout") from None
        if item is _END:
            self._queue.put(_END)
            raise EOFError("event stream closed")
        return item

    def close(self) -> None:
        """Stop receiving events; events already received can still be read."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self._on_close is not None:
            self._on_close(self)
        self._queue.put(_END)

    def __iter__(self) -> EventStream:
        return self

    def __next__(self) -> MapEvent:
        try:
            return self.next()
        except EOFError:
            raise StopIteration from None


class _State:
    """Data shared by every handle opened on one named primitive."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.entries: dict[Any, Entry] = {}
        self.by_index: dict[int, Any] = {}
        self.versions = itertools.count(1)
        self.indexes = itertools.count(1)
        self.subscribers: list[tuple[EventStream, Any]] = []

    def publish(self, event_type: EventType, entry: Entry) -> None:
        for stream, key in self.subscribers:
            if key is _ANY_KEY or key == entry.key:
                stream._publish(MapEvent(event_type, entry._copy()))


class _Handle:
    """Shared machinery of the map handles."""

    def __init__(self, name: str, state: _State) -> None:
        self.name = name
        self._state = state
        self._streams: set[EventStream] = set()
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise ConfigError(f"primitive {self.name} is closed")

    def _entry(self, key: Any) -> Entry:
        entry = self._state.entries.get(key)
        if entry is None:
            raise NotFoundError(f"key {key} not found")
        return entry

    def _get(self, key: Any) -> Entry:
        self._check_open()
        with self._state.lock:
            return self._entry(key)._copy()

    def _update(self, key: Any, value: Any, if_version: int | None) -> Entry:
        self._check_open()
        with self._state.lock:
            current = self._entry(key)
            if if_version is not None and current.version != if_version:
                raise ConflictError(
                    f"version {if_version} of {key} is stale, current is {current.version}"
                )
            entry = Entry(key, copy.deepcopy(value), next(self._state.versions), current.index)
            self._state.entries[key] = entry
            self._state.publish(EventType.UPDATED, entry)
            return entry._copy()

    def _list(self) -> list[Entry]:
        self._check_open()
        with self._state.lock:
            return [entry._copy() for entry in self._state.entries.values()]

    def _events(self, key: Any) -> EventStream:
        self._check_open()
        stream = EventStream(on_close=self._unsubscribe)
        with self._state.lock:
            self._state.subscribers.append((stream, _ANY_KEY if key is None else key))
            self._streams.add(stream)
        return stream

    def _unsubscribe(self, stream: EventStream) -> None:
        with self._state.lock:
            self._state.subscribers = [
                (s, k) for s, k in self._state.subscribers if s is not stream
            ]
            self._streams.discard(stream)

    def _close(self) -> None:
        if self._closed:
            return
        self._closed = True
        with self._state.lock:
            streams = list(self._streams)
        for stream in streams:
            stream.close()


class AtomicMap(_Handle):
    """A handle on a shared map whose entries carry versions."""

    def get(self, key: Any) -> Entry:
        """Return a copy of the entry stored under ``key``."""
        return self._get(key)

    def insert(self, key: Any, value: Any) -> Entry:
        """Store a new entry; raise AlreadyExistsError if the key is taken."""
        self._check_open()
        with self._state.lock:
            if key in self._state.entries:
                raise AlreadyExistsError(f"key {key} already exists")
            entry = Entry(key, copy.deepcopy(value), next(self._state.versions))
            self._state.entries[key] = entry
            self._state.publish(EventType.INSERTED, entry)
            return entry._copy()

    def update(self, key: Any, value: Any, if_version: int | None = None) -> Entry:
        """Replace the value under ``key``; with ``if_version``, only at that version."""
        return self._update(key, value, if_version)

    def remove(self, key: Any) -> Entry:
        """Remove and return the entry under ``key``."""
        self._check_open()
        with self._state.lock:
            entry = self._entry(key)
            del self._state.entries[key]
            self._state.publish(EventType.REMOVED, entry)
            return entry._copy()

    def list(self) -> list[Entry]:
        """Return copies of all entries in insertion order."""
        return self._list()

    def events(self, key: Any = None) -> EventStream:
        """Open a stream of future events, for one key or for all."""
        return self._events(key)

    def close(self) -> None:
        """Close this handle and every event stream opened through it."""
        self._close()


class AtomicIndexedMap(_Handle):
    """A handle on a shared map whose entries are also numbered from 1."""

    def get(self, key: Any) -> Entry:
        """Return a copy of the entry stored under ``key``."""
        return self._get(key)

    def get_index(self, index: int) -> Entry:
        """Return a copy of the entry with the given index."""
        self._check_open()
        with self._state.lock:
            key = self._state.by_index.get(index)
            if key is None:
                raise NotFoundError(f"index {index} not found")
            return self._entry(key)._copy()

    def append(self, key: Any, value: Any) -> Entry:
        """Append a new entry with the next index."""
        self._check_open()
        with self._state.lock:
            if key in self._state.entries:
                raise AlreadyExistsError(f"key {key} already exists")
            index = next(self._state.indexes)
            entry = Entry(key, copy.deepcopy(value), next(self._state.versions), index)
            self._state.entries[key] = entry
            self._state.by_index[index] = key
            self._state.publish(EventType.INSERTED, entry)
            return entry._copy()

    def update(self, key: Any, value: Any, if_version: int | None = None) -> Entry:
        """Replace the value under ``key``; with ``if_version``, only at that version."""
        return self._update(key, value, if_version)

    def list(self) -> list[Entry]:
        """Return copies of all entries in index order."""
        return self._list()

    def events(self, key: Any = None) -> EventStream:
        """Open a stream of future events, for one key or for all."""
        return self._events(key)

    def close(self) -> None:
        """Close this handle and every event stream opened through it."""
        self._close()


class PrimitiveClient:
    """Opens handles on named primitives; handles of one name share their data."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._maps: dict[str, _State] = {}
        self._indexed_maps: dict[str, _State] = {}

    def _state(self, states: dict[str, _State], name: str) -> _State:
        with self._lock:
            return states.setdefault(name, _State())

    def map(self, name: str) -> AtomicMap:
        """Open a handle on the map called ``name``."""
        return AtomicMap(name, self._state(self._maps, name))

    def indexed_map(self, name: str) -> AtomicIndexedMap:
        """Open a handle on the indexed map called ``name``."""
        return AtomicIndexedMap(name, self._state(self._indexed_maps, name))