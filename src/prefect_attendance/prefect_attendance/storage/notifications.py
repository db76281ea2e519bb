"""Change notification.

`ChangeNotifier` is the in-process observer registry the record store calls after
every successful write. `BroadcastChannel` carries change events between stores
that share the same persisted data (other processes, other windows).
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Protocol

from .sqlite_backend import SQLiteKeyValueStore

logger = logging.getLogger(__name__)

Listener = Callable[[list], None]
Unsubscribe = Callable[[], None]
MessageHandler = Callable[[dict], None]


class ChangeNotifier:
    """Registry of listener callbacks.

    Delivery is fire-and-forget: a listener that raises is logged and the
    remaining listeners still run.
    """

    def __init__(self):
        self._listeners: dict[int, Listener] = {}
        self._next_handle = 0
        self._lock = threading.Lock()

    def add_listener(self, callback: Listener) -> Unsubscribe:
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._listeners[handle] = callback

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(handle, None)

        return unsubscribe

    def notify(self, records: list) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for callback in listeners:
            try:
                callback(list(records))
            except Exception:
                logger.exception("Storage listener error")

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)


class BroadcastChannel(Protocol):
    def publish(self, message: dict) -> None:
        raise NotImplementedError

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class LocalBroadcastHub:
    """In-process hub; every endpoint hears what the *other* endpoints publish."""

    def __init__(self):
        self._endpoints: list["LocalBroadcastChannel"] = []
        self._lock = threading.Lock()

    def open(self) -> "LocalBroadcastChannel":
        endpoint = LocalBroadcastChannel(self)
        with self._lock:
            self._endpoints.append(endpoint)
        return endpoint

    def _detach(self, endpoint: "LocalBroadcastChannel") -> None:
        with self._lock:
            if endpoint in self._endpoints:
                self._endpoints.remove(endpoint)

    def _deliver(self, origin: "LocalBroadcastChannel", message: dict) -> None:
        with self._lock:
            targets = [e for e in self._endpoints if e is not origin]
        for endpoint in targets:
            endpoint._receive(message)


class LocalBroadcastChannel(BroadcastChannel):
    def __init__(self, hub: LocalBroadcastHub):
        self._hub = hub
        self._handlers = ChannelHandlers()

    def publish(self, message: dict) -> None:
        self._hub._deliver(self, dict(message))

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        return self._handlers.add(handler)

    def _receive(self, message: dict) -> None:
        self._handlers.dispatch(message)

    def close(self) -> None:
        self._handlers.clear()
        self._hub._detach(self)


class SQLiteChangeFeed(BroadcastChannel):
    """Detects commits made to the same SQLite file by other connections.

    Publishing is a no-op: the commit itself is the broadcast. `poll()` is run
    periodically by the maintenance scheduler.
    """

    def __init__(self, backend: SQLiteKeyValueStore):
        self._backend = backend
        self._handlers = ChannelHandlers()
        self._last_version = backend.data_version()

    def publish(self, message: dict) -> None:
        return None

    def subscribe(self, handler: MessageHandler) -> Unsubscribe:
        return self._handlers.add(handler)

    def poll(self) -> bool:
        version = self._backend.data_version()
        if version == self._last_version:
            return False
        self._last_version = version
        self._handlers.dispatch({"key": None, "source": "sqlite"})
        return True

    def close(self) -> None:
        self._handlers.clear()


class ChannelHandlers:
    def __init__(self):
        self._handlers: list[MessageHandler] = []
        self._lock = threading.Lock()

    def add(self, handler: MessageHandler) -> Unsubscribe:
        with self._lock:
            self._handlers.append(handler)

        def unsubscribe() -> None:
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def dispatch(self, message: dict[str, Any]) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(message)
            except Exception:
                logger.exception("Failed to handle storage broadcast")

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()
