"""
Presence registry: which live connection currently speaks for an identity.

A handle is the Channels channel name of a WebSocket consumer. The registry
is per process and holds at most one handle per identity; the most recent
register wins and the superseded handle is left open but unreachable.

The registry is read from the event loop and from sync view threads (via
chat.realtime.notify), so every access goes through one lock.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """
    Bidirectional identity <-> handle map.

    Invariants:
        - An identity maps to at most one handle.
        - A handle resolves to at most one identity.
        - unbind() with a superseded handle leaves the current binding alone.

    Usage:
        registry = PresenceRegistry()
        registry.bind("4821", "specific.abc!def")
        registry.lookup("4821")            # "specific.abc!def"
        registry.unbind("specific.abc!def")  # "4821"
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._handles: dict[str, str] = {}
        self._identities: dict[str, str] = {}

    def bind(self, identity: str, handle: str) -> str | None:
        """
        Bind `identity` to `handle`, replacing any previous binding.

        If `handle` was bound to a different identity, that binding is
        dropped first.

        Returns:
            The handle previously bound to `identity`, if any
        """
        with self._lock:
            other = self._identities.get(handle)
            if other is not None and other != identity:
                del self._handles[other]

            previous = self._handles.get(identity)
            if previous is not None and previous != handle:
                self._identities.pop(previous, None)

            self._handles[identity] = handle
            self._identities[handle] = identity

        if other is not None and other != identity:
            logger.info(f"Handle {handle} re-registered from {other} to {identity}")
        if previous is not None and previous != handle:
            logger.info(f"Identity {identity} superseded handle {previous}")
            return previous
        return None

    def lookup(self, identity: str) -> str | None:
        with self._lock:
            return self._handles.get(identity)

    def identity_for(self, handle: str) -> str | None:
        with self._lock:
            return self._identities.get(handle)

    def unbind(self, handle: str) -> str | None:
        """
        Remove the binding whose current handle is `handle`.

        Returns:
            The identity that was unbound, or None for an unknown or
            superseded handle
        """
        with self._lock:
            identity = self._identities.pop(handle, None)
            if identity is None:
                return None
            if self._handles.get(identity) == handle:
                del self._handles[identity]
            return identity

    def identities(self) -> list[str]:
        """Snapshot of the currently bound identities."""
        with self._lock:
            return list(self._handles)

    def is_online(self, identity: str) -> bool:
        return self.lookup(identity) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __contains__(self, identity: str) -> bool:
        return self.is_online(identity)
