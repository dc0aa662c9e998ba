"""Typed in-process publish/subscribe hub.

The hub is the only channel between the pipeline's subsystems.  Delivery is a
plain synchronous function call on the publisher's task: every handler has
returned by the time ``publish`` returns, nothing is queued, and nothing is
stored -- a handler registered after a publish never sees it.

Three listener groups are served per publish, in order:

1. handlers for the exact kind         -> ``handler(payload)``
2. handlers for the kind's namespace   -> ``handler(kind, payload)``
3. global handlers                     -> ``handler(kind, payload)``

Handler exceptions are not caught; they propagate to the publisher.

Hubs are ordinary objects.  Create one per run and pass it to whatever needs
it; tests build their own.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel

from cedit.bus.validator import validate_payload
from cedit.errors import ContractViolation
from cedit.models.enums import NAMESPACE_SEPARATOR, EventKind, EventNamespace
from cedit.models.payloads import BusPayload

ANY = "*"
DEFAULT_MAX_SUBSCRIBERS = 50
REDACTED = "***REDACTED***"
_SECRET_FIELD = "anthropic_api_key"

Handler = Callable[[Any], None]
WildcardHandler = Callable[[str, Any], None]


def namespace_key(namespace: EventNamespace | str) -> str:
    return f"{namespace}{NAMESPACE_SEPARATOR}*"


def redact_payload(payload: BusPayload | Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-able copy of *payload* with the API key masked."""
    data = payload.model_dump(mode="json") if isinstance(payload, BaseModel) else dict(payload)
    if isinstance(data.get(_SECRET_FIELD), str):
        data[_SECRET_FIELD] = REDACTED
    config = data.get("config")
    if isinstance(config, dict) and isinstance(config.get(_SECRET_FIELD), str):
        data["config"] = {**config, _SECRET_FIELD: REDACTED}
    return data


@dataclass(eq=False)
class _Subscription:
    """One registration; identity-compared so duplicates stay distinct."""

    handler: Callable[..., None]
    once: bool = False

    def matches(self, handler: Callable[..., None]) -> bool:
        return self.handler is handler or self.handler == handler


class EventHub:
    """Multicast of payloads keyed by ``EventKind``.

    Parameters
    ----------
    strict:
        When ``True`` a payload contract violation raised during ``publish``
        propagates to the caller.  When ``False`` it is logged and ``publish``
        returns ``False``.  Hosts decide; nothing is inferred from the
        environment.
    validation:
        Run the payload contract validator before delivery.
    debug:
        Log a redacted copy of every published payload.
    max_subscribers:
        Per-key listener count above which a leak warning is logged.
    """

    def __init__(
        self,
        *,
        strict: bool = True,
        validation: bool = True,
        debug: bool = False,
        max_subscribers: int = DEFAULT_MAX_SUBSCRIBERS,
    ) -> None:
        self._strict = strict
        self._validation = validation
        self._debug = debug
        self._max_subscribers = max_subscribers
        self._listeners: dict[str, list[_Subscription]] = {}
        self._leak_warned: set[str] = set()

    # -- Configuration ---------------------------------------------------------

    @property
    def strict(self) -> bool:
        return self._strict

    def set_validation_enabled(self, enabled: bool) -> None:
        self._validation = enabled
        logger.info("Hub: validation {}", "enabled" if enabled else "disabled")

    def set_debug_mode(self, enabled: bool) -> None:
        self._debug = enabled
        logger.info("Hub: debug mode {}", "enabled" if enabled else "disabled")

    def set_max_subscribers(self, count: int) -> None:
        self._max_subscribers = count
        self._leak_warned.clear()
        logger.debug("Hub: max subscribers set to {}", count)

    # -- Publish ---------------------------------------------------------------

    def publish(self, kind: EventKind | str, payload: BusPayload | None) -> bool:
        """Deliver *payload* to every matching listener.

        Returns ``True`` if at least one of the three listener groups had a
        registered handler.
        """
        kind = str(kind)

        if payload is not None and payload.timestamp is None:
            payload = payload.model_copy(update={"timestamp": time.time()})

        if self._validation:
            try:
                validate_payload(kind, payload)
            except ContractViolation as exc:
                logger.error("Hub: error publishing {}: {}", kind, exc)
                if self._strict:
                    raise
                return False

        if self._debug and payload is not None:
            logger.debug("Hub: published {} {}", kind, redact_payload(payload))

        namespace = kind.split(NAMESPACE_SEPARATOR, 1)[0]
        delivered_exact = self._deliver(kind, (payload,))
        delivered_namespace = self._deliver(namespace_key(namespace), (kind, payload))
        delivered_any = self._deliver(ANY, (kind, payload))
        return delivered_exact or delivered_namespace or delivered_any

    def _deliver(self, key: str, args: tuple[Any, ...]) -> bool:
        subs = self._listeners.get(key)
        if not subs:
            return False
        for sub in list(subs):
            # Skip handlers unsubscribed by an earlier handler of this publish.
            if sub not in subs:
                continue
            if sub.once:
                self._drop(key, sub)
            sub.handler(*args)
        return True

    # -- Subscribe -------------------------------------------------------------

    def subscribe(self, kind: EventKind | str, handler: Handler) -> None:
        """Register *handler* for one exact kind; called as ``handler(payload)``."""
        self._add(str(kind), handler, once=False)

    def subscribe_once(self, kind: EventKind | str, handler: Handler) -> None:
        """Like ``subscribe`` but unregistered before its first delivery runs."""
        self._add(str(kind), handler, once=True)

    def subscribe_namespace(self, namespace: EventNamespace | str, handler: WildcardHandler) -> None:
        """Register *handler* for every kind in *namespace*; called as ``handler(kind, payload)``."""
        self._add(namespace_key(namespace), handler, once=False)

    def subscribe_any(self, handler: WildcardHandler) -> None:
        """Register *handler* for every kind; called as ``handler(kind, payload)``."""
        self._add(ANY, handler, once=False)

    def unsubscribe(self, kind: EventKind | str, handler: Handler) -> bool:
        return self._remove(str(kind), handler)

    def unsubscribe_namespace(self, namespace: EventNamespace | str, handler: WildcardHandler) -> bool:
        return self._remove(namespace_key(namespace), handler)

    def unsubscribe_any(self, handler: WildcardHandler) -> bool:
        return self._remove(ANY, handler)

    def clear_all(self) -> None:
        self._listeners.clear()
        self._leak_warned.clear()
        logger.warning("Hub: all listeners have been removed")

    # -- Query -----------------------------------------------------------------

    def listener_count(self, key: EventKind | str | None = None) -> int:
        """Listeners for one key (kind, ``ns:*`` or ``*``), or all of them."""
        if key is None:
            return sum(len(subs) for subs in self._listeners.values())
        return len(self._listeners.get(str(key), ()))

    # -- Internals -------------------------------------------------------------

    def _add(self, key: str, handler: Callable[..., None], *, once: bool) -> None:
        if inspect.iscoroutinefunction(handler):
            msg = f"Hub handlers are called synchronously; got coroutine function for {key}"
            raise TypeError(msg)
        subs = self._listeners.setdefault(key, [])
        subs.append(_Subscription(handler=handler, once=once))
        if len(subs) > self._max_subscribers and key not in self._leak_warned:
            self._leak_warned.add(key)
            logger.warning(
                "Hub: {} listeners registered for {} (max {}); possible subscription leak",
                len(subs),
                key,
                self._max_subscribers,
            )

    def _remove(self, key: str, handler: Callable[..., None]) -> bool:
        subs = self._listeners.get(key)
        if not subs:
            return False
        # Most recent registration first, as with repeated subscribe calls.
        for sub in reversed(subs):
            if sub.matches(handler):
                self._drop(key, sub)
                return True
        return False

    def _drop(self, key: str, sub: _Subscription) -> None:
        subs = self._listeners.get(key)
        if subs is None:
            return
        subs.remove(sub)
        if not subs:
            del self._listeners[key]
