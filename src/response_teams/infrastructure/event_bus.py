"""Round and deployment event dispatch.

The world substrate publishes round lifecycle events (``RoundStarted``,
``RoundEnded``, ``RoundRestarted``) and the orchestrator publishes the
outcome of each attempt (``TeamDeployed``, ``DeploymentRejected``).  Both
sides share one ``EventBus``.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable

from response_teams.domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """Synchronous dispatch of domain events keyed by their exact type.

    Handlers run on the publishing thread, in subscription order.  A handler
    that raises is logged and the rest still run, so a broken listener can
    neither abort a round restart nor turn a finished deployment into an
    error.

    Usage::

        bus = EventBus()
        bus.subscribe(RoundRestarted, orchestrator.on_round_restart)
        bus.publish(RoundRestarted(round_id=3))
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        # Snapshot so handlers may subscribe while being dispatched.
        with self._lock:
            handlers = list(self._handlers.get(type(event), ()))

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("%s handler %r failed", type(event).__name__, handler)
