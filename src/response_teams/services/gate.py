"""Deployment gate: mutual exclusion plus cooldown bookkeeping.

The gate guards a single in-flight deployment attempt.  Acquisition never
waits; a concurrent caller sees the gate as busy and gives up immediately.
The gate also remembers the round time of the last successful deployment
and answers how much cooldown remains.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import timedelta

logger = logging.getLogger(__name__)

_ZERO = timedelta(0)


class DeploymentGate:
    """Exclusive lock plus "last successful deployment" timestamp.

    Parameters
    ----------
    cooldown:
        Callable returning the current cooldown duration.  It is invoked on
        every query so configuration changes apply immediately.
    """

    def __init__(self, cooldown: Callable[[], timedelta]) -> None:
        self._cooldown = cooldown
        self._lock = threading.Lock()
        self._last_deploy_time: timedelta = _ZERO

    @property
    def last_deploy_time(self) -> timedelta:
        return self._last_deploy_time

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def try_acquire(self) -> bool:
        """Take the lock without waiting. Returns ``False`` if it is held."""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        """Release the lock; calling it on an unlocked gate is a no-op."""
        try:
            self._lock.release()
        except RuntimeError:
            logger.debug("Gate release on an already unlocked gate ignored")

    def cooldown_remaining(self, now: timedelta) -> timedelta:
        """Time left before a non-forced deployment is allowed at *now*."""
        ready_at = self._last_deploy_time + self._cooldown()
        return max(_ZERO, ready_at - now)

    def record_success(self, now: timedelta) -> None:
        # Callers hold the lock; the round clock never runs backwards.
        self._last_deploy_time = max(self._last_deploy_time, now)

    def reset(self) -> None:
        """Clear the cooldown and force the lock open."""
        self._last_deploy_time = _ZERO
        if self._lock.locked():
            logger.warning("Gate was held during reset; forcing release")
            self.release()
