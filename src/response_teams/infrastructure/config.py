"""Configuration for the response team scheduler.

``SchedulerConfig`` is a plain frozen ``dataclass`` with a ``validate()``
method that raises ``ValueError`` on invalid values.  ``ConfigStore`` holds
the live config and lets operators swap it at runtime; the orchestrator
reads it on every deploy instead of caching values.
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass, fields, replace
from datetime import timedelta
from typing import Any

from response_teams.domain.exceptions import ConfigError


# ===================================================================== #
#  Scheduler Configuration                                               #
# ===================================================================== #

@dataclass(frozen=True)
class SchedulerConfig:
    """Parameters governing deployment scheduling.

    Attributes
    ----------
    cooldown_minutes:
        Minimum round time between two successful deployments.
    allow_cooldown_bypass:
        Skip the cooldown check entirely.  Meant for development servers;
        ``force=True`` on a single call is the production escape hatch.
    override_ceiling:
        Largest accepted value for an explicit optional-roster override.
        Overrides outside ``[0, override_ceiling]`` are ignored.
    seed:
        Seed for the roster random generator.  ``None`` draws fresh entropy.
    """

    cooldown_minutes: float = 15.0
    allow_cooldown_bypass: bool = False
    override_ceiling: int = 15
    seed: int | None = None

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if self.cooldown_minutes < 0:
            raise ValueError(
                f"cooldown_minutes must be >= 0, got {self.cooldown_minutes}"
            )
        if self.override_ceiling < 0:
            raise ValueError(
                f"override_ceiling must be >= 0, got {self.override_ceiling}"
            )
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be >= 0, got {self.seed}")

    @property
    def cooldown(self) -> timedelta:
        return timedelta(minutes=self.cooldown_minutes)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchedulerConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Live configuration store                                              #
# ===================================================================== #

class ConfigStore:
    """Thread-safe holder of the current ``SchedulerConfig``.

    Usage::

        store = ConfigStore(SchedulerConfig(cooldown_minutes=10))
        store.update(cooldown_minutes=5)  # takes effect on the next deploy
    """

    def __init__(self, config: SchedulerConfig | None = None) -> None:
        config = config or SchedulerConfig()
        config.validate()
        self._config = config
        self._lock = threading.Lock()

    def get(self) -> SchedulerConfig:
        """Return the current configuration snapshot."""
        with self._lock:
            return self._config

    def set(self, config: SchedulerConfig) -> None:
        """Replace the configuration after validating it."""
        config.validate()
        with self._lock:
            self._config = config

    def update(self, **changes: Any) -> SchedulerConfig:
        """Apply field changes to the current configuration and return it."""
        with self._lock:
            config = replace(self._config, **changes)
            config.validate()
            self._config = config
            return config

    def cooldown(self) -> timedelta:
        """Current cooldown duration."""
        return self.get().cooldown

    def cooldown_minutes(self) -> float:
        return self.get().cooldown_minutes


# ===================================================================== #
#  Unified config loader                                                 #
# ===================================================================== #

_CONFIG_MAP: dict[str, type] = {
    "scheduler": SchedulerConfig,
}


def load_config_from_json(json_str: str) -> dict[str, Any]:
    """Parse a JSON string into a dict of typed config objects.

    Top-level keys are section names (``scheduler``).  Unknown sections are
    preserved as raw values.
    """
    try:
        raw = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid configuration JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Top-level JSON must be an object")
    result: dict[str, Any] = {}
    for section, data in raw.items():
        cls = _CONFIG_MAP.get(section)
        if cls is not None and isinstance(data, dict):
            result[section] = cls.from_dict(data)
        else:
            result[section] = data
    return result
