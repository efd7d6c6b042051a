"""Sampling-mode ABC and the name → mode registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from randplace.service import LocationService

_MODES: dict[str, type[BaseStrategy]] = {}


class BaseStrategy(ABC):
    """Abstract base for sampling modes: each picks one location id."""

    name: str = "base"
    description: str = ""

    @abstractmethod
    async def pick_id(self, service: LocationService) -> int:
        """Choose the id of the location to return."""
        ...

    def on_stale_id(self, service: LocationService, location_id: int) -> None:
        """Called when the picked id no longer resolves. Default: nothing to reset."""


def register_strategy(cls: type[BaseStrategy]) -> type[BaseStrategy]:
    """Class decorator adding a sampling mode under ``cls.name``."""
    if cls.name in _MODES and _MODES[cls.name] is not cls:
        raise ValueError(f"sampling mode {cls.name!r} is already registered by {_MODES[cls.name].__name__}")
    _MODES[cls.name] = cls
    return cls


def get_strategy(name: str) -> BaseStrategy:
    """Sampling mode for a route or ``--strategy`` value."""
    try:
        return _MODES[name]()
    except KeyError:
        raise KeyError(f"no sampling mode {name!r}; choose one of {', '.join(sorted(_MODES))}") from None


def list_strategies() -> dict[str, type[BaseStrategy]]:
    """Registered sampling modes, sorted by name."""
    return dict(sorted(_MODES.items()))
