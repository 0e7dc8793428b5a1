"""Ship-type statistics used by the combat engine."""
from __future__ import annotations

from dataclasses import dataclass
import json
import os
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

import yaml

from .errors import CatalogError, UnknownShipType

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "data", "ships.yaml")


@dataclass(frozen=True)
class ShipStats:
    """Immutable per-type stat line."""

    cost: int
    attack: int
    health: int


class ShipCatalog:
    """Read-only lookup table of :class:`ShipStats` keyed by ship type.

    Balance changes mean building a new catalog; an existing one is never
    edited, so battles resolved concurrently always see one consistent table.
    """

    def __init__(self, stats: Mapping[str, ShipStats]) -> None:
        ordered = sorted(stats.items(), key=lambda item: (item[1].cost, item[0]))
        self._stats: Mapping[str, ShipStats] = MappingProxyType(dict(ordered))

    @classmethod
    def from_mapping(cls, table: Mapping[str, Mapping[str, Any]]) -> "ShipCatalog":
        stats: Dict[str, ShipStats] = {}
        for ship_type, block in table.items():
            if not isinstance(block, Mapping):
                raise CatalogError(f"Stats for '{ship_type}' must be a mapping")
            try:
                line = ShipStats(
                    cost=int(block["cost"]),
                    attack=int(block["attack"]),
                    health=int(block["health"]),
                )
            except KeyError as exc:
                raise CatalogError(f"Stats for '{ship_type}' are missing {exc.args[0]!r}") from exc
            except (TypeError, ValueError) as exc:
                raise CatalogError(f"Stats for '{ship_type}' must be integers") from exc
            if line.cost <= 0 or line.attack <= 0 or line.health <= 0:
                raise CatalogError(f"Stats for '{ship_type}' must be positive")
            stats[str(ship_type)] = line
        if not stats:
            raise CatalogError("A ship catalog needs at least one ship type")
        return cls(stats)

    def stats_for(self, ship_type: str) -> ShipStats:
        try:
            return self._stats[ship_type]
        except KeyError:
            raise UnknownShipType(ship_type, list(self._stats)) from None

    def ship_types(self) -> List[str]:
        """Ship types in ascending cost order."""
        return list(self._stats)

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            name: {"cost": s.cost, "attack": s.attack, "health": s.health}
            for name, s in self._stats.items()
        }

    def __contains__(self, ship_type: object) -> bool:
        return ship_type in self._stats

    def __iter__(self) -> Iterator[str]:
        return iter(self._stats)

    def __len__(self) -> int:
        return len(self._stats)

    def __repr__(self) -> str:
        return f"ShipCatalog({', '.join(self._stats)})"


def load_catalog(path: str) -> ShipCatalog:
    """Load a catalog from a YAML or JSON table of ``type: {cost, attack, health}``."""
    with open(path, "r", encoding="utf-8") as handle:
        if path.endswith(".json"):
            payload = json.load(handle)
        else:
            payload = yaml.safe_load(handle)
    if not isinstance(payload, dict):
        raise CatalogError(f"Catalog file {path} must contain a mapping of ship types")
    return ShipCatalog.from_mapping(payload)


_default: Optional[ShipCatalog] = None


def default_catalog() -> ShipCatalog:
    global _default
    if _default is None:
        _default = load_catalog(DEFAULT_CATALOG_PATH)
    return _default


__all__ = [
    "DEFAULT_CATALOG_PATH",
    "ShipCatalog",
    "ShipStats",
    "default_catalog",
    "load_catalog",
]
