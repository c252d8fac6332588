"""Loading of the ideal ritual catalog ("ideal map")."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from restwell.core.config import settings

logger = logging.getLogger(__name__)

BUNDLED_CATALOG_PATH = Path(__file__).resolve().parents[2] / "data" / "ideal_sleep.json"


@dataclass(frozen=True)
class IdealMap:
    version: str
    items: Tuple[Mapping[str, Any], ...]

    def __len__(self) -> int:
        return len(self.items)

    def get(self, ritual_id: str) -> Optional[Mapping[str, Any]]:
        return next(
            (item for item in self.items if isinstance(item, Mapping) and item.get("id") == ritual_id),
            None,
        )


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(inner) for key, inner in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(inner) for inner in value)
    return value


def parse_ideal_map(document: Any) -> IdealMap:
    """Build an immutable catalog from a decoded JSON document."""
    if isinstance(document, list):
        version, items = "unversioned", document
    elif isinstance(document, dict):
        version = str(document.get("version") or "unversioned")
        items = document.get("items") or []
    else:
        raise ValueError("Ideal map must be a list or an object with an 'items' list")
    if not isinstance(items, list):
        raise ValueError("Ideal map 'items' must be a list")
    return IdealMap(version=version, items=tuple(_freeze(item) for item in items))


def load_ideal_map(path: Path | str) -> IdealMap:
    with open(path, "r", encoding="utf-8") as handle:
        catalog = parse_ideal_map(json.load(handle))
    logger.info("Loaded ideal map %s with %d rituals from %s", catalog.version, len(catalog), path)
    return catalog


@lru_cache
def get_ideal_map() -> IdealMap:
    """Return the process-wide catalog, loading it on first use."""
    return load_ideal_map(settings.ideal_map_path or BUNDLED_CATALOG_PATH)
