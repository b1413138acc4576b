import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from app.errors import CatalogError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceEntry:
    id: str
    name: str
    price: Decimal


# service id -> (display name, price in whole dollars)
DEFAULT_SERVICES = {
    "wig-install": ("Wig Install", 50),
    "wig-install-style": ("Wig Install + Style", 60),
    "qw-middle-side": ("Quick Weave Middle/Side Part", 70),
    "qw-fulani": ("Fulani Quick Weave", 85),
    "island-small": ("Island Twist Small", 115),
    "island-medium": ("Island Twist Medium", 100),
    "softlocs-small": ("Soft Locs Small", 130),
    "softlocs-medium": ("Soft Locs Medium", 100),
    "knotless-xs": ("Knotless Xtra Small", 180),
    "knotless-small": ("Knotless Small", 130),
    "knotless-medium": ("Knotless Medium", 115),
    "knotless-large": ("Knotless Large", 90),
    "knotless-bob": ("Knotless Bob", 100),
    "stitch-small-freestyle": ("Stitch Braids Small Freestyle", 115),
    "stitch-freestyle": ("Stitch Braids Freestyle", 105),
    "stitch-fulani": ("Fulani Braids", 115),
    "stitch-2braids": ("2 Braids", 40),
    "natural-cornrows": ("Men's Cornrows", 45),
    "natural-plaits": ("Plaits", 60),
    "natural-twist": ("Twist", 45),
    "locs-starter": ("Starter Locs", 65),
    "locs-retwist": ("Retwist", 45),
    "locs-twostrand": ("Two Strand", 65),
    "locs-barrels": ("Barrels", 75),
}


class ServiceCatalog:
    """Read-only price list keyed by exact service id."""

    def __init__(self, entries: Mapping[str, ServiceEntry]):
        self._entries = MappingProxyType(dict(entries))

    @classmethod
    def from_pairs(cls, services: Mapping[str, tuple]) -> "ServiceCatalog":
        return cls({sid: ServiceEntry(id=sid, name=name, price=Decimal(str(price))) for sid, (name, price) in services.items()})

    def lookup(self, service_id: str) -> Optional[ServiceEntry]:
        return self._entries.get(service_id)

    def __contains__(self, service_id: object) -> bool:
        return service_id in self._entries

    def __iter__(self) -> Iterator[ServiceEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def load_catalog_file(path: str) -> ServiceCatalog:
    """Read a catalog from a JSON object of ``{"<id>": {"name": ..., "price": ...}}``."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CatalogError(f"Unable to read catalog {path}: {exc}") from exc
    if not isinstance(raw, dict) or not raw:
        raise CatalogError(f"Catalog {path} must be a non-empty JSON object")

    entries: Dict[str, ServiceEntry] = {}
    for sid, item in raw.items():
        try:
            entries[sid] = ServiceEntry(id=sid, name=str(item["name"]), price=Decimal(str(item["price"])))
        except (KeyError, TypeError, InvalidOperation) as exc:
            raise CatalogError(f"Invalid catalog entry {sid!r}: {exc}") from exc
    return ServiceCatalog(entries)


def build_catalog(path: Optional[str] = None) -> ServiceCatalog:
    if path:
        catalog = load_catalog_file(path)
        logger.info("Loaded %d services from %s", len(catalog), path)
        return catalog
    return ServiceCatalog.from_pairs(DEFAULT_SERVICES)
