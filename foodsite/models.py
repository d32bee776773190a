"""Core data models shared by the location search engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class SiteType(str, Enum):
    FOOD_BANK = "food_bank"
    FOOD_PANTRY = "food_pantry"
    SOUP_KITCHEN = "soup_kitchen"
    MOBILE_FOOD_BANK = "mobile_food_bank"
    COMMUNITY_FRIDGE = "community_fridge"
    OTHER = "other"


class SearchMode(str, Enum):
    ZIP = "zip"
    CITY = "city"
    COORDINATES = "coordinates"


class SortKey(str, Enum):
    DISTANCE = "distance"
    NAME = "name"
    TYPE = "type"
    OPEN_STATUS = "openStatus"


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(slots=True)
class Site:
    """Normalized snapshot of a donation/assistance site returned by one source."""

    id: str
    name: str
    address: str
    coordinates: Coordinates
    type: SiteType = SiteType.OTHER
    phone: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    hours: Optional[str] = None
    accepted_items: List[str] = field(default_factory=list)
    requirements: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    accessibility: List[str] = field(default_factory=list)
    special_notes: Optional[str] = None
    distance: float = 0.0
    source: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["type"] = self.type.value
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Site":
        coords = payload.get("coordinates") or {}
        return cls(
            id=str(payload["id"]),
            name=payload["name"],
            address=payload["address"],
            coordinates=Coordinates(lat=float(coords["lat"]), lng=float(coords["lng"])),
            type=SiteType(payload.get("type", SiteType.OTHER.value)),
            phone=payload.get("phone"),
            website=payload.get("website"),
            email=payload.get("email"),
            hours=payload.get("hours"),
            accepted_items=list(payload.get("accepted_items") or []),
            requirements=list(payload.get("requirements") or []),
            languages=list(payload.get("languages") or []),
            accessibility=list(payload.get("accessibility") or []),
            special_notes=payload.get("special_notes"),
            distance=float(payload.get("distance") or 0.0),
            source=payload.get("source", "unknown"),
        )


@dataclass(frozen=True, slots=True)
class Rejected:
    """A raw record that did not survive normalization."""

    source: str
    reason: str
    raw_id: Optional[str] = None


@dataclass(slots=True)
class SiteFilters:
    """User-selected predicates; every populated field must hold (AND)."""

    types: Optional[Sequence[SiteType]] = None
    open_now: bool = False
    has_phone: bool = False
    has_website: bool = False
    accepts_any_of: Optional[Sequence[str]] = None
    max_distance: Optional[float] = None
