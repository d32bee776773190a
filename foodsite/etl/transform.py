"""Utilities for transforming raw source payloads into canonical Site objects."""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse, urlunparse

from foodsite.models import Coordinates, Rejected, Site, SiteType

logger = logging.getLogger(__name__)

SOURCE_OSM = "openstreetmap"
SOURCE_GOOGLE_PLACES = "google_places"
SOURCE_SERPAPI = "serpapi_google_maps"

DEFAULT_NAME = "Food Bank"
ADDRESS_NOT_AVAILABLE = "Address not available"

EMAIL_REGEX = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)
WEB_SCHEMES = ("http", "https")
NON_WEB_SCHEMES = ("mailto", "tel", "sms", "javascript", "data")

FOOD_KEYWORDS = ("food", "pantry", "meal", "soup", "grocer", "hunger", "fridge", "kitchen", "nutrition")

# (trigger phrases, canonical label); first trigger found adds the label once.
ACCEPTED_ITEM_TRIGGERS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("non-perishable", "nonperishable", "non perishable"), "Non-perishable foods"),
    (("canned",), "Canned goods"),
    (("fresh produce", "fruits", "vegetables"), "Fresh produce"),
    (("frozen",), "Frozen foods"),
    (("dairy", "milk", "eggs"), "Dairy and eggs"),
    (("bread", "baked goods"), "Baked goods"),
    (("baby formula", "infant formula", "baby food"), "Baby food and formula"),
    (("diaper",), "Diapers"),
    (("hygiene", "toiletries"), "Hygiene products"),
    (("pet food",), "Pet food"),
    (("clothing", "clothes"), "Clothing"),
)

REQUIREMENT_TRIGGERS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("id required", "photo id", "identification required", "bring id"), "Valid ID required"),
    (("proof of address", "proof of residence", "utility bill"), "Proof of address required"),
    (("proof of income", "income verification", "income eligible", "income-eligible"), "Income verification required"),
    (("by appointment", "appointment required", "call ahead"), "Appointment required"),
    (("registration required", "must register", "pre-register"), "Registration required"),
    (("residents only", "residents of"), "Service area residency required"),
)

ACCESSIBILITY_TRIGGERS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("wheelchair accessible", "wheelchair access", "ada accessible"), "Wheelchair accessible"),
    (("parking",), "Parking available"),
    (("home delivery", "delivery available", "homebound"), "Home delivery available"),
    (("drive-thru", "drive thru", "drive-through", "drive through"), "Drive-through pickup"),
)

# Substring stems mapped to the canonical language name.
LANGUAGE_STEMS: Sequence[Tuple[str, str]] = (
    ("span", "Spanish"),
    ("espa", "Spanish"),
    ("engl", "English"),
    ("mandarin", "Chinese"),
    ("cantonese", "Chinese"),
    ("chin", "Chinese"),
    ("french", "French"),
    ("creole", "Haitian Creole"),
    ("viet", "Vietnamese"),
    ("arab", "Arabic"),
    ("russ", "Russian"),
    ("korea", "Korean"),
    ("tagalog", "Tagalog"),
    ("filipino", "Tagalog"),
    ("portug", "Portuguese"),
    ("polish", "Polish"),
)
_LANGUAGE_WORD_REGEX = re.compile(
    r"\b(spanish|espa\w+|english|mandarin|cantonese|chinese|french|creole|vietnamese|arabic|russian|korean|"
    r"tagalog|filipino|portuguese|polish)\b",
    re.IGNORECASE,
)
OSM_LANGUAGE_CODES = {
    "es": "Spanish",
    "en": "English",
    "zh": "Chinese",
    "fr": "French",
    "ht": "Haitian Creole",
    "vi": "Vietnamese",
    "ar": "Arabic",
    "ru": "Russian",
    "ko": "Korean",
    "tl": "Tagalog",
    "pt": "Portuguese",
    "pl": "Polish",
}

NormalizeResult = Union[Site, Rejected]


def format_phone(raw: Optional[str]) -> Optional[str]:
    """Render 10/11-digit North American numbers as ``(AAA) BBB-CCCC``."""
    if raw is None:
        return None
    stripped = str(raw).strip()
    if not stripped:
        return None

    digits = re.sub(r"\D", "", stripped)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return stripped


def sanitize_website(raw_url: Optional[str]) -> Optional[str]:
    """Return an absolute http(s) URL, or None for mail, phone and other non-web links."""
    if not raw_url:
        return None
    url = str(raw_url).strip()
    if not url:
        return None

    parsed = urlparse(url)
    if "://" not in url:
        if parsed.scheme.lower() in NON_WEB_SCHEMES:
            return None
        parsed = urlparse(f"https://{url.lstrip('/')}")
    if parsed.scheme.lower() not in WEB_SCHEMES or not parsed.hostname:
        return None
    return urlunparse(parsed._replace(scheme=parsed.scheme.lower(), fragment=""))


def validate_email(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    candidate = str(raw).strip()
    if EMAIL_REGEX.fullmatch(candidate):
        return candidate
    logger.debug("Discarding invalid email %r", candidate)
    return None


def format_osm_address(tags: Optional[Dict[str, Any]]) -> str:
    if not tags:
        return ADDRESS_NOT_AVAILABLE
    parts = [
        tags.get(key)
        for key in ("addr:housenumber", "addr:street", "addr:city", "addr:state", "addr:postcode")
        if tags.get(key)
    ]
    address = " ".join(str(part).strip() for part in parts).strip()
    return address or _strip_or_none(tags.get("address")) or ADDRESS_NOT_AVAILABLE


def is_food_related(*texts: Optional[str]) -> bool:
    combined = " ".join(text for text in texts if text).lower()
    return any(keyword in combined for keyword in FOOD_KEYWORDS)


def infer_site_type(name: str, description: Optional[str] = None, tags: Optional[Dict[str, Any]] = None) -> SiteType:
    """Pick the site type from keywords; the first matching rule wins."""
    text = f"{name or ''} {description or ''}".lower()
    tags = tags or {}
    facility = str(tags.get("social_facility") or "").lower()

    if "soup kitchen" in text or facility == "soup_kitchen":
        return SiteType.SOUP_KITCHEN
    if "mobile" in text:
        return SiteType.MOBILE_FOOD_BANK
    if "community fridge" in text or "little free pantry" in text or tags.get("amenity") == "food_sharing":
        return SiteType.COMMUNITY_FRIDGE
    if "food pantry" in text or facility == "food_pantry":
        return SiteType.FOOD_PANTRY
    if "food bank" in text or facility == "food_bank":
        return SiteType.FOOD_BANK
    return SiteType.OTHER


def _match_triggers(text: str, vocabulary: Sequence[Tuple[Tuple[str, ...], str]]) -> List[str]:
    lowered = text.lower()
    found: List[str] = []
    for triggers, label in vocabulary:
        if label not in found and any(trigger in lowered for trigger in triggers):
            found.append(label)
    return found


def extract_accepted_items(text: str) -> List[str]:
    return _match_triggers(text, ACCEPTED_ITEM_TRIGGERS)


def extract_requirements(text: str) -> List[str]:
    return _match_triggers(text, REQUIREMENT_TRIGGERS)


def extract_accessibility(text: str, tags: Optional[Dict[str, Any]] = None) -> List[str]:
    found: List[str] = []
    wheelchair = str((tags or {}).get("wheelchair") or "").lower()
    if wheelchair == "yes":
        found.append("Wheelchair accessible")
    elif wheelchair == "limited":
        found.append("Limited wheelchair access")
    for label in _match_triggers(text, ACCESSIBILITY_TRIGGERS):
        if label not in found:
            found.append(label)
    return found


def canonical_language(value: str) -> Optional[str]:
    lowered = (value or "").strip().lower()
    if not lowered:
        return None
    for stem, name in LANGUAGE_STEMS:
        if stem in lowered:
            return name
    return None


def extract_languages(text: str, tags: Optional[Dict[str, Any]] = None) -> List[str]:
    found: List[str] = []
    for key, value in (tags or {}).items():
        if key.startswith("language:") and str(value).lower() == "yes":
            name = OSM_LANGUAGE_CODES.get(key.split(":", 1)[1].lower())
            if name and name not in found:
                found.append(name)
    for match in _LANGUAGE_WORD_REGEX.finditer(text or ""):
        name = canonical_language(match.group(0))
        if name and name not in found:
            found.append(name)
    return found


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _coordinates(lat: Any, lng: Any) -> Optional[Coordinates]:
    lat_f = _safe_float(lat)
    lng_f = _safe_float(lng)
    if lat_f is None or lng_f is None:
        return None
    if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0):
        return None
    return Coordinates(lat=lat_f, lng=lng_f)


def _first(values: Iterable[Any]) -> Optional[str]:
    for value in values:
        stripped = _strip_or_none(value)
        if stripped:
            return stripped
    return None


def _build_site(
    *,
    site_id: str,
    source: str,
    name: Optional[str],
    address: str,
    coordinates: Coordinates,
    description: Optional[str],
    notes: Optional[str],
    phone: Optional[str],
    website: Optional[str],
    email: Optional[str],
    hours: Optional[str],
    category_hint: Optional[str] = None,
    tags: Optional[Dict[str, Any]] = None,
) -> Site:
    display_name = _strip_or_none(name) or DEFAULT_NAME
    free_text = " ".join(part for part in (description, notes) if part)
    type_text = " ".join(part for part in (description, category_hint) if part)

    accepted = extract_accepted_items(free_text)
    explicit_for = _strip_or_none((tags or {}).get("social_facility:for"))
    if explicit_for and explicit_for.lower() == "food" and "Food donations" not in accepted:
        accepted.insert(0, "Food donations")

    return Site(
        id=site_id,
        name=display_name,
        address=address,
        coordinates=coordinates,
        type=infer_site_type(display_name, type_text, tags),
        phone=format_phone(phone),
        website=sanitize_website(website),
        email=validate_email(email),
        hours=_strip_or_none(hours),
        accepted_items=accepted,
        requirements=extract_requirements(free_text),
        languages=extract_languages(free_text, tags),
        accessibility=extract_accessibility(free_text, tags),
        special_notes=_strip_or_none(free_text),
        source=source,
    )


def normalize_osm_element(element: Dict[str, Any], source: str = SOURCE_OSM) -> NormalizeResult:
    raw_id = f"{element.get('type', 'node')}/{element.get('id')}"
    tags = element.get("tags") or {}
    center = element.get("center") or {}
    coordinates = _coordinates(
        element.get("lat", center.get("lat")),
        element.get("lon", center.get("lon")),
    )
    if coordinates is None:
        return Rejected(source=source, reason="missing coordinates", raw_id=raw_id)

    name = _strip_or_none(tags.get("name"))
    description = _strip_or_none(tags.get("description"))
    if tags.get("shop") == "charity" and not is_food_related(name, description, tags.get("purpose"), tags.get("charity")):
        return Rejected(source=source, reason="charity listing without food keywords", raw_id=raw_id)

    return _build_site(
        site_id=f"osm:{raw_id}",
        source=source,
        name=name,
        address=format_osm_address(tags),
        coordinates=coordinates,
        description=description,
        notes=_strip_or_none(tags.get("note")),
        phone=_first((tags.get("phone"), tags.get("contact:phone"))),
        website=_first((tags.get("website"), tags.get("contact:website"), tags.get("url"))),
        email=_first((tags.get("email"), tags.get("contact:email"))),
        hours=tags.get("opening_hours"),
        tags=tags,
    )


def normalize_google_place(result: Dict[str, Any], source: str = SOURCE_GOOGLE_PLACES) -> NormalizeResult:
    raw_id = _strip_or_none(result.get("place_id"))
    location = (result.get("geometry") or {}).get("location") or {}
    coordinates = _coordinates(location.get("lat"), location.get("lng"))
    if coordinates is None:
        return Rejected(source=source, reason="missing coordinates", raw_id=raw_id)

    weekday_text = (result.get("opening_hours") or {}).get("weekday_text") or []
    summary = (result.get("editorial_summary") or {}).get("overview")
    return _build_site(
        site_id=f"gplaces:{raw_id or result.get('name')}",
        source=source,
        name=result.get("name"),
        address=_first((result.get("formatted_address"), result.get("vicinity"))) or ADDRESS_NOT_AVAILABLE,
        coordinates=coordinates,
        description=_strip_or_none(summary),
        notes=None,
        phone=_first((result.get("formatted_phone_number"), result.get("international_phone_number"))),
        website=result.get("website"),
        email=None,
        hours="; ".join(weekday_text) if weekday_text else None,
        category_hint=" ".join(t.replace("_", " ") for t in result.get("types") or []),
    )


def normalize_serp_result(item: Dict[str, Any], source: str = SOURCE_SERPAPI) -> NormalizeResult:
    raw_id = _first((item.get("place_id"), item.get("data_id"), item.get("data_cid")))
    gps = item.get("gps_coordinates") or {}
    coordinates = _coordinates(gps.get("latitude"), gps.get("longitude"))
    if coordinates is None:
        return Rejected(source=source, reason="missing coordinates", raw_id=raw_id)

    operating = item.get("operating_hours")
    hours = None
    if isinstance(operating, dict) and operating:
        hours = "; ".join(f"{day}: {span}" for day, span in operating.items())
    name = _first((item.get("title"), item.get("name")))
    return _build_site(
        site_id=f"serp:{raw_id or name}",
        source=source,
        name=name,
        address=_strip_or_none(item.get("address")) or ADDRESS_NOT_AVAILABLE,
        coordinates=coordinates,
        description=_strip_or_none(item.get("description")),
        notes=None,
        phone=item.get("phone"),
        website=item.get("website"),
        email=None,
        hours=hours,
        category_hint=_first((item.get("type"),)),
    )


_NORMALIZERS = {
    SOURCE_OSM: normalize_osm_element,
    SOURCE_GOOGLE_PLACES: normalize_google_place,
    SOURCE_SERPAPI: normalize_serp_result,
}


def normalize(raw: Dict[str, Any], source_tag: str) -> NormalizeResult:
    """Map one raw record from ``source_tag`` into a Site, or explain the rejection."""
    normalizer = _NORMALIZERS.get(source_tag)
    if normalizer is None:
        return Rejected(source=source_tag, reason="unknown source")
    if not isinstance(raw, dict):
        return Rejected(source=source_tag, reason="record is not an object")
    return normalizer(raw, source_tag)


def normalize_records(records: Iterable[Dict[str, Any]], source_tag: str) -> List[Site]:
    """Normalize a batch, dropping rejected records."""
    sites: List[Site] = []
    for raw in records:
        result = normalize(raw, source_tag)
        if isinstance(result, Rejected):
            logger.debug("Rejected %s record %s: %s", result.source, result.raw_id, result.reason)
            continue
        sites.append(result)
    return sites
