"""Tag vocabulary and case-insensitive tag classification.

Gallery eligibility is decided on tag names alone:

1. The master tag must be present on every gallery photo.
2. At least one tag from the service vocabulary must be present.
3. Before/After markers are optional and only narrow the feed.

All comparisons ignore case and surrounding whitespace; field crews enter
tags by hand and the photo service preserves whatever casing they typed.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence

MASTER_TAG = "RRWebsite"

# Declaration order decides the primary category of a photo.
SERVICE_TAGS = (
    "roofing",
    "Siding",
    "Windows",
    "Gutters",
    "Masonry",
    "Skylight",
    "Commercial",
    "Historical",
    "Restoration",
    "Churches",
    "Institutions",
)

BEFORE_TAG = "Before"
AFTER_TAG = "After"

# The photo service fills these inconsistently; first non-empty wins.
TAG_NAME_FIELDS = ("display_value", "value", "name")


def _fold(value: str) -> str:
    return value.strip().casefold()


def resolve_tag_name(payload: Mapping[str, Any]) -> str:
    """Return the first non-empty name field of a raw tag payload, else ``""``."""
    for field_name in TAG_NAME_FIELDS:
        candidate = payload.get(field_name)
        if candidate is None:
            continue
        text = str(candidate).strip()
        if text:
            return text
    return ""


def has_tag(tags: Iterable[str], target: str) -> bool:
    wanted = _fold(target)
    return any(_fold(tag) == wanted for tag in tags if tag)


def has_master_tag(tags: Sequence[str]) -> bool:
    return has_tag(tags, MASTER_TAG)


def matched_service_tags(tags: Sequence[str]) -> List[str]:
    """Service vocabulary entries present in ``tags``, in vocabulary order."""
    present = {_fold(tag) for tag in tags if tag}
    return [service_tag for service_tag in SERVICE_TAGS if _fold(service_tag) in present]


def is_before(tags: Sequence[str]) -> bool:
    return has_tag(tags, BEFORE_TAG)


def is_after(tags: Sequence[str]) -> bool:
    return has_tag(tags, AFTER_TAG)


def normalize_service_tag(value: Optional[str]) -> Optional[str]:
    """Map user input onto its canonical vocabulary entry, or None if unknown."""
    if not value:
        return None
    wanted = _fold(value)
    for service_tag in SERVICE_TAGS:
        if _fold(service_tag) == wanted:
            return service_tag
    return None


def _label_of(item: Any) -> str:
    label = getattr(item, "label", None)
    if isinstance(label, str):
        return label
    if isinstance(item, Mapping):
        return resolve_tag_name(item)
    return str(item or "")


def _lookup(vocabulary: Sequence[tuple[str, Any]], looking_for: str, *, similar: Iterable[str] = ()) -> dict:
    wanted = _fold(looking_for)
    exact = next((item for label, item in vocabulary if _fold(label) == wanted), None)
    needles = [wanted, *(_fold(term) for term in similar)]
    similar_matches = [
        item for label, item in vocabulary
        if label and any(needle in _fold(label) for needle in needles)
    ]
    return {
        "looking_for": looking_for,
        "found": exact is not None,
        "exact_match": exact,
        "similar_matches": similar_matches,
    }


def analyze_tag_vocabulary(account_tags: Sequence[Any]) -> dict:
    """Report which gallery tags exist in the account's tag vocabulary.

    Args:
        account_tags: Tag records (``Tag`` objects or raw payload dicts)

    Returns:
        dict with ``total_tags``, ``master_tag``, ``service_tags``,
        ``before_after_tags``, ``found_tags``, ``missing_tags`` and
        ``ready_for_filtering`` (master tag and at least one service tag exist)
    """
    vocabulary = [(_label_of(item), item) for item in account_tags]

    master = _lookup(vocabulary, MASTER_TAG, similar=("website",))
    services = [_lookup(vocabulary, service_tag) for service_tag in SERVICE_TAGS]
    before_after = {
        "before": _lookup(vocabulary, BEFORE_TAG),
        "after": _lookup(vocabulary, AFTER_TAG),
    }

    required = [master, *services]
    return {
        "total_tags": len(vocabulary),
        "master_tag": master,
        "service_tags": services,
        "before_after_tags": before_after,
        "found_tags": [entry["looking_for"] for entry in required if entry["found"]],
        "missing_tags": [entry["looking_for"] for entry in required if not entry["found"]],
        "ready_for_filtering": master["found"] and any(entry["found"] for entry in services),
    }
