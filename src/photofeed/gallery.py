"""Display-ready gallery records and service-page helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from photofeed.models import Coordinates, FilteredPhoto
from photofeed.tags import MASTER_TAG

# Tag (case-folded) -> gallery display category.
TAG_TO_CATEGORY: Dict[str, str] = {
    "roofing": "Roofing",
    "commercial": "Commercial",
    "masonry": "Masonry",
    "windows": "Windows",
    "skylight": "Skylights",
    "skylights": "Skylights",
    "siding": "Siding",
    "gutters": "Siding",
    "churches": "Churches & Institutions",
    "institutions": "Churches & Institutions",
    "historical": "Historical Restoration",
    "restoration": "Historical Restoration",
}

CATEGORY_PRIORITY = (
    "Roofing",
    "Siding",
    "Windows",
    "Skylights",
    "Masonry",
    "Commercial",
    "Churches & Institutions",
    "Historical Restoration",
)

SERVICE_SLUG_TO_TAGS: Dict[str, List[str]] = {
    "roofing": ["roofing"],
    "siding-and-gutters": ["Siding", "Gutters"],
    "commercial": ["Commercial"],
    "churches-and-institutions": ["Churches", "Institutions"],
    "historical-restorations": ["Historical", "Restoration"],
    "masonry": ["Masonry"],
    "windows": ["Windows"],
    "skylights": ["Skylight"],
}

HIDDEN_TAGS = {MASTER_TAG.casefold()}

_DISPLAY_NORMALIZATIONS = {
    "roofing": "Roofing",
    "skylight": "Skylights",
}


@dataclass
class GalleryPhoto:
    id: str
    url: str
    thumbnail_url: str
    captured_at: Optional[str]
    tags: List[str] = field(default_factory=list)
    location: Optional[Coordinates] = None
    category: Optional[str] = None
    is_before_photo: bool = False
    is_after_photo: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "thumbnailUrl": self.thumbnail_url,
            "capturedAt": self.captured_at,
            "tags": list(self.tags),
            "location": self.location.to_dict() if self.location else None,
            "category": self.category,
            "isBeforePhoto": self.is_before_photo,
            "isAfterPhoto": self.is_after_photo,
        }


def to_gallery_photo(filtered: FilteredPhoto) -> GalleryPhoto:
    """Map a filtered photo onto the shape the site's gallery renders.

    ``web`` (400px) is the main image and ``thumbnail`` (250px) the preview;
    both fall back to the original upload.
    """
    photo = filtered.photo
    main_url = photo.get_uri("web") or photo.get_uri("original") or photo.uri or ""
    thumbnail_url = photo.get_uri("thumbnail") or main_url
    if photo.captured_at is not None:
        captured_at: Optional[str] = str(photo.captured_at)
    else:
        captured_at = str(photo.created_at) if photo.created_at is not None else None
    return GalleryPhoto(
        id=photo.id,
        url=main_url,
        thumbnail_url=thumbnail_url,
        captured_at=captured_at,
        tags=list(filtered.tags),
        location=photo.coordinates,
        category=filtered.service_category.lower() if filtered.service_category else None,
        is_before_photo=filtered.is_before_photo,
        is_after_photo=filtered.is_after_photo,
    )


def format_tag_for_display(tag: str) -> Optional[str]:
    """Return the tag as shown to visitors, or None for internal tags."""
    folded = tag.strip().casefold()
    if folded in HIDDEN_TAGS:
        return None
    return _DISPLAY_NORMALIZATIONS.get(folded, tag)


def format_tags_for_display(tags: Sequence[str]) -> List[str]:
    formatted = (format_tag_for_display(tag) for tag in tags)
    return [tag for tag in formatted if tag is not None]


def get_all_gallery_categories(tags: Sequence[str]) -> List[str]:
    """All display categories a photo belongs to, in first-seen tag order."""
    categories: List[str] = []
    for tag in tags:
        category = TAG_TO_CATEGORY.get(tag.strip().casefold())
        if category and category not in categories:
            categories.append(category)
    return categories


def get_gallery_category(tags: Sequence[str]) -> Optional[str]:
    """Highest-priority display category for a photo."""
    matched = set(get_all_gallery_categories(tags))
    for category in CATEGORY_PRIORITY:
        if category in matched:
            return category
    return None


def filter_photos_by_service_slug(photos: Sequence[GalleryPhoto], service_slug: str) -> List[GalleryPhoto]:
    slug_tags = SERVICE_SLUG_TO_TAGS.get(service_slug)
    if not slug_tags:
        return []
    return [photo for photo in photos if _has_any(photo.tags, slug_tags)]


def get_service_page_photos(photos: Sequence[GalleryPhoto], service_slug: str, limit: int = 3) -> List[GalleryPhoto]:
    return filter_photos_by_service_slug(photos, service_slug)[:limit]


def calculate_category_counts(photos: Sequence[GalleryPhoto]) -> Dict[str, int]:
    """Photo counts per display category; a photo counts once per category."""
    counts: Dict[str, int] = {"All": len(photos)}
    for photo in photos:
        for category in get_all_gallery_categories(photo.tags):
            counts[category] = counts.get(category, 0) + 1
    return counts


def _has_any(tags: Sequence[str], wanted: Sequence[str]) -> bool:
    folded = {tag.strip().casefold() for tag in tags}
    return any(item.casefold() in folded for item in wanted)
