"""Gallery filter engine: the master/service tag gate plus caller narrowing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from photofeed.models import FilteredPhoto, Photo, PhotoFilterOptions
from photofeed.tags import has_master_tag, has_tag, is_after, is_before, matched_service_tags

REJECT_NO_MASTER_TAG = "Missing master tag"
REJECT_NO_SERVICE_TAG = "Missing service tag"
REJECT_NOT_REQUESTED_SERVICE = "Missing requested service tag"
REJECT_NOT_BEFORE = "Not a before photo"
REJECT_NOT_AFTER = "Not an after photo"
REJECT_NOT_BEFORE_AND_AFTER = "Not both a before and an after photo"
REJECT_OUTSIDE_DATES = "Captured outside the requested dates"


@dataclass
class FilterDecision:
    """Why one photo is in or out of the feed."""

    photo_id: str
    tags: List[str]
    has_master_tag: bool
    matched_service_tags: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def passes_filter(self) -> bool:
        return self.reason is None

    def to_dict(self) -> dict:
        return {
            "photo_id": self.photo_id,
            "tags": list(self.tags),
            "has_master_tag": self.has_master_tag,
            "matched_service_tags": list(self.matched_service_tags),
            "passes_filter": self.passes_filter,
            "reason": self.reason,
        }


def passes_base_filter(tags: Sequence[str]) -> bool:
    """Master tag present AND at least one service tag present."""
    return has_master_tag(tags) and bool(matched_service_tags(tags))


def _epoch(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _within_date_bounds(photo: Photo, options: PhotoFilterOptions) -> bool:
    # Photos without a capture time are never excluded by date bounds.
    if photo.captured_at is None:
        return True
    if options.start_date and photo.captured_at < _epoch(options.start_date):
        return False
    if options.end_date and photo.captured_at > _epoch(options.end_date):
        return False
    return True


def rejection_reason(photo: Photo, tags: Sequence[str], options: Optional[PhotoFilterOptions] = None) -> Optional[str]:
    """Return why the photo is left out of the feed, or None if it belongs."""
    options = options or PhotoFilterOptions()

    if not has_master_tag(tags):
        return REJECT_NO_MASTER_TAG
    if not matched_service_tags(tags):
        return REJECT_NO_SERVICE_TAG

    # The requested tag must be on the photo itself, not just in the vocabulary.
    if options.service_tag and not has_tag(tags, options.service_tag):
        return REJECT_NOT_REQUESTED_SERVICE

    if options.before_after == "before" and not is_before(tags):
        return REJECT_NOT_BEFORE
    if options.before_after == "after" and not is_after(tags):
        return REJECT_NOT_AFTER
    if options.before_after == "both" and not (is_before(tags) and is_after(tags)):
        return REJECT_NOT_BEFORE_AND_AFTER

    if not _within_date_bounds(photo, options):
        return REJECT_OUTSIDE_DATES
    return None


def apply_optional_filters(
    photo: Photo,
    tags: Sequence[str],
    options: Optional[PhotoFilterOptions] = None,
) -> Optional[FilteredPhoto]:
    """Return the annotated photo if it belongs in the feed, else None."""
    if rejection_reason(photo, tags, options) is not None:
        return None

    matched = matched_service_tags(tags)
    return FilteredPhoto(
        photo=photo,
        tags=list(tags),
        matched_tags=matched,
        service_category=matched[0],
        is_before_photo=is_before(tags),
        is_after_photo=is_after(tags),
    )


def explain_photo(photo: Photo, tags: Sequence[str], options: Optional[PhotoFilterOptions] = None) -> FilterDecision:
    return FilterDecision(
        photo_id=photo.id,
        tags=list(tags),
        has_master_tag=has_master_tag(tags),
        matched_service_tags=matched_service_tags(tags),
        reason=rejection_reason(photo, tags, options),
    )
