"""Tests for gallery record mapping and service-page helpers."""

from photofeed.filtering import apply_optional_filters
from photofeed.gallery import (
    GalleryPhoto,
    calculate_category_counts,
    filter_photos_by_service_slug,
    format_tags_for_display,
    get_all_gallery_categories,
    get_gallery_category,
    get_service_page_photos,
    to_gallery_photo,
)
from photofeed.models import Photo


def _gallery(photo_id, tags):
    return GalleryPhoto(id=photo_id, url=f"https://img.test/{photo_id}.jpg", thumbnail_url="", captured_at=None, tags=tags)


def test_to_gallery_photo_prefers_web_and_thumbnail_variants():
    photo = Photo.from_payload(
        {
            "id": "p1",
            "captured_at": 1700000000,
            "coordinates": {"lat": 40.0, "lng": -75.0},
            "uris": [
                {"type": "original", "uri": "https://img.test/p1/original.jpg"},
                {"type": "web", "uri": "https://img.test/p1/web.jpg"},
                {"type": "thumbnail", "uri": "https://img.test/p1/thumb.jpg"},
            ],
        }
    )
    filtered = apply_optional_filters(photo, ["RRWebsite", "Roofing", "After"])

    record = to_gallery_photo(filtered).to_dict()

    assert record == {
        "id": "p1",
        "url": "https://img.test/p1/web.jpg",
        "thumbnailUrl": "https://img.test/p1/thumb.jpg",
        "capturedAt": "1700000000",
        "tags": ["RRWebsite", "Roofing", "After"],
        "location": {"lat": 40.0, "lon": -75.0},
        "category": "roofing",
        "isBeforePhoto": False,
        "isAfterPhoto": True,
    }


def test_to_gallery_photo_falls_back_to_original_upload():
    photo = Photo.from_payload(
        {
            "id": "p2",
            "created_at": 1690000000,
            "uris": [{"type": "original", "url": "https://img.test/p2/original.jpg"}],
        }
    )
    filtered = apply_optional_filters(photo, ["RRWebsite", "Siding"])

    record = to_gallery_photo(filtered)

    assert record.url == "https://img.test/p2/original.jpg"
    assert record.thumbnail_url == record.url
    assert record.captured_at == "1690000000"
    assert record.location is None
    assert record.category == "siding"


def test_legacy_single_uri_is_used_when_no_variants():
    photo = Photo.from_payload({"id": "p3", "uri": "https://img.test/p3.jpg"})
    record = to_gallery_photo(apply_optional_filters(photo, ["RRWebsite", "Masonry"]))
    assert record.url == record.thumbnail_url == "https://img.test/p3.jpg"


def test_display_tags_hide_the_master_tag():
    assert format_tags_for_display(["RRWebsite", "roofing", "skylight", "Before"]) == [
        "Roofing",
        "Skylights",
        "Before",
    ]


def test_gallery_categories():
    tags = ["Gutters", "Churches", "Roofing", "Siding"]
    assert get_all_gallery_categories(tags) == ["Siding", "Churches & Institutions", "Roofing"]
    assert get_gallery_category(tags) == "Roofing"
    assert get_gallery_category(["Before"]) is None


def test_service_slug_filtering():
    photos = [
        _gallery("1", ["RRWebsite", "Siding"]),
        _gallery("2", ["RRWebsite", "Roofing"]),
        _gallery("3", ["RRWebsite", "gutters"]),
        _gallery("4", ["RRWebsite", "Siding", "Gutters"]),
    ]

    assert [p.id for p in filter_photos_by_service_slug(photos, "siding-and-gutters")] == ["1", "3", "4"]
    assert [p.id for p in get_service_page_photos(photos, "siding-and-gutters", limit=2)] == ["1", "3"]
    assert filter_photos_by_service_slug(photos, "decks") == []


def test_category_counts_count_each_photo_once_per_category():
    photos = [
        _gallery("1", ["Roofing", "Siding"]),
        _gallery("2", ["Siding", "Gutters"]),
        _gallery("3", ["Windows"]),
    ]

    assert calculate_category_counts(photos) == {"All": 3, "Roofing": 1, "Siding": 2, "Windows": 1}
    assert calculate_category_counts([]) == {"All": 0}
