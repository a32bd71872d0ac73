"""Data models for the gallery feed."""

from .entities import (
    Address,
    Coordinates,
    FilteredPhoto,
    Photo,
    PhotoUri,
    PhotosListResponse,
    Project,
    SkippedUnit,
    Tag,
)
from .requests import BeforeAfter, PhotoFilterOptions

__all__ = [
    "Address",
    "BeforeAfter",
    "Coordinates",
    "FilteredPhoto",
    "Photo",
    "PhotoFilterOptions",
    "PhotoUri",
    "PhotosListResponse",
    "Project",
    "SkippedUnit",
    "Tag",
]
