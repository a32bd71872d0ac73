"""Photo service entities and derived gallery records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from photofeed.tags import resolve_tag_name


def _to_int(value: Any) -> Optional[int]:
    try:
        if value is None or value == "":
            return None
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class Coordinates:
    lat: float
    lon: float

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Coordinates"]:
        if not isinstance(payload, dict):
            return None
        lat = payload.get("lat")
        lon = payload.get("lon", payload.get("lng"))
        try:
            return cls(lat=float(lat), lon=float(lon))
        except (TypeError, ValueError):
            return None

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}


@dataclass
class Address:
    street_address_1: Optional[str] = None
    street_address_2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["Address"]:
        if not isinstance(payload, dict):
            return None
        return cls(
            street_address_1=_to_str(payload.get("street_address_1")),
            street_address_2=_to_str(payload.get("street_address_2")),
            city=_to_str(payload.get("city")),
            state=_to_str(payload.get("state")),
            postal_code=_to_str(payload.get("postal_code")),
            country=_to_str(payload.get("country")),
        )


@dataclass
class Project:
    """Project as listed by the photo service."""

    id: str
    name: str
    address: Optional[Address] = None
    coordinates: Optional[Coordinates] = None
    created_at: Any = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Project":
        project_id = _to_str(payload.get("id"))
        if not project_id:
            raise ValueError("Project payload is missing id")
        return cls(
            id=project_id,
            name=_to_str(payload.get("name")) or "",
            address=Address.from_payload(payload.get("address")),
            coordinates=Coordinates.from_payload(payload.get("coordinates")),
            created_at=payload.get("created_at"),
        )


@dataclass
class PhotoUri:
    type: str
    uri: str


@dataclass
class Photo:
    """Photo as listed under a project. ``raw`` keeps the untouched payload."""

    id: str
    uris: List[PhotoUri] = field(default_factory=list)
    uri: Optional[str] = None
    captured_at: Optional[int] = None
    coordinates: Optional[Coordinates] = None
    project_id: Optional[str] = None
    description: Optional[str] = None
    processing_status: Optional[str] = None
    created_at: Any = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Photo":
        photo_id = _to_str(payload.get("id"))
        if not photo_id:
            raise ValueError("Photo payload is missing id")
        uris: List[PhotoUri] = []
        for item in payload.get("uris") or []:
            if not isinstance(item, dict):
                continue
            value = _to_str(item.get("uri")) or _to_str(item.get("url"))
            if value:
                uris.append(PhotoUri(type=str(item.get("type") or ""), uri=value))
        return cls(
            id=photo_id,
            uris=uris,
            uri=_to_str(payload.get("uri")),
            captured_at=_to_int(payload.get("captured_at")),
            coordinates=Coordinates.from_payload(payload.get("coordinates")),
            project_id=_to_str(payload.get("project_id")),
            description=_to_str(payload.get("description")),
            processing_status=_to_str(payload.get("processing_status")),
            created_at=payload.get("created_at"),
            raw=dict(payload),
        )

    def get_uri(self, uri_type: str) -> Optional[str]:
        """Return the URI of one image variant (original/web/thumbnail)."""
        if not self.uris:
            return self.uri
        for item in self.uris:
            if item.type == uri_type:
                return item.uri
        return None


@dataclass
class Tag:
    id: str
    display_value: Optional[str] = None
    value: Optional[str] = None
    name: Optional[str] = None
    tag_type: Optional[str] = None
    created_at: Any = None
    updated_at: Any = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Tag":
        return cls(
            id=_to_str(payload.get("id")) or "",
            display_value=payload.get("display_value"),
            value=payload.get("value"),
            name=payload.get("name"),
            tag_type=_to_str(payload.get("tag_type")),
            created_at=payload.get("created_at"),
            updated_at=payload.get("updated_at"),
        )

    @property
    def label(self) -> str:
        return resolve_tag_name(
            {"display_value": self.display_value, "value": self.value, "name": self.name}
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "display_value": self.display_value,
            "value": self.value,
            "name": self.name,
            "tag_type": self.tag_type,
            "created_at": self.created_at,
        }


@dataclass
class FilteredPhoto:
    """A photo that passed the gallery filters, with its derived tag metadata."""

    photo: Photo
    tags: List[str]
    matched_tags: List[str]
    service_category: str
    is_before_photo: bool = False
    is_after_photo: bool = False

    @property
    def id(self) -> str:
        return self.photo.id

    def to_dict(self) -> dict:
        payload = dict(self.photo.raw)
        payload.update(
            {
                "id": self.photo.id,
                "tags": list(self.tags),
                "matchedTags": list(self.matched_tags),
                "serviceCategory": self.service_category,
                "isBeforePhoto": self.is_before_photo,
                "isAfterPhoto": self.is_after_photo,
            }
        )
        return payload


@dataclass
class SkippedUnit:
    """A project or photo left out of an aggregation, and why."""

    kind: str  # 'project' or 'photo'
    unit_id: str
    reason: str

    def to_dict(self) -> dict:
        return {"kind": self.kind, "id": self.unit_id, "reason": self.reason}


@dataclass
class PhotosListResponse:
    photos: List[FilteredPhoto]
    total: int
    page: int
    page_size: int
    skipped: List[SkippedUnit] = field(default_factory=list)
    partial: bool = False
