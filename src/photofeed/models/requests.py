"""Pydantic request models for the gallery feed."""

from datetime import date, datetime, time, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


BeforeAfter = Literal["before", "after", "both"]


def _aware(value: datetime) -> datetime:
    # Naive bounds are UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _as_date(value):
    """Return a ``date`` for date-only input (``date`` or ``YYYY-MM-DD``), else None."""
    if isinstance(value, datetime):
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


class PhotoFilterOptions(BaseModel):
    """Caller-supplied narrowing criteria and pagination for the gallery feed."""

    service_tag: Optional[str] = None
    before_after: Optional[BeforeAfter] = None
    project_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(default=1, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)

    @field_validator("service_tag", "project_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _expand_date_only(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        day = _as_date(value)
        if day is None:
            return value
        # A bare end date covers that whole day.
        bound = time.max if info.field_name == "end_date" else time.min
        return datetime.combine(day, bound)

    @field_validator("before_after", mode="before")
    @classmethod
    def _normalize_before_after(cls, value):
        if value is None:
            return None
        text = str(value).strip().lower()
        return text or None

    @model_validator(mode="after")
    def _check_date_bounds(self):
        if self.start_date and self.end_date and _aware(self.start_date) > _aware(self.end_date):
            raise ValueError("start_date must not be after end_date")
        return self
