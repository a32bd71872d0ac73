"""API routers."""

from . import photos, tags

__all__ = ["photos", "tags"]
