"""CLI commands package."""

from . import (
    config,
    photos,
    tags,
)

__all__ = [
    'config',
    'photos',
    'tags',
]
