"""Rate limiting setup using slowapi (in-memory, per process)."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from photofeed.settings import settings

limiter = Limiter(key_func=get_remote_address)


def photos_rate_limit() -> str:
    return settings.photos_rate_limit
