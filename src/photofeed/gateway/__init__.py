"""Remote photo service access."""

from .cache import ResponseCache
from .client import CompanyCamGateway, create_gateway, unwrap_envelope

__all__ = [
    "CompanyCamGateway",
    "ResponseCache",
    "create_gateway",
    "unwrap_envelope",
]
