"""
Domain layer package housing request contracts and location helpers.
"""

from typing import Final

from .location import (
    InvalidLocationError,
    ObjectLocation,
    bucket_name_for,
    build_location,
    local_path,
    parse_location,
)

OPERATION_FLUSH: Final[str] = "flush"
OPERATION_STAGE: Final[str] = "stage"
OPERATION_REMOVE: Final[str] = "remove"

__all__ = [
    "InvalidLocationError",
    "ObjectLocation",
    "OPERATION_FLUSH",
    "OPERATION_REMOVE",
    "OPERATION_STAGE",
    "bucket_name_for",
    "build_location",
    "local_path",
    "parse_location",
]
