"""Solution entity, builder and factory."""

from .errors import (
    CompositionError,
    InvalidPackageError,
    InvalidReferenceError,
    InvalidVendorError,
    RetailerError,
)
from .models import PartRequirement, RequiredRef, Solution, to_composer_require
from .pseudo_id import encode_pseudo_id, parse_pseudo_id
from .builder import SolutionBuilder, visibility_from_status
from .factory import SolutionFactory

__all__ = [
    "CompositionError",
    "InvalidPackageError",
    "InvalidReferenceError",
    "InvalidVendorError",
    "RetailerError",
    "PartRequirement",
    "RequiredRef",
    "Solution",
    "to_composer_require",
    "encode_pseudo_id",
    "parse_pseudo_id",
    "SolutionBuilder",
    "visibility_from_status",
    "SolutionFactory",
]
