"""Factory producing solutions from Post Store records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .builder import SolutionBuilder
from .errors import InvalidPackageError
from .models import Solution
from .normalize import validate_vendor

if TYPE_CHECKING:
    from store.post_store import PostStore

logger = logging.getLogger(__name__)


class SolutionFactory:
    """Creates builders bound to one store and vendor.

    The vendor is validated up front, so a bad vendor fails when the factory
    is created rather than halfway through a resolution run.
    """

    def __init__(self, store: "PostStore", vendor: str):
        self.store = store
        self.vendor = validate_vendor(vendor)

    def create(self) -> SolutionBuilder:
        return SolutionBuilder(self.store, self.vendor)

    def build_from_record(self, record_id: int) -> Optional[Solution]:
        """Return the solution for a record id, or None when there is none."""
        builder = self.create().from_store(record_id)
        try:
            return builder.build()
        except InvalidPackageError:
            logger.debug("No solution data for record #%s", record_id)
            return None
