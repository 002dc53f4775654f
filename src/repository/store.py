"""Repository backed by the Post Store."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from common.logging_utils import Timer, extra_context, is_debug_enabled
from solutions.factory import SolutionFactory
from solutions.models import Solution
from .base import SolutionRepository

logger = logging.getLogger(__name__)


class StoreRepository(SolutionRepository):
    """Solutions for every store record matching ``criteria``.

    The first ``all()`` call queries the store and builds the solutions; the
    result is kept until ``reinitialize()``.
    """

    def __init__(self, factory: SolutionFactory, criteria: Optional[Mapping[str, Any]] = None):
        self._factory = factory
        self._criteria = dict(criteria or {})
        self._solutions: Optional[Dict[str, Solution]] = None

    def all(self) -> Dict[str, Solution]:
        if self._solutions is None:
            self._solutions = self._load()
        return dict(self._solutions)

    def reinitialize(self) -> "StoreRepository":
        self._solutions = None
        return self

    def _load(self) -> Dict[str, Solution]:
        solutions: Dict[str, Solution] = {}
        with Timer() as t:
            for record_id in self._factory.store.get_solution_ids_by(self._criteria):
                solution = self._factory.build_from_record(record_id)
                if solution is None:
                    continue
                if solution.package_name in solutions:
                    logger.warning(
                        "Package name %s is used by records #%s and #%s; keeping the latter",
                        solution.package_name,
                        solutions[solution.package_name].managed_post_id,
                        record_id,
                    )
                solutions[solution.package_name] = solution

        if is_debug_enabled(logger):
            logger.debug(
                "Loaded solutions from store",
                extra=extra_context(
                    event="load",
                    component="store_repository",
                    action="all",
                    count=len(solutions),
                    duration_ms=t.duration_ms(),
                ),
            )
        return solutions
