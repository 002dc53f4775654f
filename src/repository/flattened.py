"""Repository decorator pulling in transitively required solutions."""

from __future__ import annotations

import logging
from typing import Dict, List, Set

from common.logging_utils import extra_context, is_debug_enabled
from solutions.factory import SolutionFactory
from solutions.models import Solution
from .base import SolutionRepository

logger = logging.getLogger(__name__)


def flatten(solutions: Dict[str, Solution], factory: SolutionFactory) -> Dict[str, Solution]:
    """Close ``solutions`` under the required-solutions relation.

    Required records are built through ``factory`` so they are found even
    when the source repository filtered them out. Solutions already present
    are never replaced. The result is sorted by package name.
    """
    working = dict(solutions)
    pending: List[Solution] = list(working.values())
    visited: Set[int] = {s.managed_post_id for s in pending if s.managed_post_id}

    while pending:
        current = pending.pop(0)
        for ref in current.required_solutions.values():
            if ref.package_name in working or ref.managed_post_id in visited:
                continue
            visited.add(ref.managed_post_id)
            required = factory.build_from_record(ref.managed_post_id)
            if required is None:
                logger.error(
                    "Required solution %r (record #%s) of %s could not be built; skipping it",
                    ref.pseudo_id,
                    ref.managed_post_id,
                    current.package_name,
                )
                continue
            if required.package_name in working:
                continue
            working[required.package_name] = required
            pending.append(required)

    if is_debug_enabled(logger):
        logger.debug(
            "Flattened solutions",
            extra=extra_context(
                event="flatten",
                component="flattened_repository",
                action="all",
                count_in=len(solutions),
                count_out=len(working),
            ),
        )
    return dict(sorted(working.items()))


class FlattenedRepository(SolutionRepository):
    """Source solutions plus everything they require, at any depth."""

    def __init__(self, source: SolutionRepository, factory: SolutionFactory):
        self._source = source
        self._factory = factory

    def all(self) -> Dict[str, Solution]:
        return flatten(self._source.all(), self._factory)

    def reinitialize(self) -> "FlattenedRepository":
        self._source.reinitialize()
        return self
