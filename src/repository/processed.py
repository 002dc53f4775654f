"""Exclusion resolution over a flattened set of solutions.

Solutions are visited once, highest priority first. A visited solution that
is still included marks every solution it excludes; a solution that was
already excluded is skipped and its own exclusions never apply. Solutions
without a priority come last, in package-name order.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Set

from common.logging_utils import extra_context, is_debug_enabled
from common.timestamps import epoch_seconds
from solutions.factory import SolutionFactory
from solutions.models import Solution
from .base import SolutionRepository
from .flattened import FlattenedRepository

logger = logging.getLogger(__name__)


def priority_value(context: Any) -> Optional[float]:
    """Return the comparable priority of one context entry.

    The entry is either a mapping with a ``timestamp`` key or the timestamp
    itself. Unusable values mean "no priority".
    """
    if isinstance(context, Mapping):
        context = context.get("timestamp")
    return epoch_seconds(context)


def priority_order(
    solutions: Mapping[str, Solution],
    priority_context: Optional[Mapping[str, Any]] = None,
) -> List[str]:
    """Return package names, highest priority first.

    Ties and solutions without a priority keep the order of ``solutions``;
    the ones without a priority go last.
    """
    priority_context = priority_context or {}
    with_priority = []
    without_priority = []
    for package_name in solutions:
        value = priority_value(priority_context.get(package_name))
        if value is None:
            without_priority.append(package_name)
        else:
            with_priority.append((value, package_name))
    # sorted() is stable, so equal priorities keep their relative order.
    ordered = sorted(with_priority, key=lambda item: item[0], reverse=True)
    return [name for _, name in ordered] + without_priority


def resolve_exclusions(
    solutions: Mapping[str, Solution],
    priority_context: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Solution]:
    """Drop excluded solutions; return the survivors sorted by package name."""
    excluded: Set[str] = set()
    for package_name in priority_order(solutions, priority_context):
        if package_name in excluded:
            continue
        for ref in solutions[package_name].excluded_solutions.values():
            if ref.package_name == package_name:
                logger.warning("Solution %s excludes itself and is dropped", package_name)
            if ref.package_name in solutions:
                excluded.add(ref.package_name)

    if excluded:
        logger.info("Excluded solutions: %s", ", ".join(sorted(excluded)))
    if is_debug_enabled(logger):
        logger.debug(
            "Resolved exclusions",
            extra=extra_context(
                event="exclude",
                component="processed_repository",
                action="all",
                count_in=len(solutions),
                count_excluded=len(excluded),
            ),
        )
    return {name: solutions[name] for name in sorted(solutions) if name not in excluded}


class ProcessedRepository(SolutionRepository):
    """Flattens the source, then applies exclusion resolution."""

    def __init__(
        self,
        source: SolutionRepository,
        factory: SolutionFactory,
        priority_context: Optional[Mapping[str, Any]] = None,
    ):
        self._flattened = FlattenedRepository(source, factory)
        self._priority_context = dict(priority_context or {})

    @property
    def priority_context(self) -> Dict[str, Any]:
        return dict(self._priority_context)

    def all(self) -> Dict[str, Solution]:
        return resolve_exclusions(self._flattened.all(), self._priority_context)

    def reinitialize(self) -> "ProcessedRepository":
        self._flattened.reinitialize()
        return self
