"""Lazy filtered view over another repository."""

from __future__ import annotations

from typing import Dict

from solutions.models import Solution
from .base import Predicate, SolutionRepository, matches


class FilteredRepository(SolutionRepository):
    """View that applies a predicate each time it is read.

    Nothing is copied: changes in the wrapped repository show up on the next
    ``all()`` call. Memoization, if any, belongs to the wrapped repository and
    is cleared with ``reinitialize()``.
    """

    def __init__(self, source: SolutionRepository, predicate: Predicate):
        self._source = source
        self._predicate = predicate

    def all(self) -> Dict[str, Solution]:
        return {
            name: solution
            for name, solution in self._source.all().items()
            if matches(solution, self._predicate)
        }

    def reinitialize(self) -> "FilteredRepository":
        self._source.reinitialize()
        return self
