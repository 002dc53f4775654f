"""Solution repository contract and an in-memory implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Union

from solutions.models import Solution

Predicate = Union[Callable[[Solution], bool], Mapping[str, Any]]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def matches(solution: Solution, predicate: Predicate) -> bool:
    """Test a solution against a callable or an ``{attribute: value}`` mapping.

    With a mapping every attribute must match. A list of expected values
    matches by membership; a sequence attribute (keywords, categories)
    matches when it shares at least one value with the expected ones.
    """
    if callable(predicate):
        return bool(predicate(solution))
    for attribute, expected in predicate.items():
        actual = getattr(solution, attribute, None)
        if _is_sequence(actual):
            wanted = set(expected) if _is_sequence(expected) else {expected}
            if not wanted.intersection(actual):
                return False
        elif _is_sequence(expected):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class SolutionRepository(ABC):
    """Ordered collection of solutions keyed by package name."""

    @abstractmethod
    def all(self) -> Dict[str, Solution]:
        """Return every solution keyed by package name."""

    def where(self, predicate: Predicate) -> "InMemoryRepository":
        """Return a snapshot of the solutions matching ``predicate``."""
        return InMemoryRepository(s for s in self.all().values() if matches(s, predicate))

    def with_filter(self, predicate: Predicate) -> "SolutionRepository":
        """Return a lazy view that re-applies ``predicate`` on every read."""
        from .filtered import FilteredRepository  # pylint: disable=import-outside-toplevel

        return FilteredRepository(self, predicate)

    def first_where(self, predicate: Predicate) -> Optional[Solution]:
        for solution in self.all().values():
            if matches(solution, predicate):
                return solution
        return None

    def contains(self, predicate: Predicate) -> bool:
        return self.first_where(predicate) is not None

    def get(self, package_name: str) -> Optional[Solution]:
        return self.all().get(package_name)

    def reinitialize(self) -> "SolutionRepository":
        """Drop any memoized state so the next read reflects the source."""
        return self

    def __iter__(self) -> Iterator[Solution]:
        return iter(self.all().values())

    def __len__(self) -> int:
        return len(self.all())


class InMemoryRepository(SolutionRepository):
    """Repository over an explicit list of solutions, in insertion order.

    A later solution with the same package name replaces the earlier one.
    """

    def __init__(self, solutions=None):
        self._solutions: Dict[str, Solution] = {}
        for solution in solutions or []:
            self._solutions[solution.package_name] = solution

    def all(self) -> Dict[str, Solution]:
        return dict(self._solutions)
