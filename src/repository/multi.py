"""Merge of several repositories."""

from __future__ import annotations

from typing import Dict, Iterable

from solutions.models import Solution
from .base import SolutionRepository


class MultiRepository(SolutionRepository):
    """Overlay of repositories in the given order.

    A solution from a later repository replaces one with the same package
    name from an earlier repository. The merged result is sorted by package
    name.
    """

    def __init__(self, repositories: Iterable[SolutionRepository]):
        self._repositories = list(repositories)

    def all(self) -> Dict[str, Solution]:
        merged: Dict[str, Solution] = {}
        for repository in self._repositories:
            merged.update(repository.all())
        return dict(sorted(merged.items()))

    def reinitialize(self) -> "MultiRepository":
        for repository in self._repositories:
            repository.reinitialize()
        return self
