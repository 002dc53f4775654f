"""Solution repositories and the resolution decorators built on them."""

from .base import InMemoryRepository, Predicate, SolutionRepository, matches
from .filtered import FilteredRepository
from .store import StoreRepository
from .flattened import FlattenedRepository, flatten
from .processed import ProcessedRepository, priority_order, priority_value, resolve_exclusions
from .multi import MultiRepository

__all__ = [
    "InMemoryRepository",
    "Predicate",
    "SolutionRepository",
    "matches",
    "FilteredRepository",
    "StoreRepository",
    "FlattenedRepository",
    "flatten",
    "ProcessedRepository",
    "priority_order",
    "priority_value",
    "resolve_exclusions",
    "MultiRepository",
]
