"""Post Store contract and implementations."""

from .post_store import InMemoryPostStore, PostStore, PurchasedSolution

__all__ = ["InMemoryPostStore", "PostStore", "PurchasedSolution"]
