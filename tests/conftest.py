"""Shared fixtures: small Post Stores describing solution graphs."""

import pytest

from constants import Constants
from solutions.factory import SolutionFactory
from store.post_store import InMemoryPostStore

VENDOR = Constants.DEFAULT_VENDOR


def pkg(slug):
    return f"{VENDOR}/{slug}"


@pytest.fixture(autouse=True)
def _reset_constants(monkeypatch):
    """Keep Constants changes made by a test local to it."""
    for attr in (
        "VENDOR",
        "PARTS_REPO_URL",
        "PARTS_API_KEY",
        "RESOLVER_URL",
        "SOLUTIONS_REPO_URL",
        "SOLUTIONS_REPO_AUTH_USER",
        "PARTS_CACHE_PATH",
        "HTTP_RETRY_MAX",
        "REQUEST_TIMEOUT",
        "VERIFY_SSL",
        "PARTS_CACHE_TTL_SEC",
    ):
        monkeypatch.setattr(Constants, attr, getattr(Constants, attr))
    monkeypatch.setattr(Constants, "VENDOR", VENDOR)


@pytest.fixture
def site_store():
    """blog and edd are leaves; ecommerce requires edd and excludes blog;
    presentation requires blog and excludes ecommerce."""
    return InMemoryPostStore.from_dict({
        "solutions": [
            {"id": 1, "slug": "blog", "name": "Blog", "type": "regular",
             "required_parts": [{"package_name": "pressody-records/part_blocks", "version_range": "^1.0"}]},
            {"id": 2, "slug": "edd", "name": "Easy Digital Downloads", "type": "regular",
             "required_parts": [{"package_name": "pressody-records/part_edd", "version_range": "^2.1"}]},
            {"id": 3, "slug": "ecommerce", "name": "E-commerce", "type": "regular",
             "required_solutions": [{"pseudo_id": "edd #2"}],
             "excluded_solutions": [{"pseudo_id": "blog #1"}]},
            {"id": 4, "slug": "presentation", "name": "Presentation", "type": "regular",
             "required_solutions": [{"pseudo_id": "blog #1"}],
             "excluded_solutions": [{"pseudo_id": "ecommerce #3"}]},
        ],
        "purchased_solutions": [
            {"id": 30, "solution_id": 3, "user_id": 7, "status": "active",
             "date_created": "2024-03-01 10:00:00"},
            {"id": 40, "solution_id": 4, "user_id": 7, "status": "ready",
             "date_created": "2024-02-01 10:00:00"},
        ],
        "compositions": [
            {"id": 100, "name": "Shop", "status": "ready", "user_ids": [7],
             "purchased_solutions": [30, 40]},
            {"id": 101, "name": "Empty", "status": "not_ready"},
        ],
    })


@pytest.fixture
def site_factory(site_store):
    return SolutionFactory(site_store, VENDOR)


@pytest.fixture
def triangle_store():
    """a excludes b; c excludes a."""
    return InMemoryPostStore.from_dict({
        "solutions": [
            {"id": 10, "slug": "a", "name": "A", "excluded_solutions": [{"pseudo_id": "b #11"}]},
            {"id": 11, "slug": "b", "name": "B"},
            {"id": 12, "slug": "c", "name": "C", "excluded_solutions": [{"pseudo_id": "a #10"}]},
        ],
    })


@pytest.fixture
def triangle_factory(triangle_store):
    return SolutionFactory(triangle_store, VENDOR)
