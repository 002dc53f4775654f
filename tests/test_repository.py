"""Tests for repositories: lookups, views, store-backed loading and merging."""

from constants import Constants
from repository.base import InMemoryRepository, matches
from repository.multi import MultiRepository
from repository.store import StoreRepository
from solutions.builder import SolutionBuilder
from solutions.factory import SolutionFactory
from store.post_store import InMemoryPostStore

VENDOR = Constants.DEFAULT_VENDOR


def make(store, slug, record_id=0, **fields):
    builder = SolutionBuilder(store, VENDOR).set_slug(slug).set_name(fields.pop("name", slug.title()))
    builder.set_managed_post_id(record_id)
    if "keywords" in fields:
        builder.set_keywords(fields.pop("keywords"))
    if "type" in fields:
        builder.set_type(fields.pop("type"))
    return builder.build()


class TestLookups:
    """where / first_where / contains."""

    def setup_method(self):
        store = InMemoryPostStore()
        self.blog = make(store, "blog", 1, type="regular", keywords=["content", "writing"])
        self.shop = make(store, "shop", 2, type="basic", keywords=["commerce"])
        self.repo = InMemoryRepository([self.blog, self.shop])

    def test_all_keeps_insertion_order(self):
        assert list(self.repo.all()) == [f"{VENDOR}/blog", f"{VENDOR}/shop"]

    def test_where_with_callable(self):
        result = self.repo.where(lambda s: s.managed_post_id > 1)
        assert list(result.all()) == [f"{VENDOR}/shop"]

    def test_where_with_mapping(self):
        assert list(self.repo.where({"type": "regular"}).all()) == [f"{VENDOR}/blog"]
        assert len(self.repo.where({"managed_post_id": [1, 2]})) == 2

    def test_sequence_attributes_match_any_value(self):
        assert matches(self.blog, {"keywords": "writing"})
        assert matches(self.blog, {"keywords": ["commerce", "content"]})
        assert not matches(self.shop, {"keywords": "writing"})

    def test_first_where_and_contains(self):
        assert self.repo.first_where({"slug": "shop"}) is self.shop
        assert self.repo.first_where({"slug": "nope"}) is None
        assert self.repo.contains({"managed_post_id": 1})
        assert not self.repo.contains(lambda s: s.type == "missing")

    def test_later_duplicate_replaces_earlier(self):
        store = InMemoryPostStore()
        newer = make(store, "blog", 5, name="Blog v2")
        repo = InMemoryRepository([self.blog, newer])
        assert repo.get(f"{VENDOR}/blog").name == "Blog v2"


class TestFilteredView:
    """with_filter returns a view, not a copy."""

    def test_view_reflects_source_changes_after_reinitialize(self):
        store = InMemoryPostStore.from_dict({"solutions": [
            {"id": 1, "slug": "blog", "type": "regular"},
            {"id": 2, "slug": "shop", "type": "basic"},
        ]})

        source = StoreRepository(SolutionFactory(store, VENDOR))
        view = source.with_filter({"type": "regular"})
        snapshot = source.where({"type": "regular"})
        assert list(view.all()) == [f"{VENDOR}/blog"]

        store.add_solution({"id": 3, "slug": "news", "type": "regular"})
        # Memoized until reinitialized.
        assert list(view.all()) == [f"{VENDOR}/blog"]

        view.reinitialize()
        assert list(view.all()) == [f"{VENDOR}/blog", f"{VENDOR}/news"]
        assert list(snapshot.all()) == [f"{VENDOR}/blog"]


class TestStoreRepository:
    """Store-backed repository."""

    def test_criteria_select_records(self, site_factory):
        repo = StoreRepository(site_factory, {"slug": ["blog", "edd"]})
        assert list(repo.all()) == [f"{VENDOR}/blog", f"{VENDOR}/edd"]

    def test_post_status_criteria(self):
        store = InMemoryPostStore.from_dict({"solutions": [
            {"id": 1, "slug": "live", "status": "publish"},
            {"id": 2, "slug": "wip", "status": "draft"},
        ]})

        repo = StoreRepository(SolutionFactory(store, VENDOR), {"post_status": "publish"})
        assert list(repo.all()) == [f"{VENDOR}/live"]


class TestMultiRepository:
    """Overlay merge of repositories."""

    def setup_method(self):
        self.store = InMemoryPostStore()

    def test_later_repository_wins_on_collision(self):
        r1 = InMemoryRepository([make(self.store, "a"), make(self.store, "b", name="B from R1")])
        r2 = InMemoryRepository([make(self.store, "b", name="B from R2"), make(self.store, "c")])

        merged = MultiRepository([r1, r2]).all()

        assert list(merged) == [f"{VENDOR}/a", f"{VENDOR}/b", f"{VENDOR}/c"]
        assert merged[f"{VENDOR}/b"].name == "B from R2"

    def test_disjoint_repositories_keep_every_entry(self):
        r1 = InMemoryRepository([make(self.store, "b"), make(self.store, "a")])
        r2 = InMemoryRepository([make(self.store, "d"), make(self.store, "c")])

        merged = MultiRepository([r1, r2])

        assert list(merged.all()) == [f"{VENDOR}/{s}" for s in "abcd"]
        assert merged.contains({"slug": "d"})
        assert len(merged.where({"slug": ["a", "c"]})) == 2

    def test_reinitialize_forwards_to_sources(self, site_store, site_factory):
        source = StoreRepository(site_factory, {"solution_type": "regular"})
        merged = MultiRepository([source])
        assert len(merged) == 4

        site_store.add_solution({"id": 5, "slug": "news", "type": "regular"})
        assert len(merged) == 4
        assert len(merged.reinitialize()) == 5
