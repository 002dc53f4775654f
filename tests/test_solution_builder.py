"""Tests for the solution builder, normalizers and factory."""

import dataclasses
import logging

import pytest

from constants import Constants, Visibility
from solutions.builder import SolutionBuilder, visibility_from_status
from solutions.errors import InvalidPackageError, InvalidVendorError
from solutions.factory import SolutionFactory
from solutions.models import PartRequirement, RequiredRef, to_composer_require
from solutions.normalize import (
    canonical_package_name,
    normalize_authors,
    normalize_keywords,
    normalize_license,
    normalize_package_name,
    normalize_version_range,
    validate_vendor,
)
from store.post_store import InMemoryPostStore

VENDOR = Constants.DEFAULT_VENDOR


@pytest.fixture
def store():
    return InMemoryPostStore.from_dict({
        "solutions": [
            {"id": 1, "slug": "blog", "name": "Blog"},
            {"id": 2, "slug": "edd", "name": "EDD", "status": "draft"},
            {"id": 3, "slug": "Fancy Shop!", "name": "Fancy", "status": "private",
             "keywords": "shop, store, shop", "license": "GNU General Public License v3 or later",
             "authors": [{"name": "Jane", "email": "jane@example.com", "phone": "1"}, {"email": "x@y.z"}],
             "required_solutions": [{"pseudo_id": "blog #1"}],
             "required_parts": [{"package_name": "pressody-records/part_a", "version_range": "^1.2"}]},
        ],
    })


@pytest.fixture
def builder(store):
    return SolutionBuilder(store, VENDOR).set_name("Owner").set_slug("owner").set_managed_post_id(9)


class TestRequiredSolutionsNormalization:
    """Required/excluded solution lists."""

    def test_last_duplicate_wins(self, builder):
        solution = builder.set_required_solutions([
            {"pseudo_id": "blog #1", "version_range": "^1.0"},
            {"pseudo_id": "blog #1", "version_range": "^2.0"},
        ]).build()

        assert list(solution.required_solutions) == ["blog #1"]
        assert solution.required_solutions["blog #1"].version_range == "^2.0"

    def test_malformed_entries_are_dropped_and_logged(self, builder, caplog):
        with caplog.at_level(logging.ERROR):
            solution = builder.set_required_solutions([
                {"pseudo_id": "blog"},
                {"pseudo_id": "blog #x"},
                {"version_range": "*"},
                "edd #2",
                {"pseudo_id": "edd #2"},
            ]).build()

        assert list(solution.required_solutions) == ["edd #2"]
        assert "Invalid required solution details" in caplog.text
        assert "Owner" in caplog.text

    def test_package_name_is_derived_from_referenced_record(self, builder):
        solution = builder.set_excluded_solutions([{"pseudo_id": "Fancy #3"}]).build()

        ref = solution.excluded_solutions["Fancy #3"]
        assert ref.package_name == f"{VENDOR}/fancyshop"
        assert ref.managed_post_id == 3

    def test_missing_referenced_record_drops_entry(self, builder, caplog):
        with caplog.at_level(logging.ERROR):
            solution = builder.set_required_solutions([{"pseudo_id": "ghost #99"}]).build()

        assert not solution.has_required_solutions()
        assert "#99" in caplog.text

    def test_explicit_package_name_is_kept(self, builder):
        solution = builder.set_required_solutions([
            {"pseudo_id": "ghost #99", "composer_package_name": "other/ghost"},
        ]).build()

        assert solution.required_solutions["ghost #99"].package_name == "other/ghost"

    def test_merge_from_package_data_overwrites_by_key(self, builder):
        builder.set_required_solutions([
            {"pseudo_id": "blog #1", "version_range": "^1.0"},
            {"pseudo_id": "edd #2"},
        ])
        solution = builder.from_package_data({
            "required_solutions": [{"pseudo_id": "blog #1", "version_range": "^3.0"}],
        }).build()

        assert set(solution.required_solutions) == {"blog #1", "edd #2"}
        assert solution.required_solutions["blog #1"].version_range == "^3.0"


class TestRequiredParts:
    """Required parts lists."""

    def test_entries_without_package_name_are_dropped(self, builder):
        solution = builder.set_required_parts([
            {"version_range": "^1.0"},
            {"package_name": "pressody-records/part_a"},
        ]).build()

        assert list(solution.required_parts) == ["pressody-records/part_a"]
        part = solution.required_parts["pressody-records/part_a"]
        assert part.version_range == "*"
        assert part.stability == "stable"


class TestBuild:
    """Building solutions."""

    def test_built_solution_is_immutable(self, builder):
        solution = builder.build()

        with pytest.raises(dataclasses.FrozenInstanceError):
            solution.name = "changed"
        with pytest.raises(TypeError):
            solution.required_solutions["x"] = None

    def test_later_setters_do_not_touch_built_solution(self, builder):
        first = builder.set_keywords(["one"]).build()
        second = builder.set_keywords(["two"]).build()

        assert first.keywords == ("one",)
        assert second.keywords == ("two",)

    def test_missing_slug_is_an_error(self, store):
        with pytest.raises(InvalidPackageError):
            SolutionBuilder(store, VENDOR).set_name("Nameless").build()

    def test_invalid_vendor_is_an_error(self, store):
        with pytest.raises(InvalidVendorError):
            SolutionBuilder(store, "X").set_slug("blog").build()

    def test_with_solution_copies_everything(self, store, builder):
        original = builder.set_keywords("a,b").set_required_solutions([{"pseudo_id": "blog #1"}]).build()

        copy = SolutionBuilder(store, VENDOR).with_solution(original).build()

        assert copy == original

    def test_unknown_type_falls_back_to_regular(self, builder, caplog):
        with caplog.at_level(logging.WARNING):
            solution = builder.set_type("exotic").build()

        assert solution.type == "regular"
        assert "exotic" in caplog.text
        assert builder.set_type("basic").build().type == "basic"


class TestFromStore:
    """Filling a builder from the Post Store."""

    def test_reads_and_normalizes_record(self, store):
        solution = SolutionBuilder(store, VENDOR).from_store(3).build()

        assert solution.is_managed is True
        assert solution.managed_post_id == 3
        assert solution.package_name == f"{VENDOR}/fancyshop"
        assert solution.pseudo_id == "Fancy Shop! #3"
        assert solution.visibility is Visibility.PRIVATE
        assert solution.keywords == ("shop", "store")
        assert solution.license == "GPL-2.0-or-later"
        assert [dict(a) for a in solution.authors] == [{"name": "Jane", "email": "jane@example.com"}]
        assert solution.required_solutions["blog #1"].package_name == f"{VENDOR}/blog"
        assert solution.required_parts["pressody-records/part_a"].version_range == "^1.2"

    def test_falls_back_to_criteria(self, store):
        solution = SolutionBuilder(store, VENDOR).from_store(0, {"slug": "edd"}).build()

        assert solution.managed_post_id == 2
        assert solution.visibility is Visibility.DRAFT

    def test_missing_record_is_not_managed(self, store):
        builder = SolutionBuilder(store, VENDOR).from_store(404)

        with pytest.raises(InvalidPackageError):
            builder.build()
        assert builder.set_slug("manual").build().is_managed is False


class TestFactory:
    """SolutionFactory."""

    def test_build_from_record(self, store):
        factory = SolutionFactory(store, VENDOR)

        assert factory.build_from_record(1).package_name == f"{VENDOR}/blog"
        assert factory.build_from_record(404) is None

    def test_rejects_bad_vendor_up_front(self, store):
        with pytest.raises(InvalidVendorError):
            SolutionFactory(store, "Bad Vendor")


class TestNormalizers:
    """Field normalizers."""

    def test_package_name(self):
        assert normalize_package_name("My Solution_2.0!") == "mysolution_2.0"

    @pytest.mark.parametrize("vendor", ["ab", "pressody-retailer", "a.b_c-d", "x1"])
    def test_valid_vendors(self, vendor):
        assert validate_vendor(vendor) == vendor

    @pytest.mark.parametrize("vendor", ["", "a", "Upper", "-lead", "trail-", "dou--ble", None])
    def test_invalid_vendors(self, vendor):
        with pytest.raises(InvalidVendorError):
            validate_vendor(vendor)

    def test_canonical_package_name_needs_a_slug(self):
        with pytest.raises(InvalidPackageError):
            canonical_package_name(VENDOR, "!!!")

    @pytest.mark.parametrize("text,expected", [
        ("", "GPL-2.0-or-later"),
        ("GPLv2 or later", "GPL-2.0-or-later"),
        ("GPL-2.0+", "GPL-2.0-or-later"),
        ("GNU General Public License v2", "GPL-2.0-only"),
        ("GPL 3.0 or later", "GPL-3.0-or-later"),
        ("GPLv3", "GPL-3.0-only"),
        ("The MIT License", "MIT"),
        ("Proprietary", "Proprietary"),
        ("Submit-Ware", "Submit-Ware"),
    ])
    def test_license(self, text, expected):
        assert normalize_license(text) == expected

    def test_keywords_from_list(self):
        assert normalize_keywords([" b", "a", "", "b", 3]) == ["a", "b"]

    def test_authors(self):
        assert normalize_authors(["Ann", {"name": "Bob", "role": ""}, {"email": "no@name"}]) == [
            {"name": "Ann"},
            {"name": "Bob"},
        ]

    def test_version_range_defaults_to_any(self):
        assert normalize_version_range("") == "*"
        assert normalize_version_range(None) == "*"

    def test_valid_version_range_is_kept(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert normalize_version_range(" >=1.0, <2.0 ") == ">=1.0, <2.0"
            assert normalize_version_range("^1.2 || ~2.0") == "^1.2 || ~2.0"
        assert "Unrecognized version range" not in caplog.text

    def test_invalid_version_range_is_kept_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert normalize_version_range("not a range", "Blog") == "not a range"
        assert "Unrecognized version range" in caplog.text

    def test_visibility_from_status(self):
        assert visibility_from_status("publish") is Visibility.PUBLIC
        assert visibility_from_status("draft") is Visibility.DRAFT
        assert visibility_from_status("trash") is Visibility.PRIVATE
        assert visibility_from_status("draft", is_managed=False) is Visibility.PUBLIC


class TestComposerRequire:
    """Conversion to Composer requirements."""

    def test_stability_suffix(self):
        require = to_composer_require([
            PartRequirement("v/a", "^1.0", "stable"),
            PartRequirement("v/b", "*", "dev"),
            RequiredRef("c #1", 1, package_name="v/c"),
            RequiredRef("d #2", 2),
        ])

        assert require == {"v/a": "^1.0", "v/b": "*@dev", "v/c": "*"}
