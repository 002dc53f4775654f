"""Tests for the in-memory Post Store."""

import pytest

from store.post_store import InMemoryPostStore, PurchasedSolution


def test_solution_data_adds_management_fields(site_store):
    data = site_store.get_solution_data(3)

    assert data["slug"] == "ecommerce"
    assert data["is_managed"] is True
    assert data["managed_post_id"] == 3
    assert "id" not in data


def test_solution_data_is_a_copy(site_store):
    site_store.get_solution_data(3)["required_solutions"].append({"pseudo_id": "blog #1"})

    assert site_store.get_solution_data(3)["required_solutions"] == [{"pseudo_id": "edd #2"}]


def test_missing_records_return_empty(site_store):
    assert site_store.get_solution_data(999) == {}
    assert site_store.get_composition_data(999) == {}
    assert site_store.get_purchased_solution(999) is None
    assert site_store.get_post_status(999) is None


@pytest.mark.parametrize("criteria,expected", [
    (None, [1, 2, 3, 4]),
    ({"post_ids": [2, 4]}, [2, 4]),
    ({"post_ids": 3}, [3]),
    ({"exclude_post_ids": [1, 2]}, [3, 4]),
    ({"slug": ["blog", "presentation"]}, [1, 4]),
    ({"slug": "edd", "post_ids": [1]}, []),
    ({"post_status": "draft"}, []),
])
def test_solution_ids_by_criteria(site_store, criteria, expected):
    assert site_store.get_solution_ids_by(criteria) == expected


def test_type_category_and_status_criteria():
    store = InMemoryPostStore(solutions=[
        {"id": 1, "slug": "a", "type": "basic", "categories": ["shop"]},
        {"id": 2, "slug": "b", "type": "regular", "categories": ["blog", "shop"], "status": "draft"},
        {"id": 3, "slug": "c", "type": "regular", "status": "weird"},
    ])

    assert store.get_solution_ids_by({"solution_type": "regular"}) == [2, 3]
    assert store.get_solution_ids_by({"solution_category": ["blog"]}) == [2]
    assert store.get_solution_ids_by({"solution_category": "shop"}) == [1, 2]
    assert store.get_post_status(1) == "publish"
    assert store.get_post_status(3) == "private"
    assert store.get_solution_data_by({"post_status": "draft"})["slug"] == "b"
    assert store.get_solution_data_by({"slug": "zzz"}) == {}


def test_solution_without_id_is_rejected():
    with pytest.raises(ValueError):
        InMemoryPostStore(solutions=[{"slug": "nope"}])


def test_purchased_solution_records(site_store):
    purchased = site_store.get_purchased_solution(30)

    assert purchased.solution_id == 3
    assert purchased.status == "active"
    assert purchased.to_dict()["date_created"] == "2024-03-01 10:00:00"


def test_unknown_purchased_status_becomes_invalid():
    assert PurchasedSolution.from_dict({"id": 1, "solution_id": 2, "status": "lost"}).status == "invalid"
    assert PurchasedSolution.from_dict({"id": 1, "solution_id": 2}).status == "ready"


def test_records_without_id_are_skipped():
    store = InMemoryPostStore(
        purchased_solutions=[{"solution_id": 1}],
        compositions=[{"name": "x"}],
    )

    assert store.get_purchased_solution(0) is None
    assert store.get_composition_data(0) == {}


def test_composition_data(site_store):
    data = site_store.get_composition_data(100)

    assert data["name"] == "Shop"
    assert data["purchased_solutions"] == [30, 40]


def test_from_yaml(tmp_path):
    path = tmp_path / "store.yml"
    path.write_text(
        "solutions:\n"
        "  - {id: 1, slug: blog}\n"
        "  - {id: 2, slug: edd, status: draft}\n"
        "compositions:\n"
        "  - {id: 5, purchased_solutions: []}\n",
        encoding="utf-8",
    )

    store = InMemoryPostStore.from_yaml(str(path))

    assert store.get_solution_ids_by() == [1, 2]
    assert store.get_post_status(2) == "draft"
    assert store.get_composition_data(5)["id"] == 5


@pytest.mark.parametrize("content", ["solutions: [unclosed\n", "- just\n- a list\n"])
def test_from_yaml_rejects_bad_files(tmp_path, content):
    path = tmp_path / "store.yml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        InMemoryPostStore.from_yaml(str(path))


def test_from_yaml_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        InMemoryPostStore.from_yaml(str(tmp_path / "missing.yml"))
