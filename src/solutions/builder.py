"""Solution builder: turns raw record data into an immutable Solution."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping, Optional

from constants import Constants, SolutionTypes, Visibility
from common.logging_utils import extra_context, is_debug_enabled
from .errors import InvalidPackageError, InvalidReferenceError
from .models import PartRequirement, RequiredRef, Solution
from .normalize import (
    canonical_package_name,
    normalize_authors,
    normalize_keywords,
    normalize_license,
    normalize_version_range,
)

if TYPE_CHECKING:
    from store.post_store import PostStore

logger = logging.getLogger(__name__)


def visibility_from_status(post_status: Optional[str], is_managed: bool = True) -> Visibility:
    """Map a record status onto the solution visibility."""
    if not is_managed:
        return Visibility.PUBLIC
    if post_status == "publish":
        return Visibility.PUBLIC
    if post_status == "draft":
        return Visibility.DRAFT
    return Visibility.PRIVATE


def _entries(raw: Any) -> Iterable[Any]:
    """Iterate raw list entries, or the values of an already keyed mapping."""
    if not raw:
        return []
    if isinstance(raw, Mapping):
        return list(raw.values())
    return list(raw)


class SolutionBuilder:
    """Builder for Solution instances.

    Setters normalize their input and return the builder so calls can be
    chained. ``build()`` snapshots the current state into a frozen Solution;
    later setter calls never touch solutions already built.
    """

    def __init__(self, store: "PostStore", vendor: str):
        self._store = store
        self._vendor = vendor
        self._data: Dict[str, Any] = {
            "name": "",
            "slug": "",
            "type": "",
            "description": "",
            "homepage": "",
            "license": "",
            "keywords": [],
            "categories": [],
            "authors": [],
            "is_managed": False,
            "managed_post_id": 0,
            "visibility": None,
            "composer_require": {},
            "required_parts": {},
            "required_solutions": {},
            "excluded_solutions": {},
        }

    def build(self) -> Solution:
        """Return an immutable Solution for the current state.

        Raises:
            InvalidPackageError: when no slug is set.
            InvalidVendorError: when the vendor cannot prefix a package name.
        """
        d = self._data
        if not d["slug"]:
            raise InvalidPackageError(f"Solution {d['name']!r} has no slug")
        visibility = d["visibility"] or visibility_from_status(None, d["is_managed"])
        return Solution(
            name=d["name"],
            slug=d["slug"],
            type=d["type"],
            package_name=canonical_package_name(self._vendor, d["slug"]),
            description=d["description"],
            homepage=d["homepage"],
            license=d["license"],
            keywords=tuple(d["keywords"]),
            categories=tuple(d["categories"]),
            authors=tuple(MappingProxyType(dict(a)) for a in d["authors"]),
            is_managed=d["is_managed"],
            managed_post_id=d["managed_post_id"],
            visibility=visibility,
            composer_require=MappingProxyType(dict(d["composer_require"])),
            required_parts=MappingProxyType(dict(d["required_parts"])),
            required_solutions=MappingProxyType(dict(d["required_solutions"])),
            excluded_solutions=MappingProxyType(dict(d["excluded_solutions"])),
        )

    def set_name(self, name: str) -> "SolutionBuilder":
        return self._set("name", str(name or ""))

    def set_type(self, solution_type: str) -> "SolutionBuilder":
        solution_type = str(solution_type or "")
        known = {t.value for t in SolutionTypes}
        if solution_type and solution_type not in known:
            logger.warning("Unknown solution type %r; using %r", solution_type, SolutionTypes.REGULAR.value)
            solution_type = SolutionTypes.REGULAR.value
        return self._set("type", solution_type)

    def set_slug(self, slug: str) -> "SolutionBuilder":
        return self._set("slug", str(slug or ""))

    def set_authors(self, authors: Any) -> "SolutionBuilder":
        return self._set("authors", normalize_authors(authors))

    def set_description(self, description: str) -> "SolutionBuilder":
        return self._set("description", str(description or ""))

    def set_homepage(self, url: str) -> "SolutionBuilder":
        return self._set("homepage", str(url or ""))

    def set_license(self, license_text: str) -> "SolutionBuilder":
        return self._set("license", normalize_license(license_text))

    def set_keywords(self, keywords: Any) -> "SolutionBuilder":
        return self._set("keywords", normalize_keywords(keywords))

    def set_categories(self, categories: Any) -> "SolutionBuilder":
        return self._set("categories", normalize_keywords(categories))

    def set_is_managed(self, is_managed: bool) -> "SolutionBuilder":
        return self._set("is_managed", bool(is_managed))

    def set_managed_post_id(self, managed_post_id: int) -> "SolutionBuilder":
        return self._set("managed_post_id", int(managed_post_id or 0))

    def set_visibility(self, visibility: Any) -> "SolutionBuilder":
        if not isinstance(visibility, Visibility):
            visibility = Visibility(str(visibility))
        return self._set("visibility", visibility)

    def set_composer_require(self, composer_require: Mapping[str, str]) -> "SolutionBuilder":
        return self._set("composer_require", dict(composer_require or {}))

    def set_required_parts(self, required_parts: Any) -> "SolutionBuilder":
        return self._set("required_parts", self._normalize_required_parts(required_parts))

    def set_required_solutions(self, required_solutions: Any) -> "SolutionBuilder":
        return self._set("required_solutions", self._normalize_required_solutions(required_solutions))

    def set_excluded_solutions(self, excluded_solutions: Any) -> "SolutionBuilder":
        return self._set("excluded_solutions", self._normalize_required_solutions(excluded_solutions))

    def from_store(self, record_id: int = 0, criteria: Optional[Dict[str, Any]] = None) -> "SolutionBuilder":
        """Fill the builder from the Post Store.

        When the record id yields nothing the store is queried with
        ``criteria``. Without data the solution is marked as not managed.
        """
        self.set_managed_post_id(record_id)

        package_data = self._store.get_solution_data(record_id) if record_id else {}
        if not package_data and criteria:
            package_data = self._store.get_solution_data_by(criteria)
        if not package_data:
            self.set_is_managed(False)
            return self

        # All solutions with data are managed by us.
        self.set_is_managed(True)
        self.set_license(Constants.DEFAULT_LICENSE)
        found_id = int(package_data.get("managed_post_id") or record_id)
        self.set_visibility(visibility_from_status(self._store.get_post_status(found_id)))

        return self.from_package_data(package_data)

    def from_package_data(self, package_data: Mapping[str, Any]) -> "SolutionBuilder":
        """Fill empty fields from ``package_data``.

        Required solutions, excluded solutions and required parts are merged
        into the current values: entries with the same key are replaced by
        the incoming ones.
        """
        d = self._data
        simple_fields = {
            "name": self.set_name,
            "slug": self.set_slug,
            "type": self.set_type,
            "authors": self.set_authors,
            "homepage": self.set_homepage,
            "description": self.set_description,
            "keywords": self.set_keywords,
            "categories": self.set_categories,
            "managed_post_id": self.set_managed_post_id,
            "visibility": self.set_visibility,
            "composer_require": self.set_composer_require,
        }
        for key, setter in simple_fields.items():
            if not d[key] and package_data.get(key):
                setter(package_data[key])

        if not d["license"] and package_data.get("license"):
            license_text = package_data["license"]
            # Dual licensed packages list several; keep the first.
            if isinstance(license_text, (list, tuple)):
                license_text = license_text[0] if license_text else ""
            self.set_license(license_text)

        if "is_managed" in package_data:
            self.set_is_managed(package_data["is_managed"])

        for key in ("required_solutions", "excluded_solutions"):
            if package_data.get(key):
                merged = dict(d[key])
                merged.update(self._normalize_required_solutions(package_data[key]))
                self._set(key, merged)

        if package_data.get("required_parts"):
            merged_parts = dict(d["required_parts"])
            merged_parts.update(self._normalize_required_parts(package_data["required_parts"]))
            self._set("required_parts", merged_parts)

        return self

    def with_solution(self, solution: Solution) -> "SolutionBuilder":
        """Seed the builder with every field of an existing solution."""
        d = self._data
        d.update({
            "name": solution.name,
            "slug": solution.slug,
            "type": solution.type,
            "description": solution.description,
            "homepage": solution.homepage,
            "license": solution.license,
            "keywords": list(solution.keywords),
            "categories": list(solution.categories),
            "authors": [dict(a) for a in solution.authors],
            "is_managed": solution.is_managed,
            "managed_post_id": solution.managed_post_id,
            "visibility": solution.visibility,
            "composer_require": dict(solution.composer_require),
            "required_parts": dict(solution.required_parts),
            "required_solutions": dict(solution.required_solutions),
            "excluded_solutions": dict(solution.excluded_solutions),
        })
        return self

    def _normalize_required_solutions(self, raw_entries: Any) -> Dict[str, RequiredRef]:
        """Key required/excluded entries by pseudo-ID.

        The pseudo-ID is unique per record, so a later entry for the same
        pseudo-ID replaces the earlier one. Entries without a package name get
        one derived from the referenced record; entries that cannot be
        resolved are logged and dropped.
        """
        normalized: Dict[str, RequiredRef] = {}
        for raw in _entries(raw_entries):
            if isinstance(raw, RequiredRef):
                normalized[raw.pseudo_id] = raw
                continue
            try:
                ref = RequiredRef.from_raw(raw)
            except InvalidReferenceError as exc:
                logger.error(
                    "Invalid required solution details for solution %r (#%s): %s",
                    self._data["name"],
                    self._data["managed_post_id"],
                    exc,
                )
                continue

            normalized.pop(ref.pseudo_id, None)
            if not ref.package_name:
                ref = self._with_package_name(ref)
                if ref is None:
                    continue
            normalized[ref.pseudo_id] = ref

        if is_debug_enabled(logger):
            logger.debug(
                "Normalized solution references",
                extra=extra_context(
                    event="normalize",
                    component="solution_builder",
                    action="required_solutions",
                    count=len(normalized),
                ),
            )
        return normalized

    def _with_package_name(self, ref: RequiredRef) -> Optional[RequiredRef]:
        package_data = self._store.get_solution_data(ref.managed_post_id)
        if not package_data:
            logger.error(
                "Error getting required solution data with record ID #%s for solution %r.",
                ref.managed_post_id,
                self._data["name"],
            )
            return None
        try:
            package_name = canonical_package_name(self._vendor, package_data.get("slug", ""))
        except InvalidPackageError as exc:
            logger.error(
                "Required solution #%s of solution %r has no usable slug: %s",
                ref.managed_post_id,
                self._data["name"],
                exc,
            )
            return None
        return RequiredRef(
            pseudo_id=ref.pseudo_id,
            managed_post_id=ref.managed_post_id,
            slug=ref.slug,
            package_name=package_name,
            version_range=normalize_version_range(ref.version_range, self._data["name"]),
            stability=ref.stability,
        )

    def _normalize_required_parts(self, raw_parts: Any) -> Dict[str, PartRequirement]:
        """Key required parts by package name; later entries win."""
        normalized: Dict[str, PartRequirement] = {}
        for raw in _entries(raw_parts):
            if isinstance(raw, PartRequirement):
                normalized[raw.package_name] = raw
                continue
            if not isinstance(raw, Mapping) or not raw.get("package_name"):
                logger.error(
                    "Invalid required part details for solution %r (#%s): %r",
                    self._data["name"],
                    self._data["managed_post_id"],
                    raw,
                )
                continue
            package_name = str(raw["package_name"])
            normalized[package_name] = PartRequirement(
                package_name=package_name,
                version_range=normalize_version_range(raw.get("version_range"), self._data["name"]),
                stability=str(raw.get("stability") or Constants.DEFAULT_STABILITY),
            )
        return normalized

    def _set(self, key: str, value: Any) -> "SolutionBuilder":
        self._data[key] = value
        return self
