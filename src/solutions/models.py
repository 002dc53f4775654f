"""Data models for solutions and the references between them."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Tuple

from constants import Constants, Visibility
from .errors import InvalidReferenceError
from .pseudo_id import encode_pseudo_id, parse_pseudo_id

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class RequiredRef:
    """A reference to another solution, as declared by a requiring solution."""
    pseudo_id: str
    managed_post_id: int
    slug: str = ""
    package_name: str = ""
    version_range: str = Constants.DEFAULT_VERSION_RANGE
    stability: str = Constants.DEFAULT_STABILITY

    @classmethod
    def from_raw(cls, raw: Any) -> "RequiredRef":
        """Build a reference from raw field data.

        The record id comes from ``managed_post_id`` when present, otherwise
        from the pseudo-ID itself.

        Raises:
            InvalidReferenceError: when the pseudo-ID or the record id is missing.
        """
        if not isinstance(raw, Mapping):
            raise InvalidReferenceError(f"Expected a mapping, got {type(raw).__name__}")
        pseudo_id = raw.get("pseudo_id")
        if not pseudo_id or not isinstance(pseudo_id, str):
            raise InvalidReferenceError("Missing pseudo_id")

        parsed = parse_pseudo_id(pseudo_id)
        if parsed is None:
            raise InvalidReferenceError(f"Unparsable pseudo_id {pseudo_id!r}")
        record_id = raw.get("managed_post_id")
        try:
            record_id = int(record_id) if record_id else parsed[1]
        except (TypeError, ValueError):
            record_id = 0
        if record_id <= 0:
            raise InvalidReferenceError(f"Missing record id for {pseudo_id!r}")

        slug = raw.get("slug") or parsed[0]
        return cls(
            pseudo_id=pseudo_id,
            managed_post_id=record_id,
            slug=str(slug),
            package_name=str(raw.get("composer_package_name") or raw.get("package_name") or ""),
            version_range=str(raw.get("version_range") or Constants.DEFAULT_VERSION_RANGE),
            stability=str(raw.get("stability") or Constants.DEFAULT_STABILITY),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pseudo_id": self.pseudo_id,
            "managed_post_id": self.managed_post_id,
            "slug": self.slug,
            "composer_package_name": self.package_name,
            "version_range": self.version_range,
            "stability": self.stability,
        }


@dataclass(frozen=True)
class PartRequirement:
    """A lower-level part required by a solution."""
    package_name: str
    version_range: str = Constants.DEFAULT_VERSION_RANGE
    stability: str = Constants.DEFAULT_STABILITY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_name": self.package_name,
            "version_range": self.version_range,
            "stability": self.stability,
        }


@dataclass(frozen=True)
class Solution:
    """Immutable solution entity.

    Instances are produced by ``SolutionBuilder.build()``; any change goes
    through a new builder seeded with ``with_solution()``.
    """
    name: str = ""
    slug: str = ""
    type: str = ""
    package_name: str = ""
    description: str = ""
    homepage: str = ""
    license: str = ""
    keywords: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    authors: Tuple[Mapping[str, str], ...] = ()
    is_managed: bool = False
    managed_post_id: int = 0
    visibility: Visibility = Visibility.PUBLIC
    composer_require: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    required_parts: Mapping[str, PartRequirement] = field(default_factory=lambda: _EMPTY)
    required_solutions: Mapping[str, RequiredRef] = field(default_factory=lambda: _EMPTY)
    excluded_solutions: Mapping[str, RequiredRef] = field(default_factory=lambda: _EMPTY)

    @property
    def pseudo_id(self) -> str:
        return encode_pseudo_id(self.slug, self.managed_post_id)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "name": self.name,
            "slug": self.slug,
            "type": self.type,
            "package_name": self.package_name,
            "description": self.description,
            "homepage": self.homepage,
            "license": self.license,
            "keywords": list(self.keywords),
            "categories": list(self.categories),
            "authors": [dict(a) for a in self.authors],
            "is_managed": self.is_managed,
            "managed_post_id": self.managed_post_id,
            "visibility": self.visibility.value,
            "composer_require": dict(self.composer_require),
            "required_parts": [p.to_dict() for p in self.required_parts.values()],
            "required_solutions": [r.to_dict() for r in self.required_solutions.values()],
            "excluded_solutions": [r.to_dict() for r in self.excluded_solutions.values()],
        }


def to_composer_require(requirements: Iterable[Any]) -> Dict[str, str]:
    """Convert references or part requirements to ``{package: constraint}``.

    A non-stable stability is appended as ``@stability``.
    """
    composer_require: Dict[str, str] = {}
    for req in requirements:
        if not req.package_name:
            continue
        constraint = req.version_range
        if req.stability and req.stability != Constants.DEFAULT_STABILITY:
            constraint = f"{constraint}@{req.stability}"
        composer_require[req.package_name] = constraint
    return composer_require

