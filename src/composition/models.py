"""Composition data: the customer aggregate and the manifest built from it."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from constants import composition_statuses
from .dry_run import DryRunResult

logger = logging.getLogger(__name__)

DEFAULT_STATUS = "not_ready"
PURCHASED = "purchased"
MANUAL = "manual"


@dataclass(frozen=True)
class ManualSolutionRef:
    """A solution added to a composition by hand, identified by pseudo-ID."""
    pseudo_id: str
    reason: str = ""
    timestamp: Any = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ManualSolutionRef":
        return cls(
            pseudo_id=str(raw.get("pseudo_id") or ""),
            reason=str(raw.get("reason") or ""),
            timestamp=raw.get("timestamp"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"pseudo_id": self.pseudo_id, "reason": self.reason}
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data


@dataclass(frozen=True)
class Composition:
    """A customer's composition.

    Instances are never changed in place; the manager returns updated copies.
    """
    id: int
    name: str = ""
    status: str = DEFAULT_STATUS
    user_ids: Tuple[int, ...] = ()
    purchased_solution_ids: Tuple[int, ...] = ()
    manual_solutions: Tuple[ManualSolutionRef, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Composition":
        status = str(raw.get("status") or DEFAULT_STATUS)
        if status not in composition_statuses():
            logger.warning("Unknown composition status %r; using %r", status, DEFAULT_STATUS)
            status = DEFAULT_STATUS

        purchased_ids = []
        for entry in raw.get("purchased_solutions") or []:
            if isinstance(entry, Mapping):
                entry = entry.get("purchased_solution_id") or entry.get("id")
            try:
                purchased_ids.append(int(entry))
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid purchased solution id %r", entry)

        manual = tuple(
            ManualSolutionRef.from_dict(entry)
            for entry in raw.get("manual_solutions") or []
            if isinstance(entry, Mapping)
        )
        return cls(
            id=int(raw.get("id") or 0),
            name=str(raw.get("name") or ""),
            status=status,
            user_ids=tuple(int(u) for u in raw.get("user_ids") or []),
            purchased_solution_ids=tuple(purchased_ids),
            manual_solutions=manual,
        )

    def replace(self, **changes: Any) -> "Composition":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "user_ids": list(self.user_ids),
            "purchased_solutions": list(self.purchased_solution_ids),
            "manual_solutions": [m.to_dict() for m in self.manual_solutions],
        }


@dataclass(frozen=True)
class RequiredSolution:
    """One solution required by a composition, purchased or manual."""
    type: str
    slug: str
    managed_post_id: int
    purchased_solution_id: int = 0
    pseudo_id: str = ""
    context: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type,
            "slug": self.slug,
            "managed_post_id": self.managed_post_id,
        }
        if self.purchased_solution_id:
            data["purchased_solution_id"] = self.purchased_solution_id
        if self.pseudo_id:
            data["pseudo_id"] = self.pseudo_id
        if self.context:
            data["context"] = dict(self.context)
        return data


@dataclass(frozen=True)
class RequiredPart:
    """A part requirement after aggregation over all resolved solutions."""
    package_name: str
    version_range: str
    stability: str
    required_by: Tuple[Mapping[str, str], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_name": self.package_name,
            "version_range": self.version_range,
            "stability": self.stability,
            "required_by": [dict(r) for r in self.required_by],
        }


@dataclass
class Manifest:
    """Requirements of a composition, ready for a package manifest."""
    required_solutions: List[RequiredSolution]
    require: Dict[str, str]
    composer_require: Dict[str, str]
    required_parts: Dict[str, RequiredPart]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "required_solutions": [r.to_dict() for r in self.required_solutions],
            "require": dict(self.require),
            "composer_require": dict(self.composer_require),
            "required_parts": {name: part.to_dict() for name, part in self.required_parts.items()},
        }


@dataclass
class CompositionReport:
    """Outcome of validating a composition.

    ``needs_review`` is set when the composition should be looked at by its
    owner or an editor; it never blocks saving the composition.
    """
    manifest: Manifest
    dry_run: DryRunResult
    warnings: List[str] = field(default_factory=list)
    needs_review: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "manifest": self.manifest.to_dict(),
            "dry_run": self.dry_run.to_dict(),
            "warnings": list(self.warnings),
            "needs_review": self.needs_review,
        }


def find_manual(composition: Composition, pseudo_id: str) -> Optional[int]:
    """Return the index of a manual entry by pseudo-ID."""
    for index, entry in enumerate(composition.manual_solutions):
        if entry.pseudo_id == pseudo_id:
            return index
    return None
