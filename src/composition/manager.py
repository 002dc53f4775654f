"""Composition assembly: from purchased and manual solutions to a manifest."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from constants import Constants
from repository.base import InMemoryRepository
from repository.processed import ProcessedRepository, priority_order
from solutions.errors import CompositionError
from solutions.factory import SolutionFactory
from solutions.models import Solution, to_composer_require
from solutions.pseudo_id import encode_pseudo_id, parse_pseudo_id
from .dry_run import DependencyResolver, DryRunResult, DryRunStatus, dry_run
from .models import (
    MANUAL,
    PURCHASED,
    Composition,
    CompositionReport,
    ManualSolutionRef,
    Manifest,
    RequiredPart,
    RequiredSolution,
    find_manual,
)

if TYPE_CHECKING:
    from parts.catalogue import PartsCatalogue
    from store.post_store import PostStore

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class CompositionManager:
    """Resolves compositions into manifests.

    Nothing is cached between calls: every lookup and every manifest is
    recomputed from the store.
    """

    def __init__(
        self,
        store: "PostStore",
        factory: SolutionFactory,
        resolver: Optional[DependencyResolver] = None,
        parts_catalogue: Optional["PartsCatalogue"] = None,
    ):
        self.store = store
        self.factory = factory
        self.resolver = resolver
        self.parts_catalogue = parts_catalogue

    def solution_for(self, record_id: int) -> Optional[Solution]:
        """Build the solution of a record from the current store data."""
        return self.factory.build_from_record(record_id)

    def get_composition(self, composition_id: int) -> Optional[Composition]:
        data = self.store.get_composition_data(composition_id)
        if not data:
            return None
        data.setdefault("id", composition_id)
        return Composition.from_dict(data)

    # Required solutions

    def required_purchased_solutions(self, composition: Composition) -> List[RequiredSolution]:
        """Purchased solutions in the order the composition lists them.

        Purchase records that are missing, or whose solution record is
        missing, are left out.
        """
        required = []
        for purchased_id in composition.purchased_solution_ids:
            purchased = self.store.get_purchased_solution(purchased_id)
            if purchased is None:
                logger.warning(
                    "Composition #%s lists unknown purchased solution #%s", composition.id, purchased_id
                )
                continue
            data = self.store.get_solution_data(purchased.solution_id)
            if not data:
                logger.warning(
                    "Purchased solution #%s points to missing solution record #%s",
                    purchased.id,
                    purchased.solution_id,
                )
                continue
            required.append(RequiredSolution(
                type=PURCHASED,
                slug=str(data.get("slug") or ""),
                managed_post_id=purchased.solution_id,
                purchased_solution_id=purchased.id,
                context={
                    "purchased_solution": purchased.to_dict(),
                    "timestamp": purchased.date_created,
                },
            ))
        return required

    def required_manual_solutions(self, composition: Composition) -> List[RequiredSolution]:
        required = []
        for entry in composition.manual_solutions:
            parsed = parse_pseudo_id(entry.pseudo_id)
            if parsed is None:
                logger.error(
                    "Dropping manual solution with invalid pseudo_id %r from composition #%s",
                    entry.pseudo_id,
                    composition.id,
                )
                continue
            slug, record_id = parsed
            required.append(RequiredSolution(
                type=MANUAL,
                slug=slug,
                managed_post_id=record_id,
                pseudo_id=entry.pseudo_id,
                context={"reason": entry.reason, "timestamp": entry.timestamp},
            ))
        return required

    @staticmethod
    def unique_required_solutions_list(required: Iterable[RequiredSolution]) -> List[RequiredSolution]:
        """One entry per solution record, ordered by record id.

        When a record appears more than once the last entry wins.
        """
        by_record: Dict[int, RequiredSolution] = {}
        for entry in required:
            by_record[entry.managed_post_id] = entry
        return [by_record[record_id] for record_id in sorted(by_record)]

    def required_solutions(self, composition: Composition) -> List[RequiredSolution]:
        """Purchased and manual solutions; a manual entry replaces a purchased one."""
        purchased = self.unique_required_solutions_list(self.required_purchased_solutions(composition))
        manual = self.unique_required_solutions_list(self.required_manual_solutions(composition))
        return self.unique_required_solutions_list(purchased + manual)

    def required_solutions_packages(self, required: Iterable[RequiredSolution]) -> List[Solution]:
        packages = []
        for entry in required:
            solution = self.solution_for(entry.managed_post_id)
            if solution is None:
                logger.warning("No solution found for record #%s (%s)", entry.managed_post_id, entry.slug)
                continue
            packages.append(solution)
        return packages

    def extract_priority_context(self, required: Iterable[RequiredSolution]) -> Dict[str, Mapping[str, Any]]:
        """Map the package name of each required solution to its context."""
        context: Dict[str, Mapping[str, Any]] = {}
        for entry in required:
            solution = self.solution_for(entry.managed_post_id)
            if solution is None:
                continue
            context[solution.package_name] = dict(entry.context)
        return context

    # Resolution

    def resolve_required_solutions(
        self,
        required: Sequence[RequiredSolution],
        priority_context: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Solution]:
        """Flatten and exclusion-resolve the given required solutions."""
        if priority_context is None:
            priority_context = self.extract_priority_context(required)
        base = InMemoryRepository(self.required_solutions_packages(required))
        return ProcessedRepository(base, self.factory, priority_context).all()

    def resolve(self, composition: Composition) -> Dict[str, Solution]:
        return self.resolve_required_solutions(self.required_solutions(composition))

    @staticmethod
    def aggregate_required_parts(
        solutions: Mapping[str, Solution],
        priority_context: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, RequiredPart]:
        """Collect the parts required by ``solutions``.

        When several solutions require the same part, the requirement of the
        one processed first by exclusion resolution wins; ranges are never
        merged. ``required_by`` lists every requiring solution.
        """
        winners = {}
        required_by: Dict[str, List[Dict[str, str]]] = defaultdict(list)
        # Walk lowest priority first so the highest priority writes last.
        for package_name in reversed(priority_order(solutions, priority_context)):
            for part in solutions[package_name].required_parts.values():
                winners[part.package_name] = part
                required_by[part.package_name].append(
                    {"package_name": package_name, "version_range": part.version_range}
                )
        return {
            name: RequiredPart(
                package_name=name,
                version_range=part.version_range,
                stability=part.stability,
                required_by=tuple(sorted(required_by[name], key=lambda r: r["package_name"])),
            )
            for name, part in sorted(winners.items())
        }

    def _assemble(self, composition: Composition) -> Tuple[Manifest, Dict[str, Solution]]:
        required = self.required_solutions(composition)
        priority_context = self.extract_priority_context(required)
        resolved = self.resolve_required_solutions(required, priority_context)
        parts = self.aggregate_required_parts(resolved, priority_context)
        manifest = Manifest(
            required_solutions=required,
            require={name: Constants.DEFAULT_VERSION_RANGE for name in resolved},
            composer_require=to_composer_require(parts.values()),
            required_parts=parts,
        )
        return manifest, resolved

    def build_manifest(self, composition: Composition) -> Manifest:
        return self._assemble(composition)[0]

    # Changes; each returns a new Composition

    def add_manual_solution(
        self,
        composition: Composition,
        *,
        pseudo_id: str = "",
        record_id: int = 0,
        reason: str = "",
        timestamp: Any = None,
        update: bool = False,
        process_solutions: bool = False,
    ) -> Composition:
        """Add a solution by record id or pseudo-ID.

        A valid record id takes precedence over the pseudo-ID. With
        ``update`` an existing entry gets the new reason instead of being
        rejected. With ``process_solutions`` the manual list is resolved
        after the addition and only the surviving entries are kept.

        Raises:
            CompositionError: when the solution cannot be identified, does
                not exist, or is already present and ``update`` is False.
        """
        if record_id:
            data = self.store.get_solution_data(record_id)
            if data:
                pseudo_id = encode_pseudo_id(str(data.get("slug") or ""), record_id)
            else:
                record_id = 0
        if not record_id and pseudo_id:
            parsed = parse_pseudo_id(pseudo_id)
            if parsed is not None:
                record_id = parsed[1]
        if not record_id:
            raise CompositionError("Could not identify the solution to add")
        if self.solution_for(record_id) is None:
            raise CompositionError(f"There is no solution with record id #{record_id}")

        entries = list(composition.manual_solutions)
        index = find_manual(composition, pseudo_id)
        if index is None:
            entries.append(ManualSolutionRef(
                pseudo_id=pseudo_id,
                reason=reason,
                timestamp=timestamp if timestamp is not None else _now_iso(),
            ))
        else:
            if not update:
                raise CompositionError(f"Solution {pseudo_id!r} is already part of composition #{composition.id}")
            if reason:
                entries[index] = ManualSolutionRef(entries[index].pseudo_id, reason, entries[index].timestamp)
            return composition.replace(manual_solutions=tuple(entries))

        updated = composition.replace(manual_solutions=tuple(entries))
        if process_solutions:
            kept = self._surviving_record_ids(self.required_manual_solutions(updated))
            entries = [e for e in entries if (parse_pseudo_id(e.pseudo_id) or ("", 0))[1] in kept]
            updated = updated.replace(manual_solutions=tuple(entries))
        return updated

    def remove_manual_solution(self, composition: Composition, solution_id: Union[int, str]) -> Composition:
        """Remove a manual entry by record id or pseudo-ID.

        Raises:
            CompositionError: when no entry matches.
        """
        if isinstance(solution_id, int):
            entries = [
                e for e in composition.manual_solutions
                if (parse_pseudo_id(e.pseudo_id) or ("", 0))[1] != solution_id
            ]
        else:
            entries = [e for e in composition.manual_solutions if e.pseudo_id != solution_id]
        if len(entries) == len(composition.manual_solutions):
            raise CompositionError(f"Solution {solution_id!r} is not part of composition #{composition.id}")
        return composition.replace(manual_solutions=tuple(entries))

    def add_purchased_solution(
        self,
        composition: Composition,
        purchased_solution_id: int,
        process_solutions: bool = False,
    ) -> Composition:
        """Attach a purchased solution.

        Raises:
            CompositionError: when it is already attached or does not exist.
        """
        if purchased_solution_id in composition.purchased_solution_ids:
            raise CompositionError(
                f"Purchased solution #{purchased_solution_id} is already part of composition #{composition.id}"
            )
        if self.store.get_purchased_solution(purchased_solution_id) is None:
            raise CompositionError(f"There is no purchased solution #{purchased_solution_id}")

        updated = composition.replace(
            purchased_solution_ids=composition.purchased_solution_ids + (purchased_solution_id,)
        )
        if process_solutions:
            required = self.required_purchased_solutions(updated)
            kept = self._surviving_record_ids(required)
            updated = updated.replace(purchased_solution_ids=tuple(
                r.purchased_solution_id for r in required if r.managed_post_id in kept
            ))
        return updated

    def remove_purchased_solution(self, composition: Composition, purchased_solution_id: int) -> Composition:
        if purchased_solution_id not in composition.purchased_solution_ids:
            raise CompositionError(
                f"Purchased solution #{purchased_solution_id} is not part of composition #{composition.id}"
            )
        return composition.replace(purchased_solution_ids=tuple(
            i for i in composition.purchased_solution_ids if i != purchased_solution_id
        ))

    def _surviving_record_ids(self, required: List[RequiredSolution]) -> set:
        resolved = self.resolve_required_solutions(self.unique_required_solutions_list(required))
        return {s.managed_post_id for s in resolved.values()}

    # Validation

    def validate(self, composition: Composition) -> CompositionReport:
        """Build the manifest and dry-run it.

        Problems become warnings on the report; nothing here raises for an
        unsatisfiable composition.
        """
        manifest, resolved = self._assemble(composition)
        result = dry_run(resolved.values(), self.resolver, label=f"composition #{composition.id}")

        warnings: List[str] = []
        needs_review = False
        if result.status is DryRunStatus.FAILED:
            warnings.append(f"Dry run failed: {result.message or 'unknown error'}")
            needs_review = True
        elif result.status is DryRunStatus.SKIPPED:
            warnings.append(f"Dry run skipped: {result.message}")

        if self.parts_catalogue is not None and manifest.required_parts:
            available = set(self.parts_catalogue.get_parts())
            # An empty catalogue means it was never fetched.
            if available:
                for part_name in manifest.required_parts:
                    if part_name not in available:
                        warnings.append(f"Required part {part_name} is not available in the parts repository")
                        needs_review = True

        if needs_review:
            logger.warning("Composition #%s needs review: %s", composition.id, "; ".join(warnings))
        return CompositionReport(manifest=manifest, dry_run=result, warnings=warnings, needs_review=needs_review)

    def dry_run_solution(self, solution: Solution) -> DryRunResult:
        return dry_run([solution], self.resolver, label=f"solution {solution.package_name}")
