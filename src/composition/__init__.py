"""Composition assembly and dry-run validation."""

from .dry_run import (
    DependencyResolver,
    DryRunResult,
    DryRunStatus,
    HttpDependencyResolver,
    ResolverOutcome,
    build_request,
    dry_run,
)
from .models import Composition, CompositionReport, ManualSolutionRef, Manifest, RequiredPart, RequiredSolution
from .manager import CompositionManager

__all__ = [
    "DependencyResolver",
    "DryRunResult",
    "DryRunStatus",
    "HttpDependencyResolver",
    "ResolverOutcome",
    "build_request",
    "dry_run",
    "Composition",
    "CompositionReport",
    "ManualSolutionRef",
    "Manifest",
    "RequiredPart",
    "RequiredSolution",
    "CompositionManager",
]
