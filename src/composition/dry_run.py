"""Dry-run validation against an external dependency resolver.

The resolver is asked to simulate installing a set of solutions with every
dependency they pull in. Failures are reported, never raised: a failed or
skipped dry run only flags a composition for review.
"""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from constants import Constants
from common.http_client import packages_json_url, post_json
from common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from solutions.models import Solution

logger = logging.getLogger(__name__)


class DryRunStatus(Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ResolverOutcome:
    """What the resolver answered."""
    success: bool
    message: str = ""


@dataclass(frozen=True)
class DryRunResult:
    status: DryRunStatus
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status is DryRunStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "message": self.message}


class DependencyResolver(ABC):
    """External service solving version constraints."""

    @abstractmethod
    def resolve(self, request: Dict[str, Any]) -> ResolverOutcome:
        """Simulate installing ``request`` and report success or failure."""


class HttpDependencyResolver(DependencyResolver):
    """Resolver reachable over HTTP.

    The request is POSTed as JSON; the answer is expected to be
    ``{"success": bool, "message": str}``. Transport errors and unexpected
    answers become failed outcomes.
    """

    def __init__(self, url: str, headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None):
        self.url = url
        self.headers = dict(headers or {})
        self.timeout = timeout

    def resolve(self, request: Dict[str, Any]) -> ResolverOutcome:
        status, payload, text = post_json(
            self.url,
            request,
            context="dry-run",
            headers=self.headers,
            timeout=self.timeout,
        )
        if status == 0:
            return ResolverOutcome(False, f"Dependency resolver unreachable at {safe_url(self.url)}: {text}")
        if not isinstance(payload, dict):
            return ResolverOutcome(False, f"Unexpected dependency resolver answer (HTTP {status})")
        message = str(payload.get("message") or "")
        if status >= 400 and not message:
            message = f"HTTP {status}"
        return ResolverOutcome(bool(payload.get("success")) and status < 400, message)


def _basic_auth_header(user: str, password: str) -> str:
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return f"Authorization: Basic {token}"


def build_request(package_names: Iterable[str]) -> Dict[str, Any]:
    """Build the resolver request for ``package_names``.

    Solutions are not versioned, so each is required at ``*`` with the
    loosest stability. Platform requirements are ignored since nothing is
    actually installed.
    """
    names = list(package_names)
    repositories: List[Dict[str, Any]] = []
    if Constants.SOLUTIONS_REPO_URL:
        headers = []
        if Constants.SOLUTIONS_REPO_AUTH_USER:
            headers.append(_basic_auth_header(Constants.SOLUTIONS_REPO_AUTH_USER, Constants.SOLUTIONS_REPO_AUTH_PWD))
        repositories.append({
            "type": "composer",
            "url": Constants.SOLUTIONS_REPO_URL,
            "options": {"ssl": {"verify_peer": Constants.VERIFY_SSL}, "http": {"header": headers}},
        })
    repositories.append({
        "type": "composer",
        "url": packages_json_url(Constants.PARTS_REPO_URL),
        "options": {
            "ssl": {"verify_peer": Constants.VERIFY_SSL},
            "http": {"header": [_basic_auth_header(Constants.PARTS_API_KEY, Constants.PARTS_API_PWD)]},
        },
    })
    repositories.append({"type": "composer", "url": Constants.PACKAGIST_URL})

    return {
        "repositories": repositories,
        "require-dependencies": True,
        "only-best-candidates": True,
        "require": {name: Constants.DEFAULT_VERSION_RANGE for name in names},
        "minimum-stability-per-package": {name: Constants.DRY_RUN_STABILITY for name in names},
        "ignore-platform-reqs": True,
    }


def dry_run(
    solutions: Iterable[Solution],
    resolver: Optional[DependencyResolver],
    *,
    label: str,
) -> DryRunResult:
    """Ask ``resolver`` whether ``solutions`` can be installed together.

    Args:
        solutions: Solutions to require.
        resolver: The external resolver; None skips the dry run.
        label: Human-readable owner for log messages (e.g. "composition #12").
    """
    names = sorted({s.package_name for s in solutions})
    if not names:
        return DryRunResult(DryRunStatus.SKIPPED, "Nothing to resolve")
    if not Constants.PARTS_REPO_URL or not Constants.PARTS_API_KEY:
        message = "Missing parts repository URL and/or parts API key"
        logger.error("Error during dry run for %s: %s", label, message)
        return DryRunResult(DryRunStatus.SKIPPED, message)
    if resolver is None:
        message = "No dependency resolver configured"
        logger.warning("Skipping dry run for %s: %s", label, message)
        return DryRunResult(DryRunStatus.SKIPPED, message)

    with Timer() as t:
        outcome = resolver.resolve(build_request(names))

    if is_debug_enabled(logger):
        logger.debug(
            "Dry run finished",
            extra=extra_context(
                event="dry_run",
                component="dry_run",
                action="resolve",
                outcome="success" if outcome.success else "failure",
                count=len(names),
                duration_ms=t.duration_ms(),
                target=label,
            ),
        )
    if outcome.success:
        return DryRunResult(DryRunStatus.OK, outcome.message)
    logger.error("Error during dry run for %s: %s", label, outcome.message or "unknown error")
    return DryRunResult(DryRunStatus.FAILED, outcome.message)
