"""Field normalizers shared by the solution builder."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List

import semantic_version

from constants import Constants
from .errors import InvalidPackageError, InvalidVendorError

logger = logging.getLogger(__name__)

_VENDOR_RE = re.compile(r"^[a-z0-9]([_.-]?[a-z0-9]+)*$")
_NAME_STRIP_RE = re.compile(r"[^a-z0-9_\-.]+")
_GPL = r"(GNU\s*-?)?(General Public License|GPL)(\s*[-_v]*\s*)"
_LICENSE_PATTERNS = [
    (re.compile(_GPL + r"(2[.-]?0?\s*-?)(or\s*-?later|\+)", re.I), "GPL-2.0-or-later"),
    (re.compile(_GPL + r"(2[.-]?0?\s*-?)(only)?", re.I), "GPL-2.0-only"),
    (re.compile(_GPL + r"(3[.-]?0?\s*-?)(or\s*-?later|\+)", re.I), "GPL-3.0-or-later"),
    (re.compile(_GPL + r"(3[.-]?0?\s*-?)(only)?", re.I), "GPL-3.0-only"),
    (re.compile(r"(The\s*)?(\bMIT\b\s*)(License)?", re.I), "MIT"),
]
_AUTHOR_KEYS = ("name", "email", "homepage", "role")


def normalize_package_name(name: str) -> str:
    """Lowercase and drop every character outside ``[a-z0-9_.-]``."""
    return _NAME_STRIP_RE.sub("", (name or "").lower())


def validate_vendor(vendor: str) -> str:
    """Return the vendor unchanged when it can prefix a package name.

    Raises:
        InvalidVendorError: when it is shorter than 2 characters or uses
            characters outside the package-name alphabet.
    """
    if not isinstance(vendor, str) or len(vendor) < 2 or not _VENDOR_RE.match(vendor):
        raise InvalidVendorError(
            f"Invalid vendor {vendor!r}: use at least 2 lowercase letters, digits, '_', '.' or '-'"
        )
    return vendor


def canonical_package_name(vendor: str, slug: str) -> str:
    """Compose ``vendor/slug`` after validating both halves."""
    name = normalize_package_name(slug)
    if not name:
        raise InvalidPackageError(f"Cannot derive a package name from slug {slug!r}")
    return f"{validate_vendor(vendor)}/{name}"


def normalize_license(license_text: str) -> str:
    """Map common license spellings onto SPDX identifiers."""
    license_text = (license_text or "").strip()
    if not license_text:
        return Constants.DEFAULT_LICENSE
    for pattern, spdx in _LICENSE_PATTERNS:
        if pattern.search(license_text):
            return spdx
    return license_text


def normalize_keywords(keywords: Any) -> List[str]:
    """Accept a list or a comma-separated string; return sorted unique keywords."""
    if isinstance(keywords, (list, tuple, set, frozenset)):
        items = [k for k in keywords if isinstance(k, str)]
    else:
        text = str(keywords or "").strip()
        if not text:
            return []
        items = text.split(",")
    return sorted({k.strip() for k in items if k and k.strip()})


def normalize_authors(authors: Any) -> List[Dict[str, str]]:
    """Keep only named authors, restricted to the known author fields."""
    normalized = []
    for author in authors or []:
        if isinstance(author, str):
            if author.strip():
                normalized.append({"name": author.strip()})
            continue
        if not isinstance(author, dict):
            continue
        clean = {k: str(author[k]).strip() for k in _AUTHOR_KEYS if author.get(k)}
        if not clean.get("name"):
            continue
        normalized.append(clean)
    return normalized


def normalize_version_range(version_range: Any, owner: str = "") -> str:
    """Return a trimmed version range, defaulting to ``*``.

    Composer-style ranges are checked with semantic_version; an unparsable
    range is kept verbatim (the external resolver has the final say) but
    logged so operators can fix it.
    """
    text = str(version_range or "").strip()
    if not text:
        return Constants.DEFAULT_VERSION_RANGE
    if text == Constants.DEFAULT_VERSION_RANGE:
        return text
    # Composer separates AND-ed constraints with commas, npm with spaces.
    candidate = re.sub(r"\s*,\s*", " ", text)
    try:
        semantic_version.NpmSpec(candidate)
    except ValueError:
        try:
            semantic_version.SimpleSpec(text)
        except ValueError:
            logger.warning("Unrecognized version range %r for %s", text, owner or "unknown solution")
    return text
