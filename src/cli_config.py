"""CLI configuration overrides for runtime tunables.

Applied after the YAML configuration so command-line flags have the highest
precedence.
"""

from __future__ import annotations

import logging

from constants import Constants

logger = logging.getLogger(__name__)

# argparse dest -> Constants attribute
_OVERRIDES = {
    "VENDOR": "VENDOR",
    "PARTS_REPO_URL": "PARTS_REPO_URL",
    "PARTS_API_KEY": "PARTS_API_KEY",
    "RESOLVER_URL": "RESOLVER_URL",
}


def apply_overrides(args) -> None:
    """Copy the CLI flags that were given onto Constants."""
    for dest, attr in _OVERRIDES.items():
        value = getattr(args, dest, None)
        if value is None:
            continue
        value = str(value).strip()
        if not value:
            continue
        setattr(Constants, attr, value)
        logger.debug("CLI override for %s applied", attr)
