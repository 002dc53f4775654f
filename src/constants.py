"""Constants used in the project."""

import logging
import os
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    EXIT_WARNINGS = 3
    CONFIG_ERROR = 4


class Visibility(Enum):
    """Visibility of a solution, derived from its record status."""

    PUBLIC = "public"
    DRAFT = "draft"
    PRIVATE = "private"


class SolutionTypes(Enum):
    """Solution types known to the store."""

    BASIC = "basic"
    REGULAR = "regular"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    PSEUDO_ID_DELIMITER = " #"
    DEFAULT_VENDOR = "pressody-retailer"
    VENDOR = DEFAULT_VENDOR
    DEFAULT_VERSION_RANGE = "*"
    DEFAULT_STABILITY = "stable"
    DEFAULT_LICENSE = "GPL-2.0-or-later"
    DRY_RUN_STABILITY = "dev"
    PACKAGIST_URL = "https://repo.packagist.org"
    SOLUTIONS_REPO_URL = ""
    SOLUTIONS_REPO_AUTH_USER = ""
    SOLUTIONS_REPO_AUTH_PWD = "pressody_retailer"
    PARTS_REPO_URL = ""
    PARTS_API_KEY = ""
    PARTS_API_PWD = "pressody_records"
    RESOLVER_URL = ""
    VERIFY_SSL = True
    PARTS_CACHE_TTL_SEC = 900
    PARTS_CACHE_PATH = os.path.join(os.path.expanduser("~"), ".cache", "retailer", "parts.json")
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    CONFIG_FILE = "retailer.yml"
    ENV_CONFIG = "RETAILER_CONFIG"
    ENV_VENDOR = "RETAILER_VENDOR"
    ENV_PARTS_API_KEY = "RETAILER_PARTS_API_KEY"
    ENV_LOG_LEVEL = "RETAILER_LOG_LEVEL"


def composition_statuses() -> Mapping[str, Mapping[str, Any]]:
    """Return the read-only table of composition statuses."""
    return MappingProxyType({
        "not_ready": MappingProxyType({
            "id": "not_ready",
            "label": "Not Ready",
            "desc": "The composition is not ready for use on a site. It needs more work to be ready.",
            "internal": False,
        }),
        "ready": MappingProxyType({
            "id": "ready",
            "label": "Ready",
            "desc": "The composition is ready for use on a site.",
            "internal": False,
        }),
        "active": MappingProxyType({
            "id": "active",
            "label": "Active",
            "desc": "The composition is being used on a site.",
            "internal": False,
        }),
        "retired": MappingProxyType({
            "id": "retired",
            "label": "Retired",
            "desc": "The composition has been retired and is no longer available for use.",
            "internal": False,
        }),
    })


def purchased_solution_statuses() -> Mapping[str, Mapping[str, Any]]:
    """Return the read-only table of purchased-solution statuses."""
    return MappingProxyType({
        "ready": MappingProxyType({
            "id": "ready",
            "label": "Ready",
            "desc": "The purchased solution is ready to be used in compositions.",
            "internal": False,
        }),
        "active": MappingProxyType({
            "id": "active",
            "label": "Active",
            "desc": "The purchased solution is part of a composition.",
            "internal": False,
        }),
        "invalid": MappingProxyType({
            "id": "invalid",
            "label": "Invalid",
            "desc": "The purchased solution can't be used in compositions.",
            "internal": False,
        }),
        "retired": MappingProxyType({
            "id": "retired",
            "label": "Retired",
            "desc": "The purchased solution has been retired and is no longer available for use.",
            "internal": False,
        }),
    })


# Maps YAML keys (dot paths) onto Constants attributes.
_YAML_KEYS = {
    "vendor": "VENDOR",
    "solutions.repo_url": "SOLUTIONS_REPO_URL",
    "solutions.auth_user": "SOLUTIONS_REPO_AUTH_USER",
    "parts.repo_url": "PARTS_REPO_URL",
    "parts.api_key": "PARTS_API_KEY",
    "parts.cache_ttl": "PARTS_CACHE_TTL_SEC",
    "parts.cache_path": "PARTS_CACHE_PATH",
    "resolver.url": "RESOLVER_URL",
    "http.timeout": "REQUEST_TIMEOUT",
    "http.retries": "HTTP_RETRY_MAX",
    "http.verify_ssl": "VERIFY_SSL",
}


def _lookup(data: Dict[str, Any], dot_path: str) -> Any:
    cur: Any = data
    for part in dot_path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration file and apply it onto Constants.

    Resolution order for the file: explicit ``path``, the RETAILER_CONFIG
    environment variable, then ``./retailer.yml``. A missing file is not an
    error. Environment variables for the vendor and the parts API key win
    over the file.

    Returns:
        The raw configuration mapping (empty when nothing was loaded).
    """
    import yaml

    cfg: Dict[str, Any] = {}
    candidate = path or os.environ.get(Constants.ENV_CONFIG) or Constants.CONFIG_FILE
    if candidate and os.path.isfile(candidate):
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh) or {}
            if isinstance(loaded, dict):
                cfg = loaded
            else:
                logger.warning("Ignoring config file %s: top level is not a mapping", candidate)
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Unable to read config file %s: %s", candidate, exc)
    elif path:
        logger.warning("Config file %s not found; using defaults", path)

    for dot_path, attr in _YAML_KEYS.items():
        value = _lookup(cfg, dot_path)
        if value is None:
            continue
        current = getattr(Constants, attr)
        if isinstance(current, bool):
            value = bool(value)
        elif isinstance(current, int):
            try:
                value = int(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring non-integer value for %s: %r", dot_path, value)
                continue
        else:
            value = str(value)
        setattr(Constants, attr, value)

    env_vendor = os.environ.get(Constants.ENV_VENDOR)
    if env_vendor and env_vendor.strip():
        Constants.VENDOR = env_vendor.strip()
    env_key = os.environ.get(Constants.ENV_PARTS_API_KEY)
    if env_key and env_key.strip():
        Constants.PARTS_API_KEY = env_key.strip()

    return cfg
