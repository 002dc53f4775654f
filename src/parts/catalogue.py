"""Catalogue of the parts available in the parts repository.

The list is fetched from the repository's ``packages.json`` index and kept in
a JSON cache file shared by every process. Cached data is served while it is
younger than the TTL. A failed refresh keeps the previous data.
"""

from __future__ import annotations

import base64
import json
import logging
import os
import tempfile
import time
from typing import Any, Callable, Dict, List, Optional

from constants import Constants
from common.http_client import get_json, packages_json_url
from common.logging_utils import extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)


def extract_part_names(payload: Any) -> List[str]:
    """Read part names from a repository index.

    Accepts ``{"packages": {name: ...}}``, ``{"packages": [name, ...]}`` or a
    bare list of names or ``{"name": ...}`` entries.
    """
    if isinstance(payload, dict):
        payload = payload.get("packages", [])
    if isinstance(payload, dict):
        return sorted(str(name) for name in payload)
    names = set()
    for entry in payload if isinstance(payload, list) else []:
        if isinstance(entry, str) and entry:
            names.add(entry)
        elif isinstance(entry, dict) and entry.get("name"):
            names.add(str(entry["name"]))
    return sorted(names)


def _is_index(payload: Any) -> bool:
    """True for a repository index: a ``packages`` mapping or a list of names."""
    if isinstance(payload, dict):
        return isinstance(payload.get("packages"), (dict, list))
    return isinstance(payload, list)


class PartsCatalogue:
    """Cached list of part package names."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        cache_path: Optional[str] = None,
        ttl: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.url = packages_json_url(Constants.PARTS_REPO_URL if url is None else url)
        self.api_key = Constants.PARTS_API_KEY if api_key is None else api_key
        self.cache_path = Constants.PARTS_CACHE_PATH if cache_path is None else cache_path
        self.ttl = Constants.PARTS_CACHE_TTL_SEC if ttl is None else int(ttl)
        self._clock = clock
        self._fetched_at: Optional[float] = None
        self._parts: List[str] = []
        self._loaded = False
        self.last_refresh_ok: Optional[bool] = None

    def get_parts(self, force: bool = False) -> List[str]:
        """Return the part names, refreshing them when the cache is stale."""
        self._load_cache()
        if force or not self._is_fresh():
            self.refresh()
        return list(self._parts)

    def contains(self, package_name: str) -> bool:
        return package_name in self.get_parts()

    def refresh(self) -> bool:
        """Fetch the catalogue; return True when fresh data was stored."""
        if not self.url:
            logger.warning("No parts repository URL configured; using cached parts list")
            self.last_refresh_ok = False
            return False

        headers = {"Accept": "application/json"}
        if self.api_key:
            token = base64.b64encode(f"{self.api_key}:{Constants.PARTS_API_PWD}".encode("utf-8")).decode("ascii")
            headers["Authorization"] = f"Basic {token}"

        status, _, payload = get_json(self.url, headers=headers)
        if status != 200 or not _is_index(payload):
            logger.warning(
                "Could not refresh the parts catalogue from %s (status %s); keeping %d cached parts",
                safe_url(self.url),
                status,
                len(self._parts),
            )
            self.last_refresh_ok = False
            return False

        self.last_refresh_ok = True
        self._parts = extract_part_names(payload)
        self._fetched_at = self._clock()
        self._save_cache()
        if is_debug_enabled(logger):
            logger.debug(
                "Parts catalogue refreshed",
                extra=extra_context(
                    event="refresh",
                    component="parts_catalogue",
                    action="fetch",
                    count=len(self._parts),
                    target=safe_url(self.url),
                ),
            )
        return True

    def _is_fresh(self) -> bool:
        if self._fetched_at is None:
            return False
        return (self._clock() - self._fetched_at) < self.ttl

    def _load_cache(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self.cache_path or not os.path.isfile(self.cache_path):
            return
        try:
            with open(self.cache_path, "r", encoding="utf-8") as fh:
                data: Dict[str, Any] = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable parts cache %s: %s", self.cache_path, exc)
            return
        if not isinstance(data, dict):
            return
        try:
            self._fetched_at = float(data.get("fetched_at"))
        except (TypeError, ValueError):
            self._fetched_at = None
        self._parts = extract_part_names(data.get("parts") or [])

    def _save_cache(self) -> None:
        """Write the cache next to its final path and swap it in.

        Readers in other processes see either the old file or the new one.
        """
        if not self.cache_path:
            return
        directory = os.path.dirname(self.cache_path) or "."
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".parts-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump({"fetched_at": self._fetched_at, "parts": self._parts}, fh)
            os.replace(tmp_path, self.cache_path)
            tmp_path = None
        except OSError as exc:
            logger.warning("Could not write parts cache %s: %s", self.cache_path, exc)
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
