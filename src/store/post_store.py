"""Post Store contract and an in-memory implementation.

The Post Store is the record store that owns solutions, purchased solutions
and compositions. The resolution engine only ever reads from it.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from constants import purchased_solution_statuses

logger = logging.getLogger(__name__)

# Record statuses a solution can have; anything else is stored as private.
POST_STATUSES = ("publish", "draft", "private")


@dataclass(frozen=True)
class PurchasedSolution:
    """A solution bought by a customer, possibly attached to a composition."""
    id: int
    solution_id: int
    user_id: int = 0
    order_id: int = 0
    order_item_id: int = 0
    composition_id: int = 0
    status: str = "ready"
    date_created: str = ""
    date_modified: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PurchasedSolution":
        status = str(raw.get("status") or "ready")
        if status not in purchased_solution_statuses():
            status = "invalid"
        return cls(
            id=int(raw.get("id") or 0),
            solution_id=int(raw.get("solution_id") or 0),
            user_id=int(raw.get("user_id") or 0),
            order_id=int(raw.get("order_id") or 0),
            order_item_id=int(raw.get("order_item_id") or 0),
            composition_id=int(raw.get("composition_id") or 0),
            status=status,
            date_created=str(raw.get("date_created") or ""),
            date_modified=str(raw.get("date_modified") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PostStore(ABC):
    """Read-only access to solution, purchase and composition records."""

    @abstractmethod
    def get_solution_data(self, record_id: int) -> Dict[str, Any]:
        """Return the raw solution fields for a record, or ``{}``."""

    @abstractmethod
    def get_solution_ids_by(self, criteria: Optional[Mapping[str, Any]] = None) -> List[int]:
        """Return the ids of solution records matching ``criteria``.

        Supported criteria: ``post_ids``, ``exclude_post_ids``, ``slug``,
        ``post_status``, ``solution_type`` and ``solution_category``. Each
        accepts a single value or a list of accepted values.
        """

    @abstractmethod
    def get_post_status(self, record_id: int) -> Optional[str]:
        """Return the record status (``publish``, ``draft``, ``private``)."""

    @abstractmethod
    def get_purchased_solution(self, purchased_id: int) -> Optional[PurchasedSolution]:
        """Return a purchased-solution record."""

    @abstractmethod
    def get_composition_data(self, composition_id: int) -> Dict[str, Any]:
        """Return the raw composition fields, or ``{}``."""

    def get_solution_data_by(self, criteria: Mapping[str, Any]) -> Dict[str, Any]:
        """Return the data of the first record matching ``criteria``."""
        ids = self.get_solution_ids_by(criteria)
        if not ids:
            return {}
        return self.get_solution_data(ids[0])


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


class InMemoryPostStore(PostStore):
    """Post Store kept in dictionaries, loaded from a mapping or a YAML file.

    Expected shape::

        solutions:
          - id: 1
            status: publish
            slug: blog
            name: Blog
            required_solutions: [{pseudo_id: "edd #2"}]
        purchased_solutions:
          - {id: 10, solution_id: 1, user_id: 3, date_created: "2024-01-01T00:00:00Z"}
        compositions:
          - {id: 100, status: ready, purchased_solutions: [10]}
    """

    def __init__(
        self,
        solutions: Optional[Iterable[Mapping[str, Any]]] = None,
        purchased_solutions: Optional[Iterable[Mapping[str, Any]]] = None,
        compositions: Optional[Iterable[Mapping[str, Any]]] = None,
    ):
        self._solutions: Dict[int, Dict[str, Any]] = {}
        self._statuses: Dict[int, str] = {}
        self._purchased: Dict[int, PurchasedSolution] = {}
        self._compositions: Dict[int, Dict[str, Any]] = {}

        for raw in solutions or []:
            self.add_solution(raw)
        for raw in purchased_solutions or []:
            purchased = PurchasedSolution.from_dict(raw)
            if purchased.id <= 0:
                logger.warning("Skipping purchased solution without an id: %r", raw)
                continue
            self._purchased[purchased.id] = purchased
        for raw in compositions or []:
            composition_id = int(raw.get("id") or 0)
            if composition_id <= 0:
                logger.warning("Skipping composition without an id: %r", raw)
                continue
            self._compositions[composition_id] = dict(raw)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InMemoryPostStore":
        return cls(
            solutions=data.get("solutions") or [],
            purchased_solutions=data.get("purchased_solutions") or [],
            compositions=data.get("compositions") or [],
        )

    @classmethod
    def from_yaml(cls, path: str) -> "InMemoryPostStore":
        """Load a store file.

        Raises:
            OSError: when the file cannot be read.
            ValueError: when it is not valid YAML or not a mapping.
        """
        import yaml  # pylint: disable=import-outside-toplevel

        with open(path, "r", encoding="utf-8") as fh:
            try:
                data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid store file {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError(f"Invalid store file {path}: top level is not a mapping")
        return cls.from_dict(data)

    def add_solution(self, raw: Mapping[str, Any]) -> int:
        """Insert or replace a solution record and return its id."""
        record_id = int(raw.get("id") or 0)
        if record_id <= 0:
            raise ValueError(f"Solution record without a positive id: {raw!r}")
        data = {k: copy.deepcopy(v) for k, v in raw.items() if k not in ("id", "status")}
        status = str(raw.get("status") or "publish")
        self._solutions[record_id] = data
        self._statuses[record_id] = status if status in POST_STATUSES else "private"
        return record_id

    def get_solution_data(self, record_id: int) -> Dict[str, Any]:
        data = self._solutions.get(int(record_id or 0))
        if data is None:
            return {}
        result = copy.deepcopy(data)
        result["is_managed"] = True
        result["managed_post_id"] = int(record_id)
        return result

    def get_solution_ids_by(self, criteria: Optional[Mapping[str, Any]] = None) -> List[int]:
        criteria = criteria or {}
        post_ids = {int(i) for i in _as_list(criteria.get("post_ids"))}
        exclude_ids = {int(i) for i in _as_list(criteria.get("exclude_post_ids"))}
        slugs = set(_as_list(criteria.get("slug")))
        statuses = set(_as_list(criteria.get("post_status")))
        types = set(_as_list(criteria.get("solution_type")))
        categories = set(_as_list(criteria.get("solution_category")))

        matches = []
        for record_id, data in self._solutions.items():
            if post_ids and record_id not in post_ids:
                continue
            if record_id in exclude_ids:
                continue
            if slugs and data.get("slug") not in slugs:
                continue
            if statuses and self._statuses[record_id] not in statuses:
                continue
            if types and data.get("type") not in types:
                continue
            if categories and not categories.intersection(_as_list(data.get("categories"))):
                continue
            matches.append(record_id)
        return matches

    def get_post_status(self, record_id: int) -> Optional[str]:
        return self._statuses.get(int(record_id or 0))

    def get_purchased_solution(self, purchased_id: int) -> Optional[PurchasedSolution]:
        return self._purchased.get(int(purchased_id or 0))

    def get_composition_data(self, composition_id: int) -> Dict[str, Any]:
        data = self._compositions.get(int(composition_id or 0))
        return copy.deepcopy(data) if data is not None else {}
