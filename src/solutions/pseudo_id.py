"""Pseudo-ID helpers.

A pseudo-ID identifies one solution record as ``"{slug} #{record_id}"``. The
record id makes it unique even when two records share a slug.
"""

from typing import Optional, Tuple

from constants import Constants


def encode_pseudo_id(slug: str, record_id: int, delimiter: str = "") -> str:
    """Return the pseudo-ID for a slug and record id."""
    delimiter = delimiter or Constants.PSEUDO_ID_DELIMITER
    return f"{slug}{delimiter}{int(record_id)}"


def parse_pseudo_id(pseudo_id: object, delimiter: str = "") -> Optional[Tuple[str, int]]:
    """Split a pseudo-ID into (slug, record_id) using the rightmost delimiter.

    Returns None for anything that is not a string, lacks the delimiter, has
    an empty slug, or whose trailing segment is not a positive integer.
    """
    delimiter = delimiter or Constants.PSEUDO_ID_DELIMITER
    if not isinstance(pseudo_id, str) or delimiter not in pseudo_id:
        return None
    slug, record_part = pseudo_id.rsplit(delimiter, 1)
    record_part = record_part.strip()
    if not slug or not record_part.isdigit():
        return None
    record_id = int(record_part)
    if record_id <= 0:
        return None
    return slug, record_id
