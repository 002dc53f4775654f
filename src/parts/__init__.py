"""Parts repository catalogue."""

from .catalogue import PartsCatalogue, extract_part_names

__all__ = ["PartsCatalogue", "extract_part_names"]
