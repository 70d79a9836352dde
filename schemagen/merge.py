"""Merging of definition graphs produced from independent sources."""

from typing import List

from schemagen.definitions import Definitions, ExternalReferences
from schemagen.utils.logging import logger


def merge_definitions(lhs: Definitions, rhs: Definitions) -> List[str]:
    """Merge ``rhs`` into ``lhs``; on name collisions the first-seen entry wins.

    Args:
        lhs: Graph that accumulates definitions (mutated)
        rhs: Graph to fold in

    Returns:
        Names present in both graphs, in ``rhs`` order
    """
    if lhs is None or rhs is None:
        return []

    duplicates = []
    for name, definition in rhs.items():
        if name in lhs:
            logger.warning("Definition already present, keeping the first one", type=name)
            duplicates.append(name)
            continue
        lhs[name] = definition
    return duplicates


def merge_external_refs(lhs: ExternalReferences, rhs: ExternalReferences) -> None:
    """Merge ``rhs`` into ``lhs``, appending reference lists for shared names."""
    if lhs is None or rhs is None:
        return
    for name, refs in rhs.items():
        if name not in lhs:
            lhs[name] = list(refs)
        else:
            lhs[name].extend(refs)
