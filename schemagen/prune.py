"""Reachability pruning of definition graphs."""

from collections import deque
from typing import Iterable, List, Optional, Set

from schemagen.definitions import (
    Definition,
    Definitions,
    ExternalReferences,
    iter_children,
    name_from_ref,
)
from schemagen.exceptions import UnknownTypeError
from schemagen.utils.logging import logger


class DefinitionPruner:
    """Finds the definitions reachable from a set of starting types."""

    def __init__(self, definitions: Definitions, starting_types: Iterable[str]):
        self.definitions = definitions
        self.starting_types = list(starting_types)

    def prune(self, ignore_unknown_types: bool) -> Set[str]:
        """Breadth-first walk from the starting types.

        Args:
            ignore_unknown_types: Skip names with no definition instead of failing.
                Names that are only resolved by a later package fetch are expected
                to be missing while exploring a single package.

        Returns:
            Set of visited type names

        Raises:
            UnknownTypeError: If a reachable name is missing and unknown types
                are not ignored
        """
        visited: Set[str] = set()
        queue = deque((name, None) for name in self.starting_types)

        while queue:
            current, referenced_by = queue.popleft()
            if current in visited:
                continue
            definition = self.definitions.get(current)
            if definition is None:
                if ignore_unknown_types:
                    continue
                logger.error("Unknown type", type=current, referenced_by=referenced_by)
                raise UnknownTypeError(current, stage="prune", referenced_by=referenced_by)
            visited.add(current)
            queue.extend((name, current) for name in referenced_names(definition))

        return visited


def referenced_names(definition: Optional[Definition]) -> List[str]:
    """Collect every type name referenced anywhere inside ``definition``."""
    names: List[str] = []
    if definition is None:
        return names
    if definition.ref:
        names.append(name_from_ref(definition.ref))
    for child in iter_children(definition):
        names.extend(referenced_names(child))
    return names


def get_reachable_types(starting_types: Iterable[str], definitions: Definitions) -> Set[str]:
    """Reachable type names, tolerating references to unknown types."""
    return DefinitionPruner(definitions, starting_types).prune(ignore_unknown_types=True)


def prune_definitions(
    definitions: Definitions,
    starting_types: Iterable[str],
    external_refs: Optional[ExternalReferences] = None,
    ignore_unknown_types: bool = True,
) -> Definitions:
    """Drop every definition that is not reachable from ``starting_types``.

    Args:
        definitions: Graph to prune (left untouched)
        starting_types: Entry type names
        external_refs: External reference bookkeeping; entries for dropped
            names are deleted in place
        ignore_unknown_types: Passed through to ``DefinitionPruner.prune``

    Returns:
        New graph holding only the reachable definitions
    """
    reachable = DefinitionPruner(definitions, starting_types).prune(ignore_unknown_types)
    pruned = {name: definition for name, definition in definitions.items() if name in reachable}

    if external_refs is not None:
        for name in list(external_refs):
            if name not in reachable:
                del external_refs[name]

    dropped = len(definitions) - len(pruned)
    if dropped:
        logger.debug("Pruned unreachable definitions", kept=len(pruned), dropped=dropped)
    return pruned
