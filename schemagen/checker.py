"""Consistency check of a definition graph against its entry types."""

from typing import Iterable, Optional

from schemagen.definitions import Definitions
from schemagen.prune import DefinitionPruner
from schemagen.utils.logging import logger


def check_definitions(
    definitions: Definitions,
    starting_types: Iterable[str],
    declared: Optional[Iterable[str]] = None,
) -> bool:
    """Check that every declared type is reachable and every reference resolves.

    Args:
        definitions: Merged graph, before pruning to the entry types
        starting_types: Entry type names
        declared: Type names the checked package declares; every name in
            ``definitions`` when not given

    Returns:
        True when every declared type is reachable from the entry types

    Raises:
        UnknownTypeError: If a reachable reference has no definition
    """
    declared = set(definitions) if declared is None else set(declared)
    logger.info("Type checking started", expected_types=len(declared))

    reachable = DefinitionPruner(definitions, starting_types).prune(ignore_unknown_types=False)
    unreachable = sorted(declared - reachable)

    if unreachable:
        logger.warning(
            "Type checking FAILED",
            expected=len(declared),
            actual=len(declared) - len(unreachable),
            unreachable=", ".join(unreachable),
        )
        return False

    logger.info("Type checking PASSED", types=len(declared))
    return True
