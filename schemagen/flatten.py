"""Flattening of ``allOf`` compositions."""

from typing import Optional, Tuple

from schemagen.definitions import Definition, Definitions, copy_definitions, name_from_ref
from schemagen.exceptions import CyclicCompositionError, UnknownTypeError


def flatten_all_of(definitions: Definitions) -> Definitions:
    """Flatten every top-level definition by inlining its ``allOf`` members.

    Each entry is flattened with its own, empty recursion path, so a name that
    was on the path while flattening a sibling never blocks this one.

    Args:
        definitions: Graph to flatten (left untouched)

    Returns:
        New graph in which no top-level definition carries ``allOf``

    Raises:
        CyclicCompositionError: If an allOf chain loops back to a type on the path
        UnknownTypeError: If an allOf member references a missing type
    """
    source = copy_definitions(definitions)
    return {name: recursive_flatten(source, definition, name) for name, definition in source.items()}


def recursive_flatten(
    definitions: Definitions,
    definition: Definition,
    name: Optional[str],
    path: Tuple[str, ...] = (),
) -> Definition:
    """Resolve the ``allOf`` members of ``definition`` into one node.

    Args:
        definitions: Graph used to resolve ``$ref`` members
        definition: Node to flatten
        name: Graph name of the node, None for an anonymous member
        path: Names currently being flattened, outermost first

    Returns:
        ``definition`` itself when it has no members, otherwise the aggregate
    """
    if not definition.all_of:
        return definition

    if name is not None:
        if name in path:
            cycle = path[path.index(name) :] + (name,)
            raise CyclicCompositionError(name, cycle)
        path = path + (name,)

    # The node's own content seeds the aggregate; members are laid over it in order
    aggregate = definition.model_copy(update={"all_of": None}, deep=True)
    for member in definition.all_of:
        if member.ref:
            ref_name, target = _resolve_member(definitions, member.ref, name)
            resolved = recursive_flatten(definitions, target, ref_name, path)
        else:
            resolved = recursive_flatten(definitions, member, None, path)
        merge_into(aggregate, resolved)

    return aggregate


def merge_into(aggregate: Definition, member: Definition) -> None:
    """Fold ``member`` into ``aggregate``.

    Properties of later members overwrite earlier ones, ``required`` names
    accumulate, ``type`` is taken from the first member that sets one, and the
    description is always the member's, even when the member has none.
    """
    if member.properties:
        if aggregate.properties is None:
            aggregate.properties = {}
        for key, value in member.properties.items():
            aggregate.properties[key] = value.model_copy(deep=True)

    if member.required:
        required = list(aggregate.required or [])
        required.extend(r for r in member.required if r not in required)
        aggregate.required = required

    if aggregate.type is None and member.type is not None:
        aggregate.type = member.type

    aggregate.description = member.description


def _resolve_member(
    definitions: Definitions, ref: str, referenced_by: Optional[str]
) -> Tuple[str, Definition]:
    """Look up an ``allOf`` member, following re-export aliases to the declaring type."""
    ref_name = name_from_ref(ref)
    aliases: Tuple[str, ...] = ()
    while True:
        target = definitions.get(ref_name)
        if target is None:
            raise UnknownTypeError(ref_name, stage="flatten", referenced_by=referenced_by)
        if not target.ref or target.all_of:
            return ref_name, target
        if ref_name in aliases:
            cycle = aliases[aliases.index(ref_name) :] + (ref_name,)
            raise CyclicCompositionError(ref_name, cycle)
        aliases = aliases + (ref_name,)
        referenced_by = ref_name
        ref_name = name_from_ref(target.ref)
