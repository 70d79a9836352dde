"""Embedding of referenced definitions into self-contained entry types."""

from typing import Dict, Iterable, List, Optional, Tuple

from schemagen.definitions import Definition, Definitions, name_from_ref
from schemagen.exceptions import CyclicReferenceError, UnresolvableReferenceError

# Shape keywords filled from the target when the referencing node leaves them unset
_SHAPE_FIELDS = (
    "required",
    "items",
    "additional_properties",
    "enum",
    "format",
    "any_of",
    "one_of",
)


def embed_schema(definitions: Definitions, starting_types: Iterable[str]) -> Definitions:
    """Inline every reference reachable from the starting types.

    ``allOf`` compositions must already be flattened; their members are not
    visited.

    Args:
        definitions: Pruned graph used to resolve references (left untouched)
        starting_types: Entry type names

    Returns:
        Graph holding only the entry types, none of which contains a ``$ref``

    Raises:
        UnresolvableReferenceError: If a reference target is missing
        CyclicReferenceError: If a reference chain loops back on itself
    """
    embedded: Definitions = {}
    for name in starting_types:
        if name not in definitions:
            raise UnresolvableReferenceError(name)
        definition = definitions[name].model_copy(deep=True)
        embed_definition(definition, definitions, (name,))
        embedded[name] = definition
    return embedded


def embed_definition(
    definition: Optional[Definition],
    refs: Definitions,
    path: Tuple[str, ...] = (),
) -> None:
    """Replace the reference held by ``definition`` and its children in place.

    Args:
        definition: Node to embed into
        refs: Graph used to resolve references
        path: Type names being expanded on the way down to this node
    """
    if definition is None:
        return

    if definition.ref:
        ref_name = name_from_ref(definition.ref)
        target = refs.get(ref_name)
        if target is None:
            raise UnresolvableReferenceError(ref_name)
        if ref_name in path:
            cycle = path[path.index(ref_name) :] + (ref_name,)
            raise CyclicReferenceError(ref_name, cycle)

        path = path + (ref_name,)
        target = target.model_copy(deep=True)
        if target.ref:
            # Re-export alias: follow the chain to the declaring type
            definition.ref = target.ref
            embed_definition(definition, refs, path)
            return
        definition.type = target.type
        definition.properties = target.properties
        for field_name in _SHAPE_FIELDS:
            if getattr(definition, field_name) is None:
                setattr(definition, field_name, getattr(target, field_name))
        definition.ref = None

    _embed_mapping(definition.definitions, refs, path)
    _embed_mapping(definition.properties, refs, path)
    _embed_mapping(definition.pattern_properties, refs, path)
    _embed_mapping(definition.dependencies, refs, path)
    _embed_sequence(definition.any_of, refs, path)
    _embed_sequence(definition.one_of, refs, path)
    embed_definition(definition.additional_items, refs, path)
    embed_definition(definition.items, refs, path)
    embed_definition(definition.additional_properties, refs, path)
    embed_definition(definition.not_, refs, path)
    embed_definition(definition.media, refs, path)


def _embed_mapping(
    defs: Optional[Dict[str, Definition]], refs: Definitions, path: Tuple[str, ...]
) -> None:
    for definition in (defs or {}).values():
        embed_definition(definition, refs, path)


def _embed_sequence(
    defs: Optional[List[Definition]], refs: Definitions, path: Tuple[str, ...]
) -> None:
    for definition in defs or []:
        embed_definition(definition, refs, path)
