"""Definition graph model.

A ``Definition`` is one JSON-Schema node. A graph of definitions is a plain
``Dict[str, Definition]`` keyed by type name; edges are the ``$ref`` strings
found anywhere inside a node's structural positions.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

DEF_PREFIX = "#/definitions/"

Number = Union[int, float]


class Definition(BaseModel):
    """JSON Schema object type.

    Keyword coverage follows RFC draft-wright-json-schema-00, the matching
    validation draft and the media keywords of the hyper-schema draft.
    Validation keywords are carried as opaque payload and never interpreted.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    # draft-wright-json-schema-00
    version: Optional[str] = Field(default=None, alias="$schema")
    ref: Optional[str] = Field(default=None, alias="$ref")

    # draft-wright-json-schema-validation-00, section 5
    multiple_of: Optional[Number] = Field(default=None, alias="multipleOf")
    maximum: Optional[Number] = None
    exclusive_maximum: Optional[bool] = Field(default=None, alias="exclusiveMaximum")
    minimum: Optional[Number] = None
    exclusive_minimum: Optional[bool] = Field(default=None, alias="exclusiveMinimum")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    min_length: Optional[int] = Field(default=None, alias="minLength")
    pattern: Optional[str] = None
    additional_items: Optional["Definition"] = Field(default=None, alias="additionalItems")
    items: Optional["Definition"] = None
    max_items: Optional[int] = Field(default=None, alias="maxItems")
    min_items: Optional[int] = Field(default=None, alias="minItems")
    unique_items: Optional[bool] = Field(default=None, alias="uniqueItems")
    max_properties: Optional[int] = Field(default=None, alias="maxProperties")
    min_properties: Optional[int] = Field(default=None, alias="minProperties")
    required: Optional[List[str]] = None
    properties: Optional[Dict[str, "Definition"]] = None
    pattern_properties: Optional[Dict[str, "Definition"]] = Field(
        default=None, alias="patternProperties"
    )
    additional_properties: Optional["Definition"] = Field(
        default=None, alias="additionalProperties"
    )
    dependencies: Optional[Dict[str, "Definition"]] = None
    enum: Optional[List[Any]] = None
    type: Optional[str] = None
    all_of: Optional[List["Definition"]] = Field(default=None, alias="allOf")
    any_of: Optional[List["Definition"]] = Field(default=None, alias="anyOf")
    one_of: Optional[List["Definition"]] = Field(default=None, alias="oneOf")
    not_: Optional["Definition"] = Field(default=None, alias="not")
    definitions: Optional[Dict[str, "Definition"]] = None

    # draft-wright-json-schema-validation-00, sections 6 and 7
    title: Optional[str] = None
    description: Optional[str] = None
    default: Optional[Any] = None
    format: Optional[str] = None

    # draft-wright-json-schema-hyperschema-00, section 4
    media: Optional["Definition"] = None
    binary_encoding: Optional[str] = Field(default=None, alias="binaryEncoding")

    @property
    def is_reference(self) -> bool:
        return bool(self.ref)

    @property
    def ref_name(self) -> Optional[str]:
        """Bare type name this node points at, if it is a reference."""
        return name_from_ref(self.ref) if self.ref else None

    def to_dict(self) -> Dict[str, Any]:
        """Dump using JSON-Schema keywords, omitting unset ones."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Definition":
        return cls.model_validate(data)

    @classmethod
    def reference(cls, name: str, **kwargs: Any) -> "Definition":
        """Build a ``$ref`` node pointing at ``name``."""
        return cls(ref=def_link(name), **kwargs)


Definition.model_rebuild()

Definitions = Dict[str, Definition]


@dataclass(frozen=True)
class TypeReference:
    """A (type name, package name) pair for a type declared in another package."""

    type_name: str
    package_name: str


# Declaring type name -> types it references in other packages
ExternalReferences = Dict[str, List[TypeReference]]


def def_link(name: str) -> str:
    """Get the schema definition link of a type, e.g. ``#/definitions/Foo``."""
    return DEF_PREFIX + name


def full_name(name: str, prefix: str) -> str:
    """Qualify a type name with its package prefix."""
    if not prefix:
        return name
    prefix = prefix.replace("/", ".")
    return f"{prefix}.{name}"


def prefixed_def_link(name: str, prefix: str) -> str:
    return def_link(full_name(name, prefix))


def name_from_ref(ref: str) -> str:
    """Get the type name from a definitions url.

    Returns 'TypeName' from '#/definitions/TypeName'.
    """
    return ref.split("/")[-1]


def iter_children(definition: Definition, include_all_of: bool = True) -> Iterator[Definition]:
    """Yield every child node held in a structural position of ``definition``."""
    for mapping in (
        definition.properties,
        definition.pattern_properties,
        definition.dependencies,
        definition.definitions,
    ):
        if mapping:
            yield from mapping.values()

    for child in (
        definition.items,
        definition.additional_items,
        definition.additional_properties,
        definition.not_,
        definition.media,
    ):
        if child is not None:
            yield child

    sequences = [definition.any_of, definition.one_of]
    if include_all_of:
        sequences.insert(0, definition.all_of)
    for sequence in sequences:
        if sequence:
            yield from sequence


def copy_definitions(definitions: Definitions) -> Definitions:
    """Deep copy a graph so the caller owns every node in the result."""
    return {name: definition.model_copy(deep=True) for name, definition in definitions.items()}


def definitions_to_dict(definitions: Definitions) -> Dict[str, Dict[str, Any]]:
    return {name: definitions[name].to_dict() for name in sorted(definitions)}


def definitions_from_dict(data: Dict[str, Dict[str, Any]]) -> Definitions:
    return {name: Definition.from_dict(value) for name, value in data.items()}
