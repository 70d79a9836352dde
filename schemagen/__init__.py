"""schemagen - JSON Schema definitions from Python record declarations."""

__version__ = "0.3.0"

from schemagen.definitions import Definition, Definitions, TypeReference
from schemagen.embed import embed_schema
from schemagen.flatten import flatten_all_of
from schemagen.merge import merge_definitions, merge_external_refs
from schemagen.prune import DefinitionPruner, prune_definitions

__all__ = [
    "Definition",
    "Definitions",
    "TypeReference",
    "DefinitionPruner",
    "embed_schema",
    "flatten_all_of",
    "merge_definitions",
    "merge_external_refs",
    "prune_definitions",
    "__version__",
]


def __getattr__(name):
    if name == "SchemaGenerator":
        from schemagen.generator import SchemaGenerator

        return SchemaGenerator
    if name == "GeneratorConfig":
        from schemagen.config import GeneratorConfig

        return GeneratorConfig
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
