"""Schema generation pipeline.

Sequences extraction, merging, composition flattening, reachability pruning
and (optionally) reference embedding for one run.
"""

from typing import Callable, Dict, Iterable, List, Optional, Set

from schemagen.checker import check_definitions
from schemagen.config import GeneratorConfig
from schemagen.definitions import Definition, Definitions, ExternalReferences, full_name
from schemagen.embed import embed_schema
from schemagen.extract import parse_types_in_file
from schemagen.flatten import flatten_all_of
from schemagen.merge import merge_definitions, merge_external_refs
from schemagen.output import dump_schema, write_schema
from schemagen.package import Package
from schemagen.prune import prune_definitions
from schemagen.utils.logging import logger


def build_root_schema(definitions: Definitions, types: Iterable[str]) -> Definition:
    """Wrap definitions in a root object schema that offers each entry type."""
    return Definition(
        type="object",
        any_of=[Definition.reference(name) for name in types],
        definitions=definitions,
    )


class SchemaGenerator:
    """Generates the schema of a package's entry types."""

    def __init__(
        self,
        config: GeneratorConfig,
        package_factory: Callable[..., Package] = Package,
    ):
        """Initialize the generator.

        Args:
            config: Run configuration
            package_factory: Builds the resolver for a package name
        """
        self.config = config
        self.package_factory = package_factory
        self.type_check_passed: Optional[bool] = None
        # Types the root package declares, checked against the entry types
        self.declared_types: Set[str] = set()
        # package name -> type names already resolved from it
        self._resolved: Dict[str, Set[str]] = {}

    def _package(self, name: str) -> Package:
        return self.package_factory(
            name,
            search_paths=self.config.resolver.search_paths,
            auto_install=self.config.resolver.auto_install,
        )

    def parse_types_in_package(
        self, package_name: str, referenced_types: Iterable[str], root: bool = False
    ) -> Definitions:
        """Extract the definitions reachable from ``referenced_types`` in a package.

        Packages referenced from the reachable definitions are resolved
        recursively and merged in. A (package, type) pair is resolved at most
        once per generator.

        Args:
            package_name: Dotted module name or directory path
            referenced_types: Bare type names wanted from this package
            root: Root package definitions keep bare names

        Returns:
            Merged definitions of this package and the packages it references
        """
        seen = self._resolved.setdefault(package_name, set())
        new_types = set(referenced_types) - seen
        if not new_types:
            logger.debug("Package already resolved", package=package_name)
            return {}
        seen.update(new_types)

        logger.info("Fetching package", package=package_name, types=",".join(sorted(new_types)))
        package = self._package(package_name)
        package.fetch()
        files = package.list_files()
        local_modules = package.local_modules()
        pkg_prefix = "" if root else package_name.replace("/", ".")

        pkg_defs: Definitions = {}
        pkg_external: ExternalReferences = {}
        # Re-exports in __init__ modules yield to the modules declaring the type
        for file_path in sorted(files, key=lambda p: p.stem == "__init__"):
            file_defs, file_refs = parse_types_in_file(
                file_path,
                pkg_prefix,
                module_name=package.module_name(file_path),
                local_modules=local_modules,
            )
            merge_definitions(pkg_defs, file_defs)
            merge_external_refs(pkg_external, file_refs)

        if root:
            # Re-exports are pure references, not declarations
            self.declared_types = {
                name for name, definition in pkg_defs.items() if not definition.ref
            }

        starting_types = [full_name(name, pkg_prefix) for name in sorted(new_types)]
        pkg_defs = prune_definitions(pkg_defs, starting_types, pkg_external)
        logger.debug(
            "Reachable package definitions",
            package=package_name,
            count=len(pkg_defs),
            files=len(files),
        )

        unique_pkg_refs: Dict[str, Set[str]] = {}
        for refs in pkg_external.values():
            for ref in refs:
                unique_pkg_refs.setdefault(ref.package_name, set()).add(ref.type_name)

        for child_package in sorted(unique_pkg_refs):
            child_defs = self.parse_types_in_package(
                child_package, unique_pkg_refs[child_package], root=False
            )
            merge_definitions(pkg_defs, child_defs)

        return pkg_defs

    def build_definitions(self) -> Definitions:
        """Resolve, flatten and prune the definitions of the entry types."""
        types = self.config.types
        definitions = self.parse_types_in_package(self.config.package, types, root=True)

        # Checked before flattening so that base classes count as used
        if self.config.strict:
            self.type_check_passed = check_definitions(definitions, types, self.declared_types)

        definitions = flatten_all_of(definitions)
        return prune_definitions(definitions, types)

    def generate(self) -> Definition:
        """Run the pipeline and return the root schema.

        Raises:
            SchemaGenException: On any fatal condition; there is no partial output
        """
        types: List[str] = self.config.types
        logger.info(
            "Generating schema",
            package=self.config.package,
            types=",".join(types),
            referenced=self.config.referenced,
        )

        definitions = self.build_definitions()

        if not self.config.referenced:
            definitions = embed_schema(definitions, types)

        logger.info("Schema generated", definitions=len(definitions))
        return build_root_schema(definitions, types)

    def write(self, schema: Definition) -> str:
        """Write the schema to the configured output path.

        Returns:
            The encoded schema text
        """
        if self.config.output_path:
            write_schema(schema, self.config.output_path, self.config.output_format)
        return dump_schema(schema, self.config.output_format)

    def run(self) -> str:
        return self.write(self.generate())
