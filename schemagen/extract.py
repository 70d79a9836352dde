"""Extraction of definitions from Python record declarations.

Every top-level class of a module becomes a definition: pydantic models,
dataclasses, TypedDicts, NamedTuples and plain annotated classes become
``object`` nodes, Enum subclasses become ``enum`` nodes. Module-level type
aliases become definitions too. Types imported from modules outside the
current package become ``$ref`` links plus an external reference entry that
drives the resolution of that package.
"""

import ast
import inspect
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from schemagen.definitions import (
    Definition,
    Definitions,
    ExternalReferences,
    TypeReference,
    full_name,
    prefixed_def_link,
)
from schemagen.exceptions import ExtractionError, UnsupportedTypeError
from schemagen.utils.logging import logger

SIMPLE_TYPES = {
    "str": "string",
    "bool": "boolean",
    "int": "integer",
    "float": "number",
    "bytes": "string",
}

WELL_KNOWN_TYPES: Dict[str, Dict[str, str]] = {
    "datetime.datetime": {"type": "string", "format": "date-time"},
    "datetime.date": {"type": "string", "format": "date"},
    "datetime.time": {"type": "string", "format": "time"},
    "datetime.timedelta": {"type": "string"},
    "decimal.Decimal": {"type": "string"},
    "uuid.UUID": {"type": "string", "format": "uuid"},
    "pathlib.Path": {"type": "string"},
    "pydantic.EmailStr": {"type": "string", "format": "email"},
    "pydantic.AnyUrl": {"type": "string", "format": "uri"},
    "pydantic.HttpUrl": {"type": "string", "format": "uri"},
    "pydantic.SecretStr": {"type": "string"},
    "typing.Any": {},
    "object": {},
}

ARRAY_TYPES = {
    "list",
    "set",
    "frozenset",
    "tuple",
    "typing.List",
    "typing.Set",
    "typing.FrozenSet",
    "typing.Tuple",
    "typing.Sequence",
    "typing.MutableSequence",
    "typing.Iterable",
    "typing.Collection",
    "typing.AbstractSet",
    "collections.abc.Sequence",
    "collections.abc.MutableSequence",
    "collections.abc.Set",
    "collections.abc.Iterable",
    "collections.abc.Collection",
}
UNIQUE_ARRAY_TYPES = {
    "set",
    "frozenset",
    "typing.Set",
    "typing.FrozenSet",
    "typing.AbstractSet",
    "collections.abc.Set",
}
TUPLE_TYPES = {"tuple", "typing.Tuple"}
MAP_TYPES = {
    "dict",
    "typing.Dict",
    "typing.Mapping",
    "typing.MutableMapping",
    "typing.DefaultDict",
    "typing.OrderedDict",
    "collections.abc.Mapping",
    "collections.abc.MutableMapping",
    "collections.OrderedDict",
    "collections.defaultdict",
}
OPTIONAL_TYPES = {"typing.Optional", "typing_extensions.Optional"}
UNION_TYPES = {"typing.Union", "typing_extensions.Union"}
LITERAL_TYPES = {"typing.Literal", "typing_extensions.Literal"}
ANNOTATED_TYPES = {"typing.Annotated", "typing_extensions.Annotated"}
CLASSVAR_TYPES = {"typing.ClassVar", "ClassVar"}
TYPEALIAS_TYPES = {"typing.TypeAlias", "typing_extensions.TypeAlias", "TypeAlias"}
ALIAS_VALUE_TYPES = ARRAY_TYPES | MAP_TYPES | OPTIONAL_TYPES | UNION_TYPES | LITERAL_TYPES | ANNOTATED_TYPES

FRAMEWORK_BASES = {
    "object",
    "pydantic.BaseModel",
    "pydantic.main.BaseModel",
    "typing.TypedDict",
    "typing_extensions.TypedDict",
    "typing.NamedTuple",
    "typing.Generic",
    "typing.Protocol",
    "abc.ABC",
}
ENUM_BASES = {"enum.Enum", "enum.IntEnum", "enum.StrEnum", "enum.Flag", "enum.IntFlag"}
FIELD_FUNCTIONS = {"pydantic.Field", "pydantic.fields.Field", "dataclasses.field"}

# Modules whose names are type constructs rather than record declarations
NON_RECORD_MODULES = {"typing", "typing_extensions", "collections", "collections.abc", "builtins", "types"}

# Framework names an __init__ may import that never alias a record
REEXPORT_EXCLUDED = FRAMEWORK_BASES | FIELD_FUNCTIONS | set(WELL_KNOWN_TYPES) | set(SIMPLE_TYPES)

_MISSING = object()


def _literal(node: Optional[ast.AST]) -> Any:
    if node is None:
        return _MISSING
    try:
        return ast.literal_eval(node)
    except (ValueError, SyntaxError, TypeError):
        return _MISSING


def _json_type_of(values: Iterable[Any]) -> Optional[str]:
    kinds = set()
    for value in values:
        if isinstance(value, bool):
            kinds.add("boolean")
        elif isinstance(value, int):
            kinds.add("integer")
        elif isinstance(value, float):
            kinds.add("number")
        elif isinstance(value, str):
            kinds.add("string")
        else:
            return None
    if kinds == {"integer", "number"}:
        return "number"
    return kinds.pop() if len(kinds) == 1 else None


def _union_members(node: ast.AST) -> List[ast.AST]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _union_members(node.left) + _union_members(node.right)
    return [node]


def _is_none(node: ast.AST) -> bool:
    return isinstance(node, ast.Constant) and node.value is None


def _with_null(definition: Definition) -> Definition:
    """Admit null in addition to the values ``definition`` allows."""
    if not definition.to_dict():
        # Unconstrained already admits null
        return definition
    if definition.any_of is not None and definition.type is None and not definition.ref:
        definition.any_of.append(Definition(type="null"))
        return definition
    wrapper = Definition(
        any_of=[definition, Definition(type="null")],
        title=definition.title,
        description=definition.description,
    )
    definition.title = None
    definition.description = None
    return wrapper


class SourceFile:
    """Converts the declarations of one parsed module into definitions."""

    def __init__(
        self,
        path: Union[str, Path],
        pkg_prefix: str = "",
        module_name: Optional[str] = None,
        local_modules: Iterable[str] = (),
    ):
        """Initialize the converter.

        Args:
            path: Path of the module file
            pkg_prefix: Prefix of every definition name declared in this package
            module_name: Dotted name of this module, used for relative imports
            local_modules: Modules sharing this package's namespace
        """
        self.path = Path(path)
        self.pkg_prefix = pkg_prefix
        self.module_name = module_name
        self.local_modules = set(local_modules)
        if module_name:
            self.local_modules.add(module_name)
        # alias -> qualified name
        self.import_paths: Dict[str, str] = {}

    def parse(self, tree: ast.Module) -> Tuple[Definitions, ExternalReferences]:
        definitions: Definitions = {}
        external_refs: ExternalReferences = {}

        self._collect_imports(tree)

        for stmt in tree.body:
            if isinstance(stmt, ast.ClassDef):
                name = stmt.name
                definition, refs = self.class_to_schema(stmt)
            else:
                alias = self._type_alias(stmt)
                if alias is None:
                    continue
                name, value = alias
                definition, refs, nullable = self._convert(value, name)
                if nullable:
                    definition = _with_null(definition)

            type_name = full_name(name, self.pkg_prefix)
            logger.debug("Generating schema definition for type", type=type_name)
            definitions[type_name] = definition
            external_refs[type_name] = refs

        if self.path.stem == "__init__":
            self._add_reexports(tree, definitions, external_refs)

        return definitions, external_refs

    def _add_reexports(
        self, tree: ast.Module, definitions: Definitions, external_refs: ExternalReferences
    ) -> None:
        """Alias every type a package __init__ imports from outside its own modules.

        ``from .sub.models import Tag`` in package ``lib`` makes ``lib.Tag`` a
        pure reference to ``lib.sub.models.Tag``.
        """
        for stmt in tree.body:
            if not isinstance(stmt, ast.ImportFrom) or (stmt.level and self.module_name is None):
                continue
            module = self._absolute_module(stmt.module, stmt.level)
            if module in ("", "__future__") or module in NON_RECORD_MODULES or self._is_local(module):
                continue
            for alias in stmt.names:
                qualified = f"{module}.{alias.name}"
                if alias.name == "*" or qualified in REEXPORT_EXCLUDED:
                    continue
                type_name = full_name(alias.asname or alias.name, self.pkg_prefix)
                if type_name in definitions:
                    continue
                logger.debug("Aliasing re-exported type", type=type_name, target=qualified)
                definitions[type_name] = Definition(ref=prefixed_def_link(alias.name, module))
                external_refs[type_name] = [TypeReference(type_name=alias.name, package_name=module)]

    def _is_local(self, module: str) -> bool:
        """True when ``module`` is one of this package's own modules."""
        if module in self.local_modules:
            return True
        parent, _, leaf = module.rpartition(".")
        return parent in self.local_modules and leaf in self.local_modules

    def _collect_imports(self, tree: ast.Module) -> None:
        """Map every imported alias to its qualified name."""
        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if alias.asname:
                        self.import_paths[alias.asname] = alias.name
                    else:
                        top = alias.name.split(".")[0]
                        self.import_paths[top] = top
            elif isinstance(node, ast.ImportFrom):
                if node.level and self.module_name is None:
                    # Relative import inside an unnamed package: same namespace
                    for alias in node.names:
                        if alias.name != "*":
                            self.import_paths[alias.asname or alias.name] = alias.name
                    continue
                module = self._absolute_module(node.module, node.level)
                for alias in node.names:
                    if alias.name == "*":
                        continue
                    qualified = f"{module}.{alias.name}" if module else alias.name
                    self.import_paths[alias.asname or alias.name] = qualified

    def _absolute_module(self, module: Optional[str], level: int) -> str:
        if not level:
            return module or ""
        parts = self.module_name.split(".")
        # An __init__ module is its own package
        base = parts if self.path.stem == "__init__" else parts[:-1]
        if level > 1:
            base = base[: max(len(base) - (level - 1), 0)]
        if module:
            base = base + [module]
        return ".".join(base)

    def _qualify(self, node: ast.AST) -> Optional[str]:
        if isinstance(node, ast.Name):
            return self.import_paths.get(node.id, node.id)
        if isinstance(node, ast.Attribute):
            base = self._qualify(node.value)
            return f"{base}.{node.attr}" if base else None
        if isinstance(node, ast.Subscript):
            return self._qualify(node.value)
        return None

    def _type_alias(self, stmt: ast.stmt) -> Optional[Tuple[str, ast.expr]]:
        """Return (name, type expression) when ``stmt`` declares a type alias."""
        if isinstance(stmt, ast.AnnAssign):
            if (
                isinstance(stmt.target, ast.Name)
                and stmt.value is not None
                and self._qualify(stmt.annotation) in TYPEALIAS_TYPES
            ):
                return stmt.target.id, stmt.value
            return None
        if isinstance(stmt, ast.Assign):
            if (
                len(stmt.targets) == 1
                and isinstance(stmt.targets[0], ast.Name)
                and isinstance(stmt.value, ast.Subscript)
                and self._qualify(stmt.value.value) in ALIAS_VALUE_TYPES
            ):
                return stmt.targets[0].id, stmt.value
        return None

    def _reference(self, qualified: str, owner: str) -> Tuple[Definition, List[TypeReference]]:
        module, _, type_name = qualified.rpartition(".")
        if module in NON_RECORD_MODULES:
            raise UnsupportedTypeError(owner, f"{qualified} cannot be expressed as a definition")
        if not module or self._is_local(module):
            return Definition(ref=prefixed_def_link(type_name, self.pkg_prefix)), []
        return (
            Definition(ref=prefixed_def_link(type_name, module)),
            [TypeReference(type_name=type_name, package_name=module)],
        )

    def expr_to_schema(self, node: ast.AST, owner: str) -> Tuple[Definition, List[TypeReference]]:
        """Convert a type annotation to a definition.

        Args:
            node: Annotation expression
            owner: Name used in error messages (``Type.field``)

        Returns:
            The definition and the external references it introduces
        """
        definition, refs, _ = self._convert(node, owner)
        return definition, refs

    def _convert(self, node: ast.AST, owner: str) -> Tuple[Definition, List[TypeReference], bool]:
        """Convert an annotation; the flag is True when the type admits None."""
        if isinstance(node, ast.Constant):
            if node.value is None:
                return Definition(), [], True
            if isinstance(node.value, str):
                try:
                    forward = ast.parse(node.value, mode="eval").body
                except SyntaxError as e:
                    raise UnsupportedTypeError(owner, f"invalid forward reference {node.value!r}") from e
                return self._convert(forward, owner)
            raise UnsupportedTypeError(owner, f"constant {node.value!r} is not a type")

        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            return self._union(_union_members(node), owner)

        if isinstance(node, ast.Subscript):
            return self._convert_subscript(node, owner)

        if isinstance(node, (ast.Name, ast.Attribute)):
            qualified = self._qualify(node)
            if qualified is None:
                raise UnsupportedTypeError(owner, ast.unparse(node))
            if qualified in SIMPLE_TYPES:
                return Definition(type=SIMPLE_TYPES[qualified]), [], False
            if qualified in WELL_KNOWN_TYPES:
                return Definition(**WELL_KNOWN_TYPES[qualified]), [], False
            if qualified in ARRAY_TYPES:
                return Definition(type="array"), [], False
            if qualified in MAP_TYPES:
                return Definition(type="object"), [], False
            definition, refs = self._reference(qualified, owner)
            return definition, refs, False

        raise UnsupportedTypeError(owner, f"unsupported annotation {ast.unparse(node)}")

    def _convert_subscript(
        self, node: ast.Subscript, owner: str
    ) -> Tuple[Definition, List[TypeReference], bool]:
        base = self._qualify(node.value)
        args = list(node.slice.elts) if isinstance(node.slice, ast.Tuple) else [node.slice]

        if base in OPTIONAL_TYPES:
            definition, refs, _ = self._convert(args[0], owner)
            return definition, refs, True

        if base in UNION_TYPES:
            return self._union(args, owner)

        if base in ANNOTATED_TYPES:
            definition, refs, nullable = self._convert(args[0], owner)
            for meta in args[1:]:
                if isinstance(meta, ast.Call) and self._qualify(meta.func) in FIELD_FUNCTIONS:
                    self._apply_constraints(definition, meta)
                elif isinstance(meta, ast.Constant) and isinstance(meta.value, str):
                    definition.description = meta.value
            return definition, refs, nullable

        if base in LITERAL_TYPES:
            values = [_literal(arg) for arg in args]
            if any(value is _MISSING for value in values):
                raise UnsupportedTypeError(owner, f"non-literal value in {ast.unparse(node)}")
            nullable = None in values
            values = [value for value in values if value is not None]
            return Definition(type=_json_type_of(values), enum=values), [], nullable

        if base in ARRAY_TYPES:
            definition = Definition(type="array")
            if base in UNIQUE_ARRAY_TYPES:
                definition.unique_items = True
            element_nodes = args
            if base in TUPLE_TYPES and len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
                element_nodes = args[:1]
            items, refs, items_nullable = self._union(element_nodes, owner)
            definition.items = _with_null(items) if items_nullable else items
            return definition, refs, False

        if base in MAP_TYPES:
            if len(args) != 2:
                raise UnsupportedTypeError(owner, f"mapping needs key and value types: {ast.unparse(node)}")
            key, value = args
            key_def, _, _ = self._convert(key, owner)
            if key_def.type != "string" or key_def.ref:
                raise UnsupportedTypeError(owner, f"map keys must be strings, got {ast.unparse(key)}")
            value_def, refs, value_nullable = self._convert(value, owner)
            if value_nullable:
                value_def = _with_null(value_def)
            return Definition(type="object", additional_properties=value_def), refs, False

        if base is None or base in NON_RECORD_MODULES or base.rpartition(".")[0] in NON_RECORD_MODULES:
            raise UnsupportedTypeError(owner, f"unsupported annotation {ast.unparse(node)}")

        # Parametrized record (e.g. Page[Item]): reference the record itself
        definition, refs = self._reference(base, owner)
        return definition, refs, False

    def _union(self, args: List[ast.AST], owner: str) -> Tuple[Definition, List[TypeReference], bool]:
        members: List[Definition] = []
        refs: List[TypeReference] = []
        nullable = False
        for arg in args:
            if _is_none(arg):
                nullable = True
                continue
            definition, arg_refs, arg_nullable = self._convert(arg, owner)
            nullable = nullable or arg_nullable
            members.append(definition)
            refs.extend(arg_refs)

        if not members:
            return Definition(), refs, True
        if len(members) == 1:
            return members[0], refs, nullable
        return Definition(any_of=members), refs, nullable

    def _apply_constraints(self, definition: Definition, call: ast.Call) -> None:
        """Copy ``Field(...)`` keyword constraints onto ``definition``."""
        for keyword in call.keywords:
            value = _literal(keyword.value)
            if keyword.arg is None or value is _MISSING or value is None:
                continue
            if keyword.arg == "ge":
                definition.minimum = value
            elif keyword.arg == "gt":
                definition.minimum = value
                definition.exclusive_minimum = True
            elif keyword.arg == "le":
                definition.maximum = value
            elif keyword.arg == "lt":
                definition.maximum = value
                definition.exclusive_maximum = True
            elif keyword.arg == "multiple_of":
                definition.multiple_of = value
            elif keyword.arg in ("pattern", "regex"):
                definition.pattern = value
            elif keyword.arg == "min_length":
                if definition.type == "array":
                    definition.min_items = value
                else:
                    definition.min_length = value
            elif keyword.arg == "max_length":
                if definition.type == "array":
                    definition.max_items = value
                else:
                    definition.max_length = value
            elif keyword.arg == "description":
                definition.description = value
            elif keyword.arg == "title":
                definition.title = value

    def _field_call(self, value: Optional[ast.expr]) -> Optional[ast.Call]:
        if isinstance(value, ast.Call) and self._qualify(value.func) in FIELD_FUNCTIONS:
            return value
        return None

    @staticmethod
    def _field_default(call: ast.Call) -> Tuple[bool, Optional[ast.expr]]:
        """Return (has default, default expression) of a field call."""
        if call.args and not (isinstance(call.args[0], ast.Constant) and call.args[0].value is Ellipsis):
            return True, call.args[0]
        for keyword in call.keywords:
            if keyword.arg == "default":
                if isinstance(keyword.value, ast.Constant) and keyword.value.value is Ellipsis:
                    return False, None
                return True, keyword.value
            if keyword.arg == "default_factory":
                return True, None
        return False, None

    def field_to_schema(
        self, stmt: ast.AnnAssign, doc: Optional[str], total: bool, owner: str
    ) -> Optional[Tuple[str, Definition, bool, List[TypeReference]]]:
        """Convert one annotated class attribute.

        Returns:
            (property name, definition, required, external refs), or None for
            attributes that are not fields
        """
        name = stmt.target.id
        if name.startswith("_") or self._qualify(stmt.annotation) in CLASSVAR_TYPES:
            return None

        field_owner = f"{owner}.{name}"
        definition, refs, nullable = self._convert(stmt.annotation, field_owner)
        required = total
        prop_name = name

        call = self._field_call(stmt.value)
        if call is not None:
            keywords = {kw.arg: _literal(kw.value) for kw in call.keywords if kw.arg}
            if keywords.get("exclude") is True:
                return None
            for alias_key in ("serialization_alias", "alias"):
                alias = keywords.get(alias_key)
                if isinstance(alias, str) and alias:
                    prop_name = alias
                    break
            self._apply_constraints(definition, call)
            has_default, default_node = self._field_default(call)
        elif stmt.value is not None:
            has_default, default_node = True, stmt.value
        else:
            has_default, default_node = False, None

        if nullable:
            definition = _with_null(definition)
        if has_default:
            required = False
        default = _literal(default_node)
        if default is not _MISSING and default is not None:
            definition.default = default
        if doc and not definition.description:
            definition.description = doc

        return prop_name, definition, required, refs

    def class_to_schema(self, node: ast.ClassDef) -> Tuple[Definition, List[TypeReference]]:
        """Convert a class declaration.

        Bases other than framework classes become ``allOf`` references; the
        class's own fields and docstring form the last ``allOf`` member.
        """
        bases = [self._qualify(base) for base in node.bases]
        description = ast.get_docstring(node)

        if any(base in ENUM_BASES for base in bases):
            return self._enum_to_schema(node, bases, description), []

        total = True
        for keyword in node.keywords:
            if keyword.arg == "total" and _literal(keyword.value) is False:
                total = False

        own = Definition(type="object", description=description)
        properties: Dict[str, Definition] = {}
        required: List[str] = []
        refs: List[TypeReference] = []

        for index, stmt in enumerate(node.body):
            if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
                continue
            field = self.field_to_schema(stmt, self._attribute_doc(node.body, index), total, node.name)
            if field is None:
                continue
            prop_name, prop_def, is_required, prop_refs = field
            properties[prop_name] = prop_def
            if is_required:
                required.append(prop_name)
            refs.extend(prop_refs)

        if properties:
            own.properties = properties
        if required:
            own.required = required

        members: List[Definition] = []
        for base in bases:
            if base is None or base in FRAMEWORK_BASES:
                continue
            member, base_refs = self._reference(base, node.name)
            members.append(member)
            refs.extend(base_refs)

        if not members:
            return own, refs
        return Definition(all_of=members + [own]), refs

    @staticmethod
    def _attribute_doc(body: List[ast.stmt], index: int) -> Optional[str]:
        """Docstring written directly below an attribute, if any."""
        if index + 1 >= len(body):
            return None
        following = body[index + 1]
        if (
            isinstance(following, ast.Expr)
            and isinstance(following.value, ast.Constant)
            and isinstance(following.value.value, str)
        ):
            return inspect.cleandoc(following.value.value)
        return None

    def _enum_to_schema(
        self, node: ast.ClassDef, bases: List[Optional[str]], description: Optional[str]
    ) -> Definition:
        str_enum = "str" in bases or "enum.StrEnum" in bases
        values: List[Any] = []
        for stmt in node.body:
            if not isinstance(stmt, ast.Assign) or len(stmt.targets) != 1:
                continue
            target = stmt.targets[0]
            if not isinstance(target, ast.Name) or target.id.startswith("_"):
                continue
            value = _literal(stmt.value)
            if value is _MISSING:
                # auto(): lower-cased member name for str enums, next integer otherwise
                ints = [v for v in values if isinstance(v, int) and not isinstance(v, bool)]
                value = target.id.lower() if str_enum else (max(ints) + 1 if ints else 1)
            values.append(value)
        return Definition(type=_json_type_of(values), enum=values, description=description)


def parse_types_in_file(
    file_path: Union[str, Path],
    pkg_prefix: str = "",
    module_name: Optional[str] = None,
    local_modules: Iterable[str] = (),
) -> Tuple[Definitions, ExternalReferences]:
    """Extract the definitions declared in one Python module.

    Args:
        file_path: Module file
        pkg_prefix: Prefix of every definition name declared in the package
        module_name: Dotted name of the module, used for relative imports
        local_modules: Modules sharing the package's namespace

    Returns:
        (definitions keyed by full type name, external references per type)

    Raises:
        ExtractionError: If the file cannot be read or parsed
        UnsupportedTypeError: If an annotation has no definition equivalent
    """
    path = Path(file_path)
    logger.debug("Processing file", file=str(path), prefix=pkg_prefix)
    try:
        source = path.read_text(encoding="utf-8")
        tree = ast.parse(source, filename=str(path))
    except SyntaxError as e:
        raise ExtractionError(str(path), e.msg or "invalid syntax", e.lineno) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(str(path), str(e)) from e

    return SourceFile(path, pkg_prefix, module_name, local_modules).parse(tree)
