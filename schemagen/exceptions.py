"""Custom exceptions for schemagen."""

from typing import List, Optional, Sequence


class SchemaGenException(Exception):
    """Base exception for all schemagen errors."""

    pass


class ConfigValidationError(SchemaGenException):
    """Configuration validation failed."""

    def __init__(self, message: str, file: Optional[str] = None):
        self.message = message
        self.file = file
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        parts = ["Configuration validation error"]
        if self.file:
            parts.append(f"\n  File: {self.file}")
        parts.append(f"\n  Error: {self.message}")
        return "".join(parts)


class CyclicCompositionError(SchemaGenException):
    """An allOf chain revisits a type that is already being flattened."""

    stage = "flatten"

    def __init__(self, type_name: str, cycle: Optional[Sequence[str]] = None):
        self.type_name = type_name
        self.cycle = list(cycle) if cycle else [type_name, type_name]
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        return (
            f"✗ Cycle detected in definitions ({self.stage}): {self.type_name}"
            f"\n  Composition cycle: " + " → ".join(self.cycle)
        )


class CyclicReferenceError(SchemaGenException):
    """A reference chain loops back on itself while embedding."""

    stage = "embed"

    def __init__(self, type_name: str, cycle: Sequence[str]):
        self.type_name = type_name
        self.cycle = list(cycle)
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        parts = [f"✗ Cyclic reference cannot be embedded ({self.stage}): {self.type_name}"]
        parts.append("\n  Reference cycle: " + " → ".join(self.cycle))
        parts.append("\n\n  Suggestions:")
        parts.append("\n    1. Generate referenced output (--referenced) for recursive types")
        return "".join(parts)


class UnknownTypeError(SchemaGenException):
    """A referenced type has no definition in the graph."""

    def __init__(self, type_name: str, stage: str = "prune", referenced_by: Optional[str] = None):
        self.type_name = type_name
        self.stage = stage
        self.referenced_by = referenced_by
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        parts = [f"✗ Unknown type ({self.stage}): {self.type_name}"]
        if self.referenced_by:
            parts.append(f"\n  Referenced by: {self.referenced_by}")
        return "".join(parts)


class UnresolvableReferenceError(SchemaGenException):
    """The embedder cannot find the target of a reference it must inline."""

    stage = "embed"

    def __init__(self, ref_name: str):
        self.type_name = ref_name
        super().__init__(f"✗ Can't find the definition of {ref_name!r} ({self.stage})")


class UnsupportedTypeError(SchemaGenException):
    """A type expression has a shape that cannot be expressed as a definition."""

    stage = "extract"

    def __init__(self, type_name: str, reason: str):
        self.type_name = type_name
        self.reason = reason
        super().__init__(f"✗ Unsupported type ({self.stage}): {type_name}\n  Reason: {reason}")


class ExtractionError(SchemaGenException):
    """A source file could not be read or parsed."""

    stage = "extract"

    def __init__(self, file: str, reason: str, line: Optional[int] = None):
        self.file = file
        self.reason = reason
        self.line = line
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        parts = [f"✗ Failed to extract definitions from: {self.file}"]
        if self.line:
            parts.append(f"\n  Line: {self.line}")
        parts.append(f"\n  Reason: {self.reason}")
        return "".join(parts)


class PackageResolutionError(SchemaGenException):
    """A package could not be located or fetched."""

    stage = "resolve"

    def __init__(self, package: str, reason: str, suggestions: Optional[List[str]] = None):
        self.package = package
        self.reason = reason
        self.suggestions = suggestions or []
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        parts = [
            f"✗ Package resolution failed: {self.package}",
            f"\n  Reason: {self.reason}",
        ]

        if self.suggestions:
            parts.append("\n\n  Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                parts.append(f"\n    {i}. {suggestion}")

        return "".join(parts)
