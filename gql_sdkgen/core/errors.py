"""Errors raised by the SDK generation pipeline.

Every failure is fatal: stages do not recover locally and the run never
produces partial output.
"""

from collections.abc import Sequence


class SdkError(Exception):
    """Base class for all generation errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class SchemaError(SdkError):
    """The schema AST is malformed or incomplete."""


class DocumentError(SdkError):
    """An operation or fragment document cannot be used for generation."""

    def __init__(self, message: str, name: str | None = None):
        self.name = name
        super().__init__(message)


class UnresolvedModelReference(SdkError):
    """A model or chain node refers to a type, field or model that does not exist."""

    def __init__(self, operation: str, reference: str, message: str | None = None):
        self.operation = operation
        self.reference = reference
        super().__init__(
            message or f"Operation '{operation}' references unknown '{reference}'"
        )


class ChainNameConflict(SdkError):
    """Sibling chain methods collide and cannot be disambiguated."""

    def __init__(self, name: str, operations: Sequence[str], parent: str | None = None):
        self.name = name
        self.operations = tuple(operations)
        self.parent = parent
        where = f"under '{parent}'" if parent else "at the root"
        super().__init__(
            f"Cannot disambiguate method '{name}' {where}: "
            f"operations {', '.join(repr(op) for op in self.operations)} collide"
        )


class PluginConfigError(SdkError):
    """Plugin configuration is invalid at the host boundary."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
