"""Intermediate Representation (IR) for SDK generation.

This module defines the dataclasses passed between the generation stages:
schema descriptors, selection models, operations and the chain tree.
Every stage builds its output once and never mutates it afterwards, so all
of them are frozen and use tuples for sequences.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from graphql import DocumentNode, FragmentDefinitionNode

if TYPE_CHECKING:
    from .config import SdkPluginConfig
    from .requester import RequesterType


class TypeKind(Enum):
    """Kinds of named schema types."""
    SCALAR = "scalar"
    ENUM = "enum"
    OBJECT = "object"
    INTERFACE = "interface"
    UNION = "union"
    INPUT = "input"


class OperationKind(Enum):
    """Root operation kinds, also used as the top-level API keys."""
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


@dataclass(frozen=True)
class DocumentFile:
    """A parsed operation/fragment document and where it came from."""
    document: DocumentNode
    location: str | None = None


@dataclass(frozen=True)
class FieldDescriptor:
    """A field of an object, interface or input type."""
    name: str
    type_name: str
    is_list: bool = False
    is_optional: bool = True  # True if nullable (no ! in GraphQL)
    description: str | None = None


@dataclass(frozen=True)
class TypeDescriptor:
    """A named schema type."""
    name: str
    kind: TypeKind
    fields: tuple[FieldDescriptor, ...] = ()
    # Scalars only: the target-language type values of this scalar map to
    target_type: str | None = None
    # Enums: value names. Unions: member type names.
    values: tuple[str, ...] = ()
    members: tuple[str, ...] = ()
    interfaces: tuple[str, ...] = ()
    description: str | None = None

    def get_field(self, name: str) -> FieldDescriptor | None:
        """Look up a field by name."""
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None

    @property
    def is_leaf(self) -> bool:
        return self.kind in (TypeKind.SCALAR, TypeKind.ENUM)

    @property
    def is_composite(self) -> bool:
        return self.kind in (TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.UNION)


@dataclass(frozen=True)
class PluginContext:
    """Schema-derived lookup tables shared by every stage after the first."""
    types: Mapping[str, TypeDescriptor]
    fragments: Mapping[str, FragmentDefinitionNode]
    # Operation kind value ("query", ...) -> root type name
    root_types: Mapping[str, str]
    config: "SdkPluginConfig"

    def get_type(self, name: str) -> TypeDescriptor | None:
        return self.types.get(name)

    def root_type(self, kind: OperationKind) -> TypeDescriptor | None:
        """Return the root type for an operation kind, if the schema has one."""
        name = self.root_types.get(kind.value)
        return self.types.get(name) if name else None


@dataclass(frozen=True)
class SdkModelField:
    """A selected field of a model, resolved against the schema."""
    name: str  # response key (alias if aliased)
    field_name: str  # schema field name
    type: TypeDescriptor
    is_list: bool = False
    is_optional: bool = True
    # Name of the nested model for composite fields
    model: str | None = None


@dataclass(frozen=True)
class SdkModel:
    """A concrete selection shape over one schema type.

    Models are keyed by where the selection occurs, not by type, so two
    operations selecting different subsets of ``Issue`` yield two models.
    """
    name: str
    type_name: str
    fields: tuple[SdkModelField, ...]
    source: str  # operation or fragment name
    source_kind: str  # "query", "mutation", "subscription" or "fragment"
    # Response keys from the source's root selection down to this model
    path: tuple[str, ...] = ()

    def get_field(self, name: str) -> SdkModelField | None:
        for model_field in self.fields:
            if model_field.name == name:
                return model_field
        return None

    @property
    def is_root(self) -> bool:
        """True for the top-level selection of an operation or fragment."""
        return not self.path


@dataclass(frozen=True)
class SdkVariable:
    """A variable declared by an operation."""
    name: str
    type_name: str
    graphql_type: str  # printed type reference, e.g. "[ID!]!"
    is_list: bool = False
    is_optional: bool = True
    has_default: bool = False
    is_identifying: bool = False

    @property
    def is_required(self) -> bool:
        return not self.is_optional and not self.has_default


@dataclass(frozen=True)
class OperationDocument:
    """A named operation with its variables and the shape of its result."""
    name: str
    kind: OperationKind
    variables: tuple[SdkVariable, ...]
    field_name: str  # response key of the root field that is the result
    result_type: str
    is_list: bool = False
    is_optional: bool = True
    model_name: str | None = None
    location: str | None = None
    index: int = 0  # declaration order across all documents

    @property
    def required_variables(self) -> tuple[SdkVariable, ...]:
        return tuple(v for v in self.variables if v.is_required)

    @property
    def optional_variables(self) -> tuple[SdkVariable, ...]:
        return tuple(v for v in self.variables if not v.is_required)


@dataclass(frozen=True)
class InheritedArgument:
    """A variable satisfied by a field of an ancestor's result model."""
    variable: SdkVariable
    model: str
    field: str
    depth: int = 0  # 0 for the direct parent


@dataclass(frozen=True)
class SdkDefinition:
    """A node of the chain tree."""
    operation: OperationDocument
    method_name: str
    # Names of the ancestor result models, root first
    path: tuple[str, ...]
    arguments: tuple[SdkVariable, ...]
    inherited: tuple[InheritedArgument, ...]
    model: SdkModel | None
    children: tuple["SdkDefinition", ...] = ()

    @property
    def name(self) -> str:
        return self.operation.name

    def walk(self) -> Iterator["SdkDefinition"]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        """Plain representation for debug logging."""
        return {
            "operation": self.name,
            "method": self.method_name,
            "path": list(self.path),
            "arguments": [v.name for v in self.arguments],
            "inherited": [f"{a.variable.name}<-{a.model}.{a.field}" for a in self.inherited],
            "model": self.model.name if self.model else None,
            "children": [child.to_dict() for child in self.children],
        }


# Top-level API key ("query", "mutation", ...) -> root chain nodes
SdkDefinitions = dict[str, tuple[SdkDefinition, ...]]


@dataclass(frozen=True)
class SdkPluginContext:
    """Everything the printer consumes."""
    context: PluginContext
    models: tuple[SdkModel, ...]
    definitions: SdkDefinitions
    requester: "RequesterType"

    @property
    def config(self) -> "SdkPluginConfig":
        return self.context.config
