"""Schema context builder.

Walks a parsed schema AST once and produces the PluginContext: a lookup of
TypeDescriptor by name plus the fragment registry collected from the
operation documents.
"""

from collections.abc import Iterable
from dataclasses import replace
from types import MappingProxyType

from graphql import (
    DocumentNode,
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    FragmentDefinitionNode,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    ListTypeNode,
    NamedTypeNode,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    TypeNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
)

from .config import SdkPluginConfig
from .diagnostics import Diagnostics
from .errors import DocumentError, SchemaError
from .ir import (
    DocumentFile,
    FieldDescriptor,
    OperationKind,
    PluginContext,
    TypeDescriptor,
    TypeKind,
)
from .scalars import BUILTIN_SCALARS, ScalarRegistry

STAGE = "context"

DEFAULT_ROOT_TYPES = {
    OperationKind.QUERY.value: "Query",
    OperationKind.MUTATION.value: "Mutation",
    OperationKind.SUBSCRIPTION.value: "Subscription",
}


def unwrap_type(type_node: TypeNode) -> tuple[str, bool, bool]:
    """Extract (type name, is_list, is_optional) from a type reference."""
    is_optional = True
    is_list = False

    # NonNull wrapper means not optional
    if isinstance(type_node, NonNullTypeNode):
        is_optional = False
        type_node = type_node.type

    # Lists of any depth collapse to a single list flag
    while isinstance(type_node, ListTypeNode):
        is_list = True
        type_node = type_node.type
        if isinstance(type_node, NonNullTypeNode):
            type_node = type_node.type

    if not isinstance(type_node, NamedTypeNode):
        raise SchemaError(f"Expected a named type reference, got {type(type_node).__name__}")

    return type_node.name.value, is_list, is_optional


def _description(node) -> str | None:
    return node.description.value if getattr(node, "description", None) else None


class SchemaContextBuilder:
    """Builds a PluginContext from a schema AST.

    Each type definition node is handled exactly once, by the handler for
    its node kind. Extensions are folded into their base type, whichever
    comes first in the document.
    """

    def __init__(self, config: SdkPluginConfig, diagnostics: Diagnostics | None = None):
        self.config = config
        self.diagnostics = diagnostics or Diagnostics()
        self.scalars = ScalarRegistry(config.scalars, default=config.default_scalar_type)

    def build(
        self,
        schema_ast: DocumentNode,
        documents: Iterable[DocumentFile] = (),
    ) -> PluginContext:
        """Traverse the schema and collect fragments from the documents."""
        if not isinstance(schema_ast, DocumentNode):
            raise SchemaError(
                f"Expected a schema DocumentNode, got {type(schema_ast).__name__}"
            )
        self.diagnostics.info(STAGE, "Gathering context")

        self._types: dict[str, TypeDescriptor] = {}
        # Extensions seen before their base definition
        self._pending: dict[str, list] = {}
        self._root_types: dict[str, str] = {}

        for name in BUILTIN_SCALARS:
            self._types[name] = TypeDescriptor(
                name=name, kind=TypeKind.SCALAR, target_type=self.scalars.resolve(name)
            )

        for definition in schema_ast.definitions:
            self._process_definition(definition)

        if self._pending:
            name = next(iter(self._pending))
            raise SchemaError(f"Extension of type '{name}' has no base definition")

        root_types = self._resolve_root_types()
        self._check_references()

        fragments = self._collect_fragments(documents)

        self.diagnostics.debug(
            STAGE,
            "Collected types",
            types=len(self._types),
            fragments=len(fragments),
        )
        return PluginContext(
            types=MappingProxyType(dict(self._types)),
            fragments=MappingProxyType(fragments),
            root_types=MappingProxyType(root_types),
            config=self.config,
        )

    def _process_definition(self, definition):
        """Dispatch one definition node to the handler for its kind."""
        if isinstance(definition, ScalarTypeDefinitionNode):
            self._process_scalar(definition)
        elif isinstance(definition, EnumTypeDefinitionNode):
            self._process_enum(definition)
        elif isinstance(definition, InterfaceTypeDefinitionNode):
            self._process_composite(definition, TypeKind.INTERFACE)
        elif isinstance(definition, ObjectTypeDefinitionNode):
            self._process_composite(definition, TypeKind.OBJECT)
        elif isinstance(definition, InputObjectTypeDefinitionNode):
            self._process_composite(definition, TypeKind.INPUT)
        elif isinstance(definition, UnionTypeDefinitionNode):
            self._process_union(definition)
        elif isinstance(
            definition,
            (
                ObjectTypeExtensionNode,
                InterfaceTypeExtensionNode,
                InputObjectTypeExtensionNode,
                EnumTypeExtensionNode,
                UnionTypeExtensionNode,
            ),
        ):
            self._process_extension(definition)
        elif isinstance(definition, (SchemaDefinitionNode, SchemaExtensionNode)):
            self._process_schema(definition)

    def _register(self, descriptor: TypeDescriptor):
        if descriptor.name in self._types and descriptor.name not in BUILTIN_SCALARS:
            raise SchemaError(f"Type '{descriptor.name}' is defined more than once")
        for extension in self._pending.pop(descriptor.name, []):
            descriptor = self._extend(descriptor, extension)
        self._types[descriptor.name] = descriptor

    def _process_scalar(self, node: ScalarTypeDefinitionNode):
        name = node.name.value
        self._register(
            TypeDescriptor(
                name=name,
                kind=TypeKind.SCALAR,
                target_type=self.scalars.resolve(name),
                description=_description(node),
            )
        )

    def _process_enum(self, node: EnumTypeDefinitionNode):
        self._register(
            TypeDescriptor(
                name=node.name.value,
                kind=TypeKind.ENUM,
                values=tuple(v.name.value for v in node.values or ()),
                description=_description(node),
            )
        )

    def _process_composite(self, node, kind: TypeKind):
        self._register(
            TypeDescriptor(
                name=node.name.value,
                kind=kind,
                fields=self._process_fields(node.fields or ()),
                interfaces=tuple(i.name.value for i in getattr(node, "interfaces", None) or ()),
                description=_description(node),
            )
        )

    def _process_union(self, node: UnionTypeDefinitionNode):
        self._register(
            TypeDescriptor(
                name=node.name.value,
                kind=TypeKind.UNION,
                members=tuple(t.name.value for t in node.types or ()),
                description=_description(node),
            )
        )

    def _process_extension(self, node):
        name = node.name.value
        if name in self._types:
            self._types[name] = self._extend(self._types[name], node)
        else:
            self._pending.setdefault(name, []).append(node)

    def _extend(self, descriptor: TypeDescriptor, node) -> TypeDescriptor:
        """Fold an extension node into a descriptor of the matching kind."""
        if isinstance(node, EnumTypeExtensionNode):
            values = descriptor.values + tuple(v.name.value for v in node.values or ())
            return replace(descriptor, values=values)
        if isinstance(node, UnionTypeExtensionNode):
            members = descriptor.members + tuple(t.name.value for t in node.types or ())
            return replace(descriptor, members=members)

        existing = {f.name for f in descriptor.fields}
        fields = list(descriptor.fields)
        for field in self._process_fields(node.fields or ()):
            if field.name not in existing:
                fields.append(field)
                existing.add(field.name)
        interfaces = descriptor.interfaces + tuple(
            i.name.value for i in getattr(node, "interfaces", None) or ()
        )
        return replace(descriptor, fields=tuple(fields), interfaces=interfaces)

    def _process_schema(self, node):
        for operation_type in node.operation_types or ():
            self._root_types[operation_type.operation.value] = operation_type.type.name.value

    @staticmethod
    def _process_fields(field_nodes) -> tuple[FieldDescriptor, ...]:
        """Process field definitions in declaration order."""
        fields = []
        for node in field_nodes:
            type_name, is_list, is_optional = unwrap_type(node.type)
            fields.append(
                FieldDescriptor(
                    name=node.name.value,
                    type_name=type_name,
                    is_list=is_list,
                    is_optional=is_optional,
                    description=_description(node),
                )
            )
        return tuple(fields)

    def _resolve_root_types(self) -> dict[str, str]:
        """Map operation kinds to root type names, falling back to conventional names."""
        root_types = {}
        for kind, default in DEFAULT_ROOT_TYPES.items():
            name = self._root_types.get(kind)
            if name is None and default in self._types:
                name = default
            if name is None:
                continue
            if name not in self._types:
                raise SchemaError(f"Root {kind} type '{name}' is not defined")
            root_types[kind] = name

        if OperationKind.QUERY.value not in root_types:
            raise SchemaError("Schema does not define a query root type")
        return root_types

    def _check_references(self):
        for descriptor in self._types.values():
            for field in descriptor.fields:
                if field.type_name not in self._types:
                    raise SchemaError(
                        f"Field '{descriptor.name}.{field.name}' references undefined type "
                        f"'{field.type_name}'"
                    )
            for member in descriptor.members + descriptor.interfaces:
                if member not in self._types:
                    raise SchemaError(
                        f"Type '{descriptor.name}' references undefined type '{member}'"
                    )

    @staticmethod
    def _collect_fragments(documents: Iterable[DocumentFile]) -> dict[str, FragmentDefinitionNode]:
        fragments: dict[str, FragmentDefinitionNode] = {}
        for document_file in documents:
            for definition in document_file.document.definitions:
                if not isinstance(definition, FragmentDefinitionNode):
                    continue
                name = definition.name.value
                if name in fragments:
                    raise DocumentError(f"Fragment '{name}' is defined more than once", name)
                fragments[name] = definition
        return fragments


def build_context(
    schema_ast: DocumentNode,
    config: SdkPluginConfig,
    documents: Iterable[DocumentFile] = (),
    diagnostics: Diagnostics | None = None,
) -> PluginContext:
    """Build the plugin context for a schema AST."""
    return SchemaContextBuilder(config, diagnostics).build(schema_ast, documents)
