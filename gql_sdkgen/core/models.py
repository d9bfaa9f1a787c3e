"""Model extraction from operation and fragment documents.

Every selection set found in an operation or fragment produces one
SdkModel. Fragment spreads are expanded in place and inline fragments are
merged into their parent selection, so each model lists its fields without
referring to any fragment.

When the same response key is selected more than once in a selection set,
the selection declared last wins. The key keeps the position where it was
first selected.
"""

from collections.abc import Iterable

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
)

from .diagnostics import Diagnostics
from .errors import DocumentError, UnresolvedModelReference
from .ir import (
    DocumentFile,
    OperationKind,
    PluginContext,
    SdkModel,
    SdkModelField,
    TypeDescriptor,
)
from .naming import fragment_model_name, nested_model_name, operation_model_name

STAGE = "models"

TYPENAME_FIELD = "__typename"

# Response key -> (field node, type that owns the field)
Selection = dict[str, tuple[FieldNode, TypeDescriptor]]


class ModelExtractor:
    """Extracts SdkModels from documents against a PluginContext."""

    def __init__(self, context: PluginContext, diagnostics: Diagnostics | None = None):
        self.context = context
        self.diagnostics = diagnostics or Diagnostics()
        self._models: dict[str, SdkModel] = {}
        self._fragment_cache: dict[str, Selection] = {}
        self._expanding: list[str] = []

    def extract(self, documents: Iterable[DocumentFile]) -> list[SdkModel]:
        """Return the models of all documents, in declaration order.

        Nested models precede the model that contains them.
        """
        self.diagnostics.info(STAGE, "Generating models")
        self._models = {}

        for document_file in documents:
            for definition in document_file.document.definitions:
                if isinstance(definition, OperationDefinitionNode):
                    self._extract_operation(definition)
                elif isinstance(definition, FragmentDefinitionNode):
                    self._extract_fragment(definition)

        models = list(self._models.values())
        self.diagnostics.debug(STAGE, "Extracted models", models=[m.name for m in models])
        return models

    def _extract_operation(self, node: OperationDefinitionNode):
        if node.name is None:
            raise DocumentError(f"Anonymous {node.operation.value} operations are not supported")
        name = node.name.value
        kind = OperationKind(node.operation.value)
        root = self.context.root_type(kind)
        if root is None:
            raise UnresolvedModelReference(name, f"{kind.value} root type")
        self._add_model(
            name=operation_model_name(name, kind),
            owner=root,
            selection_set=node.selection_set,
            source=name,
            source_kind=kind.value,
            path=(),
        )

    def _extract_fragment(self, node: FragmentDefinitionNode):
        name = node.name.value
        owner = self._require_type(node.type_condition.name.value, name)
        self._add_model(
            name=fragment_model_name(name),
            owner=owner,
            selection_set=node.selection_set,
            source=name,
            source_kind="fragment",
            path=(),
        )

    def _add_model(
        self,
        name: str,
        owner: TypeDescriptor,
        selection_set: SelectionSetNode,
        source: str,
        source_kind: str,
        path: tuple[str, ...],
    ) -> SdkModel:
        existing = self._models.get(name)
        if existing is not None:
            raise DocumentError(
                f"Model '{name}' is produced by both {existing.source_kind} '{existing.source}' "
                f"and {source_kind} '{source}'; names must stay distinct once converted to PascalCase",
                source,
            )
        fields = []
        for key, (node, field_owner) in self.flatten(owner, selection_set, source).items():
            fields.append(
                self._resolve_field(name, key, node, field_owner, source, source_kind, path)
            )
        model = SdkModel(
            name=name,
            type_name=owner.name,
            fields=tuple(fields),
            source=source,
            source_kind=source_kind,
            path=path,
        )
        self._models[name] = model
        return model

    def _resolve_field(
        self,
        model_name: str,
        key: str,
        node: FieldNode,
        owner: TypeDescriptor,
        source: str,
        source_kind: str,
        path: tuple[str, ...],
    ) -> SdkModelField:
        field_name = node.name.value
        if field_name == TYPENAME_FIELD:
            return SdkModelField(
                name=key,
                field_name=field_name,
                type=self._require_type("String", source),
                is_optional=False,
            )

        descriptor = owner.get_field(field_name)
        if descriptor is None:
            raise UnresolvedModelReference(source, f"{owner.name}.{field_name}")
        field_type = self._require_type(descriptor.type_name, source)

        nested = None
        if node.selection_set is not None:
            nested = self._add_model(
                name=nested_model_name(model_name, key),
                owner=field_type,
                selection_set=node.selection_set,
                source=source,
                source_kind=source_kind,
                path=path + (key,),
            ).name

        return SdkModelField(
            name=key,
            field_name=field_name,
            type=field_type,
            is_list=descriptor.is_list,
            is_optional=descriptor.is_optional,
            model=nested,
        )

    def flatten(
        self, owner: TypeDescriptor, selection_set: SelectionSetNode, source: str
    ) -> Selection:
        """Flatten a selection set, expanding fragments, last write winning."""
        selected: Selection = {}
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                key = selection.alias.value if selection.alias else selection.name.value
                selected[key] = (selection, owner)
            elif isinstance(selection, InlineFragmentNode):
                inline_owner = owner
                if selection.type_condition is not None:
                    inline_owner = self._require_type(selection.type_condition.name.value, source)
                selected.update(self.flatten(inline_owner, selection.selection_set, source))
            elif isinstance(selection, FragmentSpreadNode):
                selected.update(self.expand_fragment(selection.name.value, source))
        return selected

    def expand_fragment(self, name: str, source: str) -> Selection:
        """Return the flattened selection of a named fragment.

        Results are cached, so a fragment spread by several others is
        flattened once and every spread sees the same field set.
        """
        if name in self._fragment_cache:
            return self._fragment_cache[name]
        if name in self._expanding:
            cycle = " -> ".join(self._expanding + [name])
            raise DocumentError(f"Fragment spreads form a cycle: {cycle}", name)

        fragment = self.context.fragments.get(name)
        if fragment is None:
            raise UnresolvedModelReference(source, f"...{name}")
        owner = self._require_type(fragment.type_condition.name.value, source)

        self._expanding.append(name)
        try:
            selection = self.flatten(owner, fragment.selection_set, source)
        finally:
            self._expanding.pop()
        self._fragment_cache[name] = selection
        return selection

    def _require_type(self, name: str, source: str) -> TypeDescriptor:
        descriptor = self.context.get_type(name)
        if descriptor is None:
            raise UnresolvedModelReference(source, name)
        return descriptor


def extract_models(
    context: PluginContext,
    documents: Iterable[DocumentFile],
    diagnostics: Diagnostics | None = None,
) -> list[SdkModel]:
    """Extract the models of every operation and fragment selection."""
    return ModelExtractor(context, diagnostics).extract(documents)
