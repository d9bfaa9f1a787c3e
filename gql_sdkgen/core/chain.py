"""Chain resolution: turns a flat list of operations into a tree of calls.

An operation is chained under another operation's result model when the
model already selects the fields its identifying variables need. Given

    query issue($id: ID!) { issue(id: $id) { id title } }
    query issueComments($id: ID!) { issueComments(id: $id) { id body } }

``issueComments`` becomes a child of ``issue`` with its ``id`` argument
satisfied by the issue model, so the generated SDK reads
``issue(id).comments()``.

Resolution runs in two passes over immutable inputs. Classification ranks
the candidate parents of every operation. Assembly then picks one parent
per operation in document order and builds the frozen tree top-down,
naming methods and computing the remaining arguments on the way. The
finished tree is validated as a whole before it is returned.

Ranking rule: the candidate whose model satisfies the most identifying
variables wins; ties go to the candidate declared first.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace

from graphql import OperationDefinitionNode, VariableDefinitionNode, print_ast

from .config import ChainMatch, SdkPluginConfig
from .context import unwrap_type
from .diagnostics import Diagnostics
from .errors import ChainNameConflict, DocumentError, SdkError, UnresolvedModelReference
from .ir import (
    DocumentFile,
    InheritedArgument,
    OperationDocument,
    OperationKind,
    PluginContext,
    SdkDefinition,
    SdkDefinitions,
    SdkModel,
    SdkModelField,
    SdkVariable,
)
from .models import TYPENAME_FIELD
from .naming import chain_method_name, extends_name, operation_model_name

STAGE = "chain"


@dataclass(frozen=True)
class ParentCandidate:
    """A possible parent for an operation, as found by classification."""
    parent: str
    matches: tuple[InheritedArgument, ...]
    index: int

    @property
    def rank(self) -> tuple[int, int]:
        return (-len(self.matches), self.index)


def identifying_fields(model: SdkModel, config: SdkPluginConfig) -> dict[str, SdkModelField]:
    """Fields of a model that may satisfy a chained operation's variables."""
    fields = {}
    for model_field in model.fields:
        if model_field.is_list or not model_field.type.is_leaf:
            continue
        if model_field.field_name == TYPENAME_FIELD:
            continue
        if config.chain_match == ChainMatch.IDENTIFYING and model_field.name not in config.identifying_fields:
            continue
        fields[model_field.name] = model_field
    return fields


def reserved_names(model: SdkModel, config: SdkPluginConfig) -> dict[str, str]:
    """Field names of a model that chain methods must not shadow, with their owner."""
    return {name: f"{model.name}.{name}" for name in identifying_fields(model, config)}


def satisfies(variable: SdkVariable, model_field: SdkModelField) -> bool:
    """Check whether a selected field can stand in for a variable.

    A nullable field never stands in for a non-null variable.
    """
    return (
        variable.name == model_field.name
        and variable.type_name == model_field.type.name
        and variable.is_list == model_field.is_list
        and (variable.is_optional or not model_field.is_optional)
    )


def elide_arguments(
    operation: OperationDocument,
    ancestors: Sequence[SdkModel],
    config: SdkPluginConfig,
) -> tuple[tuple[SdkVariable, ...], tuple[InheritedArgument, ...]]:
    """Split an operation's variables into caller arguments and inherited ones.

    ``ancestors`` are the result models above the operation, nearest first.
    A required variable is inherited from the nearest ancestor with a
    matching identifying field; everything else stays a caller argument.
    """
    arguments = []
    inherited = []
    candidates = [identifying_fields(model, config) for model in ancestors]
    for variable in operation.variables:
        source = None
        if variable.is_required:
            for depth, (model, fields) in enumerate(zip(ancestors, candidates)):
                model_field = fields.get(variable.name)
                if model_field is not None and satisfies(variable, model_field):
                    source = InheritedArgument(variable, model.name, model_field.name, depth)
                    break
        if source is None:
            arguments.append(variable)
        else:
            inherited.append(source)
    return tuple(arguments), tuple(inherited)


def elide_tree(definitions: SdkDefinitions, config: SdkPluginConfig) -> SdkDefinitions:
    """Recompute the argument split of every node from its path in the tree."""

    def _elide(node: SdkDefinition, ancestors: tuple[SdkModel, ...]) -> SdkDefinition:
        arguments, inherited = elide_arguments(node.operation, ancestors, config)
        child_ancestors = (node.model,) + ancestors if node.model else ancestors
        return replace(
            node,
            arguments=arguments,
            inherited=inherited,
            children=tuple(_elide(child, child_ancestors) for child in node.children),
        )

    return {key: tuple(_elide(root, ()) for root in roots) for key, roots in definitions.items()}


def assign_method_names(
    operations: Sequence[OperationDocument],
    parent: OperationDocument | None,
    config: SdkPluginConfig,
    reserved: Mapping[str, str] | None = None,
) -> list[str]:
    """Give every sibling a distinct method name.

    ``reserved`` maps names already taken on the parent model, such as the
    identifying fields chained values are read from, to their owner.
    Natural names are reserved next, in document order. Later operations
    whose natural name is taken get the first free numeric suffix, starting
    at 2.
    """
    parent_name = parent.name if parent else None
    bases = [chain_method_name(op.name, parent_name) for op in operations]
    owners: dict[str, str] = dict(reserved or {})
    names: list[str | None] = []
    for op, base in zip(operations, bases):
        if base in owners:
            names.append(None)
        else:
            owners[base] = op.name
            names.append(base)

    for i, (op, base) in enumerate(zip(operations, bases)):
        if names[i] is not None:
            continue
        for counter in range(2, config.disambiguation_limit + 1):
            candidate = f"{base}{counter}"
            if config.max_method_name_length and len(candidate) > config.max_method_name_length:
                break
            if candidate not in owners:
                owners[candidate] = op.name
                names[i] = candidate
                break
        if names[i] is None:
            raise ChainNameConflict(base, (owners[base], op.name), parent_name)
    return names


class ChainResolver:
    """Resolves operation documents into the SdkDefinitions tree."""

    def __init__(self, context: PluginContext, diagnostics: Diagnostics | None = None):
        self.context = context
        self.config = context.config
        self.diagnostics = diagnostics or Diagnostics()

    def resolve(
        self, documents: Iterable[DocumentFile], models: Sequence[SdkModel]
    ) -> SdkDefinitions:
        self.diagnostics.info(STAGE, "Processing documents")
        models_by_name = {model.name: model for model in models}
        operations = self.collect_operations(documents, models_by_name)
        candidates = self.classify(operations, models_by_name)
        definitions = self.assemble(operations, candidates, models_by_name)
        self.validate(definitions, models_by_name)
        self.diagnostics.debug(
            STAGE,
            "Resolved chains",
            definitions={k: [r.to_dict() for r in v] for k, v in definitions.items()},
        )
        return definitions

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def collect_operations(
        self, documents: Iterable[DocumentFile], models: dict[str, SdkModel]
    ) -> list[OperationDocument]:
        """Read every named operation, in document order."""
        operations: list[OperationDocument] = []
        seen: set[str] = set()
        for document_file in documents:
            for definition in document_file.document.definitions:
                if not isinstance(definition, OperationDefinitionNode):
                    continue
                if definition.name is None:
                    raise DocumentError(
                        f"Anonymous {definition.operation.value} operations are not supported"
                    )
                name = definition.name.value
                if name in seen:
                    raise DocumentError(f"Operation '{name}' is defined more than once", name)
                seen.add(name)
                operations.append(
                    self._read_operation(definition, models, document_file.location, len(operations))
                )
        return operations

    def _read_operation(
        self,
        node: OperationDefinitionNode,
        models: dict[str, SdkModel],
        location: str | None,
        index: int,
    ) -> OperationDocument:
        name = node.name.value
        kind = OperationKind(node.operation.value)
        root_model = models.get(operation_model_name(name, kind))
        if root_model is None:
            raise UnresolvedModelReference(name, operation_model_name(name, kind))

        result_fields = [f for f in root_model.fields if f.field_name != TYPENAME_FIELD]
        if not result_fields:
            raise UnresolvedModelReference(name, f"{root_model.type_name} result field")
        if len(result_fields) > 1:
            self.diagnostics.warning(
                STAGE,
                "Operation selects several root fields; only the first is chained",
                operation=name,
                fields=[f.name for f in result_fields],
            )
        result = result_fields[0]

        return OperationDocument(
            name=name,
            kind=kind,
            variables=tuple(self._read_variable(name, v) for v in node.variable_definitions or ()),
            field_name=result.name,
            result_type=result.type.name,
            is_list=result.is_list,
            is_optional=result.is_optional,
            model_name=result.model,
            location=location,
            index=index,
        )

    def _read_variable(self, operation: str, node: VariableDefinitionNode) -> SdkVariable:
        name = node.variable.name.value
        type_name, is_list, is_optional = unwrap_type(node.type)
        descriptor = self.context.get_type(type_name)
        if descriptor is None:
            raise UnresolvedModelReference(operation, f"${name}: {type_name}")
        if self.config.chain_match == ChainMatch.IDENTIFYING:
            is_identifying = name in self.config.identifying_fields
        else:
            is_identifying = descriptor.is_leaf and not is_list
        return SdkVariable(
            name=name,
            type_name=type_name,
            graphql_type=print_ast(node.type),
            is_list=is_list,
            is_optional=is_optional,
            has_default=node.default_value is not None,
            is_identifying=is_identifying,
        )

    # -------------------------------------------------------------------------
    # Pass 1: classification
    # -------------------------------------------------------------------------

    def classify(
        self, operations: Sequence[OperationDocument], models: dict[str, SdkModel]
    ) -> dict[str, list[ParentCandidate]]:
        """Rank the possible parents of every operation, best first."""
        candidates: dict[str, list[ParentCandidate]] = {}
        for child in operations:
            found = []
            for parent in operations:
                matches = self.match_parent(child, parent, models)
                if matches:
                    found.append(ParentCandidate(parent.name, matches, parent.index))
            candidates[child.name] = sorted(found, key=lambda c: c.rank)
        return candidates

    def match_parent(
        self,
        child: OperationDocument,
        parent: OperationDocument,
        models: dict[str, SdkModel],
    ) -> tuple[InheritedArgument, ...]:
        """Return the variables of ``child`` that ``parent``'s model satisfies.

        An empty result means ``parent`` cannot be a parent of ``child``.
        """
        if parent.name == child.name or parent.kind != child.kind or parent.is_list:
            return ()
        model = models.get(parent.model_name) if parent.model_name else None
        if model is None:
            return ()
        if self.config.require_name_prefix and not extends_name(child.name, parent.name):
            return ()

        fields = identifying_fields(model, self.config)
        matches = []
        for variable in child.required_variables:
            if not variable.is_identifying:
                continue
            model_field = fields.get(variable.name)
            if model_field is not None and satisfies(variable, model_field):
                matches.append(InheritedArgument(variable, model.name, model_field.name))
            elif self.config.chain_match == ChainMatch.IDENTIFYING:
                # Every identifying variable must come from the parent
                return ()
        return tuple(matches)

    # -------------------------------------------------------------------------
    # Pass 2: assembly
    # -------------------------------------------------------------------------

    def assemble(
        self,
        operations: Sequence[OperationDocument],
        candidates: dict[str, list[ParentCandidate]],
        models: dict[str, SdkModel],
    ) -> SdkDefinitions:
        """Pick a parent per operation and build the immutable tree."""
        parents: dict[str, str | None] = {}
        for op in operations:
            parents[op.name] = None
            for candidate in candidates.get(op.name, []):
                if self._is_ancestor(op.name, candidate.parent, parents):
                    self.diagnostics.debug(
                        STAGE, "Skipping parent that would form a cycle",
                        operation=op.name, parent=candidate.parent,
                    )
                    continue
                parents[op.name] = candidate.parent
                self.diagnostics.debug(STAGE, "Chained operation", operation=op.name, parent=candidate.parent)
                break

        by_name = {op.name: op for op in operations}
        children: dict[str | None, list[OperationDocument]] = {}
        for op in operations:
            children.setdefault(parents[op.name], []).append(op)

        def build(
            op: OperationDocument,
            method_name: str,
            path: tuple[str, ...],
            ancestors: tuple[SdkModel, ...],
        ) -> SdkDefinition:
            model = models.get(op.model_name) if op.model_name else None
            arguments, inherited = elide_arguments(op, ancestors, self.config)
            child_ops = children.get(op.name, [])
            child_nodes: tuple[SdkDefinition, ...] = ()
            if child_ops:
                names = assign_method_names(
                    child_ops, op, self.config, reserved_names(model, self.config)
                )
                child_path = path + (model.name,)
                child_ancestors = (model,) + ancestors
                child_nodes = tuple(
                    build(child, child_name, child_path, child_ancestors)
                    for child, child_name in zip(child_ops, names)
                )
            return SdkDefinition(
                operation=op,
                method_name=method_name,
                path=path,
                arguments=arguments,
                inherited=inherited,
                model=model,
                children=child_nodes,
            )

        roots_by_kind: dict[str, list[OperationDocument]] = {}
        for op in children.get(None, []):
            roots_by_kind.setdefault(op.kind.value, []).append(op)

        definitions: SdkDefinitions = {}
        for key, root_ops in roots_by_kind.items():
            names = assign_method_names(root_ops, None, self.config)
            definitions[key] = tuple(
                build(op, name, (), ()) for op, name in zip(root_ops, names)
            )

        missing = set(by_name) - {n.name for roots in definitions.values() for r in roots for n in r.walk()}
        if missing:
            raise SdkError(f"Operations {sorted(missing)} are not reachable in the chain tree")
        return definitions

    @staticmethod
    def _is_ancestor(name: str, start: str, parents: dict[str, str | None]) -> bool:
        """Check whether ``name`` is ``start`` or one of its assigned ancestors."""
        current: str | None = start
        while current is not None:
            if current == name:
                return True
            current = parents.get(current)
        return False

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self, definitions: SdkDefinitions, models: dict[str, SdkModel]):
        """Check the finished tree: references, sibling names and acyclicity."""
        for roots in definitions.values():
            self._check_siblings(roots, None)
            for root in roots:
                self._validate_node(root, (), models)

    def _validate_node(
        self, node: SdkDefinition, ancestors: tuple[str, ...], models: dict[str, SdkModel]
    ):
        op = node.operation
        if op.name in ancestors:
            raise SdkError(f"Operation '{op.name}' is its own ancestor")
        if self.context.get_type(op.result_type) is None:
            raise UnresolvedModelReference(op.name, op.result_type)
        if op.model_name is not None and op.model_name not in models:
            raise UnresolvedModelReference(op.name, op.model_name)

        for argument in node.inherited:
            model = models.get(argument.model)
            if model is None:
                raise UnresolvedModelReference(op.name, argument.model)
            model_field = model.get_field(argument.field)
            if model_field is None or self.context.get_type(model_field.type.name) is None:
                raise UnresolvedModelReference(op.name, f"{argument.model}.{argument.field}")

        if node.children:
            if node.model is None:
                raise UnresolvedModelReference(op.name, op.model_name or op.result_type)
            self._check_siblings(node.children, op.name, reserved_names(node.model, self.config))
            for child in node.children:
                self._validate_node(child, ancestors + (op.name,), models)

    @staticmethod
    def _check_siblings(
        nodes: Sequence[SdkDefinition], parent: str | None, reserved: Mapping[str, str] | None = None
    ):
        seen: dict[str, str] = dict(reserved or {})
        for node in nodes:
            if node.method_name in seen:
                raise ChainNameConflict(node.method_name, (seen[node.method_name], node.name), parent)
            seen[node.method_name] = node.name


def resolve_chains(
    context: PluginContext,
    documents: Iterable[DocumentFile],
    models: Sequence[SdkModel],
    diagnostics: Diagnostics | None = None,
) -> SdkDefinitions:
    """Resolve documents into the chain tree."""
    return ChainResolver(context, diagnostics).resolve(documents, models)
