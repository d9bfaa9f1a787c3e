"""TypeScript printer for the generated SDK.

Renders Jinja2 templates from the models and chain tree.

Supports custom templates via the template_dir parameter:
    printer = SdkPrinter(sdk_context, template_dir="./my_templates")

Template lookup order:
1. User's template directory (if provided)
2. Package default templates
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from .chain import identifying_fields
from .ir import (
    OperationDocument,
    SdkDefinition,
    SdkModel,
    SdkModelField,
    SdkPluginContext,
    SdkVariable,
    TypeDescriptor,
    TypeKind,
)
from .naming import document_name, operation_model_name, to_pascal_case, variables_type_name

NAMESPACE_DOCUMENT = "D"


def safe_comment(text: str | None) -> str:
    """Make text safe for a single-line JSDoc comment."""
    if not text:
        return ""
    text = text.replace("*/", "* /")
    text = re.sub(r"\s+", " ", text)
    # Truncate very long descriptions
    if len(text) > 120:
        text = text[:117] + "..."
    return text.strip()


@dataclass
class FieldView:
    name: str
    ts_type: str
    is_optional: bool
    value: str


@dataclass
class ParamView:
    name: str
    ts_type: str
    is_optional: bool = False

    def __str__(self) -> str:
        return f"{self.name}{'?' if self.is_optional else ''}: {self.ts_type}"


@dataclass
class MethodView:
    name: str
    description: str
    params: list[ParamView]
    operation_class: str
    fetch_args: list[str]
    chain: str


@dataclass
class ModelView:
    name: str
    description: str
    data_type: str
    fields: list[FieldView] = field(default_factory=list)
    methods: list[MethodView] = field(default_factory=list)


@dataclass
class OperationView:
    class_name: str
    description: str
    document: str
    response_type: str
    variables_type: str
    params: list[ParamView]
    variables: list[str]
    result_key: str
    return_type: str
    result: str


class SdkPrinter:
    """Prints models, operation classes and the root SDK class.

    Available templates to override:
        - models.ts.j2: one class per selection model
        - operations.ts.j2: one class per chain node plus the root SDK class
    """

    def __init__(self, sdk_context: SdkPluginContext, template_dir: str | None = None):
        self.sdk_context = sdk_context
        self.context = sdk_context.context
        self.config = sdk_context.config
        self.models = {model.name: model for model in sdk_context.models}

        # Build template loader - custom templates take precedence
        loaders = []
        if template_dir:
            template_path = Path(template_dir)
            if template_path.is_dir():
                loaders.append(FileSystemLoader(str(template_path)))
        loaders.append(PackageLoader("gql_sdkgen", "templates"))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.env.filters["pascal_case"] = to_pascal_case
        self.env.filters["safe_comment"] = safe_comment

        self._data_types = self._compute_data_types()
        self._nodes = [
            node
            for roots in sdk_context.definitions.values()
            for root in roots
            for node in root.walk()
        ]

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def print_models(self) -> str:
        """Print a class for every model except operation result wrappers."""
        methods: dict[str, list[MethodView]] = {}
        for node in self._nodes:
            if node.model is not None and node.children:
                methods[node.model.name] = [
                    self._method_view(child, node.model) for child in node.children
                ]

        views = []
        for model in self.sdk_context.models:
            if model.is_root and model.source_kind != "fragment":
                continue
            model_methods = methods.get(model.name, [])
            method_names = {m.name for m in model_methods}
            views.append(
                ModelView(
                    name=model.name,
                    description=self._model_description(model),
                    data_type=self._data_types[model.name],
                    fields=[
                        self._field_view(f)
                        for f in model.fields
                        if f.name not in method_names
                    ],
                    methods=model_methods,
                )
            )
        return self.env.get_template("models.ts.j2").render(
            models=views,
            requester=self.sdk_context.requester,
        )

    def print_operations(self) -> str:
        """Print one class per chain node and the root SDK class."""
        operations = [self._operation_view(node) for node in self._nodes]
        sdk_methods = [
            MethodView(
                name=root.method_name,
                description=self._operation_description(root.operation),
                params=self._fetch_params(root.operation),
                operation_class=operation_model_name(root.name, root.operation.kind),
                fetch_args=[p.name for p in self._fetch_params(root.operation)],
                chain="",
            )
            for roots in self.sdk_context.definitions.values()
            for root in roots
        ]
        return self.env.get_template("operations.ts.j2").render(
            operations=operations,
            sdk_name=self.config.sdk_name,
            sdk_methods=sdk_methods,
            requester=self.sdk_context.requester,
        )

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def _compute_data_types(self) -> dict[str, str]:
        """Map each model to the type of the raw data it is built from."""
        data_types: dict[str, str] = {}

        def visit(model: SdkModel, data_type: str):
            data_types[model.name] = data_type
            for model_field in model.fields:
                if model_field.model is None or model_field.model not in self.models:
                    continue
                child = f'NonNullable<{data_type}>["{model_field.name}"]'
                if model_field.is_list:
                    child = f"NonNullable<{child}>[number]"
                visit(self.models[model_field.model], child)

        for model in self.sdk_context.models:
            if model.is_root:
                visit(model, f"{NAMESPACE_DOCUMENT}.{model.name}")
        return data_types

    def _field_view(self, model_field: SdkModelField) -> FieldView:
        return FieldView(
            name=model_field.name,
            ts_type=self._value_type(model_field.type, model_field.is_list, model_field.model),
            is_optional=model_field.is_optional,
            value=self._wrap(
                f"data.{model_field.name}",
                model_field.model,
                model_field.is_list,
                model_field.is_optional,
                "request",
                "chain",
            ),
        )

    def _method_view(self, node: SdkDefinition, parent: SdkModel) -> MethodView:
        operation = node.operation
        inherited = {argument.variable.name: argument for argument in node.inherited}
        fetch_args = []
        for variable in operation.required_variables:
            argument = inherited.get(variable.name)
            if argument is None:
                fetch_args.append(variable.name)
            elif argument.depth == 0:
                fetch_args.append(f"this.{argument.field}")
            else:
                ts_type = self._variable_type(variable)
                fetch_args.append(f'this._chain["{argument.model}.{argument.field}"] as {ts_type}')
        if operation.optional_variables:
            fetch_args.append("variables")

        params = [
            ParamView(v.name, self._variable_type(v))
            for v in node.arguments
            if v.is_required
        ]
        if operation.optional_variables:
            params.append(self._variables_param(operation))

        chain_entries = ["...this._chain"] + [
            f'"{parent.name}.{name}": this.{name}'
            for name in identifying_fields(parent, self.config)
        ]
        return MethodView(
            name=node.method_name,
            description=self._operation_description(operation),
            params=params,
            operation_class=operation_model_name(operation.name, operation.kind),
            fetch_args=fetch_args,
            chain="{ " + ", ".join(chain_entries) + " }",
        )

    def _operation_view(self, node: SdkDefinition) -> OperationView:
        operation = node.operation
        params = self._fetch_params(operation)
        variables = [v.name for v in operation.required_variables]
        if operation.optional_variables:
            variables.append("...variables")
        return OperationView(
            class_name=operation_model_name(operation.name, operation.kind),
            description=self._operation_description(operation),
            document=f"{NAMESPACE_DOCUMENT}.{document_name(operation.name)}",
            response_type=f"{NAMESPACE_DOCUMENT}.{operation_model_name(operation.name, operation.kind)}",
            variables_type=f"{NAMESPACE_DOCUMENT}.{variables_type_name(operation.name, operation.kind)}",
            params=params,
            variables=variables,
            result_key=operation.field_name,
            return_type=self._result_type(operation, node.model),
            result=self._wrap(
                "data",
                node.model.name if node.model else None,
                operation.is_list,
                operation.is_optional,
                "this._request",
                "this._chain",
            ),
        )

    def _fetch_params(self, operation: OperationDocument) -> list[ParamView]:
        params = [ParamView(v.name, self._variable_type(v)) for v in operation.required_variables]
        if operation.optional_variables:
            params.append(self._variables_param(operation))
        return params

    def _variables_param(self, operation: OperationDocument) -> ParamView:
        variables_type = f"{NAMESPACE_DOCUMENT}.{variables_type_name(operation.name, operation.kind)}"
        required = operation.required_variables
        if required:
            omitted = " | ".join(f'"{v.name}"' for v in required)
            variables_type = f"Omit<{variables_type}, {omitted}>"
        return ParamView("variables", variables_type, is_optional=True)

    # -------------------------------------------------------------------------
    # Types
    # -------------------------------------------------------------------------

    def _named_type(self, descriptor: TypeDescriptor) -> str:
        if descriptor.kind == TypeKind.SCALAR:
            return descriptor.target_type or self.config.default_scalar_type
        return f"{NAMESPACE_DOCUMENT}.{descriptor.name}"

    def _value_type(self, descriptor: TypeDescriptor, is_list: bool, model: str | None) -> str:
        base = model if model is not None else self._named_type(descriptor)
        return f"Array<{base}>" if is_list else base

    def _variable_type(self, variable: SdkVariable) -> str:
        descriptor = self.context.get_type(variable.type_name)
        return f"Array<{self._named_type(descriptor)}>" if variable.is_list else self._named_type(descriptor)

    def _result_type(self, operation: OperationDocument, model: SdkModel | None) -> str:
        descriptor = self.context.get_type(operation.result_type)
        value = self._value_type(descriptor, operation.is_list, model.name if model else None)
        return f"{value} | undefined" if operation.is_optional else value

    @staticmethod
    def _wrap(
        source: str,
        model: str | None,
        is_list: bool,
        is_optional: bool,
        request: str,
        chain: str,
    ) -> str:
        """Expression turning raw response data into model instances."""
        if model is None:
            return f"{source} ?? undefined" if is_optional else source
        if is_list:
            value = f"{source}.map(node => new {model}({request}, node, {chain}))"
        else:
            value = f"new {model}({request}, {source}, {chain})"
        if is_optional:
            return f"{source} ? {value} : undefined"
        return value

    @staticmethod
    def _model_description(model: SdkModel) -> str:
        return f"{model.type_name} selected by {model.source_kind} {model.source}"

    @staticmethod
    def _operation_description(operation: OperationDocument) -> str:
        return f"{to_pascal_case(operation.kind.value)} {operation.name}"
