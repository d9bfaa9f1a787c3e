"""SDK generation plugin entry points.

``plugin`` runs the whole pipeline:

    schema AST -> context -> models -> chain tree -> printed SDK

``validate`` checks the host-facing configuration before any of it runs.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from graphql import DocumentNode, GraphQLSchema, parse, print_schema

from .chain import ChainResolver
from .config import SdkPluginConfig, load_config, validate_plugin_config
from .context import SchemaContextBuilder
from .diagnostics import Diagnostics
from .ir import DocumentFile, SdkPluginContext
from .models import ModelExtractor
from .printer import NAMESPACE_DOCUMENT, SdkPrinter
from .requester import get_requester_type, print_requester_type

STAGE = "plugin"

SchemaInput = GraphQLSchema | DocumentNode | str
DocumentInput = DocumentFile | DocumentNode | str
ConfigInput = SdkPluginConfig | Mapping[str, Any]


@dataclass(frozen=True)
class PluginOutput:
    """Printed SDK: import lines to place first, then the body."""
    prepend: tuple[str, ...]
    content: str

    @property
    def text(self) -> str:
        return "\n".join(self.prepend) + "\n\n" + self.content


def schema_to_ast(schema: SchemaInput) -> DocumentNode:
    """Normalize a schema object, SDL text or AST into an AST."""
    if isinstance(schema, GraphQLSchema):
        return parse(print_schema(schema))
    if isinstance(schema, str):
        return parse(schema)
    return schema


def to_document_files(documents: Sequence[DocumentInput]) -> list[DocumentFile]:
    files = []
    for document in documents:
        if isinstance(document, DocumentFile):
            files.append(document)
        elif isinstance(document, str):
            files.append(DocumentFile(document=parse(document)))
        else:
            files.append(DocumentFile(document=document))
    return files


def build_sdk_context(
    schema: SchemaInput,
    documents: Sequence[DocumentInput],
    config: ConfigInput,
    diagnostics: Diagnostics | None = None,
) -> SdkPluginContext:
    """Run every stage up to the printer and return what the printer consumes."""
    diagnostics = diagnostics or Diagnostics()
    config = load_config(config)
    ast = schema_to_ast(schema)
    document_files = to_document_files(documents)

    context = SchemaContextBuilder(config, diagnostics).build(ast, document_files)
    models = ModelExtractor(context, diagnostics).extract(document_files)
    definitions = ChainResolver(context, diagnostics).resolve(document_files, models)
    return SdkPluginContext(
        context=context,
        models=tuple(models),
        definitions=definitions,
        requester=get_requester_type(config),
    )


def plugin(
    schema: SchemaInput,
    documents: Sequence[DocumentInput],
    config: ConfigInput,
    diagnostics: Diagnostics | None = None,
    template_dir: str | None = None,
) -> PluginOutput:
    """Generate the typed SDK for a schema and its operation documents."""
    diagnostics = diagnostics or Diagnostics()
    try:
        sdk_context = build_sdk_context(schema, documents, config, diagnostics)
        config = sdk_context.config

        printer = SdkPrinter(sdk_context, template_dir=template_dir)
        diagnostics.info(STAGE, "Generating models")
        printed_models = printer.print_models()
        diagnostics.info(STAGE, "Generating operations")
        printed_operations = printer.print_operations()

        diagnostics.info(STAGE, "Printing api")
        prepend = [
            "/* eslint-disable @typescript-eslint/no-unused-vars */",
            *sdk_context.requester.imports,
            "import { ResultOf } from '@graphql-typed-document-node/core'",
        ]
        content = "\n".join(
            [
                f"import * as {NAMESPACE_DOCUMENT} from '{config.document_file}'",
                f"export * from '{config.document_file}'\n",
                *print_requester_type(config),
                printed_models,
                printed_operations,
            ]
        )
        return PluginOutput(prepend=tuple(prepend), content=content)
    except Exception as e:
        diagnostics.fatal(STAGE, str(e), error=type(e).__name__)
        raise


def validate(
    schema: SchemaInput,
    documents: Sequence[DocumentInput],
    config: ConfigInput,
    output_file: str,
    diagnostics: Diagnostics | None = None,
) -> SdkPluginConfig:
    """Validate use of the plugin; returns the parsed config."""
    diagnostics = diagnostics or Diagnostics()
    diagnostics.info(STAGE, "Validating gql-sdkgen")
    config = load_config(config)
    diagnostics.debug(STAGE, "Config", config=config.model_dump())
    validate_plugin_config(config, output_file)
    return config
