"""Command-line interface for gql-sdkgen."""

import logging
from pathlib import Path

import click
from graphql import GraphQLError

from .core.config import DocumentMode, load_config, load_config_file
from .core.diagnostics import Diagnostics
from .core.errors import SdkError
from .core.loader import load_documents, load_schema
from .core.plugin import plugin, validate


@click.group()
@click.version_option(package_name="gql-sdkgen")
def main():
    """Typed GraphQL SDK generator.

    Generate a chainable TypeScript SDK from a GraphQL schema and a set of
    operation documents.
    """
    pass


@main.command()
@click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True),
    help="Path to GraphQL schema file or directory.",
)
@click.option(
    "--documents",
    "-d",
    required=True,
    multiple=True,
    type=click.Path(exists=True),
    help="Operation document file or directory (repeatable).",
)
@click.option(
    "--output",
    "-o",
    required=True,
    type=click.Path(),
    help="Output file for the generated SDK (must end in .ts).",
)
@click.option(
    "--document-file",
    help="Import path of the typed-document module (overrides the config file).",
)
@click.option(
    "--document-mode",
    type=click.Choice([mode.value for mode in DocumentMode]),
    help="Document mode of the typed-document module.",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON file with plugin configuration.",
)
@click.option(
    "--template-dir",
    type=click.Path(exists=True, file_okay=False),
    help="Directory with templates overriding the built-in ones.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def generate(
    schema: str,
    documents: tuple[str, ...],
    output: str,
    document_file: str | None,
    document_mode: str | None,
    config_path: str | None,
    template_dir: str | None,
    verbose: bool,
):
    """Generate a typed SDK from a schema and operation documents.

    Examples:

        gql-sdkgen generate -s ./schema.graphql -d ./documents -o ./sdk.ts --document-file ./documents

        gql-sdkgen generate -s ./schema -d ./queries -d ./mutations -o ./sdk.ts -c sdk.json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output_path = Path(output).resolve()
    diagnostics = Diagnostics()

    try:
        overrides = {"document_file": document_file, "document_mode": document_mode}
        if config_path:
            config = load_config_file(config_path, **overrides)
        else:
            config = load_config(**overrides)

        if verbose:
            click.echo(f"Schema: {schema}")
            click.echo(f"Documents: {', '.join(documents)}")
            click.echo(f"Output: {output_path}")

        click.echo("Parsing schema...")
        schema_ast = load_schema(schema)
        click.echo("Parsing documents...")
        document_files = load_documents(documents)

        config = validate(schema_ast, document_files, config, str(output_path), diagnostics)

        if verbose:
            click.echo(f"  Definitions: {len(schema_ast.definitions)}")
            click.echo(f"  Documents: {len(document_files)}")

        click.echo("Generating SDK...")
        result = plugin(schema_ast, document_files, config, diagnostics, template_dir=template_dir)
    except (SdkError, GraphQLError) as e:
        raise click.ClickException(str(e)) from e

    # Create output directory if needed
    output_path.parent.mkdir(parents=True, exist_ok=True)

    click.echo(f"Writing to {output_path}...")
    with open(output_path, "w") as f:
        f.write(result.text)

    if verbose:
        text = result.text
        click.echo(f"  Lines: {len(text.splitlines())}")
        click.echo(f"  Classes: {text.count('export class ')}")

    click.echo(f"Done! Generated SDK in {output_path}")


if __name__ == "__main__":
    main()
