"""Requester calling convention.

Every generated call site goes through one user-supplied requester
function. The only thing the document mode changes is the static type of
the document it accepts: raw text in string mode, a DocumentNode otherwise.
"""

from dataclasses import dataclass

from .config import DocumentMode, SdkPluginConfig


@dataclass(frozen=True)
class RequesterType:
    """Shape of the requester function the generated SDK expects."""
    name: str
    document_type: str  # "string" or "DocumentNode"
    imports: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return (
            f"<Data, Variables extends Record<string, unknown>>"
            f"(doc: {self.document_type}, variables?: Variables) => Promise<Data>"
        )


def get_requester_type(config: SdkPluginConfig) -> RequesterType:
    """Select the requester type for the configured document mode."""
    if config.document_mode == DocumentMode.STRING:
        return RequesterType(name=config.requester_name, document_type="string")
    return RequesterType(
        name=config.requester_name,
        document_type="DocumentNode",
        imports=("import { DocumentNode } from 'graphql'",),
    )


def print_requester_type(config: SdkPluginConfig) -> list[str]:
    """Print the requester type declaration and the base class call sites extend."""
    requester = get_requester_type(config)
    return [
        "/**",
        " * The function used to make requests.",
        f" * Receives the operation document as {'a string' if requester.document_type == 'string' else 'a DocumentNode'} and its variables.",
        " */",
        f"export type {requester.name} = {requester.signature};",
        "",
        "/**",
        " * Base class holding the requester and the values inherited along a call chain.",
        " */",
        "export class Request {",
        f"  protected _request: {requester.name};",
        "  protected _chain: Record<string, unknown>;",
        "",
        f"  public constructor(request: {requester.name}, chain: Record<string, unknown> = {{}}) {{",
        "    this._request = request;",
        "    this._chain = chain;",
        "  }",
        "}",
        "",
    ]
