"""Plugin configuration.

Accepts the camelCase keys used in codegen config files as well as the
snake_case attribute names:

    config = load_config({"documentFile": "./documents", "documentMode": "string"})
    config.document_mode  # DocumentMode.STRING
"""

import json
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import PluginConfigError

PACKAGE_NAME = "gql-sdkgen"
OUTPUT_EXTENSION = ".ts"


class DocumentMode(str, Enum):
    """How the typed-document module exports operation documents."""
    GRAPHQL_TAG = "graphQLTag"
    DOCUMENT_NODE = "documentNode"
    DOCUMENT_NODE_IMPORT_FRAGMENTS = "documentNodeImportFragments"
    EXTERNAL = "external"
    STRING = "string"


class ChainMatch(str, Enum):
    """Which model fields may satisfy a chained operation's variables."""
    IDENTIFYING = "identifying"  # only fields named in identifying_fields
    ANY = "any"  # any leaf field with matching name and type


class SdkPluginConfig(BaseModel):
    """Configuration for one generation run."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    document_file: str = Field("", alias="documentFile")
    document_mode: DocumentMode = Field(DocumentMode.GRAPHQL_TAG, alias="documentMode")
    scalars: dict[str, str] = Field(default_factory=dict)
    default_scalar_type: str = Field("any", alias="defaultScalarType")
    identifying_fields: tuple[str, ...] = Field(("id",), alias="identifyingFields")
    chain_match: ChainMatch = Field(ChainMatch.IDENTIFYING, alias="chainMatch")
    require_name_prefix: bool = Field(True, alias="requireNamePrefix")
    disambiguation_limit: int = Field(100, alias="disambiguationLimit", ge=0)
    max_method_name_length: int | None = Field(None, alias="maxMethodNameLength", gt=0)
    requester_name: str = Field("SdkRequester", alias="requesterName")
    sdk_name: str = Field("Sdk", alias="sdkName")


def load_config(raw: Mapping[str, Any] | SdkPluginConfig | None = None, **overrides: Any) -> SdkPluginConfig:
    """Build a config from a mapping, raising PluginConfigError on invalid values."""
    if isinstance(raw, SdkPluginConfig):
        if not overrides:
            return raw
        raw = raw.model_dump(by_alias=True)
    values = dict(raw or {})
    for name, value in overrides.items():
        if value is None:
            continue
        # Aliases take precedence during validation, so overrides are keyed by alias
        info = SdkPluginConfig.model_fields.get(name)
        key = info.alias if info is not None and info.alias else name
        values.pop(name, None)
        values[key] = value
    try:
        return SdkPluginConfig.model_validate(values)
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        raise PluginConfigError(
            f'Plugin "{PACKAGE_NAME}" config field "{location}" is invalid: {error["msg"]}',
            field=location,
        ) from e


def load_config_file(path: str | Path, **overrides: Any) -> SdkPluginConfig:
    """Load a JSON config file; explicit overrides win over file values."""
    with open(path) as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise PluginConfigError(f"Config file {path} is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise PluginConfigError(f"Config file {path} must contain a JSON object")
    return load_config(raw, **overrides)


def validate_plugin_config(config: SdkPluginConfig, output_file: str):
    """Check the host-facing requirements before any generation work starts."""
    prefix = f'Plugin "{PACKAGE_NAME}" config requires'

    extension = os.path.splitext(output_file)[1]
    if extension != OUTPUT_EXTENSION:
        raise PluginConfigError(
            f'{prefix} output file extension to be "{OUTPUT_EXTENSION}" but is "{output_file}"',
            field="output",
        )

    if not config.document_file or not isinstance(config.document_file, str):
        raise PluginConfigError(
            f'{prefix} documentFile to be a string path to a document file generated by "typed-document-node"',
            field="documentFile",
        )
