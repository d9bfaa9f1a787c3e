"""Core modules for typed SDK generation."""

from .chain import ChainResolver, elide_tree, resolve_chains
from .config import (
    ChainMatch,
    DocumentMode,
    SdkPluginConfig,
    load_config,
    load_config_file,
)
from .context import SchemaContextBuilder, build_context
from .diagnostics import DiagnosticRecord, Diagnostics
from .errors import (
    ChainNameConflict,
    DocumentError,
    PluginConfigError,
    SchemaError,
    SdkError,
    UnresolvedModelReference,
)
from .ir import (
    DocumentFile,
    FieldDescriptor,
    InheritedArgument,
    OperationDocument,
    OperationKind,
    PluginContext,
    SdkDefinition,
    SdkDefinitions,
    SdkModel,
    SdkModelField,
    SdkPluginContext,
    SdkVariable,
    TypeDescriptor,
    TypeKind,
)
from .models import ModelExtractor, extract_models
from .plugin import PluginOutput, build_sdk_context, plugin, validate
from .printer import SdkPrinter
from .requester import RequesterType, get_requester_type, print_requester_type
from .scalars import ScalarRegistry

__all__ = [
    # Config
    "ChainMatch",
    "DocumentMode",
    "SdkPluginConfig",
    "load_config",
    "load_config_file",
    # Diagnostics
    "DiagnosticRecord",
    "Diagnostics",
    # Errors
    "SdkError",
    "SchemaError",
    "DocumentError",
    "UnresolvedModelReference",
    "ChainNameConflict",
    "PluginConfigError",
    # IR types
    "DocumentFile",
    "FieldDescriptor",
    "InheritedArgument",
    "OperationDocument",
    "OperationKind",
    "PluginContext",
    "SdkDefinition",
    "SdkDefinitions",
    "SdkModel",
    "SdkModelField",
    "SdkPluginContext",
    "SdkVariable",
    "TypeDescriptor",
    "TypeKind",
    # Stages
    "ScalarRegistry",
    "SchemaContextBuilder",
    "build_context",
    "ModelExtractor",
    "extract_models",
    "ChainResolver",
    "resolve_chains",
    "elide_tree",
    "RequesterType",
    "get_requester_type",
    "print_requester_type",
    "SdkPrinter",
    # Plugin
    "PluginOutput",
    "build_sdk_context",
    "plugin",
    "validate",
]
