"""Scalar type mappings for SDK code generation.

Maps GraphQL scalars to the TypeScript types used in generated models and
call signatures. Built-in scalars always map to primitives; well-known
custom scalars have defaults; anything else falls back to an opaque
passthrough type.

Example usage:
    registry = ScalarRegistry(default="unknown")
    registry.register("Money", "string")

    registry.resolve("Int")       # "number"
    registry.resolve("Money")     # "string"
    registry.resolve("Geometry")  # "unknown"
"""

from collections.abc import Mapping

BUILTIN_SCALARS: dict[str, str] = {
    "ID": "string",
    "String": "string",
    "Int": "number",
    "Float": "number",
    "Boolean": "boolean",
}

DEFAULT_CUSTOM_SCALARS: dict[str, str] = {
    "DateTime": "string",
    "Date": "string",
    "UUID": "string",
    "JSON": "Record<string, unknown>",
    "JSONObject": "Record<string, unknown>",
}


class ScalarRegistry:
    """Registry of scalar name to target type.

    Lookup order: explicit registrations, built-in scalars, well-known
    custom scalars, then the default passthrough type.
    """

    def __init__(self, overrides: Mapping[str, str] | None = None, default: str = "any"):
        self.default = default
        self._types: dict[str, str] = dict(DEFAULT_CUSTOM_SCALARS)
        for name, target in (overrides or {}).items():
            self.register(name, target)

    def register(self, scalar_name: str, target_type: str):
        """Register the target type for a scalar."""
        self._types[scalar_name] = target_type

    def get(self, scalar_name: str) -> str | None:
        """Get the mapped type, or None if the scalar is unmapped."""
        if scalar_name in self._types:
            return self._types[scalar_name]
        return BUILTIN_SCALARS.get(scalar_name)

    def has(self, scalar_name: str) -> bool:
        return self.get(scalar_name) is not None

    def resolve(self, scalar_name: str) -> str:
        """Get the mapped type, falling back to the passthrough default."""
        target = self.get(scalar_name)
        return target if target is not None else self.default
