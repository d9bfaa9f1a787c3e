"""Naming rules for generated models, documents and chain methods."""

import re

from .ir import OperationKind


def to_snake_case(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1).lower()


def to_pascal_case(name: str) -> str:
    """Convert snake_case or camelCase to PascalCase."""
    snake = to_snake_case(name)
    return "".join(word.capitalize() for word in snake.split("_"))


def operation_model_name(operation: str, kind: OperationKind) -> str:
    """Name of the model for an operation's top-level selection, e.g. IssueQuery."""
    return f"{to_pascal_case(operation)}{to_pascal_case(kind.value)}"


def fragment_model_name(fragment: str) -> str:
    return f"{to_pascal_case(fragment)}Fragment"


def nested_model_name(parent: str, response_key: str) -> str:
    return f"{parent}_{to_pascal_case(response_key)}"


def document_name(operation: str) -> str:
    """Name of the typed document exported for an operation."""
    return f"{to_pascal_case(operation)}Document"


def variables_type_name(operation: str, kind: OperationKind) -> str:
    return f"{operation_model_name(operation, kind)}Variables"


def extends_name(child: str, parent: str) -> bool:
    """Check whether ``child`` is ``parent`` followed by a new word.

    ``issueComments`` and ``issue_comments`` extend ``issue``;
    ``issues`` and ``issue`` do not.
    """
    if len(child) <= len(parent) or not child.startswith(parent):
        return False
    rest = child[len(parent):]
    if rest[0] == "_":
        rest = rest.lstrip("_")
        return bool(rest) and rest[0].isalpha()
    return rest[0].isupper()


def chain_method_name(child: str, parent: str | None) -> str:
    """Method name of ``child`` when it is chained under ``parent``.

    The parent's name is dropped from the front of the child's name when the
    child extends it, so ``issueComments`` under ``issue`` becomes ``comments``.
    """
    if parent is None or not extends_name(child, parent):
        return child
    rest = child[len(parent):].lstrip("_")
    return rest[0].lower() + rest[1:]
