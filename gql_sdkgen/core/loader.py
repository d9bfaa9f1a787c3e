"""Loading schema and document files from disk.

Paths may be single files or directories, which are searched recursively.
"""

import os
from collections.abc import Iterable

from graphql import DocumentNode, Source, parse

from .ir import DocumentFile

SCHEMA_EXTENSIONS = (".graphqls", ".graphql", ".gql")
DOCUMENT_EXTENSIONS = (".graphql", ".gql")


def collect_files(path: str, extensions: tuple[str, ...]) -> list[str]:
    """Collect matching files from a path, sorted for stable output."""
    files = []
    if os.path.isfile(path):
        if path.endswith(extensions):
            files.append(path)
    else:
        for root, _, filenames in os.walk(path):
            for filename in filenames:
                if filename.endswith(extensions):
                    files.append(os.path.join(root, filename))
    return sorted(files)


def load_schema(path: str) -> DocumentNode:
    """Parse every schema file under ``path`` into one document."""
    definitions = []
    for file_path in collect_files(path, SCHEMA_EXTENSIONS):
        with open(file_path) as f:
            ast = parse(Source(f.read(), file_path))
        definitions.extend(ast.definitions)
    return DocumentNode(definitions=tuple(definitions))


def load_documents(paths: Iterable[str]) -> list[DocumentFile]:
    """Parse every operation document under ``paths``.

    Files are ordered by path within each entry of ``paths``; that order is
    the declaration order the generated SDK follows.
    """
    documents = []
    for path in paths:
        for file_path in collect_files(path, DOCUMENT_EXTENSIONS):
            with open(file_path) as f:
                ast = parse(Source(f.read(), file_path))
            documents.append(DocumentFile(document=ast, location=file_path))
    return documents
