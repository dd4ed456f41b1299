"""Repository references and git retrieval."""
from fn_templates.core.errors import InvalidReferenceError, InvalidSourceError
from fn_templates.repository.reference import (
    RefKind,
    RepositoryReference,
    resolve_reference,
)
from fn_templates.repository.retrieval import RetrievedTree, retrieve

__all__ = [
    "RefKind",
    "RepositoryReference",
    "RetrievedTree",
    "resolve_reference",
    "retrieve",
    "InvalidReferenceError",
    "InvalidSourceError",
]
