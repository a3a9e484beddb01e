"""Definition store: server and group definitions read from disk."""

from .loader import DefinitionStore, load_custom_groups, load_store
from .models import GroupDefinition, ServerDefinition
from .validation import ValidationReport, validate_server, validate_store

__all__ = [
    "DefinitionStore",
    "GroupDefinition",
    "ServerDefinition",
    "ValidationReport",
    "load_custom_groups",
    "load_store",
    "validate_server",
    "validate_store",
]
