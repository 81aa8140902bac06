"""
Analyzer module.

Contains name resolution and the reference graph over definitions.
"""

from __future__ import annotations

from .name_resolver import FieldName, NameResolver, NameTable, Namespace, assign_names, convert_case
from .reference_resolver import ReferenceResolver

__all__ = [
    "FieldName",
    "NameResolver",
    "NameTable",
    "Namespace",
    "ReferenceResolver",
    "assign_names",
    "convert_case",
]
