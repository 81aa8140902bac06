"""
Code generation backends.

Contains the type-mapping contract and the language-specific backends.
"""

from __future__ import annotations

from .base import CodeBackend, MappingContext, TypeMappingBackend, map_schema
from .declarations import (
    AliasDeclaration,
    BackendResult,
    EnumDeclaration,
    EnumMember,
    FieldDeclaration,
    RenderedFile,
    StructDeclaration,
    TypeExpr,
    TypeKind,
    UnionDeclaration,
    UnionVariant,
)
from .go_backend import GoBackend
from .java_backend import JavaBackend
from .python_backend import PythonBackend
from .registry import BackendRegistry, default_registry
from .typescript_backend import TypeScriptBackend

__all__ = [
    "CodeBackend",
    "MappingContext",
    "TypeMappingBackend",
    "map_schema",
    "AliasDeclaration",
    "BackendResult",
    "EnumDeclaration",
    "EnumMember",
    "FieldDeclaration",
    "RenderedFile",
    "StructDeclaration",
    "TypeExpr",
    "TypeKind",
    "UnionDeclaration",
    "UnionVariant",
    "BackendRegistry",
    "default_registry",
    "GoBackend",
    "JavaBackend",
    "PythonBackend",
    "TypeScriptBackend",
]
