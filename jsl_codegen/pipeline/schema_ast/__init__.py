"""
Schema IR module.

Contains the IR node definitions and the resolver that builds them.
"""

from __future__ import annotations

from .nodes import (
    DiscriminatorNode,
    ElementsNode,
    EmptyNode,
    EnumNode,
    Form,
    PrimitiveType,
    PropertiesNode,
    RefNode,
    ResolvedSchema,
    SchemaNode,
    TypeNode,
    ValuesNode,
    is_named_form,
)
from .parser import SchemaParser, load_schema, resolve

__all__ = [
    "Form",
    "PrimitiveType",
    "SchemaNode",
    "EmptyNode",
    "RefNode",
    "TypeNode",
    "EnumNode",
    "ElementsNode",
    "PropertiesNode",
    "ValuesNode",
    "DiscriminatorNode",
    "ResolvedSchema",
    "is_named_form",
    "SchemaParser",
    "resolve",
    "load_schema",
]
