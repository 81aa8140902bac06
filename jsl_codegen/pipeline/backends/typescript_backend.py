"""
TypeScript code generation backend.

Generates interfaces and type aliases describing the JSON shape itself:
fields keep their wire keys, enums are unions of string literals and
discriminators are native tagged unions over the branch interfaces.
"""

from __future__ import annotations

import json
from typing import Any

from ...utils import is_identifier
from ..config import CaseConvention, NamingRules
from ..schema_ast.nodes import PrimitiveType
from .base import CodeBackend, MappingContext
from .declarations import AuxDeclaration, StructDeclaration, TypeExpr, TypeKind

_INTEGER_NOTE = "TypeScript has a single number type; integer width is not enforced"

# ECMAScript reserved words plus the names of built-in types
TYPESCRIPT_RESERVED_WORDS = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "as",
        "implements",
        "interface",
        "let",
        "package",
        "private",
        "protected",
        "public",
        "static",
        "yield",
        "any",
        "boolean",
        "number",
        "string",
        "symbol",
        "object",
        "unknown",
        "never",
        "undefined",
        "bigint",
        "type",
        "Array",
        "Date",
        "Error",
        "Function",
        "Map",
        "Object",
        "Promise",
        "Record",
        "Set",
    }
)


class TypeScriptBackend(CodeBackend):
    """TypeScript code generation backend."""

    name = "typescript"

    TEMPLATE_LANG = "typescript"
    FILE_EXTENSION = "ts"

    ANY_TYPE = "any"

    PRIMITIVE_MAP = {
        PrimitiveType.BOOLEAN: "boolean",
        PrimitiveType.STRING: "string",
        PrimitiveType.TIMESTAMP: "string",
        PrimitiveType.FLOAT32: "number",
        PrimitiveType.FLOAT64: "number",
        PrimitiveType.INT8: "number",
        PrimitiveType.UINT8: "number",
        PrimitiveType.INT16: "number",
        PrimitiveType.UINT16: "number",
        PrimitiveType.INT32: "number",
        PrimitiveType.UINT32: "number",
    }

    LOSSY_PRIMITIVES = {
        PrimitiveType.TIMESTAMP: "RFC 3339 timestamp carried as a string",
        PrimitiveType.FLOAT32: "TypeScript has no 32-bit float type",
        PrimitiveType.INT8: _INTEGER_NOTE,
        PrimitiveType.UINT8: _INTEGER_NOTE,
        PrimitiveType.INT16: _INTEGER_NOTE,
        PrimitiveType.UINT16: _INTEGER_NOTE,
        PrimitiveType.INT32: _INTEGER_NOTE,
        PrimitiveType.UINT32: _INTEGER_NOTE,
    }

    @classmethod
    def default_naming_rules(cls) -> NamingRules:
        # Interface members are the wire keys, so fields are neither converted nor escaped
        return NamingRules(
            case_convention=CaseConvention.PASCAL,
            field_case_convention=CaseConvention.PRESERVE,
            reserved_words=TYPESCRIPT_RESERVED_WORDS,
            field_reserved_words=frozenset(),
        )

    def render_type(self, expr: TypeExpr) -> str:
        """Translate a type expression to a TypeScript type string."""
        match expr.kind:
            case TypeKind.ANY | TypeKind.PRIMITIVE | TypeKind.NAMED:
                return expr.name
            case TypeKind.LITERAL:
                return json.dumps(expr.name)
            case TypeKind.ARRAY:
                item = self.render_type(expr.inner)
                if " | " in item:
                    item = f"({item})"
                return f"{item}[]"
            case TypeKind.MAP:
                return f"{{ [key: string]: {self.render_type(expr.inner)} }}"
            case TypeKind.OPTIONAL:
                # Absence is expressed on the member ("?:"), only null is part of the type
                inner = self.render_type(expr.inner)
                return f"{inner} | null" if expr.may_be_null else inner
        raise ValueError(f"Unknown type kind: {expr.kind}")

    def declaration_context(self, decl: AuxDeclaration, ctx: MappingContext) -> dict[str, Any]:
        if not isinstance(decl, StructDeclaration):
            return {}
        members = []
        for f in decl.fields:
            members.append(
                {
                    "key": f.name if is_identifier(f.name) else json.dumps(f.name),
                    "optional": f.may_be_absent,
                    "type": self.render_type(f.type_expr),
                    "description": f.description,
                }
            )
        return {"members": members}

    def output_path(self, ctx: MappingContext) -> str:
        return f"{ctx.root_name}.ts"
