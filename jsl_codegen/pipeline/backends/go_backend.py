"""
Go code generation backend.

Go has neither enums nor tagged unions. Enums become a named string type
plus one constant per value; a discriminator becomes a wrapper struct holding
the tag and a value of a sealed interface implemented by the branch structs,
with custom JSON marshalling. Optional and nullable values are pointers
(slices, maps and interface{} are already nil-able).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from ...utils import to_snake_case
from ..config import CaseConvention, NamingRules
from ..schema_ast.nodes import PrimitiveType
from .base import CodeBackend, MappingContext, walk_types
from .declarations import (
    AliasDeclaration,
    AuxDeclaration,
    FieldDeclaration,
    StructDeclaration,
    TypeExpr,
    TypeKind,
    UnionDeclaration,
)

GO_RESERVED_WORDS = frozenset(
    {
        "break",
        "case",
        "chan",
        "const",
        "continue",
        "default",
        "defer",
        "else",
        "fallthrough",
        "for",
        "func",
        "go",
        "goto",
        "if",
        "import",
        "interface",
        "map",
        "package",
        "range",
        "return",
        "select",
        "struct",
        "switch",
        "type",
        "var",
    }
)

# Predeclared identifiers that would be shadowed by a generated type
GO_BUILTIN_TYPES = frozenset(
    {
        "any",
        "bool",
        "byte",
        "comparable",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "nil",
        "true",
        "false",
        "iota",
    }
)

# Kinds whose Go type can already be nil
_NILABLE = {TypeKind.ANY, TypeKind.ARRAY, TypeKind.MAP}


class GoBackend(CodeBackend):
    """Go code generation backend."""

    name = "go"

    TEMPLATE_LANG = "go"
    FILE_EXTENSION = "go"

    ANY_TYPE = "interface{}"

    PRIMITIVE_MAP = {
        PrimitiveType.BOOLEAN: "bool",
        PrimitiveType.STRING: "string",
        PrimitiveType.TIMESTAMP: "time.Time",
        PrimitiveType.FLOAT32: "float32",
        PrimitiveType.FLOAT64: "float64",
        PrimitiveType.INT8: "int8",
        PrimitiveType.UINT8: "uint8",
        PrimitiveType.INT16: "int16",
        PrimitiveType.UINT16: "uint16",
        PrimitiveType.INT32: "int32",
        PrimitiveType.UINT32: "uint32",
    }

    @classmethod
    def default_naming_rules(cls) -> NamingRules:
        # Exported identifiers only; enum constants live in the package scope next to types
        return NamingRules(
            case_convention=CaseConvention.PASCAL,
            reserved_words=GO_RESERVED_WORDS | GO_BUILTIN_TYPES,
            leading_digit_prefix="N",
            qualify_enum_members=True,
        )

    def render_type(self, expr: TypeExpr) -> str:
        """Translate a type expression to a Go type string."""
        match expr.kind:
            case TypeKind.ANY | TypeKind.PRIMITIVE | TypeKind.NAMED:
                return expr.name
            case TypeKind.LITERAL:
                return "string"
            case TypeKind.ARRAY:
                return f"[]{self.render_type(expr.inner)}"
            case TypeKind.MAP:
                return f"map[string]{self.render_type(expr.inner)}"
            case TypeKind.OPTIONAL:
                inner = self.render_type(expr.inner)
                if expr.inner.kind in _NILABLE:
                    return inner
                return f"*{inner}"
        raise ValueError(f"Unknown type kind: {expr.kind}")

    def field_type(self, f: FieldDeclaration) -> str:
        """Type of a struct field; a required reference to a recursive struct is a pointer."""
        expr = f.type_expr
        if expr.kind == TypeKind.NAMED and expr.by_reference:
            return f"*{expr.name}"
        return self.render_type(expr)

    def package_name(self, ctx: MappingContext) -> str:
        """Package from the target config, else the output directory, else the root name."""
        name = ctx.target.package or Path(ctx.target.out_dir).name or to_snake_case(ctx.root_name)
        name = re.sub(r"[^a-z0-9_]", "", name.lower())
        if not name or name[0].isdigit():
            name = "schema" + name
        return name

    def imports(self, declarations: tuple[AuxDeclaration, ...], ctx: MappingContext) -> list[str]:
        imports = set()
        if any(expr.kind == TypeKind.PRIMITIVE and expr.name == "time.Time" for expr in walk_types(declarations)):
            imports.add("time")
        if any(isinstance(decl, UnionDeclaration) for decl in declarations):
            imports.update({"encoding/json", "fmt"})
        return sorted(imports)

    def declaration_context(self, decl: AuxDeclaration, ctx: MappingContext) -> dict[str, Any]:
        if isinstance(decl, StructDeclaration):
            # The union wrapper carries the tag, so branch structs leave it out
            fields = decl.data_fields if decl.base else decl.fields
            return {
                "fields": [
                    {
                        "name": f.name,
                        "type": self.field_type(f),
                        "tag": f.wire_name + (",omitempty" if f.may_be_absent else ""),
                        "description": f.description,
                    }
                    for f in fields
                ]
            }
        if isinstance(decl, UnionDeclaration):
            return {
                "interface_name": f"is{decl.name}",
                "value_field": "Variant" if decl.tag_name == "Value" else "Value",
            }
        if isinstance(decl, AliasDeclaration):
            # Aliasing a named type keeps its methods; anything else becomes a defined type
            return {"is_alias": decl.target.kind == TypeKind.NAMED}
        return {}

    def output_path(self, ctx: MappingContext) -> str:
        return f"{self.package_name(ctx)}.go"

    def prefix_context(self, ctx: MappingContext) -> dict[str, Any]:
        return {"package": self.package_name(ctx)}
