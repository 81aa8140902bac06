"""
Python code generation backend.

Generates dataclasses decorated with dataclasses_json. Renamed fields keep
their wire key in ``config(field_name=...)`` metadata. A discriminator becomes
a base dataclass plus one subclass per branch whose tag is a ``Literal`` field;
the base decodes through ``from_dict`` by dispatching on the tag. Fields typed
with a union or a ``type`` alias carry an explicit decoder.
"""

from __future__ import annotations

import builtins
import json
import keyword
from collections.abc import Iterable
from typing import Any

from ...utils import to_snake_case
from ..config import CaseConvention, NamingRules
from ..schema_ast.nodes import PrimitiveType
from .base import CodeBackend, MappingContext, walk_types
from .declarations import (
    AliasDeclaration,
    AuxDeclaration,
    EnumDeclaration,
    FieldDeclaration,
    StructDeclaration,
    TypeExpr,
    TypeKind,
    UnionDeclaration,
)

# Names the generated module imports; a class body must not rebind them either
_IMPORTED_NAMES = frozenset({"Any", "Enum", "Literal", "config", "dataclass", "dataclass_json", "datetime", "field"})

PYTHON_RESERVED_WORDS = frozenset(keyword.kwlist)

PYTHON_TYPE_RESERVED = (
    PYTHON_RESERVED_WORDS | _IMPORTED_NAMES | frozenset(name for name in dir(builtins) if not name.startswith("_"))
)

# Field defaults bind names in the class body, so fields avoid the names annotations use
PYTHON_FIELD_RESERVED = PYTHON_RESERVED_WORDS | _IMPORTED_NAMES | frozenset({"bool", "dict", "float", "int", "list", "str"})


class PythonBackend(CodeBackend):
    """Python code generation backend."""

    name = "python"

    TEMPLATE_LANG = "python"
    FILE_EXTENSION = "py"

    ANY_TYPE = "Any"

    DECLARATION_SEPARATOR = "\n\n\n"

    PRIMITIVE_MAP = {
        PrimitiveType.BOOLEAN: "bool",
        PrimitiveType.STRING: "str",
        PrimitiveType.TIMESTAMP: "datetime",
        PrimitiveType.FLOAT32: "float",
        PrimitiveType.FLOAT64: "float",
        PrimitiveType.INT8: "int",
        PrimitiveType.UINT8: "int",
        PrimitiveType.INT16: "int",
        PrimitiveType.UINT16: "int",
        PrimitiveType.INT32: "int",
        PrimitiveType.UINT32: "int",
    }

    LOSSY_PRIMITIVES = {
        PrimitiveType.FLOAT32: "Python float is 64-bit",
    }

    @classmethod
    def default_naming_rules(cls) -> NamingRules:
        return NamingRules(
            case_convention=CaseConvention.PASCAL,
            field_case_convention=CaseConvention.SNAKE,
            enum_member_case_convention=CaseConvention.SCREAMING_SNAKE,
            reserved_words=PYTHON_TYPE_RESERVED,
            field_reserved_words=PYTHON_FIELD_RESERVED,
        )

    def render_type(self, expr: TypeExpr) -> str:
        """Translate a type expression to a Python annotation."""
        match expr.kind:
            case TypeKind.ANY | TypeKind.PRIMITIVE | TypeKind.NAMED:
                return expr.name
            case TypeKind.LITERAL:
                return f"Literal[{json.dumps(expr.name)}]"
            case TypeKind.ARRAY:
                return f"list[{self.render_type(expr.inner)}]"
            case TypeKind.MAP:
                return f"dict[str, {self.render_type(expr.inner)}]"
            case TypeKind.OPTIONAL:
                return f"{self.render_type(expr.inner)} | None"
        raise ValueError(f"Unknown type kind: {expr.kind}")

    def field_default(self, f: FieldDeclaration, decoder: str | None = None) -> str | None:
        """
        Right-hand side of a field, or None for a plain required field.

        Absent keys decode to None; the tag of a branch defaults to its value.

        Args:
            f: The field
            decoder: Decoder expression for values dataclasses_json cannot decode itself
        """
        if f.is_tag:
            default = json.dumps(f.tag_value)
        elif f.may_be_absent:
            default = "None"
        else:
            default = None

        options = []
        if f.is_renamed:
            options.append(f"field_name={json.dumps(f.wire_name)}")
        if decoder:
            options.append(f"decoder={decoder}")
        if not options:
            return default
        metadata = f"metadata=config({', '.join(options)})"
        if default is None:
            return f"field({metadata})"
        return f"field(default={default}, {metadata})"

    def imports(self, declarations: tuple[AuxDeclaration, ...], ctx: MappingContext) -> list[str]:
        exprs = list(walk_types(declarations))
        structs = [decl for decl in declarations if isinstance(decl, StructDeclaration | UnionDeclaration)]
        decoders = FieldDecoders(declarations)
        needs_config = any(
            f.is_renamed or decoders.for_field(f) for decl in structs if isinstance(decl, StructDeclaration) for f in decl.fields
        )

        stdlib = []
        if structs:
            dataclass_names = ["dataclass"]
            if needs_config:
                dataclass_names.append("field")
            stdlib.append(f"from dataclasses import {', '.join(dataclass_names)}")
        if any(expr.kind == TypeKind.PRIMITIVE and expr.name == "datetime" for expr in exprs):
            stdlib.append("from datetime import datetime")
        if any(isinstance(decl, EnumDeclaration) for decl in declarations):
            stdlib.append("from enum import Enum")
        typing_names = []
        if any(expr.kind == TypeKind.ANY for expr in exprs):
            typing_names.append("Any")
        if any(expr.kind == TypeKind.LITERAL for expr in exprs):
            typing_names.append("Literal")
        if typing_names:
            stdlib.append(f"from typing import {', '.join(typing_names)}")

        third_party = []
        if structs:
            third_party.append(f"from dataclasses_json import {'config, ' if needs_config else ''}dataclass_json")

        groups = [["from __future__ import annotations"], stdlib, third_party]
        lines = []
        for group in groups:
            if group:
                if lines:
                    lines.append("")
                lines.extend(group)
        return lines

    def declaration_context(self, decl: AuxDeclaration, ctx: MappingContext) -> dict[str, Any]:
        if isinstance(decl, StructDeclaration):
            # Fields without a default must come before fields with one
            ordered = sorted(decl.fields, key=lambda f: f.is_tag or f.may_be_absent)
            decoders = FieldDecoders(ctx.declared.values())
            fields = [
                {"name": f.name, "type": self.render_type(f.type_expr), "default": self.field_default(f, decoders.for_field(f))}
                for f in ordered
            ]
            return {"fields": fields}
        if isinstance(decl, UnionDeclaration):
            return {"dispatch": {v.tag_value: v.type_name for v in decl.variants}}
        if isinstance(decl, AliasDeclaration):
            return {"target": self.render_type(decl.target)}
        return {}

    def output_path(self, ctx: MappingContext) -> str:
        return f"{to_snake_case(ctx.root_name) or 'schema'}.py"


class FieldDecoders:
    """
    Decoder expressions for fields whose annotation dataclasses_json cannot follow.

    dataclasses_json decodes a nested dataclass through its fields and never
    calls its ``from_dict``, so a union base would decode to an empty
    instance. It also does not look through ``type`` aliases. Fields that
    mention a union or an alias get an explicit decoder built from the type
    expression, with aliases expanded.
    """

    def __init__(self, declarations: Iterable[AuxDeclaration]):
        self.declared = {decl.name: decl for decl in declarations}

    def for_field(self, f: FieldDeclaration) -> str | None:
        """Decoder lambda for a field, or None when dataclasses_json handles it."""
        if not any(self._is_opaque(expr) for expr in f.type_expr.walk()):
            return None
        body = self._decode(f.type_expr, "v", 0, frozenset())
        return f"lambda v: {body}" if body else None

    def _is_opaque(self, expr: TypeExpr) -> bool:
        return expr.kind == TypeKind.NAMED and isinstance(self.declared.get(expr.name), UnionDeclaration | AliasDeclaration)

    def _decode(self, expr: TypeExpr, value: str, depth: int, aliases: frozenset[str]) -> str | None:
        """Expression decoding `value` as `expr`; None when the JSON value is used as is."""
        match expr.kind:
            case TypeKind.OPTIONAL:
                inner = self._decode(expr.inner, value, depth, aliases)
                return f"None if {value} is None else {inner}" if inner else None
            case TypeKind.ARRAY:
                item = f"x{depth}"
                inner = self._decode(expr.inner, item, depth + 1, aliases)
                return f"[{inner} for {item} in {value}]" if inner else None
            case TypeKind.MAP:
                key, item = f"k{depth}", f"x{depth}"
                inner = self._decode(expr.inner, item, depth + 1, aliases)
                return f"{{{key}: {inner} for {key}, {item} in {value}.items()}}" if inner else None
            case TypeKind.NAMED:
                decl = self.declared.get(expr.name)
                if isinstance(decl, StructDeclaration | UnionDeclaration):
                    return f"{expr.name}.from_dict({value})"
                if isinstance(decl, EnumDeclaration):
                    return f"{expr.name}({value})"
                # Alias cycles have no finite expansion
                if isinstance(decl, AliasDeclaration) and expr.name not in aliases:
                    return self._decode(decl.target, value, depth, aliases | {expr.name})
        return None
