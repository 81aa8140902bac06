"""
Java code generation backend.

Generates Jackson-annotated classes, one file per declaration. Enums are
native; a discriminator becomes an abstract base class dispatching on the tag
with @JsonTypeInfo, plus one subclass per branch. Java has no type aliases,
so aliases are single-value wrapper classes.
"""

from __future__ import annotations

from typing import Any

from ..config import CaseConvention, NamingRules
from ..schema_ast.nodes import PrimitiveType
from .base import CodeBackend, MappingContext, collect_notes, walk_types
from .declarations import (
    AliasDeclaration,
    AuxDeclaration,
    BackendResult,
    EnumDeclaration,
    FieldDeclaration,
    RenderedFile,
    StructDeclaration,
    TypeExpr,
    TypeKind,
    UnionDeclaration,
)

JAVA_RESERVED_WORDS = frozenset(
    {
        "abstract",
        "assert",
        "boolean",
        "break",
        "byte",
        "case",
        "catch",
        "char",
        "class",
        "const",
        "continue",
        "default",
        "do",
        "double",
        "else",
        "enum",
        "extends",
        "final",
        "finally",
        "float",
        "for",
        "goto",
        "if",
        "implements",
        "import",
        "instanceof",
        "int",
        "interface",
        "long",
        "native",
        "new",
        "package",
        "private",
        "protected",
        "public",
        "return",
        "short",
        "static",
        "strictfp",
        "super",
        "switch",
        "synchronized",
        "this",
        "throw",
        "throws",
        "transient",
        "try",
        "void",
        "volatile",
        "while",
        "true",
        "false",
        "null",
        "var",
        "record",
        "yield",
    }
)

# Class names a generated type must not shadow
JAVA_TYPE_NAMES = frozenset(
    {
        "Object",
        "String",
        "Boolean",
        "Byte",
        "Short",
        "Integer",
        "Long",
        "Float",
        "Double",
        "List",
        "Map",
        "OffsetDateTime",
        "Override",
        "Class",
        "Enum",
    }
)

# Boxed type -> primitive, for required scalar fields
_UNBOXED = {
    "Boolean": "boolean",
    "Byte": "byte",
    "Short": "short",
    "Integer": "int",
    "Long": "long",
    "Float": "float",
    "Double": "double",
}

_JACKSON = "com.fasterxml.jackson.annotation"


class JavaBackend(CodeBackend):
    """Java code generation backend."""

    name = "java"

    TEMPLATE_LANG = "java"
    FILE_EXTENSION = "java"

    ANY_TYPE = "Object"

    # Unsigned types are widened to the next signed type that holds every value
    PRIMITIVE_MAP = {
        PrimitiveType.BOOLEAN: "Boolean",
        PrimitiveType.STRING: "String",
        PrimitiveType.TIMESTAMP: "OffsetDateTime",
        PrimitiveType.FLOAT32: "Float",
        PrimitiveType.FLOAT64: "Double",
        PrimitiveType.INT8: "Byte",
        PrimitiveType.UINT8: "Short",
        PrimitiveType.INT16: "Short",
        PrimitiveType.UINT16: "Integer",
        PrimitiveType.INT32: "Integer",
        PrimitiveType.UINT32: "Long",
    }

    @classmethod
    def default_naming_rules(cls) -> NamingRules:
        return NamingRules(
            case_convention=CaseConvention.PASCAL,
            field_case_convention=CaseConvention.CAMEL,
            enum_member_case_convention=CaseConvention.SCREAMING_SNAKE,
            reserved_words=JAVA_RESERVED_WORDS | JAVA_TYPE_NAMES,
            field_reserved_words=JAVA_RESERVED_WORDS,
        )

    def render_type(self, expr: TypeExpr) -> str:
        """Translate a type expression to a Java reference type."""
        match expr.kind:
            case TypeKind.ANY | TypeKind.PRIMITIVE | TypeKind.NAMED:
                return expr.name
            case TypeKind.LITERAL:
                return "String"
            case TypeKind.ARRAY:
                return f"List<{self.render_type(expr.inner)}>"
            case TypeKind.MAP:
                return f"Map<String, {self.render_type(expr.inner)}>"
            case TypeKind.OPTIONAL:
                # Reference types are nullable; absence is handled by @JsonInclude
                return self.render_type(expr.inner)
        raise ValueError(f"Unknown type kind: {expr.kind}")

    def field_type(self, f: FieldDeclaration) -> str:
        """Type of a field; required scalars use the primitive type."""
        if f.type_expr.kind == TypeKind.PRIMITIVE:
            return _UNBOXED.get(f.type_expr.name, f.type_expr.name)
        return self.render_type(f.type_expr)

    def imports(self, declarations: tuple[AuxDeclaration, ...], ctx: MappingContext) -> list[str]:
        imports = set()
        for expr in walk_types(declarations):
            if expr.kind == TypeKind.ARRAY:
                imports.add("java.util.List")
            elif expr.kind == TypeKind.MAP:
                imports.add("java.util.Map")
            elif expr.kind == TypeKind.PRIMITIVE and expr.name == "OffsetDateTime":
                imports.add("java.time.OffsetDateTime")

        for decl in declarations:
            if isinstance(decl, StructDeclaration):
                if decl.data_fields:
                    imports.add(f"{_JACKSON}.JsonProperty")
                if any(f.may_be_absent for f in decl.fields):
                    imports.add(f"{_JACKSON}.JsonInclude")
                if decl.additional_properties:
                    imports.add(f"{_JACKSON}.JsonIgnoreProperties")
                if decl.base:
                    imports.add(f"{_JACKSON}.JsonTypeName")
            elif isinstance(decl, EnumDeclaration):
                imports.add(f"{_JACKSON}.JsonProperty")
            elif isinstance(decl, UnionDeclaration):
                imports.update({f"{_JACKSON}.JsonSubTypes", f"{_JACKSON}.JsonTypeInfo"})
            elif isinstance(decl, AliasDeclaration):
                imports.update({f"{_JACKSON}.JsonCreator", f"{_JACKSON}.JsonValue"})
        return sorted(imports)

    def declaration_context(self, decl: AuxDeclaration, ctx: MappingContext) -> dict[str, Any]:
        if isinstance(decl, StructDeclaration):
            # The base class reads and writes the tag through @JsonTypeInfo
            return {
                "fields": [
                    {
                        "name": f.name,
                        "wire_name": f.wire_name,
                        "type": self.field_type(f),
                        "omit_null": f.may_be_absent,
                        "description": f.description,
                    }
                    for f in decl.data_fields
                ]
            }
        return {}

    def prefix_context(self, ctx: MappingContext) -> dict[str, Any]:
        return {"package": ctx.target.package}

    def output_path(self, ctx: MappingContext) -> str:
        return f"{ctx.root_name}.java"

    def render_files(self, result: BackendResult, ctx: MappingContext) -> list[RenderedFile]:
        """One file per declaration, named after the declared class."""
        files = []
        for decl in result.declarations:
            parts = [self.render_prefix((decl,), tuple(collect_notes([decl])), ctx), self.render_declaration(decl, ctx)]
            content = "\n\n".join(part for part in parts if part) + "\n"
            files.append(RenderedFile(path=f"{decl.name}.java", content=content))
        return files
