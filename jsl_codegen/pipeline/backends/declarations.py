"""
Output of the type-mapping contract.

A backend maps each schema node to a ``TypeExpr`` (how a value of that node
is spelled where it is used) plus the declarations the expression depends
on. Declarations are plain data; rendering them to source text is a
separate, per-target step.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class TypeKind(Enum):
    """Kind of type expression."""

    ANY = "any"  # unconstrained value
    PRIMITIVE = "primitive"  # target primitive, spelled by name
    NAMED = "named"  # reference to a declared type
    ARRAY = "array"  # sequence of type_args[0]
    MAP = "map"  # string-keyed map to type_args[0]
    OPTIONAL = "optional"  # type_args[0] that may be absent and/or null
    LITERAL = "literal"  # a single string value (discriminator tags)


@dataclass(frozen=True)
class TypeExpr:
    """A type expression in a target language."""

    kind: TypeKind = TypeKind.PRIMITIVE

    # Target spelling (PRIMITIVE, ANY), identifier (NAMED) or value (LITERAL)
    name: str = ""

    # For ARRAY, MAP and OPTIONAL
    type_args: tuple[TypeExpr, ...] = ()

    # For OPTIONAL: the key may be missing / the value may be null
    may_be_absent: bool = False
    may_be_null: bool = False

    # For NAMED: the definition referenced, when the type comes from a ref
    definition_name: str | None = None

    # For NAMED: the target must store the value behind a reference (recursive types)
    by_reference: bool = False

    # Documented inexact mappings (e.g. float32 mapped to a 64-bit type)
    notes: tuple[str, ...] = ()

    @property
    def inner(self) -> TypeExpr:
        return self.type_args[0]

    def unwrap(self) -> TypeExpr:
        """The expression without its OPTIONAL wrapper."""
        return self.inner if self.kind == TypeKind.OPTIONAL else self

    def walk(self) -> Iterator[TypeExpr]:
        yield self
        for arg in self.type_args:
            yield from arg.walk()

    def all_notes(self) -> list[str]:
        return [note for expr in self.walk() for note in expr.notes]

    @staticmethod
    def any(name: str) -> TypeExpr:
        return TypeExpr(kind=TypeKind.ANY, name=name)

    @staticmethod
    def primitive(name: str, notes: tuple[str, ...] = ()) -> TypeExpr:
        return TypeExpr(kind=TypeKind.PRIMITIVE, name=name, notes=notes)

    @staticmethod
    def named(name: str, definition_name: str | None = None, by_reference: bool = False) -> TypeExpr:
        return TypeExpr(kind=TypeKind.NAMED, name=name, definition_name=definition_name, by_reference=by_reference)

    @staticmethod
    def array(inner: TypeExpr) -> TypeExpr:
        return TypeExpr(kind=TypeKind.ARRAY, type_args=(inner,))

    @staticmethod
    def map(inner: TypeExpr) -> TypeExpr:
        return TypeExpr(kind=TypeKind.MAP, type_args=(inner,))

    @staticmethod
    def literal(value: str) -> TypeExpr:
        return TypeExpr(kind=TypeKind.LITERAL, name=value)

    @staticmethod
    def optional(inner: TypeExpr, may_be_absent: bool, may_be_null: bool) -> TypeExpr:
        return TypeExpr(kind=TypeKind.OPTIONAL, type_args=(inner,), may_be_absent=may_be_absent, may_be_null=may_be_null)


@dataclass(frozen=True)
class FieldDeclaration:
    """A field of a struct declaration."""

    # Generated identifier
    name: str = ""

    # Original schema key, used on the wire
    wire_name: str = ""

    type_expr: TypeExpr = field(default_factory=TypeExpr)

    # False for keys from optionalProperties
    required: bool = True

    description: str | None = None

    # The discriminator tag of a union branch; tag_value is its literal value
    is_tag: bool = False
    tag_value: str | None = None

    @property
    def may_be_absent(self) -> bool:
        return self.type_expr.kind == TypeKind.OPTIONAL and self.type_expr.may_be_absent

    @property
    def may_be_null(self) -> bool:
        return self.type_expr.kind == TypeKind.OPTIONAL and self.type_expr.may_be_null

    @property
    def is_renamed(self) -> bool:
        return self.name != self.wire_name


class DeclarationKind(Enum):
    """Kind of declaration."""

    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"
    ALIAS = "alias"


@dataclass(frozen=True)
class Declaration:
    """Base class for declarations."""

    kind: ClassVar[DeclarationKind]

    # Generated type identifier
    name: str = ""

    # JSON pointer of the schema node this declaration comes from
    source_path: str = ""

    description: str | None = None


@dataclass(frozen=True)
class StructDeclaration(Declaration):
    """An aggregate type with named fields."""

    kind: ClassVar[DeclarationKind] = DeclarationKind.STRUCT

    fields: tuple[FieldDeclaration, ...] = ()

    # For union branches: the union declaration this struct is a case of
    base: str | None = None

    # Whether unknown keys are tolerated
    additional_properties: bool = False

    @property
    def tag(self) -> FieldDeclaration | None:
        return next((f for f in self.fields if f.is_tag), None)

    @property
    def data_fields(self) -> tuple[FieldDeclaration, ...]:
        """Fields other than the discriminator tag."""
        return tuple(f for f in self.fields if not f.is_tag)


@dataclass(frozen=True)
class EnumMember:
    """A member of an enum declaration."""

    name: str = ""
    value: str = ""


@dataclass(frozen=True)
class EnumDeclaration(Declaration):
    """A closed set of string values."""

    kind: ClassVar[DeclarationKind] = DeclarationKind.ENUM

    members: tuple[EnumMember, ...] = ()


@dataclass(frozen=True)
class UnionVariant:
    """A case of a union declaration."""

    tag_value: str = ""
    type_name: str = ""


@dataclass(frozen=True)
class UnionDeclaration(Declaration):
    """A closed, tagged union of struct declarations."""

    kind: ClassVar[DeclarationKind] = DeclarationKind.UNION

    # Generated identifier of the tag field
    tag_name: str = ""

    # Tag key on the wire
    tag_wire_name: str = ""

    variants: tuple[UnionVariant, ...] = ()


@dataclass(frozen=True)
class AliasDeclaration(Declaration):
    """A name for a type expression (definitions that are not aggregates)."""

    kind: ClassVar[DeclarationKind] = DeclarationKind.ALIAS

    target: TypeExpr = field(default_factory=TypeExpr)


AuxDeclaration = StructDeclaration | EnumDeclaration | UnionDeclaration | AliasDeclaration


@dataclass(frozen=True)
class RenderedFile:
    """A file produced by a backend, relative to the target's output directory."""

    path: str = ""
    content: str = ""


@dataclass(frozen=True)
class BackendResult:
    """Outcome of one backend run; either files or an error."""

    target: str = ""
    root_type: TypeExpr | None = None
    declarations: tuple[AuxDeclaration, ...] = ()
    notes: tuple[str, ...] = ()
    files: tuple[RenderedFile, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
