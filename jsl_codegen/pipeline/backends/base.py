"""
Type-mapping contract and the shared backend implementation.

Every backend satisfies ``TypeMappingBackend``: it maps schema nodes to type
expressions plus the declarations they need, and renders declarations to
source text. ``CodeBackend`` implements the mapping once for all shipped
targets from a few per-target hooks and renders through jinja2 templates.
"""

from __future__ import annotations

import dataclasses
import json
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Protocol, runtime_checkable

import jinja2

from ...utils import comment_lines, escape_block_comment
from ..analyzer.name_resolver import NameTable
from ..analyzer.reference_resolver import ReferenceResolver
from ..config import NamingRules, TargetConfig
from ..errors import UnsupportedFormError
from ..schema_ast.nodes import (
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
from .declarations import (
    AliasDeclaration,
    AuxDeclaration,
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


@dataclass(frozen=True)
class MappingContext:
    """Read-only state shared by every ``map_type`` call of one backend run."""

    schema: ResolvedSchema

    references: ReferenceResolver

    # Output hints (directory, package) threaded through to rendering
    target: TargetConfig = field(default_factory=TargetConfig)

    # Identifier of the root type
    root_name: str = "Root"

    # First line of every generated file (None = no comment)
    generation_comment: str | None = None

    # Definition whose body is being mapped (None for the root)
    owner: str | None = None

    # The node is an array element or a map value
    in_container: bool = False

    # Declarations of the run by name, filled in by render_files
    declared: Mapping[str, AuxDeclaration] = field(default_factory=dict)

    @staticmethod
    def create(
        schema: ResolvedSchema,
        target: TargetConfig | None = None,
        root_name: str = "Root",
        generation_comment: str | None = None,
    ) -> MappingContext:
        return MappingContext(
            schema=schema,
            references=ReferenceResolver(schema),
            target=target or TargetConfig(),
            root_name=root_name,
            generation_comment=generation_comment,
        )


@runtime_checkable
class TypeMappingBackend(Protocol):
    """The contract every backend implements."""

    name: str
    naming_rules: NamingRules

    def map_type(
        self, node: SchemaNode, names: NameTable, ctx: MappingContext
    ) -> tuple[TypeExpr, tuple[AuxDeclaration, ...]]: ...

    def render_declaration(self, decl: AuxDeclaration, ctx: MappingContext) -> str: ...

    def render_files(self, result: BackendResult, ctx: MappingContext) -> list[RenderedFile]: ...


def map_schema(
    backend: TypeMappingBackend, schema: ResolvedSchema, names: NameTable, ctx: MappingContext
) -> BackendResult:
    """
    Map every definition, then the root, through a backend.

    Definitions whose form is not an aggregate get an ``AliasDeclaration`` so
    that every ref has an eponymous declared type. A definition alias names
    the non-null type; ref sites add nullability back.

    Args:
        backend: The backend
        schema: The resolved schema
        names: Name table built with the backend's naming rules
        ctx: Mapping context of the run

    Returns:
        BackendResult with the declarations and notes, no files yet

    Raises:
        UnsupportedFormError: If the backend cannot represent a form
    """
    declarations: list[AuxDeclaration] = []

    for name, node in schema.definitions.items():
        expr, aux = backend.map_type(node, names, dataclasses.replace(ctx, owner=name, in_container=False))
        declarations.extend(aux)
        if not is_named_form(node):
            declarations.append(
                AliasDeclaration(
                    name=names.definition(name),
                    source_path=node.path,
                    description=node.description,
                    target=expr.unwrap(),
                )
            )

    root_type, aux = backend.map_type(schema.root, names, dataclasses.replace(ctx, owner=None, in_container=False))
    declarations.extend(aux)
    if not is_named_form(schema.root):
        declarations.append(
            AliasDeclaration(
                name=names.root,
                source_path=schema.root.path,
                description=schema.root.description,
                target=root_type,
            )
        )

    notes = collect_notes(declarations, root_type)
    return BackendResult(
        target=backend.name,
        root_type=root_type,
        declarations=tuple(declarations),
        notes=tuple(notes),
    )


def walk_types(declarations: Iterable[AuxDeclaration]) -> Iterator[TypeExpr]:
    """Every type expression used by a sequence of declarations, nested ones included."""
    for decl in declarations:
        if isinstance(decl, StructDeclaration):
            for f in decl.fields:
                yield from f.type_expr.walk()
        elif isinstance(decl, AliasDeclaration):
            yield from decl.target.walk()


def collect_notes(declarations: Iterable[AuxDeclaration], root_type: TypeExpr | None = None) -> list[str]:
    """Lossy-mapping notes of a run, without duplicates, in declaration order."""
    exprs = list(walk_types(declarations))
    if root_type is not None:
        exprs.extend(root_type.walk())
    notes: dict[str, None] = {}
    for expr in exprs:
        for note in expr.notes:
            notes[note] = None
    return list(notes)


class CodeBackend(ABC):
    """Shared implementation of the mapping contract for the shipped targets."""

    # Target name used by the registry and in error messages
    name: ClassVar[str] = ""

    # Template directory name
    TEMPLATE_LANG: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    # Spelling of each primitive type (a missing entry means unsupported)
    PRIMITIVE_MAP: dict[PrimitiveType, str] = {}

    # Primitive types whose mapping is inexact, with the reason
    LOSSY_PRIMITIVES: dict[PrimitiveType, str] = {}

    # Spelling of the "accepts anything" type
    ANY_TYPE: str = ""

    # Forms this target can represent
    SUPPORTED_FORMS: frozenset[Form] = frozenset(Form)

    # Text between top-level declarations
    DECLARATION_SEPARATOR: str = "\n\n"

    def __init__(self, naming_overrides: dict[str, Any] | None = None):
        """
        Initialize the backend.

        Args:
            naming_overrides: NamingRules fields replacing the target defaults
        """
        self.naming_rules = self.default_naming_rules().merged(naming_overrides)
        self._setup_templates()

    @classmethod
    @abstractmethod
    def default_naming_rules(cls) -> NamingRules:
        """Naming rules of the target language."""

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.TEMPLATE_LANG
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=False,
        )
        self.jinja_env.filters["render_type"] = self.render_type
        self.jinja_env.filters["lines"] = comment_lines
        self.jinja_env.filters["block_comment"] = escape_block_comment
        self.jinja_env.filters["quote"] = json.dumps

        self.prefix_template = self.jinja_env.get_template(f"prefix.{self.FILE_EXTENSION}.jinja2")
        self.declaration_templates = {
            kind: self.jinja_env.get_template(f"{kind}.{self.FILE_EXTENSION}.jinja2")
            for kind in ("struct", "enum", "union", "alias")
        }

    # Mapping

    def map_type(
        self, node: SchemaNode, names: NameTable, ctx: MappingContext
    ) -> tuple[TypeExpr, tuple[AuxDeclaration, ...]]:
        """
        Map a node to a type expression plus the declarations it introduces.

        Refs become name lookups, so the recursion depth is bounded by the
        nesting of one definition body, never by reference depth.

        Args:
            node: The node to map
            names: Name table of this target
            ctx: Mapping context

        Returns:
            Tuple of (type expression, declarations in dependency-friendly order)

        Raises:
            UnsupportedFormError: If the target cannot represent the node's form
        """
        declarations: list[AuxDeclaration] = []
        expr = self._map_node(node, names, ctx, declarations)
        return expr, tuple(declarations)

    def _map_node(self, node: SchemaNode, names: NameTable, ctx: MappingContext, out: list[AuxDeclaration]) -> TypeExpr:
        if node.form not in self.SUPPORTED_FORMS:
            raise self._unsupported(node, ctx)

        match node:
            case EmptyNode():
                expr = TypeExpr.any(self.ANY_TYPE)
            case RefNode():
                expr = self._map_ref(node, names, ctx)
            case TypeNode():
                expr = self.map_primitive(node, ctx)
            case EnumNode():
                out.append(self._enum_declaration(node, names))
                expr = TypeExpr.named(names.type_name(node))
            case ElementsNode():
                inner = self._map_node(node.elements, names, dataclasses.replace(ctx, in_container=True), out)
                expr = TypeExpr.array(inner)
            case ValuesNode():
                inner = self._map_node(node.values, names, dataclasses.replace(ctx, in_container=True), out)
                expr = TypeExpr.map(inner)
            case PropertiesNode():
                out.extend(self._struct_declarations(node, names, ctx))
                expr = TypeExpr.named(names.type_name(node))
            case DiscriminatorNode():
                out.extend(self._union_declarations(node, names, ctx))
                expr = TypeExpr.named(names.type_name(node))
            case _:
                raise TypeError(f"Unknown schema node {type(node).__name__}")

        if node.nullable:
            expr = self._apply_optionality(expr, may_be_absent=False, may_be_null=True)
        return expr

    def _map_ref(self, node: RefNode, names: NameTable, ctx: MappingContext) -> TypeExpr:
        """
        A ref is a name lookup; nullability of the referenced definition carries over.

        A ref that closes a cycle back into its own definition, outside of an
        array or map, is marked ``by_reference`` for targets that store
        aggregates inline.
        """
        closes_cycle = ctx.owner is not None and ctx.references.in_cycle_with(ctx.owner, node.ref)
        expr = TypeExpr.named(
            names.definition(node.ref),
            definition_name=node.ref,
            by_reference=closes_cycle and not ctx.in_container,
        )
        if ctx.references.is_nullable(node.ref):
            expr = self._apply_optionality(expr, may_be_absent=False, may_be_null=True)
        return expr

    def map_primitive(self, node: TypeNode, ctx: MappingContext) -> TypeExpr:
        """Map a primitive type, attaching a note when the mapping is inexact."""
        spelling = self.PRIMITIVE_MAP.get(node.type)
        if spelling is None:
            raise self._unsupported(node, ctx, f"Type {node.type.value} is not supported by {self.name}")

        notes: tuple[str, ...] = ()
        reason = self.LOSSY_PRIMITIVES.get(node.type)
        if reason:
            notes = (f"{node.path}: {node.type.value} mapped to {spelling} ({reason})",)
        return TypeExpr.primitive(spelling, notes)

    def _apply_optionality(self, expr: TypeExpr, may_be_absent: bool, may_be_null: bool) -> TypeExpr:
        """Wrap an expression in OPTIONAL, merging with an existing wrapper."""
        if expr.kind == TypeKind.OPTIONAL:
            return dataclasses.replace(
                expr,
                may_be_absent=expr.may_be_absent or may_be_absent,
                may_be_null=expr.may_be_null or may_be_null,
            )
        return TypeExpr.optional(expr, may_be_absent=may_be_absent, may_be_null=may_be_null)

    def _enum_declaration(self, node: EnumNode, names: NameTable) -> EnumDeclaration:
        return EnumDeclaration(
            name=names.type_name(node),
            source_path=node.path,
            description=node.description,
            members=tuple(EnumMember(name=names.enum_member(node, value), value=value) for value in node.values),
        )

    def _struct_declarations(
        self,
        node: PropertiesNode,
        names: NameTable,
        ctx: MappingContext,
        union: UnionDeclaration | None = None,
        tag_value: str | None = None,
    ) -> list[AuxDeclaration]:
        """The struct of a properties node followed by the declarations its fields introduce."""
        nested: list[AuxDeclaration] = []
        fields: list[FieldDeclaration] = []

        if union is not None:
            fields.append(
                FieldDeclaration(
                    name=names.field_name(node, union.tag_wire_name).identifier,
                    wire_name=union.tag_wire_name,
                    type_expr=TypeExpr.literal(tag_value or ""),
                    is_tag=True,
                    tag_value=tag_value,
                )
            )

        field_ctx = dataclasses.replace(ctx, in_container=False)
        for key, child, is_optional in node.fields():
            expr = self._map_node(child, names, field_ctx, nested)
            if is_optional:
                expr = self._apply_optionality(expr, may_be_absent=True, may_be_null=False)
            fields.append(
                FieldDeclaration(
                    name=names.field_name(node, key).identifier,
                    wire_name=key,
                    type_expr=expr,
                    required=not is_optional,
                    description=child.description,
                )
            )

        struct = StructDeclaration(
            name=names.type_name(node),
            source_path=node.path,
            description=node.description,
            fields=tuple(fields),
            base=union.name if union is not None else None,
            additional_properties=node.additional_properties,
        )
        return [struct, *nested]

    def _union_declarations(self, node: DiscriminatorNode, names: NameTable, ctx: MappingContext) -> list[AuxDeclaration]:
        """The union declaration, then one struct per branch carrying the literal tag."""
        tag = names.tag_field(node)
        union = UnionDeclaration(
            name=names.type_name(node),
            source_path=node.path,
            description=node.description,
            tag_name=tag.identifier,
            tag_wire_name=tag.original,
            variants=tuple(
                UnionVariant(tag_value=value, type_name=names.type_name(branch)) for value, branch in node.mapping.items()
            ),
        )

        declarations: list[AuxDeclaration] = [union]
        for value, branch in node.mapping.items():
            declarations.extend(self._struct_declarations(branch, names, ctx, union=union, tag_value=value))
        return declarations

    def _unsupported(self, node: SchemaNode, ctx: MappingContext, message: str | None = None) -> UnsupportedFormError:
        return UnsupportedFormError(
            message or f"Form {node.form.value} cannot be represented in {self.name}",
            path=node.path,
            definition_name=ctx.owner,
            form=node.form.value,
            target=self.name,
        )

    # Rendering

    @abstractmethod
    def render_type(self, expr: TypeExpr) -> str:
        """
        Translate a type expression to a target type string.

        Args:
            expr: The type expression

        Returns:
            Target type string
        """

    @abstractmethod
    def output_path(self, ctx: MappingContext) -> str:
        """Path of the single generated file, relative to the output directory."""

    def imports(self, declarations: tuple[AuxDeclaration, ...], ctx: MappingContext) -> list[str]:
        """Import lines needed by a group of declarations."""
        return []

    def declaration_context(self, decl: AuxDeclaration, ctx: MappingContext) -> dict[str, Any]:
        """Extra template variables for a declaration."""
        return {}

    def prefix_context(self, ctx: MappingContext) -> dict[str, Any]:
        """Extra template variables for the file prefix."""
        return {}

    def render_declaration(self, decl: AuxDeclaration, ctx: MappingContext) -> str:
        """Render one declaration through the template of its kind."""
        template = self.declaration_templates[decl.kind.value]
        return template.render(decl=decl, ctx=ctx, **self.declaration_context(decl, ctx)).strip("\n")

    def render_prefix(self, declarations: tuple[AuxDeclaration, ...], notes: tuple[str, ...], ctx: MappingContext) -> str:
        return self.prefix_template.render(
            generation_comment=ctx.generation_comment,
            imports=self.imports(declarations, ctx),
            notes=notes,
            ctx=ctx,
            **self.prefix_context(ctx),
        ).strip("\n")

    def render_files(self, result: BackendResult, ctx: MappingContext) -> list[RenderedFile]:
        """
        Render a mapped schema. Default: every declaration in one file.

        Args:
            result: Output of ``map_schema``
            ctx: Mapping context of the run

        Returns:
            Rendered files
        """
        ctx = dataclasses.replace(ctx, declared={decl.name: decl for decl in result.declarations})
        parts = [self.render_prefix(result.declarations, result.notes, ctx)]
        parts.extend(self.render_declaration(decl, ctx) for decl in result.declarations)
        content = self.DECLARATION_SEPARATOR.join(part for part in parts if part) + "\n"
        return [RenderedFile(path=self.output_path(ctx), content=content)]
