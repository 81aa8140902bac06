"""
Name resolver for generated identifiers.

Assigns every definition, every nested named type (enum, properties,
discriminator and each discriminator branch), every field and every enum
member an identifier that is valid for a target, following its naming rules.

Collisions are broken by appending a numeric suffix ("Foo", "Foo2",
"Foo3", ...) in first-seen order: definitions in table order, depth-first
within each definition, then the root. The same schema and rules always give
the same table.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ...utils import to_camel_case, to_pascal_case, to_screaming_snake_case, to_snake_case
from ..config import CaseConvention, NamingRules, SeparatorPolicy
from ..errors import NamingCollisionExhaustedError
from ..schema_ast.nodes import (
    DiscriminatorNode,
    ElementsNode,
    EmptyNode,
    EnumNode,
    PropertiesNode,
    RefNode,
    ResolvedSchema,
    SchemaNode,
    TypeNode,
    ValuesNode,
)

_CONVERTERS = {
    CaseConvention.PASCAL: to_pascal_case,
    CaseConvention.CAMEL: to_camel_case,
    CaseConvention.SNAKE: to_snake_case,
    CaseConvention.SCREAMING_SNAKE: to_screaming_snake_case,
}


def convert_case(text: str, convention: CaseConvention) -> str:
    """Convert text to a case convention; PRESERVE returns it unchanged."""
    if convention == CaseConvention.PRESERVE:
        return text
    return _CONVERTERS[convention](text)


@dataclass(frozen=True)
class FieldName:
    """A generated field identifier plus the original schema key."""

    identifier: str
    original: str


@dataclass
class NameTable:
    """Result of name resolution for one target."""

    # Identifier of the root type
    root: str = ""

    # Definition name -> identifier
    definitions: dict[str, str] = field(default_factory=dict)

    # Node path -> type identifier (enum, properties, discriminator nodes)
    types: dict[str, str] = field(default_factory=dict)

    # Properties node path -> schema key -> field name
    fields: dict[str, dict[str, FieldName]] = field(default_factory=dict)

    # Discriminator node path -> field name of its tag
    tag_fields: dict[str, FieldName] = field(default_factory=dict)

    # Enum node path -> value -> member identifier
    enum_members: dict[str, dict[str, str]] = field(default_factory=dict)

    def definition(self, name: str) -> str:
        return self.definitions[name]

    def type_name(self, node: SchemaNode) -> str:
        return self.types[node.path]

    def field_name(self, node: PropertiesNode, key: str) -> FieldName:
        return self.fields[node.path][key]

    def fields_of(self, node: PropertiesNode) -> dict[str, FieldName]:
        return self.fields.get(node.path, {})

    def tag_field(self, node: DiscriminatorNode) -> FieldName:
        return self.tag_fields[node.path]

    def enum_member(self, node: EnumNode, value: str) -> str:
        return self.enum_members[node.path][value]


class Namespace:
    """A set of taken identifiers with reserved-word escaping and suffixing."""

    def __init__(self, reserved: frozenset[str], escape_suffix: str, max_length: int | None):
        self.reserved = reserved
        self.escape_suffix = escape_suffix
        self.max_length = max_length
        self._taken: set[str] = set()

    def claim(self, base: str, path: str = "") -> str:
        """
        Reserve an identifier derived from base.

        Raises:
            NamingCollisionExhaustedError: If no suffix fits within max_length
        """
        base = self._truncate(base)
        if base in self.reserved:
            base = self._truncate(base + self.escape_suffix)

        candidate = base
        n = 2
        while candidate in self._taken or candidate in self.reserved:
            suffix = str(n)
            if self.max_length is not None:
                if len(suffix) >= self.max_length:
                    raise NamingCollisionExhaustedError(
                        f"Cannot derive a unique identifier from {base!r} within {self.max_length} characters",
                        path=path or None,
                    )
                candidate = base[: self.max_length - len(suffix)] + suffix
            else:
                candidate = base + suffix
            n += 1

        self._taken.add(candidate)
        return candidate

    def _truncate(self, name: str) -> str:
        if self.max_length is None:
            return name
        return name[: self.max_length]


class NameResolver:
    """Resolves identifiers for one target's naming rules."""

    def __init__(self, rules: NamingRules):
        """
        Initialize the resolver.

        Args:
            rules: Naming rules of the target language
        """
        self.rules = rules

    def assign_names(self, schema: ResolvedSchema, root_name: str = "Root") -> NameTable:
        """
        Assign identifiers to every named type, field and enum member.

        Args:
            schema: The resolved schema
            root_name: Name of the root type, before case conversion

        Returns:
            NameTable for the target
        """
        table = NameTable()
        types = self._namespace(self.rules.reserved_words)

        for name, node in schema.definitions.items():
            identifier = types.claim(self._type_identifier([name]), node.path)
            table.definitions[name] = identifier
            self._name_tree(node, [name], identifier, types, table)

        table.root = types.claim(self._type_identifier([root_name]), schema.root.path)
        self._name_tree(schema.root, [root_name], table.root, types, table)

        return table

    def _name_tree(
        self,
        top: SchemaNode,
        segments: list[str],
        top_identifier: str,
        types: Namespace,
        table: NameTable,
    ) -> None:
        """Name a definition body depth-first; the top node reuses the definition's identifier."""
        # (node, name segments, enclosing discriminator tag for branches)
        stack: list[tuple[SchemaNode, list[str], str | None]] = [(top, segments, None)]
        while stack:
            node, node_segments, branch_tag = stack.pop()

            match node:
                case EnumNode() | PropertiesNode() | DiscriminatorNode():
                    if node is top:
                        identifier = top_identifier
                    else:
                        identifier = types.claim(self._type_identifier(node_segments), node.path)
                    table.types[node.path] = identifier
                case EmptyNode() | RefNode() | TypeNode() | ElementsNode() | ValuesNode():
                    pass
                case _:
                    raise TypeError(f"Unknown schema node {type(node).__name__}")

            children: list[tuple[SchemaNode, list[str], str | None]] = []
            match node:
                case EnumNode():
                    self._name_enum_members(node, node_segments, types, table)
                case PropertiesNode():
                    self._name_fields(node, branch_tag, table)
                    children = [(child, [*node_segments, key], None) for key, child, _ in node.fields()]
                case DiscriminatorNode():
                    tag_identifier = self._namespace(self.rules.field_reserved).claim(
                        self._field_identifier(node.tag), node.path
                    )
                    table.tag_fields[node.path] = FieldName(tag_identifier, node.tag)
                    children = [(branch, [*node_segments, value], node.tag) for value, branch in node.mapping.items()]
                case ElementsNode():
                    children = [(node.elements, node_segments, None)]
                case ValuesNode():
                    children = [(node.values, node_segments, None)]

            stack.extend(reversed(children))

    def _name_fields(self, node: PropertiesNode, branch_tag: str | None, table: NameTable) -> None:
        """Name the fields of a properties node in their own namespace."""
        namespace = self._namespace(self.rules.field_reserved)
        names: dict[str, FieldName] = {}

        # A branch's tag field is taken first so properties never shadow it
        if branch_tag is not None:
            names[branch_tag] = FieldName(namespace.claim(self._field_identifier(branch_tag), node.path), branch_tag)

        for key in node.keys():
            names[key] = FieldName(namespace.claim(self._field_identifier(key), node.path), key)

        table.fields[node.path] = names

    def _name_enum_members(
        self,
        node: EnumNode,
        segments: list[str],
        types: Namespace,
        table: NameTable,
    ) -> None:
        """Name enum members, either per enum or qualified in the type namespace."""
        members: dict[str, str] = {}
        if self.rules.qualify_enum_members:
            for value in node.values:
                members[value] = types.claim(self._type_identifier([*segments, value], fallback="Empty"), node.path)
        else:
            namespace = self._namespace(self.rules.reserved_words)
            for value in node.values:
                identifier = self._make_identifier(value, self.rules.enum_member_case_convention, fallback="Empty")
                members[value] = namespace.claim(identifier, node.path)
        table.enum_members[node.path] = members

    def _namespace(self, reserved: frozenset[str]) -> Namespace:
        return Namespace(reserved, self.rules.escape_suffix, self.rules.max_identifier_length)

    def _type_identifier(self, segments: list[str], fallback: str = "Type") -> str:
        """Identifier of a type from its owner path segments."""
        convention = self.rules.case_convention
        if self.rules.separator_policy == SeparatorPolicy.UNDERSCORE:
            parts = [convert_case(s, convention) for s in segments]
            text = "_".join(p for p in parts if p)
        else:
            text = convert_case(" ".join(segments), convention)
        return self._finish(text, convention, fallback)

    def _field_identifier(self, key: str) -> str:
        return self._make_identifier(key, self.rules.field_case, fallback="field")

    def _make_identifier(self, text: str, convention: CaseConvention, fallback: str) -> str:
        return self._finish(convert_case(text, convention), convention, fallback)

    def _finish(self, identifier: str, convention: CaseConvention, fallback: str) -> str:
        """Apply fallback and leading-digit rules. PRESERVE keeps the schema spelling."""
        if convention == CaseConvention.PRESERVE:
            return identifier
        if not identifier:
            identifier = convert_case(fallback, convention)
        if identifier[0].isdigit():
            identifier = self.rules.leading_digit_prefix + identifier
        return identifier


def assign_names(schema: ResolvedSchema, rules: NamingRules, root_name: str = "Root") -> NameTable:
    """Assign identifiers for a target. See ``NameResolver.assign_names``."""
    return NameResolver(rules).assign_names(schema, root_name)
