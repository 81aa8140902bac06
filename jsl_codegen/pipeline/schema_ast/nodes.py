"""
IR node definitions for JSL schemas.

A schema node is exactly one of eight forms. The form set is closed: every
consumer (resolver, naming, backends) matches on all of them and fails
loudly on anything else.

Nodes are immutable once built. Nested nodes are owned by their parent;
self-reference only happens by name, through ``RefNode`` and the
definitions table of ``ResolvedSchema``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar


class Form(str, Enum):
    """The eight schema forms."""

    EMPTY = "empty"
    REF = "ref"
    TYPE = "type"
    ENUM = "enum"
    ELEMENTS = "elements"
    PROPERTIES = "properties"
    VALUES = "values"
    DISCRIMINATOR = "discriminator"


class PrimitiveType(str, Enum):
    """Primitive types of the type form."""

    BOOLEAN = "boolean"
    STRING = "string"
    TIMESTAMP = "timestamp"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    INT8 = "int8"
    UINT8 = "uint8"
    INT16 = "int16"
    UINT16 = "uint16"
    INT32 = "int32"
    UINT32 = "uint32"


_EMPTY: Mapping[str, Any] = MappingProxyType({})


def frozen_mapping(items: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    """Read-only, order-preserving copy of a mapping."""
    if not items:
        return _EMPTY
    return MappingProxyType(dict(items))


@dataclass(frozen=True)
class SchemaNode:
    """Base class for all IR nodes."""

    form: ClassVar[Form]

    # JSON pointer of the node in the source document (for error messages and node identity)
    path: str = "#"

    # Value may be null independently of its form
    nullable: bool = False

    # Set only on nodes registered under the root definitions table
    definition_name: str | None = None

    # Raw "metadata" object of the node
    metadata: Mapping[str, Any] = field(default_factory=frozen_mapping, compare=False)

    @property
    def description(self) -> str | None:
        value = self.metadata.get("description")
        return value if isinstance(value, str) else None

    def children(self) -> Iterator[SchemaNode]:
        """Directly owned nodes, in declaration order."""
        return iter(())


@dataclass(frozen=True)
class EmptyNode(SchemaNode):
    """Accepts any value."""

    form: ClassVar[Form] = Form.EMPTY


@dataclass(frozen=True)
class RefNode(SchemaNode):
    """Reference to a named definition. The target always exists."""

    form: ClassVar[Form] = Form.REF

    ref: str = ""


@dataclass(frozen=True)
class TypeNode(SchemaNode):
    """A primitive type."""

    form: ClassVar[Form] = Form.TYPE

    type: PrimitiveType = PrimitiveType.STRING


@dataclass(frozen=True)
class EnumNode(SchemaNode):
    """A closed set of string values, unique, in declaration order."""

    form: ClassVar[Form] = Form.ENUM

    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class ElementsNode(SchemaNode):
    """A homogeneous array."""

    form: ClassVar[Form] = Form.ELEMENTS

    elements: SchemaNode = field(default_factory=EmptyNode)

    def children(self) -> Iterator[SchemaNode]:
        yield self.elements


@dataclass(frozen=True)
class PropertiesNode(SchemaNode):
    """A fixed-shape object. Required and optional keys are disjoint."""

    form: ClassVar[Form] = Form.PROPERTIES

    required: Mapping[str, SchemaNode] = field(default_factory=frozen_mapping)
    optional: Mapping[str, SchemaNode] = field(default_factory=frozen_mapping)

    # Whether keys other than the declared ones are tolerated
    additional_properties: bool = False

    def fields(self) -> Iterator[tuple[str, SchemaNode, bool]]:
        """(key, node, is_optional) for required then optional properties."""
        for key, node in self.required.items():
            yield key, node, False
        for key, node in self.optional.items():
            yield key, node, True

    def keys(self) -> list[str]:
        return [*self.required, *self.optional]

    def children(self) -> Iterator[SchemaNode]:
        yield from self.required.values()
        yield from self.optional.values()


@dataclass(frozen=True)
class ValuesNode(SchemaNode):
    """A string-keyed map with homogeneous values."""

    form: ClassVar[Form] = Form.VALUES

    values: SchemaNode = field(default_factory=EmptyNode)

    def children(self) -> Iterator[SchemaNode]:
        yield self.values


@dataclass(frozen=True)
class DiscriminatorNode(SchemaNode):
    """A tagged union. Each branch is a properties node not declaring the tag."""

    form: ClassVar[Form] = Form.DISCRIMINATOR

    tag: str = ""
    mapping: Mapping[str, PropertiesNode] = field(default_factory=frozen_mapping)

    def children(self) -> Iterator[SchemaNode]:
        yield from self.mapping.values()


# Forms that always produce a named declaration of their own
NAMED_FORMS = frozenset({Form.ENUM, Form.PROPERTIES, Form.DISCRIMINATOR})


def is_named_form(node: SchemaNode) -> bool:
    return node.form in NAMED_FORMS


@dataclass(frozen=True)
class ResolvedSchema:
    """Root of the IR: the definitions table plus the root node."""

    # Definition name -> node, in declaration order
    definitions: Mapping[str, SchemaNode] = field(default_factory=frozen_mapping)

    root: SchemaNode = field(default_factory=EmptyNode)

    def definition(self, name: str) -> SchemaNode:
        """Get a definition by name. Raises KeyError for unknown names."""
        return self.definitions[name]

    def walk(self) -> Iterator[SchemaNode]:
        """Depth-first pre-order over every node: definitions in order, then the root."""
        for node in [*self.definitions.values(), self.root]:
            stack = [node]
            while stack:
                current = stack.pop()
                yield current
                stack.extend(reversed(list(current.children())))

    def references(self) -> Iterator[RefNode]:
        """Every ref node, in walk order."""
        for node in self.walk():
            if isinstance(node, RefNode):
                yield node
