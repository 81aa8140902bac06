"""
Schema resolver: raw JSON tree -> IR.

Phase 1 of the pipeline. Validates the document against the eight-form
grammar, checks that every ref names an existing definition and builds the
immutable ``ResolvedSchema``. Refs are only checked by name, never
dereferenced: expanding them is unbounded for recursive schemas, so that is
left to the mapping stage, one name lookup at a time.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..errors import SchemaError
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
    frozen_mapping,
)

# Keywords allowed on every node
COMMON_KEYWORDS = frozenset({"nullable", "metadata"})

# Keywords that select a form, and the keywords each form accepts
FORM_KEYWORDS: dict[Form, frozenset[str]] = {
    Form.REF: frozenset({"ref"}),
    Form.TYPE: frozenset({"type"}),
    Form.ENUM: frozenset({"enum"}),
    Form.ELEMENTS: frozenset({"elements"}),
    Form.PROPERTIES: frozenset({"properties", "optionalProperties", "additionalProperties"}),
    Form.VALUES: frozenset({"values"}),
    Form.DISCRIMINATOR: frozenset({"discriminator", "mapping"}),
}

_FORM_SELECTORS: dict[Form, frozenset[str]] = {
    Form.REF: frozenset({"ref"}),
    Form.TYPE: frozenset({"type"}),
    Form.ENUM: frozenset({"enum"}),
    Form.ELEMENTS: frozenset({"elements"}),
    Form.PROPERTIES: frozenset({"properties", "optionalProperties"}),
    Form.VALUES: frozenset({"values"}),
    Form.DISCRIMINATOR: frozenset({"discriminator"}),
}

PRIMITIVE_TYPES = {t.value: t for t in PrimitiveType}


def _pointer(path: str, *segments: str) -> str:
    """Extend a JSON pointer, escaping '~' and '/' in segments."""
    escaped = (s.replace("~", "~0").replace("/", "~1") for s in segments)
    return "/".join([path, *escaped])


class SchemaParser:
    """Builds the IR from a parsed schema document.

    One parser per document: the set of known definition names is gathered
    by ``resolve`` and only lives as long as the parser.
    """

    def __init__(self) -> None:
        self._definition_names: frozenset[str] = frozenset()

    def resolve(self, document: Any) -> ResolvedSchema:
        """
        Validate a raw schema document and build the IR.

        Args:
            document: The parsed JSON tree of the schema

        Returns:
            ResolvedSchema with every definition and the root node

        Raises:
            SchemaError: On any structural error or broken invariant
        """
        if not isinstance(document, Mapping):
            raise SchemaError("Schema must be a JSON object", path="#")

        raw_definitions = document.get("definitions", {})
        if not isinstance(raw_definitions, Mapping):
            raise SchemaError("'definitions' must be an object", path="#/definitions")

        # Pre-pass: gather names so forward references are legal
        self._definition_names = frozenset(raw_definitions)

        definitions = {}
        for name, raw in raw_definitions.items():
            definitions[name] = self._parse_node(raw, _pointer("#", "definitions", name), definition_name=name)

        root = self._parse_node(document, "#", is_root=True)

        return ResolvedSchema(
            definitions=frozen_mapping(definitions),
            root=root,
        )

    def _parse_node(
        self,
        raw: Any,
        path: str,
        definition_name: str | None = None,
        is_root: bool = False,
    ) -> SchemaNode:
        """
        Parse one schema node recursively.

        Args:
            raw: The raw schema object
            path: JSON pointer of the node (for error messages)
            definition_name: Set for nodes directly under the definitions table
            is_root: Whether this is the document root (may carry definitions)

        Returns:
            The node of the matching form
        """
        if not isinstance(raw, Mapping):
            raise SchemaError("Schema must be a JSON object", path=path, definition_name=definition_name)

        form = self._detect_form(raw, path, definition_name)

        allowed = COMMON_KEYWORDS | FORM_KEYWORDS.get(form, frozenset())
        if is_root:
            allowed = allowed | {"definitions"}
        unknown = sorted(set(raw) - allowed)
        if unknown:
            if "definitions" in unknown:
                raise SchemaError("'definitions' is only allowed at the root", path=path, definition_name=definition_name)
            raise SchemaError(
                f"Unexpected keyword(s) {', '.join(repr(k) for k in unknown)}",
                path=path,
                definition_name=definition_name,
                form=form.value,
            )

        nullable = raw.get("nullable", False)
        if not isinstance(nullable, bool):
            raise SchemaError("'nullable' must be a boolean", path=path, definition_name=definition_name)

        metadata = raw.get("metadata", {})
        if not isinstance(metadata, Mapping):
            raise SchemaError("'metadata' must be an object", path=path, definition_name=definition_name)

        common = {
            "path": path,
            "nullable": nullable,
            "definition_name": definition_name,
            "metadata": frozen_mapping(metadata),
        }

        match form:
            case Form.EMPTY:
                return EmptyNode(**common)
            case Form.REF:
                return self._parse_ref(raw, common)
            case Form.TYPE:
                return self._parse_type(raw, common)
            case Form.ENUM:
                return self._parse_enum(raw, common)
            case Form.ELEMENTS:
                return ElementsNode(elements=self._parse_node(raw["elements"], _pointer(path, "elements")), **common)
            case Form.PROPERTIES:
                return self._parse_properties(raw, common)
            case Form.VALUES:
                return ValuesNode(values=self._parse_node(raw["values"], _pointer(path, "values")), **common)
            case Form.DISCRIMINATOR:
                return self._parse_discriminator(raw, common)
            case _:
                raise SchemaError(f"Unknown form {form}", path=path, definition_name=definition_name)

    def _detect_form(self, raw: Mapping[str, Any], path: str, definition_name: str | None) -> Form:
        """Find the single form selected by the keywords of a node."""
        forms = [form for form, selectors in _FORM_SELECTORS.items() if selectors & raw.keys()]
        if len(forms) > 1:
            names = ", ".join(form.value for form in forms)
            raise SchemaError(f"Keywords of several forms used together ({names})", path=path, definition_name=definition_name)
        if forms:
            return forms[0]

        # Companion keywords without their form keyword
        if "additionalProperties" in raw:
            raise SchemaError("'additionalProperties' requires 'properties' or 'optionalProperties'", path=path, definition_name=definition_name)
        if "mapping" in raw:
            raise SchemaError("'mapping' requires 'discriminator'", path=path, definition_name=definition_name)
        return Form.EMPTY

    def _parse_ref(self, raw: Mapping[str, Any], common: dict[str, Any]) -> RefNode:
        """Parse a ref node, checking that the definition exists."""
        ref = raw["ref"]
        if not isinstance(ref, str):
            raise SchemaError("'ref' must be a string", path=common["path"], definition_name=common["definition_name"], form=Form.REF.value)
        if ref not in self._definition_names:
            raise SchemaError(f"Reference to undefined definition '{ref}'", path=common["path"], definition_name=common["definition_name"], form=Form.REF.value)
        return RefNode(ref=ref, **common)

    def _parse_type(self, raw: Mapping[str, Any], common: dict[str, Any]) -> TypeNode:
        """Parse a primitive type node."""
        type_name = raw["type"]
        if not isinstance(type_name, str) or type_name not in PRIMITIVE_TYPES:
            raise SchemaError(
                f"Unknown type {type_name!r}, expected one of {', '.join(PRIMITIVE_TYPES)}",
                path=common["path"],
                definition_name=common["definition_name"],
                form=Form.TYPE.value,
            )
        return TypeNode(type=PRIMITIVE_TYPES[type_name], **common)

    def _parse_enum(self, raw: Mapping[str, Any], common: dict[str, Any]) -> EnumNode:
        """Parse an enum node: a non-empty list of unique strings."""
        values = raw["enum"]
        context = {"path": common["path"], "definition_name": common["definition_name"], "form": Form.ENUM.value}
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise SchemaError("'enum' must be an array of strings", **context)
        if not values:
            raise SchemaError("'enum' must not be empty", **context)

        seen = set()
        for value in values:
            if value in seen:
                raise SchemaError(f"Duplicate enum value {value!r}", **context)
            seen.add(value)

        return EnumNode(values=tuple(values), **common)

    def _parse_properties(self, raw: Mapping[str, Any], common: dict[str, Any]) -> PropertiesNode:
        """Parse a properties node; required and optional keys must be disjoint."""
        path = common["path"]
        context = {"path": path, "definition_name": common["definition_name"], "form": Form.PROPERTIES.value}

        raw_required = raw.get("properties", {})
        raw_optional = raw.get("optionalProperties", {})
        if not isinstance(raw_required, Mapping):
            raise SchemaError("'properties' must be an object", **context)
        if not isinstance(raw_optional, Mapping):
            raise SchemaError("'optionalProperties' must be an object", **context)

        overlap = [key for key in raw_required if key in raw_optional]
        if overlap:
            keys = ", ".join(repr(k) for k in overlap)
            raise SchemaError(f"Key(s) {keys} declared in both 'properties' and 'optionalProperties'", **context)

        additional = raw.get("additionalProperties", False)
        if not isinstance(additional, bool):
            raise SchemaError("'additionalProperties' must be a boolean", **context)

        required = {key: self._parse_node(value, _pointer(path, "properties", key)) for key, value in raw_required.items()}
        optional = {key: self._parse_node(value, _pointer(path, "optionalProperties", key)) for key, value in raw_optional.items()}

        return PropertiesNode(
            required=frozen_mapping(required),
            optional=frozen_mapping(optional),
            additional_properties=additional,
            **common,
        )

    def _parse_discriminator(self, raw: Mapping[str, Any], common: dict[str, Any]) -> DiscriminatorNode:
        """Parse a discriminator node; every branch must be a non-nullable properties form without the tag."""
        path = common["path"]
        context = {"path": path, "definition_name": common["definition_name"], "form": Form.DISCRIMINATOR.value}

        tag = raw["discriminator"]
        if not isinstance(tag, str):
            raise SchemaError("'discriminator' must be a string", **context)

        raw_mapping = raw.get("mapping")
        if not isinstance(raw_mapping, Mapping):
            raise SchemaError("'discriminator' requires a 'mapping' object", **context)
        if not raw_mapping:
            raise SchemaError("'mapping' must not be empty", **context)

        mapping = {}
        for value, raw_branch in raw_mapping.items():
            branch_path = _pointer(path, "mapping", value)
            branch = self._parse_node(raw_branch, branch_path)
            branch_context = {"path": branch_path, "definition_name": common["definition_name"], "form": branch.form.value}

            if not isinstance(branch, PropertiesNode):
                raise SchemaError(f"Discriminator branch {value!r} must be of the properties form", **branch_context)
            if branch.nullable:
                raise SchemaError(f"Discriminator branch {value!r} must not be nullable", **branch_context)
            if tag in branch.required or tag in branch.optional:
                raise SchemaError(f"Discriminator branch {value!r} redeclares the tag property {tag!r}", **branch_context)
            mapping[value] = branch

        return DiscriminatorNode(tag=tag, mapping=frozen_mapping(mapping), **common)


def resolve(document: Any) -> ResolvedSchema:
    """Resolve a raw schema document into the IR. See ``SchemaParser.resolve``."""
    return SchemaParser().resolve(document)


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    """``object_pairs_hook`` that refuses duplicate object keys."""
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise SchemaError(f"Duplicate object key {key!r}")
        result[key] = value
    return result


def load_schema(text: str | bytes) -> Any:
    """
    Parse JSON schema text, rejecting duplicate object keys.

    Raises:
        SchemaError: If the text is not valid JSON or repeats a key
    """
    try:
        return json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON: {e}") from e
