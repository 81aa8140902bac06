"""
Tests for name resolution: identifiers for types, fields and enum members.
"""

from __future__ import annotations

import pytest

from jsl_codegen.pipeline.analyzer import Namespace, assign_names, convert_case
from jsl_codegen.pipeline.backends import GoBackend, JavaBackend, PythonBackend, TypeScriptBackend
from jsl_codegen.pipeline.config import CaseConvention, NamingRules, SeparatorPolicy
from jsl_codegen.pipeline.errors import NamingCollisionExhaustedError
from jsl_codegen.pipeline.schema_ast import resolve
from jsl_codegen.utils import split_words, to_camel_case, to_pascal_case, to_screaming_snake_case, to_snake_case

PASCAL = NamingRules()


class TestCaseConversion:
    """Word splitting and case helpers"""

    @pytest.mark.parametrize(
        "text, words",
        [
            ("first_name", ["first", "name"]),
            ("firstName", ["first", "Name"]),
            ("HTTPServer", ["HTTP", "Server"]),
            ("userId2", ["user", "Id2"]),
            ("in-progress", ["in", "progress"]),
            ("", []),
        ],
    )
    def test_split_words(self, text, words):
        assert split_words(text) == words

    def test_conversions(self):
        assert to_pascal_case("first_name") == "FirstName"
        assert to_camel_case("first_name") == "firstName"
        assert to_snake_case("firstName") == "first_name"
        assert to_screaming_snake_case("firstName") == "FIRST_NAME"
        assert convert_case("first-name", CaseConvention.PRESERVE) == "first-name"
        assert convert_case("first-name", CaseConvention.PASCAL) == "FirstName"


class TestTypeNames:
    """Definitions and nested named types"""

    def test_definition_and_root(self):
        schema = resolve({"definitions": {"user_profile": {"properties": {}}}, "ref": "user_profile"})
        names = assign_names(schema, PASCAL, "root")

        assert names.definition("user_profile") == "UserProfile"
        assert names.root == "Root"
        assert names.type_name(schema.definition("user_profile")) == "UserProfile"

    def test_nested_types_named_from_owner_path(self):
        schema = resolve(
            {
                "properties": {
                    "address": {"properties": {"city": {"type": "string"}}},
                    "tags": {"elements": {"enum": ["a", "b"]}},
                    "extra": {"values": {"properties": {}}},
                }
            }
        )
        names = assign_names(schema, PASCAL, "User")

        root = schema.root
        assert names.type_name(root) == "User"
        assert names.type_name(root.required["address"]) == "UserAddress"
        assert names.type_name(root.required["tags"].elements) == "UserTags"
        assert names.type_name(root.required["extra"].values) == "UserExtra"

    def test_discriminator_branches(self):
        schema = resolve(
            {
                "definitions": {
                    "shape": {
                        "discriminator": "kind",
                        "mapping": {"circle": {"properties": {}}, "square": {"properties": {}}},
                    }
                }
            }
        )
        names = assign_names(schema, PASCAL)

        shape = schema.definition("shape")
        assert names.type_name(shape) == "Shape"
        assert names.type_name(shape.mapping["circle"]) == "ShapeCircle"
        assert names.type_name(shape.mapping["square"]) == "ShapeSquare"

    def test_underscore_separator(self):
        rules = NamingRules(separator_policy=SeparatorPolicy.UNDERSCORE)
        schema = resolve({"properties": {"home_address": {"properties": {}}}})
        names = assign_names(schema, rules, "User")
        assert names.type_name(schema.root.required["home_address"]) == "User_HomeAddress"

    def test_every_named_node_gets_one_identifier(self):
        schema = resolve(
            {
                "definitions": {
                    "a": {"properties": {"b": {"enum": ["x"]}, "c": {"elements": {"properties": {}}}}},
                    "d": {"discriminator": "t", "mapping": {"e": {"properties": {"f": {"properties": {}}}}}},
                },
                "properties": {"g": {"ref": "a"}},
            }
        )
        names = assign_names(schema, PASCAL)

        named = [node for node in schema.walk() if node.form.value in ("enum", "properties", "discriminator")]
        identifiers = [names.type_name(node) for node in named]
        assert len(identifiers) == len(named)
        assert len(set(identifiers)) == len(identifiers)


class TestCollisions:
    """Numeric suffixes in first-seen order"""

    def test_suffix_in_definition_order(self):
        schema = resolve({"definitions": {"user": {}, "User": {}, "USER": {}}})
        names = assign_names(schema, PASCAL)

        assert names.definition("user") == "User"
        assert names.definition("User") == "User2"
        assert names.definition("USER") == "User3"

    def test_root_named_last(self):
        schema = resolve({"definitions": {"Root": {"properties": {}}}, "ref": "Root"})
        names = assign_names(schema, PASCAL, "Root")

        assert names.definition("Root") == "Root"
        assert names.root == "Root2"

    def test_nested_type_collides_with_definition(self):
        schema = resolve(
            {
                "definitions": {"user_address": {"properties": {}}},
                "properties": {"address": {"properties": {}}},
            }
        )
        names = assign_names(schema, PASCAL, "User")
        assert names.type_name(schema.root.required["address"]) == "UserAddress2"

    def test_field_collisions_per_struct(self):
        schema = resolve({"properties": {"first_name": {}, "firstName": {}}, "optionalProperties": {"FirstName": {}}})
        names = assign_names(schema, PythonBackend.default_naming_rules())

        fields = names.fields_of(schema.root)
        assert [f.identifier for f in fields.values()] == ["first_name", "first_name2", "first_name3"]
        assert [f.original for f in fields.values()] == ["first_name", "firstName", "FirstName"]

    def test_fields_do_not_collide_with_types(self):
        schema = resolve({"properties": {"user": {"properties": {}}}})
        names = assign_names(schema, PASCAL, "User")

        assert names.root == "User"
        assert names.field_name(schema.root, "user").identifier == "User"

    def test_branch_reserves_tag_field(self):
        schema = resolve({"discriminator": "kind", "mapping": {"a": {"properties": {"Kind": {"type": "string"}}}}})
        names = assign_names(schema, PythonBackend.default_naming_rules())

        branch = schema.root.mapping["a"]
        assert names.field_name(branch, "kind").identifier == "kind"
        assert names.field_name(branch, "Kind").identifier == "kind2"
        assert names.tag_field(schema.root).original == "kind"


class TestReservedWords:
    """Reserved words are escaped with the target's suffix"""

    def test_type_escaped(self):
        schema = resolve({"definitions": {"date": {"type": "timestamp"}}})
        names = assign_names(schema, TypeScriptBackend.default_naming_rules())
        assert names.definition("date") == "Date_"

    def test_field_escaped(self):
        schema = resolve({"properties": {"class": {"type": "string"}, "from": {"type": "string"}}})
        names = assign_names(schema, PythonBackend.default_naming_rules())

        assert names.field_name(schema.root, "class").identifier == "class_"
        assert names.field_name(schema.root, "from").identifier == "from_"

    def test_java_field_keyword(self):
        schema = resolve({"properties": {"default": {"type": "string"}}})
        names = assign_names(schema, JavaBackend.default_naming_rules())
        assert names.field_name(schema.root, "default").identifier == "default_"

    def test_custom_escape_suffix(self):
        rules = NamingRules(reserved_words=frozenset({"Item"}), escape_suffix="Type")
        schema = resolve({"definitions": {"item": {}}})
        assert assign_names(schema, rules).definition("item") == "ItemType"

    def test_leading_digit(self):
        schema = resolve({"properties": {"3d": {"type": "boolean"}}})
        names = assign_names(schema, GoBackend.default_naming_rules())
        assert names.field_name(schema.root, "3d").identifier == "N3D"

    def test_typescript_fields_keep_wire_keys(self):
        schema = resolve({"properties": {"first-name": {"type": "string"}, "class": {"type": "string"}}})
        names = assign_names(schema, TypeScriptBackend.default_naming_rules())

        assert names.field_name(schema.root, "first-name").identifier == "first-name"
        assert names.field_name(schema.root, "class").identifier == "class"

    def test_tag_field_escaped(self):
        schema = resolve({"discriminator": "class", "mapping": {"a": {"properties": {}}}})
        names = assign_names(schema, PythonBackend.default_naming_rules())

        assert names.tag_field(schema.root).identifier == "class_"
        assert names.field_name(schema.root.mapping["a"], "class").identifier == "class_"

    def test_tag_field_custom_reserved(self):
        rules = NamingRules(reserved_words=frozenset({"Type"}))
        schema = resolve({"discriminator": "type", "mapping": {"a": {"properties": {}}}})
        names = assign_names(schema, rules)

        assert names.tag_field(schema.root).identifier == "Type_"
        assert names.tag_field(schema.root).original == "type"


class TestEnumMembers:
    """Enum member identifiers"""

    def test_screaming_snake(self):
        schema = resolve({"enum": ["in-progress", "done", ""]})
        names = assign_names(schema, JavaBackend.default_naming_rules())

        assert names.enum_member(schema.root, "in-progress") == "IN_PROGRESS"
        assert names.enum_member(schema.root, "done") == "DONE"
        assert names.enum_member(schema.root, "") == "EMPTY"

    def test_member_collisions(self):
        schema = resolve({"enum": ["a-b", "a_b", "A B"]})
        names = assign_names(schema, JavaBackend.default_naming_rules())
        assert [names.enum_member(schema.root, v) for v in schema.root.values] == ["A_B", "A_B2", "A_B3"]

    def test_qualified_members(self):
        schema = resolve({"definitions": {"status": {"enum": ["active", "inactive"]}}})
        names = assign_names(schema, GoBackend.default_naming_rules())

        status = schema.definition("status")
        assert names.enum_member(status, "active") == "StatusActive"
        assert names.enum_member(status, "inactive") == "StatusInactive"

    def test_qualified_members_share_type_namespace(self):
        schema = resolve({"definitions": {"status": {"enum": ["active"]}, "status_active": {"properties": {}}}})
        names = assign_names(schema, GoBackend.default_naming_rules())

        assert names.enum_member(schema.definition("status"), "active") == "StatusActive"
        assert names.definition("status_active") == "StatusActive2"


class TestLengthLimit:
    """max_identifier_length truncates and suffixes within the limit"""

    def test_truncated(self):
        rules = NamingRules(max_identifier_length=4)
        schema = resolve({"definitions": {"long_name": {}, "long_name_x": {}}})
        names = assign_names(schema, rules)

        assert names.definition("long_name") == "Long"
        assert names.definition("long_name_x") == "Lon2"

    def test_tag_field_truncated(self):
        rules = NamingRules(max_identifier_length=4)
        schema = resolve({"discriminator": "category", "mapping": {"a": {"properties": {}}}})
        names = assign_names(schema, rules)

        assert names.tag_field(schema.root).identifier == "Cate"
        assert names.field_name(schema.root.mapping["a"], "category").identifier == "Cate"

    def test_exhausted(self):
        rules = NamingRules(max_identifier_length=1)
        schema = resolve({"definitions": {"a": {}, "A": {}}})

        with pytest.raises(NamingCollisionExhaustedError) as exc_info:
            assign_names(schema, rules)
        assert exc_info.value.path == "#/definitions/A"

    def test_namespace_claim(self):
        namespace = Namespace(frozenset({"int"}), "_", None)
        assert namespace.claim("int") == "int_"
        assert namespace.claim("int_") == "int_2"
        assert namespace.claim("value") == "value"
        assert namespace.claim("value") == "value2"


class TestDeterminism:
    """Same schema and rules give the same table"""

    SCHEMA = {
        "definitions": {
            "node": {"properties": {"next": {"ref": "node", "nullable": True}, "kind": {"enum": ["a", "b"]}}},
            "event": {"discriminator": "type", "mapping": {"click": {"properties": {"x": {"type": "int32"}}}}},
        },
        "properties": {"head": {"ref": "node"}, "events": {"elements": {"ref": "event"}}},
    }

    @pytest.mark.parametrize("backend", [TypeScriptBackend, GoBackend, JavaBackend, PythonBackend])
    def test_repeatable(self, backend):
        rules = backend.default_naming_rules()
        first = assign_names(resolve(self.SCHEMA), rules, "Document")
        second = assign_names(resolve(self.SCHEMA), rules, "Document")
        assert first == second

    def test_name_round_trip(self):
        schema = resolve(self.SCHEMA)
        names = assign_names(schema, PythonBackend.default_naming_rules(), "Document")

        for node in schema.walk():
            if node.form.value != "properties":
                continue
            for key in node.keys():
                assert names.field_name(node, key).original == key
