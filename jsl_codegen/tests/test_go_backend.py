"""
Tests for the Go backend.
"""

from __future__ import annotations

import pytest

from jsl_codegen.pipeline import CodeGeneratorConfig, PipelineGenerator, TargetConfig

SHAPE = {
    "discriminator": "kind",
    "mapping": {
        "circle": {"properties": {"radius": {"type": "float64"}}},
        "square": {"properties": {"side": {"type": "float64"}}},
    },
}


def _generate(schema, class_name="Root", **target):
    config = CodeGeneratorConfig(add_generation_comment=False)
    config.targets["go"] = TargetConfig(**target)
    return PipelineGenerator(class_name, schema, config, ["go"]).generate("go")


class TestStructs:
    """Structs, fields and JSON tags"""

    def test_minimal_object(self):
        code = _generate({"properties": {"name": {"type": "string"}}}, "User")
        assert code == 'package user\n\ntype User struct {\n\tName string `json:"name"`\n}\n'

    def test_optional_and_nullable(self):
        code = _generate(
            {
                "properties": {"a": {"type": "string", "nullable": True}},
                "optionalProperties": {"b": {"type": "string"}, "c": {"type": "int32", "nullable": True}},
            }
        )
        assert '\tA *string `json:"a"`\n' in code
        assert '\tB *string `json:"b,omitempty"`\n' in code
        assert '\tC *int32 `json:"c,omitempty"`\n' in code

    def test_nilable_types_are_not_pointers(self):
        code = _generate(
            {
                "properties": {
                    "tags": {"elements": {"type": "string"}, "nullable": True},
                    "extra": {"values": {"type": "string"}, "nullable": True},
                },
                "optionalProperties": {"data": {}},
            }
        )
        assert '\tTags []string `json:"tags"`' in code
        assert '\tExtra map[string]string `json:"extra"`' in code
        assert '\tData interface{} `json:"data,omitempty"`' in code

    def test_exact_integer_widths(self):
        code = _generate(
            {
                "properties": {
                    "a": {"type": "int8"},
                    "b": {"type": "uint16"},
                    "c": {"type": "uint32"},
                    "d": {"type": "float32"},
                }
            }
        )
        assert "\tA int8 " in code
        assert "\tB uint16 " in code
        assert "\tC uint32 " in code
        assert "\tD float32 " in code
        assert "Note:" not in code

    def test_timestamp_imports_time(self):
        code = _generate({"properties": {"created": {"type": "timestamp"}}})
        assert 'import (\n\t"time"\n)' in code
        assert '\tCreated time.Time `json:"created"`' in code

    def test_renamed_field_keeps_wire_key(self):
        code = _generate({"properties": {"first-name": {"type": "string"}, "type": {"type": "string"}}})
        assert '\tFirstName string `json:"first-name"`' in code
        assert '\tType string `json:"type"`' in code

    def test_descriptions(self):
        code = _generate(
            {
                "metadata": {"description": "A user"},
                "properties": {"name": {"type": "string", "metadata": {"description": "Full name"}}},
            },
            "User",
        )
        assert "// A user\ntype User struct {" in code
        assert "\t// Full name\n\tName string" in code


class TestRecursion:
    """Recursive definitions need indirection"""

    def test_direct_recursive_field_is_pointer(self):
        code = _generate(
            {
                "definitions": {
                    "node": {
                        "properties": {"value": {"type": "int32"}, "children": {"elements": {"ref": "node"}}},
                        "optionalProperties": {"next": {"ref": "node"}, "parent": {"ref": "node", "nullable": True}},
                    },
                    "list": {"properties": {"head": {"ref": "node"}}},
                },
                "ref": "list",
            }
        )
        assert '\tChildren []Node `json:"children"`' in code
        assert '\tNext *Node `json:"next,omitempty"`' in code
        assert '\tParent *Node `json:"parent,omitempty"`' in code
        assert '\tHead Node `json:"head"`' in code
        assert "type Root = List" in code

    def test_required_self_reference(self):
        code = _generate({"definitions": {"node": {"properties": {"self": {"ref": "node"}}}}, "ref": "node"})
        assert '\tSelf *Node `json:"self"`' in code


class TestEnumsAndAliases:
    """Enums as typed string constants, aliases as defined types"""

    def test_enum(self):
        code = _generate({"definitions": {"status": {"enum": ["on", "off"]}}, "properties": {"status": {"ref": "status"}}})
        assert 'type Status string\n\nconst (\n\tStatusOn Status = "on"\n\tStatusOff Status = "off"\n)' in code
        assert '\tStatus Status `json:"status"`' in code

    def test_nested_enum(self):
        code = _generate({"properties": {"level": {"enum": ["low", "high"]}}})
        assert '\tRootLevelLow RootLevel = "low"' in code
        assert '\tLevel RootLevel `json:"level"`' in code

    def test_defined_type_and_alias(self):
        code = _generate(
            {
                "definitions": {"id": {"type": "string"}, "a": {"ref": "b"}, "b": {"properties": {}}},
                "values": {"elements": {"ref": "id"}},
            }
        )
        assert "type Id string" in code
        assert "type A = B" in code
        assert "type B struct {\n}" in code
        assert "type Root map[string][]Id" in code


class TestUnions:
    """Discriminators become a wrapper struct with custom JSON methods"""

    def test_wrapper(self):
        code = _generate(SHAPE, "Shape")

        assert 'import (\n\t"encoding/json"\n\t"fmt"\n)' in code
        assert "type Shape struct {\n\tKind string\n\n\t// One of: ShapeCircle, ShapeSquare\n\tValue isShape\n}" in code
        assert "type isShape interface {\n\tisShape()\n}" in code
        assert "func (ShapeCircle) isShape() {}" in code
        assert "func (ShapeSquare) isShape() {}" in code

    def test_branch_structs_omit_tag(self):
        code = _generate(SHAPE, "Shape")
        assert 'type ShapeCircle struct {\n\tRadius float64 `json:"radius"`\n}' in code
        assert 'json:"kind"`\n\t\t\tShapeCircle\n' in code

    def test_marshalling(self):
        code = _generate(SHAPE, "Shape")

        assert "func (v Shape) MarshalJSON() ([]byte, error) {" in code
        assert '}{"circle", value})' in code
        assert "func (v *Shape) UnmarshalJSON(b []byte) error {" in code
        assert '\tcase "square":\n\t\tvar value ShapeSquare\n' in code
        assert 'return fmt.Errorf("Shape: bad kind value: %q", t.Tag)' in code
        assert "\tv.Kind = t.Tag\n" in code

    def test_tag_named_value(self):
        code = _generate({"discriminator": "value", "mapping": {"a": {"properties": {}}}}, "Box")
        assert "\tValue string\n" in code
        assert "\tVariant isBox\n" in code

    def test_tag_field_follows_naming_rules(self):
        code = _generate(SHAPE, "Shape", naming={"reserved_words": ["Kind"]})

        assert "type Shape struct {\n\tKind_ string\n" in code
        assert "\tv.Kind_ = t.Tag\n" in code


class TestPackage:
    """Package and file names"""

    @pytest.mark.parametrize(
        "target, package",
        [
            ({}, "user_profile"),
            ({"out_dir": "/tmp/out/models"}, "models"),
            ({"out_dir": "/tmp/out/models", "package": "My-Pkg"}, "mypkg"),
            ({"out_dir": "3d"}, "schema3d"),
        ],
    )
    def test_package_name(self, target, package):
        config = CodeGeneratorConfig(add_generation_comment=False)
        config.targets["go"] = TargetConfig(**target)
        results = PipelineGenerator("UserProfile", {"properties": {}}, config, ["go"]).run()

        files = results["go"].files
        assert [f.path for f in files] == [f"{package}.go"]
        assert files[0].content.startswith(f"package {package}\n")

    def test_generation_comment_before_package(self):
        code = PipelineGenerator("Root", {"properties": {}}, None, ["golang"]).generate("golang")
        assert code.startswith("// Generated by jsl_codegen v0.1.0 : jsl_codegen\n\npackage root\n")
