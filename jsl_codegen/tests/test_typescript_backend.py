"""
Tests for the TypeScript backend.
"""

from __future__ import annotations

from jsl_codegen.pipeline import CodeGeneratorConfig, PipelineGenerator
from jsl_codegen.pipeline.analyzer import assign_names
from jsl_codegen.pipeline.backends import TypeExpr, TypeKind, TypeScriptBackend
from jsl_codegen.pipeline.backends.base import MappingContext
from jsl_codegen.pipeline.schema_ast import resolve


def _generate(schema, class_name="Root"):
    config = CodeGeneratorConfig(add_generation_comment=False)
    return PipelineGenerator(class_name, schema, config, ["typescript"]).generate("typescript")


def _map(document, node=None):
    schema = resolve(document)
    backend = TypeScriptBackend()
    names = assign_names(schema, backend.naming_rules)
    ctx = MappingContext.create(schema)
    return backend.map_type(node or schema.root, names, ctx)


class TestTypeMapping:
    """map_type results"""

    def test_primitive_note(self):
        expr, declarations = _map({"type": "int32"})
        assert expr == TypeExpr.primitive("number", expr.notes)
        assert expr.notes == ("#: int32 mapped to number (TypeScript has a single number type; integer width is not enforced)",)
        assert declarations == ()

    def test_exact_primitives_have_no_note(self):
        for name in ("boolean", "string", "float64"):
            expr, _ = _map({"type": name})
            assert expr.notes == ()

    def test_empty_is_any(self):
        expr, _ = _map({})
        assert expr.kind == TypeKind.ANY
        assert expr.name == "any"

    def test_nullable_wraps(self):
        expr, _ = _map({"elements": {"type": "string"}, "nullable": True})
        assert expr.kind == TypeKind.OPTIONAL
        assert expr.may_be_null and not expr.may_be_absent
        assert expr.inner.kind == TypeKind.ARRAY

    def test_ref_is_named(self):
        expr, declarations = _map({"definitions": {"user": {"properties": {}}}, "ref": "user"})
        assert expr.kind == TypeKind.NAMED
        assert expr.name == "User"
        assert expr.definition_name == "user"
        assert declarations == ()

    def test_properties_declares_struct(self):
        expr, declarations = _map({"properties": {"a": {"enum": ["x"]}}})
        assert expr == TypeExpr.named("Root")
        assert [d.name for d in declarations] == ["Root", "RootA"]
        assert [d.kind.value for d in declarations] == ["struct", "enum"]


class TestRendering:
    """Rendered TypeScript"""

    def test_minimal_object(self):
        code = _generate({"properties": {"name": {"type": "string"}}}, "User")
        assert code == "export interface User {\n  name: string;\n}\n"

    def test_optional_and_nullable(self):
        code = _generate(
            {
                "properties": {"a": {"type": "string", "nullable": True}},
                "optionalProperties": {"b": {"type": "string"}, "c": {"type": "string", "nullable": True}},
            }
        )
        assert "  a: string | null;\n" in code
        assert "  b?: string;\n" in code
        assert "  c?: string | null;\n" in code

    def test_containers(self):
        code = _generate(
            {
                "properties": {
                    "tags": {"elements": {"type": "string", "nullable": True}},
                    "scores": {"values": {"type": "float64"}},
                    "data": {},
                }
            }
        )
        assert "tags: (string | null)[];" in code
        assert "scores: { [key: string]: number };" in code
        assert "data: any;" in code

    def test_enum(self):
        code = _generate({"definitions": {"status": {"enum": ["on", "off"]}}, "properties": {"status": {"ref": "status"}}})
        assert 'export type Status = "on" | "off";' in code
        assert "  status: Status;" in code

    def test_discriminated_union(self):
        code = _generate(
            {
                "discriminator": "kind",
                "mapping": {
                    "circle": {"properties": {"radius": {"type": "float64"}}},
                    "square": {"properties": {"side": {"type": "float64"}}},
                },
            },
            "Shape",
        )
        assert "export type Shape = ShapeCircle | ShapeSquare;" in code
        assert 'export interface ShapeCircle {\n  kind: "circle";\n  radius: number;\n}' in code
        assert 'export interface ShapeSquare {\n  kind: "square";\n  side: number;\n}' in code

    def test_aliases(self):
        code = _generate(
            {
                "definitions": {"id": {"type": "string"}, "maybe_id": {"ref": "id", "nullable": True}},
                "properties": {"id": {"ref": "id"}, "other": {"ref": "maybe_id"}},
            }
        )
        assert "export type Id = string;" in code
        assert "export type MaybeId = Id;" in code
        assert "  other: MaybeId | null;" in code

    def test_root_alias_keeps_nullability(self):
        code = _generate({"elements": {"type": "boolean"}, "nullable": True})
        assert "export type Root = boolean[] | null;" in code

    def test_quoted_keys(self):
        code = _generate({"properties": {"first-name": {"type": "string"}, "ok_key": {"type": "string"}}})
        assert '  "first-name": string;' in code
        assert "  ok_key: string;" in code

    def test_descriptions(self):
        code = _generate(
            {
                "metadata": {"description": "A user\nof the system"},
                "properties": {"name": {"type": "string", "metadata": {"description": "Full name"}}},
            },
            "User",
        )
        assert "/**\n * A user\n * of the system\n */\nexport interface User {" in code
        assert "  /** Full name */\n  name: string;" in code

    def test_description_cannot_close_comment(self):
        code = _generate(
            {
                "metadata": {"description": "Glob like src/**/*.ts"},
                "properties": {"path": {"type": "string", "metadata": {"description": "Ends */ early"}}},
            },
            "Filter",
        )
        assert "/**\n * Glob like src/**\\/*.ts\n */\nexport interface Filter {" in code
        assert "  /** Ends *\\/ early */\n  path: string;" in code

    def test_notes_as_comments(self):
        code = _generate({"properties": {"created": {"type": "timestamp"}}})
        assert code.startswith(
            "// Note: #/properties/created: timestamp mapped to string (RFC 3339 timestamp carried as a string)\n"
        )

    def test_generation_comment(self):
        code = PipelineGenerator("Root", {"type": "string"}, None, ["ts"]).generate("ts")
        assert code.startswith("// Generated by jsl_codegen v0.1.0 : jsl_codegen\n")

    def test_recursive_schema(self):
        code = _generate(
            {
                "definitions": {
                    "tree": {
                        "properties": {"value": {"type": "string"}, "children": {"elements": {"ref": "tree"}}}
                    }
                },
                "ref": "tree",
            }
        )
        assert "export interface Tree {\n  value: string;\n  children: Tree[];\n}" in code
        assert "export type Root = Tree;" in code

    def test_output_file_name(self):
        results = PipelineGenerator("Document", {"properties": {}}, None, ["typescript"]).run()
        assert [f.path for f in results["typescript"].files] == ["Document.ts"]
