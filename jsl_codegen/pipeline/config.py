"""
Configuration for the code generator pipeline.

Naming rules are per target; each backend ships defaults that a
configuration file (or the CLI) can override field by field.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CaseConvention(str, Enum):
    """Case style applied to generated identifiers."""

    PASCAL = "PascalCase"  # UserName
    CAMEL = "camelCase"  # userName
    SNAKE = "snake_case"  # user_name
    SCREAMING_SNAKE = "SCREAMING_SNAKE_CASE"  # USER_NAME
    PRESERVE = "preserve"  # keep the schema spelling


class SeparatorPolicy(str, Enum):
    """How the path segments of a nested type name are joined."""

    CONCATENATE = "concatenate"  # TreeChildren
    UNDERSCORE = "underscore"  # Tree_Children


@dataclass(frozen=True)
class NamingRules:
    """Identifier rules of one target language."""

    # Case of generated type names
    case_convention: CaseConvention = CaseConvention.PASCAL

    # Case of field names (None = same as case_convention)
    field_case_convention: CaseConvention | None = None

    # Case of enum member names
    enum_member_case_convention: CaseConvention = CaseConvention.PASCAL

    # Identifiers that must be escaped (compared case-sensitively)
    reserved_words: frozenset[str] = frozenset()

    # Reserved words for field names (None = same as reserved_words)
    field_reserved_words: frozenset[str] | None = None

    # Appended to an identifier that is a reserved word
    escape_suffix: str = "_"

    # Prepended to an identifier that would start with a digit
    leading_digit_prefix: str = "_"

    # Maximum identifier length (None = unlimited)
    max_identifier_length: int | None = None

    # Joining of nested type name segments
    separator_policy: SeparatorPolicy = SeparatorPolicy.CONCATENATE

    # Enum members share the type namespace and are prefixed with their type name
    qualify_enum_members: bool = False

    @property
    def field_case(self) -> CaseConvention:
        return self.field_case_convention or self.case_convention

    @property
    def field_reserved(self) -> frozenset[str]:
        if self.field_reserved_words is None:
            return self.reserved_words
        return self.field_reserved_words

    def merged(self, overrides: dict[str, Any] | None) -> NamingRules:
        """Return a copy with the given fields replaced."""
        if not overrides:
            return self
        return dataclasses.replace(self, **_coerce_naming_fields(overrides))

    @staticmethod
    def from_dict(d: dict[str, Any]) -> NamingRules:
        """Create naming rules from a dictionary."""
        return NamingRules(**_coerce_naming_fields(d))

    def to_dict(self) -> dict[str, Any]:
        """Convert naming rules to a JSON-compatible dictionary."""
        return {
            "case_convention": self.case_convention.value,
            "field_case_convention": self.field_case_convention.value if self.field_case_convention else None,
            "enum_member_case_convention": self.enum_member_case_convention.value,
            "reserved_words": sorted(self.reserved_words),
            "field_reserved_words": sorted(self.field_reserved_words) if self.field_reserved_words is not None else None,
            "escape_suffix": self.escape_suffix,
            "leading_digit_prefix": self.leading_digit_prefix,
            "max_identifier_length": self.max_identifier_length,
            "separator_policy": self.separator_policy.value,
            "qualify_enum_members": self.qualify_enum_members,
        }


def _coerce_naming_fields(d: dict[str, Any]) -> dict[str, Any]:
    """Convert JSON values of naming options to their dataclass types."""
    known = {f.name for f in dataclasses.fields(NamingRules)}
    unknown = set(d) - known
    if unknown:
        raise ValueError(f"Unknown naming option(s): {', '.join(sorted(unknown))}")

    result = dict(d)
    for key in ("case_convention", "enum_member_case_convention"):
        if key in result:
            result[key] = CaseConvention(result[key])
    if result.get("field_case_convention") is not None:
        result["field_case_convention"] = CaseConvention(result["field_case_convention"])
    if "separator_policy" in result:
        result["separator_policy"] = SeparatorPolicy(result["separator_policy"])
    if "reserved_words" in result:
        result["reserved_words"] = frozenset(result["reserved_words"])
    if result.get("field_reserved_words") is not None:
        result["field_reserved_words"] = frozenset(result["field_reserved_words"])
    return result


@dataclass
class TargetConfig:
    """Per-target options, threaded through to rendering."""

    # Output directory for the generated files
    out_dir: str = ""

    # Package / namespace name (Go package, Java package)
    package: str = ""

    # Overrides applied on top of the backend's default naming rules
    naming: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: dict) -> TargetConfig:
        """Create a target config from a dictionary."""
        config = TargetConfig()
        for k, v in d.items():
            if hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert target config to a dictionary."""
        return {
            "out_dir": self.out_dir,
            "package": self.package,
            "naming": dict(self.naming),
        }


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    # Name of the root type (empty = derived from the input file name)
    root_name: str = ""

    # Add generation comment at top of file
    add_generation_comment: bool = True

    # Overwrite existing output files
    force: bool = False

    # Requested targets, keyed by target name
    targets: dict[str, TargetConfig] = field(default_factory=dict)

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary."""
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "targets":
                config.targets = {name: TargetConfig.from_dict(target or {}) for name, target in v.items()}
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "root_name": self.root_name,
            "add_generation_comment": self.add_generation_comment,
            "force": self.force,
            "targets": {name: target.to_dict() for name, target in self.targets.items()},
        }

    def target(self, name: str) -> TargetConfig:
        """Get the config of a target, creating an empty one if absent."""
        if name not in self.targets:
            self.targets[name] = TargetConfig()
        return self.targets[name]
