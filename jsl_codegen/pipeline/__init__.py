"""
Pipeline - JSL schema to code generator.

This module provides a multi-phase architecture for generating type
declarations for several targets from one schema:

1. Phase 1 (Resolver): Validate the schema document and build the IR
2. Phase 2 (Analyzer): Assign identifiers per target, analyze refs
3. Phase 3 (Backends): Map the IR to declarations through the type-mapping contract
4. Phase 4 (Rendering): Render declarations with per-target templates
5. Phase 5 (Writer): Write files atomically
"""

from __future__ import annotations

from .backends import BackendRegistry, BackendResult, MappingContext, RenderedFile, TypeMappingBackend, default_registry
from .config import CaseConvention, CodeGeneratorConfig, NamingRules, SeparatorPolicy, TargetConfig
from .generator import PipelineGenerator
from .writer import OutputWriter

__all__ = [
    "PipelineGenerator",
    "CodeGeneratorConfig",
    "TargetConfig",
    "NamingRules",
    "CaseConvention",
    "SeparatorPolicy",
    "BackendRegistry",
    "BackendResult",
    "MappingContext",
    "RenderedFile",
    "TypeMappingBackend",
    "default_registry",
    "OutputWriter",
]
