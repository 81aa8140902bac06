"""JSL Code Generator

A Python package for generating type declarations from JSON Type Definition
(JSL/JTD) schemas. Supports TypeScript, Go, Java and Python targets from a
single validated schema IR.
"""

__version__ = "0.1.0"

from .pipeline import (
    BackendRegistry,
    BackendResult,
    CodeGeneratorConfig,
    NamingRules,
    OutputWriter,
    PipelineGenerator,
    TargetConfig,
)
from .pipeline.errors import (
    CodegenError,
    NamingCollisionExhaustedError,
    RegistryError,
    SchemaError,
    UnsupportedFormError,
)

__all__ = [
    "PipelineGenerator",
    "CodeGeneratorConfig",
    "TargetConfig",
    "NamingRules",
    "BackendRegistry",
    "BackendResult",
    "OutputWriter",
    "CodegenError",
    "SchemaError",
    "UnsupportedFormError",
    "NamingCollisionExhaustedError",
    "RegistryError",
]
