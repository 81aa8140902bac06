"""
Pipeline driver.

Resolves the schema once, then runs naming, mapping and rendering for every
requested target in parallel. The resolved schema is immutable, so backends
share it without coordination. A failing backend is recorded in its own
result and never affects the others; a schema error stops everything before
any backend runs.
"""

from __future__ import annotations

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from .. import __version__
from ..cli_utils import reconstruct_command_line
from .analyzer.name_resolver import assign_names
from .analyzer.reference_resolver import ReferenceResolver
from .backends.base import MappingContext, TypeMappingBackend, map_schema
from .backends.declarations import BackendResult
from .backends.registry import BackendRegistry, default_registry
from .config import CodeGeneratorConfig, TargetConfig
from .errors import NamingCollisionExhaustedError, UnsupportedFormError
from .schema_ast.nodes import ResolvedSchema
from .schema_ast.parser import resolve

logger = logging.getLogger(__name__)


class PipelineGenerator:
    """
    Multi-target code generator.

    Stages:
    1. Resolver: validate the raw document and build the IR (once)
    2. Naming: assign identifiers with each target's naming rules
    3. Mapping: map the IR to declarations through each backend
    4. Rendering: render declarations to files
    """

    def __init__(
        self,
        class_name: str,
        schema: dict[str, Any],
        config: CodeGeneratorConfig | None = None,
        targets: list[str] | None = None,
        registry: BackendRegistry | None = None,
    ):
        """
        Initialize the generator.

        Args:
            class_name: Name of the root type
            schema: The parsed schema document
            config: Code generation configuration
            targets: Target names to generate (default: the targets in config)
            registry: Backend registry (default: the shipped backends)
        """
        self.class_name = class_name
        self.schema = schema
        self.config = config or CodeGeneratorConfig()
        self.registry = registry or default_registry()
        self.targets = list(targets) if targets is not None else list(self.config.targets)

    def resolve(self) -> ResolvedSchema:
        """
        Validate the schema and build the IR.

        Raises:
            SchemaError: If the schema is malformed
        """
        logger.debug("Resolving schema for %s", self.class_name)
        resolved = resolve(self.schema)
        logger.debug("Resolved %d definition(s)", len(resolved.definitions))
        return resolved

    def run(self) -> dict[str, BackendResult]:
        """
        Generate code for every requested target.

        Returns:
            Results keyed by canonical target name, in request order

        Raises:
            SchemaError: If the schema is malformed (no backend runs)
            RegistryError: If a target is unknown
        """
        schema = self.resolve()

        # Backends are created up front so configuration errors stop the run before any work
        backends: dict[str, TypeMappingBackend] = {}
        for requested in self.targets:
            name = self.registry.resolve_name(requested)
            if name not in backends:
                backends[name] = self.registry.create(name, self._target_config(name).naming)

        references = ReferenceResolver(schema)
        generation_comment = self._generation_comment()

        results: dict[str, BackendResult] = {}
        with ThreadPoolExecutor(max_workers=max(1, len(backends))) as executor:
            future_to_target = {
                executor.submit(self._run_backend, name, backend, schema, references, generation_comment): name
                for name, backend in backends.items()
            }
            for future in as_completed(future_to_target):
                results[future_to_target[future]] = future.result()

        for name in backends:
            result = results[name]
            if result.ok:
                logger.info("Generated %d file(s) for %s", len(result.files), name)
                for note in result.notes:
                    logger.warning("%s: %s", name, note)
            else:
                logger.error("Backend %s failed: %s", name, result.error)

        return {name: results[name] for name in backends}

    def generate(self, target: str) -> str:
        """
        Generate the code of a single target as one string.

        Args:
            target: Target name

        Returns:
            Content of the generated files, concatenated

        Raises:
            SchemaError, UnsupportedFormError, NamingCollisionExhaustedError: On failure
        """
        generator = PipelineGenerator(self.class_name, self.schema, self.config, [target], self.registry)
        result = next(iter(generator.run().values()))
        if result.error is not None:
            raise result.error
        return "\n".join(f.content for f in result.files)

    def _run_backend(
        self,
        name: str,
        backend: TypeMappingBackend,
        schema: ResolvedSchema,
        references: ReferenceResolver,
        generation_comment: str | None,
    ) -> BackendResult:
        """Naming, mapping and rendering for one target; target-scoped errors become the result."""
        target_config = self._target_config(name)
        try:
            names = assign_names(schema, backend.naming_rules, self.class_name)
            logger.debug("%s: named %d type(s)", name, len(names.types) + len(names.definitions))

            ctx = MappingContext(
                schema=schema,
                references=references,
                target=target_config,
                root_name=names.root,
                generation_comment=generation_comment,
            )
            result = map_schema(backend, schema, names, ctx)
            logger.debug("%s: mapped %d declaration(s)", name, len(result.declarations))

            files = backend.render_files(result, ctx)
        except (UnsupportedFormError, NamingCollisionExhaustedError) as e:
            return BackendResult(target=name, error=e.for_target(name))
        except Exception as e:
            # Failures of any other kind are scoped to this target as well
            logger.exception("%s: unexpected error in backend", name)
            return BackendResult(target=name, error=e)

        return dataclasses.replace(result, target=name, files=tuple(files))

    def _target_config(self, name: str) -> TargetConfig:
        """Config of a target, looked up by canonical name or any of its aliases."""
        for key, target_config in self.config.targets.items():
            if self.registry.is_supported(key) and self.registry.resolve_name(key) == name:
                return target_config
        return TargetConfig()

    def _generation_comment(self) -> str | None:
        """Generation comment text, without the comment marker."""
        if not self.config.add_generation_comment:
            return None

        try:
            from ..jsl_codegen import jsl_codegen as click_command  # noqa

            command_line = reconstruct_command_line(click_command)
        except (ImportError, AttributeError):
            command_line = "jsl_codegen"

        return f"Generated by jsl_codegen v{__version__} : {command_line}"
