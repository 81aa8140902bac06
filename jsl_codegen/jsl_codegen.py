import json
import logging
import sys
from pathlib import Path

import click

from .pipeline import CodeGeneratorConfig, OutputWriter, PipelineGenerator, default_registry
from .pipeline.errors import RegistryError, SchemaError
from .pipeline.schema_ast import load_schema
from .utils import to_pascal_case

logger = logging.getLogger(__name__)


@click.command()
@click.option("--name", "-n", default=None, type=str, help="Root type name (default: input file name)")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--ts-out", default=None, type=click.Path(file_okay=False), help="Output directory for TypeScript")
@click.option("--go-out", default=None, type=click.Path(file_okay=False), help="Output directory (and package name) for Go")
@click.option("--java-out", default=None, type=click.Path(file_okay=False), help="Output directory for Java")
@click.option("--java-package", default=None, type=str, help="Package of the generated Java classes")
@click.option("--python-out", default=None, type=click.Path(file_okay=False), help="Output directory for Python")
@click.option("--force", is_flag=True, default=False, help="Overwrite existing files")
@click.option("--no-generation-comment", is_flag=True, default=False, help="Omit the 'Generated by' header")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log each pipeline stage")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def jsl_codegen(
    name, config, ts_out, go_out, java_out, java_package, python_out, force, no_generation_comment, verbose, path
):
    """Generate type declarations from the JSL/JTD schema at PATH."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    registry = default_registry()

    if config is not None:
        with open(config) as f:
            config = CodeGeneratorConfig.from_dict(json.load(f))
    else:
        config = CodeGeneratorConfig()

    # Config files may use target aliases ("ts", "py"); CLI flags use canonical names
    try:
        config.targets = {registry.resolve_name(key): target for key, target in config.targets.items()}
    except RegistryError as e:
        raise click.UsageError(str(e)) from e

    # CLI flags override the config file
    for target_name, out_dir in [("typescript", ts_out), ("go", go_out), ("java", java_out), ("python", python_out)]:
        if out_dir:
            config.target(target_name).out_dir = out_dir
    if java_package:
        config.target("java").package = java_package
    if force:
        config.force = True
    if no_generation_comment:
        config.add_generation_comment = False

    if name is None:
        name = config.root_name or to_pascal_case(Path(path).stem)

    targets = [target_name for target_name, target in config.targets.items() if target.out_dir]
    if not targets:
        raise click.UsageError("No output requested: use --ts-out, --go-out, --java-out or --python-out")
    logger.debug("Generating %s for %s", ", ".join(targets), name)

    with open(path, encoding="utf-8") as f:
        text = f.read()

    try:
        schema = load_schema(text)
        results = PipelineGenerator(name, schema, config, targets, registry).run()
    except SchemaError as e:
        click.secho(f"Schema error: {e}", fg="red", err=True)
        sys.exit(1)
    except ValueError as e:
        # Invalid naming options in the configuration
        raise click.UsageError(f"Invalid configuration: {e}") from e

    writer = OutputWriter(force=config.force)
    failed = False
    for target_name, result in results.items():
        if not result.ok:
            click.secho(f"{target_name}: {result.error}", fg="red", err=True)
            failed = True
            continue

        try:
            written = writer.write_all(config.target(target_name).out_dir, result.files)
        except FileExistsError as e:
            click.secho(f"{target_name}: {e}", fg="red", err=True)
            failed = True
            continue

        for written_path in written:
            click.echo(f"{target_name}: wrote {written_path}")

    if failed:
        sys.exit(1)
