"""Command line interface for flowise2lc."""

import json
import logging
import sys
from pathlib import Path

import click

from flowise2lc import __version__
from flowise2lc.codegen.codegen import CodeGenerator
from flowise2lc.codegen.diagram import to_dot, to_mermaid
from flowise2lc.codegen.emitter import slugify
from flowise2lc.codegen.errors import Flowise2LCError, FlowParseError
from flowise2lc.core.config import apply_overrides, load_settings, resolve_log_level
from flowise2lc.core.registry import build_default_registry

FLOW_FILE = click.Path(exists=True, dir_okay=False, resolve_path=True)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _generator(ctx: click.Context) -> CodeGenerator:
    obj = ctx.ensure_object(dict)
    if "generator" not in obj:
        settings = obj["settings"]
        try:
            registry = build_default_registry(settings.converter_modules)
        except Flowise2LCError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        obj["generator"] = CodeGenerator(registry=registry, context=settings.context)
    return obj["generator"]


def _report_parse_error(error: FlowParseError) -> None:
    click.echo(f"Failed to parse flow ({len(error.issues)} issue(s)):", err=True)
    for issue in error.issues:
        click.echo(f"  - {issue}", err=True)


@click.group()
@click.version_option(__version__, prog_name="flowise2lc")
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False),
              help='YAML configuration file (defaults to $FLOWISE2LC_CONFIG).')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging.')
@click.pass_context
def cli(ctx, config_path, verbose):
    """Convert Flowise flows into LangChain code."""
    obj = ctx.ensure_object(dict)
    try:
        settings = load_settings(config_path)
    except Flowise2LCError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    obj["settings"] = settings
    _configure_logging(resolve_log_level(settings, verbose))


@cli.command()
@click.argument('flow_file', type=FLOW_FILE)
@click.option('--output', '-o', 'output_dir', type=click.Path(file_okay=False),
              help='Output directory (defaults to ./<flow-name>).')
@click.option('--target', '-t', type=click.Choice(['python', 'typescript']), default=None,
              help='Target language.')
@click.option('--tracing/--no-tracing', default=None, help='Add LangFuse tracing callbacks.')
@click.option('--overwrite', is_flag=True, help='Replace existing files.')
@click.option('--strict', is_flag=True, help='Fail on any error instead of emitting partial output.')
@click.option('--report', is_flag=True, help='Print a JSON report of the run.')
@click.pass_context
def convert(ctx, flow_file, output_dir, target, tracing, overwrite, strict, report):
    """Convert a flow export into a project."""
    generator = _generator(ctx)
    try:
        context = apply_overrides(generator.context, {"target_language": target, "include_tracing": tracing})
        output = generator.generate(flow_file, context=context, strict=strict)
    except FlowParseError as e:
        _report_parse_error(e)
        sys.exit(1)
    except Flowise2LCError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for warning in output.result.warnings:
        click.echo(str(warning), err=True)
    for error in output.result.errors:
        click.echo(str(error), err=True)

    if not output.success:
        click.echo(f"Conversion of '{output.graph.name}' aborted.", err=True)
        sys.exit(1)

    target_dir = Path(output_dir) if output_dir else Path.cwd() / slugify(output.graph.name)
    try:
        written = output.write_files(target_dir, overwrite=overwrite)
    except FileExistsError as e:
        click.echo(f"Error: {e} (use --overwrite)", err=True)
        sys.exit(1)

    for path in written:
        click.echo(f"Wrote {path}")
    if report:
        click.echo(generator.generate_report(output))


@cli.command()
@click.argument('flow_file', type=FLOW_FILE)
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON.')
@click.pass_context
def validate(ctx, flow_file, as_json):
    """Validate a flow export without generating code."""
    generator = _generator(ctx)
    try:
        result = generator.validate(flow_file)
    except FlowParseError as e:
        _report_parse_error(e)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        for issue in result.errors + result.warnings + result.suggestions:
            click.echo(str(issue))
        click.echo("Flow is valid." if result.is_valid else f"Flow has {len(result.errors)} error(s).")
    if not result.is_valid:
        sys.exit(1)


@cli.command()
@click.argument('flow_file', type=FLOW_FILE)
@click.option('--json', 'as_json', is_flag=True, help='Print the statistics as JSON.')
@click.pass_context
def analyze(ctx, flow_file, as_json):
    """Print graph statistics for a flow."""
    generator = _generator(ctx)
    try:
        stats = generator.analyze(flow_file)
    except FlowParseError as e:
        _report_parse_error(e)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(stats.to_dict(), indent=2))
        return
    click.echo(f"Nodes: {stats.node_count}")
    click.echo(f"Connections: {stats.connection_count}")
    click.echo(f"Complexity: {stats.complexity} (cyclomatic {stats.cyclomatic_complexity})")
    click.echo(f"Max depth: {stats.max_depth}")
    click.echo(f"Entry points: {', '.join(stats.entry_points) or '-'}")
    click.echo(f"Exit points: {', '.join(stats.exit_points) or '-'}")
    click.echo(f"Critical path: {' -> '.join(stats.critical_path) or '-'}")
    if stats.cycles:
        click.echo(f"Cycles: {len(stats.cycles)}")


@cli.command()
@click.argument('flow_file', type=FLOW_FILE)
@click.option('--format', '-f', 'fmt', type=click.Choice(['mermaid', 'dot']), default='mermaid')
@click.pass_context
def plan(ctx, flow_file, fmt):
    """Print a diagram of the flow."""
    generator = _generator(ctx)
    try:
        graph = generator.build_graph(flow_file)
    except FlowParseError as e:
        _report_parse_error(e)
        sys.exit(1)
    click.echo(to_mermaid(graph) if fmt == 'mermaid' else to_dot(graph))


@cli.command()
@click.pass_context
def converters(ctx):
    """List registered node types by category."""
    registry = _generator(ctx).registry
    for category, types in registry.converters_by_category().items():
        click.echo(f"{category}:")
        for node_type in types:
            click.echo(f"  {node_type}")


if __name__ == "__main__":
    cli()
