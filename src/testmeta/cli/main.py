"""CLI entry point for testmeta.

Invoked as::

    testmeta [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m testmeta.cli.main

Commands
--------
version       Show version information
annotations   Show the materialized annotations of a class or function
policy        Show the usage policy of an annotation type
handlers      Show the dispatch table of a message type
variants      List every handler binding in registration order
types         List registered annotation type aliases
"""
from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from testmeta import __version__

if TYPE_CHECKING:
    from testmeta.annotations.collector import AnnotationInfo

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


def _configure_logging(verbose: bool) -> None:
    """Send testmeta's log records to stderr through rich when verbose."""
    logger = logging.getLogger("testmeta")
    if not verbose:
        return
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=err_console, show_path=False))
    logger.setLevel(logging.DEBUG)


def _resolve_or_exit(kind: str, resolve: Callable[[str], T], name: str) -> T:
    """Run a resolver, printing the error and exiting on failure."""
    from testmeta.errors import TypeResolutionError

    try:
        return resolve(name)
    except TypeResolutionError as exc:
        err_console.print(f"[red]Error:[/red] Cannot resolve {kind} {escape(name)!r}: {escape(exc.reason)}")
        sys.exit(1)


def _qualified(obj: object) -> str:
    from testmeta.annotations.serializer import qualified_name

    return qualified_name(obj)


def _emit(text: str, lang: str, output: str | None, what: str) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]{what} written to[/green] {output}")
    else:
        console.print(Syntax(text, lang, line_numbers=False))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="testmeta")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log cache and registry activity to stderr")
def cli(verbose: bool) -> None:
    """Inspect test annotation metadata and message dispatch tables."""
    from testmeta.annotations.registry import ANNOTATION_TYPES

    _configure_logging(verbose)
    ANNOTATION_TYPES.load_entrypoints()


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    table = Table(show_header=False, box=None)
    table.add_row("[bold]testmeta[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# annotations command
# ---------------------------------------------------------------------------


def _all_annotations(target: object) -> list["AnnotationInfo"]:
    """Collect every annotation type declared on ``target`` or its ancestors."""
    from testmeta.annotations.collector import ancestry, annotations_of
    from testmeta.annotations.store import declared_annotations

    seen: dict[type, None] = {}
    for level in ancestry(target):
        for descriptor in declared_annotations(level):
            seen.setdefault(descriptor.annotation_type, None)

    infos: list[AnnotationInfo] = []
    for annotation_type in sorted(seen, key=lambda t: t.__name__):
        infos.extend(
            info
            for info in annotations_of(target, annotation_type)
            if info.annotation_type is annotation_type
        )
    return infos


@cli.command(name="annotations")
@click.argument("target")
@click.option("--type", "-t", "annotation_name", default=None, help="Annotation type name or alias to filter on")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "yaml"], case_sensitive=False),
    default="table",
    help="Output format",
)
@click.option("--output", "-o", default=None, help="Output file path for json/yaml (defaults to stdout)")
def annotations_command(
    target: str, annotation_name: str | None, output_format: str, output: str | None
) -> None:
    """Show the materialized annotations of a class or function.

    TARGET is a qualified name such as ``package.module:ClassName``.

    Examples:

    \b
        testmeta annotations my_tests.test_login:LoginTests
        testmeta annotations my_tests.test_login:LoginTests --type trait --format yaml
    """
    from testmeta.annotations.collector import annotations_of
    from testmeta.annotations.resolution import resolve_annotation_type, resolve_object
    from testmeta.annotations.serializer import AnnotationSerializer
    from testmeta.errors import InstantiationError

    output_format = output_format.lower()
    if output and output_format == "table":
        raise click.UsageError("--output requires --format json or yaml")

    element = _resolve_or_exit("target", resolve_object, target)
    if not (isinstance(element, type) or callable(element)):
        err_console.print(f"[red]Error:[/red] {escape(target)!r} is not a class or function")
        sys.exit(1)

    if annotation_name is None:
        infos = _all_annotations(element)
    else:
        annotation_type = _resolve_or_exit("annotation type", resolve_annotation_type, annotation_name)
        infos = annotations_of(element, annotation_type)

    serializer = AnnotationSerializer()
    if output_format == "json":
        _emit(serializer.to_json(infos, indent=2), "json", output, "Annotations")
        return
    if output_format == "yaml":
        _emit(serializer.to_yaml(infos), "yaml", output, "Annotations")
        return

    if not infos:
        console.print(f"No annotations found on {escape(target)}")
        return

    table = Table(title=f"Annotations: {escape(target)}", show_lines=True)
    table.add_column("Declared on", min_width=10)
    table.add_column("Annotation")
    failures = 0
    for info in infos:
        owner = getattr(info.declaring_element, "__qualname__", repr(info.declaring_element))
        try:
            rendered = escape(str(info.annotation))
        except InstantiationError as exc:
            failures += 1
            rendered = f"[red]{escape(str(info.descriptor))}[/red]\n[dim]{escape(exc.reason)}[/dim]"
        table.add_row(escape(owner), rendered)

    console.print(table)
    console.print(f"\n[bold]{len(infos)}[/bold] annotation(s), {failures} failed to materialize")


# ---------------------------------------------------------------------------
# policy command
# ---------------------------------------------------------------------------


@cli.command(name="policy")
@click.argument("annotation")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json", "yaml"], case_sensitive=False),
    default="table",
    help="Output format",
)
def policy_command(annotation: str, output_format: str) -> None:
    """Show the usage policy of an annotation type.

    ANNOTATION is a qualified name or registered alias.
    """
    from testmeta.annotations.resolution import resolve_annotation_type
    from testmeta.annotations.serializer import AnnotationSerializer
    from testmeta.annotations.usage import resolve_usage

    annotation_type = _resolve_or_exit("annotation type", resolve_annotation_type, annotation)
    policy = resolve_usage(annotation_type)
    data = AnnotationSerializer().policy_to_dict(annotation_type, policy)

    output_format = output_format.lower()
    if output_format == "json":
        _emit(json.dumps(data, indent=2), "json", None, "Policy")
        return
    if output_format == "yaml":
        _emit(yaml.dump(data, default_flow_style=False, allow_unicode=True), "yaml", None, "Policy")
        return

    table = Table(show_header=False, box=None)
    table.add_row("[bold]Annotation[/bold]", escape(_qualified(annotation_type)))
    table.add_row("Inherited", str(policy.inherited))
    table.add_row("Allow multiple", str(policy.allow_multiple))
    console.print(table)


# ---------------------------------------------------------------------------
# handlers command
# ---------------------------------------------------------------------------


def _resolve_message_type(name: str) -> type:
    from testmeta.annotations.resolution import resolve_type
    from testmeta.errors import TypeResolutionError
    from testmeta.messages.variants import ALL_VARIANTS, MessageSinkMessage

    by_name = {variant.__name__: variant for variant in ALL_VARIANTS}
    if name in by_name:
        return by_name[name]
    cls = resolve_type(name)
    if not issubclass(cls, MessageSinkMessage):
        raise TypeResolutionError(name, f"{cls.__qualname__} is not a message type")
    return cls


@cli.command(name="handlers")
@click.argument("message_type")
def handlers_command(message_type: str) -> None:
    """Show the handlers that run for a message type.

    MESSAGE_TYPE is a variant name such as ``TestPassed`` or a qualified name.
    """
    from testmeta.messages.dispatch import DEFAULT_HANDLERS

    cls = _resolve_or_exit("message type", _resolve_message_type, message_type)
    table_entries = DEFAULT_HANDLERS.table_for(cls)
    if not table_entries:
        console.print(f"No handlers apply to {escape(cls.__qualname__)}")
        return

    table = Table(title=f"Dispatch table: {escape(cls.__qualname__)}")
    table.add_column("#", justify="right")
    table.add_column("Variant")
    table.add_column("Handler")
    for index, binding in enumerate(table_entries, start=1):
        table.add_row(str(index), binding.variant.__name__, binding.method_name)
    console.print(table)


# ---------------------------------------------------------------------------
# variants command
# ---------------------------------------------------------------------------


@cli.command(name="variants")
def variants_command() -> None:
    """List every handler binding in registration order."""
    from testmeta.messages.dispatch import DEFAULT_HANDLERS
    from testmeta.messages.variants import RUNNER_VARIANTS

    table = Table(title=f"Handler bindings: {DEFAULT_HANDLERS.name}")
    table.add_column("#", justify="right")
    table.add_column("Variant")
    table.add_column("Handler")
    table.add_column("Level", no_wrap=True)
    for index, binding in enumerate(DEFAULT_HANDLERS, start=1):
        level = "runner" if binding.variant in RUNNER_VARIANTS else "framework"
        table.add_row(str(index), binding.variant.__name__, binding.method_name, level)
    console.print(table)
    console.print(f"\n[bold]{len(DEFAULT_HANDLERS)}[/bold] binding(s)")


# ---------------------------------------------------------------------------
# types command
# ---------------------------------------------------------------------------


@cli.command(name="types")
def types_command() -> None:
    """List registered annotation type aliases, including entry-points."""
    from testmeta.annotations.registry import ANNOTATION_TYPES

    table = Table(title="Registered annotation types")
    table.add_column("Alias")
    table.add_column("Type")
    for alias, annotation_type in ANNOTATION_TYPES.items():
        table.add_row(escape(alias), escape(_qualified(annotation_type)))
    console.print(table)


if __name__ == "__main__":
    cli()
