"""CLI entry point for orgtree."""

import dataclasses
import datetime
import json
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console
from rich.markup import escape

from orgtree.config import ParserConfig, load_config
from orgtree.exceptions import ConfigError, OrgContractError
from orgtree.models import OrgDocument
from orgtree.parser import parse_org
from orgtree.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()


def first_difference(original: str, exported: str) -> Optional[int]:
    """
    Find the first line where two texts differ.

    Args:
        original: Source text
        exported: Text produced by parse + export

    Returns:
        1-based line number of the first difference, or None if identical
    """
    if original == exported:
        return None

    original_lines = original.split("\n")
    exported_lines = exported.split("\n")
    for number, (left, right) in enumerate(zip(original_lines, exported_lines), start=1):
        if left != right:
            return number
    return min(len(original_lines), len(exported_lines)) + 1


def to_jsonable(value: Any) -> Any:
    """
    Convert a parsed tree into JSON-serializable data.

    Dataclasses become dicts; inline nodes and other tagged types get their
    `type` tag as the first key. Dates become ISO strings, enums their values.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data: dict[str, Any] = {}
        node_type = getattr(type(value), "type", None)
        if isinstance(node_type, str):
            data["type"] = node_type
        for field in dataclasses.fields(value):
            data[field.name] = to_jsonable(getattr(value, field.name))
        return data
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def read_document(path: Path, config: ParserConfig) -> tuple[str, OrgDocument]:
    """
    Read and parse an Org file.

    Newlines are read untranslated so that parse + export can be compared
    byte for byte.

    Raises:
        click.ClickException: If the file cannot be read or decoded
    """
    try:
        with path.open(encoding="utf-8", newline="") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("org_file_read_error", path=str(path), error=str(e))
        raise click.ClickException(f"Cannot read {path}: {e}")

    document = parse_org(text, config=config)
    logger.info(
        "org_document_parsed",
        path=str(path),
        size=len(text),
        headers=len(document.headers),
        todo_keyword_sets=len(document.todo_keyword_sets),
    )
    return text, document


@click.group()
@click.version_option(version="0.1.0", prog_name="orgtree")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/orgtree/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """orgtree - Parse Org files into a tree and write them back losslessly."""
    # Configure logging on CLI startup
    configure_logging()

    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def check(ctx: click.Context, files: tuple[Path, ...]):
    """Check that parsing and exporting FILES reproduces them exactly."""
    config: ParserConfig = ctx.obj["config"]
    mismatches = 0

    for path in files:
        text, document = read_document(path, config)
        try:
            exported = document.export(dont_indent=config.dont_indent)
        except OrgContractError as e:
            logger.error("export_contract_violation", path=str(path), error=str(e))
            raise click.ClickException(f"{path}: {e}")

        line = first_difference(text, exported)
        if line is None:
            console.print(f"[green]OK[/green]    {path}")
        else:
            mismatches += 1
            logger.warning("roundtrip_mismatch", path=str(path), line=line)
            console.print(f"[red]DIFF[/red]  {path} (first difference on line {line})")

    if mismatches:
        console.print(f"[red]{mismatches} of {len(files)} file(s) changed on round-trip[/red]")
        ctx.exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def dump(ctx: click.Context, file: Path):
    """Print the parsed tree of FILE as JSON."""
    _, document = read_document(file, ctx.obj["config"])
    click.echo(json.dumps(to_jsonable(document), indent=2, ensure_ascii=False))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def outline(ctx: click.Context, file: Path):
    """Print the headline outline of FILE."""
    _, document = read_document(file, ctx.obj["config"])

    for header in document.headers:
        title_line = header.title_line
        parts = []
        if title_line.todo_keyword:
            color = "green" if _is_completed(document, title_line.todo_keyword) else "red"
            parts.append(f"[bold {color}]{title_line.todo_keyword}[/bold {color}]")
        if title_line.priority:
            parts.append(f"[yellow]\\[#{title_line.priority}][/yellow]")
        parts.append(escape(title_line.raw_title.strip()))
        if title_line.tags:
            parts.append(f"[cyan]:{':'.join(title_line.tags)}:[/cyan]")

        # Tags such as :smile: must not become emoji
        console.print("  " * (header.level - 1) + " ".join(part for part in parts if part), emoji=False)


def _is_completed(document: OrgDocument, keyword: str) -> bool:
    return any(keyword_set.is_completed(keyword) for keyword_set in document.todo_keyword_sets)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
