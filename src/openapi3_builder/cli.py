"""CLI entry point for openapi3-builder."""

import importlib.util
import logging
import sys
from pathlib import Path

import click

from openapi3_builder.document.openapi import OUTPUT_FORMATS, Document
from openapi3_builder.errors import DocumentSourceError, OpenApiBuilderError
from openapi3_builder.log import setup_logging

logger = logging.getLogger(__name__)


def _load_document(source: str) -> Document:
    """Load a Document from ``path/to/file.py:attribute``.

    The attribute may be a Document or a zero-argument callable returning one.
    """
    file_part, sep, attr = source.rpartition(":")
    if not sep or not file_part or not attr:
        raise DocumentSourceError(f"Expected FILE.py:ATTRIBUTE, got {source!r}")

    file_path = Path(file_part)
    if not file_path.is_file():
        raise DocumentSourceError(f"No such file: {file_path}")

    module_name = f"_openapi3_source_{file_path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise DocumentSourceError(f"Cannot import {file_path}")
    module = importlib.util.module_from_spec(spec)
    # Registered so pydantic can resolve forward references in the module.
    sys.modules[module_name] = module
    spec.loader.exec_module(module)

    if not hasattr(module, attr):
        raise DocumentSourceError(f"{file_path} has no attribute {attr!r}")
    obj = getattr(module, attr)
    if not isinstance(obj, Document) and callable(obj):
        obj = obj()
    if not isinstance(obj, Document):
        raise DocumentSourceError(f"{source} is a {type(obj).__name__}, not a Document")

    logger.debug("Loaded document from %s", source)
    return obj


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """openapi3-builder — export OpenAPI 3 documents built with the Python DSL."""
    setup_logging("DEBUG" if verbose else None)


@main.command()
@click.argument("source")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file path. Defaults to a new temp file.")
@click.option("--format", "fmt", default="json", type=click.Choice(list(OUTPUT_FORMATS)), help="Output format.")
@click.option("--indent", default=2, type=int, help="JSON indentation.")
def export(source: str, output: Path | None, fmt: str, indent: int):
    """Serialize the document at SOURCE (FILE.py:ATTRIBUTE)."""
    try:
        document = _load_document(source)
        if output is None:
            path = document.as_file(fmt)
        else:
            text = document.as_json(indent=indent) if fmt == "json" else document.as_yaml()
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(text, encoding="utf-8")
            path = output
    except OpenApiBuilderError as e:
        raise click.ClickException(str(e)) from e

    schemas = document.components["schemas"]
    click.echo(f"Found {len(document.paths)} paths, {len(schemas)} schemas.")
    click.echo(f"OpenAPI document saved to {path}")
