#!/usr/bin/env python3
"""
Genealogy import CLI - command line entrypoint for the import pipeline

Detects, previews and converts GEDCOM and GeneWeb files into graph nodes
and edges written as JSON.
"""

import json
import sys
from pathlib import Path

import click

# Add project root to path to import modules
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from genealogy_app.services.exceptions import ServiceError
from genealogy_app.services.genealogy_import_service import genealogy_import_service
from genealogy_app.shared.logging_config import get_project_logger, set_project_log_level
from genealogy_app.shared.models import ImportOptions


def _read(file_path: str) -> tuple[bytes, str]:
    path = Path(file_path)
    return path.read_bytes(), path.name


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, verbose):
    """Genealogy Import - GEDCOM and GeneWeb to graph conversion"""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    # Keep stdout clean for JSON output unless asked for logs
    set_project_log_level('DEBUG' if verbose else 'WARNING')

@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def detect(ctx, file_path):
    """Detect the format of a genealogy file"""
    logger = get_project_logger(__name__, ctx.obj['verbose'])
    content, file_name = _read(file_path)

    try:
        detected = genealogy_import_service.detect_format(content, file_name)
    except ServiceError as e:
        logger.error(f"Format detection failed for {file_name}: {e}")
        raise click.ClickException(str(e))

    click.echo(detected)

@cli.command()
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def preview(ctx, file_path):
    """Show import statistics without converting"""
    logger = get_project_logger(__name__, ctx.obj['verbose'])
    content, file_name = _read(file_path)

    try:
        summary = genealogy_import_service.get_import_preview(content, file_name)
    except ServiceError as e:
        logger.error(f"Preview failed for {file_name}: {e}")
        raise click.ClickException(str(e))

    click.echo(f"Format:      {summary.format}")
    click.echo(f"Persons:     {summary.person_count}")
    click.echo(f"Families:    {summary.family_count}")
    click.echo(f"Coordinates: {'yes' if summary.has_coordinates else 'no'}")
    if summary.earliest_year is not None:
        click.echo(f"Years:       {summary.earliest_year} - {summary.latest_year}")

@cli.command(name='import')
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False))
@click.option('-o', '--output', type=click.Path(dir_okay=False), help='Write JSON here instead of stdout')
@click.option('--no-layout', is_flag=True, help='Leave every node at the origin')
@click.option('--direction', type=click.Choice(['TB', 'BT'], case_sensitive=False), default='TB',
              show_default=True, help='Generation ordering')
@click.option('--sibling-links', is_flag=True, help='Emit sibling edges within each family')
@click.option('--no-gender-colors', is_flag=True, help='Use the neutral style for every node')
@click.option('--no-notes', is_flag=True, help='Skip free-text notes')
@click.option('--no-occupation', is_flag=True, help='Skip occupation properties')
@click.option('--no-tag', is_flag=True, help='Do not tag nodes and edges as genealogy')
@click.pass_context
def import_file(ctx, file_path, output, no_layout, direction, sibling_links, no_gender_colors,
                no_notes, no_occupation, no_tag):
    """Convert a genealogy file into graph nodes and edges"""
    logger = get_project_logger(__name__, ctx.obj['verbose'])
    content, file_name = _read(file_path)

    options = ImportOptions(
        add_genealogy_tag=not no_tag,
        import_occupation=not no_occupation,
        import_notes=not no_notes,
        color_by_gender=not no_gender_colors,
        create_sibling_links=sibling_links,
        auto_layout=not no_layout,
        layout_direction=direction,
    )

    try:
        imported = genealogy_import_service.import_genealogy_file(content, file_name, options)
    except ServiceError as e:
        logger.error(f"Import failed for {file_name}: {e}")
        raise click.ClickException(str(e))

    payload = json.dumps(imported.to_dict(), indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(payload, encoding='utf-8')
        click.echo(f"Wrote {output}", err=True)
    else:
        click.echo(payload)

    result = imported.result
    click.echo(f"{result.node_count} nodes, {result.edge_count} edges", err=True)
    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    for error in result.errors:
        click.echo(f"Error: {error}", err=True)

if __name__ == '__main__':
    cli()
