#!/usr/bin/env python3
"""
Coral SST command-line tool.

Runs the SST anomaly and bleaching threshold pipeline over NetCDF/Zarr
collections on disk and writes maps and chart series to an output directory.
"""

import json
import logging
from pathlib import Path

import click

from coral_sst.config import Config, PipelineConfig
from coral_sst.core.exceptions import CoralSSTError
from coral_sst.infrastructure.logging import get_run_records, setup_logging
from coral_sst.pipelines import SSTAnomalyPipeline
from coral_sst.raster import NetCDFOutputSink, XarrayRasterSource

logger = logging.getLogger(__name__)


def _parse_collections(pairs):
    collections = {}
    for pair in pairs:
        collection_id, sep, path = pair.partition('=')
        if not sep or not collection_id or not path:
            raise click.BadParameter(f"Expected COLLECTION_ID=PATH, got '{pair}'", param_hint='--data')
        collections[collection_id] = Path(path)
    return collections


@click.group()
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='YAML file overriding the defaults')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def cli(ctx, config_file, verbose):
    """Sea surface temperature anomaly and coral heat stress."""
    ctx.ensure_object(dict)
    try:
        ctx.obj['config'] = Config(Path(config_file) if config_file else None)
    except CoralSSTError as e:
        raise click.ClickException(str(e))
    ctx.obj['verbose'] = verbose


@cli.command()
@click.option('--data', '-d', multiple=True, required=True,
              help='COLLECTION_ID=PATH for each configured source collection')
@click.option('--output-dir', '-o', type=click.Path(file_okay=False),
              help='Where to write outputs (default: paths.output_dir)')
@click.option('--time-dim', default='time', show_default=True)
@click.option('--y-dim', default='y', show_default=True, help='e.g. lat')
@click.option('--x-dim', default='x', show_default=True, help='e.g. lon')
@click.option('--run-id', help='Run identifier for log correlation')
@click.pass_context
def run(ctx, data, output_dir, time_dim, y_dim, x_dim, run_id):
    """Run the full pipeline."""
    config = ctx.obj['config']
    log_level = 'DEBUG' if ctx.obj['verbose'] else None
    setup_logging(config, run_id=run_id, log_level=log_level)

    try:
        pipeline_config = PipelineConfig.from_config(config)
        source = XarrayRasterSource(_parse_collections(data),
                                    time_dim=time_dim, y_dim=y_dim, x_dim=x_dim)
        sink = NetCDFOutputSink(Path(output_dir or config.get('paths.output_dir')))
        result = SSTAnomalyPipeline(pipeline_config, source, sink, run_id=run_id).run()
    except CoralSSTError as e:
        logger.error(f"Pipeline failed: {e}")
        raise click.ClickException(str(e))

    summary = result.to_dict()
    click.echo(f"Run {summary['run_id']} completed")
    click.echo(f"  monthly rasters: {summary['monthly_rasters']}")
    if summary['threshold'] is not None:
        click.echo(f"  bleaching threshold: {summary['threshold']:.3f}")
    for warning in summary['warnings']:
        click.echo(f"  warning: {warning}")
    click.echo(f"  outputs: {len(sink.written)} files in {sink.output_dir}")
    records = get_run_records(summary['run_id'])
    if records:
        click.echo(f"  log records: {len(records)}")


@cli.command('show-config')
@click.option('--section', '-s', help='Only show one section')
@click.pass_context
def show_config(ctx, section):
    """Print the effective configuration."""
    settings = ctx.obj['config'].to_dict()
    if section:
        if section not in settings:
            raise click.ClickException(f"Unknown section '{section}'")
        settings = {section: settings[section]}
    click.echo(json.dumps(settings, indent=2, default=str))


if __name__ == '__main__':
    cli()
