#!/usr/bin/env python3
"""Main CLI entry point for liveserve."""
import os

import click

from .config import config
from .server import serve, setup, status


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.version_option(package_name="liveserve")
def cli(log_level):
    """Live-reloading development server with in-page developer overlays."""
    os.environ['LIVESERVE_LOG_LEVEL'] = log_level


cli.add_command(serve)
cli.add_command(status)
cli.add_command(setup)
cli.add_command(config)


if __name__ == "__main__":
    cli()
