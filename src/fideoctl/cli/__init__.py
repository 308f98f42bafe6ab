#!/usr/bin/env python3
"""Main CLI entry point for fideoctl."""
import asyncio
import os
import signal

import click

from ..config import get_config
from ..connection import Connection
from ..desktop import JsonSettingsStore, StreamConfigStore
from ..utils import generate_path_token
from .config import config


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set logging level')
@click.version_option(package_name="fideoctl")
def cli(log_level):
    """Local web control for the stream recorder."""
    os.environ['FIDEOCTL_LOG_LEVEL'] = log_level


cli.add_command(config)


@cli.command()
@click.option('--path', 'path_token', default=None, help='Path token to serve under')
def serve(path_token):
    """Run web control until interrupted."""
    from ..server.main import setup_logging
    from ..supervisor import Supervisor

    setup_logging()
    supervisor = Supervisor.from_config(StreamConfigStore())

    async def run():
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, stop.set)

        if await supervisor.enable(path_token):
            click.echo(f"Web control running at {supervisor.settings.setting.web_control_url}")
        else:
            click.echo(f"Failed to start web control, retrying in {supervisor.retry_delay:g}s", err=True)

        await stop.wait()
        await supervisor.disable()

    asyncio.run(run())
    click.echo("Web control stopped")


@cli.command()
def status():
    """Show whether web control is reachable."""
    conn = Connection(JsonSettingsStore(get_config().control.settings_file))
    setting = conn.setting

    if conn.is_running:
        click.echo(f"Web control running at {conn.web_control_url}")
    elif setting.enable_web_control:
        click.echo(f"Web control enabled but not answering at {conn.base_url}", err=True)
        raise click.exceptions.Exit(1)
    else:
        click.echo("Web control not running")


@cli.command()
def token():
    """Print a new random path token."""
    click.echo(generate_path_token(get_config().control.path_length))


if __name__ == "__main__":
    cli()
