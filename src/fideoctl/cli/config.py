"""Configuration commands."""
import click

from ..config import dump_config_env, dump_config_toml, get_config


@click.group()
def config():
    """Inspect configuration."""
    pass


@config.command("show")
@click.option('--format', 'output_format', default='toml', type=click.Choice(['toml', 'env']),
              help='Output format')
def show(output_format):
    """Show the effective configuration."""
    current = get_config()
    if output_format == 'env':
        click.echo(dump_config_env(current))
    else:
        click.echo(dump_config_toml(current), nl=False)
