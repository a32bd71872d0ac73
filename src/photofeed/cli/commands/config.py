"""Configuration inspection command."""

import click

from photofeed.settings import settings


@click.command(name='show-config')
def show_config_command():
    """Show effective settings (API key masked)."""
    for key, value in settings.config_audit().items():
        click.echo(f"{key}: {value}")
    if not settings.has_photo_service_credentials:
        click.echo("Warning: COMPANYCAM_API_KEY is not set", err=True)
