"""photofeed CLI entry point with lazy command registration."""

from __future__ import annotations

import logging

import click

from photofeed.settings import settings

_COMMANDS_REGISTERED = False


def _register_commands_once() -> None:
    global _COMMANDS_REGISTERED
    if _COMMANDS_REGISTERED:
        return

    from .commands import config, photos, tags

    cli.add_command(photos.list_photos_command, name="photos")
    cli.add_command(photos.before_after_command, name="before-after")
    cli.add_command(photos.explain_command, name="explain")
    cli.add_command(tags.analyze_tags_command, name="tags")
    cli.add_command(config.show_config_command, name="show-config")

    _COMMANDS_REGISTERED = True


class _LazyCLIGroup(click.Group):
    def list_commands(self, ctx):
        _register_commands_once()
        return super().list_commands(ctx)

    def get_command(self, ctx, cmd_name):
        _register_commands_once()
        return super().get_command(ctx, cmd_name)


@click.group(cls=_LazyCLIGroup)
@click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL setting)")
def cli(log_level):
    """photofeed CLI for inspecting the gallery feed."""
    level_name = str(log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    cli()
