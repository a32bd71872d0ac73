"""Tag vocabulary diagnostics command."""

import click

from photofeed.cli.base import CliCommand
from photofeed.errors import PhotoServiceError
from photofeed.tags import analyze_tag_vocabulary


@click.command(name='tags')
def analyze_tags_command():
    """Check the CompanyCam tag vocabulary against the gallery tags.

    Reports whether the master tag and each service tag exist in the
    account, plus near misses that may be typos."""
    cmd = AnalyzeTagsCommand()
    cmd.run()


class AnalyzeTagsCommand(CliCommand):

    def run(self):
        with self:
            try:
                account_tags = self.gateway.list_tags()
            except PhotoServiceError as exc:
                raise click.ClickException(f"{exc.code.value}: {exc.message}")
            self._report(analyze_tag_vocabulary(account_tags))

    def _report(self, report: dict):
        click.echo(f"Account tags: {report['total_tags']}")
        master = report["master_tag"]
        click.echo(f"Master tag {master['looking_for']!r}: {'found' if master['found'] else 'MISSING'}")
        for tag in master["similar_matches"]:
            if tag is not master["exact_match"]:
                click.echo(f"  similar: {tag.label}")
        for entry in report["service_tags"]:
            status = "found" if entry["found"] else "MISSING"
            click.echo(f"Service tag {entry['looking_for']!r}: {status}")
        for key, entry in report["before_after_tags"].items():
            click.echo(f"{key.capitalize()} marker {entry['looking_for']!r}: {'found' if entry['found'] else 'missing'}")
        click.echo(f"Ready for filtering: {'yes' if report['ready_for_filtering'] else 'no'}")
        if report["missing_tags"]:
            click.echo(f"Missing: {', '.join(report['missing_tags'])}", err=True)
