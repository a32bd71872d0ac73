"""Gallery feed commands."""

import json
from typing import Optional

import click

from photofeed.cli.base import CliCommand
from photofeed.errors import PhotoServiceError
from photofeed.gallery import to_gallery_photo
from photofeed.models import PhotoFilterOptions
from photofeed.tags import normalize_service_tag


@click.command(name='photos')
@click.option('--service-tag', default=None, help='Only photos carrying this service tag (e.g. Siding)')
@click.option('--before-after', type=click.Choice(['before', 'after', 'both']), default=None, help='Only before and/or after shots')
@click.option('--project-id', default=None, help='Restrict to one CompanyCam project')
@click.option('--page', default=1, type=click.IntRange(min=1), help='1-indexed page number')
@click.option('--per-page', default=None, type=click.IntRange(min=1), help='Page size')
@click.option('--limit', default=None, type=click.IntRange(min=1), help='Upper bound on page size')
@click.option('--no-cache', is_flag=True, default=False, help='Bypass the response cache')
@click.option('--timeout', default=None, type=float, help='Give up after this many seconds and print a partial feed')
def list_photos_command(
    service_tag: Optional[str],
    before_after: Optional[str],
    project_id: Optional[str],
    page: int,
    per_page: Optional[int],
    limit: Optional[int],
    no_cache: bool,
    timeout: Optional[float],
):
    """Print one page of the filtered gallery feed as JSON.

    Every project and every photo is evaluated before paging, so ``total``
    is the size of the whole filtered feed."""
    if service_tag and normalize_service_tag(service_tag) is None:
        click.echo(f"Note: {service_tag!r} is not a gallery service tag; matching it literally", err=True)
    options = PhotoFilterOptions(
        service_tag=service_tag,
        before_after=before_after,
        project_id=project_id,
        page=page,
        page_size=per_page,
        limit=limit,
    )
    cmd = ListPhotosCommand(options, use_cache=not no_cache, timeout=timeout)
    cmd.run()


class ListPhotosCommand(CliCommand):
    """Command to print the filtered feed."""

    def __init__(self, options: PhotoFilterOptions, use_cache: bool = True, timeout: Optional[float] = None):
        super().__init__()
        self.options = options
        self.use_cache = use_cache
        self.timeout = timeout

    def run(self):
        """Execute photos command."""
        self.setup_gateway()
        try:
            self._list_photos()
        finally:
            self.cleanup_gateway()

    def _list_photos(self):
        try:
            response = self.gallery.get_filtered_photos(
                self.options,
                timeout=self.timeout,
                use_cache=self.use_cache,
            )
        except PhotoServiceError as exc:
            raise click.ClickException(f"{exc.code.value}: {exc.message}")

        if response.skipped:
            click.echo(f"Skipped {len(response.skipped)} project(s)/photo(s); see log for details", err=True)
        if response.partial:
            click.echo("Aggregation was interrupted; feed is partial", err=True)

        click.echo(json.dumps({
            "photos": [to_gallery_photo(photo).to_dict() for photo in response.photos],
            "total": response.total,
            "page": response.page,
            "pageSize": response.page_size,
            "partial": response.partial,
        }, indent=2))


@click.command(name='before-after')
@click.option('--service-tag', default=None, help='Only photos carrying this service tag')
def before_after_command(service_tag: Optional[str]):
    """Print before and after counts with photo ids."""
    cmd = BeforeAfterCommand(service_tag)
    cmd.run()


class BeforeAfterCommand(CliCommand):

    def __init__(self, service_tag: Optional[str]):
        super().__init__()
        self.service_tag = service_tag

    def run(self):
        with self:
            try:
                grouped = self.gallery.get_before_after_photos(self.service_tag)
            except PhotoServiceError as exc:
                raise click.ClickException(f"{exc.code.value}: {exc.message}")
            for key in ("before", "after"):
                photos = grouped[key]
                click.echo(f"{key}: {len(photos)}")
                for photo in photos:
                    click.echo(f"  {photo.id} [{photo.service_category}]")


@click.command(name='explain')
@click.option('--service-tag', default=None, help='Apply this service-tag narrowing too')
@click.option('--before-after', type=click.Choice(['before', 'after', 'both']), default=None, help='Apply this before/after narrowing too')
@click.option('--project-id', default=None, help='Restrict to one CompanyCam project')
@click.option('--show-passed', is_flag=True, default=False, help='Also list photos that pass')
def explain_command(service_tag: Optional[str], before_after: Optional[str], project_id: Optional[str], show_passed: bool):
    """Show why each photo is in or out of the gallery feed."""
    options = PhotoFilterOptions(service_tag=service_tag, before_after=before_after, project_id=project_id)
    cmd = ExplainCommand(options, show_passed=show_passed)
    cmd.run()


class ExplainCommand(CliCommand):
    """Command to print per-photo filter decisions."""

    def __init__(self, options: PhotoFilterOptions, show_passed: bool = False):
        super().__init__()
        self.options = options
        self.show_passed = show_passed

    def run(self):
        with self:
            try:
                report = self.gallery.explain_filtering(self.options)
            except PhotoServiceError as exc:
                raise click.ClickException(f"{exc.code.value}: {exc.message}")

            summary = report["summary"]
            click.echo(
                f"Checked {summary['total_checked']} photo(s) in {summary['total_projects']} project(s): "
                f"{summary['passed_filter']} passed, {summary['failed_filter']} failed, "
                f"{summary['skipped']} skipped"
            )
            for photo in report["photos"]:
                if photo["passes_filter"] and not self.show_passed:
                    continue
                verdict = "ok" if photo["passes_filter"] else photo["reason"]
                click.echo(f"  {photo['photo_id']}: {verdict} [{', '.join(photo['tags'])}]")
            for unit in report["skipped"]:
                click.echo(f"  skipped {unit['kind']} {unit['id']}: {unit['reason']}", err=True)
