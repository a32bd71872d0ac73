"""Base command class for shared CLI setup/teardown."""

import click

from photofeed.errors import PhotoServiceConfigError
from photofeed.gateway import CompanyCamGateway, create_gateway
from photofeed.pipeline import GalleryPipeline, create_pipeline
from photofeed.settings import settings


class CliCommand:
    """Base class for all CLI commands with shared setup/teardown."""

    def __init__(self):
        self.gateway = None
        self.pipeline = None

    def setup_gateway(self) -> CompanyCamGateway:
        """Initialize the photo service gateway."""
        try:
            self.gateway = create_gateway(settings)
        except PhotoServiceConfigError as exc:
            raise click.ClickException(f"{exc} (set COMPANYCAM_API_KEY)")
        self.pipeline = create_pipeline(self.gateway, settings)
        return self.gateway

    def cleanup_gateway(self):
        """Close the gateway's HTTP client."""
        if self.gateway:
            self.gateway.close()

    def run(self):
        """Execute command - override in subclasses."""
        raise NotImplementedError

    def __enter__(self):
        """Context manager entry."""
        self.setup_gateway()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.cleanup_gateway()

    @property
    def gallery(self) -> GalleryPipeline:
        if self.pipeline is None:
            raise click.ClickException("Gateway not initialized")
        return self.pipeline
