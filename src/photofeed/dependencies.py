"""Shared dependencies for FastAPI endpoints."""

from fastapi import Depends, Request

from photofeed.errors import ErrorCode, PhotoServiceConfigError, PhotoServiceError
from photofeed.gateway import CompanyCamGateway, create_gateway
from photofeed.pipeline import GalleryPipeline, create_pipeline
from photofeed.settings import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> CompanyCamGateway:
    """Return the app's gateway, building it on first use.

    Raises:
        PhotoServiceError 503: no CompanyCam credential is configured
    """
    state = request.app.state
    if state.gateway is None:
        with state.gateway_lock:
            if state.gateway is None:
                try:
                    state.gateway = create_gateway(state.settings)
                except PhotoServiceConfigError as exc:
                    raise PhotoServiceError(
                        503,
                        "CompanyCam API not configured",
                        ErrorCode.INVALID_TOKEN,
                    ) from exc
    return state.gateway


def get_pipeline(
    request: Request,
    gateway: CompanyCamGateway = Depends(get_gateway),
    app_settings: Settings = Depends(get_app_settings),
) -> GalleryPipeline:
    return create_pipeline(gateway, app_settings, executor=request.app.state.executor)
