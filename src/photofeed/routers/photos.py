"""Router for the gallery photo feed."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from photofeed.errors import ErrorCode, PhotoServiceError
from photofeed.gallery import (
    SERVICE_SLUG_TO_TAGS,
    calculate_category_counts,
    filter_photos_by_service_slug,
    to_gallery_photo,
)
from photofeed.dependencies import get_pipeline
from photofeed.models import PhotoFilterOptions
from photofeed.pipeline import GalleryPipeline
from photofeed.ratelimit import limiter, photos_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["photos"],
)


def _invalid_options(exc: ValidationError) -> HTTPException:
    # Inputs are left out; they can hold datetimes.
    detail = exc.errors(include_url=False, include_context=False, include_input=False)
    return HTTPException(status_code=422, detail=detail)


@router.get("/photos", response_model=dict, operation_id="list_gallery_photos")
@limiter.limit(photos_rate_limit)
def list_gallery_photos(
    request: Request,
    service_tag: Optional[str] = Query(None, alias="serviceTag"),
    before_after: Optional[str] = Query(None, alias="beforeAfter"),
    project_id: Optional[str] = Query(None, alias="projectId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, alias="perPage", ge=1, le=500),
    limit: Optional[int] = Query(None, ge=1, le=500),
    no_cache: bool = Query(False, alias="noCache"),
    pipeline: GalleryPipeline = Depends(get_pipeline),
):
    """Paginated gallery feed.

    Only photos tagged with the master tag and at least one service tag are
    returned. ``total`` counts every matching photo, not just this page.
    A date-only ``endDate`` includes that whole day.
    """
    try:
        options = PhotoFilterOptions(
            service_tag=service_tag,
            before_after=before_after,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
            page=page,
            page_size=per_page,
            limit=limit,
        )
    except ValidationError as exc:
        raise _invalid_options(exc)

    response = pipeline.get_filtered_photos(options, use_cache=not no_cache)
    return {
        "photos": [to_gallery_photo(photo).to_dict() for photo in response.photos],
        "total": response.total,
        "page": response.page,
        "pageSize": response.page_size,
        "partial": response.partial,
        "skipped": [unit.to_dict() for unit in response.skipped],
    }


@router.get("/photos/before-after", response_model=dict, operation_id="list_before_after_photos")
@limiter.limit(photos_rate_limit)
def list_before_after_photos(
    request: Request,
    service_tag: Optional[str] = Query(None, alias="serviceTag"),
    pipeline: GalleryPipeline = Depends(get_pipeline),
):
    grouped = pipeline.get_before_after_photos(service_tag)
    return {
        key: [to_gallery_photo(photo).to_dict() for photo in photos]
        for key, photos in grouped.items()
    }


@router.get("/photos/categories", response_model=dict, operation_id="count_gallery_categories")
@limiter.limit(photos_rate_limit)
def count_gallery_categories(
    request: Request,
    pipeline: GalleryPipeline = Depends(get_pipeline),
):
    result = pipeline.collect()
    return calculate_category_counts([to_gallery_photo(photo) for photo in result.photos])


@router.get("/photos/service/{service_slug}", response_model=dict, operation_id="list_service_page_photos")
@limiter.limit(photos_rate_limit)
def list_service_page_photos(
    request: Request,
    service_slug: str,
    limit: int = Query(3, ge=1, le=50),
    pipeline: GalleryPipeline = Depends(get_pipeline),
):
    """Photos for one service page, e.g. ``siding-and-gutters``."""
    if service_slug not in SERVICE_SLUG_TO_TAGS:
        raise PhotoServiceError(404, f"No gallery photos for service '{service_slug}'", ErrorCode.NO_MATCHING_PHOTOS)

    result = pipeline.collect()
    matching = filter_photos_by_service_slug([to_gallery_photo(photo) for photo in result.photos], service_slug)
    return {
        "service": service_slug,
        "photos": [photo.to_dict() for photo in matching[:limit]],
        "total": len(matching),
    }


@router.get("/photos/debug", response_model=dict, operation_id="explain_gallery_filtering")
@limiter.limit(photos_rate_limit)
def explain_gallery_filtering(
    request: Request,
    service_tag: Optional[str] = Query(None, alias="serviceTag"),
    before_after: Optional[str] = Query(None, alias="beforeAfter"),
    project_id: Optional[str] = Query(None, alias="projectId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    limit: int = Query(50, ge=1, le=1000),
    pipeline: GalleryPipeline = Depends(get_pipeline),
):
    """Per-photo filter decisions: tags seen, master/service checks and the rejection reason.

    ``limit`` caps the per-photo list only; the summary counts every photo.
    """
    try:
        options = PhotoFilterOptions(
            service_tag=service_tag,
            before_after=before_after,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
        )
    except ValidationError as exc:
        raise _invalid_options(exc)

    report = pipeline.explain_filtering(options)
    report["photos"] = report["photos"][:limit]
    return report
