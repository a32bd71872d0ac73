"""Gallery aggregation pipeline.

Builds the curated feed from every project and every photo the photo service
knows about:

1. List projects (a failure here fails the whole call).
2. List each project's photos (a failing project is skipped).
3. Fetch each photo's tags (a failing photo is skipped).
4. Run every photo through the filter engine.
5. Paginate the complete filtered list.

Steps 2 and 3 fan out over a bounded thread pool. Results are stored by
input position and only read back by the calling thread, so the feed keeps
project-then-photo order no matter which request finishes first.

On cancellation or timeout no new upstream request is started, requests
already on the wire are bounded by the deadline, and the call returns only
after they have finished.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Executor, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from threading import Event
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

from photofeed.errors import REASON_CANCELLED, REASON_TIMEOUT, PhotoServiceError, RequestInterrupted
from photofeed.filtering import apply_optional_filters, explain_photo
from photofeed.gateway import CompanyCamGateway
from photofeed.models import FilteredPhoto, Photo, PhotoFilterOptions, PhotosListResponse, SkippedUnit
from photofeed.pagination import paginate, resolve_page_size
from photofeed.tags import MASTER_TAG, SERVICE_TAGS

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

SKIP_CANCELLED = REASON_CANCELLED
SKIP_TIMEOUT = REASON_TIMEOUT

_POLL_SECONDS = 0.1


class _Interrupted(Exception):
    """Raised inside a worker that was dequeued after the fan-out stopped."""


@dataclass
class UnitOutcome(Generic[T]):
    """Result of fetching one project or photo: a value or a skip reason."""

    unit_id: str
    value: Optional[T] = None
    skip_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.skip_reason is None


@dataclass
class CollectResult:
    photos: List[FilteredPhoto] = field(default_factory=list)
    skipped: List[SkippedUnit] = field(default_factory=list)
    partial: bool = False


@dataclass
class _Gathered:
    """Every photo whose tags were fetched, before any filtering."""

    project_count: int = 0
    evaluated: List[Tuple[Photo, List[str]]] = field(default_factory=list)
    skipped: List[SkippedUnit] = field(default_factory=list)
    interrupted: Optional[str] = None


class GalleryPipeline:
    """Aggregates, filters and paginates gallery photos from one gateway.

    Pass ``executor`` to share one worker pool between pipelines so the
    upstream concurrency bound holds across concurrent calls; otherwise each
    call runs its own pool of ``max_workers`` threads.
    """

    def __init__(
        self,
        gateway: CompanyCamGateway,
        *,
        max_workers: int = 8,
        default_page_size: int = 50,
        timeout: Optional[float] = None,
        executor: Optional[Executor] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.gateway = gateway
        self.max_workers = max_workers
        self.default_page_size = default_page_size
        self.timeout = timeout
        self.executor = executor

    def get_filtered_photos(
        self,
        options: Optional[PhotoFilterOptions] = None,
        *,
        cancel_event: Optional[Event] = None,
        timeout: Optional[float] = None,
        use_cache: bool = True,
    ) -> PhotosListResponse:
        """Return one page of the filtered feed with the full filtered count.

        Raises:
            PhotoServiceError: if the project listing itself fails
        """
        options = options or PhotoFilterOptions()
        result = self.collect(options, cancel_event=cancel_event, timeout=timeout, use_cache=use_cache)
        page_size = resolve_page_size(options.page_size, options.limit, self.default_page_size)
        photos, total = paginate(result.photos, options.page, page_size)
        return PhotosListResponse(
            photos=photos,
            total=total,
            page=options.page,
            page_size=page_size,
            skipped=result.skipped,
            partial=result.partial,
        )

    def get_before_after_photos(
        self,
        service_tag: Optional[str] = None,
        *,
        cancel_event: Optional[Event] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, List[FilteredPhoto]]:
        """Split the (optionally service-narrowed) feed into before and after shots."""
        result = self.collect(
            PhotoFilterOptions(service_tag=service_tag),
            cancel_event=cancel_event,
            timeout=timeout,
        )
        return {
            "before": [photo for photo in result.photos if photo.is_before_photo],
            "after": [photo for photo in result.photos if photo.is_after_photo],
        }

    def collect(
        self,
        options: Optional[PhotoFilterOptions] = None,
        *,
        cancel_event: Optional[Event] = None,
        timeout: Optional[float] = None,
        use_cache: bool = True,
    ) -> CollectResult:
        """Evaluate every candidate photo and return all that pass the filters."""
        options = options or PhotoFilterOptions()
        gathered = self._gather(options, cancel_event=cancel_event, timeout=timeout, use_cache=use_cache)

        result = CollectResult(skipped=gathered.skipped, partial=gathered.interrupted is not None)
        for photo, tags in gathered.evaluated:
            filtered = apply_optional_filters(photo, tags, options)
            if filtered is not None:
                result.photos.append(filtered)

        logger.info(
            "Gallery aggregation: projects=%s photos=%s accepted=%s skipped=%s partial=%s",
            gathered.project_count,
            len(gathered.evaluated),
            len(result.photos),
            len(result.skipped),
            result.partial,
        )
        return result

    def explain_filtering(
        self,
        options: Optional[PhotoFilterOptions] = None,
        *,
        cancel_event: Optional[Event] = None,
        timeout: Optional[float] = None,
        use_cache: bool = True,
    ) -> dict:
        """Report, photo by photo, whether it passes the filters and why not.

        Covers every photo whose tags could be fetched, so photos dropped by
        the filter are as visible as photos skipped on upstream errors.
        """
        options = options or PhotoFilterOptions()
        gathered = self._gather(options, cancel_event=cancel_event, timeout=timeout, use_cache=use_cache)
        decisions = [explain_photo(photo, tags, options) for photo, tags in gathered.evaluated]
        passed = [decision.photo_id for decision in decisions if decision.passes_filter]
        failed = [
            {"photo_id": decision.photo_id, "reason": decision.reason}
            for decision in decisions
            if not decision.passes_filter
        ]
        return {
            "filtering_requirements": {
                "master_tag": MASTER_TAG,
                "service_tags": list(SERVICE_TAGS),
            },
            "photos": [decision.to_dict() for decision in decisions],
            "filtering_results": {"passed": passed, "failed": failed},
            "skipped": [unit.to_dict() for unit in gathered.skipped],
            "partial": gathered.interrupted is not None,
            "summary": {
                "total_projects": gathered.project_count,
                "total_checked": len(decisions),
                "passed_filter": len(passed),
                "failed_filter": len(failed),
                "skipped": len(gathered.skipped),
            },
        }

    def _gather(
        self,
        options: PhotoFilterOptions,
        *,
        cancel_event: Optional[Event],
        timeout: Optional[float],
        use_cache: bool,
    ) -> _Gathered:
        cancel = cancel_event or Event()
        stop = Event()
        effective_timeout = timeout if timeout is not None else self.timeout
        deadline = time.monotonic() + effective_timeout if effective_timeout else None

        try:
            projects = self.gateway.list_projects(use_cache=use_cache, deadline=deadline, stop=cancel)
        except RequestInterrupted as exc:
            logger.warning("Aggregation interrupted (%s) before projects were listed", exc.reason)
            return _Gathered(interrupted=exc.reason)
        except PhotoServiceError as exc:
            logger.error("Failed to list projects: %s", exc.message)
            raise

        if options.project_id:
            projects = [project for project in projects if project.id == options.project_id]

        gathered = _Gathered(project_count=len(projects))
        owns_executor = self.executor is None
        executor = self.executor or ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="photofeed-fanout",
        )
        photos: List[Photo] = []
        try:
            project_outcomes, gathered.interrupted = self._fan_out(
                executor,
                projects,
                unit_id=lambda project: project.id,
                fetch=lambda project: self.gateway.list_project_photos(
                    project.id, use_cache=use_cache, deadline=deadline, stop=stop
                ),
                cancel=cancel,
                stop=stop,
                deadline=deadline,
            )
            for outcome in project_outcomes:
                if outcome.ok:
                    photos.extend(outcome.value or [])
                else:
                    gathered.skipped.append(SkippedUnit("project", outcome.unit_id, outcome.skip_reason))

            if gathered.interrupted:
                tag_outcomes = [UnitOutcome(photo.id, skip_reason=gathered.interrupted) for photo in photos]
            else:
                tag_outcomes, gathered.interrupted = self._fan_out(
                    executor,
                    photos,
                    unit_id=lambda photo: photo.id,
                    fetch=lambda photo: [
                        tag.label
                        for tag in self.gateway.list_photo_tags(
                            photo.id, use_cache=use_cache, deadline=deadline, stop=stop
                        )
                    ],
                    cancel=cancel,
                    stop=stop,
                    deadline=deadline,
                )
        finally:
            if owns_executor:
                executor.shutdown(wait=True, cancel_futures=True)

        for photo, outcome in zip(photos, tag_outcomes):
            if outcome.ok:
                gathered.evaluated.append((photo, outcome.value or []))
            else:
                gathered.skipped.append(SkippedUnit("photo", outcome.unit_id, outcome.skip_reason))

        self._log_skipped(gathered.skipped)
        return gathered

    def _fan_out(
        self,
        executor: Executor,
        units: Sequence[U],
        *,
        unit_id: Callable[[U], str],
        fetch: Callable[[U], T],
        cancel: Event,
        stop: Event,
        deadline: Optional[float],
    ) -> Tuple[List[UnitOutcome[T]], Optional[str]]:
        """Run ``fetch`` for every unit and return outcomes in input order."""

        def run(unit: U) -> T:
            if stop.is_set() or cancel.is_set():
                raise _Interrupted()
            return fetch(unit)

        futures: List[Future] = [executor.submit(run, unit) for unit in units]
        pending = set(futures)
        interrupted: Optional[str] = None
        while pending:
            if cancel.is_set():
                interrupted = SKIP_CANCELLED
                break
            wait_for = _POLL_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    interrupted = SKIP_TIMEOUT
                    break
                wait_for = min(wait_for, remaining)
            _, pending = wait(pending, timeout=wait_for, return_when=FIRST_COMPLETED)

        if interrupted:
            stop.set()
            for future in pending:
                future.cancel()
            # Requests already sent end by the deadline; no worker outlives the call.
            wait(pending)

        outcomes: List[UnitOutcome[T]] = []
        for unit, future in zip(units, futures):
            key = str(unit_id(unit))
            if future.cancelled():
                outcomes.append(UnitOutcome(key, skip_reason=interrupted or SKIP_CANCELLED))
                continue
            exc = future.exception()
            if exc is None:
                outcomes.append(UnitOutcome(key, value=future.result()))
            elif isinstance(exc, _Interrupted):
                outcomes.append(UnitOutcome(key, skip_reason=interrupted or SKIP_CANCELLED))
            elif isinstance(exc, RequestInterrupted):
                interrupted = interrupted or exc.reason
                outcomes.append(UnitOutcome(key, skip_reason=exc.reason))
            elif isinstance(exc, PhotoServiceError):
                outcomes.append(UnitOutcome(key, skip_reason=f"{exc.code.value}: {exc.message}"))
            else:
                raise exc
        return outcomes, interrupted

    @staticmethod
    def _log_skipped(skipped: Sequence[SkippedUnit]) -> None:
        interrupted = [unit for unit in skipped if unit.reason in (SKIP_CANCELLED, SKIP_TIMEOUT)]
        for unit in skipped:
            if unit.reason in (SKIP_CANCELLED, SKIP_TIMEOUT):
                continue
            if unit.kind == "project":
                logger.warning("Skipping project %s: failed to list photos (%s)", unit.unit_id, unit.reason)
            else:
                logger.warning("Skipping photo %s: failed to fetch tags (%s)", unit.unit_id, unit.reason)
        if interrupted:
            logger.warning(
                "Aggregation interrupted (%s); %s unit(s) not evaluated",
                interrupted[0].reason,
                len(interrupted),
            )


def create_pipeline(
    gateway: CompanyCamGateway,
    settings: Any,
    executor: Optional[Executor] = None,
) -> GalleryPipeline:
    return GalleryPipeline(
        gateway,
        max_workers=settings.tag_fetch_workers,
        default_page_size=settings.default_page_size,
        timeout=settings.pipeline_timeout_seconds,
        executor=executor,
    )
