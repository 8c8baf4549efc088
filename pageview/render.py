"""Background rendering of pages, page caching and recolouring settings."""

from __future__ import annotations

import logging
import sys
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

from pageview.page import Page, PageError, Rectangle
from pageview.recolor import recolor
from pageview.surface import RGBA, Surface, parse_color

__all__ = ["RenderJob", "RenderRequest", "Renderer"]

logger = logging.getLogger(__name__)

_FLT_EPSILON = 1.1920928955078125e-07
_WHITE = RGBA(1.0, 1.0, 1.0, 1.0)
_SIGNALS = ("completed", "cache-added", "cache-invalidated")

Geometry = Callable[[Page], "tuple[float, float, float]"]


def _now() -> int:
    """Wall-clock time in microseconds."""
    return time.time_ns() // 1000


def _default_geometry(page: Page) -> tuple[float, float, float]:
    return page.width, page.height, 1.0


def _direct_dispatch(function: Callable[[], None]) -> None:
    function()


@dataclass
class _RenderTarget:
    """What a plugin draws on: a surface and the scale to draw at."""

    surface: Surface
    scale: float = 1.0


@dataclass(eq=False)
class RenderJob:
    """One queued rendering of a request's page."""

    request: "RenderRequest"
    aborted: bool = False


class RenderRequest:
    """Asks a renderer to render one page and reports back through signals.

    Signals: ``completed`` (with the rendered surface), ``cache-added`` and
    ``cache-invalidated``. Callbacks receive the request first.
    """

    def __init__(self, renderer: "Renderer", page: Page) -> None:
        if renderer is None or page is None:
            raise ValueError("a render request needs a renderer and a page")
        self._renderer = renderer
        self.page = page
        self.last_view_time = 0
        self.render_plain = False
        self._jobs: list[RenderJob] = []
        self._jobs_lock = threading.Lock()
        self._handlers: dict[str, list[Callable]] = {name: [] for name in _SIGNALS}
        self._closed = False

    @property
    def pending(self) -> int:
        """Number of jobs of this request that have not finished yet."""
        with self._jobs_lock:
            return len(self._jobs)

    def connect(self, signal: str, callback: Callable) -> None:
        """Call ``callback(request, *args)`` whenever ``signal`` is emitted."""
        if signal not in self._handlers:
            raise ValueError(f"unknown signal: {signal!r}")
        self._handlers[signal].append(callback)

    def _emit(self, signal: str, *args: Any) -> None:
        for callback in list(self._handlers[signal]):
            callback(self, *args)

    def render(self, last_view_time: int) -> None:
        """Queue the page for rendering unless a live job is already queued."""
        with self._jobs_lock:
            if any(not job.aborted for job in self._jobs):
                return
            self.last_view_time = last_view_time
            job = RenderJob(self)
            self._jobs.append(job)
        self._renderer._push(job)

    def abort(self) -> None:
        """Mark all outstanding jobs as aborted."""
        with self._jobs_lock:
            for job in self._jobs:
                job.aborted = True

    def update_view_time(self) -> None:
        """Record that the page has just been viewed."""
        self.last_view_time = _now()

    def _remove_job(self, job: RenderJob) -> None:
        with self._jobs_lock:
            if job in self._jobs:
                self._jobs.remove(job)

    def close(self) -> None:
        """Unregister the request from its renderer."""
        if self._closed:
            return
        self._closed = True
        self._renderer._unregister(self)

    def __enter__(self) -> "RenderRequest":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class Renderer:
    """Renders pages on a worker thread and keeps an LRU cache of page indices.

    ``geometry`` maps a page to its on-screen (width, height, scale); the
    surface size is that size times ``device_scale``. ``dispatch`` runs the
    completion callbacks, by default directly on the worker thread.
    """

    def __init__(
        self,
        cache_size: int,
        *,
        geometry: Optional[Geometry] = None,
        device_scale: tuple[float, float] = (1.0, 1.0),
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
    ) -> None:
        if cache_size <= 0:
            raise ValueError("cache size must be positive")
        self._geometry = geometry or _default_geometry
        self.device_scale = device_scale
        self._dispatch = dispatch or _direct_dispatch

        self._lock = threading.Lock()
        self._about_to_close = False
        self._requests: list[RenderRequest] = []
        self._requests_lock = threading.Lock()

        self._cache: list[int] = [-1] * cache_size
        self._num_cached = 0

        self.recolor_enabled = False
        self.recolor_hue = True
        self.recolor_reverse_video = False
        self._light = RGBA()
        self._dark = RGBA()
        self.set_recolor_colors_str("#000000", "#FFFFFF")

        self._queue: list[RenderJob] = []
        self._condition = threading.Condition()
        self._shutdown = False
        self._worker = threading.Thread(target=self._work, name="renderer", daemon=True)
        self._worker.start()

    # recolouring settings

    @property
    def recolor_colors(self) -> tuple[RGBA, RGBA]:
        """The (light, dark) recolouring colours."""
        return self._light, self._dark

    def set_recolor_colors(self, light: Optional[RGBA], dark: Optional[RGBA]) -> None:
        """Set the light and dark colours; None leaves a colour unchanged."""
        if light is not None:
            self._light = light
        if dark is not None:
            self._dark = dark

    def set_recolor_colors_str(self, light: Optional[str], dark: Optional[str]) -> None:
        """Set the colours from specifications; unparsable ones are ignored."""
        for spec, is_light in ((dark, False), (light, True)):
            if spec is None:
                continue
            try:
                color = parse_color(spec)
            except ValueError:
                continue
            if is_light:
                self.set_recolor_colors(color, None)
            else:
                self.set_recolor_colors(None, color)

    # locking and lifetime

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold the render lock, e.g. to render on one's own while printing."""
        with self._lock:
            yield

    @property
    def stopped(self) -> bool:
        return self._about_to_close

    def stop(self) -> None:
        """Stop delivering results; queued and running jobs are discarded."""
        logger.debug("Setting about-to-close flag for renderer")
        self._about_to_close = True

    def close(self) -> None:
        """Stop rendering, drop queued jobs and wait for the worker to finish."""
        self.stop()
        with self._condition:
            self._shutdown = True
            dropped, self._queue = self._queue, []
            self._condition.notify_all()
        for job in dropped:
            job.request._remove_job(job)
        if threading.current_thread() is not self._worker:
            logger.debug("Waiting for thread pool to finish.")
            self._worker.join()
        with self._requests_lock:
            self._requests.clear()

    def __enter__(self) -> "Renderer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # requests

    @property
    def requests(self) -> tuple[RenderRequest, ...]:
        with self._requests_lock:
            return tuple(self._requests)

    def request(self, page: Page) -> RenderRequest:
        """Create a render request for ``page`` registered with this renderer."""
        if page is None:
            raise ValueError("a render request needs a page")
        request = RenderRequest(self, page)
        with self._requests_lock:
            if request not in self._requests:
                self._requests.append(request)
        return request

    def _unregister(self, request: RenderRequest) -> None:
        with self._requests_lock:
            if request in self._requests:
                self._requests.remove(request)

    def _find_request(self, page_index: int) -> Optional[RenderRequest]:
        with self._requests_lock:
            for request in self._requests:
                if request.page.index == page_index:
                    return request
        return None

    # worker

    def _push(self, job: RenderJob) -> None:
        with self._condition:
            if self._shutdown:
                job.request._remove_job(job)
                return
            self._queue.append(job)
            self._condition.notify()

    def _work(self) -> None:
        while True:
            with self._condition:
                while not self._queue and not self._shutdown:
                    self._condition.wait()
                if self._shutdown:
                    return
                # Live jobs before aborted ones, oldest view time first.
                job = min(
                    self._queue, key=lambda j: (j.aborted, j.request.last_view_time)
                )
                self._queue.remove(job)
            try:
                self._run_job(job)
            except Exception:
                logger.exception("Rendering raised an error")
                job.request._remove_job(job)

    def _run_job(self, job: RenderJob) -> None:
        request = job.request
        if self._about_to_close or job.aborted:
            request._remove_job(job)
            return
        page_number = request.page.index + 1
        logger.debug("Rendering page %d ...", page_number)
        if not self._render(job):
            logger.error("Rendering failed (page %d)", page_number)
            request._remove_job(job)

    def _render(self, job: RenderJob) -> bool:
        request = job.request
        page = request.page

        if request.render_plain:
            width, height = int(page.width), int(page.height)
            scale = 1.0
            device = (1.0, 1.0)
        else:
            view_width, view_height, scale = self._geometry(page)
            device = self.device_scale
            width = int(int(view_width) * device[0])
            height = int(int(view_height) * device[1])

        surface = Surface(
            width, height, has_alpha=self.recolor_enabled, device_scale=device
        )
        surface.fill(_WHITE)
        if abs(scale - 1.0) <= _FLT_EPSILON:
            scale = 1.0

        try:
            with self.lock():
                page.render(_RenderTarget(surface, scale), False)
        except PageError as exc:
            logger.debug("page %d could not be rendered: %s", page.index + 1, exc)
            return False

        if self._about_to_close or job.aborted:
            logger.debug("Rendering of page %d aborted", page.index + 1)
            request._remove_job(job)
            return True

        if not request.render_plain and self.recolor_enabled:
            self._recolor(page, surface, scale, device)

        self._dispatch(lambda: self._emit_completed(job, surface))
        return True

    def _recolor(
        self, page: Page, surface: Surface, scale: float, device: tuple[float, float]
    ) -> None:
        rectangles: Optional[list[Rectangle]] = None
        if self.recolor_reverse_video:
            try:
                images = page.images()
            except PageError:
                logger.warning("Failed to retrieve images.")
                images = None
            if images is not None:
                sx, sy = scale * device[0], scale * device[1]
                rectangles = [
                    Rectangle(
                        image.position.x1 * sx,
                        image.position.y1 * sy,
                        image.position.x2 * sx,
                        image.position.y2 * sy,
                    )
                    for image in images
                ]
        recolor(
            surface,
            self._dark,
            self._light,
            self.recolor_hue,
            self.recolor_reverse_video,
            rectangles,
        )

    def _emit_completed(self, job: RenderJob, surface: Surface) -> None:
        request = job.request
        try:
            if not self._about_to_close and not job.aborted:
                logger.debug("Emitting signal for page %d", request.page.index + 1)
                request._emit("completed", surface)
            else:
                logger.debug("Rendering of page %d aborted", request.page.index + 1)
        finally:
            request._remove_job(job)

    # page cache

    @property
    def page_cache(self) -> tuple[int, ...]:
        """Cached page indices in cache-slot order."""
        return tuple(index for index in self._cache if index >= 0)

    def _is_cached(self, page_index: int) -> bool:
        return self._num_cached != 0 and page_index in self._cache

    def _lru_invalidate(self) -> int:
        lru_index = 0
        lru_time = sys.maxsize
        victim: Optional[RenderRequest] = None
        for slot, cached in enumerate(self._cache):
            candidate = self._find_request(cached)
            if candidate is None:
                return -1
            if candidate.last_view_time < lru_time:
                lru_time = candidate.last_view_time
                lru_index = slot
                victim = candidate
        if victim is None:
            return -1

        victim._emit("cache-invalidated")
        logger.debug(
            "Invalidated page %d at cache index %d", victim.page.index + 1, lru_index
        )
        self._cache[lru_index] = -1
        self._num_cached -= 1
        return lru_index

    def page_cache_add(self, page_index: int) -> None:
        """Cache ``page_index``, evicting the least recently viewed page if full."""
        if self._is_cached(page_index):
            return
        if self._num_cached == len(self._cache):
            slot = self._lru_invalidate()
            if slot == -1:
                return
            self._cache[slot] = page_index
            self._num_cached += 1
        else:
            slot = self._num_cached
            self._cache[slot] = page_index
            self._num_cached += 1
        logger.debug("Page %d is cached at cache index %d", page_index + 1, slot)

        request = self._find_request(page_index)
        if request is not None:
            request._emit("cache-added")