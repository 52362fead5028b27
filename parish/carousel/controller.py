"""
Homepage slide carousel controller.

Holds a read-only snapshot of the active slides, advances through them on an
asyncio timer and supports manual navigation. The autoplay task is cancelled
and restarted whenever the slide count or the autoplay flag changes, and is
always cancelled on unmount.
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Set
import asyncio
import logging

from parish.carousel.actions import SlideAction, NO_ACTION, resolve_action
from parish.config import settings

logger = logging.getLogger(__name__)

FetchSlides = Callable[[], Awaitable[Sequence[Any]]]
Prefetch = Callable[[str], Awaitable[None]]


class CarouselPhase(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    READY = "ready"


@dataclass(frozen=True)
class CarouselSnapshot:
    """Serialisable view of the carousel state."""
    phase: CarouselPhase
    current_index: int
    autoplay: bool
    slide_count: int
    interval: float
    current_slide: Optional[Any] = None


Listener = Callable[[CarouselSnapshot], None]


class SlideCarousel:
    """
    Carousel over the active slides, ordered by order_index.

    Usage:
        carousel = SlideCarousel(fetch_slides)
        async with carousel.mounted():
            carousel.advance()
    """

    def __init__(
        self,
        fetch_slides: FetchSlides,
        interval: Optional[float] = None,
        autoplay: bool = True,
        prefetch: Optional[Prefetch] = None,
    ):
        self._fetch_slides = fetch_slides
        self.interval = settings.SLIDE_AUTOPLAY_SECONDS if interval is None else interval
        self._prefetch = prefetch
        self._slides: List[Any] = []
        self._phase = CarouselPhase.LOADING
        self._current_index = 0
        self._autoplay = autoplay
        self._mounted = False
        self._timer: Optional[asyncio.Task] = None
        self._prefetches: Set[asyncio.Task] = set()
        self._listeners: List[Listener] = []

    # State

    @property
    def phase(self) -> CarouselPhase:
        return self._phase

    @property
    def slides(self) -> List[Any]:
        return list(self._slides)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def autoplay(self) -> bool:
        return self._autoplay

    @property
    def autoplay_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def current_slide(self) -> Optional[Any]:
        if not self._slides:
            return None
        return self._slides[self._current_index]

    def current_action(self) -> SlideAction:
        slide = self.current_slide
        return resolve_action(slide) if slide is not None else NO_ACTION

    def snapshot(self) -> CarouselSnapshot:
        return CarouselSnapshot(
            phase=self._phase,
            current_index=self._current_index,
            autoplay=self._autoplay,
            slide_count=len(self._slides),
            interval=self.interval,
            current_slide=self.current_slide,
        )

    # Lifecycle

    async def mount(self) -> None:
        """Fetch the active slides and start autoplay."""
        self._mounted = True
        try:
            slides = await self._fetch_slides()
        except Exception as e:
            logger.error(f"Error fetching slides, showing fallback: {str(e)}", exc_info=True)
            slides = []
        if not self._mounted:
            return
        self.set_slides(slides)
        # Slides set before mounting leave the count unchanged here
        if self._timer is None:
            self._restart_autoplay()

    async def unmount(self) -> None:
        """Cancel the autoplay timer and any pending image prefetches."""
        self._mounted = False
        pending = [task for task in (self._timer, *self._prefetches) if task is not None]
        self._timer = None
        self._prefetches.clear()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    @asynccontextmanager
    async def mounted(self) -> AsyncIterator["SlideCarousel"]:
        await self.mount()
        try:
            yield self
        finally:
            await self.unmount()

    def set_slides(self, slides: Sequence[Any]) -> None:
        """Replace the slide snapshot with the active slides in display order."""
        active = [slide for slide in slides if getattr(slide, "is_active", True)]
        ordered = sorted(active, key=lambda slide: slide.order_index)
        count_changed = len(ordered) != len(self._slides)
        was_loading = self._phase is CarouselPhase.LOADING

        self._slides = ordered
        self._phase = CarouselPhase.READY if ordered else CarouselPhase.EMPTY
        if self._current_index >= len(ordered):
            self._current_index = 0

        if count_changed or was_loading:
            self._restart_autoplay()
        self._notify()

    # Transitions

    def advance(self) -> None:
        if not self._slides:
            return
        self._select((self._current_index + 1) % len(self._slides))

    def retreat(self) -> None:
        if not self._slides:
            return
        if self._current_index == 0:
            self._select(len(self._slides) - 1)
        else:
            self._select(self._current_index - 1)

    def jump_to(self, index: int) -> None:
        if not 0 <= index < len(self._slides):
            raise IndexError(f"Slide index {index} out of range (0..{len(self._slides) - 1})")
        self._select(index)

    def tick(self) -> None:
        """One autoplay step."""
        if self._autoplay and len(self._slides) > 1:
            self.advance()

    def toggle_autoplay(self) -> bool:
        self.set_autoplay(not self._autoplay)
        return self._autoplay

    def set_autoplay(self, enabled: bool) -> None:
        if enabled == self._autoplay:
            return
        self._autoplay = enabled
        self._restart_autoplay()
        self._notify()

    # Listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def teardown() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return teardown

    # Internals

    def _select(self, index: int) -> None:
        self._current_index = index
        self._prefetch_image(self._slides[index])
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Carousel listener failed: {str(e)}", exc_info=True)

    def _restart_autoplay(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not (self._mounted and self._autoplay and len(self._slides) > 1):
            return
        self._timer = asyncio.get_running_loop().create_task(self._run_autoplay())
        logger.debug(f"Autoplay started for {len(self._slides)} slides every {self.interval}s")

    async def _run_autoplay(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()

    def _prefetch_image(self, slide: Any) -> None:
        image_url = getattr(slide, "image_url", None)
        if self._prefetch is None or not image_url:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self._prefetch(image_url))
        self._prefetches.add(task)
        task.add_done_callback(self._prefetch_done)

    def _prefetch_done(self, task: asyncio.Task) -> None:
        self._prefetches.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Image prefetch failed: {str(error)}")
