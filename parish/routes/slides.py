"""
Public slide routes for the homepage carousel.
Includes the WebSocket channel that drives a carousel display.
"""
from fastapi import APIRouter, Depends, HTTPException, status, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional
import asyncio
import logging

from parish.carousel.actions import resolve_action
from parish.carousel.controller import CarouselSnapshot, FetchSlides, SlideCarousel
from parish.database import AsyncSessionLocal, get_db
from parish.schemas import CarouselStateMessage, SlideActionResponse, SlideResponse
from parish.services.slides import SlideNotFoundError, get_slide, list_active_slides

logger = logging.getLogger(__name__)

router = APIRouter()
channel_router = APIRouter()


def get_slide_fetcher() -> FetchSlides:
    """
    FastAPI dependency returning the carousel's slide source.
    Each fetch uses its own short-lived session.
    """
    async def fetch_active_slides():
        async with AsyncSessionLocal() as session:
            return await list_active_slides(session)

    return fetch_active_slides


@router.get("/slides", response_model=List[SlideResponse])
async def get_active_slides(db: AsyncSession = Depends(get_db)):
    """
    Active slides ordered by order_index.

    A failing query returns an empty list so the homepage shows its static
    welcome banner instead of the carousel.
    """
    try:
        slides = await list_active_slides(db)
    except Exception as e:
        logger.error(f"Error fetching slides: {str(e)}", exc_info=True)
        return []

    logger.info(f"Retrieved {len(slides)} active slides")
    return [SlideResponse.model_validate(slide) for slide in slides]


@router.get("/slides/{slide_id}/action", response_model=SlideActionResponse)
async def get_slide_action(slide_id: str, db: AsyncSession = Depends(get_db)):
    """What pressing the slide's button does (external link, internal view, or nothing)."""
    try:
        slide = await get_slide(db, slide_id)
    except SlideNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Slide not found", "detail": str(e)}
        )
    return SlideActionResponse.from_action(resolve_action(slide), slide)


def _state_message(snapshot: CarouselSnapshot) -> Dict[str, Any]:
    slide = snapshot.current_slide
    action = resolve_action(slide) if slide is not None else None
    return CarouselStateMessage.from_snapshot(snapshot, action).model_dump(mode="json")


def _apply_command(carousel: SlideCarousel, command: Any) -> Optional[str]:
    """Run one client command; returns an error message for bad commands."""
    if not isinstance(command, dict):
        return "Command must be a JSON object"

    action = command.get("action")
    if action == "next":
        carousel.advance()
    elif action == "previous":
        carousel.retreat()
    elif action == "goto":
        index = command.get("index")
        if not isinstance(index, int) or isinstance(index, bool):
            return "goto requires an integer index"
        try:
            carousel.jump_to(index)
        except IndexError as e:
            return str(e)
    elif action == "toggle_autoplay":
        carousel.toggle_autoplay()
    elif action == "autoplay":
        carousel.set_autoplay(bool(command.get("enabled")))
    else:
        return f"Unknown action: {action}"
    return None


async def _forward(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


@channel_router.websocket("/ws/carousel")
async def carousel_channel(
    websocket: WebSocket,
    fetch_slides: FetchSlides = Depends(get_slide_fetcher)
):
    """
    Stream carousel state to a display.

    Server -> client: {"type": "state", ...} after every transition,
    {"type": "preload", "image_url": ...} for the newly selected slide, and
    {"type": "error", "detail": ...} for rejected commands.
    Client -> server: {"action": "next" | "previous" | "toggle_autoplay"},
    {"action": "goto", "index": n}, {"action": "autoplay", "enabled": bool}.
    """
    await websocket.accept()
    outbox: asyncio.Queue = asyncio.Queue()

    async def announce_preload(image_url: str) -> None:
        await outbox.put({"type": "preload", "image_url": image_url})

    carousel = SlideCarousel(fetch_slides, prefetch=announce_preload)
    teardown = carousel.subscribe(lambda snapshot: outbox.put_nowait(_state_message(snapshot)))
    sender = asyncio.create_task(_forward(websocket, outbox))

    try:
        await carousel.mount()
        logger.info(f"Carousel client connected: {carousel.phase.value}, {len(carousel.slides)} slides")
        while True:
            try:
                command = await websocket.receive_json()
            except ValueError:
                await outbox.put({"type": "error", "detail": "Invalid JSON"})
                continue
            error = _apply_command(carousel, command)
            if error:
                await outbox.put({"type": "error", "detail": error})
    except WebSocketDisconnect:
        logger.info("Carousel client disconnected")
    finally:
        teardown()
        await carousel.unmount()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
