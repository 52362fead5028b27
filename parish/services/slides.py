"""
Slide data access for the homepage carousel and the admin slide manager.
Validation runs before any database call; writes are committed one by one.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from sqlalchemy.sql import func
from typing import List
import logging

from parish.carousel.actions import (
    INTERNAL_PAGE_OPTIONS,
    SlideContentType,
    validate_slide_target,
)
from parish.models import BlogPost, Celebration, ParishAnnouncement, Slide
from parish.schemas import MoveDirection, RelatedContentOption, SlideCreate, SlideUpdate

logger = logging.getLogger(__name__)

# Columns an update may change but never clear
NOT_NULL_COLUMNS = ("title", "description", "image_url", "content_type", "order_index", "is_active")


class SlideServiceError(Exception):
    """Base class for slide manager errors."""


class SlideNotFoundError(SlideServiceError):
    def __init__(self, slide_id: str):
        super().__init__(f"Slide ID {slide_id} does not exist")
        self.slide_id = slide_id


class SlideValidationError(SlideServiceError):
    """Slide fields rejected before any write."""


def _validate(title, description, content_type, link_url, related_content_id) -> SlideContentType:
    if not (title or "").strip() or not (description or "").strip():
        raise SlideValidationError("Preencha título e descrição")
    try:
        return validate_slide_target(content_type, link_url, related_content_id)
    except ValueError as e:
        raise SlideValidationError(str(e)) from e


async def list_active_slides(db: AsyncSession) -> List[Slide]:
    """Active slides in display order, as shown by the homepage carousel."""
    result = await db.execute(
        select(Slide)
        .where(Slide.is_active.is_(True))
        .order_by(Slide.order_index.asc(), Slide.created_at.asc())
    )
    return list(result.scalars().all())


async def list_slides(db: AsyncSession) -> List[Slide]:
    """All slides in display order, for the admin slide manager."""
    result = await db.execute(
        select(Slide)
        .order_by(Slide.order_index.asc(), Slide.created_at.asc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_slide(db: AsyncSession, slide_id: str) -> Slide:
    result = await db.execute(select(Slide).where(Slide.id == slide_id))
    slide = result.scalar_one_or_none()
    if slide is None:
        raise SlideNotFoundError(slide_id)
    return slide


async def create_slide(db: AsyncSession, data: SlideCreate) -> Slide:
    """Insert a slide after the current last one."""
    content_type = _validate(
        data.title, data.description, data.content_type, data.link_url, data.related_content_id
    )

    max_order = (await db.execute(select(func.max(Slide.order_index)))).scalar()
    order_index = 0 if max_order is None else max_order + 1

    slide = Slide(
        title=data.title.strip(),
        description=data.description.strip(),
        image_url=data.image_url or "",
        link_url=data.link_url or None,
        link_text=data.link_text or None,
        content_type=content_type.value,
        related_content_id=data.related_content_id or None,
        order_index=order_index,
        is_active=data.is_active,
    )
    db.add(slide)
    await db.commit()
    await db.refresh(slide)

    logger.info(f"Created slide {slide.id} at order_index={order_index}")
    return slide


async def update_slide(db: AsyncSession, slide_id: str, data: SlideUpdate) -> Slide:
    """Apply the fields sent in data; the merged slide must still be valid."""
    slide = await get_slide(db, slide_id)
    changes = data.model_dump(exclude_unset=True)

    cleared = [column for column in NOT_NULL_COLUMNS if column in changes and changes[column] is None]
    if cleared:
        raise SlideValidationError(f"Campos obrigatórios não podem ser nulos: {', '.join(cleared)}")

    # Changing the type resets the related content unless it is sent too
    if "content_type" in changes and "related_content_id" not in changes:
        changes["related_content_id"] = None

    merged = {
        column: changes.get(column, getattr(slide, column))
        for column in ("title", "description", "content_type", "link_url", "related_content_id")
    }
    content_type = _validate(
        merged["title"], merged["description"], merged["content_type"],
        merged["link_url"], merged["related_content_id"],
    )
    if "content_type" in changes:
        changes["content_type"] = content_type.value

    for column, value in changes.items():
        if column in ("title", "description") and value is not None:
            value = value.strip()
        setattr(slide, column, value)

    await db.commit()
    await db.refresh(slide)

    logger.info(f"Updated slide {slide_id}: {sorted(changes)}")
    return slide


async def delete_slide(db: AsyncSession, slide_id: str) -> None:
    await get_slide(db, slide_id)
    await db.execute(delete(Slide).where(Slide.id == slide_id))
    await db.commit()
    logger.info(f"Deleted slide {slide_id}")


async def toggle_slide_active(db: AsyncSession, slide_id: str) -> Slide:
    """Show or hide a slide in the carousel without deleting it."""
    slide = await get_slide(db, slide_id)
    slide.is_active = not slide.is_active
    await db.commit()
    await db.refresh(slide)
    logger.info(f"Slide {slide_id} is_active={slide.is_active}")
    return slide


async def move_slide(db: AsyncSession, slide_id: str, direction: MoveDirection) -> List[Slide]:
    """
    Swap a slide's order_index with its neighbour and return the re-sorted list.

    The two rows are updated by two separate committed writes. If the second
    one fails the first is not rolled back.
    """
    slides = await list_slides(db)
    position = next((i for i, s in enumerate(slides) if s.id == slide_id), None)
    if position is None:
        raise SlideNotFoundError(slide_id)

    target = position - 1 if MoveDirection(direction) is MoveDirection.UP else position + 1
    if target < 0 or target >= len(slides):
        return slides

    moving, neighbour = slides[position], slides[target]
    moving_order, neighbour_order = moving.order_index, neighbour.order_index

    await db.execute(
        update(Slide).where(Slide.id == moving.id).values(order_index=neighbour_order)
    )
    await db.commit()

    try:
        await db.execute(
            update(Slide).where(Slide.id == neighbour.id).values(order_index=moving_order)
        )
        await db.commit()
    except Exception as e:
        logger.error(
            f"Slide move half-applied: {moving.id} now at {neighbour_order}, "
            f"{neighbour.id} still at {neighbour_order}: {str(e)}",
            exc_info=True,
        )
        raise

    logger.info(f"Swapped slides {moving.id} ({moving_order}) and {neighbour.id} ({neighbour_order})")
    return await list_slides(db)


async def related_content_options(db: AsyncSession, content_type: SlideContentType) -> List[RelatedContentOption]:
    """Choices offered by the editor for a slide's related content."""
    content_type = SlideContentType(content_type)

    if content_type is SlideContentType.INTERNAL_PAGE:
        return [RelatedContentOption(id=value, title=label) for value, label in INTERNAL_PAGE_OPTIONS]

    if content_type is SlideContentType.BLOG_POST:
        result = await db.execute(
            select(BlogPost)
            .where(BlogPost.is_published.is_(True))
            .order_by(BlogPost.created_at.desc())
        )
        return [RelatedContentOption(id=post.id, title=post.title) for post in result.scalars()]

    if content_type is SlideContentType.ANNOUNCEMENT:
        result = await db.execute(
            select(ParishAnnouncement)
            .where(ParishAnnouncement.is_published.is_(True))
            .order_by(ParishAnnouncement.created_at.desc())
        )
        return [
            RelatedContentOption(
                id=item.id,
                title=f"{item.title} ({'Evento' if item.type == 'event' else 'Aviso'})",
            )
            for item in result.scalars()
        ]

    if content_type is SlideContentType.EVENT:
        result = await db.execute(select(Celebration).order_by(Celebration.day_of_week.asc()))
        return [
            RelatedContentOption(
                id=item.id,
                title=f"{item.community_name} - {item.celebration_type} ({item.day_of_week} {item.time})",
            )
            for item in result.scalars()
        ]

    return []
