"""
Public photo gallery routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, or_, select, func
from typing import Optional, Tuple
import logging

from parish.database import get_db
from parish.models import Photo
from parish.schemas import PaginationMetadata, PhotoResponse, PhotosPageResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def encode_cursor(photo: Photo) -> str:
    return f"{photo.display_order}:{photo.id}"


def decode_cursor(cursor: str) -> Tuple[int, int]:
    """
    Split a "display_order:id" cursor.

    Raises:
        HTTPException: 400 if the cursor is malformed
    """
    try:
        display_order, photo_id = cursor.split(":", 1)
        return int(display_order), int(photo_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid cursor", "detail": f"Expected display_order:id, got {cursor!r}"}
        )


@router.get("/photos", response_model=PhotosPageResponse)
async def get_photos(
    limit: int = Query(12, ge=1, le=100),
    cursor: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Get a page of gallery photos ordered by display_order, then id.

    Args:
        limit: Number of photos to return (1-100)
        cursor: next_cursor of the previous page ("display_order:id")
    """
    after = decode_cursor(cursor) if cursor is not None else None

    try:
        query = select(Photo).order_by(Photo.display_order.asc(), Photo.id.asc())
        if after is not None:
            last_order, last_id = after
            # display_order is not unique, so ties continue by id
            query = query.where(or_(
                Photo.display_order > last_order,
                and_(Photo.display_order == last_order, Photo.id > last_id),
            ))

        # One extra row tells whether another page exists
        result = await db.execute(query.limit(limit + 1))
        photos = list(result.scalars().all())

        has_more = len(photos) > limit
        photos = photos[:limit]
        next_cursor = encode_cursor(photos[-1]) if photos and has_more else None

        total_count = (await db.execute(select(func.count(Photo.id)))).scalar()

        logger.info(f"Retrieved {len(photos)} photos (cursor: {cursor}, next: {next_cursor})")

        return PhotosPageResponse(
            photos=[PhotoResponse.model_validate(photo) for photo in photos],
            pagination=PaginationMetadata(
                next_cursor=next_cursor,
                has_more=has_more,
                total_count=total_count,
            )
        )

    except Exception as e:
        logger.error(f"Failed to retrieve photos: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve photos", "detail": str(e)}
        )
