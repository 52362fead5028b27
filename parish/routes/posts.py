"""
Public blog and announcement routes backing the blog and announcements views.
Only published entries are visible here.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from parish.database import get_db
from parish.models import BlogPost, ParishAnnouncement
from parish.schemas import AnnouncementResponse, AnnouncementType, BlogPostResponse
from parish.services.posts import PostNotFoundError, PostModel, get_post, label_of, list_posts

logger = logging.getLogger(__name__)

router = APIRouter()


async def _published(db: AsyncSession, model: PostModel, post_id: str):
    try:
        return await get_post(db, model, post_id, published_only=True)
    except PostNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": f"{label_of(model)} not found", "detail": str(e)}
        )


@router.get("/blog-posts", response_model=List[BlogPostResponse])
async def get_blog_posts(db: AsyncSession = Depends(get_db)):
    """Published blog posts, newest first."""
    try:
        posts = await list_posts(db, BlogPost, published_only=True)
    except Exception as e:
        logger.error(f"Error fetching blog posts: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve blog posts", "detail": str(e)}
        )
    return [BlogPostResponse.model_validate(post) for post in posts]


@router.get("/blog-posts/{post_id}", response_model=BlogPostResponse)
async def get_blog_post(post_id: str, db: AsyncSession = Depends(get_db)):
    return BlogPostResponse.model_validate(await _published(db, BlogPost, post_id))


@router.get("/announcements", response_model=List[AnnouncementResponse])
async def get_announcements(
    type: Optional[AnnouncementType] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Published events and notices, newest first.

    Args:
        type: Only "event" or only "announcement" entries
    """
    try:
        items = await list_posts(
            db, ParishAnnouncement, published_only=True, type_filter=type.value if type else None
        )
    except Exception as e:
        logger.error(f"Error fetching announcements: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to retrieve announcements", "detail": str(e)}
        )
    return [AnnouncementResponse.model_validate(item) for item in items]


@router.get("/announcements/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(announcement_id: str, db: AsyncSession = Depends(get_db)):
    return AnnouncementResponse.model_validate(await _published(db, ParishAnnouncement, announcement_id))
