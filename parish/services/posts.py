"""
Blog posts and parish announcements edited from the admin panel.

Both tables share title, content and is_published, so one set of functions
serves either model. Validation runs before any database write.
"""
from enum import Enum
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from typing import List, Optional, Type, Union
import logging

from parish.models import BlogPost, ParishAnnouncement
from parish.schemas import BlogPostCreate, BlogPostUpdate

logger = logging.getLogger(__name__)

PostModel = Union[Type[BlogPost], Type[ParishAnnouncement]]
Post = Union[BlogPost, ParishAnnouncement]

NOT_NULL_COLUMNS = ("title", "content", "is_published", "type")


class PostServiceError(Exception):
    """Base class for post and announcement errors."""


class PostNotFoundError(PostServiceError):
    def __init__(self, model: PostModel, post_id: str):
        super().__init__(f"{label_of(model)} ID {post_id} does not exist")
        self.post_id = post_id


class PostValidationError(PostServiceError):
    """Fields rejected before any write."""


def label_of(model: PostModel) -> str:
    return "Announcement" if model is ParishAnnouncement else "Post"


def _clean(changes: dict) -> dict:
    cleared = [column for column in NOT_NULL_COLUMNS if column in changes and changes[column] is None]
    if cleared:
        raise PostValidationError(f"Campos obrigatórios não podem ser nulos: {', '.join(cleared)}")

    if "title" in changes:
        changes["title"] = changes["title"].strip()
        if not changes["title"]:
            raise PostValidationError("Preencha o título")

    for column, value in changes.items():
        if isinstance(value, Enum):
            changes[column] = value.value
    return changes


async def list_posts(
    db: AsyncSession,
    model: PostModel,
    published_only: bool = False,
    type_filter: Optional[str] = None,
) -> List[Post]:
    """Posts newest first; the public site only sees published ones."""
    query = select(model).order_by(model.created_at.desc())
    if published_only:
        query = query.where(model.is_published.is_(True))
    if type_filter is not None and model is ParishAnnouncement:
        query = query.where(ParishAnnouncement.type == type_filter)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_post(db: AsyncSession, model: PostModel, post_id: str, published_only: bool = False) -> Post:
    query = select(model).where(model.id == post_id)
    if published_only:
        query = query.where(model.is_published.is_(True))
    post = (await db.execute(query)).scalar_one_or_none()
    if post is None:
        raise PostNotFoundError(model, post_id)
    return post


async def create_post(db: AsyncSession, model: PostModel, data: BlogPostCreate) -> Post:
    fields = _clean(data.model_dump())
    post = model(**fields)
    db.add(post)
    await db.commit()
    await db.refresh(post)

    logger.info(f"Created {label_of(model).lower()} {post.id} (published={post.is_published})")
    return post


async def update_post(db: AsyncSession, model: PostModel, post_id: str, data: BlogPostUpdate) -> Post:
    post = await get_post(db, model, post_id)
    changes = _clean(data.model_dump(exclude_unset=True))

    for column, value in changes.items():
        setattr(post, column, value)
    await db.commit()
    await db.refresh(post)

    logger.info(f"Updated {label_of(model).lower()} {post_id}: {sorted(changes)}")
    return post


async def set_published(db: AsyncSession, model: PostModel, post_id: str, published: bool) -> Post:
    post = await get_post(db, model, post_id)
    post.is_published = published
    await db.commit()
    await db.refresh(post)
    logger.info(f"{label_of(model)} {post_id} is_published={published}")
    return post


async def delete_post(db: AsyncSession, model: PostModel, post_id: str) -> None:
    """
    Delete a post. Slides that point at it keep their related_content_id and
    still navigate to the blog or announcements view.
    """
    await get_post(db, model, post_id)
    await db.execute(delete(model).where(model.id == post_id))
    await db.commit()
    logger.info(f"Deleted {label_of(model).lower()} {post_id}")
