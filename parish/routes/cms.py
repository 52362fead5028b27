"""
Admin console API routes.
All endpoints require an admin session (JWT cookie or Bearer header).
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.sql import func
from typing import Awaitable, List, Optional
import logging

from parish.carousel.actions import SlideContentType
from parish.database import get_db
from parish.models import BlogPost, ParishAnnouncement, Photo
from parish.schemas import (
    AnnouncementCreate,
    AnnouncementResponse,
    AnnouncementUpdate,
    BlogPostCreate,
    BlogPostResponse,
    BlogPostUpdate,
    ImageUploadResponse,
    PhotoResponse,
    PhotoUpdate,
    PublishRequest,
    RelatedContentOption,
    SlideCreate,
    SlideMoveRequest,
    SlideResponse,
    SlideUpdate,
)
from parish.services import posts as post_service
from parish.services import slides as slide_service
from parish.services.posts import PostModel, PostNotFoundError, PostServiceError, label_of
from parish.services.slides import SlideNotFoundError, SlideServiceError
from parish.services.storage import (
    PHOTOS_FOLDER,
    SLIDES_FOLDER,
    ImageValidationError,
    delete_image,
    extract_public_id_from_url,
    store_image,
    validate_image_upload,
)
from parish.utils.jwt_auth import verify_cms_token
from parish.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cms")


def _slide_http_error(e: SlideServiceError) -> HTTPException:
    if isinstance(e, SlideNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Slide not found", "detail": str(e)}
        )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "Invalid slide", "detail": str(e)}
    )


def _server_error(message: str, e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": message, "detail": str(e)}
    )


async def _read_image(file: UploadFile) -> bytes:
    content = await file.read()
    try:
        validate_image_upload(file.content_type, len(content))
    except ImageValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid file", "detail": str(e)}
        )
    return content


# Slides

@router.get("/slides", response_model=List[SlideResponse])
async def get_cms_slides(
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """All slides, active or not, in display order."""
    try:
        slides = await slide_service.list_slides(db)
    except Exception as e:
        logger.error(f"Error fetching slides: {str(e)}", exc_info=True)
        raise _server_error("Erro ao buscar slides", e)
    return [SlideResponse.model_validate(slide) for slide in slides]


@router.post("/slides", response_model=SlideResponse, status_code=status.HTTP_201_CREATED)
async def create_cms_slide(
    data: SlideCreate,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """
    Create a slide at the end of the carousel.

    Raises:
        HTTPException: 400 if title/description are missing or the link fields conflict
    """
    try:
        slide = await slide_service.create_slide(db, data)
    except SlideServiceError as e:
        raise _slide_http_error(e)
    except Exception as e:
        logger.error(f"Error saving slide: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Erro ao salvar slide", e)
    return SlideResponse.model_validate(slide)


@router.get("/slides/related-content", response_model=List[RelatedContentOption])
async def get_related_content_options(
    content_type: SlideContentType,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """Options for the slide editor's related content / internal page picker."""
    try:
        return await slide_service.related_content_options(db, content_type)
    except Exception as e:
        logger.error(f"Error loading related content: {str(e)}", exc_info=True)
        raise _server_error("Erro ao carregar conteúdo relacionado", e)


@router.post("/slides/image", response_model=ImageUploadResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def upload_slide_image(
    request: Request,
    file: UploadFile = File(...),
    session: dict = Depends(verify_cms_token)
):
    """
    Upload a slide background image and return its public URL.
    The URL is then saved with the slide through create/update.
    """
    content = await _read_image(file)
    try:
        result = await store_image(content, file.filename or "slide", folder=SLIDES_FOLDER)
    except Exception as e:
        logger.error(f"Error uploading slide image: {str(e)}", exc_info=True)
        raise _server_error("Erro ao carregar imagem", e)
    return ImageUploadResponse(url=result["url"], public_id=result["public_id"])


@router.put("/slides/{slide_id}", response_model=SlideResponse)
async def update_cms_slide(
    slide_id: str,
    data: SlideUpdate,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    try:
        slide = await slide_service.update_slide(db, slide_id, data)
    except SlideServiceError as e:
        raise _slide_http_error(e)
    except Exception as e:
        logger.error(f"Error saving slide {slide_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Erro ao salvar slide", e)
    return SlideResponse.model_validate(slide)


@router.delete("/slides/{slide_id}")
async def delete_cms_slide(
    slide_id: str,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    try:
        await slide_service.delete_slide(db, slide_id)
    except SlideServiceError as e:
        raise _slide_http_error(e)
    except Exception as e:
        logger.error(f"Error deleting slide {slide_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Erro ao excluir slide", e)
    return {"message": "Slide excluído com sucesso!", "slide_id": slide_id}


@router.patch("/slides/{slide_id}/active", response_model=SlideResponse)
async def toggle_cms_slide_active(
    slide_id: str,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    try:
        slide = await slide_service.toggle_slide_active(db, slide_id)
    except SlideServiceError as e:
        raise _slide_http_error(e)
    except Exception as e:
        logger.error(f"Error toggling slide {slide_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Erro ao atualizar slide", e)
    return SlideResponse.model_validate(slide)


@router.post("/slides/{slide_id}/move", response_model=List[SlideResponse])
async def move_cms_slide(
    slide_id: str,
    move: SlideMoveRequest,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """
    Move a slide one position up or down by swapping order_index with its neighbour.
    Returns all slides in their new order. Moving past either end is a no-op.
    """
    try:
        slides = await slide_service.move_slide(db, slide_id, move.direction)
    except SlideServiceError as e:
        raise _slide_http_error(e)
    except Exception as e:
        logger.error(f"Error moving slide {slide_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Erro ao mover slide", e)
    return [SlideResponse.model_validate(slide) for slide in slides]


# Photos

@router.get("/photos", response_model=List[PhotoResponse])
async def get_cms_photos(
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    try:
        result = await db.execute(select(Photo).order_by(Photo.display_order.asc(), Photo.id.asc()))
    except Exception as e:
        logger.error(f"Error fetching photos: {str(e)}", exc_info=True)
        raise _server_error("Failed to retrieve photos", e)
    return [PhotoResponse.model_validate(photo) for photo in result.scalars()]


@router.post("/photos", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def add_cms_photo(
    request: Request,
    file: UploadFile = File(...),
    caption: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """
    Upload a photo to Cloudinary and append it to the gallery.
    """
    content = await _read_image(file)
    try:
        uploaded = await store_image(content, file.filename or "photo", folder=PHOTOS_FOLDER)

        max_order = (await db.execute(select(func.max(Photo.display_order)))).scalar()
        photo = Photo(
            image_url=uploaded["url"],
            caption=caption.strip() if caption and caption.strip() else None,
            display_order=0 if max_order is None else max_order + 1,
        )
        db.add(photo)
        await db.commit()
        await db.refresh(photo)
    except Exception as e:
        logger.error(f"Error adding photo: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Failed to add photo", e)

    logger.info(f"Added photo {photo.id} at display_order={photo.display_order}")
    return PhotoResponse.model_validate(photo)


async def _get_photo(db: AsyncSession, photo_id: int) -> Photo:
    photo = (await db.execute(select(Photo).where(Photo.id == photo_id))).scalar_one_or_none()
    if photo is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Photo not found", "detail": f"Photo ID {photo_id} does not exist"}
        )
    return photo


@router.put("/photos/{photo_id}", response_model=PhotoResponse)
async def update_cms_photo(
    photo_id: int,
    photo_update: PhotoUpdate,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """Change or clear a photo caption."""
    photo = await _get_photo(db, photo_id)
    caption = photo_update.caption
    photo.caption = caption.strip() if caption and caption.strip() else None
    try:
        await db.commit()
        await db.refresh(photo)
    except Exception as e:
        logger.error(f"Error updating photo {photo_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Failed to update photo", e)
    return PhotoResponse.model_validate(photo)


@router.delete("/photos/{photo_id}")
async def delete_cms_photo(
    photo_id: int,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """
    Delete a photo from the database and Cloudinary.
    A Cloudinary failure is logged and does not keep the row.
    """
    photo = await _get_photo(db, photo_id)

    try:
        public_id = extract_public_id_from_url(photo.image_url)
    except ValueError as e:
        logger.warning(f"Skipping Cloudinary deletion for photo {photo_id}: {str(e)}")
        public_id = None

    if public_id:
        try:
            await delete_image(public_id)
        except Exception as e:
            logger.error(f"Failed to delete {public_id} from Cloudinary: {str(e)}", exc_info=True)

    try:
        await db.execute(delete(Photo).where(Photo.id == photo_id))
        await db.commit()
    except Exception as e:
        logger.error(f"Error deleting photo {photo_id}: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error("Failed to delete photo", e)

    logger.info(f"Deleted photo {photo_id}")
    return {"message": "Photo deleted successfully", "photo_id": photo_id}


# Blog posts and announcements

def _post_http_error(model: PostModel, e: PostServiceError) -> HTTPException:
    label = label_of(model)
    if isinstance(e, PostNotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": f"{label} not found", "detail": str(e)}
        )
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": f"Invalid {label.lower()}", "detail": str(e)}
    )


async def _post_call(db: AsyncSession, model: PostModel, call: Awaitable, failure: str):
    """Await a post service call, mapping its errors to HTTP responses."""
    try:
        return await call
    except PostServiceError as e:
        raise _post_http_error(model, e)
    except Exception as e:
        logger.error(f"{failure}: {str(e)}", exc_info=True)
        await db.rollback()
        raise _server_error(failure, e)


@router.get("/blog-posts", response_model=List[BlogPostResponse])
async def get_cms_blog_posts(
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """All blog posts, drafts included, newest first."""
    posts = await _post_call(db, BlogPost, post_service.list_posts(db, BlogPost), "Erro ao buscar posts")
    return [BlogPostResponse.model_validate(post) for post in posts]


@router.post("/blog-posts", response_model=BlogPostResponse, status_code=status.HTTP_201_CREATED)
async def create_cms_blog_post(
    data: BlogPostCreate,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    post = await _post_call(db, BlogPost, post_service.create_post(db, BlogPost, data), "Erro ao salvar post")
    return BlogPostResponse.model_validate(post)


@router.put("/blog-posts/{post_id}", response_model=BlogPostResponse)
async def update_cms_blog_post(
    post_id: str,
    data: BlogPostUpdate,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    post = await _post_call(
        db, BlogPost, post_service.update_post(db, BlogPost, post_id, data), "Erro ao salvar post"
    )
    return BlogPostResponse.model_validate(post)


@router.patch("/blog-posts/{post_id}/publish", response_model=BlogPostResponse)
async def publish_cms_blog_post(
    post_id: str,
    publish: PublishRequest,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    """Publish or unpublish a post; unpublished posts leave the public blog."""
    post = await _post_call(
        db, BlogPost,
        post_service.set_published(db, BlogPost, post_id, publish.is_published),
        "Erro ao publicar post",
    )
    return BlogPostResponse.model_validate(post)


@router.delete("/blog-posts/{post_id}")
async def delete_cms_blog_post(
    post_id: str,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    await _post_call(db, BlogPost, post_service.delete_post(db, BlogPost, post_id), "Erro ao excluir post")
    return {"message": "Post excluído com sucesso!", "post_id": post_id}


@router.get("/announcements", response_model=List[AnnouncementResponse])
async def get_cms_announcements(
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    items = await _post_call(
        db, ParishAnnouncement, post_service.list_posts(db, ParishAnnouncement), "Erro ao buscar avisos"
    )
    return [AnnouncementResponse.model_validate(item) for item in items]


@router.post("/announcements", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_cms_announcement(
    data: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    item = await _post_call(
        db, ParishAnnouncement, post_service.create_post(db, ParishAnnouncement, data), "Erro ao salvar aviso"
    )
    return AnnouncementResponse.model_validate(item)


@router.put("/announcements/{announcement_id}", response_model=AnnouncementResponse)
async def update_cms_announcement(
    announcement_id: str,
    data: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    item = await _post_call(
        db, ParishAnnouncement,
        post_service.update_post(db, ParishAnnouncement, announcement_id, data),
        "Erro ao salvar aviso",
    )
    return AnnouncementResponse.model_validate(item)


@router.patch("/announcements/{announcement_id}/publish", response_model=AnnouncementResponse)
async def publish_cms_announcement(
    announcement_id: str,
    publish: PublishRequest,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    item = await _post_call(
        db, ParishAnnouncement,
        post_service.set_published(db, ParishAnnouncement, announcement_id, publish.is_published),
        "Erro ao publicar aviso",
    )
    return AnnouncementResponse.model_validate(item)


@router.delete("/announcements/{announcement_id}")
async def delete_cms_announcement(
    announcement_id: str,
    db: AsyncSession = Depends(get_db),
    session: dict = Depends(verify_cms_token)
):
    await _post_call(
        db, ParishAnnouncement,
        post_service.delete_post(db, ParishAnnouncement, announcement_id),
        "Erro ao excluir aviso",
    )
    return {"message": "Aviso excluído com sucesso!", "announcement_id": announcement_id}
