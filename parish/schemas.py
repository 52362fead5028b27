"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from parish.carousel.actions import SlideAction, SlideContentType, call_to_action_label, is_external_link
from parish.carousel.controller import CarouselSnapshot


class SlideResponse(BaseModel):
    """
    Response schema for slide data.
    Used by the public carousel and the admin slide manager.
    """
    id: str
    title: str
    description: str
    image_url: str = ""
    link_url: Optional[str] = None
    link_text: Optional[str] = None
    content_type: SlideContentType
    related_content_id: Optional[str] = None
    order_index: int
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SlideCreate(BaseModel):
    """
    Request schema for creating a slide.
    Required fields are checked by the slide service so a missing title is
    reported the same way for create and update.
    """
    title: str = ""
    description: str = ""
    image_url: str = ""
    link_url: Optional[str] = None
    link_text: Optional[str] = None
    content_type: SlideContentType = SlideContentType.CUSTOM
    related_content_id: Optional[str] = None
    is_active: bool = True


class SlideUpdate(BaseModel):
    """
    Request schema for editing a slide. Only fields sent are changed.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    link_text: Optional[str] = None
    content_type: Optional[SlideContentType] = None
    related_content_id: Optional[str] = None
    order_index: Optional[int] = None
    is_active: Optional[bool] = None


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class SlideMoveRequest(BaseModel):
    direction: MoveDirection


class SlideActionResponse(BaseModel):
    """What the slide's call-to-action does."""
    kind: str
    url: Optional[str] = None
    target: Optional[str] = None
    hint: Optional[str] = None
    label: Optional[str] = None
    external: bool = False

    @classmethod
    def from_action(cls, action: SlideAction, slide=None) -> "SlideActionResponse":
        url = getattr(action, "url", None)
        return cls(
            kind=action.kind,
            url=url,
            target=getattr(action, "target", None),
            hint=getattr(action, "hint", None),
            label=call_to_action_label(slide) if slide is not None else None,
            external=is_external_link(url),
        )


class CarouselStateMessage(BaseModel):
    """State pushed over the carousel WebSocket after every transition."""
    type: str = "state"
    phase: str
    current_index: int
    autoplay: bool
    slide_count: int
    interval: float
    slide: Optional[SlideResponse] = None
    action: Optional[SlideActionResponse] = None

    @classmethod
    def from_snapshot(cls, snapshot: CarouselSnapshot, action: Optional[SlideAction] = None) -> "CarouselStateMessage":
        slide = snapshot.current_slide
        return cls(
            phase=snapshot.phase.value,
            current_index=snapshot.current_index,
            autoplay=snapshot.autoplay,
            slide_count=snapshot.slide_count,
            interval=snapshot.interval,
            slide=SlideResponse.model_validate(slide) if slide is not None else None,
            action=SlideActionResponse.from_action(action, slide) if action is not None else None,
        )


class RelatedContentOption(BaseModel):
    id: str
    title: str


class NavigationResponse(BaseModel):
    """Result of resolving a location on page load."""
    view: str
    canonical_path: str
    url: str
    donation_session_id: Optional[str] = None
    admin_prompt: str
    authenticated: bool


class RouteEntry(BaseModel):
    path: str
    view: str


class RouteTableResponse(BaseModel):
    routes: List[RouteEntry]
    canonical_paths: dict[str, str]
    default_view: str


class LoginRequest(BaseModel):
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class SessionResponse(BaseModel):
    authenticated: bool


class DonationResponse(BaseModel):
    id: str
    amount: Decimal
    amount_display: str
    currency: str
    donor_name: Optional[str] = None
    donation_purpose: Optional[str] = None
    message: Optional[str] = None
    status: str
    created_at: datetime
    thanks_message: str


class DonationContactInfo(BaseModel):
    phone: str
    whatsapp: str
    email: str
    whatsapp_url: str
    email_url: str


class PhotoResponse(BaseModel):
    """
    Response schema for a gallery photo.
    """
    id: int
    image_url: str
    caption: Optional[str] = None
    display_order: int

    model_config = ConfigDict(from_attributes=True)


class PaginationMetadata(BaseModel):
    """
    Pagination metadata for cursor-based pagination.
    """
    next_cursor: Optional[str] = None
    has_more: bool
    total_count: int


class PhotosPageResponse(BaseModel):
    photos: List[PhotoResponse]
    pagination: PaginationMetadata


class PhotoUpdate(BaseModel):
    caption: Optional[str] = None


class ImageUploadResponse(BaseModel):
    url: str
    public_id: str


class BlogPostResponse(BaseModel):
    """
    Response schema for a blog post ("Mensagem de Fé").
    """
    id: str
    title: str
    content: str
    is_published: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BlogPostCreate(BaseModel):
    title: str = ""
    content: str = ""
    is_published: bool = False


class BlogPostUpdate(BaseModel):
    """Only fields sent are changed."""
    title: Optional[str] = None
    content: Optional[str] = None
    is_published: Optional[bool] = None


class AnnouncementType(str, Enum):
    EVENT = "event"
    ANNOUNCEMENT = "announcement"


class AnnouncementResponse(BlogPostResponse):
    """Parish event or notice."""
    type: AnnouncementType


class AnnouncementCreate(BlogPostCreate):
    type: AnnouncementType = AnnouncementType.ANNOUNCEMENT


class AnnouncementUpdate(BlogPostUpdate):
    type: Optional[AnnouncementType] = None


class PublishRequest(BaseModel):
    is_published: bool
