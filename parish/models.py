"""
SQLAlchemy models for the parish site.
All database models inherit from Base (declarative base).
"""
import uuid

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from parish.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Slide(Base):
    """
    Homepage carousel slide.
    content_type decides how the call-to-action is resolved (see parish.carousel.actions).
    """
    __tablename__ = "slides"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String, nullable=False, default="")
    link_url = Column(String, nullable=True)
    link_text = Column(String, nullable=True)
    content_type = Column(String(32), nullable=False, default="custom")
    related_content_id = Column(String(36), nullable=True)
    order_index = Column(Integer, nullable=False, default=0, index=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class BlogPost(Base):
    """Blog post ("Mensagem de Fé"), referenced by blog_post slides."""
    __tablename__ = "blog_posts"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ParishAnnouncement(Base):
    """Parish event or notice, referenced by announcement slides."""
    __tablename__ = "parish_announcements"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    type = Column(String(16), nullable=False, default="announcement")  # event | announcement
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Celebration(Base):
    """Scheduled mass or celebration, referenced by event slides."""
    __tablename__ = "celebrations"

    id = Column(String(36), primary_key=True, default=_uuid)
    community_name = Column(String, nullable=False)
    celebration_type = Column(String, nullable=False)
    day_of_week = Column(String(16), nullable=False)
    time = Column(String(8), nullable=False)


class Donation(Base):
    """
    Chapel donation written by the payment provider webhook.
    Looked up by the checkout session id carried in the redirect.
    """
    __tablename__ = "donations"

    id = Column(String(36), primary_key=True, default=_uuid)
    stripe_session_id = Column(String, nullable=False, unique=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="brl")
    donor_name = Column(String, nullable=True)
    donor_email = Column(String, nullable=True)
    donation_purpose = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    status = Column(String(32), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class SystemSetting(Base):
    """Key/value settings edited from the admin panel."""
    __tablename__ = "system_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False, default="")


class Photo(Base):
    """
    Parish photo gallery image.
    Stores the Cloudinary URL, caption and manual display order.
    """
    __tablename__ = "photos"

    id = Column(Integer, primary_key=True, index=True)
    image_url = Column(String, nullable=False)
    caption = Column(String, nullable=True)
    display_order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
