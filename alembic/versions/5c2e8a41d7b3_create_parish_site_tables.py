"""create_parish_site_tables

Revision ID: 5c2e8a41d7b3
Revises:
Create Date: 2026-10-19 09:12:41.508210

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c2e8a41d7b3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'slides',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=False, server_default=''),
        sa.Column('link_url', sa.String(), nullable=True),
        sa.Column('link_text', sa.String(), nullable=True),
        sa.Column('content_type', sa.String(length=32), nullable=False, server_default='custom'),
        sa.Column('related_content_id', sa.String(length=36), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index(op.f('ix_slides_order_index'), 'slides', ['order_index'], unique=False)
    op.create_index(op.f('ix_slides_is_active'), 'slides', ['is_active'], unique=False)

    op.create_table(
        'blog_posts',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'parish_announcements',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='announcement'),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_table(
        'celebrations',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('community_name', sa.String(), nullable=False),
        sa.Column('celebration_type', sa.String(), nullable=False),
        sa.Column('day_of_week', sa.String(length=16), nullable=False),
        sa.Column('time', sa.String(length=8), nullable=False),
    )

    op.create_table(
        'donations',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('stripe_session_id', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='brl'),
        sa.Column('donor_name', sa.String(), nullable=True),
        sa.Column('donor_email', sa.String(), nullable=True),
        sa.Column('donation_purpose', sa.String(), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index(op.f('ix_donations_stripe_session_id'), 'donations', ['stripe_session_id'], unique=True)

    op.create_table(
        'system_settings',
        sa.Column('key', sa.String(), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False, server_default=''),
    )

    op.create_table(
        'photos',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('image_url', sa.String(), nullable=False),
        sa.Column('caption', sa.String(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index(op.f('ix_photos_id'), 'photos', ['id'], unique=False)
    op.create_index(op.f('ix_photos_display_order'), 'photos', ['display_order'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_photos_display_order'), table_name='photos')
    op.drop_index(op.f('ix_photos_id'), table_name='photos')
    op.drop_table('photos')
    op.drop_table('system_settings')
    op.drop_index(op.f('ix_donations_stripe_session_id'), table_name='donations')
    op.drop_table('donations')
    op.drop_table('celebrations')
    op.drop_table('parish_announcements')
    op.drop_table('blog_posts')
    op.drop_index(op.f('ix_slides_is_active'), table_name='slides')
    op.drop_index(op.f('ix_slides_order_index'), table_name='slides')
    op.drop_table('slides')
