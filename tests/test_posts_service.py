import pytest

from parish.models import BlogPost, ParishAnnouncement
from parish.schemas import AnnouncementCreate, AnnouncementType, AnnouncementUpdate, BlogPostCreate, BlogPostUpdate
from parish.services import posts as post_service
from parish.services.posts import PostNotFoundError, PostValidationError


@pytest.mark.asyncio
async def test_create_strips_title_and_defaults_to_draft(db_session):
    post = await post_service.create_post(db_session, BlogPost, BlogPostCreate(title="  Quaresma  ", content="Texto"))
    assert post.title == "Quaresma"
    assert post.is_published is False


@pytest.mark.asyncio
async def test_create_requires_title(db_session):
    with pytest.raises(PostValidationError, match="Preencha o título"):
        await post_service.create_post(db_session, BlogPost, BlogPostCreate(title="   "))
    assert await post_service.list_posts(db_session, BlogPost) == []


@pytest.mark.asyncio
async def test_announcement_type_stored_as_text(db_session):
    item = await post_service.create_post(
        db_session, ParishAnnouncement, AnnouncementCreate(title="Quermesse", type=AnnouncementType.EVENT)
    )
    assert item.type == "event"

    item = await post_service.update_post(
        db_session, ParishAnnouncement, item.id, AnnouncementUpdate(type=AnnouncementType.ANNOUNCEMENT)
    )
    assert item.type == "announcement"


@pytest.mark.asyncio
async def test_published_filter(db_session):
    draft = await post_service.create_post(db_session, BlogPost, BlogPostCreate(title="Rascunho"))
    live = await post_service.create_post(db_session, BlogPost, BlogPostCreate(title="Publicado", is_published=True))

    published = await post_service.list_posts(db_session, BlogPost, published_only=True)
    assert [post.id for post in published] == [live.id]
    assert {post.id for post in await post_service.list_posts(db_session, BlogPost)} == {draft.id, live.id}

    with pytest.raises(PostNotFoundError):
        await post_service.get_post(db_session, BlogPost, draft.id, published_only=True)


@pytest.mark.asyncio
async def test_announcement_type_filter(db_session):
    await post_service.create_post(
        db_session, ParishAnnouncement,
        AnnouncementCreate(title="Festa", type=AnnouncementType.EVENT, is_published=True),
    )
    await post_service.create_post(
        db_session, ParishAnnouncement, AnnouncementCreate(title="Horário", is_published=True)
    )

    events = await post_service.list_posts(db_session, ParishAnnouncement, published_only=True, type_filter="event")
    assert [item.title for item in events] == ["Festa"]


@pytest.mark.asyncio
async def test_update_only_sent_fields(db_session):
    post = await post_service.create_post(db_session, BlogPost, BlogPostCreate(title="Antigo", content="Corpo"))
    post = await post_service.update_post(db_session, BlogPost, post.id, BlogPostUpdate(title="Novo"))
    assert post.title == "Novo"
    assert post.content == "Corpo"


@pytest.mark.asyncio
@pytest.mark.parametrize("column", ["title", "content", "is_published"])
async def test_update_rejects_null_required_columns(db_session, column):
    post = await post_service.create_post(db_session, BlogPost, BlogPostCreate(title="Post", content="Corpo"))
    with pytest.raises(PostValidationError, match=column):
        await post_service.update_post(db_session, BlogPost, post.id, BlogPostUpdate(**{column: None}))


@pytest.mark.asyncio
async def test_publish_and_delete(db_session):
    post = await post_service.create_post(db_session, BlogPost, BlogPostCreate(title="Post"))

    post = await post_service.set_published(db_session, BlogPost, post.id, True)
    assert post.is_published is True

    await post_service.delete_post(db_session, BlogPost, post.id)
    with pytest.raises(PostNotFoundError, match="Post ID"):
        await post_service.get_post(db_session, BlogPost, post.id)


@pytest.mark.asyncio
async def test_missing_announcement(db_session):
    with pytest.raises(PostNotFoundError, match="Announcement ID nao-existe"):
        await post_service.set_published(db_session, ParishAnnouncement, "nao-existe", True)
