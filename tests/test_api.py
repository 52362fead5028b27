from decimal import Decimal

import pytest

from parish.config import settings
from parish.models import BlogPost, Donation, ParishAnnouncement, Photo, Slide, SystemSetting
from parish.services.donations import DEFAULT_THANKS_MESSAGE


def slide_row(title, order_index, **fields):
    fields.setdefault("description", f"{title} descrição")
    fields.setdefault("image_url", f"https://res.cloudinary.com/demo/image/upload/v1/slides/{title}.webp")
    return Slide(title=title, order_index=order_index, **fields)


@pytest.fixture
def uploads(monkeypatch):
    """Replace Cloudinary with an in-memory record of uploads and deletions."""
    record = {"stored": [], "deleted": []}

    async def fake_store(content, filename, folder):
        name = filename.rsplit(".", 1)[0]
        record["stored"].append((filename, folder, len(content)))
        return {
            "url": f"https://res.cloudinary.com/demo/image/upload/v1/{folder}/{name}.webp",
            "public_id": f"{folder}/{name}",
        }

    async def fake_delete(public_id):
        record["deleted"].append(public_id)
        return {"result": "ok"}

    monkeypatch.setattr("parish.routes.cms.store_image", fake_store)
    monkeypatch.setattr("parish.routes.cms.delete_image", fake_delete)
    return record


class TestHealth:
    def test_root(self, client):
        body = client.get("/").json()
        assert body["status"] == "healthy"
        assert body["version"] == settings.API_VERSION

    def test_db(self, client):
        assert client.get("/health/db").json()["database"] == "connected"

    def test_cloudinary_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "CLOUDINARY_CLOUD_NAME", "")
        assert client.get("/health/cloudinary").json()["cloudinary"] == "not_configured"


class TestNavigationApi:
    def test_resolve_donation_return(self, client):
        response = client.get(
            "/api/navigation/resolve",
            params={"url": "/capela?donation=success&session_id=cs_1&ref=insta#top"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["view"] == "donation-success"
        assert body["donation_session_id"] == "cs_1"
        assert body["url"] == "/capela?ref=insta#top"
        assert body["canonical_path"] == "/doacao-sucesso"

    def test_resolve_admin_hash_without_session(self, client):
        body = client.get("/api/navigation/resolve", params={"url": "/#admin"}).json()
        assert body["admin_prompt"] == "login"
        assert body["authenticated"] is False
        assert body["url"] == "/"

    def test_resolve_admin_hash_with_session(self, client, auth_headers):
        body = client.get(
            "/api/navigation/resolve", params={"url": "/blog#painel"}, headers=auth_headers
        ).json()
        assert body["admin_prompt"] == "panel"
        assert body["view"] == "blog"

    def test_invalid_token_is_anonymous(self, client):
        body = client.get(
            "/api/navigation/resolve",
            params={"url": "/#admin"},
            headers={"Authorization": "Bearer not-a-token"},
        ).json()
        assert body["admin_prompt"] == "login"

    def test_routes(self, client):
        body = client.get("/api/navigation/routes").json()
        assert body["default_view"] == "home"
        assert body["canonical_paths"]["capela-donate"] == "/doacao"
        assert {"path": "/missas", "view": "celebrations"} in body["routes"]


class TestPublicSlides:
    def test_active_slides_in_order(self, client, seed):
        seed(
            slide_row("Segundo", 1),
            slide_row("Oculto", 0, is_active=False),
            slide_row("Primeiro", 0),
        )
        titles = [slide["title"] for slide in client.get("/api/slides").json()]
        assert titles == ["Primeiro", "Segundo"]

    def test_empty(self, client):
        assert client.get("/api/slides").json() == []

    def test_slide_action(self, client, seed):
        slide, = seed(slide_row("Blog", 0, content_type="blog_post", related_content_id="post-1"))
        body = client.get(f"/api/slides/{slide.id}/action").json()
        assert body["kind"] == "navigate"
        assert body["target"] == "blog"
        assert body["hint"] == "post-1"
        assert body["label"] == "Saiba Mais"
        assert body["external"] is False

    def test_external_action(self, client, seed):
        slide, = seed(slide_row("Site", 0, link_url="https://example.org", link_text="Visite"))
        body = client.get(f"/api/slides/{slide.id}/action").json()
        assert body == {
            "kind": "open_external",
            "url": "https://example.org",
            "target": None,
            "hint": None,
            "label": "Visite",
            "external": True,
        }

    def test_missing_slide_action(self, client):
        response = client.get("/api/slides/nao-existe/action")
        assert response.status_code == 404
        assert response.json()["error"] == "Slide not found"


class TestCarouselChannel:
    def test_state_and_navigation(self, client, seed):
        seed(
            slide_row("A", 0),
            slide_row("B", 1, link_url="https://example.org"),
        )
        with client.websocket_connect("/ws/carousel") as websocket:
            state = websocket.receive_json()
            assert state["type"] == "state"
            assert state["phase"] == "ready"
            assert state["slide_count"] == 2
            assert state["current_index"] == 0
            assert state["slide"]["title"] == "A"
            assert state["action"]["kind"] == "none"

            websocket.send_json({"action": "next"})
            messages = {message["type"]: message for message in (websocket.receive_json(), websocket.receive_json())}

            assert messages["state"]["current_index"] == 1
            assert messages["state"]["action"]["url"] == "https://example.org"
            assert messages["preload"]["image_url"].endswith("/slides/B.webp")

    def test_toggle_autoplay(self, client, seed):
        seed(slide_row("A", 0), slide_row("B", 1))
        with client.websocket_connect("/ws/carousel") as websocket:
            assert websocket.receive_json()["autoplay"] is True
            websocket.send_json({"action": "toggle_autoplay"})
            assert websocket.receive_json()["autoplay"] is False

    def test_rejected_commands(self, client, seed):
        seed(slide_row("A", 0), slide_row("B", 1))
        with client.websocket_connect("/ws/carousel") as websocket:
            websocket.receive_json()

            websocket.send_json({"action": "goto", "index": 5})
            assert websocket.receive_json() == {"type": "error", "detail": "Slide index 5 out of range (0..1)"}

            websocket.send_text("not json")
            assert websocket.receive_json() == {"type": "error", "detail": "Invalid JSON"}

            websocket.send_json({"action": "dance"})
            assert websocket.receive_json()["detail"] == "Unknown action: dance"

    def test_empty_carousel(self, client):
        with client.websocket_connect("/ws/carousel") as websocket:
            state = websocket.receive_json()
            assert state["phase"] == "empty"
            assert state["slide"] is None
            assert state["action"] is None


class TestAuth:
    def test_login_sets_session_cookie(self, client, admin_password):
        response = client.post("/api/auth/login", json={"password": admin_password})
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"
        assert "cms_token=" in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()

        assert client.get("/api/auth/session").json() == {"authenticated": True}

    def test_wrong_password(self, client, admin_password):
        response = client.post("/api/auth/login", json={"password": "errada"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_empty_password_is_rejected(self, client, admin_password):
        response = client.post("/api/auth/login", json={"password": ""})
        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    def test_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "ADMIN_PASSWORD_HASH", "")
        response = client.post("/api/auth/login", json={"password": "qualquer"})
        assert response.status_code == 500

    def test_login_is_rate_limited(self, client, admin_password):
        statuses = [
            client.post("/api/auth/login", json={"password": "errada"}).status_code
            for _ in range(6)
        ]
        assert statuses == [401] * 5 + [429]

    def test_session_without_token(self, client):
        assert client.get("/api/auth/session").json() == {"authenticated": False}

    def test_logout_clears_cookie(self, client):
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert "cms_token=" in response.headers["set-cookie"]


class TestCmsSlides:
    def test_requires_session(self, client):
        response = client.get("/api/cms/slides")
        assert response.status_code == 401
        assert response.json()["error"] == "Missing token"

    def test_create_and_list(self, client, auth_headers):
        response = client.post(
            "/api/cms/slides",
            json={"title": "Festa", "description": "Dia 29", "link_url": "/celebracoes"},
            headers=auth_headers,
        )
        assert response.status_code == 201
        created = response.json()
        assert created["order_index"] == 0
        assert created["content_type"] == "custom"

        listed = client.get("/api/cms/slides", headers=auth_headers).json()
        assert [slide["id"] for slide in listed] == [created["id"]]

    def test_create_requires_title(self, client, auth_headers):
        response = client.post("/api/cms/slides", json={"description": "Sem título"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Preencha título e descrição"

    def test_update_toggle_delete(self, client, seed, auth_headers):
        slide, = seed(slide_row("Antigo", 0))

        response = client.put(f"/api/cms/slides/{slide.id}", json={"title": "Novo"}, headers=auth_headers)
        assert response.json()["title"] == "Novo"

        response = client.patch(f"/api/cms/slides/{slide.id}/active", headers=auth_headers)
        assert response.json()["is_active"] is False
        assert client.get("/api/slides").json() == []

        response = client.delete(f"/api/cms/slides/{slide.id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get("/api/cms/slides", headers=auth_headers).json() == []

    @pytest.mark.parametrize("body", [{"is_active": None}, {"image_url": None}, {"order_index": None}])
    def test_update_rejects_null_required_field(self, client, seed, auth_headers, body):
        slide, = seed(slide_row("Festa", 0))

        response = client.put(f"/api/cms/slides/{slide.id}", json=body, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid slide"
        assert "SQL" not in response.json()["detail"]
        listed = client.get("/api/cms/slides", headers=auth_headers).json()
        assert listed[0]["is_active"] is True

    def test_unknown_slide(self, client, auth_headers):
        response = client.put("/api/cms/slides/nao-existe", json={"title": "X"}, headers=auth_headers)
        assert response.status_code == 404

    def test_move(self, client, seed, auth_headers):
        a, b = seed(slide_row("A", 0), slide_row("B", 1))

        response = client.post(f"/api/cms/slides/{b.id}/move", json={"direction": "up"}, headers=auth_headers)

        assert response.status_code == 200
        assert [slide["title"] for slide in response.json()] == ["B", "A"]

    def test_move_invalid_direction(self, client, seed, auth_headers):
        a, = seed(slide_row("A", 0))
        response = client.post(f"/api/cms/slides/{a.id}/move", json={"direction": "left"}, headers=auth_headers)
        assert response.status_code == 400

    def test_related_content_pages(self, client, auth_headers):
        response = client.get(
            "/api/cms/slides/related-content", params={"content_type": "internal_page"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert {"id": "capela", "title": "Capela São Miguel"} in response.json()

    def test_upload_slide_image(self, client, auth_headers, uploads):
        response = client.post(
            "/api/cms/slides/image",
            files={"file": ("festa.png", b"\x89PNG fake", "image/png")},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["public_id"] == "slides/festa"
        assert uploads["stored"] == [("festa.png", "slides", 9)]

    def test_upload_rejects_non_images(self, client, auth_headers, uploads):
        response = client.post(
            "/api/cms/slides/image",
            files={"file": ("notas.txt", b"texto", "text/plain")},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Por favor, selecione uma imagem válida"
        assert uploads["stored"] == []

    def test_upload_rejects_large_images(self, client, auth_headers, uploads, monkeypatch):
        monkeypatch.setattr(settings, "SLIDE_IMAGE_MAX_BYTES", 4)
        response = client.post(
            "/api/cms/slides/image",
            files={"file": ("festa.png", b"12345", "image/png")},
            headers=auth_headers,
        )
        assert response.status_code == 400


class TestPhotos:
    def test_upload_list_and_paginate(self, client, auth_headers, uploads):
        for name in ("a.jpg", "b.jpg"):
            response = client.post(
                "/api/cms/photos",
                files={"file": (name, b"jpeg", "image/jpeg")},
                data={"caption": "  Festa  "},
                headers=auth_headers,
            )
            assert response.status_code == 201

        page = client.get("/api/photos", params={"limit": 1}).json()
        assert page["photos"][0]["caption"] == "Festa"
        first_id = page["photos"][0]["id"]
        assert page["pagination"] == {"next_cursor": f"0:{first_id}", "has_more": True, "total_count": 2}

        page = client.get("/api/photos", params={"limit": 1, "cursor": f"0:{first_id}"}).json()
        assert page["photos"][0]["display_order"] == 1
        assert page["pagination"]["has_more"] is False

    def test_pagination_walks_through_shared_display_order(self, client, seed):
        seed(*[
            Photo(image_url=f"https://res.cloudinary.com/demo/image/upload/v1/photos/{name}.webp", display_order=order)
            for name, order in (("a", 0), ("b", 1), ("c", 1), ("d", 1), ("e", 2))
        ])

        seen, cursor = [], None
        while True:
            params = {"limit": 2} if cursor is None else {"limit": 2, "cursor": cursor}
            page = client.get("/api/photos", params=params).json()
            seen.extend(photo["image_url"].rsplit("/", 1)[1] for photo in page["photos"])
            cursor = page["pagination"]["next_cursor"]
            if not page["pagination"]["has_more"]:
                break

        assert seen == ["a.webp", "b.webp", "c.webp", "d.webp", "e.webp"]

    def test_malformed_cursor(self, client):
        response = client.get("/api/photos", params={"cursor": "abc"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid cursor"

    def test_update_caption(self, client, seed, auth_headers):
        photo, = seed(Photo(image_url="https://res.cloudinary.com/demo/image/upload/v1/photos/a.webp"))
        response = client.put(f"/api/cms/photos/{photo.id}", json={"caption": "  "}, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["caption"] is None

    def test_delete_removes_from_cloudinary(self, client, seed, auth_headers, uploads):
        photo, = seed(Photo(image_url="https://res.cloudinary.com/demo/image/upload/v123/photos/a.webp"))

        response = client.delete(f"/api/cms/photos/{photo.id}", headers=auth_headers)

        assert response.status_code == 200
        assert uploads["deleted"] == ["photos/a"]
        assert client.get("/api/cms/photos", headers=auth_headers).json() == []

    def test_delete_missing(self, client, auth_headers):
        assert client.delete("/api/cms/photos/99", headers=auth_headers).status_code == 404


class TestPosts:
    def test_admin_requires_session(self, client):
        assert client.get("/api/cms/blog-posts").status_code == 401
        assert client.post("/api/cms/announcements", json={"title": "X"}).status_code == 401

    def test_draft_then_publish(self, client, auth_headers):
        response = client.post(
            "/api/cms/blog-posts", json={"title": "Mensagem", "content": "Paz e bem"}, headers=auth_headers
        )
        assert response.status_code == 201
        post = response.json()
        assert post["is_published"] is False
        assert client.get("/api/blog-posts").json() == []
        assert client.get(f"/api/blog-posts/{post['id']}").status_code == 404

        response = client.patch(
            f"/api/cms/blog-posts/{post['id']}/publish", json={"is_published": True}, headers=auth_headers
        )
        assert response.json()["is_published"] is True
        assert [item["title"] for item in client.get("/api/blog-posts").json()] == ["Mensagem"]
        assert client.get(f"/api/blog-posts/{post['id']}").json()["content"] == "Paz e bem"

    def test_update_and_delete(self, client, seed, auth_headers):
        post, = seed(BlogPost(title="Antigo", content="Corpo", is_published=True))

        response = client.put(f"/api/cms/blog-posts/{post.id}", json={"title": "Novo"}, headers=auth_headers)
        assert response.json()["title"] == "Novo"

        response = client.put(f"/api/cms/blog-posts/{post.id}", json={"content": None}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid post"

        assert client.delete(f"/api/cms/blog-posts/{post.id}", headers=auth_headers).status_code == 200
        assert client.get("/api/cms/blog-posts", headers=auth_headers).json() == []
        assert client.delete(f"/api/cms/blog-posts/{post.id}", headers=auth_headers).status_code == 404

    def test_blank_title_rejected(self, client, auth_headers):
        response = client.post("/api/cms/blog-posts", json={"title": " "}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Preencha o título"

    def test_announcements(self, client, seed, auth_headers):
        seed(
            ParishAnnouncement(title="Festa junina", type="event", is_published=True),
            ParishAnnouncement(title="Secretaria fechada", type="announcement", is_published=True),
            ParishAnnouncement(title="Rascunho", type="event", is_published=False),
        )

        titles = {item["title"] for item in client.get("/api/announcements").json()}
        assert titles == {"Festa junina", "Secretaria fechada"}

        events = client.get("/api/announcements", params={"type": "event"}).json()
        assert [item["title"] for item in events] == ["Festa junina"]
        assert client.get("/api/announcements", params={"type": "party"}).status_code == 400

        assert len(client.get("/api/cms/announcements", headers=auth_headers).json()) == 3

    def test_create_announcement(self, client, auth_headers):
        response = client.post(
            "/api/cms/announcements",
            json={"title": "Retiro", "type": "event", "is_published": True},
            headers=auth_headers,
        )
        assert response.status_code == 201
        created = response.json()
        assert created["type"] == "event"
        assert client.get(f"/api/announcements/{created['id']}").json()["title"] == "Retiro"

    def test_published_posts_feed_slide_picker(self, client, auth_headers):
        client.post("/api/cms/blog-posts", json={"title": "Visível", "is_published": True}, headers=auth_headers)
        client.post("/api/cms/blog-posts", json={"title": "Oculto"}, headers=auth_headers)

        response = client.get(
            "/api/cms/slides/related-content", params={"content_type": "blog_post"}, headers=auth_headers
        )
        assert [option["title"] for option in response.json()] == ["Visível"]


class TestDonations:
    def test_success_details(self, client, seed):
        seed(Donation(
            stripe_session_id="cs_test_1",
            amount=Decimal("1234.56"),
            currency="brl",
            donor_name="Maria",
            status="completed",
        ))

        body = client.get("/api/donations/cs_test_1").json()

        assert body["amount_display"] == "R$ 1.234,56"
        assert body["donor_name"] == "Maria"
        assert body["thanks_message"] == DEFAULT_THANKS_MESSAGE

    def test_custom_thanks_message(self, client, seed):
        seed(
            Donation(stripe_session_id="cs_2", amount=Decimal("10"), currency="brl", status="completed"),
            SystemSetting(key="capela_donation_thanks_message", value="Deus lhe pague!"),
        )
        assert client.get("/api/donations/cs_2").json()["thanks_message"] == "Deus lhe pague!"

    def test_unknown_session(self, client):
        response = client.get("/api/donations/cs_nope")
        assert response.status_code == 404

    def test_receipt(self, client, seed):
        donation, = seed(Donation(
            stripe_session_id="cs_3", amount=Decimal("50"), currency="brl",
            donation_purpose="Restauro do telhado", status="completed",
        ))

        response = client.get("/api/donations/cs_3/receipt")

        assert response.status_code == 200
        assert f'filename="comprovante-doacao-{donation.id[:8]}.txt"' in response.headers["content-disposition"]
        assert "Valor: R$ 50,00" in response.text
        assert "Finalidade: Restauro do telhado" in response.text

    def test_contact_info(self, client, seed):
        seed(SystemSetting(key="capela_whatsapp", value="(11) 98888-7777"))
        body = client.get("/api/donations/contact-info").json()
        assert body["whatsapp"] == "(11) 98888-7777"
        assert body["whatsapp_url"].startswith("https://wa.me/5511988887777?text=")
        assert body["email_url"].startswith("mailto:doacoes@")
