import pytest

from app.api.v1 import editorial_board as board_api
from app.api.v1 import public as public_api
from app.api.v1 import publications as publications_api
from app.api.v1 import settings as settings_api

EDITOR_ID = "00000000-0000-0000-0000-00000000e001"
AUTHOR_ID = "00000000-0000-0000-0000-00000000a001"


@pytest.fixture
def db(fake_db, monkeypatch):
    for module in (publications_api, board_api, settings_api, public_api):
        monkeypatch.setattr(module, "supabase_admin", fake_db)
    fake_db.tables["submissions"] = [
        {"id": "s1", "title": "Accepted Paper", "author_name": "Ada", "status": "accepted",
         "manuscript_url": "https://x/s1.pdf", "submitted_at": "2024-01-01"},
    ]
    return fake_db


@pytest.fixture
def editor(db, login_as):
    return login_as("editor", EDITOR_ID, "Erin Editor")


@pytest.fixture
def author(db, login_as):
    return login_as("author", AUTHOR_ID, "Ada Author")


@pytest.mark.asyncio
async def test_publication_flow_and_public_archive(client, editor, author):
    resp = await client.post("/api/v1/publications/volumes", json={}, headers=author)
    assert resp.status_code == 403

    # 先访问一次公开页面，验证写操作会清掉缓存
    latest = await client.get("/api/v1/public/latest-issue")
    assert latest.json()["data"] is None

    resp = await client.post("/api/v1/publications/volumes", json={"title": "Volume 1"}, headers=editor)
    assert resp.status_code == 201
    vid = resp.json()["data"]["id"]

    resp = await client.post(f"/api/v1/publications/volumes/{vid}/issues", json={"title": "Issue 1"}, headers=editor)
    assert resp.status_code == 201
    iid = resp.json()["data"]["id"]

    resp = await client.post(f"/api/v1/publications/volumes/{vid}/issues", json={"title": ""}, headers=editor)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Issue title is required"

    resp = await client.post(f"/api/v1/publications/volumes/{vid}/issues", json={"title": "   "}, headers=editor)
    assert resp.status_code == 400

    unassigned = await client.get("/api/v1/publications/unassigned", headers=editor)
    assert [s["id"] for s in unassigned.json()["data"]] == ["s1"]

    resp = await client.post(
        f"/api/v1/publications/volumes/{vid}/issues/{iid}/articles", json={"submission_id": "s1"}, headers=editor
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["articles"][0]["title"] == "Accepted Paper"

    latest = await client.get("/api/v1/public/latest-issue")
    data = latest.json()["data"]
    assert data["id"] == iid
    assert data["volume_title"] == "Volume 1"

    archive = await client.get("/api/v1/public/archive")
    assert archive.json()["data"][0]["issues"][0]["articles"][0]["id"] == "s1"

    volumes = await client.get("/api/v1/publications/volumes", headers=editor)
    assert volumes.json()["data"][0]["id"] == vid


@pytest.mark.asyncio
async def test_editorial_board_management_and_public_page(client, editor, author):
    resp = await client.post(
        "/api/v1/editorial-board",
        json={"role": "Associate Editor", "name": "Bea", "affiliation": "B Uni", "image_seed": "bea"},
        headers=author,
    )
    assert resp.status_code == 403

    resp = await client.post(
        "/api/v1/editorial-board",
        json={"role": "Associate Editor", "name": "Bea", "affiliation": "B Uni", "image_seed": "bea"},
        headers=editor,
    )
    assert resp.status_code == 201
    member_id = resp.json()["data"]["id"]

    resp = await client.post("/api/v1/editorial-board", json={"role": "Editor-in-Chief", "name": "Al"}, headers=editor)
    assert resp.status_code == 400

    resp = await client.post("/api/v1/editorial-board", json={"role": "Chief Wizard", "name": "Al"}, headers=editor)
    assert resp.status_code == 422

    board = await client.get("/api/v1/public/editorial-board")
    assert board.json()["data"][0]["title"] == "Associate Editors"

    resp = await client.patch(f"/api/v1/editorial-board/{member_id}", json={"role": "Editor-in-Chief"}, headers=editor)
    assert resp.json()["data"]["role"] == "Editor-in-Chief"

    board = await client.get("/api/v1/public/editorial-board")
    assert board.json()["data"][0]["title"] == "Editors-in-Chief"

    resp = await client.delete(f"/api/v1/editorial-board/{member_id}", headers=editor)
    assert resp.status_code == 200
    resp = await client.delete(f"/api/v1/editorial-board/{member_id}", headers=editor)
    assert resp.status_code == 404

    listing = await client.get("/api/v1/editorial-board", headers=editor)
    assert listing.json()["data"] == []


@pytest.mark.asyncio
async def test_journal_settings(client, editor, author):
    resp = await client.get("/api/v1/settings/journal-info", headers=author)
    assert resp.status_code == 200
    assert resp.json()["data"]["cover_letter"] == ""

    public = await client.get("/api/v1/public/journal-info")
    assert public.json()["data"]["cover_letter"] == ""

    resp = await client.put("/api/v1/settings/journal-info", json={"cover_letter": "Dear Editor,"}, headers=author)
    assert resp.status_code == 403

    resp = await client.put("/api/v1/settings/journal-info", json={}, headers=editor)
    assert resp.status_code == 400

    resp = await client.put("/api/v1/settings/journal-info", json={"cover_letter": "Dear Editor,"}, headers=editor)
    assert resp.json()["data"]["cover_letter"] == "Dear Editor,"

    public = await client.get("/api/v1/public/journal-info")
    assert public.json()["data"]["cover_letter"] == "Dear Editor,"

    resp = await client.put("/api/v1/settings/branding", json={"logo_url": "not-a-url"}, headers=editor)
    assert resp.status_code == 422
    resp = await client.put("/api/v1/settings/branding", json={"logo_url": "https://x/logo.png"}, headers=editor)
    assert resp.status_code == 200
    branding = await client.get("/api/v1/public/branding")
    assert branding.json()["data"]["logo_url"] == "https://x/logo.png"


@pytest.mark.asyncio
async def test_revalidate_and_sitemap(client, db, monkeypatch):
    resp = await client.get("/api/v1/public/revalidate")
    body = resp.json()
    assert body["revalidated"] is False
    assert body["message"] == "Missing path to revalidate"
    assert isinstance(body["now"], int)

    resp = await client.get("/api/v1/public/revalidate", params={"path": "/archive"})
    assert resp.json()["revalidated"] is True

    monkeypatch.setenv("SITE_BASE_URL", "https://journal.example.org")
    db.tables["volumes"] = [{"id": "v1", "title": "Volume 1", "year": 2024}]
    resp = await client.get("/sitemap.xml")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert b"https://journal.example.org/archive?volume=v1" in resp.content


@pytest.mark.asyncio
async def test_sitemap_survives_database_errors(client, db):
    db.errors[("volumes", "select")] = RuntimeError("db down")
    resp = await client.get("/sitemap.xml")
    assert resp.status_code == 200
    assert b"/editorial-board" in resp.content
