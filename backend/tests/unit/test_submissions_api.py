import pytest

from app.api.v1 import reviews as reviews_api
from app.api.v1 import stats as stats_api
from app.api.v1 import submissions as submissions_api

AUTHOR_ID = "00000000-0000-0000-0000-00000000a001"
EDITOR_ID = "00000000-0000-0000-0000-00000000e001"
REVIEWER_ID = "00000000-0000-0000-0000-00000000r001"
ADMIN_ID = "00000000-0000-0000-0000-00000000ad01"


@pytest.fixture
def db(fake_db, monkeypatch):
    for module in (submissions_api, reviews_api, stats_api):
        monkeypatch.setattr(module, "supabase_admin", fake_db)
    return fake_db


@pytest.fixture
def users(db, login_as):
    """
    四种角色各一个用户，返回各自的 Authorization 头。
    """
    return {
        "editor": login_as("editor", EDITOR_ID, "Erin Editor"),
        "reviewer": login_as("reviewer", REVIEWER_ID, "Rita Reviewer"),
        "admin": login_as("admin", ADMIN_ID, "Alex Admin"),
        "author": login_as("author", AUTHOR_ID, "Ada Author"),
    }


def _payload(**overrides):
    data = {
        "title": "Graph Neural Networks for Molecules",
        "abstract": "We propose a message passing architecture for molecular property prediction tasks.",
        "keywords": "gnn, chemistry",
        "manuscript_url": "https://storage.example.com/manuscripts/gnn.pdf",
        "contributors": [
            {
                "name": "Ada Author",
                "email": "ada@example.com",
                "institution": "Uni",
                "orcid": "",
                "role": "Author",
                "is_primary_contact": True,
            }
        ],
    }
    data.update(overrides)
    return data


async def _create(client, headers) -> dict:
    resp = await client.post("/api/v1/submissions", json=_payload(), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_submission_requires_auth(client, db):
    resp = await client.post("/api/v1/submissions", json=_payload())
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_author_creates_submission_and_editors_are_notified(client, users, db):
    created = await _create(client, users["author"])

    assert created["author_id"] == AUTHOR_ID
    assert created["status"] == "submitted"
    notified = {n["user_id"] for n in db.rows("notifications")}
    assert notified == {EDITOR_ID, ADMIN_ID}


@pytest.mark.asyncio
async def test_create_submission_validation_error(client, users):
    two_primary = _payload()["contributors"] * 2
    resp = await client.post("/api/v1/submissions", json=_payload(contributors=two_primary), headers=users["author"])
    assert resp.status_code == 422

    resp = await client.post("/api/v1/submissions", json=_payload(title="Short"), headers=users["author"])
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_all_submissions_is_editor_only(client, users):
    await _create(client, users["author"])

    resp = await client.get("/api/v1/submissions", headers=users["author"])
    assert resp.status_code == 403

    resp = await client.get("/api/v1/submissions", params={"search": "graph"}, headers=users["editor"])
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 1

    mine = await client.get("/api/v1/submissions/mine", headers=users["author"])
    assert [s["id"] for s in mine.json()["data"]] == [s["id"] for s in resp.json()["data"]]


@pytest.mark.asyncio
async def test_submission_detail_access(client, users):
    created = await _create(client, users["author"])
    url = f"/api/v1/submissions/{created['id']}"

    resp = await client.get(url, headers=users["author"])
    assert resp.json()["data"]["viewer_role"] == "author"

    resp = await client.get(url, headers=users["reviewer"])
    assert resp.status_code == 403

    resp = await client.get(url, headers=users["editor"])
    assert resp.json()["data"]["viewer_role"] == "editor"

    resp = await client.get("/api/v1/submissions/does-not-exist", headers=users["editor"])
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_full_review_workflow(client, users, db):
    created = await _create(client, users["author"])
    sid = created["id"]

    resp = await client.post(
        f"/api/v1/submissions/{sid}/reviewers", json={"reviewer_id": REVIEWER_ID}, headers=users["reviewer"]
    )
    assert resp.status_code == 403

    resp = await client.post(
        f"/api/v1/submissions/{sid}/reviewers", json={"reviewer_id": REVIEWER_ID}, headers=users["editor"]
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "under_peer_review"

    resp = await client.post(
        f"/api/v1/submissions/{sid}/reviewers", json={"reviewer_id": REVIEWER_ID}, headers=users["editor"]
    )
    assert resp.status_code == 409

    assigned = await client.get("/api/v1/submissions/assigned", headers=users["reviewer"])
    assert assigned.json()["data"][0]["has_reviewed"] is False

    review = {
        "recommendation": "Minor Revision",
        "comments_for_editor": "Borderline novelty.",
        "comments_for_author": "Please clarify the baselines.",
    }
    resp = await client.post(f"/api/v1/submissions/{sid}/reviews", json=review, headers=users["reviewer"])
    assert resp.status_code == 201
    resp = await client.post(f"/api/v1/submissions/{sid}/reviews", json=review, headers=users["reviewer"])
    assert resp.status_code == 409

    author_view = await client.get(f"/api/v1/submissions/{sid}/reviews", headers=users["author"])
    assert author_view.json()["data"][0]["comments_for_author"] == "Please clarify the baselines."
    assert "comments_for_editor" not in author_view.json()["data"][0]

    editor_view = await client.get(f"/api/v1/submissions/{sid}/reviews", headers=users["editor"])
    assert editor_view.json()["data"][0]["comments_for_editor"] == "Borderline novelty."

    resp = await client.post(f"/api/v1/submissions/{sid}/decision", json={"status": "Minor Revision"}, headers=users["editor"])
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "minor_revision"

    history = await client.get(f"/api/v1/submissions/{sid}/history", headers=users["author"])
    messages = [h["message"] for h in history.json()["data"]]
    assert "Review submitted by Rita Reviewer." in messages
    assert "Status updated to 'Minor Revision' by Erin Editor." in messages

    author_notes = [n["event_type"] for n in db.rows("notifications") if n["user_id"] == AUTHOR_ID]
    assert author_notes.count("STATUS_CHANGED") == 2
    assert "REVIEW_SUBMITTED" in author_notes


@pytest.mark.asyncio
async def test_decision_validation_and_final_state(client, users):
    created = await _create(client, users["author"])
    url = f"/api/v1/submissions/{created['id']}/decision"

    resp = await client.post(url, json={"status": "submitted"}, headers=users["editor"])
    assert resp.status_code == 422

    resp = await client.post(url, json={"status": "Accepted"}, headers=users["editor"])
    assert resp.status_code == 200
    resp = await client.post(url, json={"status": "Rejected"}, headers=users["editor"])
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_import_is_admin_only(client, users, db):
    body = _payload(status="Accepted", original_submission_date="2020-02-03T00:00:00Z")

    resp = await client.post("/api/v1/submissions/import", json=body, headers=users["editor"])
    assert resp.status_code == 403

    resp = await client.post("/api/v1/submissions/import", json=body, headers=users["admin"])
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["is_imported"] is True
    assert data["status"] == "accepted"
    assert db.rows("notifications") == []


@pytest.mark.asyncio
async def test_editor_stats(client, users):
    await _create(client, users["author"])

    resp = await client.get("/api/v1/stats/editor", headers=users["editor"])
    assert resp.status_code == 200
    assert resp.json()["data"]["stats"]["awaiting_assignment"] == 1

    resp = await client.get("/api/v1/stats/submissions/monthly", headers=users["editor"])
    months = resp.json()["data"]
    assert len(months) == 6
    assert months[-1]["total"] == 1

    resp = await client.get("/api/v1/stats/editor", headers=users["author"])
    assert resp.status_code == 403
