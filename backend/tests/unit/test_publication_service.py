from datetime import datetime, timezone

import pytest
from fastapi import HTTPException
from postgrest.exceptions import APIError

from app.services.publication_service import PublicationService
from tests.utils.fake_supabase import FakeSupabase


def _db() -> FakeSupabase:
    return FakeSupabase(
        {
            "volumes": [
                {"id": "v1", "title": "Volume 1, 2023", "year": 2023, "created_at": "2023-01-01"},
                {"id": "v2", "title": "Volume 2, 2024", "year": 2024, "created_at": "2024-01-01"},
            ],
            "issues": [
                {"id": "i1", "volume_id": "v1", "title": "Issue 1", "position": 0},
                {"id": "i3", "volume_id": "v2", "title": "Issue 2", "position": 1},
                {"id": "i2", "volume_id": "v2", "title": "Issue 1", "position": 0},
            ],
            "issue_articles": [
                {"id": "ia1", "issue_id": "i1", "submission_id": "s-old", "title": "Old Paper",
                 "author_name": "Ann", "manuscript_url": "https://x/old.pdf", "position": 0},
            ],
            "submissions": [
                {"id": "s-old", "title": "Old Paper", "author_name": "Ann", "status": "accepted",
                 "manuscript_url": "https://x/old.pdf", "submitted_at": "2023-01-01"},
                {"id": "s-new", "title": "New Paper", "author_name": "Ben", "status": "accepted",
                 "manuscript_url": "https://x/new.pdf", "submitted_at": "2024-05-01"},
                {"id": "s-rev", "title": "In Review", "author_name": "Cy", "status": "under_peer_review",
                 "manuscript_url": "https://x/rev.pdf", "submitted_at": "2024-05-02"},
            ],
        }
    )


def test_list_volumes_nests_issues_and_articles_newest_first():
    volumes = PublicationService(_db()).list_volumes()

    assert [v["id"] for v in volumes] == ["v2", "v1"]
    assert [i["id"] for i in volumes[0]["issues"]] == ["i2", "i3"]
    assert volumes[1]["issues"][0]["articles"] == [
        {"id": "s-old", "title": "Old Paper", "author_name": "Ann", "manuscript_url": "https://x/old.pdf"}
    ]


def test_create_volume_default_title():
    db = _db()
    year = datetime.now(timezone.utc).year
    created = PublicationService(db).create_volume()
    assert created["title"] == f"Volume 3, {year}"
    assert created["issues"] == []

    named = PublicationService(db).create_volume("Special Volume")
    assert named["title"] == "Special Volume"


def test_add_issue_appends_position_and_validates():
    db = _db()
    svc = PublicationService(db)
    issue = svc.add_issue(volume_id="v2", title="  Issue 3 ")
    assert issue["title"] == "Issue 3"
    assert [r for r in db.rows("issues") if r["id"] == issue["id"]][0]["position"] == 2

    with pytest.raises(HTTPException) as exc:
        svc.add_issue(volume_id="v2", title="   ")
    assert exc.value.status_code == 400

    with pytest.raises(HTTPException) as exc:
        svc.add_issue(volume_id="missing", title="Issue 1")
    assert exc.value.status_code == 404


def test_list_unassigned_accepted():
    unassigned = PublicationService(_db()).list_unassigned_accepted()
    assert [s["id"] for s in unassigned] == ["s-new"]


def test_assign_article_and_idempotency():
    db = _db()
    svc = PublicationService(db)

    issue = svc.assign_article(volume_id="v2", issue_id="i2", submission_id="s-new")
    assert issue["articles"][0]["id"] == "s-new"
    assert svc.list_unassigned_accepted() == []

    again = svc.assign_article(volume_id="v2", issue_id="i2", submission_id="s-new")
    assert len(again["articles"]) == 1

    with pytest.raises(HTTPException) as exc:
        svc.assign_article(volume_id="v2", issue_id="i3", submission_id="s-new")
    assert exc.value.status_code == 409


def test_assign_article_validation():
    svc = PublicationService(_db())
    with pytest.raises(HTTPException) as exc:
        svc.assign_article(volume_id="v2", issue_id="i1", submission_id="s-new")
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        svc.assign_article(volume_id="v2", issue_id="i2", submission_id="missing")
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        svc.assign_article(volume_id="v2", issue_id="i2", submission_id="s-rev")
    assert exc.value.status_code == 400


def test_assign_article_unique_violation_maps_to_409():
    db = _db()
    db.errors[("issue_articles", "insert")] = APIError({"message": "duplicate key", "code": "23505"})
    with pytest.raises(HTTPException) as exc:
        PublicationService(db).assign_article(volume_id="v2", issue_id="i2", submission_id="s-new")
    assert exc.value.status_code == 409


def test_get_latest_issue():
    latest = PublicationService(_db()).get_latest_issue()
    assert latest["id"] == "i3"
    assert latest["volume_id"] == "v2"
    assert latest["volume_title"] == "Volume 2, 2024"

    assert PublicationService(FakeSupabase()).get_latest_issue() is None
    only_volume = FakeSupabase({"volumes": [{"id": "v9", "title": "V", "year": 2024}]})
    assert PublicationService(only_volume).get_latest_issue() is None
