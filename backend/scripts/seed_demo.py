import os
import sys
from datetime import datetime, timezone

from dotenv import load_dotenv
from supabase import Client, create_client

load_dotenv()

url = os.environ.get("SUPABASE_URL")
# 中文注释: 创建 Auth 用户必须使用 service role key
key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

if not url or not key:
    print("❌ Error: Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY environment variables.")
    sys.exit(1)

supabase: Client = create_client(url, key)

DEMO_PASSWORD = os.environ.get("DEMO_PASSWORD", "password123")

DEMO_USERS = [
    ("editor", "editor@journaldesk.test", "Demo Editor", "Editorial Management"),
    ("reviewer", "reviewer@journaldesk.test", "Demo Reviewer", "Machine Learning, Computer Vision"),
    ("author", "author@journaldesk.test", "Demo Author", None),
]


def _create_user(role: str, email: str, name: str, specialization):
    created = supabase.auth.admin.create_user(
        {
            "email": email,
            "password": DEMO_PASSWORD,
            "email_confirm": True,
            "user_metadata": {"display_name": name},
        }
    )
    uid = created.user.id
    supabase.table("user_profiles").upsert(
        {"id": uid, "email": email, "display_name": name, "role": role, "specialization": specialization},
        on_conflict="id",
    ).execute()
    print(f"   Created {role}: {uid}")
    return uid


def seed():
    users = {}
    print("Creating demo users...")
    try:
        for role, email, name, specialization in DEMO_USERS:
            users[role] = _create_user(role, email, name, specialization)
    except Exception as e:
        print(f"❌ Error creating users: {e}")
        print("   (Users might already exist; delete them in the Supabase dashboard and retry)")
        sys.exit(1)

    now = datetime.now(timezone.utc).isoformat()
    contributors = [
        {
            "name": "Demo Author",
            "email": "author@journaldesk.test",
            "institution": "Example University",
            "orcid": None,
            "role": "Author",
            "is_primary_contact": True,
        }
    ]

    print("Seeding submissions...")
    submitted = (
        supabase.table("submissions")
        .insert(
            {
                "title": "Self-Supervised Learning for Low-Resource Image Segmentation",
                "abstract": "We study self-supervised pretraining for semantic segmentation when labelled data is scarce, and show consistent gains across three medical imaging benchmarks.",
                "keywords": "self-supervised learning, segmentation, medical imaging",
                "manuscript_url": "https://example.com/manuscripts/demo-1.pdf",
                "author_id": users["author"],
                "author_name": "Demo Author",
                "author_email": "author@journaldesk.test",
                "contributors": contributors,
                "status": "under_peer_review",
                "submitted_at": now,
            }
        )
        .execute()
        .data[0]
    )
    supabase.table("review_assignments").insert(
        {
            "submission_id": submitted["id"],
            "reviewer_id": users["reviewer"],
            "reviewer_name": "Demo Reviewer",
            "status": "pending",
        }
    ).execute()

    supabase.table("submissions").insert(
        {
            "title": "A Field Study of Soil Microbiome Resilience After Drought",
            "abstract": "Long-term sampling across twelve sites shows that microbial diversity recovers within two seasons after severe drought, with notable exceptions in sandy soils.",
            "keywords": "soil microbiome, drought, ecology",
            "manuscript_url": "https://example.com/manuscripts/demo-2.pdf",
            "author_id": users["author"],
            "author_name": "Demo Author",
            "author_email": "author@journaldesk.test",
            "contributors": contributors,
            "status": "accepted",
            "submitted_at": now,
        }
    ).execute()

    print("Seeding first volume...")
    year = datetime.now(timezone.utc).year
    volume = supabase.table("volumes").insert({"title": f"Volume 1, {year}", "year": year}).execute().data[0]
    supabase.table("issues").insert({"volume_id": volume["id"], "title": "Issue 1", "position": 0}).execute()

    print("✅  Demo data seeded.")


if __name__ == "__main__":
    seed()
