from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException

from app.models.settings import BRANDING_KEY, DEFAULT_BRANDING, DEFAULT_JOURNAL_INFO, JOURNAL_INFO_KEY
from app.services.supabase_helpers import first_row, utc_now_iso

_DEFAULTS = {
    JOURNAL_INFO_KEY: DEFAULT_JOURNAL_INFO,
    BRANDING_KEY: DEFAULT_BRANDING,
}


@dataclass
class SettingsService:
    """
    期刊设置（journal_settings: key -> jsonb value）

    中文注释: 保存采用“合并写入”，只覆盖本次提交的字段。
    """

    supabase_admin: Any

    def get(self, key: str) -> dict:
        if key not in _DEFAULTS:
            raise HTTPException(status_code=404, detail="Unknown settings key")
        row = first_row(
            self.supabase_admin.table("journal_settings").select("key,value").eq("key", key).limit(1).execute()
        )
        value = (row or {}).get("value") or {}
        return {**_DEFAULTS[key], **value}

    def update(self, key: str, patch: dict, *, updated_by: str) -> dict:
        merged = {**self.get(key), **patch}
        resp = (
            self.supabase_admin.table("journal_settings")
            .upsert(
                {"key": key, "value": merged, "updated_at": utc_now_iso(), "updated_by": updated_by},
                on_conflict="key",
            )
            .execute()
        )
        if first_row(resp) is None:
            raise HTTPException(status_code=500, detail="Failed to save settings")
        print(f"[Settings] {key} updated by={updated_by} fields={sorted(patch.keys())}")
        return merged
