from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

JOURNAL_INFO_KEY = "journal_info"
BRANDING_KEY = "branding"

DEFAULT_JOURNAL_INFO: dict = {"cover_letter": "", "submission_template_url": None}
DEFAULT_BRANDING: dict = {"logo_url": None}


def _url_or_none(v):
    if v is None:
        return None
    text = str(v).strip()
    if not text:
        return None
    if not text.startswith(("http://", "https://")):
        raise ValueError("Must be an http(s) URL")
    return text


class JournalInfoUpdate(BaseModel):
    cover_letter: Optional[str] = Field(None, max_length=50_000)
    submission_template_url: Optional[str] = None

    @field_validator("submission_template_url", mode="before")
    @classmethod
    def check_template_url(cls, v):
        return _url_or_none(v)


class BrandingUpdate(BaseModel):
    logo_url: Optional[str] = None

    @field_validator("logo_url", mode="before")
    @classmethod
    def check_logo_url(cls, v):
        return _url_or_none(v)
