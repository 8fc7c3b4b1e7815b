from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.user import UserRole


class SignupRequest(BaseModel):
    display_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: str) -> str:
        trimmed = v.strip()
        if len(trimmed) < 2:
            raise ValueError("Display name must be at least 2 characters")
        return trimmed


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=2, max_length=100)
    specialization: Optional[str] = Field(None, max_length=200)

    @field_validator("display_name", mode="before")
    @classmethod
    def empty_display_name_is_unset(cls, v):
        # 中文注释: "" / "   " 视为不修改
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("specialization", mode="before")
    @classmethod
    def strip_specialization(cls, v):
        # 中文注释: 允许传空字符串以清空专业方向
        if isinstance(v, str):
            return v.strip()
        return v


class RoleUpdate(BaseModel):
    role: UserRole
