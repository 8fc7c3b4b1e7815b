from __future__ import annotations

import mimetypes
import re
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import HTTPException, UploadFile

from app.core.config import UploadConfig

DOCUMENT_TYPES = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _resolve_content_type(file: UploadFile) -> str:
    content_type = (file.content_type or "").lower()
    # 部分浏览器不给 content_type（或给 octet-stream），用文件名推断
    if (not content_type or content_type == "application/octet-stream") and file.filename:
        guessed, _ = mimetypes.guess_type(file.filename)
        content_type = (guessed or content_type).lower()
    return content_type


def _safe_filename(filename: str | None, fallback_ext: str) -> str:
    base = _SAFE_NAME_RE.sub("-", (filename or "").strip()).strip("-.")
    if not base:
        base = f"upload.{fallback_ext}"
    return base[-120:]


def ensure_bucket_exists(storage: Any, *, bucket: str, public: bool = True) -> None:
    """
    确保 Storage bucket 存在（开发/演示环境兜底）。

    中文注释: 正式环境建议用 migration / Dashboard 创建 bucket。
    """
    if storage is None or not hasattr(storage, "get_bucket") or not hasattr(storage, "create_bucket"):
        return
    try:
        storage.get_bucket(bucket)
        return
    except Exception:
        pass
    try:
        storage.create_bucket(bucket, options={"public": bool(public)})
    except Exception as e:
        text = str(e).lower()
        if "already" in text or "exists" in text or "duplicate" in text:
            return
        raise


@dataclass
class StorageService:
    """
    文件上传（稿件 / 图片）到 Supabase Storage，返回公开 URL。
    """

    supabase_admin: Any
    config: UploadConfig

    async def _read_validated(self, file: UploadFile, *, max_bytes: int) -> bytes:
        data = await file.read()
        if len(data) == 0:
            raise HTTPException(status_code=400, detail="Empty file")
        if len(data) > max_bytes:
            raise HTTPException(status_code=413, detail=f"File too large (max {max_bytes // (1024 * 1024)}MB)")
        return data

    def _put(self, *, bucket: str, path: str, data: bytes, content_type: str) -> str:
        storage = self.supabase_admin.storage
        ensure_bucket_exists(storage, bucket=bucket, public=True)
        try:
            # storage3 期望 header value 为字符串
            storage.from_(bucket).upload(path, data, {"content-type": content_type, "upsert": "false"})
        except Exception as e:
            print(f"[Storage] upload failed bucket={bucket} path={path}: {e}")
            raise HTTPException(status_code=500, detail="Failed to upload file")
        try:
            return storage.from_(bucket).get_public_url(path)
        except Exception as e:
            print(f"[Storage] get_public_url failed bucket={bucket} path={path}: {e}")
            raise HTTPException(status_code=500, detail="Failed to get public URL")

    async def upload_document(self, file: UploadFile, *, uploaded_by: str) -> dict:
        if not file:
            raise HTTPException(status_code=400, detail="Missing file")
        content_type = _resolve_content_type(file)
        ext = DOCUMENT_TYPES.get(content_type)
        if not ext:
            raise HTTPException(status_code=400, detail="Only PDF, DOC or DOCX files are allowed")
        data = await self._read_validated(file, max_bytes=self.config.max_document_bytes)

        path = f"{uploaded_by}/{uuid.uuid4().hex}-{_safe_filename(file.filename, ext)}"
        url = self._put(bucket=self.config.documents_bucket, path=path, data=data, content_type=content_type)
        return {"url": url, "name": file.filename, "size": len(data), "uploaded_by": uploaded_by}

    async def upload_image(self, file: UploadFile, *, uploaded_by: str) -> dict:
        if not file:
            raise HTTPException(status_code=400, detail="Missing file")
        content_type = _resolve_content_type(file)
        if not content_type.startswith("image/"):
            raise HTTPException(status_code=400, detail="Only image files are allowed")
        data = await self._read_validated(file, max_bytes=self.config.max_image_bytes)

        ext = content_type.split("/", 1)[1].split("+", 1)[0] or "png"
        path = f"{uploaded_by}/{uuid.uuid4().hex}.{ext}"
        url = self._put(bucket=self.config.images_bucket, path=path, data=data, content_type=content_type)
        return {"url": url, "name": file.filename, "size": len(data), "uploaded_by": uploaded_by}
