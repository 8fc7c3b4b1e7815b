from fastapi import APIRouter, Depends, File, UploadFile

from app.core.auth_utils import get_current_user
from app.core.config import UploadConfig
from app.lib.api_client import supabase_admin
from app.services.storage_service import StorageService

router = APIRouter(prefix="/uploads", tags=["Uploads"])


def _service() -> StorageService:
    return StorageService(supabase_admin, UploadConfig.from_env())


@router.post("/document")
async def upload_document(
    file: UploadFile = File(...),
    current_user: dict = Depends(get_current_user),
):
    """
    稿件上传（pdf/doc/docx，单文件）；返回公开 URL 作为 manuscript_url
    """
    result = await _service().upload_document(file, uploaded_by=current_user["id"])
    print(f"[Uploads] document by={current_user['id']} size={result['size']}")
    return {"success": True, "data": result}


@router.post("/image")
async def upload_image(
    file: UploadFile = File(...),
    current_user: dict = Depends(get_current_user),
):
    result = await _service().upload_image(file, uploaded_by=current_user["id"])
    print(f"[Uploads] image by={current_user['id']} size={result['size']}")
    return {"success": True, "data": result}
