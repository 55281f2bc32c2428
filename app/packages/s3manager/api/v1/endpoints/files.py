"""文件与对象操作路由。

列表类接口每次都重新向存储拉取完整对象列表再做层级投影；变更类接口
（上传/删除）不返回列表，前端在成功后自行刷新。
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.packages.s3manager.api.v1.schemas.files import (
    FilesLevelResponse,
    ObjectListResponse,
    ObjectMutationResponse,
    PresignResponse,
)
from app.packages.s3manager.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    SEARCH_DEFAULT_LIMIT,
    SEARCH_MAX_LIMIT,
)
from app.packages.s3manager.core.dependencies import get_backend
from app.packages.s3manager.core.exceptions import AppException
from app.packages.s3manager.core.logger import logger
from app.packages.s3manager.services.file_service import file_service
from app.packages.s3manager.services.storage_backends import LocalBackend, StorageBackend

router = APIRouter(tags=["files"])


@router.get("/files", response_model=FilesLevelResponse)
def list_level(
    path: Optional[str] = Query("", description="当前目录，如 images/2024，根目录为空"),
    backend: StorageBackend = Depends(get_backend),
):
    logger.debug("files.list path=%s", path)
    return file_service.list_level(backend, path=path)


@router.get("/objects", response_model=ObjectListResponse)
def list_objects(backend: StorageBackend = Depends(get_backend)):
    return file_service.list_objects(backend)


@router.get("/files/search", response_model=ObjectListResponse)
def search_objects(
    q: Optional[str] = Query(None, description="按 key 模糊匹配"),
    limit: int = Query(SEARCH_DEFAULT_LIMIT, ge=1, le=SEARCH_MAX_LIMIT),
    backend: StorageBackend = Depends(get_backend),
):
    return file_service.search(backend, q=q, limit=limit)


@router.get("/files/presigned")
def open_presigned(
    t: str = Query(..., description="LOCAL 后端生成的短期签名 token"),
    backend: StorageBackend = Depends(get_backend),
):
    if not isinstance(backend, LocalBackend):
        raise AppException("当前存储后端不支持本地签名直链", HTTP_STATUS_BAD_REQUEST)
    return backend.open_presigned(t)


@router.post("/files", response_model=ObjectMutationResponse)
async def upload_file(
    file: UploadFile = File(...),
    folder: str = Form("", description="上传目标目录，如 images/2024"),
    backend: StorageBackend = Depends(get_backend),
):
    content = await file.read()
    return file_service.upload(
        backend,
        folder=folder,
        filename=file.filename,
        content=content,
        content_type=file.content_type,
    )


@router.delete("/files/{key:path}", response_model=ObjectMutationResponse)
def delete_file(key: str, backend: StorageBackend = Depends(get_backend)):
    return file_service.delete(backend, key=key)


@router.post("/files/{key:path}/presign", response_model=PresignResponse)
def presign_file(
    key: str,
    expires_in: Optional[str] = Form(None, alias="expiresIn", description="有效期（秒），默认 3600，最长 604800"),
    backend: StorageBackend = Depends(get_backend),
):
    return file_service.presign(backend, key=key, expires_in=expires_in)
