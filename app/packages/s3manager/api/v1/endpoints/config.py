"""存储配置查看路由（只读）。"""

from fastapi import APIRouter

from app.packages.s3manager.api.v1.schemas.config import StorageConfigResponse
from app.packages.s3manager.services.file_service import file_service

router = APIRouter(tags=["config"])


@router.get("/config", response_model=StorageConfigResponse)
def get_storage_config():
    return file_service.get_config()
