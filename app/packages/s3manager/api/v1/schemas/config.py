"""存储配置查看接口的响应模型。"""

from typing import Optional

from pydantic import BaseModel

from app.packages.s3manager.api.v1.schemas.common import ResponseEnvelope


class StorageConfigData(BaseModel):
    storageType: str
    accessKeyId: Optional[str] = None
    secretAccessKey: Optional[str] = None
    region: Optional[str] = None
    bucket: Optional[str] = None
    endpoint: Optional[str] = None
    localRootPath: Optional[str] = None


StorageConfigResponse = ResponseEnvelope[StorageConfigData]
