"""文件管理服务：组合存储后端与层级投影，向路由层输出统一响应结构。"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional, Union

from app.packages.s3manager.core.config import get_settings
from app.packages.s3manager.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_OK,
    SEARCH_DEFAULT_LIMIT,
    SEARCH_MAX_LIMIT,
)
from app.packages.s3manager.core.exceptions import AppException
from app.packages.s3manager.core.logger import logger
from app.packages.s3manager.core.responses import create_response
from app.packages.s3manager.core.timezone import format_iso
from app.packages.s3manager.services.hierarchy import (
    Breadcrumb,
    DisplayEntry,
    ObjectDescriptor,
    project_level,
)
from app.packages.s3manager.services.storage_backends import StorageBackend
from app.packages.s3manager.utils.path_utils import SEPARATOR, join_key, normalize_prefix


def _mask_secret(value: Optional[str]) -> str:
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


class FileService:
    # ----------------------------
    # 查询
    # ----------------------------
    def list_level(self, backend: StorageBackend, *, path: Optional[str]) -> Dict[str, Any]:
        """列出 ``path`` 这一层的文件夹与文件，并附带面包屑。"""
        projection = project_level(backend.list_objects(), path)
        data = {
            "currentPath": normalize_prefix(path),
            "breadcrumbs": [self._serialize_breadcrumb(b) for b in projection.breadcrumbs],
            "items": [self._serialize_entry(e) for e in projection.entries],
        }
        return create_response("获取文件列表成功", data, HTTP_STATUS_OK)

    def list_objects(self, backend: StorageBackend) -> Dict[str, Any]:
        """返回存储中的完整扁平对象列表。"""
        data = [self._serialize_descriptor(d) for d in backend.list_objects()]
        return create_response("获取对象列表成功", data, HTTP_STATUS_OK)

    def search(self, backend: StorageBackend, *, q: Optional[str], limit: Optional[int] = None) -> Dict[str, Any]:
        """按 key 做不区分大小写的子串匹配，目录占位对象不参与搜索。"""
        needle = (q or "").strip().casefold()
        size = max(1, min(int(limit or SEARCH_DEFAULT_LIMIT), SEARCH_MAX_LIMIT))
        matches = sorted(
            (
                d
                for d in backend.list_objects()
                if d.key and not d.key.endswith(SEPARATOR) and needle in d.key.casefold()
            ),
            key=lambda d: d.key,
        )
        data = [self._serialize_descriptor(d) for d in matches[:size]]
        return create_response("搜索完成", data, HTTP_STATUS_OK)

    # ----------------------------
    # 变更
    # ----------------------------
    def upload(
        self,
        backend: StorageBackend,
        *,
        folder: Optional[str],
        filename: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        safe_name = os.path.basename((filename or "").replace("\\", "/"))
        if not safe_name:
            raise AppException("未选择上传文件", HTTP_STATUS_BAD_REQUEST)
        key = join_key(folder, safe_name)
        backend.put_object(key=key, content=content, content_type=content_type)
        logger.info("Uploaded object key=%s size=%s", key, len(content))
        return create_response("文件上传成功", {"key": key}, HTTP_STATUS_OK)

    def delete(self, backend: StorageBackend, *, key: str) -> Dict[str, Any]:
        if not key:
            raise AppException("对象 key 不能为空", HTTP_STATUS_BAD_REQUEST)
        backend.delete_object(key=key)
        logger.info("Deleted object key=%s", key)
        return create_response("文件删除成功", {"key": key}, HTTP_STATUS_OK)

    def presign(
        self,
        backend: StorageBackend,
        *,
        key: str,
        expires_in: Union[str, int, None] = None,
    ) -> Dict[str, Any]:
        """生成临时访问链接，有效期缺省为 1 小时，最长 7 天。"""
        if not key:
            raise AppException("对象 key 不能为空", HTTP_STATUS_BAD_REQUEST)
        final_expires = self.resolve_expires(expires_in)
        url = backend.presign(key=key, expires_in=final_expires)
        logger.info("Presigned key=%s expires_in=%s", key, final_expires)
        return create_response("生成临时链接成功", {"url": url, "expiresIn": final_expires}, HTTP_STATUS_OK)

    # ----------------------------
    # 配置
    # ----------------------------
    def get_config(self) -> Dict[str, Any]:
        """返回当前存储连接配置，密钥仅展示末 4 位。"""
        settings = get_settings()
        data = {
            "storageType": (settings.storage_type or "").upper(),
            "accessKeyId": settings.s3_access_key_id,
            "secretAccessKey": _mask_secret(settings.s3_secret_access_key),
            "region": settings.s3_region,
            "bucket": settings.s3_bucket,
            "endpoint": settings.s3_endpoint,
            "localRootPath": settings.local_root_path,
        }
        return create_response("获取存储配置成功", data, HTTP_STATUS_OK)

    # ----------------------------
    # 工具方法
    # ----------------------------
    def resolve_expires(self, raw: Union[str, int, None]) -> int:
        settings = get_settings()
        try:
            value = int(float(raw))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            value = 0
        if not value:
            value = settings.presign_default_expires
        return max(1, min(value, settings.presign_max_expires))

    def _serialize_entry(self, entry: DisplayEntry) -> dict[str, Any]:
        if entry.kind == "folder":
            return {"type": "folder", "name": entry.name, "fullPath": entry.full_path}
        return {
            "type": "file",
            "name": entry.name,
            "key": entry.key,
            "size": entry.size,
            "lastModified": format_iso(entry.last_modified),
        }

    def _serialize_breadcrumb(self, crumb: Breadcrumb) -> dict[str, str]:
        return {"name": crumb.name, "path": crumb.path}

    def _serialize_descriptor(self, descriptor: ObjectDescriptor) -> dict[str, Any]:
        return {
            "key": descriptor.key,
            "size": descriptor.size,
            "lastModified": format_iso(descriptor.last_modified),
        }


file_service = FileService()
