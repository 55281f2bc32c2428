"""存储后端抽象与实现：统一封装本地目录与 S3 的对象操作。

两种后端对外都表现为“扁平 key-value 对象存储”：列举返回完整 key 列表，
目录只是 key 中以 ``/`` 分隔的约定，层级视图由 ``hierarchy`` 模块计算。
"""

from __future__ import annotations

import mimetypes
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.responses import FileResponse

from app.packages.s3manager.core.config import Settings
from app.packages.s3manager.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_UNAUTHORIZED,
    PRESIGN_TOKEN_PURPOSE,
)
from app.packages.s3manager.core.exceptions import AppException, StoreAccessError
from app.packages.s3manager.core.logger import logger
from app.packages.s3manager.core.security import create_temporary_token, decode_and_verify_token
from app.packages.s3manager.services.hierarchy import ObjectDescriptor
from app.packages.s3manager.utils.path_utils import SEPARATOR


def _norm_mime(path: str) -> str:
    mime, _ = mimetypes.guess_type(path)
    return mime or "application/octet-stream"


class StorageBackend:
    """存储后端接口。"""

    def list_objects(self) -> list[ObjectDescriptor]:
        raise NotImplementedError

    def put_object(self, *, key: str, content: bytes, content_type: Optional[str] = None) -> None:
        raise NotImplementedError

    def delete_object(self, *, key: str) -> None:
        raise NotImplementedError

    def presign(self, *, key: str, expires_in: int) -> str:
        raise NotImplementedError

    def describe(self) -> dict:
        raise NotImplementedError


# ------------------------------------------
# 本地文件系统实现
# ------------------------------------------


class LocalBackend(StorageBackend):
    """以本地目录模拟对象存储：文件即对象，目录占位 key（``dir/``）以隐藏标记文件落盘。

    目录只为承载对象而存在：删除对象后逐级清理空的上级目录，
    只有显式创建过占位 key 的目录（含 ``MARKER_NAME`` 文件）才会被列举为 ``dir/``。
    """

    MARKER_NAME = ".s3dir"

    def __init__(self, root: str | Path, *, api_prefix: str = "/api/v1"):
        self.root = Path(root).resolve()
        self.api_prefix = api_prefix.rstrip("/")
        if not self.root.exists():
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:  # pragma: no cover - 极端情况下可能失败
                raise StoreAccessError(f"无法创建本地根目录: {exc}") from exc

    # 统一的安全路径拼接，防止路径遍历
    def _resolve(self, key: str) -> Path:
        rel = key.lstrip(SEPARATOR)
        candidate = (self.root / rel).resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError as exc:
            raise AppException("非法 key: 越权访问", HTTP_STATUS_BAD_REQUEST) from exc
        if candidate.name == self.MARKER_NAME:
            raise AppException("非法 key: 保留名称", HTTP_STATUS_BAD_REQUEST)
        return candidate

    def _ensure_parents_writable(self, target: Path) -> None:
        for parent in target.parents:
            if parent == self.root:
                break
            if parent.exists() and not parent.is_dir():
                raise AppException("上级路径已存在同名文件", HTTP_STATUS_BAD_REQUEST)

    def _prune_empty_dirs(self, start: Path) -> None:
        current = start
        while current != self.root and current.is_dir() and not any(current.iterdir()):
            current.rmdir()
            current = current.parent

    def list_objects(self) -> list[ObjectDescriptor]:
        descriptors: list[ObjectDescriptor] = []
        try:
            for dirpath, dirnames, filenames in os.walk(self.root):
                dirnames.sort()
                base = Path(dirpath)
                rel_dir = base.relative_to(self.root).as_posix()
                for name in sorted(filenames):
                    entry = base / name
                    if name == self.MARKER_NAME:
                        if base != self.root:
                            descriptors.append(ObjectDescriptor(key=rel_dir + SEPARATOR, size=0, last_modified=None))
                        continue
                    stat = entry.stat()
                    key = name if base == self.root else f"{rel_dir}{SEPARATOR}{name}"
                    descriptors.append(
                        ObjectDescriptor(
                            key=key,
                            size=int(stat.st_size),
                            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                        )
                    )
        except OSError as exc:
            logger.exception("Local listing failed under %s", self.root)
            raise StoreAccessError(f"无法读取本地存储: {exc}") from exc
        return descriptors

    def put_object(self, *, key: str, content: bytes, content_type: Optional[str] = None) -> None:
        target = self._resolve(key)
        if target == self.root:
            raise AppException("对象 key 不能为空", HTTP_STATUS_BAD_REQUEST)
        self._ensure_parents_writable(target)
        try:
            if key.endswith(SEPARATOR):
                if target.exists() and not target.is_dir():
                    raise AppException("同名文件已存在", HTTP_STATUS_BAD_REQUEST)
                target.mkdir(parents=True, exist_ok=True)
                (target / self.MARKER_NAME).touch()
                return
            if target.is_dir():
                raise AppException("同名文件夹已存在", HTTP_STATUS_BAD_REQUEST)
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as f:
                f.write(content)
        except OSError as exc:
            logger.exception("Local put failed: %s", key)
            raise StoreAccessError(f"写入本地存储失败: {exc}") from exc

    def delete_object(self, *, key: str) -> None:
        target = self._resolve(key)
        if target == self.root:
            return
        try:
            if key.endswith(SEPARATOR):
                # 只删除占位 key 本身，与 S3 删除 "dir/" 对象的语义一致
                marker = target / self.MARKER_NAME
                if not marker.is_file():
                    return
                marker.unlink()
            elif target.is_file():
                target.unlink()
            else:
                # 允许幂等：不存在则忽略
                return
            self._prune_empty_dirs(target if key.endswith(SEPARATOR) else target.parent)
        except OSError as exc:
            logger.exception("Local delete failed: %s", key)
            raise StoreAccessError(f"删除本地对象失败: {exc}") from exc

    def presign(self, *, key: str, expires_in: int) -> str:
        target = self._resolve(key)
        if not target.is_file():
            raise AppException("对象不存在", HTTP_STATUS_NOT_FOUND)
        token = create_temporary_token(
            {"purpose": PRESIGN_TOKEN_PURPOSE, "key": key},
            expires_seconds=expires_in,
        )
        return f"{self.api_prefix}/files/presigned?t={token}"

    def open_presigned(self, token: str) -> FileResponse:
        """校验临时直链令牌并返回对应文件。"""
        payload = decode_and_verify_token(token, verify_exp=True)
        if not payload or payload.get("purpose") != PRESIGN_TOKEN_PURPOSE:
            raise AppException("签名无效或已过期", HTTP_STATUS_UNAUTHORIZED)
        key = payload.get("key")
        if not isinstance(key, str) or not key:
            raise AppException("签名载荷不完整", HTTP_STATUS_BAD_REQUEST)
        target = self._resolve(key)
        if not target.is_file():
            raise AppException("对象不存在", HTTP_STATUS_NOT_FOUND)
        return FileResponse(str(target), media_type=_norm_mime(target.name), filename=target.name)

    def describe(self) -> dict:
        return {"storageType": "LOCAL", "localRootPath": str(self.root)}


# ------------------------------------------
# S3 实现（boto3）
# ------------------------------------------


class S3Backend(StorageBackend):
    def __init__(
        self,
        *,
        bucket: str,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url or None
        self._client = client or boto3.client(
            "s3",
            region_name=region or None,
            endpoint_url=self.endpoint_url,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
        )

    def list_objects(self) -> list[ObjectDescriptor]:
        try:
            resp = self._client.list_objects_v2(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as exc:
            logger.warning("S3 list failed bucket=%s: %s", self.bucket, exc)
            raise StoreAccessError(f"对象存储访问失败: {exc}") from exc

        if resp.get("IsTruncated"):
            logger.warning(
                "S3 listing truncated bucket=%s returned=%s; only the first page is shown",
                self.bucket,
                resp.get("KeyCount"),
            )

        descriptors: list[ObjectDescriptor] = []
        for content in resp.get("Contents", []):
            key = content.get("Key")
            if not key:
                continue
            last_modified = content.get("LastModified")
            descriptors.append(
                ObjectDescriptor(
                    key=key,
                    size=int(content.get("Size") or 0),
                    last_modified=last_modified.astimezone(timezone.utc) if last_modified else None,
                )
            )
        return descriptors

    def put_object(self, *, key: str, content: bytes, content_type: Optional[str] = None) -> None:
        params = {"Bucket": self.bucket, "Key": key, "Body": content}
        if content_type:
            params["ContentType"] = content_type
        try:
            self._client.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            logger.exception("S3 upload failed: %s", key)
            raise StoreAccessError(f"上传失败: {exc}") from exc

    def delete_object(self, *, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            logger.exception("S3 delete failed: %s", key)
            raise StoreAccessError(f"删除失败: {exc}") from exc

    def presign(self, *, key: str, expires_in: int) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreAccessError(f"预签名 URL 生成失败: {exc}") from exc

    def describe(self) -> dict:
        return {
            "storageType": "S3",
            "bucket": self.bucket,
            "region": self.region,
            "endpoint": self.endpoint_url,
        }


def build_backend(settings: Settings) -> StorageBackend:
    t = (settings.storage_type or "").strip().upper()
    if t == "LOCAL":
        if not settings.local_root_path:
            raise AppException("缺少本地根目录配置", HTTP_STATUS_BAD_REQUEST)
        return LocalBackend(settings.local_root_directory, api_prefix=settings.api_v1_str)
    if t == "S3":
        if not settings.s3_bucket:
            raise AppException("S3 配置不完整：缺少 S3_BUCKET", HTTP_STATUS_BAD_REQUEST)
        return S3Backend(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            endpoint_url=settings.s3_endpoint,
        )
    raise AppException("不支持的存储类型", HTTP_STATUS_BAD_REQUEST)
