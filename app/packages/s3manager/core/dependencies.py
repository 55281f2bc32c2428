"""依赖注入模块：为路由提供存储后端实例。"""

from functools import lru_cache

from app.packages.s3manager.core.config import get_settings
from app.packages.s3manager.services.storage_backends import StorageBackend, build_backend


@lru_cache
def get_backend() -> StorageBackend:
    """按当前配置构建并缓存存储后端，进程内共享同一个 boto3 客户端。"""
    return build_backend(get_settings())
