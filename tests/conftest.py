"""测试夹具：为 pytest 提供临时存储目录、本地后端与客户端的共享配置。"""

import os
import tempfile
from pathlib import Path
from typing import Generator

# 必须在导入应用之前设置，避免启动钩子在项目目录下创建存储目录
_SESSION_ROOT = tempfile.mkdtemp(prefix="s3m_tests_")
os.environ.setdefault("STORAGE_TYPE", "LOCAL")
os.environ.setdefault("LOCAL_ROOT_PATH", os.path.join(_SESSION_ROOT, "storage"))
os.environ.setdefault("LOG_DIR", os.path.join(_SESSION_ROOT, "log"))

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.packages.s3manager.core.config import get_settings
from app.packages.s3manager.core.dependencies import get_backend
from app.packages.s3manager.services.storage_backends import LocalBackend


@pytest.fixture()
def storage_root(tmp_path: Path) -> Path:
    root = tmp_path / "bucket"
    root.mkdir()
    return root


@pytest.fixture()
def local_backend(storage_root: Path) -> LocalBackend:
    return LocalBackend(storage_root, api_prefix=get_settings().api_v1_str)


@pytest.fixture()
def client(local_backend: LocalBackend) -> Generator[TestClient, None, None]:
    """构建 FastAPI TestClient，并注入测试专用的本地存储后端。"""
    app.dependency_overrides[get_backend] = lambda: local_backend

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
