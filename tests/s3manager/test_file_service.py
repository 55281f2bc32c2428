"""文件服务测试：有效期收敛、搜索、上传 key 拼接与配置脱敏。"""

import pytest

from app.packages.s3manager.core.config import get_settings
from app.packages.s3manager.core.exceptions import AppException
from app.packages.s3manager.services.file_service import file_service


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 3600),
        ("", 3600),
        ("abc", 3600),
        ("0", 3600),
        ("900", 900),
        (86400, 86400),
        ("604800", 604800),
        ("9999999", 604800),
        ("-5", 1),
        ("1.5", 1),
    ],
)
def test_resolve_expires(raw, expected):
    assert file_service.resolve_expires(raw) == expected


def test_upload_builds_key_from_folder(local_backend):
    resp = file_service.upload(local_backend, folder="/images/2024", filename="a.png", content=b"png")
    assert resp["data"] == {"key": "images/2024/a.png"}

    resp = file_service.upload(local_backend, folder="", filename="C:\\Users\\me\\b.txt", content=b"b")
    assert resp["data"] == {"key": "b.txt"}

    with pytest.raises(AppException):
        file_service.upload(local_backend, folder="", filename="", content=b"")


def test_list_level_response_shape(local_backend):
    file_service.upload(local_backend, folder="images/2024", filename="a.png", content=b"png")
    file_service.upload(local_backend, folder="", filename="readme.txt", content=b"hello")

    data = file_service.list_level(local_backend, path="")["data"]
    assert data["currentPath"] == ""
    assert data["breadcrumbs"] == []
    assert data["items"][0] == {"type": "folder", "name": "images", "fullPath": "images"}
    readme = data["items"][1]
    assert readme["type"] == "file"
    assert readme["key"] == "readme.txt"
    assert readme["size"] == 5
    assert readme["lastModified"]

    data = file_service.list_level(local_backend, path="/images/2024")["data"]
    assert data["currentPath"] == "images/2024/"
    assert data["breadcrumbs"] == [
        {"name": "images", "path": "images"},
        {"name": "2024", "path": "images/2024"},
    ]
    assert [item["name"] for item in data["items"]] == ["a.png"]


def test_search_matches_keys_case_insensitively(local_backend):
    for folder, name in [("Images", "Cat.png"), ("docs", "cat-notes.md"), ("", "dog.txt")]:
        file_service.upload(local_backend, folder=folder, filename=name, content=b"x")
    local_backend.put_object(key="cats/", content=b"")

    keys = [item["key"] for item in file_service.search(local_backend, q="CAT")["data"]]
    assert keys == ["Images/Cat.png", "docs/cat-notes.md"]

    keys = [item["key"] for item in file_service.search(local_backend, q="", limit=2)["data"]]
    assert len(keys) == 2


def test_delete_requires_key(local_backend):
    with pytest.raises(AppException):
        file_service.delete(local_backend, key="")


@pytest.fixture()
def s3_env(monkeypatch):
    monkeypatch.setenv("S3_ACCESS_KEY_ID", "AKIAEXAMPLE")
    monkeypatch.setenv("S3_SECRET_ACCESS_KEY", "wJalrXUtnFEMIK7MDENGbPxRfiCYEXAMPLEKEY")
    monkeypatch.setenv("S3_BUCKET", "demo")
    monkeypatch.setenv("S3_REGION", "auto")
    monkeypatch.setenv("S3_ENDPOINT", "https://r2.example.com")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_get_config_masks_secret(s3_env):
    data = file_service.get_config()["data"]
    assert data["accessKeyId"] == "AKIAEXAMPLE"
    assert data["secretAccessKey"] == "****EKEY"
    assert data["bucket"] == "demo"
    assert data["region"] == "auto"
    assert data["endpoint"] == "https://r2.example.com"
