"""层级投影：把对象存储的扁平 key 列表还原为“当前目录”下的文件夹/文件视图。

对象存储没有目录概念，只有以 ``/`` 约定分隔的 key。本模块给定完整列表与当前路径，
计算该层级应显示的条目（文件夹在前、文件在后）以及面包屑导航。

所有函数均为纯函数：不做 I/O，不持有跨调用的状态，可并发调用。
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Literal, Optional, Union

from app.packages.s3manager.utils.path_utils import (
    SEPARATOR,
    join_segments,
    normalize_prefix,
    split_segments,
)


@dataclass(frozen=True)
class ObjectDescriptor:
    """对象存储列举结果中的单个对象。"""

    key: str
    size: int = 0
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class FolderEntry:
    name: str
    full_path: str
    kind: Literal["folder"] = "folder"


@dataclass(frozen=True)
class FileEntry:
    name: str
    key: str
    size: int
    last_modified: Optional[datetime]
    kind: Literal["file"] = "file"


DisplayEntry = Union[FolderEntry, FileEntry]


@dataclass(frozen=True)
class Breadcrumb:
    name: str
    path: str


@dataclass(frozen=True)
class Projection:
    entries: list[DisplayEntry]
    breadcrumbs: list[Breadcrumb]


def build_breadcrumbs(path: str | None) -> list[Breadcrumb]:
    """根据原始路径生成面包屑，空段（首尾或连续的 ``/``）会被忽略。

    ``"a/b/c"`` -> ``[("a", "a"), ("b", "a/b"), ("c", "a/b/c")]``；根目录返回空列表。
    """
    segments = split_segments(path)
    return [
        Breadcrumb(name=segment, path=join_segments(segments[: index + 1]))
        for index, segment in enumerate(segments)
    ]


def _sort_key(entry: DisplayEntry) -> tuple[int, str, str]:
    # 文件夹优先；同类按名称不区分大小写排序，再以原名称兜底保证全序
    return (0 if entry.kind == "folder" else 1, entry.name.casefold(), entry.name)


def project_level(descriptors: Iterable[ObjectDescriptor], current_path: str | None) -> Projection:
    """计算 ``current_path`` 这一层可见的文件夹与文件。

    - key 不以当前前缀开头的对象不可见；
    - 相对 key 含分隔符时，第一段作为文件夹名，同名只保留一个文件夹条目；
    - 相对 key 不含分隔符时为当前层的文件；
    - key 恰好等于当前前缀（目录占位对象）不产生条目；
    - 同名的文件夹与文件并存时保留文件夹。

    对异常输入不抛错：空 key 直接跳过，重复 key 以后出现的文件为准。
    """
    prefix = normalize_prefix(current_path)
    items: dict[str, DisplayEntry] = {}

    for descriptor in descriptors:
        key = descriptor.key
        if not key or not key.startswith(prefix):
            continue

        parts = key[len(prefix) :].split(SEPARATOR)
        name = parts[0]
        if len(parts) > 1:
            existing = items.get(name)
            if existing is None or existing.kind == "file":
                items[name] = FolderEntry(name=name, full_path=prefix + name)
        elif name:
            existing = items.get(name)
            if existing is not None and existing.kind == "folder":
                continue
            items[name] = FileEntry(
                name=name,
                key=key,
                size=descriptor.size,
                last_modified=descriptor.last_modified,
            )

    entries = sorted(items.values(), key=_sort_key)
    return Projection(entries=entries, breadcrumbs=build_breadcrumbs(current_path))
