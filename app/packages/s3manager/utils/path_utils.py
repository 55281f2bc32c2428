"""Path utilities: separator rules for object keys and navigation paths.

These helpers centralize the rules used by the hierarchy projection,
breadcrumbs and upload key construction:
- Object keys never start with '/';
- A directory prefix is either '' (root) or ends with exactly the given '/';
- Splitting for display drops empty segments (leading/trailing/double '/').
"""

from __future__ import annotations

from typing import Iterable

SEPARATOR = "/"


def normalize_prefix(p: str | None) -> str:
    s = (p or "").lstrip(SEPARATOR)
    if s and not s.endswith(SEPARATOR):
        s += SEPARATOR
    return s


def split_segments(p: str | None) -> list[str]:
    return [seg for seg in (p or "").split(SEPARATOR) if seg]


def join_segments(segments: Iterable[str]) -> str:
    return SEPARATOR.join(segments)


def normalize_folder(folder: str | None) -> str:
    # upload target folder, e.g. "/images/2024" -> "images/2024/"
    return normalize_prefix((folder or "").strip())


def join_key(folder: str | None, name: str) -> str:
    return normalize_folder(folder) + name
