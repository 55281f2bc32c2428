"""层级投影的单元测试：分组、去重、排序、目录占位与面包屑。"""

from datetime import datetime, timezone

from app.packages.s3manager.services.hierarchy import (
    Breadcrumb,
    FileEntry,
    FolderEntry,
    ObjectDescriptor,
    build_breadcrumbs,
    project_level,
)
from app.packages.s3manager.utils.path_utils import normalize_prefix

T1 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
T2 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _objs(*keys: str) -> list[ObjectDescriptor]:
    return [ObjectDescriptor(key=k, size=len(k), last_modified=T1) for k in keys]


def _names(projection) -> list[tuple[str, str]]:
    return [(e.kind, e.name) for e in projection.entries]


LISTING = _objs(
    "images/2024/a.png",
    "images/2024/b.png",
    "images/logo.svg",
    "docs/",
    "docs/guide.md",
    "readme.txt",
    "Zebra.txt",
    "archive/",
)


def test_end_to_end_root_and_drill_down():
    descriptors = _objs("images/2024/a.png", "images/2024/b.png", "readme.txt")

    root = project_level(descriptors, "")
    assert root.entries == [
        FolderEntry(name="images", full_path="images"),
        FileEntry(name="readme.txt", key="readme.txt", size=10, last_modified=T1),
    ]
    assert root.breadcrumbs == []

    images = project_level(descriptors, "images")
    assert images.entries == [FolderEntry(name="2024", full_path="images/2024")]
    assert images.breadcrumbs == [Breadcrumb(name="images", path="images")]


def test_folders_are_deduplicated_by_name():
    descriptors = [
        ObjectDescriptor(key="a/x", size=10, last_modified=T1),
        ObjectDescriptor(key="a/y", size=20, last_modified=T2),
    ]
    projection = project_level(descriptors, "")
    assert projection.entries == [FolderEntry(name="a", full_path="a")]


def test_folders_sort_before_files_regardless_of_name():
    projection = project_level(_objs("b/inner.txt", "a"), "")
    assert _names(projection) == [("folder", "b"), ("file", "a")]


def test_names_sort_case_insensitively_within_kind():
    projection = project_level(LISTING, "")
    assert _names(projection) == [
        ("folder", "archive"),
        ("folder", "docs"),
        ("folder", "images"),
        ("file", "readme.txt"),
        ("file", "Zebra.txt"),
    ]


def test_sort_is_total_for_names_differing_only_in_case():
    projection = project_level(_objs("b.txt", "B.txt", "a.txt"), "")
    assert [e.name for e in projection.entries] == ["a.txt", "B.txt", "b.txt"]


def test_directory_marker_produces_no_entry():
    projection = project_level(_objs("docs/"), "docs/")
    assert projection.entries == []

    projection = project_level(LISTING, "docs")
    assert _names(projection) == [("file", "guide.md")]


def test_marker_at_root_shows_folder():
    projection = project_level(_objs("archive/"), "")
    assert projection.entries == [FolderEntry(name="archive", full_path="archive")]


def test_file_entry_passes_through_descriptor_fields():
    descriptor = ObjectDescriptor(key="docs/guide.md", size=2048, last_modified=T2)
    projection = project_level([descriptor], "docs/")
    assert projection.entries == [
        FileEntry(name="guide.md", key="docs/guide.md", size=2048, last_modified=T2)
    ]


def test_folder_wins_over_same_named_file():
    # 文件先出现、文件夹后出现
    projection = project_level(_objs("data", "data/part-0"), "")
    assert projection.entries == [FolderEntry(name="data", full_path="data")]

    # 文件夹先出现、文件后出现
    projection = project_level(_objs("data/part-0", "data"), "")
    assert projection.entries == [FolderEntry(name="data", full_path="data")]


def test_empty_listing_keeps_breadcrumbs():
    projection = project_level([], "a/b")
    assert projection.entries == []
    assert projection.breadcrumbs == [Breadcrumb("a", "a"), Breadcrumb("b", "a/b")]


def test_empty_keys_are_skipped():
    projection = project_level(_objs("", "x.txt"), "")
    assert _names(projection) == [("file", "x.txt")]


def test_duplicate_keys_do_not_crash():
    descriptors = [
        ObjectDescriptor(key="x.txt", size=1, last_modified=T1),
        ObjectDescriptor(key="x.txt", size=2, last_modified=T2),
    ]
    projection = project_level(descriptors, "")
    assert len(projection.entries) == 1
    assert projection.entries[0].size == 2


def test_path_below_listed_depth_is_empty():
    projection = project_level(LISTING, "images/2024/a.png/deeper")
    assert projection.entries == []
    assert [b.name for b in projection.breadcrumbs] == ["images", "2024", "a.png", "deeper"]


def test_sibling_prefix_is_not_visible():
    # "images2/..." 不属于 "images/"
    projection = project_level(_objs("images/a.png", "images2/b.png"), "images")
    assert _names(projection) == [("file", "a.png")]


def test_path_of_only_separators_is_root():
    assert project_level(LISTING, "///") == project_level(LISTING, "")


def test_leading_separator_in_path_is_ignored():
    projection = project_level(LISTING, "/images/")
    assert _names(projection) == [("folder", "2024"), ("file", "logo.svg")]
    assert projection.entries[0].full_path == "images/2024"


def test_double_separator_inside_key_yields_empty_folder_name():
    projection = project_level(_objs("docs//b", "docs/c.txt"), "docs/")
    assert projection.entries == [
        FolderEntry(name="", full_path="docs/"),
        FileEntry(name="c.txt", key="docs/c.txt", size=10, last_modified=T1),
    ]

    projection = project_level(_objs("a//b"), "")
    assert projection.entries == [FolderEntry(name="a", full_path="a")]


def test_normalization_is_idempotent_for_projection():
    for raw in ["", "/", "images", "images/", "/images", "images/2024", "docs//", "a/b/c"]:
        normalized = normalize_prefix(raw)
        assert normalize_prefix(normalized) == normalized
        assert project_level(LISTING, normalized) == project_level(LISTING, raw)


def test_root_completeness():
    projection = project_level(LISTING, "")
    folders = {e.name for e in projection.entries if e.kind == "folder"}
    files = {e.key for e in projection.entries if e.kind == "file"}
    for descriptor in LISTING:
        top, sep, _ = descriptor.key.partition("/")
        if sep:
            assert top in folders
        else:
            assert descriptor.key in files


def test_partition_every_visible_descriptor_is_covered_once():
    for path in ["", "images", "images/2024", "docs"]:
        prefix = normalize_prefix(path)
        projection = project_level(LISTING, path)
        for descriptor in LISTING:
            covering = [
                e
                for e in projection.entries
                if (e.kind == "file" and e.key == descriptor.key)
                or (e.kind == "folder" and descriptor.key.startswith(e.full_path + "/"))
            ]
            if not descriptor.key.startswith(prefix) or descriptor.key == prefix:
                assert covering == []
            else:
                assert len(covering) == 1


def test_breadcrumbs():
    assert build_breadcrumbs("a/b/c") == [
        Breadcrumb(name="a", path="a"),
        Breadcrumb(name="b", path="a/b"),
        Breadcrumb(name="c", path="a/b/c"),
    ]
    assert build_breadcrumbs("") == []
    assert build_breadcrumbs(None) == []
    assert build_breadcrumbs("/a//b/") == [Breadcrumb("a", "a"), Breadcrumb("b", "a/b")]
