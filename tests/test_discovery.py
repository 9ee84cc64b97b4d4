# tests/test_discovery.py
"""File discovery and classification tests."""

import asyncio
import random
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from conftest import write_file
from fsmdx.config import define_collections
from fsmdx.discovery import (
    FileInfo,
    get_localized_path,
    get_type_from_path,
    resolve_files,
    sort_files,
    tree_sort_key,
)
from fsmdx.errors import DiscoveryError


def touch(project: Path, *relatives: str) -> None:
    for relative in relatives:
        write_file(project / relative, "---\ntitle: x\n---\n")


class TestClassification:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("index.mdx", "doc"),
            ("guide/intro.MD", "doc"),
            ("meta.json", "meta"),
            ("folder/meta.yaml", "meta"),
            ("meta.yml", "meta"),
            ("image.png", None),
            ("README", None),
        ],
    )
    def test_type_from_extension(self, path: str, expected):
        assert get_type_from_path(path) == expected


class TestLocalizedPath:
    """Tests for the locale rewrite."""

    def test_non_default_locale_moves_to_suffix(self):
        assert get_localized_path("es/guide.mdx") == "guide.es.mdx"

    def test_default_locale_is_unsuffixed(self):
        assert get_localized_path("en/guide.mdx") == "guide.mdx"

    def test_nested_paths_keep_folders(self):
        assert get_localized_path("fr/folder/page.md") == "folder/page.fr.md"

    def test_file_at_root_is_unchanged(self):
        assert get_localized_path("index.mdx") == "index.mdx"

    def test_locale_dots_are_removed(self):
        assert get_localized_path("zh.cn/page.mdx") == "page.zhcn.mdx"


class TestSorting:
    def test_files_sort_before_folders(self):
        """index.mdx sorts before folder/test.mdx."""
        files = [
            FileInfo("folder/test.mdx", "/c/folder/test.mdx", "folder/test.mdx"),
            FileInfo("zeta.mdx", "/c/zeta.mdx", "zeta.mdx"),
            FileInfo("index.mdx", "/c/index.mdx", "index.mdx"),
        ]

        assert [info.path for info in sort_files(files)] == [
            "index.mdx",
            "zeta.mdx",
            "folder/test.mdx",
        ]

    def test_sort_key_compares_levels(self):
        assert tree_sort_key("a/b.mdx") < tree_sort_key("a/c/d.mdx")
        assert tree_sort_key("b.mdx") < tree_sort_key("a/b.mdx")

    @given(seed=st.integers(min_value=0, max_value=10_000))
    @settings(max_examples=50)
    def test_sort_is_independent_of_input_order(self, seed: int):
        """Shuffled inputs always sort to the same list."""
        files = [
            FileInfo(path, f"/c/{path}", path)
            for path in ["index.mdx", "a/b.mdx", "a/c/d.mdx", "b.mdx", "a/a.mdx", "z/index.mdx"]
        ]
        shuffled = list(files)
        random.Random(seed).shuffle(shuffled)

        assert sort_files(shuffled) == sort_files(files)


class TestResolveFiles:
    """Tests for resolve_files against a real directory tree."""

    @pytest.mark.asyncio
    async def test_filters_by_collection_type(self, project: Path):
        touch(project, "content/index.mdx", "content/meta.json", "content/logo.png")

        docs = await resolve_files(define_collections(type="doc", dir="content"))
        metas = await resolve_files(define_collections(type="meta", dir="content"))

        assert [info.path for info in docs] == ["index.mdx"]
        assert [info.path for info in metas] == ["meta.json"]

    @pytest.mark.asyncio
    async def test_file_info_fields(self, project: Path):
        touch(project, "content/folder/test.mdx")

        [info] = await resolve_files(define_collections(type="doc", dir="content"))

        assert info.path == "folder/test.mdx"
        assert info.part == "folder/test.mdx"
        assert info.absolute_path == str((project / "content/folder/test.mdx").resolve())

    @pytest.mark.asyncio
    async def test_include_and_exclude_patterns(self, project: Path):
        touch(project, "content/a.mdx", "content/drafts/b.mdx", "content/c.md")
        collection = define_collections(
            type="doc", dir="content", files=["**/*.mdx", "!drafts/**"]
        )

        files = await resolve_files(collection)

        assert [info.path for info in files] == ["a.mdx"]

    @pytest.mark.asyncio
    async def test_patterns_are_rooted_at_the_directory(self, project: Path):
        """A pattern without a slash only matches top-level files."""
        touch(project, "content/top.mdx", "content/nested/deep.mdx")
        collection = define_collections(type="doc", dir="content", files=["*.mdx"])

        files = await resolve_files(collection)

        assert [info.path for info in files] == ["top.mdx"]

    @pytest.mark.asyncio
    async def test_rooted_negation(self, project: Path):
        touch(project, "content/draft.mdx", "content/nested/draft.mdx")
        collection = define_collections(
            type="doc", dir="content", files=["**/*.mdx", "!draft.mdx"]
        )

        files = await resolve_files(collection)

        assert [info.path for info in files] == ["nested/draft.mdx"]

    @pytest.mark.asyncio
    async def test_overlapping_patterns_yield_one_entry(self, project: Path):
        """A file matched by two patterns appears exactly once."""
        touch(project, "content/guide/intro.mdx")
        collection = define_collections(
            type="doc", dir="content", files=["**/*.mdx", "guide/**"]
        )

        files = await resolve_files(collection)

        assert [info.path for info in files] == ["guide/intro.mdx"]

    @pytest.mark.asyncio
    async def test_overlapping_directories_yield_one_entry(self, project: Path):
        touch(project, "content/sub/page.mdx")
        collection = define_collections(type="doc", dir=["content", "content/sub"])

        files = await resolve_files(collection)

        assert len(files) == 1
        assert files[0].absolute_path.endswith("page.mdx")

    @pytest.mark.asyncio
    async def test_localized_collection(self, project: Path):
        touch(project, "content/en/guide.mdx", "content/es/guide.mdx")
        collection = define_collections(type="doc", dir="content", localized=True)

        files = sort_files(await resolve_files(collection))

        assert [info.path for info in files] == ["guide.es.mdx", "guide.mdx"]
        assert [info.part for info in files] == ["es/guide.mdx", "en/guide.mdx"]

    @pytest.mark.asyncio
    async def test_logical_collision_first_directory_wins(self, project: Path):
        touch(project, "first/page.mdx", "second/page.mdx")
        collection = define_collections(type="doc", dir=["first", "second"])

        files = await resolve_files(collection)

        assert len(files) == 1
        assert Path(files[0].absolute_path).parent.name == "first"

    @pytest.mark.asyncio
    async def test_directory_order_does_not_change_sorted_result(self, project: Path):
        touch(project, "a/index.mdx", "a/x/one.mdx", "b/two.mdx", "b/y/three.mdx")

        forward = await resolve_files(define_collections(type="doc", dir=["a", "b"]))
        backward = await resolve_files(define_collections(type="doc", dir=["b", "a"]))

        assert sort_files(forward) == sort_files(backward)

    @pytest.mark.asyncio
    async def test_missing_directory_yields_nothing(self, project: Path):
        assert await resolve_files(define_collections(type="doc", dir="missing")) == []

    @pytest.mark.asyncio
    async def test_file_as_directory_raises(self, project: Path):
        touch(project, "content.mdx")

        with pytest.raises(DiscoveryError, match="content.mdx"):
            await resolve_files(define_collections(type="doc", dir="content.mdx"))


@st.composite
def file_tree_strategy(draw):
    """Draw a small set of relative document paths."""
    names = st.text(alphabet="abcdef", min_size=1, max_size=4)
    paths = set()
    for _ in range(draw(st.integers(min_value=1, max_value=8))):
        depth = draw(st.integers(min_value=0, max_value=2))
        segments = [draw(names) for _ in range(depth)]
        paths.add("/".join([*segments, draw(names) + ".mdx"]))
    return sorted(paths)


class TestDiscoveryProperties:
    @given(paths=file_tree_strategy(), seed=st.integers(min_value=0, max_value=1000))
    @settings(max_examples=25, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_scan_is_deterministic(self, tmp_path_factory, paths, seed):
        """Repeated resolution of the same tree gives the same sorted files."""
        root = tmp_path_factory.mktemp("tree")
        shuffled = list(paths)
        random.Random(seed).shuffle(shuffled)
        for relative in shuffled:
            write_file(root / relative, "")

        collection = define_collections(type="doc", dir=str(root))
        first = sort_files(asyncio.run(resolve_files(collection)))
        second = sort_files(asyncio.run(resolve_files(collection)))

        assert first == second
        assert sorted(info.path for info in first) == paths
