# tests/test_loader.py
"""Per-file transform hook tests."""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import write_source
from fsmdx.config import ConfigCache, compute_config_hash
from fsmdx.errors import CompileError, FrontmatterError, FrontmatterValidationError
from fsmdx.loader import (
    CompileOutput,
    DocumentDescriptor,
    DocumentLoader,
    MetaLoader,
)

SOURCE = """
from fsmdx.config import define_collections, define_config, define_docs
from fsmdx.schema import FrontmatterSchema

docs = define_docs(dir="content/docs")
notes = define_collections(type="doc", dir="content/notes", compile_options={"format": "md"})
free = define_collections(type="doc", dir="content/free")
config = define_config(default_compile_options={"format": "mdx"}, last_modified_time="git")
"""


class RecordingCompiler:
    """Compiler that records every call and echoes the source."""

    def __init__(self, fail: bool = False):
        self.calls = []
        self.fail = fail

    def compile(self, source, options):
        self.calls.append((source, options))
        if self.fail:
            raise ValueError("unexpected token")
        return CompileOutput(value=f"compiled:{source}", source_map={"version": 3})


@pytest.fixture
def source_path(project: Path) -> Path:
    return write_source(project, SOURCE)


@pytest.fixture
def descriptor_for(source_path: Path):
    config_hash = compute_config_hash(source_path)

    def make(collection_name, file_path="/project/content/docs/a.mdx"):
        return DocumentDescriptor(collection_name, config_hash, file_path)

    return make


class TestDocumentLoader:
    def test_validates_and_compiles(self, source_path, descriptor_for, config_cache: ConfigCache):
        compiler = RecordingCompiler()
        loader = DocumentLoader(source_path, config_cache, compiler=compiler)

        module = loader.transform("---\ntitle: Intro\n---\nBody\n", descriptor_for("docs"))

        assert module.frontmatter == {"title": "Intro"}
        assert module.body == "compiled:Body\n"
        assert module.source_map == {"version": 3}
        [(source, options)] = compiler.calls
        assert source == "Body\n"
        assert options["frontmatter"] == {"title": "Intro"}
        assert options["format"] == "mdx"
        assert options["development"] is False

    def test_invalid_frontmatter_raises_with_path(self, source_path, descriptor_for, config_cache):
        loader = DocumentLoader(source_path, config_cache)

        with pytest.raises(FrontmatterValidationError) as exc_info:
            loader.transform("---\ndescription: no title\n---\n", descriptor_for("docs"))

        assert exc_info.value.path == "/project/content/docs/a.mdx"
        assert "title" in str(exc_info.value)

    def test_malformed_header_names_file(self, source_path, descriptor_for, config_cache):
        loader = DocumentLoader(source_path, config_cache)

        with pytest.raises(FrontmatterError, match="bad.mdx"):
            loader.transform("---\ntitle: [oops\n---\nBody", descriptor_for("docs", "/p/bad.mdx"))

    def test_collection_compile_options_win(self, source_path, descriptor_for, config_cache):
        compiler = RecordingCompiler()
        loader = DocumentLoader(source_path, config_cache, compiler=compiler)

        loader.transform("Body", descriptor_for("notes"))

        assert compiler.calls[0][1]["format"] == "md"

    def test_collection_without_schema_passes_frontmatter(self, source_path, descriptor_for, config_cache):
        loader = DocumentLoader(source_path, config_cache)

        module = loader.transform("---\nanything: 1\n---\nBody", descriptor_for("free"))

        assert module.frontmatter == {"anything": 1}

    def test_dev_mode_preserves_line_numbers(self, source_path, descriptor_for, config_cache):
        compiler = RecordingCompiler()
        loader = DocumentLoader(source_path, config_cache, compiler=compiler, dev=True)

        loader.transform("---\ntitle: A\n---\nBody", descriptor_for("docs"))

        source, options = compiler.calls[0]
        assert source == "\n\n\nBody"
        assert options["development"] is True

    def test_git_timestamp(self, source_path, descriptor_for, config_cache):
        stamp = datetime(2024, 1, 2, tzinfo=timezone.utc)
        seen = []

        def timestamp_source(path):
            seen.append(path)
            return stamp

        compiler = RecordingCompiler()
        loader = DocumentLoader(
            source_path, config_cache, compiler=compiler, timestamp_source=timestamp_source
        )

        module = loader.transform("---\ntitle: A\n---\n", descriptor_for("docs"))

        assert module.last_modified == stamp
        assert seen == ["/project/content/docs/a.mdx"]
        assert compiler.calls[0][1]["data"] == {"last_modified": stamp}

    def test_compiler_failure_names_relative_path(self, project, source_path, descriptor_for, config_cache):
        file_path = str(project / "content/docs/a.mdx")
        loader = DocumentLoader(
            source_path, config_cache, compiler=RecordingCompiler(fail=True), root=project
        )

        with pytest.raises(CompileError) as exc_info:
            loader.transform("---\ntitle: A\n---\n", descriptor_for("docs", file_path))

        assert str(exc_info.value) == "content/docs/a.mdx:ValueError: unexpected token"
        assert exc_info.value.path == file_path

    def test_schema_factory_gets_context(self, project, config_cache):
        path = write_source(
            project,
            """
            from fsmdx.config import define_collections
            from fsmdx.schema import FrontmatterSchema

            SEEN = []

            def schema(ctx):
                SEEN.append((ctx.path, ctx.build("x")))
                return FrontmatterSchema

            docs = define_collections(type="doc", dir="content", schema=schema)
            """,
        )
        config_hash = compute_config_hash(path)
        loader = DocumentLoader(path, config_cache, compiler=RecordingCompiler())

        loader.transform("---\ntitle: A\n---\n", DocumentDescriptor("docs", config_hash, "/p/a.mdx"))

        seen = config_cache.peek(path).collections["docs"].schema.__globals__["SEEN"]
        assert seen == [("/p/a.mdx", "compiled:x")]

    def test_missing_hash_uses_current_source(self, source_path, config_cache):
        loader = DocumentLoader(source_path, config_cache)

        module = loader.transform("---\ntitle: A\n---\n", DocumentDescriptor("docs", None, "/a.mdx"))

        assert module.frontmatter == {"title": "A"}
        assert config_cache.executions == 1


class TestMetaLoader:
    def test_parses_json(self, source_path, descriptor_for, config_cache):
        loader = MetaLoader(source_path, config_cache)

        data = loader.transform(
            '{"title": "Guides", "pages": ["a", "b"]}',
            descriptor_for("docs", "/project/content/docs/meta.json"),
        )

        assert data == {"title": "Guides", "pages": ["a", "b"]}

    def test_parses_yaml(self, source_path, descriptor_for, config_cache):
        loader = MetaLoader(source_path, config_cache)

        data = loader.transform(
            "title: Guides\ndefaultOpen: true\n",
            descriptor_for("docs", "/project/content/docs/meta.yaml"),
        )

        assert data == {"title": "Guides", "defaultOpen": True}

    def test_invalid_meta_raises(self, source_path, descriptor_for, config_cache):
        loader = MetaLoader(source_path, config_cache)

        with pytest.raises(FrontmatterValidationError):
            loader.transform('{"pages": "not-a-list"}', descriptor_for("docs", "/p/meta.json"))

    @pytest.mark.parametrize(
        ("name", "source"),
        [("meta.json", "{not json"), ("meta.yaml", "title: [oops")],
    )
    def test_malformed_meta_names_file(self, source_path, descriptor_for, config_cache, name, source):
        loader = MetaLoader(source_path, config_cache)

        with pytest.raises(FrontmatterError, match=name):
            loader.transform(source, descriptor_for("docs", f"/p/{name}"))

    def test_without_collection_returns_raw_data(self, source_path, config_cache):
        loader = MetaLoader(source_path, config_cache)

        data = loader.transform("{}", DocumentDescriptor(None, None, "/p/meta.json"))

        assert data == {}
