"""Shared pytest fixtures for all tests.

Every test runs inside its own temporary project directory, since
collection directories are declared relative to the working directory.
"""

import textwrap
from pathlib import Path

import pytest

from fsmdx.config.cache import ConfigCache
from fsmdx.runtime.registry import registry
from fsmdx.settings import Settings, load_settings


@pytest.fixture(autouse=True)
def project(tmp_path: Path, monkeypatch) -> Path:
    """Temporary project root used as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache before each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def config_cache() -> ConfigCache:
    return ConfigCache()


@pytest.fixture(autouse=True)
def isolated_registry():
    """Give each test a registry with its own config cache."""
    registry.configure(cache=ConfigCache(), dev=False)
    registry._sources.clear()
    yield registry
    registry.clear()
    registry._sources.clear()


@pytest.fixture
def settings(project: Path) -> Settings:
    return Settings(out_dir=str(project / ".source"))


def write_file(path: Path, content: str) -> Path:
    """Write ``content`` (dedented) to ``path``, creating parents."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


def write_source(project: Path, body: str, name: str = "source.py") -> Path:
    """Write a declaration source to the project root and return its path."""
    return write_file(project / name, body)


def write_doc(project: Path, relative: str, title: str, body: str = "Hello") -> Path:
    """Write a document with a title frontmatter field."""
    return write_file(project / relative, f"---\ntitle: {title}\n---\n\n{body}\n")
