"""Collection declarations.

Declaration sources build their collections with the helpers here:

    from fsmdx.config import define_docs, define_config

    docs = define_docs(dir="content/docs", output="docs")
    config = define_config(generate_manifest=True)

Collections form a tagged union on ``type``; every consumer matches on it
instead of relying on inheritance.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from fsmdx.constants import DEFAULT_DOCS_DIR
from fsmdx.schema import FrontmatterSchema, MetaSchema


def _check_output(value: str | None) -> str | None:
    if value is not None and not value.isidentifier():
        raise ValueError(f"output must be a valid module name, got {value!r}")
    return value


class _Collection(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    dir: str | list[str] = Field(..., description="Directory or directories to scan")
    files: list[str] | None = Field(
        None, description="Glob filters; a leading '!' excludes. Everything when unset"
    )
    schema_: Any = Field(None, alias="schema", description="Static schema or schema factory")
    output: str | None = Field(None, description="Output group name")
    localized: bool = Field(False, description="First path segment names the locale")

    @field_validator("output")
    @classmethod
    def _valid_output(cls, value: str | None) -> str | None:
        return _check_output(value)

    @field_validator("dir")
    @classmethod
    def _non_empty_dir(cls, value: str | list[str]) -> str | list[str]:
        if isinstance(value, list) and not value:
            raise ValueError("dir must name at least one directory")
        return value

    @property
    def dirs(self) -> list[str]:
        return [self.dir] if isinstance(self.dir, str) else list(self.dir)

    @property
    def schema(self) -> Any:  # type: ignore[override]
        return self.schema_


class DocCollection(_Collection):
    """Documents with frontmatter, compiled on import."""

    type: Literal["doc"] = "doc"
    async_load: bool = Field(False, description="Defer body compilation until first access")
    compile_options: dict[str, Any] | None = Field(
        None, description="Options passed to the document compiler"
    )


class MetaCollection(_Collection):
    """Sidecar metadata files (ordering, titles)."""

    type: Literal["meta"] = "meta"


class DocsCollection(BaseModel):
    """A paired doc + meta declaration under one logical name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["docs"] = "docs"
    output: str | None = None
    localized: bool = False
    docs: DocCollection
    meta: MetaCollection

    @field_validator("output")
    @classmethod
    def _valid_output(cls, value: str | None) -> str | None:
        return _check_output(value)


Collection = Annotated[
    Union[DocCollection, MetaCollection, DocsCollection],
    Field(discriminator="type"),
]

collection_adapter: TypeAdapter[DocCollection | MetaCollection | DocsCollection] = TypeAdapter(
    Collection
)


class GlobalConfig(BaseModel):
    """Options that apply to every collection."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_compile_options: dict[str, Any] | None = None
    generate_manifest: bool = False
    last_modified_time: Literal["git"] | None = None


def define_collections(**options: Any) -> DocCollection | MetaCollection:
    """Declare a single ``doc`` or ``meta`` collection.

    Raises:
        pydantic.ValidationError: If the options do not form a valid collection.
    """
    if options.get("type") not in ("doc", "meta"):
        raise ValueError("define_collections() needs type='doc' or type='meta'")
    return collection_adapter.validate_python(options)


def define_docs(
    dir: str | list[str] = DEFAULT_DOCS_DIR,
    output: str | None = None,
    localized: bool = False,
    docs: dict[str, Any] | None = None,
    meta: dict[str, Any] | None = None,
) -> DocsCollection:
    """Declare a paired doc + meta collection over the same directories.

    Both halves inherit ``dir``, ``output`` and ``localized`` and use the
    default schemas; ``docs`` and ``meta`` override per half.
    """
    shared = {"dir": dir, "output": output, "localized": localized}
    return DocsCollection(
        output=output,
        localized=localized,
        docs=DocCollection(**{**shared, "schema": FrontmatterSchema, **(docs or {})}),
        meta=MetaCollection(**{**shared, "schema": MetaSchema, **(meta or {})}),
    )


def define_config(**options: Any) -> GlobalConfig:
    """Declare global options."""
    return GlobalConfig(**options)
