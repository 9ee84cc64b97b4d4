"""Schema validation contract for collection entries.

A collection schema is anything that can validate a mapping and report
issues. Two shapes are accepted:

- a pydantic model class, adapted by PydanticValidator;
- an object with ``validate(data) -> ValidationResult``.

A schema may also be a function of a TransformContext that returns one of
the above, so a collection can build its schema per file.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found by a validator."""

    message: str
    path: tuple[str | int, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one mapping.

    Attributes:
        value: Validated (possibly coerced) data; None when issues exist.
        issues: Problems found; empty on success.
    """

    value: dict[str, Any] | None = None
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


@runtime_checkable
class Validator(Protocol):
    def validate(self, data: Any) -> ValidationResult: ...


@dataclass(frozen=True)
class TransformContext:
    """Per-file context handed to schema factories.

    Attributes:
        path: Absolute path of the document.
        source: Raw document text, frontmatter included.
        build: Compiles a markup fragment with the collection's options.
    """

    path: str
    source: str
    build: Callable[..., str | Awaitable[str]]


class PydanticValidator:
    """Adapt a pydantic model class to the Validator protocol."""

    def __init__(self, model: type[BaseModel]):
        self.model = model

    def validate(self, data: Any) -> ValidationResult:
        try:
            instance = self.model.model_validate(data)
        except PydanticValidationError as e:
            issues = [
                ValidationIssue(message=error["msg"], path=tuple(error["loc"]))
                for error in e.errors()
            ]
            return ValidationResult(issues=issues)
        return ValidationResult(value=instance.model_dump(exclude_unset=True, by_alias=True))

    def __repr__(self) -> str:
        return f"PydanticValidator({self.model.__name__})"


def is_static_schema(schema: Any) -> bool:
    """Return True when ``schema`` validates directly (no context needed)."""
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return True
    return isinstance(schema, Validator)


def to_validator(schema: Any) -> Validator:
    """Adapt a static schema to the Validator protocol.

    Raises:
        TypeError: If ``schema`` is neither a pydantic model nor a validator.
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return PydanticValidator(schema)
    if isinstance(schema, Validator):
        return schema
    raise TypeError(f"Unsupported schema: {schema!r}")


def resolve_schema(schema: Any, ctx: TransformContext | None) -> Validator | None:
    """Resolve a declared schema into a validator for one file.

    Schema factories are called with ``ctx``; without a context (e.g. when
    only static frontmatter is at hand) a factory resolves to None.
    """
    if schema is None:
        return None
    if is_static_schema(schema):
        return to_validator(schema)
    if callable(schema):
        if ctx is None:
            return None
        return to_validator(schema(ctx))
    raise TypeError(f"Unsupported schema: {schema!r}")


# =============================================================================
# Default schemas used by define_docs()
# =============================================================================


class FrontmatterSchema(BaseModel):
    """Default frontmatter of a documentation page."""

    model_config = ConfigDict(extra="allow")

    title: str = Field(..., description="Page title")
    description: str | None = Field(None, description="Short page summary")
    icon: str | None = Field(None, description="Icon name shown in navigation")
    full: bool | None = Field(None, description="Render the page at full width")


class MetaSchema(BaseModel):
    """Default shape of a folder metadata file."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str | None = Field(None, description="Folder title")
    pages: list[str] | None = Field(None, description="Ordered page slugs")
    description: str | None = Field(None, description="Folder summary")
    root: bool | None = Field(None, description="Marks a navigation root")
    default_open: bool | None = Field(
        None, alias="defaultOpen", description="Expand the folder by default"
    )
    icon: str | None = Field(None, description="Icon name shown in navigation")
