"""Declarative mapping loader.

Entity classes opt into indexing with the ``@indexed`` decorator::

    @indexed(
        "articles",
        properties=["title", ("body", "content")],
        methods={"excerpt": "get_excerpt"},
        index_if=["is_published"],
        settings={"searchableAttributes": ["title", "content"]},
    )
    class Article(Base):
        ...

Identifier fields default to the SQLAlchemy mapper's primary key attributes.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from algolia_sync.domain.mapping.model.metadata import (
    Accessor,
    Index,
    IndexIf,
    IndexMetadata,
    Method,
    Property,
)
from algolia_sync.domain.shared.error import ConfigurationError

T = TypeVar("T", bound=type)

DECLARATION_ATTR = "__algolia_index__"

PropertySpec = str | tuple[str, str] | Property


@dataclass(frozen=True)
class IndexDeclaration:
    """What ``@indexed`` records on a class."""

    name: str | None
    properties: tuple[Property, ...]
    methods: tuple[Method, ...]
    index_ifs: tuple[IndexIf, ...]
    per_environment: bool
    auto_index: bool
    settings: Mapping[str, Any]
    identifiers: tuple[str, ...] | None


def _to_property(spec: PropertySpec) -> Property:
    if isinstance(spec, Property):
        return spec
    if isinstance(spec, tuple):
        name, target = spec
        return Property(name=name, target=target)
    return Property(name=spec)


def indexed(
    name: str | None = None,
    *,
    properties: Iterable[PropertySpec] = (),
    methods: Mapping[str, str | Accessor] | None = None,
    index_if: Iterable[str | Accessor] = (),
    per_environment: bool = True,
    auto_index: bool = True,
    settings: Mapping[str, Any] | None = None,
    identifiers: Iterable[str] | None = None,
):
    """Class decorator declaring how an entity class is indexed.

    Args:
        name: Index base name, defaults to the class name.
        properties: Attributes to copy. A ``(attribute, field)`` pair renames.
        methods: Index field name -> method/property name or callable.
        index_if: Predicates (method/property names or callables); the entity
            is indexed only when all of them are truthy.
        per_environment: Suffix the index name with the environment.
        auto_index: Sync automatically on session commit.
        settings: Remote index settings. Unknown keys are ignored.
        identifiers: Key attributes, defaults to the mapper's primary key.
    """

    def decorate(cls: T) -> T:
        declaration = IndexDeclaration(
            name=name,
            properties=tuple(_to_property(p) for p in properties),
            methods=tuple(
                Method(target=target, source=source) for target, source in (methods or {}).items()
            ),
            index_ifs=tuple(IndexIf(source=source) for source in index_if),
            per_environment=per_environment,
            auto_index=auto_index,
            settings=dict(settings or {}),
            identifiers=tuple(identifiers) if identifiers is not None else None,
        )
        setattr(cls, DECLARATION_ATTR, declaration)
        return cls

    return decorate


def _primary_key_attributes(entity_class: type) -> tuple[str, ...]:
    mapper = sa_inspect(entity_class, raiseerr=False)
    if not isinstance(mapper, Mapper):
        return ()
    return tuple(mapper.get_property_by_column(column).key for column in mapper.primary_key)


class DeclarativeLoader:
    """Builds IndexMetadata from ``@indexed`` declarations."""

    def get_metadata(self, entity_class: type) -> IndexMetadata | None:
        declaration: IndexDeclaration | None = getattr(entity_class, DECLARATION_ATTR, None)
        if declaration is None:
            return None

        identifiers = declaration.identifiers or _primary_key_attributes(entity_class)
        if not identifiers:
            raise ConfigurationError(
                f"Indexed class `{entity_class.__qualname__}` has no identifier fields"
            )

        index = Index(
            name=declaration.name or entity_class.__name__,
            per_environment=declaration.per_environment,
            auto_index=declaration.auto_index,
            settings=declaration.settings,
        )
        return IndexMetadata(
            entity_class=entity_class,
            index=index,
            properties=declaration.properties,
            methods=declaration.methods,
            index_ifs=declaration.index_ifs,
            identifier_field_names=identifiers,
        )
