"""Index descriptors and per-entity-class metadata."""

import inspect
import types
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import cache
from operator import attrgetter
from typing import Any

from pydantic import field_validator

from algolia_sync.domain.shared.model.value import ValueObject

# Attribute name -> (old value, new value)
ChangeSet = dict[str, tuple[Any, Any]]

Accessor = Callable[[Any], Any]

# Settings the Algolia servers understand. Anything else is dropped.
ALGOLIA_SETTINGS_KEYS: tuple[str, ...] = (
    "minWordSizefor1Typo",
    "minWordSizefor2Typos",
    "hitsPerPage",
    "attributesToIndex",
    "searchableAttributes",
    "attributesToRetrieve",
    "unretrievableAttributes",
    "numericAttributesForFiltering",
    "optionalWords",
    "attributesForFaceting",
    "attributesToSnippet",
    "attributesToHighlight",
    "attributeForDistinct",
    "ranking",
    "customRanking",
    "separatorsToIndex",
    "removeWordsIfNoResults",
    "queryType",
    "highlightPreTag",
    "highlightPostTag",
    "slaves",
    "replicas",
    "synonyms",
)


class Index(ValueObject):
    """Target index of an entity class."""

    name: str
    per_environment: bool = True
    auto_index: bool = True
    settings: dict[str, Any] = {}

    @field_validator("settings", mode="before")
    @classmethod
    def _keep_known_settings(cls, value: Mapping[str, Any] | None) -> dict[str, Any]:
        if not value:
            return {}
        return {key: value[key] for key in ALGOLIA_SETTINGS_KEYS if key in value}

    def algolia_settings(self) -> dict[str, Any]:
        """Settings in the shape expected by the remote set-settings call."""
        return {key: value for key, value in self.settings.items() if value is not None}


class Property(ValueObject):
    """Entity attribute copied as-is into an index field."""

    name: str
    target: str = ""

    @property
    def algolia_name(self) -> str:
        return self.target or self.name


class _Overlay:
    """Read-only view of an entity where some attribute values are shadowed."""

    __slots__ = ("_entity", "_values")

    def __init__(self, entity: Any, values: Mapping[str, Any]) -> None:
        object.__setattr__(self, "_entity", entity)
        object.__setattr__(self, "_values", values)

    def __getattr__(self, name: str) -> Any:
        if name in self._values:
            return self._values[name]

        # Properties and methods run against the overlay too, so nested
        # calls see the shadowed values.
        attr = inspect.getattr_static(type(self._entity), name, None)
        if isinstance(attr, property) and attr.fget is not None:
            return attr.fget(self)
        if inspect.isfunction(attr):
            return types.MethodType(attr, self)
        return getattr(self._entity, name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Cannot set `{name}` while evaluating against a snapshot")


@cache
def compile_accessor(source: str | Accessor, owner: type) -> Accessor:
    """Turn an attribute/method name (or a callable) into a one-argument getter.

    Methods and properties are unbound from ``owner`` so they can be evaluated
    against a snapshot overlay as well as against the entity itself.
    """
    if callable(source):
        return source

    attr = inspect.getattr_static(owner, source, None)
    if isinstance(attr, property) and attr.fget is not None:
        return attr.fget
    if inspect.isfunction(attr):
        return attr
    return attrgetter(source)


@dataclass(frozen=True)
class ChangeAwareMethod:
    """Evaluator over an entity that can also be evaluated against a change-set."""

    source: str | Accessor

    def evaluate(self, entity: Any) -> Any:
        return compile_accessor(self.source, type(entity))(entity)

    def evaluate_with(self, entity: Any, values: Mapping[str, Any]) -> Any:
        """Evaluate as if the entity's attributes held ``values``."""
        if not values:
            return self.evaluate(entity)
        return compile_accessor(self.source, type(entity))(_Overlay(entity, values))

    def diff(self, entity: Any, change_set: ChangeSet) -> tuple[Any, Any]:
        """Return ``(value with change-set applied, value before change-set)``."""
        new_values = {name: new for name, (_old, new) in change_set.items()}
        old_values = {name: old for name, (old, _new) in change_set.items()}
        return self.evaluate_with(entity, new_values), self.evaluate_with(entity, old_values)


@dataclass(frozen=True)
class Method(ChangeAwareMethod):
    """Derived index field computed from the entity on every extraction."""

    target: str

    @property
    def algolia_name(self) -> str:
        return self.target


@dataclass(frozen=True)
class IndexIf(ChangeAwareMethod):
    """Boolean predicate gating whether an entity belongs in the index."""

    def evaluate(self, entity: Any) -> bool:
        return bool(super().evaluate(entity))

    def evaluate_with(self, entity: Any, values: Mapping[str, Any]) -> bool:
        return bool(super().evaluate_with(entity, values))

    def diff(self, entity: Any, change_set: ChangeSet) -> tuple[bool, bool]:
        new, old = super().diff(entity, change_set)
        return bool(new), bool(old)


@dataclass(frozen=True)
class IndexMetadata:
    """Everything needed to index one entity class. Immutable once built."""

    entity_class: type
    index: Index
    properties: tuple[Property, ...] = ()
    methods: tuple[Method, ...] = ()
    index_ifs: tuple[IndexIf, ...] = ()
    identifier_field_names: tuple[str, ...] = ()
