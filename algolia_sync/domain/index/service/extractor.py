"""Field and key extraction - turns entities into Algolia records."""

import base64
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from algolia_sync.domain.mapping.model.metadata import (
    Accessor,
    ChangeSet,
    compile_accessor,
)
from algolia_sync.domain.mapping.model.registry import MetadataRegistry
from algolia_sync.domain.shared.error import NoPrimaryKey, NotAnAlgoliaEntity

# Relations nested deeper than this are not expanded.
MAX_RELATION_DEPTH = 2

_COLLECTION_TYPES = (list, tuple, set, frozenset)


def serialize_key(values: dict[str, Any]) -> str:
    """Encode ordered identifier values into an opaque, stable object id.

    Compact JSON keeps the identifier order, base64 keeps the id free of
    characters the remote API handles poorly.
    """
    payload = json.dumps(values, separators=(",", ":"), ensure_ascii=False, default=str)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def deserialize_key(object_id: str) -> dict[str, Any]:
    """Inverse of serialize_key."""
    return json.loads(base64.b64decode(object_id.encode("ascii")).decode("utf-8"))


@dataclass(frozen=True)
class AccessorTable:
    """Compiled getters for one entity class, built once from its metadata."""

    identifiers: tuple[tuple[str, Accessor], ...]
    properties: tuple[tuple[str, str, Accessor], ...]  # (attribute, field, getter)
    methods: tuple[tuple[str, Accessor], ...]  # (field, getter)


class FieldExtractor:
    """Extracts object ids and index fields from entities.

    Args:
        registry: Metadata registry used to recognise indexable classes.
        is_entity: Tells whether a value is an instance managed by the local
            store, i.e. a relation that has to be expanded rather than copied.
    """

    def __init__(self, registry: MetadataRegistry, is_entity: Callable[[Any], bool]) -> None:
        self._registry = registry
        self._is_entity = is_entity
        self._tables: dict[type, AccessorTable] = {}

    def accessors(self, entity_class: type) -> AccessorTable:
        table = self._tables.get(entity_class)
        if table is None:
            metadata = self._registry.get(entity_class)
            table = AccessorTable(
                identifiers=tuple(
                    (name, compile_accessor(name, entity_class))
                    for name in metadata.identifier_field_names
                ),
                properties=tuple(
                    (prop.name, prop.algolia_name, compile_accessor(prop.name, entity_class))
                    for prop in metadata.properties
                ),
                methods=tuple(
                    (method.algolia_name, compile_accessor(method.source, entity_class))
                    for method in metadata.methods
                ),
            )
            self._tables[entity_class] = table
        return table

    def extract_primary_key(
        self, entity: Any, change_set: ChangeSet | None = None
    ) -> tuple[str, str | None]:
        """Return ``(object_id, old_object_id)``.

        ``old_object_id`` is only set when an identifier field appears in the
        change-set, i.e. when the entity's remote identity changed.

        Raises:
            NoPrimaryKey: If an identifier field has no value.
        """
        changed = False
        old_values: dict[str, Any] = {}
        new_values: dict[str, Any] = {}

        for name, getter in self.accessors(type(entity)).identifiers:
            if change_set is not None and name in change_set:
                old, new = change_set[name]
                changed = True
            else:
                old = new = getter(entity)

            if not new:
                raise NoPrimaryKey(type(entity), name)

            old_values[name] = old
            new_values[name] = new

        return serialize_key(new_values), serialize_key(old_values) if changed else None

    def extract_fields(
        self, entity: Any, change_set: ChangeSet | None = None, depth: int = 0
    ) -> dict[str, Any]:
        """Build the index fields of an entity.

        With a change-set only the changed properties are read. Methods are
        always evaluated since derived values may depend on anything.
        """
        table = self.accessors(type(entity))
        fields: dict[str, Any] = {}

        for attribute, field, getter in table.properties:
            if change_set is not None and attribute not in change_set:
                continue
            fields[field] = self._property_value(attribute, getter(entity), depth)

        for field, getter in table.methods:
            fields[field] = getter(entity)

        return fields

    def _property_value(self, attribute: str, value: Any, depth: int) -> Any:
        if self._is_relation_collection(value):
            if depth >= MAX_RELATION_DEPTH:
                return None
            items = list(value)
            self._ensure_indexable(attribute, items[0])
            return [self.extract_fields(item, None, depth + 1) for item in items]

        if self._is_entity(value):
            if depth >= MAX_RELATION_DEPTH:
                return None
            self._ensure_indexable(attribute, value)
            return self.extract_fields(value, None, depth + 1)

        return value

    def _is_relation_collection(self, value: Any) -> bool:
        if not isinstance(value, _COLLECTION_TYPES) or not value:
            return False
        return self._is_entity(next(iter(value)))

    def _ensure_indexable(self, attribute: str, value: Any) -> None:
        if not self._registry.has(type(value)):
            raise NotAnAlgoliaEntity(
                f"Tried to index `{attribute}` relation which is a "
                f"`{type(value).__qualname__}` instance, which is not recognized "
                "as an entity to index.",
                field=attribute,
            )
