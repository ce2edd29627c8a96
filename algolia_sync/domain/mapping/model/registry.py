"""Metadata registry - caches resolved index metadata per entity class."""

import logging
from collections.abc import Iterable, Iterator

from algolia_sync.domain.mapping.model.metadata import IndexMetadata
from algolia_sync.domain.mapping.port.loader import MetadataLoader
from algolia_sync.domain.shared.error import UnknownEntity

logger = logging.getLogger(__name__)


class MetadataRegistry:
    """Registry of index metadata, keyed by entity class.

    A class is resolved through the loader at most once. Classes the loader
    does not know are remembered as ignored, since a class never changes its
    mapping status at runtime.
    """

    def __init__(self, loader: MetadataLoader) -> None:
        self._loader = loader
        self._resolved: dict[type, IndexMetadata] = {}
        self._ignored: set[type] = set()

    def resolve(self, entity_class: type) -> IndexMetadata | None:
        """Get the metadata of a class, or None if it is not indexable."""
        if entity_class in self._ignored:
            return None

        metadata = self._resolved.get(entity_class)
        if metadata is not None:
            return metadata

        metadata = self._loader.get_metadata(entity_class)
        if metadata is None:
            logger.debug(f"Ignoring {entity_class.__qualname__}: no index mapping")
            self._ignored.add(entity_class)
            return None

        self._resolved[entity_class] = metadata
        return metadata

    def get(self, entity_class: type) -> IndexMetadata:
        """Get the metadata of a class.

        Raises:
            UnknownEntity: If the class has no index mapping.
        """
        metadata = self.resolve(entity_class)
        if metadata is None:
            raise UnknownEntity(entity_class)
        return metadata

    def has(self, entity_class: type) -> bool:
        return self.resolve(entity_class) is not None

    def discover(self, entity_classes: Iterable[type]) -> list[IndexMetadata]:
        """Resolve many classes at once, returning the indexable ones."""
        found = []
        for entity_class in entity_classes:
            metadata = self.resolve(entity_class)
            if metadata is not None:
                found.append(metadata)
        return found

    def known(self) -> dict[type, IndexMetadata]:
        """All metadata resolved so far."""
        return dict(self._resolved)

    def reset(self) -> None:
        """Forget every resolved and ignored class."""
        self._resolved.clear()
        self._ignored.clear()

    def __contains__(self, entity_class: type) -> bool:
        return entity_class in self._resolved

    def __iter__(self) -> Iterator[type]:
        return iter(self._resolved)

    def __len__(self) -> int:
        return len(self._resolved)
