"""MetadataLoader port - turns an entity class description into IndexMetadata."""

from typing import Protocol

from algolia_sync.domain.mapping.model.metadata import IndexMetadata


class MetadataLoader(Protocol):
    """Protocol for mapping loaders.

    Implement this protocol to read index mappings from a different source
    (decorators, YAML files, ...).
    """

    def get_metadata(self, entity_class: type) -> IndexMetadata | None:
        """Build the metadata of an entity class.

        Args:
            entity_class: The entity class to inspect.

        Returns:
            The class metadata, or None if the class is not mapped to an index.
        """
        ...
