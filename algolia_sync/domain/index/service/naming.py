"""Remote index name resolution."""

from typing import Any

from algolia_sync.domain.mapping.model.registry import MetadataRegistry
from algolia_sync.domain.shared.service import Service


class IndexNamer(Service):
    """Builds ``[prefix_]name[_environment]`` index names."""

    registry: MetadataRegistry
    prefix: str | None = None
    environment: str | None = None

    def index_name(self, entity_or_class: Any) -> str:
        """Remote index name of an entity (or entity class).

        Raises:
            UnknownEntity: If the class has no index mapping.
        """
        entity_class = entity_or_class if isinstance(entity_or_class, type) else type(entity_or_class)
        index = self.registry.get(entity_class).index

        name = index.name
        if self.prefix:
            name = f"{self.prefix}_{name}"
        if index.per_environment and self.environment:
            name = f"{name}_{self.environment}"
        return name

    def make_env_index_name(self, name: str, per_environment: bool = True) -> str:
        """Add the environment suffix to a bare index name."""
        if per_environment and self.environment:
            return f"{name}_{self.environment}"
        return name
