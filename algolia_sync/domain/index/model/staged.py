"""Records staged during the detect phase and consumed by the commit phase."""

from dataclasses import dataclass
from typing import Any

from algolia_sync.domain.mapping.model.metadata import ChangeSet


@dataclass(frozen=True)
class StagedCreation:
    """Full record to send. The key is read at commit time, once it exists."""

    entity: Any
    index_name: str | None = None  # Overrides the index derived from the class


@dataclass(frozen=True)
class StagedUpdate:
    """Partial record to send. The change-set is not available after commit."""

    entity: Any
    change_set: ChangeSet


@dataclass(frozen=True)
class StagedDeletion:
    """Key captured while the entity was still readable."""

    object_id: str
    index_name: str
