"""Settings reconciler - diffs local index settings against the remote ones."""

import logging
from typing import Any

from algolia_sync.domain.index.service.naming import IndexNamer
from algolia_sync.domain.index.service.tasks import TaskTracker
from algolia_sync.domain.mapping.model.registry import MetadataRegistry
from algolia_sync.domain.shared.model.value import ValueObject
from algolia_sync.domain.shared.service import Service

logger = logging.getLogger(__name__)


class SettingChange(ValueObject):
    """One setting whose local value is missing or different remotely."""

    key: str
    local: Any
    remote: Any = None
    is_new: bool = False  # Key absent from the remote settings


class SettingsDiff(ValueObject):
    """Outcome of comparing one index's local and remote settings."""

    index_name: str
    is_new_index: bool = False
    changes: list[SettingChange] = []

    @property
    def dirty(self) -> bool:
        return self.is_new_index or bool(self.changes)


class SettingsReconciler(Service):
    """Computes and pushes settings. Remote-only keys are never removed."""

    registry: MetadataRegistry
    tasks: TaskTracker
    namer: IndexNamer

    def compute_local_settings(self) -> dict[str, dict[str, Any]]:
        """Settings per remote index name for every resolved entity class.

        Indexes without settings are left out since there is nothing to push.
        """
        local: dict[str, dict[str, Any]] = {}
        for entity_class, metadata in self.registry.known().items():
            settings = metadata.index.algolia_settings()
            if settings:
                local[self.namer.index_name(entity_class)] = settings
        return local

    def diff(self, index_name: str, local_settings: dict[str, Any]) -> SettingsDiff:
        remote = self.tasks.index(index_name).get_settings()
        if remote is None:
            logger.debug(f"Found a new local index '{index_name}'")
            return SettingsDiff(index_name=index_name, is_new_index=True)

        changes = []
        for key, local_value in local_settings.items():
            if key not in remote or remote[key] is None:
                changes.append(SettingChange(key=key, local=local_value, is_new=True))
            elif remote[key] != local_value:
                changes.append(SettingChange(key=key, local=local_value, remote=remote[key]))

        return SettingsDiff(index_name=index_name, changes=changes)

    def diff_all(self) -> dict[str, SettingsDiff]:
        return {
            index_name: self.diff(index_name, settings)
            for index_name, settings in self.compute_local_settings().items()
        }

    def push(self, index_name: str, local_settings: dict[str, Any]) -> None:
        """Write the local settings verbatim to the remote index."""
        task_id = self.tasks.index(index_name).set_settings(local_settings)
        self.tasks.record(index_name, task_id)
        logger.info(f"Pushed {len(local_settings)} settings to '{index_name}' (task {task_id})")
