"""SQLAlchemy implementation of the EntityStore port."""

import importlib
import inspect
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from sqlalchemy import inspect as sa_inspect, select
from sqlalchemy.orm import InstanceState, Mapper, Session

from algolia_sync.domain.shared.error import ConfigurationError


def is_mapped_instance(value: Any) -> bool:
    """Whether ``value`` is an instance of a mapped class (not the class itself)."""
    if isinstance(value, type):
        return False
    return isinstance(sa_inspect(value, raiseerr=False), InstanceState)


def is_mapped_class(value: Any) -> bool:
    return isinstance(value, type) and isinstance(sa_inspect(value, raiseerr=False), Mapper)


def mapped_classes(module_paths: Iterable[str]) -> list[type]:
    """Import modules and collect the mapped classes they define.

    Raises:
        ConfigurationError: If a module cannot be imported.
    """
    classes: list[type] = []
    for path in module_paths:
        try:
            module = importlib.import_module(path)
        except ImportError as e:
            raise ConfigurationError(f"Cannot import entity module '{path}': {e}") from e

        for _, member in inspect.getmembers(module, is_mapped_class):
            if member.__module__ == module.__name__ and member not in classes:
                classes.append(member)
    return classes


class SqlAlchemyEntityStore:
    """Reads entities through a Session.

    Args:
        session: Session used for loading.
        entity_classes: Mapped classes the store exposes.
    """

    def __init__(self, session: Session, entity_classes: Sequence[type]) -> None:
        self._session = session
        self._entity_classes = list(entity_classes)

    def entity_classes(self) -> Sequence[type]:
        return list(self._entity_classes)

    def iter_batches(self, entity_class: type, batch_size: int) -> Iterator[list[Any]]:
        """Page through a table in primary key order.

        Each batch is expunged once consumed so a full pass does not keep
        the whole table in the identity map.
        """
        mapper: Mapper = sa_inspect(entity_class)
        stmt = select(entity_class).order_by(*mapper.primary_key)
        offset = 0

        while True:
            batch = list(self._session.scalars(stmt.offset(offset).limit(batch_size)))
            if not batch:
                return
            yield batch

            for entity in batch:
                if entity in self._session:
                    self._session.expunge(entity)
            if len(batch) < batch_size:
                return
            offset += batch_size

    def find(self, entity_class: type, key: dict[str, Any]) -> Any | None:
        return self._session.scalars(select(entity_class).filter_by(**key).limit(1)).first()

    def is_entity(self, value: Any) -> bool:
        return is_mapped_instance(value)
