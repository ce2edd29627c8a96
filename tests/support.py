"""Test models and fakes shared across the test suite."""

import json
from collections.abc import Iterator
from typing import Any

from sqlalchemy import ForeignKey
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from algolia_sync.infrastructure.mapping.loader import indexed


# =============================================================================
# Mapped entities
# =============================================================================


class Base(DeclarativeBase):
    pass


@indexed(
    "authors",
    properties=["name", "articles"],
    per_environment=False,
)
class Author(Base):
    __tablename__ = "author"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str]
    articles: Mapped[list["Article"]] = relationship(back_populates="author")


@indexed(
    "articles",
    properties=["title", ("body", "content"), "author"],
    methods={"excerpt": "excerpt"},
    index_if=["is_visible"],
    settings={"searchableAttributes": ["title", "content"], "notASetting": True},
)
class Article(Base):
    __tablename__ = "article"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str]
    body: Mapped[str] = mapped_column(default="")
    published: Mapped[bool] = mapped_column(default=True)
    author_id: Mapped[int | None] = mapped_column(ForeignKey("author.id"))
    author: Mapped[Author | None] = relationship(back_populates="articles")

    @property
    def excerpt(self) -> str:
        return (self.body or "")[:10]

    @property
    def is_visible(self) -> bool:
        return bool(self.published)


@indexed("drafts", properties=["title"], auto_index=False)
class Draft(Base):
    __tablename__ = "draft"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str]


class AuditLog(Base):
    """Mapped but never indexed."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    message: Mapped[str]


# =============================================================================
# Fake remote client
# =============================================================================


class FakeIndex:
    """In-memory index recording every write it receives."""

    def __init__(self, name: str, client: "FakeSearchClient") -> None:
        self._name = name
        self._client = client
        self.objects: dict[str, dict[str, Any]] = {}
        self.settings: dict[str, Any] | None = None
        self.waited: list[int] = []

    @property
    def name(self) -> str:
        return self._name

    def save_objects(self, objects: list[dict[str, Any]]) -> int:
        for obj in objects:
            self.objects[obj["objectID"]] = dict(obj)
        return self._client.log(self._name, "save_objects", objects)

    def partial_update_objects(self, objects: list[dict[str, Any]]) -> int:
        for obj in objects:
            self.objects.setdefault(obj["objectID"], {}).update(obj)
        return self._client.log(self._name, "partial_update_objects", objects)

    def delete_objects(self, object_ids: list[str]) -> int:
        for object_id in object_ids:
            self.objects.pop(object_id, None)
        return self._client.log(self._name, "delete_objects", object_ids)

    def clear_objects(self) -> int:
        self.objects.clear()
        return self._client.log(self._name, "clear_objects", None)

    def get_settings(self) -> dict[str, Any] | None:
        return None if self.settings is None else dict(self.settings)

    def set_settings(self, settings: dict[str, Any]) -> int:
        self.settings = {**(self.settings or {}), **settings}
        return self._client.log(self._name, "set_settings", settings)

    def wait_task(self, task_id: int) -> None:
        self.waited.append(task_id)

    def search(self, query: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        hits = [
            obj
            for obj in self.objects.values()
            if query.lower() in json.dumps(obj, default=str).lower()
        ]
        return {"hits": hits, "nbHits": len(hits), "query": query}

    def browse_object_ids(self) -> Iterator[str]:
        return iter(list(self.objects))


class FakeSearchClient:
    """Remote client fake handing out increasing task ids."""

    def __init__(self) -> None:
        self.indexes: dict[str, FakeIndex] = {}
        self.calls: list[tuple[str, str, Any]] = []  # (index, operation, payload)
        self.deleted_indexes: list[str] = []
        self.init_count = 0
        self._task_id = 0

    def init_index(self, name: str) -> FakeIndex:
        self.init_count += 1
        if name not in self.indexes:
            self.indexes[name] = FakeIndex(name, self)
        return self.indexes[name]

    def delete_index(self, name: str) -> int:
        self.indexes.pop(name, None)
        self.deleted_indexes.append(name)
        return self.log(name, "delete_index", None)

    def log(self, index_name: str, operation: str, payload: Any) -> int:
        self.calls.append((index_name, operation, payload))
        self._task_id += 1
        return self._task_id

    def operations(self, index_name: str | None = None) -> list[str]:
        return [op for name, op, _ in self.calls if index_name is None or name == index_name]

    def payloads(self, index_name: str, operation: str) -> list[Any]:
        return [
            payload for name, op, payload in self.calls if name == index_name and op == operation
        ]


class FailingSearchClient(FakeSearchClient):
    """Client whose writes always fail."""

    def log(self, index_name: str, operation: str, payload: Any) -> int:
        raise RuntimeError("Remote failure")


# =============================================================================
# Plain (unmapped) entities
# =============================================================================


class PlainEntity:
    """Marker base telling plain test entities apart from plain values."""


def is_plain_entity(value: Any) -> bool:
    return isinstance(value, PlainEntity)


@indexed("tags", properties=["label", "posts"], identifiers=["id"], per_environment=False)
class Tag(PlainEntity):
    def __init__(self, id: int, label: str, posts: list["Post"] | None = None) -> None:
        self.id = id
        self.label = label
        self.posts = posts or []


@indexed(
    "posts",
    properties=["title", ("status", "state"), "tags", "published_on"],
    methods={"slug": "slug", "shout": "shout"},
    index_if=["is_public"],
    identifiers=["id"],
)
class Post(PlainEntity):
    def __init__(
        self,
        id: Any,
        title: str = "",
        status: str = "public",
        tags: list[Tag] | None = None,
        published_on: Any = None,
    ) -> None:
        self.id = id
        self.title = title
        self.status = status
        self.tags = tags or []
        self.published_on = published_on

    @property
    def slug(self) -> str:
        return self.title.lower().replace(" ", "-")

    def shout(self) -> str:
        return self.title.upper()

    def is_public(self) -> bool:
        return self.status == "public"

    @property
    def is_listed(self) -> bool:
        return self.is_public() and bool(self.slug)


@indexed("posts", properties=["title"], identifiers=["id"])
class Page(PlainEntity):
    """Shares the posts index."""

    def __init__(self, id: int, title: str = "") -> None:
        self.id = id
        self.title = title


@indexed("composite", properties=["value"], identifiers=["region", "number"])
class Composite(PlainEntity):
    def __init__(self, region: str, number: int, value: str = "") -> None:
        self.region = region
        self.number = number
        self.value = value


@indexed("bare", identifiers=["id"])
class Bare(PlainEntity):
    """Indexed without any field."""

    def __init__(self, id: int) -> None:
        self.id = id


class Orphan(PlainEntity):
    """Entity without index mapping."""

    def __init__(self, id: int) -> None:
        self.id = id
