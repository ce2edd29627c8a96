"""Custom Dishka scopes for algolia-sync."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (client, indexer, engine)
    - UOW: Unit of Work (one Session and its sync pipeline)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
