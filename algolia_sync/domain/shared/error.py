"""Error hierarchy for algolia-sync.

Error layers:
- SyncError: Base class for all synchronization errors
- DomainError: Mapping and validation failures raised while detecting or
  extracting changes. These are never retried.
- InfrastructureError: Remote service or configuration failures.

Both layers propagate out of the sync pipeline unless it is configured to
catch and log them.
"""


class SyncError(Exception):
    """Base class for all algolia-sync errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (mapping/validation failures)
# =============================================================================


class DomainError(SyncError):
    """Base class for local validation errors."""


class UnknownEntity(DomainError):
    """Entity class has no index mapping where one was required."""

    def __init__(self, entity_class: type | str) -> None:
        name = entity_class if isinstance(entity_class, str) else _qualname(entity_class)
        super().__init__(f"No entity class `{name}` in metadata index", code="UNKNOWN_ENTITY")
        self.entity_class = entity_class


class NoPrimaryKey(DomainError):
    """Entity identifier fields are incomplete."""

    def __init__(self, entity_class: type, field: str) -> None:
        super().__init__(
            f"An entity of class `{_qualname(entity_class)}` without a valid primary key "
            f"(field `{field}`) was found during synchronization with Algolia.",
            code="NO_PRIMARY_KEY",
        )
        self.entity_class = entity_class
        self.field = field


class NotAnAlgoliaEntity(DomainError):
    """A relation points to an entity type that is not indexable."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="NOT_AN_ALGOLIA_ENTITY")
        self.field = field


# =============================================================================
# Infrastructure Errors (remote service / setup failures)
# =============================================================================


class InfrastructureError(SyncError):
    """Base class for infrastructure/system errors."""


class ExternalServiceError(InfrastructureError):
    """The remote search service rejected a call or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


def _qualname(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"
