"""Configuration for the Algolia REST client."""

from pydantic import BaseModel


class AlgoliaConfig(BaseModel):
    """Algolia credentials and sync behaviour.

    If ``host`` is not specified (None), it is derived from the application id
    (``https://{application_id}.algolia.net``).
    """

    application_id: str = ""
    api_key: str = ""
    host: str | None = None
    connection_timeout: float | None = None  # Seconds, None = 5s
    index_name_prefix: str | None = None
    environment: str | None = None  # Suffix for per-environment indexes
    catch_and_log_exceptions: bool = False
    wait_task_poll_interval: float = 0.1  # Seconds between task status polls

    @property
    def base_url(self) -> str:
        return self.host or f"https://{self.application_id}.algolia.net"
