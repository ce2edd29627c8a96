"""HTTP adapter for the SearchClient port, talking to the Algolia REST API."""

import json
import logging
import time
from collections.abc import Iterator
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from algolia_sync.domain.index.port.search_client import TaskId
from algolia_sync.domain.shared.error import ExternalServiceError
from algolia_sync.infrastructure.algolia.config import AlgoliaConfig

logger = logging.getLogger(__name__)

_DEFAULT_CONNECT_TIMEOUT = 5.0


def _timeout(connection_timeout: float | None) -> httpx.Timeout:
    return httpx.Timeout(
        connect=connection_timeout or _DEFAULT_CONNECT_TIMEOUT,
        read=30.0,
        write=30.0,
        pool=5.0,
    )


def create_http_client(config: AlgoliaConfig) -> httpx.Client:
    """HTTP client authenticated against the configured application."""
    return httpx.Client(
        base_url=config.base_url,
        headers={
            "X-Algolia-Application-Id": config.application_id,
            "X-Algolia-API-Key": config.api_key,
        },
        timeout=_timeout(config.connection_timeout),
    )


def _encode_params(params: dict[str, Any]) -> str:
    """Encode search parameters the way the ``params`` string expects them."""
    encoded = {
        key: value if isinstance(value, str) else json.dumps(value, separators=(",", ":"))
        for key, value in params.items()
    }
    return urlencode(encoded)


class AlgoliaIndex:
    """Handle on one remote index."""

    def __init__(self, client: "AlgoliaClient", name: str) -> None:
        self._client = client
        self._name = name
        self._path = f"/1/indexes/{quote(name, safe='')}"

    @property
    def name(self) -> str:
        return self._name

    def save_objects(self, objects: list[dict[str, Any]]) -> TaskId:
        return self._batch("updateObject", objects)

    def partial_update_objects(self, objects: list[dict[str, Any]]) -> TaskId:
        return self._batch("partialUpdateObject", objects)

    def delete_objects(self, object_ids: list[str]) -> TaskId:
        return self._batch("deleteObject", [{"objectID": object_id} for object_id in object_ids])

    def clear_objects(self) -> TaskId:
        return self._client.request("POST", f"{self._path}/clear")["taskID"]

    def get_settings(self) -> dict[str, Any] | None:
        try:
            return self._client.request("GET", f"{self._path}/settings")
        except ExternalServiceError as e:
            if e.status_code == 404:
                return None
            raise

    def set_settings(self, settings: dict[str, Any]) -> TaskId:
        return self._client.request("PUT", f"{self._path}/settings", json_body=settings)["taskID"]

    def wait_task(self, task_id: TaskId) -> None:
        while True:
            status = self._client.request("GET", f"{self._path}/task/{task_id}")
            if status.get("status") == "published":
                return
            time.sleep(self._client.poll_interval)

    def search(self, query: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        body = {"params": _encode_params({"query": query, **(params or {})})}
        return self._client.request("POST", f"{self._path}/query", json_body=body)

    def browse_object_ids(self) -> Iterator[str]:
        body: dict[str, Any] = {"params": _encode_params({"attributesToRetrieve": ["objectID"]})}
        while True:
            try:
                page = self._client.request("POST", f"{self._path}/browse", json_body=body)
            except ExternalServiceError as e:
                if e.status_code == 404:
                    return
                raise

            for hit in page.get("hits", []):
                yield hit["objectID"]

            cursor = page.get("cursor")
            if not cursor:
                return
            body = {"cursor": cursor}

    def _batch(self, action: str, objects: list[dict[str, Any]]) -> TaskId:
        requests = [{"action": action, "body": body} for body in objects]
        response = self._client.request("POST", f"{self._path}/batch", json_body={"requests": requests})
        return response["taskID"]


class AlgoliaClient:
    """Synchronous Algolia REST client built on httpx.

    Remote failures are raised as ExternalServiceError and never retried.
    """

    def __init__(self, config: AlgoliaConfig, http: httpx.Client | None = None) -> None:
        self._config = config
        self._http = http or create_http_client(config)

    @property
    def poll_interval(self) -> float:
        return self._config.wait_task_poll_interval

    def init_index(self, name: str) -> AlgoliaIndex:
        return AlgoliaIndex(self, name)

    def delete_index(self, name: str) -> TaskId:
        return self.request("DELETE", f"/1/indexes/{quote(name, safe='')}")["taskID"]

    def request(self, method: str, path: str, json_body: Any = None) -> dict[str, Any]:
        try:
            response = self._http.request(method, path, json=json_body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Algolia {method} {path} failed with {e.response.status_code}: "
                f"{e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Algolia {method} {path} failed: {e}") from e

        logger.debug(f"Algolia {method} {path} -> {response.status_code}")
        return response.json()

    def close(self) -> None:
        self._http.close()
