"""Unit tests for the httpx Algolia client."""

import json

import httpx
import pytest

from algolia_sync.domain.shared.error import ExternalServiceError
from algolia_sync.infrastructure.algolia.client import AlgoliaClient
from algolia_sync.infrastructure.algolia.config import AlgoliaConfig


class Recorder:
    """MockTransport handler replaying canned responses in order."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    def body(self, i: int = 0) -> dict:
        return json.loads(self.requests[i].content)


def make_client(recorder: Recorder, **config) -> AlgoliaClient:
    algolia_config = AlgoliaConfig(
        application_id="APPID", api_key="secret", wait_task_poll_interval=0, **config
    )
    http = httpx.Client(
        base_url=algolia_config.base_url,
        headers={
            "X-Algolia-Application-Id": algolia_config.application_id,
            "X-Algolia-API-Key": algolia_config.api_key,
        },
        transport=httpx.MockTransport(recorder),
    )
    return AlgoliaClient(algolia_config, http=http)


class TestAlgoliaConfig:
    def test_base_url_from_application_id(self):
        assert AlgoliaConfig(application_id="ABC").base_url == "https://ABC.algolia.net"

    def test_explicit_host(self):
        assert AlgoliaConfig(host="http://localhost:8080").base_url == "http://localhost:8080"


class TestWrites:
    def test_save_objects_sends_a_batch(self):
        recorder = Recorder(httpx.Response(200, json={"taskID": 12}))
        index = make_client(recorder).init_index("posts")

        task_id = index.save_objects([{"objectID": "a", "title": "x"}])

        request = recorder.requests[0]
        assert task_id == 12
        assert request.method == "POST"
        assert request.url.path == "/1/indexes/posts/batch"
        assert request.headers["X-Algolia-API-Key"] == "secret"
        assert recorder.body() == {
            "requests": [{"action": "updateObject", "body": {"objectID": "a", "title": "x"}}]
        }

    def test_partial_update_and_delete_actions(self):
        recorder = Recorder(
            httpx.Response(200, json={"taskID": 1}), httpx.Response(200, json={"taskID": 2})
        )
        index = make_client(recorder).init_index("posts")

        index.partial_update_objects([{"objectID": "a", "title": "y"}])
        index.delete_objects(["a", "b"])

        assert recorder.body(0)["requests"][0]["action"] == "partialUpdateObject"
        assert recorder.body(1)["requests"] == [
            {"action": "deleteObject", "body": {"objectID": "a"}},
            {"action": "deleteObject", "body": {"objectID": "b"}},
        ]

    def test_index_names_are_quoted(self):
        recorder = Recorder(httpx.Response(200, json={"taskID": 1}))

        make_client(recorder).init_index("my index").clear_objects()

        assert recorder.requests[0].url.raw_path == b"/1/indexes/my%20index/clear"

    def test_delete_index(self):
        recorder = Recorder(httpx.Response(200, json={"taskID": 5}))

        assert make_client(recorder).delete_index("old") == 5
        assert recorder.requests[0].method == "DELETE"


class TestReads:
    def test_missing_index_has_no_settings(self):
        recorder = Recorder(httpx.Response(404, json={"message": "Index does not exist"}))

        assert make_client(recorder).init_index("posts").get_settings() is None

    def test_settings_round_trip(self):
        recorder = Recorder(
            httpx.Response(200, json={"hitsPerPage": 20}), httpx.Response(200, json={"taskID": 3})
        )
        index = make_client(recorder).init_index("posts")

        assert index.get_settings() == {"hitsPerPage": 20}
        assert index.set_settings({"hitsPerPage": 10}) == 3
        assert recorder.requests[1].method == "PUT"

    def test_search_encodes_params(self):
        recorder = Recorder(httpx.Response(200, json={"hits": [], "nbHits": 0}))

        make_client(recorder).init_index("posts").search("hello", {"hitsPerPage": 5})

        assert recorder.body() == {"params": "query=hello&hitsPerPage=5"}

    def test_browse_follows_cursor(self):
        recorder = Recorder(
            httpx.Response(200, json={"hits": [{"objectID": "a"}], "cursor": "next"}),
            httpx.Response(200, json={"hits": [{"objectID": "b"}]}),
        )

        ids = list(make_client(recorder).init_index("posts").browse_object_ids())

        assert ids == ["a", "b"]
        assert recorder.body(1) == {"cursor": "next"}

    def test_browse_missing_index(self):
        recorder = Recorder(httpx.Response(404, json={}))

        assert list(make_client(recorder).init_index("posts").browse_object_ids()) == []

    def test_wait_task_polls_until_published(self):
        recorder = Recorder(
            httpx.Response(200, json={"status": "notPublished"}),
            httpx.Response(200, json={"status": "published"}),
        )

        make_client(recorder).init_index("posts").wait_task(7)

        assert [r.url.path for r in recorder.requests] == ["/1/indexes/posts/task/7"] * 2


class TestErrors:
    def test_http_errors_are_wrapped(self):
        recorder = Recorder(httpx.Response(403, json={"message": "Invalid API key"}))

        with pytest.raises(ExternalServiceError) as exc_info:
            make_client(recorder).init_index("posts").save_objects([])

        assert exc_info.value.status_code == 403
        assert "Invalid API key" in exc_info.value.message

    def test_transport_errors_are_wrapped(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = AlgoliaClient(
            AlgoliaConfig(application_id="APPID"),
            http=httpx.Client(base_url="https://APPID.algolia.net", transport=httpx.MockTransport(refuse)),
        )

        with pytest.raises(ExternalServiceError) as exc_info:
            client.delete_index("posts")

        assert exc_info.value.status_code is None
