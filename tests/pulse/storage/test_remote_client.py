import json
import uuid
from datetime import datetime, timezone

import httpx
import pytest

from pulse.models import SocialPost
from pulse.storage import ListPostsOptions, RemoteClient, RemoteError
from pulse.storage.remote_client import NIL_UUID


class Recorder:
    """httpx handler that records requests and replies with a fixed response."""

    def __init__(self, status_code: int = 200, payload: dict | None = None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


def make_client(recorder, api_url: str = "https://api.example.com/v1/") -> RemoteClient:
    return RemoteClient(
        api_url, "secret-key", "team-1", transport=httpx.MockTransport(recorder)
    )


def test_base_url_strips_version_suffix():
    client = make_client(Recorder(), "https://api.example.com/v1/")

    assert client.api_url == "https://api.example.com"


def test_create_journal_entry_payload():
    recorder = Recorder(201)
    timestamp = datetime(2025, 1, 28, 9, 0, tzinfo=timezone.utc)

    with make_client(recorder) as client:
        client.create_journal_entry({"feelings": "f", "project_notes": "p"}, timestamp)

    request = recorder.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/teams/team-1/journal/entries"
    assert request.headers["x-api-key"] == "secret-key"
    assert json.loads(request.content) == {
        "team_id": "team-1",
        "timestamp": int(timestamp.timestamp() * 1000),
        "sections": {"feelings": "f", "project_notes": "p"},
    }


def test_read_journal_entries():
    entry_id = uuid.uuid4()
    recorder = Recorder(
        payload={
            "entries": [
                {
                    "id": str(entry_id),
                    "timestamp": 1738054800000,
                    "sections": {"feelings": "remote"},
                },
                {"id": "not-a-uuid", "sections": {}},
            ]
        }
    )

    entries = make_client(recorder).read_journal_entries(limit=5)

    assert recorder.requests[0].url.params["limit"] == "5"
    assert entries[0].id == entry_id
    assert entries[0].type == "remote"
    assert entries[0].created_at == datetime.fromtimestamp(1738054800, tz=timezone.utc)
    assert entries[0].sections == {"feelings": "remote"}
    assert entries[1].id == NIL_UUID


def test_create_post_payload():
    recorder = Recorder(201)
    parent = uuid.uuid4()
    post = SocialPost.new("alice", "hi", ["a"], parent)

    make_client(recorder).create_post(post)

    request = recorder.requests[0]
    assert request.url.path == "/teams/team-1/posts"
    assert json.loads(request.content) == {
        "content": "hi",
        "author": "alice",
        "tags": ["a"],
        "parentPostId": str(parent),
    }


def test_create_post_omits_optional_fields():
    recorder = Recorder(201)

    make_client(recorder).create_post(SocialPost.new("alice", "hi"))

    assert json.loads(recorder.requests[0].content) == {
        "content": "hi",
        "author": "alice",
    }


def test_read_posts_query_and_decode():
    post_id = uuid.uuid4()
    recorder = Recorder(
        payload={
            "posts": [
                {
                    "postId": str(post_id),
                    "author": "bob",
                    "content": "remote post",
                    "tags": ["x"],
                    "createdAt": {"_seconds": 1738054800, "_nanoseconds": 500000000},
                }
            ]
        }
    )

    posts = make_client(recorder).read_posts(
        ListPostsOptions(limit=5, offset=2, agent_filter="bob", tag_filter="x")
    )

    params = recorder.requests[0].url.params
    assert params["limit"] == "5"
    assert params["offset"] == "2"
    assert params["agent"] == "bob"
    assert params["tag"] == "x"
    assert "thread_id" not in params

    assert posts[0].id == post_id
    assert posts[0].author_name == "bob"
    assert posts[0].synced is True
    assert posts[0].parent_post_id is None
    assert posts[0].created_at == datetime.fromtimestamp(
        1738054800.5, tz=timezone.utc
    )


def test_error_status_raises():
    with pytest.raises(RemoteError) as exc_info:
        make_client(Recorder(500, {"error": "boom"})).create_post(
            SocialPost.new("alice", "hi")
        )

    assert exc_info.value.status_code == 500


def test_transport_error_raises():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = RemoteClient(
        "https://api.example.com", "k", "t", transport=httpx.MockTransport(refuse)
    )

    with pytest.raises(RemoteError) as exc_info:
        client.read_posts()

    assert exc_info.value.status_code is None


@pytest.mark.parametrize(
    "payload",
    [
        {"posts": [{"postId": "x", "createdAt": "2025-01-01T00:00:00Z"}]},
        {"posts": [{"postId": "x", "createdAt": {"_seconds": "soon"}}]},
        {"posts": [{"postId": "x", "tags": "news"}]},
        {"posts": ["not an object"]},
        {"posts": {"postId": "x"}},
    ],
)
def test_read_posts_malformed_items(payload):
    with pytest.raises(RemoteError, match="post"):
        make_client(Recorder(200, payload)).read_posts()


@pytest.mark.parametrize(
    "payload",
    [
        {"entries": [{"id": "x", "timestamp": "1700000000000"}]},
        {"entries": [{"id": "x", "sections": ["feelings"]}]},
        {"entries": [42]},
    ],
)
def test_read_journal_entries_malformed_items(payload):
    with pytest.raises(RemoteError):
        make_client(Recorder(200, payload)).read_journal_entries()
