from __future__ import annotations

import threading

import pytest

from planstream.errors import (
    InvalidIdentifier,
    MissingLogLocation,
    NotFoundError,
    ParseError,
    StreamCanceled,
    TransportError,
)
from planstream.models import PlanStatus
from planstream.oracle import CompletionOracle
from planstream.plans import Plans

LOG_URL = "https://archivist.example.com/v1/object/run-abc-log"


def _plan_document(plan_id: str, status: str, log_url: str = LOG_URL) -> dict:
    return {
        "data": {
            "id": plan_id,
            "type": "plans",
            "attributes": {
                "status": status,
                "log-read-url": log_url,
                "has-changes": True,
                "resource-additions": 1,
            },
        }
    }


class _FakeClient:
    """Serves a plan whose log grows by one chunk on every status read."""

    def __init__(
        self,
        statuses: list[str],
        appends: list[bytes] | None = None,
        log_url: str = LOG_URL,
        plan_id: str = "run-abc",
    ) -> None:
        self.statuses = list(statuses)
        self.appends = list(appends or [])
        self.log_url = log_url
        self.plan_id = plan_id
        self.content = b""
        self.paths: list[str] = []
        self.fetches: list[tuple[str, int, int]] = []
        self.raw_bodies: dict[str, bytes] = {}

    def do_request(self, method: str, path: str, raw: bool = False):
        self.paths.append(path)
        if raw:
            return self.raw_bodies[path]
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if self.appends:
            self.content += self.appends.pop(0)
        return _plan_document(self.plan_id, status, self.log_url)

    def fetch_range(self, url: str, offset: int, limit: int) -> bytes:
        self.fetches.append((url, offset, limit))
        return self.content[offset : offset + limit]


def _plans(client: _FakeClient) -> Plans:
    return Plans(client=client, poll_min=0, poll_max=0)  # type: ignore[arg-type]


def test_logs_stream_chunks_then_ends_when_plan_finishes() -> None:
    client = _FakeClient(
        statuses=["running", "running", "finished"],
        appends=[b"Initializing...\n", b"Apply complete.\n"],
    )
    reader = _plans(client).logs("run-abc")

    assert reader.read(1024) == b"Initializing...\n"
    assert reader.read(1024) == b"Apply complete.\n"
    assert reader.read(1024) == b""
    assert reader.read(1024) == b""
    assert client.paths == ["plans/run-abc"] * 3
    assert all(url == LOG_URL for url, _, _ in client.fetches)


def test_logs_of_finished_plan_with_empty_log() -> None:
    client = _FakeClient(statuses=["finished"])
    reader = _plans(client).logs("run-abc")

    assert reader.readall() == b""


def test_logs_of_errored_plan_deliver_remaining_output() -> None:
    client = _FakeClient(statuses=["errored"], appends=[b"Error: invalid provider\n"])
    reader = _plans(client).logs("run-abc")

    assert reader.readall() == b"Error: invalid provider\n"


def test_logs_rejects_invalid_id_without_network() -> None:
    client = _FakeClient(statuses=["finished"])

    with pytest.raises(InvalidIdentifier):
        _plans(client).logs("run/../abc")
    with pytest.raises(InvalidIdentifier):
        _plans(client).logs("")
    assert client.paths == []


def test_logs_requires_log_location() -> None:
    client = _FakeClient(statuses=["pending"], log_url="")

    with pytest.raises(MissingLogLocation, match="run-abc"):
        _plans(client).logs("run-abc")
    assert client.fetches == []


def test_logs_rejects_malformed_log_url() -> None:
    client = _FakeClient(statuses=["running"], log_url="not a url")

    with pytest.raises(TransportError, match="invalid log URL"):
        _plans(client).logs("run-abc")


def test_logs_propagates_missing_plan() -> None:
    class _MissingClient(_FakeClient):
        def do_request(self, method, path, raw=False):
            raise NotFoundError("404 Not Found", status_code=404)

    with pytest.raises(NotFoundError):
        _plans(_MissingClient(statuses=["running"])).logs("run-abc")


def test_logs_cancellation_stops_polling() -> None:
    cancel = threading.Event()

    class _CancelingClient(_FakeClient):
        def do_request(self, method, path, raw=False):
            if len(self.paths) == 1:
                cancel.set()
            return super().do_request(method, path, raw)

    client = _CancelingClient(statuses=["running"])
    reader = _plans(client).logs("run-abc", cancel=cancel)

    with pytest.raises(StreamCanceled):
        reader.read(1024)
    assert len(client.paths) == 2


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("queued", False),
        ("pending", False),
        ("running", False),
        ("mfa_waiting", False),
        ("created", False),
        ("finished", True),
        ("errored", True),
        ("canceled", True),
        ("unreachable", True),
    ],
)
def test_oracle_classifies_statuses(status: str, expected: bool) -> None:
    plans = _plans(_FakeClient(statuses=[status]))
    oracle = CompletionOracle(plan_id="run-abc", read_plan=plans.read)

    assert oracle.is_done() is expected
    assert PlanStatus(status).is_terminal is expected


def test_oracle_reads_fresh_status_each_call() -> None:
    client = _FakeClient(statuses=["running", "finished"])
    oracle = CompletionOracle(plan_id="run-abc", read_plan=_plans(client).read)

    assert oracle.is_done() is False
    assert oracle.is_done() is True
    assert len(client.paths) == 2


def test_read_decodes_plan() -> None:
    plan = _plans(_FakeClient(statuses=["running"])).read("run-abc")

    assert plan.id == "run-abc"
    assert plan.status == PlanStatus.RUNNING.value
    assert plan.log_read_url == LOG_URL
    assert plan.has_changes is True
    assert plan.resource_additions == 1


def test_read_json_output_returns_raw_bytes() -> None:
    client = _FakeClient(statuses=["finished"])
    client.raw_bodies["plans/run-abc/json-output"] = b'{"format_version":"1.2"}'

    assert _plans(client).read_json_output("run-abc") == b'{"format_version":"1.2"}'


def test_read_resource_changes() -> None:
    client = _FakeClient(statuses=["finished"])
    client.raw_bodies["plans/run-abc/json-output-redacted"] = (
        b'{"resource_changes": [{"address": "null_resource.demo", "mode": "managed",'
        b' "type": "null_resource", "name": "demo", "provider_name": "registry/null",'
        b' "change": {"actions": ["create"], "before": null, "after": {"id": "1"}}}]}'
    )

    changes = _plans(client).read_resource_changes("run-abc").resource_changes

    assert len(changes) == 1
    assert changes[0].address == "null_resource.demo"
    assert changes[0].change.actions == ["create"]
    assert changes[0].change.after == {"id": "1"}


def test_read_resource_changes_rejects_malformed_body() -> None:
    client = _FakeClient(statuses=["finished"])
    client.raw_bodies["plans/run-abc/json-output-redacted"] = b"<html>oops</html>"

    with pytest.raises(ParseError):
        _plans(client).read_resource_changes("run-abc")


def test_injected_id_validator_is_used() -> None:
    client = _FakeClient(statuses=["finished"])
    plans = Plans(client=client, validate_id=lambda value: value == "plan-1")  # type: ignore[arg-type]

    with pytest.raises(InvalidIdentifier):
        plans.read("run-abc")


def test_logs_keep_polling_through_unlisted_statuses() -> None:
    client = _FakeClient(statuses=["managed_queued", "managed_queued", "finished"])
    reader = _plans(client).logs("run-abc")

    assert reader.read(1024) == b""
    assert len(client.paths) == 3
