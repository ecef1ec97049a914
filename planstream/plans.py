from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

from planstream.client import Client, escape_id, valid_string_id
from planstream.config import Profile
from planstream.errors import InvalidIdentifier, MissingLogLocation, ParseError, TransportError
from planstream.logreader import DEFAULT_POLL_MAX, DEFAULT_POLL_MIN, LogReader
from planstream.models import Plan, PlanResourceChanges, plan_from_document, resource_changes_from_json
from planstream.oracle import CompletionOracle


@dataclass
class Plans:
    client: Client
    validate_id: Callable[[Optional[str]], bool] = valid_string_id
    decode_plan: Callable[[Dict[str, Any]], Plan] = plan_from_document
    poll_min: float = DEFAULT_POLL_MIN
    poll_max: float = DEFAULT_POLL_MAX

    def _check_id(self, plan_id: str) -> None:
        if not self.validate_id(plan_id):
            raise InvalidIdentifier(f"invalid value for plan ID: {plan_id!r}")

    def read(self, plan_id: str) -> Plan:
        self._check_id(plan_id)
        document = self.client.do_request("GET", f"plans/{escape_id(plan_id)}")
        return self.decode_plan(document)

    def logs(self, plan_id: str, cancel: Optional[threading.Event] = None) -> LogReader:
        self._check_id(plan_id)
        plan = self.read(plan_id)
        if not plan.log_read_url:
            raise MissingLogLocation(f"plan {plan_id} does not have a log URL")

        parsed = urlparse(plan.log_read_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise TransportError(f"invalid log URL: {plan.log_read_url!r}")
        log_url = plan.log_read_url

        oracle = CompletionOracle(plan_id=plan.id, read_plan=self.read, cancel=cancel)
        return LogReader(
            fetch=lambda offset, limit: self.client.fetch_range(log_url, offset, limit),
            done=oracle.is_done,
            cancel=cancel,
            poll_min=self.poll_min,
            poll_max=self.poll_max,
            name=plan.id,
        )

    def read_json_output(self, plan_id: str) -> bytes:
        self._check_id(plan_id)
        return self.client.do_request("GET", f"plans/{escape_id(plan_id)}/json-output", raw=True)

    def read_resource_changes(self, plan_id: str) -> PlanResourceChanges:
        self._check_id(plan_id)
        body = self.client.do_request(
            "GET", f"plans/{escape_id(plan_id)}/json-output-redacted", raw=True
        )
        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise ParseError(f"Malformed resource changes for plan {plan_id}: {exc}") from exc
        return resource_changes_from_json(payload)


def from_profile(profile: Profile) -> Plans:
    client = Client(base_url=profile.base_url, token=profile.token, timeout=profile.timeout)
    return Plans(client=client, poll_min=profile.poll_min, poll_max=profile.poll_max)
