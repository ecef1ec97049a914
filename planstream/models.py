from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from planstream.errors import ParseError


class PlanStatus(str, Enum):
    CANCELED = "canceled"
    CREATED = "created"
    ERRORED = "errored"
    FINISHED = "finished"
    MFA_WAITING = "mfa_waiting"
    PENDING = "pending"
    QUEUED = "queued"
    RUNNING = "running"
    UNREACHABLE = "unreachable"

    @property
    def is_terminal(self) -> bool:
        return self.value in TERMINAL_STATUSES


# Raw status values. The API may report statuses newer than PlanStatus;
# anything outside this set counts as still in progress.
TERMINAL_STATUSES = frozenset(
    {
        PlanStatus.CANCELED.value,
        PlanStatus.ERRORED.value,
        PlanStatus.FINISHED.value,
        PlanStatus.UNREACHABLE.value,
    }
)


@dataclass(frozen=True)
class PlanStatusTimestamps:
    canceled_at: Optional[datetime] = None
    errored_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    force_canceled_at: Optional[datetime] = None
    queued_at: Optional[datetime] = None
    started_at: Optional[datetime] = None


@dataclass(frozen=True)
class Plan:
    id: str
    status: str
    log_read_url: str = ""
    has_changes: bool = False
    generated_configuration: bool = False
    resource_additions: int = 0
    resource_changes: int = 0
    resource_destructions: int = 0
    resource_imports: int = 0
    status_timestamps: Optional[PlanStatusTimestamps] = None
    exports: List[str] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class Change:
    actions: List[str] = field(default_factory=list)
    after: Any = None
    after_sensitive: Any = None
    after_unknown: Any = None
    before: Any = None
    before_sensitive: Any = None


@dataclass(frozen=True)
class ResourceChange:
    address: str
    change: Change
    index: Any = None
    mode: str = ""
    name: str = ""
    provider_name: str = ""
    type: str = ""


@dataclass(frozen=True)
class PlanResourceChanges:
    resource_changes: List[ResourceChange] = field(default_factory=list)


def _parse_timestamp(value: Any, key: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ParseError(f"Invalid timestamp for {key}: {value!r}")
    try:
        # fromisoformat only accepts a trailing Z from 3.11 on
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ParseError(f"Invalid timestamp for {key}: {value!r}") from exc


def _int(attributes: Dict[str, Any], key: str) -> int:
    value = attributes.get(key) or 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ParseError(f"Invalid {key}: {value!r}")
    return value


def _parse_status_timestamps(value: Any) -> Optional[PlanStatusTimestamps]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ParseError(f"Invalid status-timestamps: {value!r}")
    return PlanStatusTimestamps(
        canceled_at=_parse_timestamp(value.get("canceled-at"), "canceled-at"),
        errored_at=_parse_timestamp(value.get("errored-at"), "errored-at"),
        finished_at=_parse_timestamp(value.get("finished-at"), "finished-at"),
        force_canceled_at=_parse_timestamp(value.get("force-canceled-at"), "force-canceled-at"),
        queued_at=_parse_timestamp(value.get("queued-at"), "queued-at"),
        started_at=_parse_timestamp(value.get("started-at"), "started-at"),
    )


def _relation_ids(relationships: Dict[str, Any], name: str) -> List[str]:
    relation = relationships.get(name)
    if not isinstance(relation, dict):
        return []
    data = relation.get("data")
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []
    return [item["id"] for item in data if isinstance(item, dict) and item.get("id")]


def plan_from_document(document: Dict[str, Any]) -> Plan:
    """Decode a JSON:API ``plans`` document into a :class:`Plan`."""
    data = document.get("data")
    if not isinstance(data, dict):
        raise ParseError(f"Missing primary data in plan document: {document!r}")
    if data.get("type") not in (None, "plans"):
        raise ParseError(f"Expected a plans resource, got {data.get('type')!r}")
    plan_id = data.get("id")
    if not isinstance(plan_id, str) or not plan_id:
        raise ParseError(f"Plan document has no id: {data!r}")
    attributes = data.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise ParseError(f"Plan attributes are not an object: {attributes!r}")
    status = attributes.get("status")
    if not isinstance(status, str) or not status:
        raise ParseError(f"Plan {plan_id} has no valid status: {status!r}")
    log_read_url = attributes.get("log-read-url") or ""
    if not isinstance(log_read_url, str):
        raise ParseError(f"Invalid log-read-url: {log_read_url!r}")
    relationships = data.get("relationships") or {}
    return Plan(
        id=plan_id,
        status=status,
        log_read_url=log_read_url,
        has_changes=bool(attributes.get("has-changes", False)),
        generated_configuration=bool(attributes.get("generated-configuration", False)),
        resource_additions=_int(attributes, "resource-additions"),
        resource_changes=_int(attributes, "resource-changes"),
        resource_destructions=_int(attributes, "resource-destructions"),
        resource_imports=_int(attributes, "resource-imports"),
        status_timestamps=_parse_status_timestamps(attributes.get("status-timestamps")),
        exports=_relation_ids(relationships, "exports") if isinstance(relationships, dict) else [],
    )


def resource_changes_from_json(payload: Any) -> PlanResourceChanges:
    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}")
    items = payload.get("resource_changes") or []
    if not isinstance(items, list):
        raise ParseError("resource_changes is not a list")
    changes: List[ResourceChange] = []
    for item in items:
        if not isinstance(item, dict):
            raise ParseError(f"Invalid resource change entry: {item!r}")
        change = item.get("change") or {}
        if not isinstance(change, dict):
            raise ParseError(f"Invalid change for {item.get('address')!r}")
        changes.append(
            ResourceChange(
                address=item.get("address", ""),
                change=Change(
                    actions=list(change.get("actions") or []),
                    after=change.get("after"),
                    after_sensitive=change.get("after_sensitive"),
                    after_unknown=change.get("after_unknown"),
                    before=change.get("before"),
                    before_sensitive=change.get("before_sensitive"),
                ),
                index=item.get("index"),
                mode=item.get("mode", ""),
                name=item.get("name", ""),
                provider_name=item.get("provider_name", ""),
                type=item.get("type", ""),
            )
        )
    return PlanResourceChanges(resource_changes=changes)
