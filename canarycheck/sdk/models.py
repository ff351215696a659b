"""Data models exchanged with the topology HTTP API."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Mapping

NIL_UUID = uuid.UUID(int=0)


def _f(
    json_name: str,
    default: Any = None,
    *,
    factory: Any = None,
    pointer: bool = False,
    kind: Any = None,
    many: bool = False,
) -> Any:
    """Declare a field with its JSON key and the type its values decode to.

    ``kind`` is a scalar type, a model class or a model's name; scalar kinds are
    taken from the default when not given. ``many`` marks a list of ``kind``.
    ``pointer`` fields are omitted only when None.
    """
    if kind is None and default is not None:
        kind = type(default)
    metadata = {"json": json_name, "pointer": pointer, "kind": kind, "many": many}
    if factory is not None:
        return field(default_factory=factory, metadata=metadata)
    return field(default=default, metadata=metadata)


@dataclass
class CheckStatus:
    duration: int = _f("duration", 0)
    error: str = _f("error", "")
    invalid: bool = _f("invalid", False)
    message: str = _f("message", "")
    status: bool = _f("status", False)
    time: str = _f("time", "")


@dataclass
class Latency:
    p95: float = _f("p95", 0.0)
    p97: float = _f("p97", 0.0)
    p99: float = _f("p99", 0.0)
    rolling1h: float = _f("rolling1h", 0.0)


@dataclass
class Uptime:
    failed: int = _f("failed", 0)
    p100: float = _f("p100", 0.0)
    passed: int = _f("passed", 0)


@dataclass
class Check:
    canary_id: str = _f("canary_id", "")
    canary_name: str = _f("canary_name", "")
    check_statuses: list[CheckStatus] = _f("checkStatuses", factory=list, kind="CheckStatus", many=True)
    created_at: str = _f("createdAt", "")
    deleted_at: str = _f("deletedAt", "")
    description: str = _f("description", "")
    display_type: str = _f("displayType", "")
    icon: str = _f("icon", "")
    id: str = _f("id", "")
    labels: Any = _f("labels", pointer=True)
    last_runtime: str = _f("lastRuntime", "")
    latency: Latency | None = _f("latency", pointer=True, kind="Latency")
    name: str = _f("name", "")
    namespace: str = _f("namespace", "")
    next_runtime: str = _f("nextRuntime", "")
    owner: str = _f("owner", "")
    severity: str = _f("severity", "")
    status: str = _f("status", "")
    type: str = _f("type", "")
    updated_at: str = _f("updatedAt", "")
    uptime: Uptime | None = _f("uptime", pointer=True, kind="Uptime")


@dataclass
class Link:
    icon: str = _f("icon", "")
    label: str = _f("label", "")
    text: str = _f("text", "")
    tooltip: str = _f("tooltip", "")
    type: str = _f("type", "")
    url: str = _f("url", "")


@dataclass
class Property:
    color: str = _f("color", "")
    headline: bool = _f("headline", False)
    icon: str = _f("icon", "")
    label: str = _f("label", "")
    last_transition: str = _f("lastTransition", "")
    links: list[Link] = _f("links", factory=list, kind="Link", many=True)
    max: int = _f("max", 0)
    min: int = _f("min", 0)
    name: str = _f("name", "")
    order: int = _f("order", 0)
    status: str = _f("status", "")
    text: str = _f("text", "")
    tooltip: str = _f("tooltip", "")
    type: str = _f("type", "")
    unit: str = _f("unit", "")
    value: int = _f("value", 0)


@dataclass
class Summary:
    healthy: int = _f("healthy", 0)
    info: int = _f("info", 0)
    unhealthy: int = _f("unhealthy", 0)
    warning: int = _f("warning", 0)


@dataclass
class Config:
    config_type: str = _f("config_type", "")
    external_id: list[str] = _f("external_id", factory=list, kind=str, many=True)
    external_type: str = _f("external_type", "")
    id: str = _f("id", "")
    name: str = _f("name", "")
    namespace: str = _f("namespace", "")
    spec: Any = _f("spec", pointer=True)


@dataclass
class Component:
    checks: list[Check] = _f("checks", factory=list, kind="Check", many=True)
    components: list[Component] | None = _f("components", pointer=True, kind="Component", many=True)
    configs: list[Config] = _f("configs", factory=list, kind="Config", many=True)
    created_at: str = _f("created_at", "")
    external_id: str = _f("external_id", "")
    icon: str = _f("icon", "")
    id: str = _f("id", "")
    labels: Any = _f("labels", pointer=True)
    lifecycle: str = _f("lifecycle", "")
    name: str = _f("name", "")
    namespace: str = _f("namespace", "")
    order: int = _f("order", 0)
    owner: str = _f("owner", "")
    parent_id: str = _f("parent_id", "")
    path: str = _f("path", "")
    properties: list[Property] = _f("properties", factory=list, kind="Property", many=True)
    schedule: str = _f("schedule", "")
    status: str = _f("status", "")
    status_reason: str = _f("statusReason", "")
    summary: Summary | None = _f("summary", pointer=True, kind="Summary")
    system_template_id: str = _f("system_template_id", "")
    text: str = _f("text", "")
    tooltip: str = _f("tooltip", "")
    topology_type: str = _f("topology_type", "")
    type: str = _f("type", "")
    updated_at: str = _f("updated_at", "")

    def get_uuid(self) -> uuid.UUID:
        """The component id as a UUID, or the nil UUID when it does not parse."""
        try:
            return uuid.UUID(self.id)
        except (ValueError, TypeError, AttributeError):
            return NIL_UUID


@dataclass
class APIResponse:
    """Outcome of an API call: the HTTP response plus descriptive fields."""

    response: Any = field(default=None, metadata={"skip": True})
    message: str = _f("message", "")
    operation: str = _f("operation", "")
    request_url: str = _f("url", "")
    method: str = _f("method", "")
    payload: bytes = field(default=b"", metadata={"skip": True})

    @classmethod
    def from_response(cls, response: Any) -> APIResponse:
        return cls(response=response)

    @classmethod
    def with_error(cls, message: str) -> APIResponse:
        return cls(message=message)


_MODELS: dict[str, type] = {
    model.__name__: model
    for model in (CheckStatus, Latency, Uptime, Check, Link, Property, Summary, Config, Component, APIResponse)
}


def _scalar(tp: type, value: Any, where: str) -> Any:
    if tp is bool:
        if isinstance(value, bool):
            return value
    elif tp is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif tp is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif tp is str:
        if isinstance(value, str):
            return value
    else:
        return value
    raise TypeError(f"{where}: cannot decode {type(value).__name__} as {tp.__name__}")


def _decode_one(kind: Any, value: Any, where: str) -> Any:
    if value is None:
        return None
    if isinstance(kind, str):
        kind = _MODELS[kind]
    if kind is None:
        return value
    if is_dataclass(kind):
        return from_dict(kind, value)
    return _scalar(kind, value, where)


def _decode(metadata: Mapping[str, Any], value: Any, where: str) -> Any:
    if value is None:
        return None
    kind = metadata.get("kind")
    if metadata.get("many"):
        if not isinstance(value, list):
            raise TypeError(f"{where}: expected a list, got {type(value).__name__}")
        return [_decode_one(kind, item, where) for item in value]
    return _decode_one(kind, value, where)


def from_dict(model: type, data: Mapping[str, Any]) -> Any:
    """Build ``model`` from decoded JSON, reading each field under its JSON key."""
    if not isinstance(data, Mapping):
        raise TypeError(f"{model.__name__}: expected an object, got {type(data).__name__}")
    kwargs = {}
    for f in fields(model):
        key = f.metadata.get("json")
        if key is None or f.metadata.get("skip") or key not in data:
            continue
        raw = data[key]
        if raw is None and not f.metadata.get("pointer"):
            continue
        kwargs[f.name] = _decode(f.metadata, raw, f"{model.__name__}.{key}")
    return model(**kwargs)


def _encode(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    return value


def to_dict(obj: Any) -> dict[str, Any]:
    """Encode a model as JSON-ready data, leaving out empty fields."""
    result: dict[str, Any] = {}
    for f in fields(obj):
        key = f.metadata.get("json")
        if key is None or f.metadata.get("skip"):
            continue
        value = getattr(obj, f.name)
        if value is None:
            continue
        if not f.metadata.get("pointer") and not value:
            continue
        result[key] = _encode(value)
    return result