"""Topology components, their properties and health summaries."""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

COMPONENT_TYPE = "component"
NIL_UUID = uuid.UUID(int=0)

_GREEN = "\x1b[32m"
_RED = "\x1b[31m"
_RESET = "\x1b[0m"


def _text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return "" if value is None else str(value)


class ComponentStatus(str, Enum):
    """Health state of a component, ordered by severity."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"

    def compare(self, other: ComponentStatus | str) -> int:
        """Return 0 if equal, 1 if this status ranks above ``other``, else -1."""
        if _text(self) == _text(other):
            return 0
        if _STATUS_ORDER.get(_text(self), 0) > _STATUS_ORDER.get(_text(other), 0):
            return 1
        return -1


_STATUS_ORDER = {
    ComponentStatus.INFO.value: 0,
    ComponentStatus.HEALTHY.value: 1,
    ComponentStatus.UNHEALTHY.value: 2,
    ComponentStatus.WARNING.value: 3,
    ComponentStatus.ERROR.value: 4,
}


@dataclass
class Summary:
    """Counts of components in each health state."""

    healthy: int = 0
    unhealthy: int = 0
    warning: int = 0
    info: int = 0

    def add(self, other: Summary) -> Summary:
        return Summary(
            healthy=self.healthy + other.healthy,
            unhealthy=self.unhealthy + other.unhealthy,
            warning=self.warning + other.warning,
            info=self.info + other.info,
        )


_SUMMARY_KEYS = ("healthy", "unhealthy", "warning", "info")


def _summary_from_dict(data: dict | None) -> Summary:
    data = data or {}
    return Summary(**{key: int(data.get(key) or 0) for key in _SUMMARY_KEYS})


def _summary_to_dict(summary: Summary) -> dict:
    return {key: getattr(summary, key) for key in _SUMMARY_KEYS if getattr(summary, key)}


_PROPERTY_KEYS = (
    ("label", "label"),
    ("name", "name"),
    ("tooltip", "tooltip"),
    ("icon", "icon"),
    ("type", "type"),
    ("color", "color"),
    ("order", "order"),
    ("headline", "headline"),
    ("text", "text"),
    ("value", "value"),
    ("unit", "unit"),
    ("max", "max"),
    ("min", "min"),
    ("status", "status"),
    ("last_transition", "lastTransition"),
    ("links", "links"),
)


@dataclass
class Property:
    """A realised property of a component."""

    label: str = ""
    name: str = ""
    tooltip: str = ""
    icon: str = ""
    type: str = ""
    color: str = ""
    order: int = 0
    headline: bool = False
    text: str = ""
    value: int = 0
    unit: str = ""
    max: int | None = None
    min: int = 0
    status: str = ""
    last_transition: str = ""
    links: list | None = None

    def get_value(self) -> Any:
        if self.text:
            return self.text
        if self.value:
            return self.value
        return None

    def merge(self, other: Property) -> None:
        """Overwrite this property's fields with the non-empty fields of ``other``."""
        if other.text:
            self.text = other.text
        if other.value:
            self.value = other.value
        if other.unit:
            self.unit = other.unit
        if other.max is not None:
            self.max = other.max
        if other.min:
            self.min = other.min
        if other.order > 0:
            self.order = other.order
        if other.status:
            self.status = other.status
        if other.last_transition:
            self.last_transition = other.last_transition
        if other.links is not None:
            self.links = other.links
        if other.type:
            self.type = other.type
        if other.color:
            self.color = other.color

    @classmethod
    def from_dict(cls, data: dict) -> Property:
        return cls(
            **{
                attr: data[key]
                for attr, key in _PROPERTY_KEYS
                if key in data and data[key] is not None
            }
        )

    def to_dict(self) -> dict:
        result = {}
        for attr, key in _PROPERTY_KEYS:
            value = getattr(self, attr)
            if attr == "max":
                if value is not None:
                    result[key] = value
            elif value:
                result[key] = value
        return result

    def __str__(self) -> str:
        parts = []
        if self.text:
            parts.append(f"text={self.text}")
        if self.value:
            parts.append(f"value={self.value}")
        if self.unit:
            parts.append(f"unit={self.unit}")
        if self.max is not None:
            parts.append(f"max={self.max}")
        if self.min:
            parts.append(f"min={self.min}")
        if self.status:
            parts.append(f"status={self.status}")
        if self.last_transition:
            parts.append(f"lastTransition={self.last_transition}")
        return f"{self.name}[{' '.join(parts)}]"


class Properties(list):
    """A list of properties."""

    def as_map(self) -> dict[str, Any]:
        return {prop.name: prop.get_value() for prop in self}

    def as_json(self) -> str:
        if not self:
            return "[]"
        return json.dumps([prop.to_dict() for prop in self])

    def find(self, name: str) -> Property | None:
        return next((prop for prop in self if prop.name == name), None)


def _parse_uuid(value: Any) -> uuid.UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


@dataclass
class Component:
    """A node in the topology tree."""

    name: str = ""
    id: uuid.UUID = NIL_UUID
    text: str = ""
    schedule: str = ""
    topology_type: str = ""
    namespace: str = ""
    labels: dict | None = None
    tooltip: str = ""
    icon: str = ""
    owner: str = ""
    status: str = ""
    status_reason: str = ""
    path: str = ""
    order: int = 0
    type: str = ""
    summary: Summary = field(default_factory=Summary)
    lifecycle: str = ""
    properties: Properties = field(default_factory=Properties)
    components: Components | None = None
    parent_id: uuid.UUID | None = None
    selectors: Any = None
    component_checks: Any = None
    checks: list | None = None
    configs: Any = None
    system_template_id: uuid.UUID | None = None
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None
    external_id: str = ""

    def clone(self) -> Component:
        """Copy the descriptive fields, leaving out children, summary and tree position."""
        return Component(
            name=self.name,
            topology_type=self.topology_type,
            order=self.order,
            id=self.id,
            text=self.text,
            namespace=self.namespace,
            labels=self.labels,
            tooltip=self.tooltip,
            icon=self.icon,
            owner=self.owner,
            status=self.status,
            status_reason=self.status_reason,
            type=self.type,
            lifecycle=self.lifecycle,
            checks=self.checks,
            configs=self.configs,
            component_checks=self.component_checks,
            properties=self.properties,
            external_id=self.external_id,
            schedule=self.schedule,
        )

    def __str__(self) -> str:
        result = ""
        if self.type:
            result += self.type + "/"
        if self.namespace:
            result += self.namespace + "/"
        return result + (self.text or self.name or self.external_id)

    def get_as_environment(self) -> dict[str, Any]:
        return {"self": self, "properties": self.properties.as_map()}

    def get_id(self) -> str:
        if self.id != NIL_UUID:
            return str(self.id)
        return self.text or self.name

    def is_healthy(self) -> bool:
        summary = self.summarize()
        return summary.healthy > 0 and summary.unhealthy == 0 and summary.warning == 0

    def summarize(self) -> Summary:
        """Count health states of checks, this leaf, or all children recursively."""
        summary = Summary()
        if self.checks is not None and self.components is None:
            for check in self.checks:
                status = check.get("status") if isinstance(check, dict) else getattr(check, "status", None)
                if _text(status) == ComponentStatus.HEALTHY.value:
                    summary.healthy += 1
                else:
                    summary.unhealthy += 1
            return summary
        if not self.components:
            status = _text(self.status)
            if status == ComponentStatus.HEALTHY.value:
                summary.healthy += 1
            elif status == ComponentStatus.UNHEALTHY.value:
                summary.unhealthy += 1
            elif status == ComponentStatus.WARNING.value:
                summary.warning += 1
            elif status == ComponentStatus.INFO.value:
                summary.info += 1
            return summary
        for child in self.components:
            summary = summary.add(child.summarize())
            child.summary = child.summarize()
        return summary

    def get_status(self) -> ComponentStatus:
        s = self.summary
        if s.healthy > 0 and s.unhealthy > 0:
            return ComponentStatus.WARNING
        if s.unhealthy > 0:
            return ComponentStatus.UNHEALTHY
        if s.warning > 0:
            return ComponentStatus.WARNING
        if s.healthy > 0:
            return ComponentStatus.HEALTHY
        return ComponentStatus.INFO

    @classmethod
    def from_dict(cls, data: dict) -> Component:
        children = data.get("components")
        checks = data.get("checks")
        return cls(
            name=data.get("name") or "",
            id=_parse_uuid(data.get("id")) or NIL_UUID,
            text=data.get("text") or "",
            schedule=data.get("schedule") or "",
            topology_type=COMPONENT_TYPE,
            namespace=data.get("namespace") or "",
            labels=data.get("labels"),
            tooltip=data.get("tooltip") or "",
            icon=data.get("icon") or "",
            owner=data.get("owner") or "",
            status=data.get("status") or "",
            status_reason=data.get("statusReason") or "",
            path=data.get("path") or "",
            order=int(data.get("order") or 0),
            type=data.get("type") or "",
            summary=_summary_from_dict(data.get("summary")),
            lifecycle=data.get("lifecycle") or "",
            properties=Properties(
                Property.from_dict(p) for p in data.get("properties") or [] if p is not None
            ),
            components=None if children is None else Components(cls.from_dict(c) for c in children),
            parent_id=_parse_uuid(data.get("parent_id")),
            selectors=data.get("selectors"),
            checks=None if checks is None else list(checks),
            configs=data.get("configs"),
            system_template_id=_parse_uuid(data.get("system_template_id")),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            deleted_at=data.get("deleted_at"),
            external_id=data.get("external_id") or "",
        )

    def to_dict(self) -> dict:
        result: dict[str, Any] = {}

        def put(key: str, value: Any) -> None:
            if value:
                result[key] = value

        put("name", self.name)
        result["id"] = str(self.id)
        put("text", self.text)
        put("schedule", self.schedule)
        put("topology_type", self.topology_type)
        put("namespace", self.namespace)
        put("labels", self.labels)
        put("tooltip", self.tooltip)
        put("icon", self.icon)
        put("owner", self.owner)
        put("status", _text(self.status))
        put("statusReason", self.status_reason)
        put("path", self.path)
        put("order", self.order)
        put("type", self.type)
        result["summary"] = _summary_to_dict(self.summary)
        put("lifecycle", self.lifecycle)
        put("properties", [p.to_dict() for p in self.properties])
        if self.components:
            result["components"] = [c.to_dict() for c in self.components]
        if self.parent_id is not None:
            result["parent_id"] = str(self.parent_id)
        put("selectors", self.selectors)
        put("checks", self.checks)
        result["configs"] = self.configs
        if self.system_template_id is not None:
            result["system_template_id"] = str(self.system_template_id)
        put("created_at", self.created_at)
        put("updated_at", self.updated_at)
        put("deleted_at", self.deleted_at)
        put("external_id", self.external_id)
        return result


class Components(list):
    """A list of components with tree helpers."""

    def find(self, name: str) -> Component | None:
        return next((c for c in self if c.name == name), None)

    def find_by_id(self, component_id: uuid.UUID) -> Component | None:
        return next((c for c in self if c.id == component_id), None)

    def find_index_by_id(self, component_id: uuid.UUID) -> int:
        return next((i for i, c in enumerate(self) if c.id == component_id), -1)

    def get_ids(self) -> list[str]:
        return [str(c.id) for c in self]

    def walk(self) -> Components:
        """Every component and its descendants, depth first."""
        result = Components()
        for component in self:
            result.append(component)
            if component.components is not None:
                result.extend(component.components.walk())
        return result

    def create_tree_structure(self) -> Components:
        """Nest components under their parents and summarise the roots."""
        moved: list[uuid.UUID] = []
        for component in self:
            component.topology_type = COMPONENT_TYPE
            if component.parent_id is None:
                continue
            parent = self.find_by_id(component.parent_id)
            if parent is not None:
                if parent.components is None:
                    parent.components = Components()
                parent.components.append(component)
                moved.append(component.id)
        roots = Components(self)
        for component_id in moved:
            index = roots.find_index_by_id(component_id)
            if index != -1:
                del roots[index]
        for component in roots:
            component.summary = component.summarize()
        return roots

    def summarize(self) -> Summary:
        summary = Summary()
        for component in self:
            summary = summary.add(component.summarize())
        return summary

    def filter_child_by_status(self, *args: str) -> Components:
        """Keep only the direct children whose status is one of ``args``."""
        if not args:
            return self
        wanted = {_text(s) for s in args}
        for component in self:
            component.components = Components(
                child for child in component.components or [] if _text(child.status) in wanted
            )
        return self

    def debug(self, prefix: str) -> str:
        lines = []
        for component in self:
            colour = _GREEN if component.is_healthy() else _RED
            status = f"{colour}{_text(component.status)}{_RESET}"
            lines.append(f"{prefix}{component} ({component.get_id()}) => {status}\n")
            if component.components:
                lines.append(component.components.debug(prefix + "\t"))
        return "".join(lines)

    @classmethod
    def from_json(cls, data: str | bytes | Iterable[dict]) -> Components:
        if isinstance(data, (str, bytes, bytearray)):
            data = json.loads(data)
        if data is None:
            return cls()
        return cls(Component.from_dict(item) for item in data)