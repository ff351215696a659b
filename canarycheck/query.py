"""Topology query parameters, SQL generation and result shaping."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from canarycheck.components import Component, Components

log = logging.getLogger(__name__)

DEFAULT_DEPTH = 1

_INT_PATTERN = re.compile(r"[+-]?\d+")


def _status_text(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return "" if value is None else str(value)


def parse_items(items: str) -> list[str]:
    """Split a comma separated list; blank input gives an empty list."""
    if not items or not items.strip():
        return []
    return items.split(",")


def _first(values: Mapping[str, Any], key: str) -> str:
    value = values.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Sequence):
        return str(value[0]) if value else ""
    return str(value)


def _atoi(text: str) -> int:
    return int(text) if _INT_PATTERN.fullmatch(text) else 0


@dataclass
class TopologyParams:
    """Filters for a topology query."""

    id: str = ""
    topology_id: str = ""
    component_id: str = ""
    owner: str = ""
    labels: str = ""
    status: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    depth: int = 0
    flatten: bool = False
    include_config: bool = False
    include_health: bool = False

    @classmethod
    def from_query(cls, values: Mapping[str, Any]) -> TopologyParams:
        """Build parameters from URL query values (single strings or lists of strings)."""
        params = cls(
            id=_first(values, "id"),
            topology_id=_first(values, "topologyId"),
            component_id=_first(values, "componentId"),
            status=parse_items(_first(values, "status")),
            types=parse_items(_first(values, "type")),
            owner=_first(values, "owner"),
            flatten=_first(values, "flatten") == "true",
            labels=_first(values, "labels"),
            include_config=_first(values, "includeConfig") != "false",
            include_health=_first(values, "includeHealth") != "false",
        )
        if params.id.startswith("c-"):
            params.component_id = params.id[2:]
        elif params.id:
            params.topology_id = params.id
        params.component_id = params.component_id.removeprefix("c-")

        depth = _first(values, "depth")
        params.depth = _atoi(depth) if depth else DEFAULT_DEPTH
        return params

    def __str__(self) -> str:
        s = ""
        if self.id:
            s += f"id={self.id} "
        if self.topology_id:
            s += "topologyId=" + self.topology_id
        if self.component_id:
            s += " componentId=" + self.component_id
        if self.depth > 0:
            s += f" depth={self.depth}"
        if self.status:
            s += " status=" + ",".join(self.status)
        if self.types:
            s += " types=" + ",".join(self.types)
        if self.flatten:
            s += " flatten=true"
        if self.labels:
            s += " labels=" + self.labels
        if self.owner:
            s += " owner=" + self.owner
        if self.include_config:
            s += " includeConfig=true"
        if self.include_health:
            s += " includeHealth=true"
        return s.strip()

    def get_labels(self) -> dict[str, str] | None:
        """Parse ``k=v,k2=v2``; entries that are not exactly one pair are skipped."""
        if not self.labels:
            return None
        labels: dict[str, str] = {}
        for label in self.labels.split(","):
            parts = label.split("=")
            if len(parts) == 2:
                labels[parts[0]] = parts[1]
        return labels

    def get_id(self) -> str:
        return self.id or self.component_id or self.topology_id or ""

    def component_where_clause(self) -> str:
        s = "where components.deleted_at is null "
        if self.get_id():
            s += """and (starts_with(path,
			(SELECT
				(CASE WHEN (path IS NULL OR path = '') THEN id :: text ELSE concat(path,'.', id) END)
				FROM components where id = :id)
			) or id = :id or path = :id :: text)"""
        if self.owner:
            s += " AND (components.owner = :owner or id = :id)"
        if self.labels:
            s += " AND (components.labels @> :labels"
            if self.get_id():
                s += " or id = :id"
            s += ")"
        return s

    def component_relation_where_clause(self) -> str:
        s = "where component_relationships.deleted_at is null"
        if self.owner:
            s += " AND (parent.owner = :owner)"
        if self.labels:
            s += " AND (parent.labels @> :labels)"
        if self.get_id():
            s += """ and (component_relationships.relationship_id = :id or starts_with(component_relationships.relationship_path, (SELECT
			(CASE WHEN (path IS NULL OR path = '') THEN id :: text ELSE concat(path,'.', id) END)
			FROM components where id = :id)))"""
        else:
            s += """ and (parent.parent_id is null or starts_with(component_relationships.relationship_path, (SELECT
			(CASE WHEN (path IS NULL OR path = '') THEN id :: text ELSE concat(path,'.', id) END)
			FROM components where id = parent.id)))"""
        return s


_CHECKS_FOR_COMPONENTS = """
			(SELECT json_agg(checks) from checks LEFT JOIN check_component_relationships ON checks.id = check_component_relationships.check_id WHERE check_component_relationships.component_id = components.id AND check_component_relationships.deleted_at is null   GROUP BY check_component_relationships.component_id) :: jsonb
			 """

_CONFIGS_FOR_COMPONENTS = """
       (SELECT json_agg(config_items) from config_items
        LEFT JOIN config_component_relationships ON config_items.id = config_component_relationships.config_id
        WHERE config_component_relationships.component_id = components.id AND config_component_relationships.deleted_at IS NULL
        GROUP BY config_component_relationships.component_id) :: jsonb
	"""


def build_query(params: TopologyParams) -> str:
    """The SQL statement that selects the components matching ``params``."""
    return f"""
	SELECT json_agg(
        jsonb_set_lax(
            jsonb_set_lax(
                to_jsonb(components),'{{checks}}', {_CHECKS_FOR_COMPONENTS}
            ), '{{configs}}', {_CONFIGS_FOR_COMPONENTS}
        )
    ) :: jsonb AS components FROM components {params.component_where_clause()}
	UNION (
    SELECT json_agg(
        jsonb_set_lax(
            jsonb_set_lax(
                jsonb_set_lax(
                    to_jsonb(components), '{{parent_id}}', to_jsonb(component_relationships.relationship_id), true
                ),'{{checks}}', {_CHECKS_FOR_COMPONENTS}
            ), '{{configs}}', {_CONFIGS_FOR_COMPONENTS}
        )
    ):: jsonb AS components FROM component_relationships INNER JOIN components
	ON components.id = component_relationships.component_id INNER JOIN components AS parent
	ON component_relationships.relationship_id = parent.id {params.component_relation_where_clause()})"""


def query_args(params: TopologyParams) -> dict[str, Any]:
    """Named arguments to bind into :func:`build_query`."""
    args: dict[str, Any] = {}
    if params.get_id():
        args["id"] = params.get_id()
    if params.owner:
        args["owner"] = params.owner
    if params.labels:
        args["labels"] = params.get_labels()
    return args


def assemble(params: TopologyParams, rows: Iterable[Any]) -> Components:
    """Turn raw JSON rows returned by the query into the filtered component tree."""
    results = Components()
    for row in rows:
        if row is None:
            continue
        try:
            results.extend(Components.from_json(row))
        except (ValueError, TypeError, KeyError) as exc:
            raise ValueError(f"failed to unmarshal components: {row!r}") from exc

    if not params.flatten:
        results = results.create_tree_structure()

    if not params.get_id() and not params.status:
        for component in results.walk():
            component.status = component.get_status()

    results = filter_components_by_type(results, *params.types)
    for result in results:
        result.components = filter_components_with_depth(result.components, params.depth)

    results = filter_components_by_status(results, not params.get_id(), *params.status)
    log.debug("Querying topology (%s) => %d components", params, len(results))
    return results


def match_items(item: str, *args: str) -> bool:
    """True if ``item`` matches any of ``args``; ``!x`` excludes x and ``*`` matches all."""
    if not args:
        return True
    if any(i.startswith("!") and item == i[1:] for i in args):
        return False
    return any(i == "*" or item == i for i in args if not i.startswith("!"))


def filter_components_by_status(
    components: Iterable[Component], filter_root: bool, *args: str
) -> Components:
    """Filter the roots, or else the first level children, by status."""
    if not args:
        return components if isinstance(components, Components) else Components(components)
    filtered = Components()
    for component in components:
        if filter_root:
            if match_items(_status_text(component.status), *args):
                filtered.append(component)
        else:
            filtered.append(component)
            component.components = Components(
                child
                for child in component.components or []
                if match_items(_status_text(child.status), *args)
            )
    return filtered


def filter_components_by_type(components: Iterable[Component], *args: str) -> Components:
    if not args:
        return components if isinstance(components, Components) else Components(components)
    return Components(c for c in components if match_items(c.type, *args))


def filter_components_with_depth(components: Components | None, depth: int) -> Components | None:
    """Cut the tree so that at most ``depth`` levels remain below ``components``."""
    if depth <= 0 or components is None:
        return components
    if depth == 1:
        for component in components:
            component.components = None
    for component in components:
        component.components = filter_components_with_depth(component.components, depth - 1)
    return components