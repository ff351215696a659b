"""Client for the topology query endpoint."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, fields
from typing import Any

import requests

from canarycheck.sdk.client import (
    APIClient,
    BasicAuth,
    GenericSwaggerError,
    TokenSource,
    parameter_to_string,
    select_header_accept,
    select_header_content_type,
)
from canarycheck.sdk.models import Component, from_dict

_TOPOLOGY_PATH = "/api/topology"


@dataclass
class TopologyQueryOptions:
    """Optional filters for a topology query; unset fields are not sent."""

    id: Any = None
    topology_id: Any = None
    component_id: Any = None
    owner: Any = None
    status: Any = None
    types: Any = None
    flatten: Any = None


_QUERY_NAMES = {
    "id": "id",
    "topology_id": "topologyId",
    "component_id": "componentId",
    "owner": "owner",
    "status": "status",
    "types": "types",
    "flatten": "flatten",
}


def _query_params(options: TopologyQueryOptions | None) -> dict[str, str]:
    if options is None:
        return {}
    params: dict[str, str] = {}
    for f in fields(options):
        value = getattr(options, f.name)
        if value is not None:
            params[_QUERY_NAMES[f.name]] = parameter_to_string(value, "")
    return params


def _status_line(response: requests.Response) -> str:
    reason = response.reason or ""
    return f"{response.status_code} {reason}".strip()


class TopologyApi:
    """Queries the topology graph."""

    def __init__(self, client: APIClient) -> None:
        self.client = client

    def topology_query(
        self,
        options: TopologyQueryOptions | None = None,
        auth: BasicAuth | TokenSource | str | None = None,
    ) -> tuple[list[Component], requests.Response]:
        """Fetch components matching ``options``.

        Returns the decoded components with the HTTP response. A response
        whose status is 300 or above raises :class:`GenericSwaggerError`; a
        successful response that cannot be decoded yields no components.
        """
        headers: dict[str, str] = {}
        content_type = select_header_content_type([])
        if content_type:
            headers["Content-Type"] = content_type
        accept = select_header_accept(["application/json"])
        if accept:
            headers["Accept"] = accept

        request = self.client.prepare_request(
            self.client.base_path + _TOPOLOGY_PATH,
            "GET",
            headers=headers,
            query=_query_params(options),
            auth=auth,
        )
        response = self.client.call_api(request)
        body = response.content

        if response.status_code < 300:
            try:
                decoded = self.client.decode(body, response.headers.get("Content-Type", ""))
                if not isinstance(decoded, list):
                    raise TypeError("expected a list of components")
                return [from_dict(Component, item) for item in decoded], response
            except (ValueError, TypeError, ET.ParseError):
                return [], response

        raise GenericSwaggerError(_status_line(response), body=body)