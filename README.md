# canarycheck

Building blocks for working with canary check topologies and health data.

- `canarycheck.components`: the topology component model (`Component`,
  `Components`, `Property`, `Properties`, `Summary`, `ComponentStatus`).
  It rolls up health summaries, nests flat component lists into trees and
  walks them.
- `canarycheck.query`: `TopologyParams` built from query-string values, the
  SQL text and named arguments for a topology lookup (`build_query`,
  `query_args`), and `assemble`, which turns the JSON rows that come back
  into a filtered component tree. The filters (`filter_components_by_type`,
  `filter_components_by_status`, `filter_components_with_depth`,
  `match_items`) are usable on their own.
- `canarycheck.shapes`: tells whether a JSON document is a list of
  components or a list of properties.
- `canarycheck.labels`: `filter_labels` drops housekeeping labels;
  `load_from_file` reads `key=value` label files.
- `canarycheck.utils`: `age` for short human durations and
  `set_difference`.
- `canarycheck.prometheus`: latency percentile and uptime lookups against a
  Prometheus server.
- `canarycheck.sdk`: an HTTP client for the topology API
  (`canarycheck.sdk.client.APIClient`,
  `canarycheck.sdk.topology_api.TopologyApi`) and its response models
  (`canarycheck.sdk.models`).

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Working with components

```python
from canarycheck.components import Components

components = Components.from_json(rows_json)
tree = components.create_tree_structure()
for component in tree.walk():
    print(component, component.get_status())
print(tree.debug(""))
```

`Component.summarize()` counts healthy, unhealthy, warning and info leaves
(or, for a component with checks and no children, healthy and unhealthy
checks). `get_status()` turns the stored summary into one status: a
component with both healthy and unhealthy children is a warning.

## Building a topology query

```python
from canarycheck.query import TopologyParams, build_query, query_args, assemble

params = TopologyParams.from_query({"id": "c-1234", "depth": "2", "status": "healthy"})
sql = build_query(params)
args = query_args(params)
# run sql with args on your database, then:
components = assemble(params, rows)
```

An `id` starting with `c-` names a component, any other `id` a topology.
`status` and `type` accept comma separated lists; an item starting with `!`
excludes that value and `*` matches everything. `depth` defaults to 1.

## Labels

```python
from canarycheck.labels import filter_labels, load_from_file

labels = filter_labels({"app": "web", "pod-template-hash": "abc"})  # {"app": "web"}
mounted = load_from_file("/etc/podinfo/labels")
```

A missing file gives an empty mapping; a line without `=` raises
`ValueError`.

## Prometheus lookups

```python
from canarycheck.prometheus import new_prometheus_api

client = new_prometheus_api("http://localhost:9090")
p95 = client.get_histogram_quantile_latency("0.95", "check-key", "1h")
uptime = client.get_uptime("check-key", "1h")
```

`new_prometheus_api("")` returns `None`, so callers can leave Prometheus
unconfigured. Failed queries raise `PrometheusError`. A latency query with
no result gives `0.0`, and an uptime query with no result raises.

## Topology API client

```python
from canarycheck.sdk.client import APIClient, BasicAuth
from canarycheck.sdk.topology_api import TopologyApi, TopologyQueryOptions

client = APIClient(base_path="http://localhost:8080")
api = TopologyApi(client)
password = "password"
components, response = api.topology_query(
    TopologyQueryOptions(status="healthy"),
    auth=BasicAuth("user", password),
)
```

`auth` may also be a bearer token string or a callable that returns one. A
response with a status of 300 or above raises `GenericSwaggerError`, which
carries the response body. A successful response that cannot be decoded
gives an empty list.

## What this package does not do

It runs no checks, schedules nothing and stores nothing. `build_query`
produces SQL text and `query_args` its arguments, but running them against a
database is up to the caller. There is no command-line program and no
server.