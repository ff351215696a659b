import json
import uuid

import pytest

from canarycheck.components import (
    Component,
    Components,
    ComponentStatus,
    Properties,
    Property,
    Summary,
)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (ComponentStatus.HEALTHY, ComponentStatus.HEALTHY, 0),
        (ComponentStatus.ERROR, ComponentStatus.INFO, 1),
        (ComponentStatus.INFO, ComponentStatus.ERROR, -1),
        (ComponentStatus.WARNING, ComponentStatus.UNHEALTHY, 1),
    ],
)
def test_status_compare(a, b, expected):
    assert a.compare(b) == expected


def test_summary_add_is_fieldwise():
    a = Summary(healthy=2, unhealthy=1)
    b = Summary(warning=3, info=4, healthy=5)
    total = a.add(b)
    assert total.healthy == a.healthy + b.healthy
    assert total.warning == b.warning
    assert total.info == b.info
    assert total.unhealthy == a.unhealthy


def test_property_get_value():
    assert Property(name="p", text="high").get_value() == "high"
    assert Property(name="p", value=42).get_value() == 42
    assert Property(name="p").get_value() is None


def test_property_merge_keeps_empty_fields():
    base = Property(name="cpu", text="low", unit="m", order=2)
    base.merge(Property(text="high", max=10, color="red"))
    assert base.text == "high"
    assert base.unit == "m"
    assert base.max == 10
    assert base.order == 2
    assert base.color == "red"


def test_property_str():
    prop = Property(name="cpu", text="high", unit="m", status="ok")
    assert str(prop) == "cpu[text=high unit=m status=ok]"
    assert str(Property(name="x")) == "x[]"


def test_properties_json_round_trip():
    props = Properties(
        [Property(name="cpu", value=5, unit="m", max=10), Property(name="ver", text="1.2", last_transition="t")]
    )
    parsed = [Property.from_dict(d) for d in json.loads(props.as_json())]
    assert parsed == list(props)
    assert Properties().as_json() == "[]"


def test_properties_map_and_find():
    props = Properties([Property(name="cpu", text="high"), Property(name="mem", value=7)])
    assert props.as_map() == {"cpu": "high", "mem": 7}
    assert props.find("mem") is props[1]
    assert props.find("disk") is None


def test_component_from_dict_sets_topology_type():
    components = Components.from_json(json.dumps([{"name": "a", "components": [{"name": "b"}]}]))
    assert [c.name for c in components.walk()] == ["a", "b"]
    assert all(c.topology_type == "component" for c in components.walk())


def test_component_dict_round_trip():
    child = Component(name="db", id=uuid.uuid4(), status="healthy", topology_type="component")
    comp = Component(
        name="web",
        id=uuid.uuid4(),
        status="warning",
        topology_type="component",
        labels={"env": "prod"},
        properties=Properties([Property(name="cpu", text="high")]),
        components=Components([child]),
        parent_id=uuid.uuid4(),
        external_id="ext",
    )
    assert Component.from_dict(comp.to_dict()) == comp


def test_invalid_uuid_raises():
    with pytest.raises(ValueError):
        Components.from_json('[{"id": "not-a-uuid"}]')


def test_component_str_and_id():
    comp = Component(name="web", type="svc", namespace="default")
    assert str(comp) == "svc/default/web"
    assert comp.get_id() == "web"
    assert Component(name="web", text="Web").get_id() == "Web"
    ident = uuid.uuid4()
    assert Component(name="web", id=ident).get_id() == str(ident)


def test_summarize_checks_and_leaf():
    with_checks = Component(checks=[{"status": "healthy"}, {"status": "unhealthy"}])
    assert with_checks.summarize() == Summary(healthy=1, unhealthy=1)
    leaf = Component(checks=[{"status": "healthy"}], components=Components(), status="warning")
    assert leaf.summarize() == Summary(warning=1)


def test_summarize_children_sets_child_summary():
    child = Component(name="c", status="healthy")
    parent = Component(name="p", components=Components([child, Component(status="unhealthy")]))
    total = parent.summarize()
    assert total.healthy == 1 and total.unhealthy == 1
    assert child.summary == child.summarize()
    assert not parent.is_healthy()
    assert Component(status="healthy").is_healthy()


@pytest.mark.parametrize(
    "summary, expected",
    [
        (Summary(healthy=1, unhealthy=1), ComponentStatus.WARNING),
        (Summary(unhealthy=1), ComponentStatus.UNHEALTHY),
        (Summary(warning=1), ComponentStatus.WARNING),
        (Summary(healthy=1), ComponentStatus.HEALTHY),
        (Summary(), ComponentStatus.INFO),
    ],
)
def test_get_status(summary, expected):
    assert Component(summary=summary).get_status() == expected


def test_environment():
    comp = Component(properties=Properties([Property(name="cpu", text="high")]))
    env = comp.get_as_environment()
    assert env["self"] is comp
    assert env["properties"] == {"cpu": "high"}


def test_clone_drops_tree_fields():
    comp = Component(
        name="web", path="a.b", summary=Summary(healthy=1), components=Components([Component(name="x")])
    )
    copy = comp.clone()
    assert copy.name == "web"
    assert copy.components is None
    assert copy.summary == Summary()
    assert copy.path == ""


def test_create_tree_structure():
    parent = Component(name="parent", id=uuid.uuid4())
    child = Component(name="child", id=uuid.uuid4(), parent_id=parent.id, status="healthy")
    roots = Components([parent, child]).create_tree_structure()
    assert len(roots) == 1
    assert roots[0] is parent
    assert parent.components == [child]
    assert parent.summary == Summary(healthy=1)
    assert child.topology_type == "component"


def test_walk_and_find():
    c = Component(name="c", id=uuid.uuid4())
    b = Component(name="b", components=Components([c]))
    a = Component(name="a", components=Components([b]))
    comps = Components([a])
    assert [x.name for x in comps.walk()] == ["a", "b", "c"]
    assert comps.find("a") is a
    assert comps.find("zzz") is None
    assert comps.find_index_by_id(c.id) == -1
    assert comps.walk().find_by_id(c.id) is c


def test_get_ids_nil():
    assert Components([Component(name="x")]).get_ids() == [str(uuid.UUID(int=0))]


def test_filter_child_by_status():
    parent = Component(
        name="p",
        components=Components(
            [Component(name="ok", status="healthy"), Component(name="bad", status="unhealthy")]
        ),
    )
    comps = Components([parent])
    assert comps.filter_child_by_status() is comps
    assert len(parent.components) == 2
    comps.filter_child_by_status("healthy")
    assert [c.name for c in parent.components] == ["ok"]


def test_debug_output_nests():
    child = Component(name="db", status="healthy")
    root = Component(name="web", type="svc", components=Components([child]))
    lines = Components([root]).debug("").splitlines()
    assert lines[0].startswith("svc/web (web) => ")
    assert lines[1].startswith("\tdb (db) => ")
    assert "healthy" in lines[1]