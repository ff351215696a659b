import json
import uuid

import pytest

from canarycheck.sdk.models import (
    APIResponse,
    Check,
    CheckStatus,
    Component,
    Config,
    Latency,
    Link,
    Property,
    Summary,
    Uptime,
    from_dict,
    to_dict,
)

COMPONENT_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"


def _component_data():
    return {
        "checks": [
            {
                "canary_id": "c1",
                "checkStatuses": [{"duration": 12, "status": True, "time": "now"}],
                "latency": {"p95": 1.5, "rolling1h": 2.0},
                "name": "http",
                "uptime": {"failed": 1, "passed": 9, "p100": 90.0},
                "labels": {"team": "ops"},
            }
        ],
        "components": [{"name": "child", "status": "healthy"}],
        "configs": [{"config_type": "Kubernetes", "external_id": ["a", "b"], "spec": {"x": 1}}],
        "id": COMPONENT_ID,
        "name": "root",
        "order": 3,
        "properties": [{"name": "cpu", "value": 5, "links": [{"url": "http://example.com", "type": "docs"}]}],
        "statusReason": "ok",
        "summary": {"healthy": 2, "warning": 1},
        "type": "service",
    }


def test_round_trip_component():
    data = _component_data()
    component = from_dict(Component, data)
    assert to_dict(component) == data


def test_nested_models_are_decoded():
    component = from_dict(Component, _component_data())
    check = component.checks[0]
    assert isinstance(check, Check)
    assert check.check_statuses == [CheckStatus(duration=12, status=True, time="now")]
    assert check.latency == Latency(p95=1.5, rolling1h=2.0)
    assert check.uptime == Uptime(failed=1, passed=9, p100=90.0)
    assert component.components[0] == Component(name="child", status="healthy")
    assert component.configs[0] == Config(config_type="Kubernetes", external_id=["a", "b"], spec={"x": 1})
    assert component.properties[0].links == [Link(url="http://example.com", type="docs")]
    assert component.summary == Summary(healthy=2, warning=1)


def test_json_keys_differ_from_attribute_names():
    prop = from_dict(Property, {"lastTransition": "t", "type": "gauge"})
    assert prop.last_transition == "t"
    assert prop.type == "gauge"
    status = from_dict(CheckStatus, {"error": "boom"})
    assert status.error == "boom"


def test_empty_fields_are_omitted():
    assert to_dict(Component()) == {}
    assert to_dict(Property(name="x")) == {"name": "x"}


def test_pointer_fields_kept_when_empty():
    assert to_dict(Component(components=[])) == {"components": []}
    assert to_dict(Check(latency=Latency())) == {"latency": {}}
    assert to_dict(Config(spec={})) == {"spec": {}}


def test_null_leaves_default():
    component = from_dict(Component, {"name": None, "checks": None, "summary": None})
    assert component.name == ""
    assert component.checks == []
    assert component.summary is None


def test_unknown_keys_ignored():
    assert from_dict(Summary, {"healthy": 1, "bogus": 7}) == Summary(healthy=1)


def test_integral_float_accepted_for_int():
    assert from_dict(Summary, {"info": 4.0}).info == 4


@pytest.mark.parametrize(
    "model,data",
    [
        (Summary, {"healthy": "x"}),
        (Summary, {"healthy": True}),
        (Summary, {"healthy": 1.5}),
        (Property, {"name": 7}),
        (CheckStatus, {"invalid": 1}),
        (Component, {"checks": {"name": "x"}}),
        (Component, {"summary": [1]}),
    ],
)
def test_wrong_types_raise(model, data):
    with pytest.raises(TypeError):
        from_dict(model, data)


def test_from_dict_requires_mapping():
    with pytest.raises(TypeError):
        from_dict(Component, ["not", "a", "mapping"])


def test_get_uuid_valid():
    assert Component(id=COMPONENT_ID).get_uuid() == uuid.UUID(COMPONENT_ID)


@pytest.mark.parametrize("value", ["", "not-a-uuid"])
def test_get_uuid_invalid_gives_nil(value):
    assert Component(id=value).get_uuid() == uuid.UUID(int=0)


def test_api_response_excludes_transport_fields():
    response = APIResponse(response=object(), message="m", request_url="/api", method="GET", payload=b"raw")
    assert to_dict(response) == {"message": "m", "url": "/api", "method": "GET"}


def test_api_response_constructors():
    marker = object()
    assert APIResponse.from_response(marker).response is marker
    failed = APIResponse.with_error("broken")
    assert failed.message == "broken"
    assert failed.response is None


def test_to_dict_is_json_serialisable():
    component = from_dict(Component, _component_data())
    assert json.loads(json.dumps(to_dict(component))) == _component_data()